"""
Energy request / response schemas.

Every engine endpoint takes already-materialized snapshots (biometric
aggregates, schedule events, optional profile) in the request body and
returns plain JSON; no biometric or calendar data is persisted.

POST /energy/summary        -> EnergyRequest        -> DaySummaryResponse
POST /energy/forecast       -> EnergyRequest        -> ForecastResponse
POST /energy/three-part     -> EnergyRequest        -> ThreePartResponse
POST /energy/event-effects  -> EventEffectsRequest  -> list[EventImpactOut]
"""
from __future__ import annotations

from datetime import date, datetime, time
from typing import Annotated, Optional

from pydantic import BaseModel, Field, model_validator

from energycast.services.domain import Chronotype
from energycast.services.metrics import MetricType


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------

class BiometricDayIn(BaseModel):
    """One day's aggregated biometrics. Only metrics listed in `available_metrics` are read."""
    day: date = Field(examples=["2026-02-20"])
    hrv: float = Field(default=0.0, ge=0, description="HRV SDNN in ms.")
    resting_hr: float = Field(default=0.0, ge=0, description="Resting heart rate in bpm.")
    heart_rate: float = Field(default=0.0, ge=0, description="Average heart rate in bpm.")
    sleep_efficiency: float = Field(default=0.0, ge=0, description="Sleep efficiency in %.")
    sleep_latency: float = Field(default=0.0, ge=0, description="Minutes to fall asleep.")
    deep_sleep: float = Field(default=0.0, ge=0, description="Deep sleep minutes.")
    rem_sleep: float = Field(default=0.0, ge=0, description="REM sleep minutes.")
    time_in_bed: float = Field(default=0.0, ge=0, description="Time in bed in minutes.")
    steps: int = Field(default=0, ge=0)
    active_energy: float = Field(default=0.0, ge=0, description="Active energy in kcal.")
    available_metrics: list[MetricType] = Field(
        default_factory=list,
        examples=[["step_count", "active_energy_burned", "heart_rate", "time_in_bed"]],
    )
    has_samples: bool = True


class ScheduleEventIn(BaseModel):
    title: Annotated[str, Field(min_length=1, max_length=500, examples=["Team meeting"])]
    start: datetime
    end: datetime
    is_all_day: bool = False
    energy_delta: Optional[float] = Field(
        default=None,
        ge=-1.0,
        le=1.0,
        description="Learned impact on energy, -1..+1. Omit when unknown.",
    )

    @model_validator(mode="after")
    def check_order(self) -> "ScheduleEventIn":
        if self.end < self.start:
            raise ValueError("end must not be before start")
        return self


class UserProfileIn(BaseModel):
    wake_time: time = time(7, 0)
    sleep_time: time = time(23, 0)
    chronotype: Chronotype = Chronotype.afternoon
    exercise_frequency: int = Field(default=3, ge=0, le=21, description="Sessions per week.")
    caffeine_mg_per_day: int = Field(default=0, ge=0)
    caffeine_morning: bool = False
    caffeine_afternoon: bool = False
    caffeine_evening: bool = False
    uses_sleep_aid: bool = False
    screens_before_bed: bool = True
    meals_regular: bool = True
    notes: Optional[str] = Field(default=None, max_length=2000)


class EnergyRequest(BaseModel):
    """Snapshots for one target day. `biometrics` is the look-back window, any order."""
    day: date = Field(examples=["2026-02-20"])
    biometrics: list[BiometricDayIn] = Field(default_factory=list)
    events: list[ScheduleEventIn] = Field(default_factory=list)
    profile: Optional[UserProfileIn] = None


class EventEffectsRequest(BaseModel):
    events: list[ScheduleEventIn] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Outputs
# ---------------------------------------------------------------------------

class DaySummaryResponse(BaseModel):
    day: str
    overall_energy_score: float = Field(description="0..100, mean of the waveform.")
    mental_energy: float
    physical_energy: float
    sleep_efficiency: float
    coverage_ratio: float
    confidence: float
    warning: Optional[str] = None
    debug_info: str
    hourly_waveform: list[float] = Field(description="24 hourly values in 0..1.")
    top_boosters: list[str] = Field(default_factory=list)
    top_drainers: list[str] = Field(default_factory=list)
    explainers: list[str] = Field(default_factory=list)


class ForecastResponse(BaseModel):
    day: str
    values: list[float] = Field(description="24 hourly values, or [] when no estimate exists.")
    score: float
    confidence: float
    missing_metrics: list[str] = Field(default_factory=list)
    source_type: str = Field(description='"historical_model" or "default_heuristic".')
    debug_info: Optional[str] = None


class ThreePartResponse(BaseModel):
    day: str
    morning: float = Field(description="Average energy 06:00-12:00, 0..100.")
    afternoon: float = Field(description="Average energy 12:00-18:00, 0..100.")
    evening: float = Field(description="Average energy 18:00-24:00, 0..100.")
    waking: float = Field(
        description="Average energy from wake to sleep time, 0..100. Uses 06:00-24:00 "
        "when no profile or the default schedule is given."
    )


class EventImpactOut(BaseModel):
    category: str
    average_delta: float
    event_count: int


class AccuracyResponse(BaseModel):
    accuracy: float = Field(description="0..1; 1 means the forecast matched exactly.")
    day: Optional[str] = None
    days: Optional[int] = None


class InvalidateResponse(BaseModel):
    day: str
    invalidated: bool


class CacheClearedResponse(BaseModel):
    cleared: bool
