"""
Engine input and output types.

Plain frozen dataclasses: no ORM, no pydantic. Inputs are snapshots handed
over by the biometric / calendar / profile collaborators; outputs are built
fresh per request and only ever "updated" through dataclasses.replace().
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, replace
from datetime import date, datetime, time
from typing import Optional

from energycast.services.metrics import MetricType
from energycast.services.normalization import MISSING, Present, Reading

INSUFFICIENT_DATA_WARNING = "Insufficient health data"
LIMITED_DATA_WARNING = (
    "Limited data used for this estimate. Add sleep or HRV data for higher accuracy."
)

HOURS_PER_DAY = 24


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------

# Which aggregate attribute carries each metric kind.
_METRIC_FIELDS: dict[MetricType, str] = {
    MetricType.heart_rate_variability_sdnn: "hrv",
    MetricType.resting_hr: "resting_hr",
    MetricType.heart_rate: "heart_rate",
    MetricType.sleep_efficiency: "sleep_efficiency",
    MetricType.sleep_latency: "sleep_latency",
    MetricType.deep_sleep: "deep_sleep",
    MetricType.rem_sleep: "rem_sleep",
    MetricType.time_in_bed: "time_in_bed",
    MetricType.step_count: "steps",
    MetricType.active_energy_burned: "active_energy",
}


@dataclass(frozen=True)
class BiometricDayAggregate:
    day: date
    hrv: float = 0.0                # ms
    resting_hr: float = 0.0         # bpm
    heart_rate: float = 0.0         # bpm, daily average
    sleep_efficiency: float = 0.0   # %
    sleep_latency: float = 0.0      # min
    deep_sleep: float = 0.0         # min
    rem_sleep: float = 0.0          # min
    time_in_bed: float = 0.0        # min
    steps: int = 0
    active_energy: float = 0.0      # kcal
    available_metrics: frozenset[MetricType] = frozenset()
    has_samples: bool = True

    def reading(self, metric: MetricType) -> Reading:
        """Present(value) when the metric is available for this day, else MISSING."""
        attr = _METRIC_FIELDS.get(metric)
        if attr is None or metric not in self.available_metrics:
            return MISSING
        return Present(float(getattr(self, attr)))


@dataclass(frozen=True)
class ScheduleEvent:
    title: str
    start: datetime
    end: datetime
    is_all_day: bool = False
    energy_delta: Optional[float] = None   # -1..+1, None = not learned yet


class Chronotype(str, enum.Enum):
    none = "none"
    morning = "morning"
    afternoon = "afternoon"
    evening = "evening"


@dataclass(frozen=True)
class UserProfile:
    wake_time: time = time(7, 0)
    sleep_time: time = time(23, 0)
    chronotype: Chronotype = Chronotype.afternoon
    exercise_frequency: int = 3          # sessions per week
    caffeine_mg_per_day: int = 0
    caffeine_morning: bool = False
    caffeine_afternoon: bool = False
    caffeine_evening: bool = False
    uses_sleep_aid: bool = False
    screens_before_bed: bool = True
    meals_regular: bool = True
    notes: Optional[str] = None

    @classmethod
    def default(cls) -> "UserProfile":
        return cls()

    @property
    def wake_hour(self) -> int:
        return self.wake_time.hour

    @property
    def bed_hour(self) -> int:
        return self.sleep_time.hour

    def debug_summary(self) -> str:
        return (
            f"Caffeine: {self.caffeine_mg_per_day}mg/day "
            f"(M:{self.caffeine_morning}, A:{self.caffeine_afternoon}, E:{self.caffeine_evening}). "
            f"Wake {self.wake_time:%H:%M}, Sleep {self.sleep_time:%H:%M}, "
            f"Exercise {self.exercise_frequency}x/week, Chronotype {self.chronotype.value}."
        )


# ---------------------------------------------------------------------------
# Outputs
# ---------------------------------------------------------------------------

def waveform_score(wave) -> float:
    """mean(wave) * 100, or 0 for an empty waveform."""
    if not wave:
        return 0.0
    return sum(wave) / len(wave) * 100.0


@dataclass(frozen=True)
class DayEnergySummary:
    day: date
    overall_energy_score: float     # 0..100
    mental_energy: float            # 0..100
    physical_energy: float          # 0..100
    sleep_efficiency: float         # %
    coverage_ratio: float           # 0..1
    confidence: float               # 0..1
    warning: Optional[str]
    debug_info: str
    hourly_waveform: tuple[float, ...]
    top_boosters: tuple[str, ...] = ()
    top_drainers: tuple[str, ...] = ()
    explainers: tuple[str, ...] = ()

    @property
    def is_insufficient(self) -> bool:
        return self.warning == INSUFFICIENT_DATA_WARNING

    def with_waveform(self, wave, rescore: bool = True) -> "DayEnergySummary":
        """Copy with a new waveform; the overall score follows it unless rescore is off."""
        wave = tuple(wave)
        if not rescore:
            return replace(self, hourly_waveform=wave)
        return replace(self, hourly_waveform=wave, overall_energy_score=waveform_score(wave))


class ForecastSource(str, enum.Enum):
    historical_model = "historical_model"
    default_heuristic = "default_heuristic"


@dataclass(frozen=True)
class DayEnergyForecast:
    day: date
    values: tuple[float, ...]       # 24 values, or () when no estimate exists
    score: float                    # 0..100
    confidence: float               # 0..1
    missing_metrics: tuple[MetricType, ...] = ()
    source_type: ForecastSource = ForecastSource.default_heuristic
    debug_info: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return len(self.values) == 0


@dataclass(frozen=True)
class EnergyParts:
    morning: float
    afternoon: float
    evening: float
    waking: float = 0.0


@dataclass(frozen=True)
class EventImpact:
    category: str
    average_delta: float
    event_count: int = 0


@dataclass(frozen=True)
class ConfidenceResult:
    confidence: float
    warning: Optional[str]
    coverage_ratio: float
    available_count: int

    def debug_line(self) -> str:
        return (
            f"{self.available_count}/{len(MetricType)} signals, "
            f"conf {self.confidence:.2f}"
        )
