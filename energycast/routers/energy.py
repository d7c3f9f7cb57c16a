"""
Energy router.

POST   /energy/summary
POST   /energy/forecast
POST   /energy/three-part
POST   /energy/event-effects
GET    /energy/forecasts/{day}
DELETE /energy/forecasts/{day}
DELETE /energy/forecasts
GET    /energy/accuracy
"""
from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.orm import Session

from energycast.core.clock import Clock, SystemClock
from energycast.core.config import settings
from energycast.core.errors import (
    AccuracyNotFoundError,
    ForecastNotFoundError,
    HistoryTooLongError,
)
from energycast.db.base import get_db
from energycast.schemas.common import ErrorResponse
from energycast.schemas.energy import (
    AccuracyResponse,
    BiometricDayIn,
    CacheClearedResponse,
    DaySummaryResponse,
    EnergyRequest,
    EventEffectsRequest,
    EventImpactOut,
    ForecastResponse,
    InvalidateResponse,
    ScheduleEventIn,
    ThreePartResponse,
    UserProfileIn,
)
from energycast.services.domain import (
    BiometricDayAggregate,
    DayEnergyForecast,
    DayEnergySummary,
    ScheduleEvent,
    UserProfile,
)
from energycast.services.event_effects import analyze_event_effects
from energycast.services.forecast_model import forecast_day, three_part_energy
from energycast.services.forecast_repository import ForecastRepository, SqlForecastRepository
from energycast.services.summary_provider import SummaryProvider

router = APIRouter(prefix="/energy", tags=["energy"])


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------

def get_clock() -> Clock:
    return SystemClock.for_zone(settings.TIMEZONE)


def get_repository(db: Session = Depends(get_db)) -> ForecastRepository:
    return SqlForecastRepository(db)


def get_summary_provider(
    repository: ForecastRepository = Depends(get_repository),
    clock: Clock = Depends(get_clock),
) -> SummaryProvider:
    return SummaryProvider(repository, clock, simulated=settings.is_simulated)


# ---------------------------------------------------------------------------
# Request -> engine conversion
# ---------------------------------------------------------------------------

def _biometric_from_request(b: BiometricDayIn) -> BiometricDayAggregate:
    return BiometricDayAggregate(
        day=b.day,
        hrv=b.hrv,
        resting_hr=b.resting_hr,
        heart_rate=b.heart_rate,
        sleep_efficiency=b.sleep_efficiency,
        sleep_latency=b.sleep_latency,
        deep_sleep=b.deep_sleep,
        rem_sleep=b.rem_sleep,
        time_in_bed=b.time_in_bed,
        steps=b.steps,
        active_energy=b.active_energy,
        available_metrics=frozenset(b.available_metrics),
        has_samples=b.has_samples,
    )


def _event_from_request(e: ScheduleEventIn) -> ScheduleEvent:
    return ScheduleEvent(
        title=e.title,
        start=e.start,
        end=e.end,
        is_all_day=e.is_all_day,
        energy_delta=e.energy_delta,
    )


def _profile_from_request(p: Optional[UserProfileIn]) -> Optional[UserProfile]:
    if p is None:
        return None
    return UserProfile(**p.model_dump())


def _unpack(payload: EnergyRequest):
    if len(payload.biometrics) > settings.MAX_HISTORY_DAYS:
        raise HistoryTooLongError(
            max_days=settings.MAX_HISTORY_DAYS, received=len(payload.biometrics)
        )
    biometrics = sorted(
        (_biometric_from_request(b) for b in payload.biometrics), key=lambda h: h.day
    )
    events = [_event_from_request(e) for e in payload.events]
    return biometrics, events, _profile_from_request(payload.profile)


# ---------------------------------------------------------------------------
# Serialization helpers
# ---------------------------------------------------------------------------

def _summary_to_response(s: DayEnergySummary) -> DaySummaryResponse:
    return DaySummaryResponse(
        day=str(s.day),
        overall_energy_score=s.overall_energy_score,
        mental_energy=s.mental_energy,
        physical_energy=s.physical_energy,
        sleep_efficiency=s.sleep_efficiency,
        coverage_ratio=s.coverage_ratio,
        confidence=s.confidence,
        warning=s.warning,
        debug_info=s.debug_info,
        hourly_waveform=list(s.hourly_waveform),
        top_boosters=list(s.top_boosters),
        top_drainers=list(s.top_drainers),
        explainers=list(s.explainers),
    )


def _forecast_to_response(f: DayEnergyForecast) -> ForecastResponse:
    return ForecastResponse(
        day=str(f.day),
        values=list(f.values),
        score=f.score,
        confidence=f.confidence,
        missing_metrics=[m.value for m in f.missing_metrics],
        source_type=f.source_type.value,
        debug_info=f.debug_info,
    )


_HISTORY_TOO_LONG = {422: {"model": ErrorResponse, "description": "Too many biometric days."}}


# ---------------------------------------------------------------------------
# Engine endpoints
# ---------------------------------------------------------------------------

@router.post(
    "/summary",
    response_model=DaySummaryResponse,
    summary="Energy summary for a day",
    responses=_HISTORY_TOO_LONG,
)
def energy_summary(
    payload: EnergyRequest,
    provider: SummaryProvider = Depends(get_summary_provider),
):
    """
    Score a day and return its 24-hour waveform.

    - Past days use measured data and record forecast accuracy.
    - Today blends measured hours into the forecast.
    - Future days return the forecast.

    Days missing a required metric come back with score 0, confidence 0 and
    the `"Insufficient health data"` warning.
    """
    biometrics, events, profile = _unpack(payload)
    return _summary_to_response(provider.summary(payload.day, biometrics, events, profile))


@router.post(
    "/forecast",
    response_model=ForecastResponse,
    summary="Forecast a day from biometric history",
    responses=_HISTORY_TOO_LONG,
)
def energy_forecast(
    payload: EnergyRequest,
    repository: ForecastRepository = Depends(get_repository),
    clock: Clock = Depends(get_clock),
):
    """Historical-model forecast, or an empty default-heuristic one when none can be made."""
    biometrics, events, profile = _unpack(payload)
    forecast = forecast_day(payload.day, biometrics, events, profile, repository, clock)
    return _forecast_to_response(forecast)


@router.post(
    "/three-part",
    response_model=ThreePartResponse,
    summary="Morning / afternoon / evening averages",
    responses=_HISTORY_TOO_LONG,
)
def energy_three_part(
    payload: EnergyRequest,
    repository: ForecastRepository = Depends(get_repository),
    clock: Clock = Depends(get_clock),
):
    biometrics, events, profile = _unpack(payload)
    forecast = forecast_day(payload.day, biometrics, events, profile, repository, clock)
    parts = three_part_energy(forecast, profile)
    return ThreePartResponse(
        day=str(payload.day),
        morning=parts.morning,
        afternoon=parts.afternoon,
        evening=parts.evening,
        waking=parts.waking,
    )


@router.post(
    "/event-effects",
    response_model=list[EventImpactOut],
    summary="Average energy delta per event category",
)
def energy_event_effects(payload: EventEffectsRequest):
    """Categories sorted from strongest booster to strongest drainer."""
    impacts = analyze_event_effects(_event_from_request(e) for e in payload.events)
    return [
        EventImpactOut(
            category=i.category,
            average_delta=i.average_delta,
            event_count=i.event_count,
        )
        for i in impacts
    ]


# ---------------------------------------------------------------------------
# Cache endpoints
# ---------------------------------------------------------------------------

@router.get(
    "/forecasts/{day}",
    response_model=ForecastResponse,
    summary="Cached forecast for a day",
    responses={404: {"model": ErrorResponse, "description": "No cached forecast."}},
)
def get_cached_forecast(
    day: date = Path(description="ISO date (YYYY-MM-DD).", examples=["2026-02-20"]),
    repository: ForecastRepository = Depends(get_repository),
):
    forecast = repository.get(day)
    if forecast is None:
        raise ForecastNotFoundError(day=day)
    return _forecast_to_response(forecast)


@router.delete(
    "/forecasts/{day}",
    response_model=InvalidateResponse,
    summary="Invalidate a cached forecast",
)
def invalidate_cached_forecast(
    day: date = Path(description="ISO date (YYYY-MM-DD).", examples=["2026-02-20"]),
    repository: ForecastRepository = Depends(get_repository),
):
    """Idempotent. `invalidated` is false when nothing was cached for the day."""
    with repository.lock:
        existed = repository.get(day) is not None
        repository.invalidate(day)
    return InvalidateResponse(day=str(day), invalidated=existed)


@router.delete(
    "/forecasts",
    response_model=CacheClearedResponse,
    summary="Clear the forecast cache",
)
def clear_forecast_cache(repository: ForecastRepository = Depends(get_repository)):
    """Drops every cached forecast, realized waveform and accuracy record."""
    repository.clear()
    return CacheClearedResponse(cleared=True)


@router.get(
    "/accuracy",
    response_model=AccuracyResponse,
    summary="Recorded forecast accuracy",
    responses={404: {"model": ErrorResponse, "description": "No accuracy recorded."}},
)
def get_accuracy(
    day: Optional[date] = Query(
        default=None,
        description="Single day to look up. When omitted, the mean over `days` is returned.",
        examples=["2026-02-20"],
    ),
    days: int = Query(default=7, ge=1, le=365, description="Look-back window ending today."),
    repository: ForecastRepository = Depends(get_repository),
    clock: Clock = Depends(get_clock),
):
    if day is not None:
        value = repository.get_accuracy(day)
        if value is None:
            raise AccuracyNotFoundError(day=day)
        return AccuracyResponse(accuracy=value, day=str(day))

    value = repository.recent_accuracy(days, clock.today())
    if value is None:
        raise AccuracyNotFoundError(days=days)
    return AccuracyResponse(accuracy=value, days=days)
