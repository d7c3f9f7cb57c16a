"""
Forecast model: a day's energy curve predicted from biometric history.

Cache policy
------------
A cached forecast is reused only while its source tag still matches the
day's eligibility:

  historical_model  + day eligible                  -> reuse
  default_heuristic + day ineligible + values != [] -> reuse
  anything else                                     -> invalidate, recompute

Recompute outcomes
------------------
  sample ineligible   -> empty default_heuristic forecast listing the missing
                         required metrics (the "no estimate" sentinel)
  no usable history   -> empty default_heuristic forecast, "no history"
  otherwise           -> shaped waveform, cached, tagged historical_model
"""
from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, Optional, Sequence

from energycast.core.clock import Clock
from energycast.services.base_energy import compute_historical_base, profile_adjusted_base
from energycast.services.confidence import score_confidence
from energycast.services.domain import (
    BiometricDayAggregate,
    DayEnergyForecast,
    EnergyParts,
    ForecastSource,
    ScheduleEvent,
    UserProfile,
)
from energycast.services.forecast_repository import ForecastRepository
from energycast.services.metrics import (
    MetricType,
    describe_missing,
    is_energy_eligible,
    missing_required_metrics,
)
from energycast.services.normalization import clamp
from energycast.services.summary_engine import events_for_day
from energycast.services.waveform import energy_slice, shape_waveform, visible_range

logger = logging.getLogger(__name__)

NO_HISTORY_DEBUG = "no history"

MORNING_HOURS = range(6, 12)
AFTERNOON_HOURS = range(12, 18)
EVENING_HOURS = range(18, 24)
DEFAULT_WAKING_HOURS = range(6, 24)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def history_until(
    biometrics: Iterable[BiometricDayAggregate], day: date
) -> list[BiometricDayAggregate]:
    """Aggregates on or before `day`, oldest first."""
    return sorted((h for h in biometrics if h.day <= day), key=lambda h: h.day)


def pick_sample(
    history: Sequence[BiometricDayAggregate], day: date
) -> Optional[BiometricDayAggregate]:
    """The day's own aggregate, else the most recent one before it."""
    for h in reversed(history):
        if h.day == day:
            return h
    return history[-1] if history else None


def _cache_still_valid(cached: DayEnergyForecast, eligible: bool) -> bool:
    if cached.source_type == ForecastSource.historical_model:
        return eligible
    return not eligible and not cached.is_empty


# ---------------------------------------------------------------------------
# Public
# ---------------------------------------------------------------------------

def forecast_day(
    day: date,
    biometrics: Iterable[BiometricDayAggregate],
    events: Iterable[ScheduleEvent],
    profile: Optional[UserProfile],
    repository: ForecastRepository,
    clock: Clock,
) -> DayEnergyForecast:
    history = history_until(biometrics, day)
    sample = pick_sample(history, day)
    eligible = sample is not None and is_energy_eligible(sample)

    with repository.lock:
        cached = repository.get(day)
        if cached is not None:
            if _cache_still_valid(cached, eligible):
                return cached
            logger.info(
                "Invalidating %s forecast for %s (eligible=%s)",
                cached.source_type.value, day, eligible,
            )
            repository.invalidate(day)

    if sample is None or not eligible:
        missing = tuple(missing_required_metrics(sample)) if sample is not None else ()
        return DayEnergyForecast(
            day=day,
            values=(),
            score=0.0,
            confidence=0.0,
            missing_metrics=missing,
            source_type=ForecastSource.default_heuristic,
            debug_info=describe_missing(missing) if sample is not None else NO_HISTORY_DEBUG,
        )

    base = compute_historical_base(history, clock.now())
    if base is None:
        logger.debug("No usable history for %s forecast", day)
        return DayEnergyForecast(
            day=day,
            values=(),
            score=0.0,
            confidence=0.0,
            source_type=ForecastSource.default_heuristic,
            debug_info=NO_HISTORY_DEBUG,
        )

    conf = score_confidence(sample.available_metrics, history_days=len(history))
    baseline = profile_adjusted_base(base, profile)
    shaped = shape_waveform(
        baseline,
        events_for_day(events, day),
        profile,
        day,
        conf.confidence,
        sample.available_metrics,
    )

    debug = f"base {base:.2f}, {len(history)} days, {conf.debug_line()}"
    if profile is not None:
        debug = f"{debug}. {profile.debug_summary()}"

    forecast = DayEnergyForecast(
        day=day,
        values=shaped.values,
        score=shaped.score,
        confidence=conf.confidence,
        missing_metrics=tuple(m for m in MetricType if m not in sample.available_metrics),
        source_type=ForecastSource.historical_model,
        debug_info=debug,
    )
    repository.put(forecast)
    return forecast


def three_part_energy(
    forecast: DayEnergyForecast, profile: Optional[UserProfile] = None
) -> EnergyParts:
    """
    Morning (6-12), afternoon (12-18) and evening (18-24) averages on a 0..100
    scale, plus the average over the profile's waking window.
    """
    def avg(hours: range) -> float:
        values = energy_slice(forecast.values, hours)
        if not values:
            return 0.0
        return clamp(sum(values) / len(values)) * 100

    return EnergyParts(
        morning=avg(MORNING_HOURS),
        afternoon=avg(AFTERNOON_HOURS),
        evening=avg(EVENING_HOURS),
        waking=avg(visible_range(profile, DEFAULT_WAKING_HOURS)),
    )
