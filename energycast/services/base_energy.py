"""
Base energy: one 0..1 composite per day, and a smoothed historical baseline.

Composite
---------
  0.35 * sleep            efficiency [60,100]  -> time in bed [300,540] min -> 0.5
  0.25 * HRV              SDNN [20,120] ms                                  -> 0.5
  0.15 * inverse rest HR  1 - RHR [40,100] bpm -> HRV [20,120] ms           -> 0.5
  0.15 * deep + REM       combined minutes [60,300]                         -> 0.5
  0.10 * activity         Gaussian proximity to 8000 steps

Weights reflect relative confidence in each signal category and are kept
exactly as tuned.

Public API
----------
compute_base_energy(aggregate, now)         -> Optional[float]
base_energy_or_neutral(aggregate, now)      -> float
compute_historical_base(history, now)       -> Optional[float]
profile_adjusted_base(base, profile)        -> float
"""
from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from energycast.services.domain import BiometricDayAggregate
from energycast.services.metrics import MetricType
from energycast.services.normalization import (
    MISSING,
    Present,
    activity_score,
    clamp,
    first_present,
    normalize,
    projected_steps,
)


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

WEIGHT_SLEEP = 0.35
WEIGHT_HRV = 0.25
WEIGHT_REST_HR = 0.15
WEIGHT_DEEP_REM = 0.15
WEIGHT_ACTIVITY = 0.10

NEUTRAL_ENERGY = 0.5

HISTORY_LOOKBACK = 14
HISTORY_AVERAGE_WINDOW = 7
HISTORY_FLOOR = 0.3

TYPICAL_EXERCISE_SESSIONS = 3
EXERCISE_STEP = 0.01
IRREGULAR_MEALS_PENALTY = 0.03


# ---------------------------------------------------------------------------
# Terms
# ---------------------------------------------------------------------------

def _hrv_reading(h: BiometricDayAggregate):
    return h.reading(MetricType.heart_rate_variability_sdnn).map(lambda v: normalize(v, 20, 120))


def sleep_term(h: BiometricDayAggregate) -> float:
    return first_present([
        h.reading(MetricType.sleep_efficiency).map(lambda v: normalize(v, 60, 100)),
        h.reading(MetricType.time_in_bed).map(lambda v: normalize(v, 300, 540)),
    ], NEUTRAL_ENERGY)


def hrv_term(h: BiometricDayAggregate) -> float:
    return first_present([_hrv_reading(h)], NEUTRAL_ENERGY)


def inverse_rest_hr_term(h: BiometricDayAggregate) -> float:
    return first_present([
        h.reading(MetricType.resting_hr).map(lambda v: 1.0 - normalize(v, 40, 100)),
        _hrv_reading(h),
    ], NEUTRAL_ENERGY)


def deep_rem_term(h: BiometricDayAggregate) -> float:
    deep = h.reading(MetricType.deep_sleep)
    rem = h.reading(MetricType.rem_sleep)
    if deep is MISSING and rem is MISSING:
        combined = MISSING
    else:
        # An absent stage counts as zero minutes once the other is present.
        combined = Present(first_present([deep], 0.0) + first_present([rem], 0.0))
    return first_present([combined.map(lambda v: normalize(v, 60, 300))], NEUTRAL_ENERGY)


def activity_term(h: BiometricDayAggregate, now: Optional[datetime] = None) -> float:
    steps = h.steps if now is None else projected_steps(h.steps, h.day, now)
    return activity_score(steps)


# ---------------------------------------------------------------------------
# Public
# ---------------------------------------------------------------------------

def compute_base_energy(
    aggregate: Optional[BiometricDayAggregate],
    now: Optional[datetime] = None,
) -> Optional[float]:
    """
    Weighted 0..1 composite for one day, or None when there is nothing to
    score (no aggregate, or the aggregate has no samples).

    `now` enables the partial-day step projection for the current day.
    """
    if aggregate is None or not aggregate.has_samples:
        return None
    e = (
        WEIGHT_SLEEP * sleep_term(aggregate)
        + WEIGHT_HRV * hrv_term(aggregate)
        + WEIGHT_REST_HR * inverse_rest_hr_term(aggregate)
        + WEIGHT_DEEP_REM * deep_rem_term(aggregate)
        + WEIGHT_ACTIVITY * activity_term(aggregate, now)
    )
    return clamp(e)


def base_energy_or_neutral(
    aggregate: Optional[BiometricDayAggregate],
    now: Optional[datetime] = None,
) -> float:
    """Composite for the day, falling back to the 0.5 midpoint."""
    e = compute_base_energy(aggregate, now)
    return NEUTRAL_ENERGY if e is None else e


def compute_historical_base(
    history: Sequence[BiometricDayAggregate],
    now: Optional[datetime] = None,
) -> Optional[float]:
    """
    Moving-average base energy over recent history.

    Scores the last 14 entries, keeps the valid composites and averages the
    most recent 7 of them, floored at 0.3. Returns None when no entry yields
    a composite, which callers read as "insufficient history".
    """
    recent = list(history)[-HISTORY_LOOKBACK:]
    valid = [e for e in (compute_base_energy(h, now) for h in recent) if e is not None]
    if not valid:
        return None
    window = valid[-HISTORY_AVERAGE_WINDOW:]
    return max(HISTORY_FLOOR, sum(window) / len(window))


def profile_adjusted_base(base: float, profile) -> float:
    """Nudge a baseline for habits: +/-0.01 per weekly session away from 3, -0.03 for irregular meals."""
    if profile is None:
        return base
    adjusted = base + (profile.exercise_frequency - TYPICAL_EXERCISE_SESSIONS) * EXERCISE_STEP
    if not profile.meals_regular:
        adjusted -= IRREGULAR_MEALS_PENALTY
    return clamp(adjusted)
