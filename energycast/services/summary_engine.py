"""
Summarization path: one day's measured data to a DayEnergySummary.

Composes base energy, waveform shaping and confidence scoring for the
single aggregate recorded on `day`. Pure: no cache access, no clock reads
beyond the `now` it is handed.

Outcomes
--------
  aggregate present, ineligible  -> score 0, confidence 0, empty waveform,
                                    warning "Insufficient health data"
  aggregate present, eligible    -> measured waveform from the day's composite
  no aggregate for the day       -> neutral 0.5 baseline, limited-data warning

Public API
----------
summarize_day(day, biometrics, events, profile, now) -> DayEnergySummary
events_for_day(events, day)                          -> list[ScheduleEvent]
top_events(events, positive, limit)                  -> list[str]
"""
from __future__ import annotations

from datetime import date, datetime
from typing import Iterable, Optional, Sequence

from energycast.services.base_energy import base_energy_or_neutral, profile_adjusted_base
from energycast.services.confidence import coverage_ratio, score_confidence
from energycast.services.domain import (
    INSUFFICIENT_DATA_WARNING,
    BiometricDayAggregate,
    DayEnergySummary,
    ScheduleEvent,
    UserProfile,
)
from energycast.services.metrics import (
    MetricType,
    describe_missing,
    is_energy_eligible,
    missing_required_metrics,
)
from energycast.services.normalization import (
    activity_score,
    clamp,
    first_present,
    normalize,
    projected_steps,
)
from energycast.services.waveform import shape_waveform

MAX_EXPLAINERS = 5
TOP_EVENT_LIMIT = 3
ACTIVITY_FALLBACK_FLOOR = 0.35
NEUTRAL_SUBSCORE = 50.0


# ---------------------------------------------------------------------------
# Input slicing
# ---------------------------------------------------------------------------

def aggregate_for_day(
    biometrics: Iterable[BiometricDayAggregate], day: date
) -> Optional[BiometricDayAggregate]:
    for h in biometrics:
        if h.day == day:
            return h
    return None


def events_for_day(events: Iterable[ScheduleEvent], day: date) -> list[ScheduleEvent]:
    return [ev for ev in events if ev.start.date() == day]


# ---------------------------------------------------------------------------
# Sub-scores (0..100)
# ---------------------------------------------------------------------------

def _activity_fallback(h: BiometricDayAggregate, now: Optional[datetime]) -> float:
    steps = h.steps if now is None else projected_steps(h.steps, h.day, now)
    return max(activity_score(steps), ACTIVITY_FALLBACK_FLOOR)


def _mean_or_activity(comps: list[float], h: BiometricDayAggregate, now) -> float:
    if not comps:
        comps = [_activity_fallback(h, now)]
    return sum(comps) / len(comps) * 100.0


def mental_energy(h: Optional[BiometricDayAggregate], now: Optional[datetime] = None) -> float:
    """REM, sleep latency and autonomic balance (HRV, else resting HR)."""
    if h is None:
        return NEUTRAL_SUBSCORE
    comps: list[float] = []
    for reading in (
        h.reading(MetricType.rem_sleep).map(lambda v: normalize(v, 0, 180)),
        h.reading(MetricType.sleep_latency).map(lambda v: 1 - normalize(v, 0, 60)),
    ):
        if reading:
            comps.append(reading.value)
    autonomic = [
        h.reading(MetricType.heart_rate_variability_sdnn).map(lambda v: normalize(v, 20, 120)),
        h.reading(MetricType.resting_hr).map(lambda v: 1 - normalize(v, 40, 100)),
    ]
    if any(autonomic):
        comps.append(first_present(autonomic, 0.5))
    return _mean_or_activity(comps, h, now)


def physical_energy(h: Optional[BiometricDayAggregate], now: Optional[datetime] = None) -> float:
    """Deep sleep, cardiovascular load (resting HR, else HRV) and sleep efficiency."""
    if h is None:
        return NEUTRAL_SUBSCORE
    comps: list[float] = []
    deep = h.reading(MetricType.deep_sleep).map(lambda v: normalize(v, 0, 120))
    if deep:
        comps.append(deep.value)
    cardio = [
        h.reading(MetricType.resting_hr).map(lambda v: 1 - normalize(v, 40, 100)),
        h.reading(MetricType.heart_rate_variability_sdnn).map(lambda v: normalize(v, 20, 120)),
    ]
    if any(cardio):
        comps.append(first_present(cardio, 0.5))
    efficiency = h.reading(MetricType.sleep_efficiency).map(lambda v: normalize(v, 60, 100))
    if efficiency:
        comps.append(efficiency.value)
    return _mean_or_activity(comps, h, now)


# ---------------------------------------------------------------------------
# Boosters / drainers / explainers
# ---------------------------------------------------------------------------

def top_events(
    events: Iterable[ScheduleEvent],
    positive: bool,
    limit: int = TOP_EVENT_LIMIT,
) -> list[str]:
    """Titles of the strongest boosting (positive=True) or draining events."""
    if positive:
        scored = [ev for ev in events if ev.energy_delta is not None and ev.energy_delta > 0]
    else:
        scored = [ev for ev in events if ev.energy_delta is not None and ev.energy_delta < 0]
    scored.sort(key=lambda ev: ev.energy_delta, reverse=positive)
    return [ev.title for ev in scored[:limit]]


def build_explainers(
    h: Optional[BiometricDayAggregate],
    mental: float,
    physical: float,
    events: Sequence[ScheduleEvent],
) -> list[str]:
    out: list[str] = []
    if h is not None:
        eff = h.reading(MetricType.sleep_efficiency)
        if eff:
            out.append(f"Sleep efficiency {int(eff.value)} %")
        hrv = h.reading(MetricType.heart_rate_variability_sdnn)
        if hrv:
            out.append(f"HRV {int(hrv.value)} ms")
        rhr = h.reading(MetricType.resting_hr)
        if rhr:
            out.append(f"Resting HR {int(rhr.value)} bpm")

    am_meetings = [
        ev for ev in events
        if "meeting" in ev.title.lower() and ev.start.hour < 12
    ]
    if am_meetings:
        out.append(f"{len(am_meetings)} morning meeting(s)")

    out.append(f"Mental {int(mental)} / Physical {int(physical)}")
    return out[:MAX_EXPLAINERS]


# ---------------------------------------------------------------------------
# Public
# ---------------------------------------------------------------------------

def insufficient_summary(day: date, h: BiometricDayAggregate) -> DayEnergySummary:
    """The ineligible-day sentinel: nothing here should be shown or cached as an estimate."""
    return DayEnergySummary(
        day=day,
        overall_energy_score=0.0,
        mental_energy=0.0,
        physical_energy=0.0,
        sleep_efficiency=0.0,
        coverage_ratio=coverage_ratio(h.available_metrics),
        confidence=0.0,
        warning=INSUFFICIENT_DATA_WARNING,
        debug_info=describe_missing(missing_required_metrics(h)),
        hourly_waveform=(),
    )


def summarize_day(
    day: date,
    biometrics: Iterable[BiometricDayAggregate],
    events: Iterable[ScheduleEvent],
    profile: Optional[UserProfile] = None,
    now: Optional[datetime] = None,
) -> DayEnergySummary:
    h = aggregate_for_day(biometrics, day)
    day_events = events_for_day(events, day)

    if h is not None and not is_energy_eligible(h):
        return insufficient_summary(day, h)

    available = h.available_metrics if h is not None else frozenset()
    conf = score_confidence(available)

    mental = mental_energy(h, now)
    physical = physical_energy(h, now)

    baseline = profile_adjusted_base(base_energy_or_neutral(h, now), profile)
    shaped = shape_waveform(
        baseline, day_events, profile, day, conf.confidence, available,
    )

    sleep_eff = 0.0
    if h is not None:
        sleep_eff = first_present(
            [h.reading(MetricType.sleep_efficiency).map(lambda v: clamp(v, 0, 100))], 0.0
        )

    return DayEnergySummary(
        day=day,
        overall_energy_score=shaped.score,
        mental_energy=round(mental),
        physical_energy=round(physical),
        sleep_efficiency=sleep_eff,
        coverage_ratio=conf.coverage_ratio,
        confidence=conf.confidence,
        warning=conf.warning,
        debug_info=conf.debug_line(),
        hourly_waveform=shaped.values,
        top_boosters=tuple(top_events(day_events, positive=True)),
        top_drainers=tuple(top_events(day_events, positive=False)),
        explainers=tuple(build_explainers(h, mental, physical, day_events)),
    )
