"""
Waveform shaper: expands a scalar baseline into a 24-hour energy curve.

Pipeline (each step takes a 24-value list and returns a new one)
-----------------------------------------------------------------
  1. circadian        baseline + phase-shifted template offset, clamped
  2. event deltas     each delta spread over [h-1, h, h+1] as 0.25/0.5/0.25
  3. caffeine dip     -0.1 at 11 / 18 / 23 when intake > 300 mg/day
  4. smoothing        1-2-3-2-1 kernel on hours 2..21
  5. bed / wake       per-day ramp down before bed, ramp up after wake,
                      hour 23 capped at 0.5
  6. sleep floor      sleep hours capped at 0.2 on thin-data days
  7. amplitude        deviations shrunk by (0.5 + confidence) below 0.5

Steps 5 and 6 need a profile; without one they pass the wave through.

Public API
----------
shape_waveform(baseline, events, profile, day, confidence, available) -> ShapedWaveform
bed_wake_jitter(day)      -> float   deterministic 0..1 per calendar day
bed_wake_magnitude(day)   -> float   0.08..0.15
energy_slice(wave, hours) -> list[float]
visible_range(profile, default) -> range
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional, Sequence

from energycast.services.domain import (
    HOURS_PER_DAY,
    Chronotype,
    ScheduleEvent,
    UserProfile,
    waveform_score,
)
from energycast.services.metrics import MetricType
from energycast.services.normalization import clamp


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# Hand-authored offsets, hour 0 first. Morning rise, post-lunch dip,
# early-evening second wind.
CIRCADIAN_TEMPLATE: tuple[float, ...] = (
    -0.05, -0.05, -0.05, -0.04, -0.02,
    0.02, 0.06, 0.10, 0.12, 0.10,
    0.08, 0.05, 0.03, 0.00, -0.02,
    -0.04, -0.03, 0.00, 0.08, 0.12,
    0.10, 0.05, 0.00, -0.04,
)

TEMPLATE_WAKE_HOUR = 7

EVENT_WEIGHTS: tuple[float, float, float] = (0.25, 0.5, 0.25)

# Tunable product constants.
CAFFEINE_THRESHOLD_MG = 300
CAFFEINE_DIP = 0.1
CAFFEINE_DIP_HOURS = {"morning": 11, "afternoon": 18, "evening": 23}

SMOOTHING_KERNEL: tuple[int, ...] = (1, 2, 3, 2, 1)

BED_WAKE_MIN_MAGNITUDE = 0.08
BED_WAKE_MAGNITUDE_SPREAD = 0.07
WAKE_UPTICK_SCALE = 0.6
END_OF_DAY_CAP = 0.5

SLEEP_FLOOR = 0.2
SLEEP_FLOOR_CONFIDENCE = 0.4

AMPLITUDE_CONFIDENCE = 0.5

_LCG_MULTIPLIER = 1664525
_LCG_INCREMENT = 1013904223


@dataclass(frozen=True)
class ShapedWaveform:
    values: tuple[float, ...]
    score: float


# ---------------------------------------------------------------------------
# Step 1: circadian
# ---------------------------------------------------------------------------

def circadian_shift(profile: Optional[UserProfile]) -> int:
    """Hours to delay the template by: wake time offset plus chronotype nudge."""
    if profile is None:
        return 0
    shift = profile.wake_hour - TEMPLATE_WAKE_HOUR
    if profile.chronotype == Chronotype.morning:
        shift -= 1
    elif profile.chronotype == Chronotype.evening:
        shift += 1
    return shift


def circadian_offsets(profile: Optional[UserProfile]) -> list[float]:
    shift = circadian_shift(profile)
    n = len(CIRCADIAN_TEMPLATE)
    return [CIRCADIAN_TEMPLATE[(h + shift) % n] for h in range(n)]


def apply_circadian(baseline: float, profile: Optional[UserProfile]) -> list[float]:
    return [clamp(baseline + offset) for offset in circadian_offsets(profile)]


# ---------------------------------------------------------------------------
# Step 2: schedule events
# ---------------------------------------------------------------------------

def spread_delta(wave: Sequence[float], delta: float, hour: int) -> list[float]:
    """Add one event delta over the 3-hour window centred on `hour`."""
    out = list(wave)
    for offset, weight in zip((-1, 0, 1), EVENT_WEIGHTS):
        h = hour + offset
        if 0 <= h < len(out):
            out[h] = clamp(out[h] + delta * weight)
    return out


def apply_event_deltas(wave: Sequence[float], events: Iterable[ScheduleEvent]) -> list[float]:
    out = list(wave)
    for ev in events:
        if ev.energy_delta is None:
            continue
        hour = ev.start.hour
        if 0 <= hour < HOURS_PER_DAY:
            out = spread_delta(out, ev.energy_delta, hour)
    return out


# ---------------------------------------------------------------------------
# Step 3: caffeine
# ---------------------------------------------------------------------------

def caffeine_dip_hours(profile: Optional[UserProfile]) -> list[int]:
    if profile is None or profile.caffeine_mg_per_day <= CAFFEINE_THRESHOLD_MG:
        return []
    hours = []
    if profile.caffeine_morning:
        hours.append(CAFFEINE_DIP_HOURS["morning"])
    if profile.caffeine_afternoon:
        hours.append(CAFFEINE_DIP_HOURS["afternoon"])
    if profile.caffeine_evening:
        hours.append(CAFFEINE_DIP_HOURS["evening"])
    return hours


def apply_caffeine_dip(wave: Sequence[float], profile: Optional[UserProfile]) -> list[float]:
    out = list(wave)
    for h in caffeine_dip_hours(profile):
        idx = h % len(out)
        out[idx] = max(0.0, out[idx] - CAFFEINE_DIP)
    return out


# ---------------------------------------------------------------------------
# Step 4: smoothing
# ---------------------------------------------------------------------------

def smooth(values: Sequence[float]) -> list[float]:
    """Weighted 5-point moving average; the two hours at each end are left as-is."""
    out = list(values)
    if len(values) < len(SMOOTHING_KERNEL):
        return out
    total = sum(SMOOTHING_KERNEL)
    for i in range(2, len(values) - 2):
        window = values[i - 2:i + 3]
        out[i] = sum(v * w for v, w in zip(window, SMOOTHING_KERNEL)) / total
    return out


# ---------------------------------------------------------------------------
# Step 5: bed / wake
# ---------------------------------------------------------------------------

def bed_wake_jitter(day: date) -> float:
    """Deterministic pseudo-random value in [0, 1) derived from the day's ordinal."""
    seed = day.toordinal()
    return ((seed * _LCG_MULTIPLIER + _LCG_INCREMENT) % 1000) / 1000.0


def bed_wake_magnitude(day: date) -> float:
    return BED_WAKE_MIN_MAGNITUDE + bed_wake_jitter(day) * BED_WAKE_MAGNITUDE_SPREAD


def _ramp_span(fraction: float) -> int:
    return max(1, int(1 + fraction * 2))


def shape_bed_wake(
    wave: Sequence[float],
    day: date,
    profile: Optional[UserProfile],
) -> list[float]:
    out = list(wave)
    if profile is None:
        return out

    jitter = bed_wake_jitter(day)
    mag = bed_wake_magnitude(day)

    # Wind-down: the hour right before bed takes the full magnitude.
    down_span = _ramp_span(jitter)
    for i in range(down_span):
        h = (profile.bed_hour - 1 - i) % HOURS_PER_DAY
        amount = mag * (down_span - i) / down_span
        out[h] = max(0.0, out[h] - amount)

    # Wake-up lift, strongest at the wake hour.
    up_span = _ramp_span(1 - jitter)
    for i in range(up_span):
        h = (profile.wake_hour + i) % HOURS_PER_DAY
        amount = mag * WAKE_UPTICK_SCALE * (up_span - i) / up_span
        out[h] = min(1.0, out[h] + amount)

    out[HOURS_PER_DAY - 1] = min(out[HOURS_PER_DAY - 1], END_OF_DAY_CAP)
    return out


# ---------------------------------------------------------------------------
# Step 6: sleep floor
# ---------------------------------------------------------------------------

def apply_sleep_floor(
    wave: Sequence[float],
    profile: Optional[UserProfile],
    available: Iterable[MetricType],
    confidence: float,
) -> list[float]:
    out = list(wave)
    if profile is None:
        return out
    available = set(available)
    has_sleep_detail = (
        MetricType.time_in_bed in available and MetricType.sleep_efficiency in available
    )
    if confidence >= SLEEP_FLOOR_CONFIDENCE or has_sleep_detail:
        return out

    h = profile.bed_hour
    while True:
        out[h] = min(out[h], SLEEP_FLOOR)
        h = (h + 1) % HOURS_PER_DAY
        if h == profile.wake_hour:
            break
    return out


# ---------------------------------------------------------------------------
# Step 7: amplitude
# ---------------------------------------------------------------------------

def compress_amplitude(wave: Sequence[float], baseline: float, confidence: float) -> list[float]:
    """Flatten the curve toward the baseline on low-confidence days."""
    if confidence >= AMPLITUDE_CONFIDENCE:
        return list(wave)
    factor = 0.5 + confidence
    return [baseline + (v - baseline) * factor for v in wave]


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------

def shape_waveform(
    baseline: float,
    events: Iterable[ScheduleEvent],
    profile: Optional[UserProfile],
    day: date,
    confidence: float,
    available: Iterable[MetricType] = (),
) -> ShapedWaveform:
    wave = apply_circadian(baseline, profile)
    wave = apply_event_deltas(wave, events)
    wave = apply_caffeine_dip(wave, profile)
    wave = smooth(wave)
    wave = shape_bed_wake(wave, day, profile)
    wave = apply_sleep_floor(wave, profile, available, confidence)
    wave = compress_amplitude(wave, baseline, confidence)
    values = tuple(clamp(v) for v in wave)
    return ShapedWaveform(values=values, score=waveform_score(values))


# ---------------------------------------------------------------------------
# Slicing helpers
# ---------------------------------------------------------------------------

def energy_slice(wave: Sequence[float], hours: range) -> list[float]:
    """Values for `hours` in order, wrapping indices past the end of the wave."""
    if not wave:
        return []
    return [wave[h % len(wave)] for h in hours]


def visible_range(profile: Optional[UserProfile], default: range) -> range:
    """
    Waking-hours window for a profile.

    Falls back to `default` without a profile, when wake == sleep, or when the
    profile still carries the default 07:00 / 23:00 times. A window that
    crosses midnight ends past 24; use energy_slice() to wrap it.
    """
    if profile is None:
        return default
    wake, sleep = profile.wake_hour, profile.bed_hour
    if wake == sleep:
        return default
    defaults = UserProfile.default()
    if wake == defaults.wake_hour and sleep == defaults.bed_hour:
        return default
    if sleep > wake:
        return range(wake, sleep)
    return range(wake, sleep + HOURS_PER_DAY)
