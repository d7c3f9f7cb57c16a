"""
Normalization utilities and tagged metric readings.

A metric is either Present(value) or MISSING. Fallback chains such as
"sleep efficiency, else time in bed, else neutral" are written as an ordered
list of readings resolved by first_present(), so the order is plain data.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, Union


# ---------------------------------------------------------------------------
# Tagged readings
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Present:
    value: float

    def map(self, fn) -> "Present":
        return Present(fn(self.value))


class _Missing:
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def map(self, fn) -> "_Missing":
        return self

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING = _Missing()

Reading = Union[Present, _Missing]


def first_present(readings: Iterable[Reading], default: float) -> float:
    """Value of the first Present reading, or default if none are present."""
    for r in readings:
        if isinstance(r, Present):
            return r.value
    return default


# ---------------------------------------------------------------------------
# Scalar helpers
# ---------------------------------------------------------------------------

def clamp(v: float, lo: float = 0.0, hi: float = 1.0) -> float:
    return max(lo, min(hi, v))


def normalize(v: float, lo: float, hi: float) -> float:
    """Linear map of v from [lo, hi] onto [0, 1], clamped. 0.5 if hi <= lo."""
    if hi <= lo:
        return 0.5
    return clamp((v - lo) / (hi - lo))


def activity_score(steps: int, mean: int = 8000, sd: int = 3000) -> float:
    """Gaussian proximity to typical activity; peaks at 1.0 when steps == mean."""
    if sd <= 0:
        return 0.5
    z = (steps - mean) / sd
    return math.exp(-0.5 * z * z)


def projected_steps(observed: int, day: date, now: datetime) -> int:
    """
    Scale a partial-day step count to a full-day estimate.

    Only applies when `day` is the current day of `now`; any other day is
    returned unchanged. Early-morning counts would otherwise read as a
    sedentary day.
    """
    if day != now.date():
        return observed
    hours = max(1, now.hour)
    projected = observed / hours * 24.0
    # Half away from zero, not banker's rounding.
    return int(math.floor(projected + 0.5)) if projected >= 0 else -int(math.floor(-projected + 0.5))
