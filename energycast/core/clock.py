"""
Time source for the engine.

Every "what day is it / what hour is it" question goes through a Clock so
date-relative branching (past / today / future) and the today-only step
projection can be exercised deterministically in tests.
"""
from __future__ import annotations

import enum
from datetime import date, datetime, timezone, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo


class DayClass(str, enum.Enum):
    past = "past"
    today = "today"
    future = "future"


class Clock:
    """Base clock. Subclasses only need to implement now()."""

    def now(self) -> datetime:
        raise NotImplementedError

    def today(self) -> date:
        return self.now().date()

    def current_hour(self) -> int:
        return self.now().hour

    def classify(self, day: date) -> DayClass:
        today = self.today()
        if day < today:
            return DayClass.past
        if day > today:
            return DayClass.future
        return DayClass.today


class SystemClock(Clock):
    def __init__(self, tz: Optional[tzinfo] = None):
        self.tz = tz or timezone.utc

    @classmethod
    def for_zone(cls, name: str) -> "SystemClock":
        return cls(ZoneInfo(name))

    def now(self) -> datetime:
        return datetime.now(tz=self.tz)


class FixedClock(Clock):
    """Clock frozen at a single moment."""

    def __init__(self, moment: datetime):
        self.moment = moment

    def now(self) -> datetime:
        return self.moment
