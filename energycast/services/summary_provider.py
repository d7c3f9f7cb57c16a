"""
Summary provider: the single entry point callers use for a day's summary.

Always returns a 24-value waveform. A day with no estimate (the empty
ineligible-day sentinel) comes back as a flat 0.5 curve that still carries
score 0, confidence 0 and the "Insufficient health data" warning.
"""
from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, Optional

from energycast.core.clock import Clock, DayClass
from energycast.services.domain import (
    HOURS_PER_DAY,
    INSUFFICIENT_DATA_WARNING,
    BiometricDayAggregate,
    DayEnergySummary,
    ScheduleEvent,
    UserProfile,
)
from energycast.services.forecast_repository import ForecastRepository
from energycast.services.summary_engine import summarize_day
from energycast.services.unified import UnifiedBlender

logger = logging.getLogger(__name__)

FLAT_LEVEL = 0.5
PLACEHOLDER_SCORE = 50.0
SIMULATED_FALLBACK_DEBUG = "simulated fallback"


def flat_waveform() -> tuple[float, ...]:
    return (FLAT_LEVEL,) * HOURS_PER_DAY


def placeholder_summary(day: date) -> DayEnergySummary:
    return DayEnergySummary(
        day=day,
        overall_energy_score=PLACEHOLDER_SCORE,
        mental_energy=PLACEHOLDER_SCORE,
        physical_energy=PLACEHOLDER_SCORE,
        sleep_efficiency=0.0,
        coverage_ratio=0.0,
        confidence=0.0,
        warning=INSUFFICIENT_DATA_WARNING,
        debug_info=SIMULATED_FALLBACK_DEBUG,
        hourly_waveform=flat_waveform(),
    )


class SummaryProvider:
    def __init__(
        self,
        repository: ForecastRepository,
        clock: Clock,
        simulated: bool = False,
    ):
        self.repository = repository
        self.clock = clock
        self.simulated = simulated
        self.blender = UnifiedBlender(repository, clock)

    def summary(
        self,
        day: date,
        biometrics: Iterable[BiometricDayAggregate],
        events: Iterable[ScheduleEvent],
        profile: Optional[UserProfile] = None,
    ) -> DayEnergySummary:
        biometrics = list(biometrics)
        events = list(events)

        if self.simulated and not any(h.has_samples for h in biometrics):
            logger.debug("Simulated mode without samples, returning placeholder for %s", day)
            return placeholder_summary(day)

        if self.clock.classify(day) == DayClass.past:
            result = self._past(day, biometrics, events, profile)
        else:
            result = self.blender.summary(day, biometrics, events, profile)

        if len(result.hourly_waveform) == HOURS_PER_DAY:
            return result
        logger.info(
            "Waveform for %s had %d values, replacing with flat curve",
            day, len(result.hourly_waveform),
        )
        return result.with_waveform(flat_waveform(), rescore=False)

    def _past(self, day, biometrics, events, profile) -> DayEnergySummary:
        cached_wave = self.repository.get_wave(day)
        if cached_wave is not None:
            summary = summarize_day(day, biometrics, events, profile, now=self.clock.now())
            if summary.is_insufficient:
                return summary
            return summary.with_waveform(cached_wave)
        return self.blender.summary(day, biometrics, events, profile)
