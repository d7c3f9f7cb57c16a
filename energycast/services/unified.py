"""
Unified blender: measured and forecast waveforms reconciled by date class.

  past    measured curve wins; the realized waveform is stored and, when a
          full forecast was cached for the day, its accuracy is recorded
  today   measured up to the current hour, a linear hand-over to the
          forecast across BLEND_WINDOW_HOURS, forecast afterwards
  future  pure forecast

Every blended branch rescores the summary from its final waveform.
"""
from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, Optional, Sequence

from energycast.core.clock import Clock, DayClass
from energycast.services.domain import (
    HOURS_PER_DAY,
    BiometricDayAggregate,
    DayEnergySummary,
    ScheduleEvent,
    UserProfile,
)
from energycast.services.forecast_model import forecast_day
from energycast.services.forecast_repository import ForecastRepository
from energycast.services.summary_engine import summarize_day

logger = logging.getLogger(__name__)

# Tunable product constant.
BLEND_WINDOW_HOURS = 3


def forecast_accuracy(forecast: Sequence[float], measured: Sequence[float]) -> float:
    """1 - mean absolute per-hour difference."""
    diffs = [abs(f - m) for f, m in zip(forecast, measured)]
    return 1.0 - sum(diffs) / len(diffs)


def blend_today(
    measured: Sequence[float],
    forecast: Sequence[float],
    current_hour: int,
    window: int = BLEND_WINDOW_HOURS,
) -> list[float]:
    """Measured before `current_hour`, linear hand-over for `window` hours, forecast after."""
    blended = list(measured)
    end = min(HOURS_PER_DAY - 1, current_hour + window)
    for i in range(current_hour, HOURS_PER_DAY):
        if i <= end:
            t = (i - current_hour) / window
            blended[i] = (1 - t) * measured[i] + t * forecast[i]
        else:
            blended[i] = forecast[i]
    return blended


class UnifiedBlender:
    def __init__(self, repository: ForecastRepository, clock: Clock):
        self.repository = repository
        self.clock = clock

    def summary(
        self,
        day: date,
        biometrics: Iterable[BiometricDayAggregate],
        events: Iterable[ScheduleEvent],
        profile: Optional[UserProfile] = None,
    ) -> DayEnergySummary:
        biometrics = list(biometrics)
        events = list(events)
        summary = summarize_day(day, biometrics, events, profile, now=self.clock.now())

        day_class = self.clock.classify(day)
        if day_class == DayClass.past:
            return self._past(summary)
        if day_class == DayClass.future:
            return self._future(summary, biometrics, events, profile)
        return self._today(summary, biometrics, events, profile)

    # -- branches -------------------------------------------------------------

    def _past(self, summary: DayEnergySummary) -> DayEnergySummary:
        if summary.is_insufficient:
            return summary

        measured = summary.hourly_waveform
        with self.repository.lock:
            self.repository.put_wave(summary.day, measured)
            cached = self.repository.get(summary.day)
            if (
                cached is not None
                and len(cached.values) == HOURS_PER_DAY
                and len(measured) == HOURS_PER_DAY
            ):
                accuracy = forecast_accuracy(cached.values, measured)
                self.repository.record_accuracy(summary.day, accuracy)
                logger.info("Recorded forecast accuracy %.3f for %s", accuracy, summary.day)

        return summary.with_waveform(measured)

    def _future(self, summary, biometrics, events, profile) -> DayEnergySummary:
        forecast = forecast_day(
            summary.day, biometrics, events, profile, self.repository, self.clock,
        )
        if forecast is None or forecast.is_empty:
            return summary
        self.repository.put(forecast)
        return summary.with_waveform(forecast.values)

    def _today(self, summary, biometrics, events, profile) -> DayEnergySummary:
        forecast = forecast_day(
            summary.day, biometrics, events, profile, self.repository, self.clock,
        )
        measured = summary.hourly_waveform
        if (
            forecast is None
            or len(forecast.values) < HOURS_PER_DAY
            or len(measured) < HOURS_PER_DAY
        ):
            logger.debug(
                "Skipping blend for %s: measured=%d forecast=%d",
                summary.day, len(measured), 0 if forecast is None else len(forecast.values),
            )
            return summary

        blended = blend_today(measured, forecast.values, self.clock.current_hour())
        return summary.with_waveform(blended)
