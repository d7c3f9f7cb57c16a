"""
Unit tests for the unified blender.
"""
from datetime import date, datetime, timedelta, timezone

import pytest

from energycast.core.clock import FixedClock
from energycast.services.domain import (
    BiometricDayAggregate,
    DayEnergyForecast,
    ForecastSource,
)
from energycast.services.forecast_model import forecast_day
from energycast.services.forecast_repository import InMemoryForecastRepository
from energycast.services.metrics import REQUIRED_METRICS, MetricType
from energycast.services.summary_engine import summarize_day
from energycast.services.unified import UnifiedBlender, blend_today, forecast_accuracy

TODAY = date(2031, 9, 10)
NOW = datetime(2031, 9, 10, 10, 0, tzinfo=timezone.utc)

RICH = frozenset(REQUIRED_METRICS) | {
    MetricType.heart_rate_variability_sdnn,
    MetricType.resting_hr,
    MetricType.deep_sleep,
}


def _day(d: date, metrics=RICH, hrv: float = 55) -> BiometricDayAggregate:
    return BiometricDayAggregate(
        day=d,
        hrv=hrv,
        resting_hr=60,
        heart_rate=70,
        deep_sleep=75,
        time_in_bed=440,
        steps=7000,
        active_energy=480,
        available_metrics=metrics,
    )


def _history(end: date, n: int = 10) -> list[BiometricDayAggregate]:
    return [_day(end - timedelta(days=i), hrv=40 + 3 * i) for i in reversed(range(n))]


@pytest.fixture()
def repo():
    return InMemoryForecastRepository()


@pytest.fixture()
def blender(repo):
    return UnifiedBlender(repo, FixedClock(NOW))


class TestBlendToday:
    def test_continuity(self):
        measured = [0.2] * 24
        forecast = [0.8] * 24
        out = blend_today(measured, forecast, current_hour=10)
        assert out[:10] == [0.2] * 10
        assert out[10] == pytest.approx(0.2)
        assert out[11] == pytest.approx(0.4)
        assert out[12] == pytest.approx(0.6)
        assert out[13] == pytest.approx(0.8)
        assert out[14:] == [0.8] * 10

    def test_window_truncated_at_end_of_day(self):
        out = blend_today([0.0] * 24, [0.9] * 24, current_hour=22)
        assert out[22] == pytest.approx(0.0)
        assert out[23] == pytest.approx(0.3)

    def test_midnight(self):
        out = blend_today([0.3] * 24, [0.6] * 24, current_hour=0)
        assert out[0] == pytest.approx(0.3)
        assert out[3] == pytest.approx(0.6)


def test_forecast_accuracy():
    assert forecast_accuracy([0.5] * 24, [0.7] * 24) == pytest.approx(0.8)
    assert forecast_accuracy([0.4] * 24, [0.4] * 24) == pytest.approx(1.0)


class TestPastDay:
    def test_records_accuracy_and_wave(self, blender, repo):
        d = TODAY - timedelta(days=4)
        repo.put(DayEnergyForecast(
            day=d, values=(0.5,) * 24, score=50, confidence=0.8,
            source_type=ForecastSource.historical_model,
        ))
        history = _history(d)
        s = blender.summary(d, history, [])

        measured = summarize_day(d, history, [], now=NOW).hourly_waveform
        assert s.hourly_waveform == measured
        assert s.overall_energy_score == pytest.approx(sum(measured) / 24 * 100)
        assert repo.get_wave(d) == list(measured)
        expected = 1 - sum(abs(0.5 - m) for m in measured) / 24
        assert repo.get_accuracy(d) == pytest.approx(expected)

    def test_no_accuracy_without_forecast(self, blender, repo):
        d = TODAY - timedelta(days=5)
        blender.summary(d, _history(d), [])
        assert repo.get_wave(d) is not None
        assert repo.get_accuracy(d) is None

    def test_no_accuracy_for_empty_forecast(self, blender, repo):
        d = TODAY - timedelta(days=6)
        repo.put(DayEnergyForecast(day=d, values=(), score=0, confidence=0))
        blender.summary(d, _history(d), [])
        assert repo.get_accuracy(d) is None

    def test_insufficient_unchanged(self, blender, repo):
        d = TODAY - timedelta(days=3)
        s = blender.summary(d, [_day(d, metrics=frozenset())], [])
        assert s.is_insufficient
        assert s.hourly_waveform == ()
        assert repo.get_wave(d) is None


class TestFutureDay:
    def test_pure_forecast(self, blender, repo):
        d = TODAY + timedelta(days=2)
        history = _history(TODAY)
        s = blender.summary(d, history, [])
        cached = repo.get(d)
        assert cached is not None
        assert s.hourly_waveform == cached.values
        assert s.overall_energy_score == pytest.approx(sum(cached.values) / 24 * 100)

    def test_falls_back_to_summary_without_history(self, blender):
        d = TODAY + timedelta(days=2)
        s = blender.summary(d, [], [])
        assert s == summarize_day(d, [], [], now=NOW)


class TestToday:
    def test_blends_measured_into_forecast(self, blender, repo):
        history = _history(TODAY)
        s = blender.summary(TODAY, history, [])
        measured = summarize_day(TODAY, history, [], now=NOW).hourly_waveform
        forecast = repo.get(TODAY).values

        assert len(s.hourly_waveform) == 24
        assert s.hourly_waveform[:10] == measured[:10]
        assert s.hourly_waveform[10] == pytest.approx(measured[10])
        assert s.hourly_waveform[13] == pytest.approx(forecast[13])
        assert s.hourly_waveform[14:] == forecast[14:]
        assert s.overall_energy_score == pytest.approx(sum(s.hourly_waveform) / 24 * 100)

    def test_unchanged_when_forecast_empty(self, blender):
        s = blender.summary(TODAY, [], [])
        assert s == summarize_day(TODAY, [], [], now=NOW)

    def test_forecast_matches_direct_call(self, repo):
        clock = FixedClock(NOW)
        history = _history(TODAY)
        direct = forecast_day(TODAY, history, [], None, InMemoryForecastRepository(), clock)
        UnifiedBlender(repo, clock).summary(TODAY, history, [])
        assert repo.get(TODAY) == direct
