"""
Unit tests for the forecast model and its cache policy.
"""
from datetime import date, datetime, time, timedelta, timezone

import pytest

from energycast.core.clock import FixedClock
from energycast.services.domain import (
    BiometricDayAggregate,
    DayEnergyForecast,
    ForecastSource,
    UserProfile,
)
from energycast.services.forecast_model import (
    NO_HISTORY_DEBUG,
    forecast_day,
    three_part_energy,
)
from energycast.services.forecast_repository import InMemoryForecastRepository
from energycast.services.metrics import REQUIRED_METRICS, MetricType

TODAY = date(2031, 8, 20)
CLOCK = FixedClock(datetime(2031, 8, 20, 9, 0, tzinfo=timezone.utc))

RICH = frozenset(REQUIRED_METRICS) | {
    MetricType.heart_rate_variability_sdnn,
    MetricType.resting_hr,
    MetricType.sleep_efficiency,
}


def _day(d: date, metrics=RICH) -> BiometricDayAggregate:
    return BiometricDayAggregate(
        day=d,
        hrv=65,
        resting_hr=58,
        heart_rate=66,
        sleep_efficiency=88,
        time_in_bed=460,
        steps=9000,
        active_energy=520,
        available_metrics=metrics,
    )


def _history(end: date, n: int = 10, metrics=RICH) -> list[BiometricDayAggregate]:
    return [_day(end - timedelta(days=i), metrics) for i in reversed(range(n))]


def _flat_forecast(d: date, source: ForecastSource, level: float = 0.5) -> DayEnergyForecast:
    return DayEnergyForecast(
        day=d,
        values=(level,) * 24,
        score=level * 100,
        confidence=0.4,
        source_type=source,
    )


@pytest.fixture()
def repo():
    return InMemoryForecastRepository()


class TestComputation:
    def test_historical_model(self, repo):
        d = TODAY - timedelta(days=1)
        f = forecast_day(d, _history(d), [], None, repo, CLOCK)
        assert f.source_type == ForecastSource.historical_model
        assert len(f.values) == 24
        assert all(0.0 <= v <= 1.0 for v in f.values)
        assert f.score == pytest.approx(sum(f.values) / 24 * 100)
        assert f.confidence == 0.8
        assert repo.get(d) == f

    def test_historical_model_lists_untracked_metrics(self, repo):
        d = TODAY - timedelta(days=1)
        metrics = frozenset(REQUIRED_METRICS) | {
            MetricType.resting_hr,
            MetricType.sleep_efficiency,
        }
        f = forecast_day(d, _history(d, n=8, metrics=metrics), [], None, repo, CLOCK)
        assert f.source_type == ForecastSource.historical_model
        assert len(f.missing_metrics) == len(MetricType) - 6
        assert set(f.missing_metrics) == set(MetricType) - metrics
        assert MetricType.vo2_max in f.missing_metrics

    def test_short_history_lowers_confidence(self, repo):
        d = TODAY - timedelta(days=2)
        f = forecast_day(d, _history(d, n=2), [], None, repo, CLOCK)
        assert f.confidence == 0.2

    def test_future_day_samples_latest_history(self, repo):
        d = TODAY + timedelta(days=3)
        f = forecast_day(d, _history(TODAY), [], None, repo, CLOCK)
        assert f.source_type == ForecastSource.historical_model
        assert len(f.values) == 24

    def test_rows_after_day_ignored(self, repo):
        d = TODAY - timedelta(days=5)
        history = _history(d) + [_day(d + timedelta(days=1), frozenset())]
        f = forecast_day(d, history, [], None, repo, CLOCK)
        assert f.source_type == ForecastSource.historical_model

    def test_no_history(self, repo):
        f = forecast_day(TODAY, [], [], None, repo, CLOCK)
        assert f.is_empty
        assert f.source_type == ForecastSource.default_heuristic
        assert f.debug_info == NO_HISTORY_DEBUG
        assert repo.get(TODAY) is None

    def test_ineligible_sample(self, repo):
        d = TODAY - timedelta(days=1)
        metrics = frozenset({MetricType.step_count, MetricType.heart_rate})
        f = forecast_day(d, _history(d, metrics=metrics), [], None, repo, CLOCK)
        assert f.is_empty
        assert f.source_type == ForecastSource.default_heuristic
        assert f.missing_metrics == (MetricType.active_energy_burned, MetricType.time_in_bed)
        assert f.debug_info == "missing: active_energy_burned,time_in_bed"
        assert repo.get(d) is None

    def test_no_samples_anywhere(self, repo):
        d = TODAY - timedelta(days=1)
        history = [
            BiometricDayAggregate(
                day=d - timedelta(days=i),
                available_metrics=frozenset(REQUIRED_METRICS),
                has_samples=False,
            )
            for i in range(3)
        ]
        f = forecast_day(d, history, [], None, repo, CLOCK)
        assert f.is_empty
        assert f.debug_info == NO_HISTORY_DEBUG


class TestCachePolicy:
    def test_reuses_historical_when_eligible(self, repo):
        d = TODAY - timedelta(days=1)
        cached = _flat_forecast(d, ForecastSource.historical_model)
        repo.put(cached)
        assert forecast_day(d, _history(d), [], None, repo, CLOCK) is cached

    def test_invalidates_historical_when_ineligible(self, repo):
        d = TODAY - timedelta(days=1)
        repo.put(_flat_forecast(d, ForecastSource.historical_model))
        f = forecast_day(d, _history(d, metrics=frozenset()), [], None, repo, CLOCK)
        assert f.is_empty
        assert repo.get(d) is None

    def test_reuses_heuristic_when_ineligible(self, repo):
        d = TODAY - timedelta(days=1)
        cached = _flat_forecast(d, ForecastSource.default_heuristic)
        repo.put(cached)
        assert forecast_day(d, _history(d, metrics=frozenset()), [], None, repo, CLOCK) is cached

    def test_replaces_heuristic_when_eligible(self, repo):
        d = TODAY - timedelta(days=1)
        repo.put(_flat_forecast(d, ForecastSource.default_heuristic))
        f = forecast_day(d, _history(d), [], None, repo, CLOCK)
        assert f.source_type == ForecastSource.historical_model
        assert repo.get(d) == f

    def test_empty_heuristic_not_reused(self, repo):
        d = TODAY - timedelta(days=1)
        repo.put(DayEnergyForecast(
            day=d, values=(), score=0, confidence=0,
            source_type=ForecastSource.default_heuristic,
        ))
        f = forecast_day(d, _history(d, metrics=frozenset()), [], None, repo, CLOCK)
        assert f.is_empty
        assert repo.get(d) is None


class TestThreePart:
    def test_averages(self):
        values = (0.0,) * 6 + (0.6,) * 6 + (0.4,) * 6 + (0.2,) * 6
        f = DayEnergyForecast(day=TODAY, values=values, score=30, confidence=0.8)
        parts = three_part_energy(f)
        assert parts.morning == pytest.approx(60)
        assert parts.afternoon == pytest.approx(40)
        assert parts.evening == pytest.approx(20)
        assert parts.waking == pytest.approx(40)

    def test_waking_window_follows_profile(self):
        values = (0.1,) * 8 + (0.9,) * 12 + (0.1,) * 4
        f = DayEnergyForecast(day=TODAY, values=values, score=0, confidence=0.8)
        profile = UserProfile(wake_time=time(8, 0), sleep_time=time(20, 0))
        parts = three_part_energy(f, profile)
        assert parts.waking == pytest.approx(90)
        assert three_part_energy(f).waking == pytest.approx(sum(values[6:]) / 18 * 100)

    def test_empty_forecast(self):
        f = DayEnergyForecast(day=TODAY, values=(), score=0, confidence=0)
        parts = three_part_energy(f)
        assert (parts.morning, parts.afternoon, parts.evening, parts.waking) == (0.0, 0.0, 0.0, 0.0)
