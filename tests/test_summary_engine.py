"""
Unit tests for single-day summarization.
"""
from datetime import date, datetime

import pytest

from energycast.services.domain import (
    INSUFFICIENT_DATA_WARNING,
    LIMITED_DATA_WARNING,
    BiometricDayAggregate,
    ScheduleEvent,
    UserProfile,
)
from energycast.services.metrics import REQUIRED_METRICS, MetricType
from energycast.services.summary_engine import (
    events_for_day,
    mental_energy,
    physical_energy,
    summarize_day,
    top_events,
)

D = date(2031, 5, 3)

MID_METRICS = frozenset(REQUIRED_METRICS) | {
    MetricType.heart_rate_variability_sdnn,
    MetricType.resting_hr,
    MetricType.sleep_efficiency,
    MetricType.sleep_latency,
    MetricType.deep_sleep,
    MetricType.rem_sleep,
}


def _mid_day(d: date = D) -> BiometricDayAggregate:
    # Every sub-score component lands exactly on 0.5.
    return BiometricDayAggregate(
        day=d,
        hrv=70,
        resting_hr=70,
        heart_rate=68,
        sleep_efficiency=80,
        sleep_latency=30,
        deep_sleep=60,
        rem_sleep=90,
        time_in_bed=420,
        steps=8000,
        active_energy=450,
        available_metrics=MID_METRICS,
    )


def _required_only(d: date = D, steps: int = 8000) -> BiometricDayAggregate:
    return BiometricDayAggregate(
        day=d,
        heart_rate=65,
        time_in_bed=420,
        steps=steps,
        active_energy=500,
        available_metrics=frozenset(REQUIRED_METRICS),
    )


def _event(title: str, hour: int, delta, d: date = D) -> ScheduleEvent:
    return ScheduleEvent(
        title=title,
        start=datetime(d.year, d.month, d.day, hour, 0),
        end=datetime(d.year, d.month, d.day, hour, 30),
        energy_delta=delta,
    )


class TestInsufficientDay:
    def test_zero_metrics(self):
        s = summarize_day(D, [BiometricDayAggregate(day=D)], [])
        assert s.overall_energy_score == 0
        assert s.confidence == 0
        assert s.warning == INSUFFICIENT_DATA_WARNING
        assert s.hourly_waveform == ()
        assert s.is_insufficient

    def test_debug_lists_missing(self):
        h = BiometricDayAggregate(
            day=D, available_metrics=frozenset({MetricType.step_count, MetricType.heart_rate}),
        )
        s = summarize_day(D, [h], [])
        assert s.debug_info == "missing: active_energy_burned,time_in_bed"
        assert s.coverage_ratio == pytest.approx(2 / 18)


class TestEligibleDay:
    def test_waveform_and_score(self):
        s = summarize_day(D, [_mid_day()], [])
        assert len(s.hourly_waveform) == 24
        assert all(0.0 <= v <= 1.0 for v in s.hourly_waveform)
        assert s.overall_energy_score == pytest.approx(sum(s.hourly_waveform) / 24 * 100)
        assert s.confidence == 0.8
        assert s.warning is None

    def test_required_only_is_limited(self):
        s = summarize_day(D, [_required_only()], [])
        assert s.confidence == 0.4
        assert s.warning == LIMITED_DATA_WARNING
        assert s.sleep_efficiency == 0.0

    def test_sub_scores(self):
        s = summarize_day(D, [_mid_day()], [])
        assert s.mental_energy == 50
        assert s.physical_energy == 50
        assert s.sleep_efficiency == 80

    def test_only_target_day_row_used(self):
        other = _required_only(date(2031, 5, 2), steps=0)
        assert summarize_day(D, [other, _mid_day()], []) == summarize_day(D, [_mid_day()], [])

    def test_idempotent(self):
        events = [_event("Run", 7, 0.4)]
        profile = UserProfile(caffeine_mg_per_day=350, caffeine_afternoon=True)
        first = summarize_day(D, [_mid_day()], events, profile)
        second = summarize_day(D, [_mid_day()], events, profile)
        assert first == second


class TestNoAggregate:
    def test_neutral_curve(self):
        s = summarize_day(D, [], [])
        assert len(s.hourly_waveform) == 24
        assert s.confidence == 0.2
        assert s.warning == LIMITED_DATA_WARNING
        assert s.mental_energy == 50
        assert s.physical_energy == 50


class TestSubScores:
    def test_activity_fallback(self):
        assert mental_energy(_required_only()) == pytest.approx(100.0)
        assert physical_energy(_required_only()) == pytest.approx(100.0)

    def test_activity_fallback_floor(self):
        assert mental_energy(_required_only(steps=0)) == pytest.approx(35.0)

    def test_projected_steps_today(self):
        # 2000 steps by 06:00 projects to 8000 for the day.
        now = datetime(2031, 5, 3, 6, 0)
        assert mental_energy(_required_only(steps=2000), now) == pytest.approx(100.0)


class TestEventsAndExplainers:
    def test_boosters_and_drainers(self):
        events = [
            _event("Gym", 7, 0.3),
            _event("Yoga", 18, 0.5),
            _event("Team meeting", 9, -0.2),
            _event("Client call", 15, -0.4),
            _event("Lunch", 12, None),
        ]
        s = summarize_day(D, [_mid_day()], events)
        assert s.top_boosters == ("Yoga", "Gym")
        assert s.top_drainers == ("Client call", "Team meeting")

    def test_top_events_limit(self):
        events = [_event(f"Walk {i}", 8 + i, 0.1 * (i + 1)) for i in range(5)]
        assert top_events(events, positive=True) == ["Walk 4", "Walk 3", "Walk 2"]

    def test_explainers(self):
        events = [_event("Standup meeting", 9, -0.1), _event("Planning meeting", 10, -0.1)]
        s = summarize_day(D, [_mid_day()], events)
        assert s.explainers == (
            "Sleep efficiency 80 %",
            "HRV 70 ms",
            "Resting HR 70 bpm",
            "2 morning meeting(s)",
            "Mental 50 / Physical 50",
        )

    def test_explainers_capped_at_five(self):
        s = summarize_day(D, [_mid_day()], [_event("meeting", 8, None)])
        assert len(s.explainers) <= 5

    def test_events_for_day_filters(self):
        events = [_event("a", 9, 0.1), _event("b", 9, 0.1, d=date(2031, 5, 4))]
        assert [e.title for e in events_for_day(events, D)] == ["a"]
