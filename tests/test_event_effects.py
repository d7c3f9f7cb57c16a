"""
Unit tests for event effect analysis.
"""
from datetime import datetime

import pytest

from energycast.services.domain import ScheduleEvent
from energycast.services.event_effects import analyze_event_effects, categorize


def _event(title: str, delta) -> ScheduleEvent:
    return ScheduleEvent(
        title=title,
        start=datetime(2031, 7, 1, 10, 0),
        end=datetime(2031, 7, 1, 11, 0),
        energy_delta=delta,
    )


class TestCategorize:
    @pytest.mark.parametrize("title,category", [
        ("Weekly Meeting", "Meetings"),
        ("Call with Sam", "Calls"),
        ("Gym session", "Workout"),
        ("Morning run", "Workout"),
        ("Focus block", "Focus Work"),
        ("Lunch", "Meals"),
        ("Sleep in", "Rest"),
        ("Yoga", "Yoga"),
        ("Dentist", "Other"),
    ])
    def test_keywords(self, title, category):
        assert categorize(title) == category

    def test_first_match_wins(self):
        assert categorize("Meeting call") == "Meetings"


class TestAnalyze:
    def test_average_and_order(self):
        impacts = analyze_event_effects([
            _event("Meeting A", -0.2),
            _event("Meeting B", -0.4),
            _event("Yoga", 0.5),
            _event("Lunch", 0.1),
        ])
        assert [i.category for i in impacts] == ["Yoga", "Meals", "Meetings"]
        assert impacts[-1].average_delta == pytest.approx(-0.3)
        assert impacts[-1].event_count == 2

    def test_unlearned_events_average_zero(self):
        impacts = analyze_event_effects([
            _event("Meeting", None),
            _event("Yoga", 0.4),
            _event("Yoga flow", None),
        ])
        assert [i.category for i in impacts] == ["Yoga", "Meetings"]
        assert impacts[0].average_delta == pytest.approx(0.4)
        assert impacts[0].event_count == 2
        assert impacts[1].average_delta == 0.0
        assert impacts[1].event_count == 1
