"""
Event effect analysis.

Groups schedule events into coarse categories by title keyword and reports
the average learned energy delta per category. Events without a delta still
count towards their category but not its average; a category with no learned
delta averages 0.
"""
from __future__ import annotations

from collections import defaultdict
from typing import Iterable

from energycast.services.domain import EventImpact, ScheduleEvent

OTHER_CATEGORY = "Other"

# First match wins; checked in order against the lower-cased title.
CATEGORY_KEYWORDS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("meeting",), "Meetings"),
    (("call",), "Calls"),
    (("gym", "run"), "Workout"),
    (("focus",), "Focus Work"),
    (("lunch",), "Meals"),
    (("sleep",), "Rest"),
    (("yoga",), "Yoga"),
)


def categorize(title: str) -> str:
    t = title.lower()
    for keywords, category in CATEGORY_KEYWORDS:
        if any(k in t for k in keywords):
            return category
    return OTHER_CATEGORY


def analyze_event_effects(events: Iterable[ScheduleEvent]) -> list[EventImpact]:
    """Average delta per category, strongest boosters first."""
    grouped: dict[str, list[ScheduleEvent]] = defaultdict(list)
    for ev in events:
        grouped[categorize(ev.title)].append(ev)

    impacts = []
    for category, evs in grouped.items():
        deltas = [ev.energy_delta for ev in evs if ev.energy_delta is not None]
        impacts.append(EventImpact(
            category=category,
            average_delta=sum(deltas) / len(deltas) if deltas else 0.0,
            event_count=len(evs),
        ))
    impacts.sort(key=lambda i: i.average_delta, reverse=True)
    return impacts
