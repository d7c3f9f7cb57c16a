"""
Confidence scoring from signal coverage and history depth.

Two independent terms, each a step function:

  history   0.2  (<3 days)   0.4  (>=3)   0.8  (>=7)
  metrics   0.2  required set incomplete           + limited-data warning
            0.4  exactly the required set          + limited-data warning
            0.8  five or more metric kinds

The reported confidence is the lower of the two, so it never drops when
either metrics or history grow. When no history length is given only the
metric term applies.
"""
from __future__ import annotations

from typing import Iterable, Optional

from energycast.services.domain import ConfidenceResult, LIMITED_DATA_WARNING
from energycast.services.metrics import MetricType, REQUIRED_METRICS, TOTAL_METRIC_KINDS

MIN_CONFIDENCE = 0.2
LIMITED_CONFIDENCE = 0.4
HIGH_CONFIDENCE = 0.8

SHORT_HISTORY_DAYS = 3
FULL_HISTORY_DAYS = 7


def coverage_ratio(available: Iterable[MetricType]) -> float:
    return len(set(available)) / TOTAL_METRIC_KINDS


def history_confidence(history_days: int) -> float:
    if history_days >= FULL_HISTORY_DAYS:
        return HIGH_CONFIDENCE
    if history_days >= SHORT_HISTORY_DAYS:
        return LIMITED_CONFIDENCE
    return MIN_CONFIDENCE


def metric_confidence(available: Iterable[MetricType]) -> tuple[float, Optional[str]]:
    """Metric term and the warning that goes with it."""
    available = set(available)
    required = set(REQUIRED_METRICS)
    if not required.issubset(available):
        return MIN_CONFIDENCE, LIMITED_DATA_WARNING
    if available == required:
        return LIMITED_CONFIDENCE, LIMITED_DATA_WARNING
    return HIGH_CONFIDENCE, None


def score_confidence(
    available: Iterable[MetricType],
    history_days: Optional[int] = None,
) -> ConfidenceResult:
    available = frozenset(available)
    confidence, warning = metric_confidence(available)
    if history_days is not None:
        confidence = min(confidence, history_confidence(history_days))
    return ConfidenceResult(
        confidence=confidence,
        warning=warning,
        coverage_ratio=coverage_ratio(available),
        available_count=len(available),
    )
