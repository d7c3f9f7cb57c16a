"""
Unit tests for confidence scoring.
"""
import pytest

from energycast.services.confidence import (
    coverage_ratio,
    history_confidence,
    metric_confidence,
    score_confidence,
)
from energycast.services.domain import LIMITED_DATA_WARNING
from energycast.services.metrics import REQUIRED_METRICS, MetricType

REQUIRED = frozenset(REQUIRED_METRICS)
RICH = REQUIRED | {MetricType.heart_rate_variability_sdnn}


class TestMetricTerm:
    def test_required_missing(self):
        conf, warning = metric_confidence({MetricType.step_count})
        assert conf == 0.2
        assert warning == LIMITED_DATA_WARNING

    def test_exactly_required(self):
        conf, warning = metric_confidence(REQUIRED)
        assert conf == 0.4
        assert warning == LIMITED_DATA_WARNING

    def test_with_enhancer(self):
        conf, warning = metric_confidence(RICH)
        assert conf == 0.8
        assert warning is None


class TestHistoryTerm:
    @pytest.mark.parametrize("days,expected", [
        (0, 0.2), (2, 0.2), (3, 0.4), (6, 0.4), (7, 0.8), (30, 0.8),
    ])
    def test_steps(self, days, expected):
        assert history_confidence(days) == expected

    def test_lower_term_wins(self):
        assert score_confidence(RICH, history_days=3).confidence == 0.4
        assert score_confidence(REQUIRED, history_days=10).confidence == 0.4

    def test_metric_term_only_without_history(self):
        assert score_confidence(RICH).confidence == 0.8


class TestMonotonicity:
    METRIC_SETS = [
        frozenset(),
        frozenset({MetricType.step_count, MetricType.heart_rate}),
        REQUIRED,
        RICH,
        RICH | {MetricType.resting_hr, MetricType.deep_sleep},
    ]

    def test_non_decreasing_in_metrics(self):
        for days in (0, 3, 7):
            confs = [score_confidence(m, days).confidence for m in self.METRIC_SETS]
            assert confs == sorted(confs)

    def test_non_decreasing_in_history(self):
        for metrics in self.METRIC_SETS:
            confs = [score_confidence(metrics, d).confidence for d in (0, 1, 3, 5, 7, 14)]
            assert confs == sorted(confs)


class TestCoverage:
    def test_ratio(self):
        assert coverage_ratio(REQUIRED) == pytest.approx(4 / 18)
        assert coverage_ratio([]) == 0.0

    def test_independent_of_confidence(self):
        result = score_confidence(REQUIRED, history_days=0)
        assert result.coverage_ratio == pytest.approx(4 / 18)
        assert result.available_count == 4

    def test_debug_line(self):
        assert score_confidence(REQUIRED).debug_line() == "4/18 signals, conf 0.40"
