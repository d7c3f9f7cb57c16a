"""
Metric kinds and the availability check.

A day can only be given a *measured* energy score when the four required
signals are present. Everything else is an enhancer that raises confidence.

Public API
----------
is_energy_eligible(aggregate)        -> bool
missing_required_metrics(aggregate)  -> list[MetricType]
"""
from __future__ import annotations

import enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from energycast.services.domain import BiometricDayAggregate


class MetricType(str, enum.Enum):
    # Required
    step_count = "step_count"
    active_energy_burned = "active_energy_burned"
    heart_rate = "heart_rate"
    time_in_bed = "time_in_bed"

    # Enhancers
    resting_hr = "resting_hr"
    heart_rate_variability_sdnn = "heart_rate_variability_sdnn"
    exercise_time = "exercise_time"
    vo2_max = "vo2_max"
    sleep_efficiency = "sleep_efficiency"
    sleep_latency = "sleep_latency"
    deep_sleep = "deep_sleep"
    rem_sleep = "rem_sleep"
    respiratory_rate = "respiratory_rate"
    walking_heart_rate_average = "walking_heart_rate_average"
    oxygen_saturation = "oxygen_saturation"
    environmental_audio_exposure = "environmental_audio_exposure"
    menstrual_flow = "menstrual_flow"
    mindful_minutes = "mindful_minutes"


# Declaration order, so diagnostics are stable across runs.
REQUIRED_METRICS: tuple[MetricType, ...] = (
    MetricType.step_count,
    MetricType.active_energy_burned,
    MetricType.heart_rate,
    MetricType.time_in_bed,
)

TOTAL_METRIC_KINDS = len(MetricType)


def is_energy_eligible(aggregate: "BiometricDayAggregate") -> bool:
    """True if the aggregate carries every required metric."""
    return set(REQUIRED_METRICS).issubset(aggregate.available_metrics)


def missing_required_metrics(aggregate: "BiometricDayAggregate") -> list[MetricType]:
    return [m for m in REQUIRED_METRICS if m not in aggregate.available_metrics]


def describe_missing(metrics) -> str:
    """Render a metric list as the `missing: a,b,c` debug string."""
    return "missing: " + ",".join(m.value for m in metrics)
