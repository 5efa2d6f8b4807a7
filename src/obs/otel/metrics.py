"""Metrics catalog and helpers for buckrefactor telemetry."""

from __future__ import annotations

from dataclasses import dataclass

from opentelemetry import metrics
from opentelemetry.sdk.metrics.view import ExplicitBucketHistogramAggregation, View

from obs.otel.attributes import normalize_attributes
from obs.otel.constants import AttributeName, MetricName
from obs.otel.scope_metadata import instrumentation_schema_url, instrumentation_version
from obs.otel.scopes import SCOPE_OBS

_DEFAULT_BUCKETS_S = (
    0.05,
    0.1,
    0.5,
    1.0,
    5.0,
    10.0,
    30.0,
    60.0,
    300.0,
    900.0,
    3600.0,
)


@dataclass
class MetricsRegistry:
    """Registry for buckrefactor metric instruments."""

    stage_duration: metrics.Histogram
    oracle_invocations: metrics.Counter
    trial_count: metrics.Counter
    error_count: metrics.Counter


_REGISTRY_CACHE: dict[str, MetricsRegistry | None] = {"value": None}


def _meter() -> metrics.Meter:
    version_value = instrumentation_version()
    version = version_value if version_value is not None else "unknown"
    return metrics.get_meter(
        SCOPE_OBS,
        version,
        schema_url=instrumentation_schema_url(),
    )


def metric_views() -> list[View]:
    """Return default metric Views for the OTel MeterProvider.

    Returns
    -------
    list[View]
        Configured metric views for buckrefactor instruments.
    """
    histogram = ExplicitBucketHistogramAggregation(list(_DEFAULT_BUCKETS_S))
    return [
        View(
            instrument_name=MetricName.STAGE_DURATION,
            aggregation=histogram,
            attribute_keys={AttributeName.STAGE, AttributeName.STATUS},
        ),
        View(
            instrument_name=MetricName.ORACLE_INVOCATIONS,
            attribute_keys={AttributeName.OPERATION, AttributeName.VERDICT},
        ),
        View(
            instrument_name=MetricName.TRIAL_COUNT,
            attribute_keys={AttributeName.TRIAL_KIND, AttributeName.VERDICT},
        ),
        View(
            instrument_name=MetricName.ERROR_COUNT,
            attribute_keys={AttributeName.ERROR_TYPE, AttributeName.STAGE},
        ),
    ]


def reset_metrics_registry() -> None:
    """Reset cached metric instruments so they can be re-created."""
    _REGISTRY_CACHE["value"] = None


def _registry() -> MetricsRegistry:
    cached = _REGISTRY_CACHE["value"]
    if cached is not None:
        return cached
    meter = _meter()
    registry = MetricsRegistry(
        stage_duration=meter.create_histogram(
            MetricName.STAGE_DURATION,
            unit="s",
            description="Stage execution duration (seconds).",
        ),
        oracle_invocations=meter.create_counter(
            MetricName.ORACLE_INVOCATIONS,
            unit="1",
            description="Build tool invocations by operation and verdict.",
        ),
        trial_count=meter.create_counter(
            MetricName.TRIAL_COUNT,
            unit="1",
            description="Removal trials by kind and verdict.",
        ),
        error_count=meter.create_counter(
            MetricName.ERROR_COUNT,
            unit="1",
            description="Errors logged while processing modules.",
        ),
    )
    _REGISTRY_CACHE["value"] = registry
    return registry


def record_stage_duration(stage: str, duration_s: float, *, status: str) -> None:
    """Record a stage duration histogram sample."""
    attrs = normalize_attributes({AttributeName.STAGE: stage, AttributeName.STATUS: status})
    _registry().stage_duration.record(duration_s, attrs)


def record_oracle_invocation(operation: str, *, ok: bool) -> None:
    """Count a build tool invocation."""
    attrs = normalize_attributes(
        {AttributeName.OPERATION: operation, AttributeName.VERDICT: "pass" if ok else "fail"}
    )
    _registry().oracle_invocations.add(1, attrs)


def record_trial(kind: str, *, kept: bool) -> None:
    """Count a single removal trial.

    Parameters
    ----------
    kind
        ``"import"`` or ``"dependency"``.
    kept
        Whether the removal was kept.
    """
    attrs = normalize_attributes(
        {AttributeName.TRIAL_KIND: kind, AttributeName.VERDICT: "removed" if kept else "restored"}
    )
    _registry().trial_count.add(1, attrs)


def record_error(stage: str, error_type: str) -> None:
    """Count a logged error."""
    attrs = normalize_attributes({AttributeName.STAGE: stage, AttributeName.ERROR_TYPE: error_type})
    _registry().error_count.add(1, attrs)


__all__ = [
    "MetricsRegistry",
    "metric_views",
    "record_error",
    "record_oracle_invocation",
    "record_stage_duration",
    "record_trial",
    "reset_metrics_registry",
]
