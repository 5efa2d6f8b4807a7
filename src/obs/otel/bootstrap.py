"""Bootstrap OpenTelemetry providers for buckrefactor."""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass

from opentelemetry import metrics, trace
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import (
    ConsoleMetricExporter,
    InMemoryMetricReader,
    MetricReader,
    PeriodicExportingMetricReader,
)
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SimpleSpanProcessor,
    SpanProcessor,
)
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from obs.otel.constants import ScopeName
from obs.otel.metrics import metric_views, reset_metrics_registry
from obs.otel.scope_metadata import instrumentation_version
from utils.env_utils import env_value

_LOGGER = logging.getLogger(__name__)


@dataclass
class OtelProviders:
    """Container for configured OpenTelemetry providers."""

    resource: Resource
    tracer_provider: TracerProvider
    meter_provider: MeterProvider
    span_exporter: InMemorySpanExporter | None = None
    metric_reader: InMemoryMetricReader | None = None

    def activate_global(self) -> None:
        """Activate providers as global defaults."""
        trace.set_tracer_provider(self.tracer_provider)
        metrics.set_meter_provider(self.meter_provider)
        reset_metrics_registry()

    def shutdown(self) -> None:
        """Flush and shut down all configured providers."""
        self.tracer_provider.shutdown()
        self.meter_provider.shutdown()


@dataclass(frozen=True)
class OtelBootstrapOptions:
    """Options for bootstrap configuration.

    Parameters
    ----------
    console
        Export spans and metrics to stderr.
    test_mode
        Capture spans and metrics in memory instead of exporting them.
    """

    console: bool = True
    test_mode: bool = False


_STATE: dict[str, OtelProviders | None] = {"providers": None}


def _build_resource(service_name: str) -> Resource:
    attrs: dict[str, str] = {"service.name": service_name}
    service_version = instrumentation_version()
    if service_version:
        attrs["service.version"] = service_version
    environment = env_value("BUCKREFACTOR_ENVIRONMENT")
    if environment:
        attrs["deployment.environment.name"] = environment
    return Resource.create(attrs)


def configure_otel(
    *,
    service_name: str = ScopeName.ROOT,
    options: OtelBootstrapOptions | None = None,
) -> OtelProviders:
    """Configure OpenTelemetry providers for the current process.

    The first call wins; later calls return the providers already installed
    unless ``test_mode`` is requested.

    Returns
    -------
    OtelProviders
        Configured providers for traces and metrics.
    """
    resolved = options or OtelBootstrapOptions()
    existing = _STATE["providers"]
    if existing is not None and not resolved.test_mode:
        return existing
    resource = _build_resource(service_name)
    span_exporter: InMemorySpanExporter | None = None
    metric_reader: InMemoryMetricReader | None = None
    processors: list[SpanProcessor] = []
    readers: list[MetricReader] = []
    if resolved.test_mode:
        span_exporter = InMemorySpanExporter()
        processors.append(SimpleSpanProcessor(span_exporter))
        metric_reader = InMemoryMetricReader()
        readers.append(metric_reader)
    elif resolved.console:
        processors.append(BatchSpanProcessor(ConsoleSpanExporter(out=sys.stderr)))
        readers.append(PeriodicExportingMetricReader(ConsoleMetricExporter(out=sys.stderr)))
    tracer_provider = TracerProvider(resource=resource)
    for processor in processors:
        tracer_provider.add_span_processor(processor)
    meter_provider = MeterProvider(
        metric_readers=readers,
        resource=resource,
        views=metric_views(),
    )
    providers = OtelProviders(
        resource=resource,
        tracer_provider=tracer_provider,
        meter_provider=meter_provider,
        span_exporter=span_exporter,
        metric_reader=metric_reader,
    )
    if existing is None:
        providers.activate_global()
    _STATE["providers"] = providers
    _LOGGER.debug("OpenTelemetry providers configured for %s", service_name)
    return providers


__all__ = ["OtelBootstrapOptions", "OtelProviders", "configure_otel"]
