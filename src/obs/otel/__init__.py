"""OpenTelemetry helpers for buckrefactor observability."""

from __future__ import annotations

from obs.otel.bootstrap import OtelBootstrapOptions, OtelProviders, configure_otel
from obs.otel.logging import configure_logging
from obs.otel.metrics import record_error, record_oracle_invocation, record_trial
from obs.otel.scopes import (
    SCOPE_CLI,
    SCOPE_DEPS,
    SCOPE_ESTIMATE,
    SCOPE_IMPORTS,
    SCOPE_LOADER,
    SCOPE_MODULES,
    SCOPE_ORACLE,
    SCOPE_ROOT,
)
from obs.otel.tracing import get_tracer, record_exception, root_span, stage_span

__all__ = [
    "SCOPE_CLI",
    "SCOPE_DEPS",
    "SCOPE_ESTIMATE",
    "SCOPE_IMPORTS",
    "SCOPE_LOADER",
    "SCOPE_MODULES",
    "SCOPE_ORACLE",
    "SCOPE_ROOT",
    "OtelBootstrapOptions",
    "OtelProviders",
    "configure_logging",
    "configure_otel",
    "get_tracer",
    "record_error",
    "record_exception",
    "record_oracle_invocation",
    "record_trial",
    "root_span",
    "stage_span",
]
