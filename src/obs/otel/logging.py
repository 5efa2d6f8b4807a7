"""Logging helpers for trace correlation."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, cast

from opentelemetry import trace

if TYPE_CHECKING:

    class _TraceRecord(logging.LogRecord):
        trace_id: str | None
        span_id: str | None


PLAIN_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
TRACE_LOG_FORMAT = (
    "%(asctime)s %(levelname)s [trace_id=%(trace_id)s span_id=%(span_id)s] %(name)s: %(message)s"
)


class TraceContextFilter(logging.Filter):
    """Attach trace/span IDs to log records when available."""

    @staticmethod
    def filter(record: logging.LogRecord) -> bool:
        """Inject trace/span IDs into the log record when available.

        Returns
        -------
        bool
            True to keep the log record.
        """
        context = trace.get_current_span().get_span_context()
        trace_record = cast("_TraceRecord", record)
        if context is None or not context.is_valid:
            trace_record.trace_id = None
            trace_record.span_id = None
            return True
        trace_record.trace_id = f"{context.trace_id:032x}"
        trace_record.span_id = f"{context.span_id:016x}"
        return True


class TraceContextFormatter(logging.Formatter):
    """Formatter that ensures trace/span IDs are present on log records."""

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record with ensured trace/span fields.

        Returns
        -------
        str
            Formatted log record string.
        """
        if not hasattr(record, "trace_id"):
            record.trace_id = None
        if not hasattr(record, "span_id"):
            record.span_id = None
        return super().format(record)


def install_trace_context_filter(logger: logging.Logger | None = None) -> None:
    """Install the trace context filter on the handlers of ``logger``."""
    target = logger or logging.getLogger()
    if not target.handlers:
        target.addFilter(TraceContextFilter())
        return
    for handler in target.handlers:
        if any(isinstance(existing, TraceContextFilter) for existing in handler.filters):
            continue
        handler.addFilter(TraceContextFilter())


def configure_logging(level: str | int = "INFO", *, with_trace_ids: bool = False) -> None:
    """Configure root logging for a CLI run.

    Parameters
    ----------
    level
        Log level name or number.
    with_trace_ids
        Whether to include trace and span IDs in each line.
    """
    resolved = logging.getLevelName(level.upper()) if isinstance(level, str) else level
    if not isinstance(resolved, int):
        resolved = logging.INFO
    root = logging.getLogger()
    root.setLevel(resolved)
    fmt = TRACE_LOG_FORMAT if with_trace_ids else PLAIN_LOG_FORMAT
    if not root.handlers:
        root.addHandler(logging.StreamHandler())
    for handler in root.handlers:
        handler.setFormatter(TraceContextFormatter(fmt))
    install_trace_context_filter(root)


__all__ = [
    "PLAIN_LOG_FORMAT",
    "TRACE_LOG_FORMAT",
    "TraceContextFilter",
    "TraceContextFormatter",
    "configure_logging",
    "install_trace_context_filter",
]
