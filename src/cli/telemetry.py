"""Telemetry wrapper for CLI invocation."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, replace

from cyclopts import App
from cyclopts.exceptions import CycloptsError
from rich.console import Console

from cli.context import RunContext
from cli.exit_codes import ExitCode
from cli.result_action import cli_result_action
from obs.otel import SCOPE_CLI, record_error, root_span
from obs.otel.tracing import set_span_attributes

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class CliInvokeEvent:
    """Structured telemetry event for CLI invocation."""

    ok: bool
    command: str | None
    parse_ms: float
    exec_ms: float
    exit_code: int
    error_class: str | None = None
    error_message: str | None = None


def _command_name_from_tokens(tokens: list[str] | None) -> str:
    if not tokens:
        return "<unknown>"
    return tokens[0]


def invoke_with_telemetry(
    app: App,
    tokens: list[str] | None,
    *,
    run_context: RunContext,
    console: Console | None = None,
) -> tuple[int, CliInvokeEvent]:
    """Parse ``tokens``, inject ``run_context`` and run the command inside a root span.

    Parameters that commands mark with ``Parameter(parse=False)`` and type as
    ``RunContext`` receive the context.

    Returns
    -------
    tuple[int, CliInvokeEvent]
        Exit code and the invocation event.
    """
    command_name = _command_name_from_tokens(tokens)
    error_console = Console(stderr=True, highlight=False)
    t0 = time.perf_counter()
    parse_ms = 0.0
    with root_span(
        "cli.invocation",
        scope_name=SCOPE_CLI,
        attributes={
            "cli.command": command_name,
            "cli.tokens": len(tokens or ()),
            "cli.run_id": run_context.run_id,
        },
    ) as span:
        run_context = replace(run_context, span=span)
        try:
            command, bound, ignored = app.parse_args(
                tokens, exit_on_error=False, print_error=True
            )
            parse_ms = (time.perf_counter() - t0) * 1000.0
            for name, hint in ignored.items():
                if hint is RunContext or name == "run_context":
                    bound.arguments[name] = run_context
            t1 = time.perf_counter()
            result = command(*bound.args, **bound.kwargs)
            exec_ms = (time.perf_counter() - t1) * 1000.0
            exit_code = cli_result_action(result, console=console)
            event = CliInvokeEvent(
                ok=exit_code == ExitCode.SUCCESS,
                command=command_name,
                parse_ms=parse_ms,
                exec_ms=exec_ms,
                exit_code=exit_code,
            )
        except CycloptsError as exc:
            exit_code = ExitCode.from_exception(exc)
            event = CliInvokeEvent(
                ok=False,
                command=command_name,
                parse_ms=(time.perf_counter() - t0) * 1000.0,
                exec_ms=0.0,
                exit_code=exit_code,
                error_class=f"cyclopts.{exc.__class__.__name__}",
                error_message=str(exc),
            )
        except Exception as exc:
            exit_code = ExitCode.from_exception(exc)
            _LOGGER.exception("Command %s failed", command_name)
            record_error(command_name, exc.__class__.__name__)
            error_console.print(f"Error: {exc}", markup=False)
            event = CliInvokeEvent(
                ok=False,
                command=command_name,
                parse_ms=parse_ms,
                exec_ms=(time.perf_counter() - t0) * 1000.0 - parse_ms,
                exit_code=exit_code,
                error_class=f"{exc.__class__.__module__}.{exc.__class__.__name__}",
                error_message=str(exc),
            )
        set_span_attributes(
            span,
            {
                "cli.exit_code": event.exit_code,
                "cli.ok": event.ok,
                "cli.parse_ms": event.parse_ms,
                "cli.exec_ms": event.exec_ms,
            },
        )
    return int(exit_code), event


__all__ = ["CliInvokeEvent", "invoke_with_telemetry"]
