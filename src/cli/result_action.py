"""Result action handler for command return values."""

from __future__ import annotations

from typing import Any

from rich.console import Console

from cli.exit_codes import ExitCode
from cli.result import CliResult


def cli_result_action(result: Any, *, console: Console | None = None) -> int:
    """Handle command results and convert to exit codes.

    Parameters
    ----------
    result
        The return value from the command function.
    console
        Console used to print summaries; stdout when omitted.

    Returns
    -------
    int
        Exit code for the process.
    """
    console = console or Console(highlight=False)

    if result is None:
        return ExitCode.SUCCESS

    if isinstance(result, bool):
        return ExitCode.SUCCESS if result else ExitCode.GENERAL_ERROR

    if isinstance(result, int):
        return result

    if isinstance(result, CliResult):
        if result.summary:
            console.print(result.summary, markup=False)
        for line in result.details:
            console.print(f"  {line}", markup=False)
        duration = result.metrics.get("duration_ms")
        if duration is not None:
            console.print(f"Duration: {duration:.1f}ms")
        return int(result.exit_code)

    console.print(
        f"Unexpected command return type: {type(result).__name__} (value: {result!r})",
        markup=False,
    )
    return ExitCode.GENERAL_ERROR


__all__ = ["cli_result_action"]
