"""Main application setup for the buckrefactor CLI."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated, Literal

from cyclopts import App, Parameter

from buck.errors import RefactorError
from cli.commands.version import get_version
from cli.config_loader import apply_tool_overrides, load_settings
from cli.context import RunContext
from cli.exit_codes import ExitCode
from cli.groups import (
    admin_group,
    execution_group,
    observability_group,
    session_group,
    tools_group,
)
from cli.telemetry import invoke_with_telemetry
from obs.otel import OtelBootstrapOptions, configure_logging, configure_otel
from obs.otel.constants import ScopeName

_LOGGER = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

_HELP_EPILOGUE = """
Examples:
  buckrefactor cleanup cleanup.json          Minimize imports and dependencies
  buckrefactor create create.json            Extract loose files into modules
  buckrefactor --print-only move move.json   Preview a folder move
  buckrefactor stats stats.json              Module and line counts per root
  buckrefactor config show                   Show effective settings

Environment Variables:
  BUCKREFACTOR_LOG_LEVEL       Default log level (DEBUG, INFO, WARNING, ERROR)
  BUCKREFACTOR_ROOT            Project root folder
  BUCKREFACTOR_BUILD_TOOL      Build tool executable
  BUCKREFACTOR_FORMATTER       Build file formatter executable
  BUCKREFACTOR_WORKERS         Worker pool bound for read-only phases
  BUCKREFACTOR_ENABLE_TRACES   Export OpenTelemetry traces to stderr

Tips:
  Settings are read from buckrefactor.toml or [tool.buckrefactor] in pyproject.toml.
"""

app = App(
    name="buckrefactor",
    help="Refactoring tools for Buck-style multi-module native codebases.",
    help_format="rich",
    help_epilogue=_HELP_EPILOGUE,
    version=get_version(),
    version_flags=["--version", "-V"],
    default_parameter=Parameter(
        show_default=True,
        show_env_var=True,
    ),
    exit_on_error=True,
    print_error=True,
    help_on_error=False,
)

app.meta.group_parameters = session_group


@dataclass(frozen=True)
class SessionOptions:
    """Session-level configuration parameters."""

    config_file: Annotated[
        Path | None,
        Parameter(
            name="--config",
            help="Path to settings file (overrides default search).",
            group=session_group,
        ),
    ] = None
    run_id: Annotated[
        str | None,
        Parameter(
            name="--run-id",
            help="Explicit run identifier (random if not provided).",
            group=session_group,
        ),
    ] = None
    log_level: Annotated[
        Literal["DEBUG", "INFO", "WARNING", "ERROR"],
        Parameter(
            name="--log-level",
            help="Logging verbosity level.",
            env_var="BUCKREFACTOR_LOG_LEVEL",
            group=session_group,
        ),
    ] = "INFO"
    root: Annotated[
        Path,
        Parameter(
            name="--root",
            help="Project root folder that module paths are relative to.",
            env_var="BUCKREFACTOR_ROOT",
            group=session_group,
        ),
    ] = Path()


@dataclass(frozen=True)
class ToolOptions:
    """External tool overrides applied on top of the settings file."""

    build_tool: Annotated[
        str | None,
        Parameter(
            name="--build-tool",
            help="Build tool executable.",
            env_var="BUCKREFACTOR_BUILD_TOOL",
            group=tools_group,
        ),
    ] = None
    formatter: Annotated[
        str | None,
        Parameter(
            name="--formatter",
            help="Build file formatter executable.",
            env_var="BUCKREFACTOR_FORMATTER",
            group=tools_group,
        ),
    ] = None
    working_folder: Annotated[
        Path | None,
        Parameter(
            name="--working-folder",
            help="Folder the build tool runs in.",
            group=tools_group,
        ),
    ] = None


@dataclass(frozen=True)
class ExecutionOptions:
    """File write and parallelism parameters."""

    print_only: Annotated[
        bool,
        Parameter(
            name="--print-only",
            help="Print file changes instead of writing them (create, move).",
            group=execution_group,
        ),
    ] = False
    workers: Annotated[
        int | None,
        Parameter(
            name="--workers",
            help="Worker pool bound for read-only phases.",
            env_var="BUCKREFACTOR_WORKERS",
            group=execution_group,
        ),
    ] = None


@dataclass(frozen=True)
class ObservabilityOptions:
    """OpenTelemetry configuration parameters."""

    enable_traces: Annotated[
        bool,
        Parameter(
            name="--enable-traces",
            help="Export OpenTelemetry traces and metrics to stderr.",
            env_var="BUCKREFACTOR_ENABLE_TRACES",
            group=observability_group,
        ),
    ] = False
    otel_test_mode: Annotated[
        bool,
        Parameter(
            name="--otel-test-mode",
            help="Use in-memory exporters for OpenTelemetry (for testing).",
            env_var="BUCKREFACTOR_OTEL_TEST_MODE",
            group=observability_group,
        ),
    ] = False


_DEFAULT_SESSION_OPTIONS = SessionOptions()
_DEFAULT_TOOL_OPTIONS = ToolOptions()
_DEFAULT_EXECUTION_OPTIONS = ExecutionOptions()
_DEFAULT_OBSERVABILITY_OPTIONS = ObservabilityOptions()


@app.meta.default
def meta_launcher(
    *tokens: Annotated[str, Parameter(show=False, allow_leading_hyphen=True)],
    session: Annotated[SessionOptions, Parameter(name="*")] = _DEFAULT_SESSION_OPTIONS,
    tools: Annotated[ToolOptions, Parameter(name="*")] = _DEFAULT_TOOL_OPTIONS,
    execution: Annotated[ExecutionOptions, Parameter(name="*")] = _DEFAULT_EXECUTION_OPTIONS,
    observability: Annotated[ObservabilityOptions, Parameter(name="*")] = (
        _DEFAULT_OBSERVABILITY_OPTIONS
    ),
) -> int:
    """Meta launcher for settings selection and context injection.

    Returns
    -------
    int
        Exit status code from command execution.

    Raises
    ------
    ValueError
        Raised when the log level is invalid.
    """
    if session.log_level not in LOG_LEVELS:
        msg = f"Unsupported log level {session.log_level!r}."
        raise ValueError(msg)
    tracing = observability.enable_traces or observability.otel_test_mode
    configure_logging(session.log_level, with_trace_ids=tracing)

    try:
        settings, config_path = load_settings(session.config_file)
    except RefactorError as exc:
        _LOGGER.error("%s", exc)
        return ExitCode.from_exception(exc)
    settings = apply_tool_overrides(
        settings,
        build_tool=tools.build_tool,
        formatter=tools.formatter,
        working_folder=tools.working_folder,
    )

    otel_options: OtelBootstrapOptions | None = None
    if tracing:
        otel_options = OtelBootstrapOptions(
            console=observability.enable_traces,
            test_mode=observability.otel_test_mode,
        )
        configure_otel(service_name=ScopeName.ROOT, options=otel_options)

    run_context = RunContext(
        run_id=session.run_id or uuid.uuid4().hex,
        log_level=session.log_level,
        settings=settings,
        root=session.root.resolve(),
        print_only=execution.print_only,
        max_workers=execution.workers,
        config_path=config_path,
        otel_options=otel_options,
    )

    exit_code, _event = invoke_with_telemetry(
        app,
        list(tokens),
        run_context=run_context,
    )
    return exit_code


# Lazy-loaded commands
app.command("cli.commands.cleanup:cleanup_command", name="cleanup")
app.command("cli.commands.modules:create_command", name="create")
app.command("cli.commands.modules:move_command", name="move")
app.command("cli.commands.modules:stats_command", name="stats")

# Config subapp with alias
_config_app = App(name="config", help="Settings management.")
_config_app.command("cli.commands.config:show_config", name="show")
_config_app.command("cli.commands.config:init_config", name="init")
app.command(_config_app, alias="cfg")
app.command("cli.commands.version:version_command", name="version", alias="v")

# Completion install command
app.register_install_completion_command(
    name="--install-completion",
    add_to_startup=False,
    group=admin_group,
    help="Install shell completion scripts.",
)


def main() -> None:
    """Run the buckrefactor CLI."""
    app.meta()


__all__ = ["app", "main", "meta_launcher"]
