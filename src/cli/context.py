"""Run context for CLI command injection."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from buck.oracle import ShellBuildOracle
from buck.settings import DEFAULT_SETTINGS, RefactorSettings

if TYPE_CHECKING:
    from opentelemetry.trace import Span

    from buck.oracle import BuildOracle
    from obs.otel import OtelBootstrapOptions


@dataclass(frozen=True)
class RunContext:
    """Injected run context for CLI commands.

    Parameters
    ----------
    run_id
        Run identifier for the CLI invocation.
    log_level
        Logging level applied to the invocation.
    settings
        Effective tool settings after config files and flags are merged.
    root
        Project root folder commands operate on.
    print_only
        Print file changes instead of writing them (create, move).
    max_workers
        Bound for read-only worker pools.
    config_path
        Settings file the run loaded, if any.
    oracle
        Build tool adapter; a shell adapter over ``settings.tools`` when unset.
    span
        Optional root span for telemetry.
    otel_options
        Optional OpenTelemetry bootstrap options.
    """

    run_id: str
    log_level: str = "INFO"
    settings: RefactorSettings = DEFAULT_SETTINGS
    root: Path = field(default_factory=Path)
    print_only: bool = False
    max_workers: int | None = None
    config_path: Path | None = None
    oracle: BuildOracle | None = None
    span: Span | None = None
    otel_options: OtelBootstrapOptions | None = None

    def build_oracle(self) -> BuildOracle:
        """Return the injected oracle or a shell adapter for the configured tools."""
        if self.oracle is not None:
            return self.oracle
        return ShellBuildOracle(self.settings.tools)


__all__ = ["RunContext"]
