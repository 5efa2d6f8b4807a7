"""Cleanup command: minimize imports and build dependencies."""

from __future__ import annotations

import time
from pathlib import Path
from typing import Annotated

from cyclopts import Parameter

from buck.cleanup import cleanup_module
from buck.config import CleanupInput, load_input
from buck.rename import RenameEngine
from cli.context import RunContext
from cli.result import CliResult


def cleanup_command(
    input_path: Annotated[
        Path,
        Parameter(help="JSON file describing the cleanup run."),
    ],
    *,
    run_context: Annotated[RunContext | None, Parameter(parse=False)] = None,
) -> CliResult:
    """Remove unnecessary imports and build dependencies from modules.

    Every removal is trialled against a build of the root targets and kept
    only when the build still passes.

    Returns
    -------
    CliResult
        Summary of what was removed.
    """
    context = run_context or RunContext(run_id="local")
    config = load_input(input_path, target_type=CleanupInput)
    start = time.perf_counter()
    report = cleanup_module(
        config,
        context.root,
        oracle=context.build_oracle(),
        settings=context.settings,
        rename=RenameEngine(max_workers=context.max_workers),
        max_workers=context.max_workers,
    )
    counts = report.summary()
    details = [
        f"{target}: -{len(deps)} deps ({', '.join(deps)})"
        for target, deps in sorted(report.removed_dependencies.items())
        if deps
    ]
    details.extend(
        f"{path}: -{len(lines)} imports"
        for path, lines in sorted(report.removed_imports.items())
        if lines
    )
    return CliResult.success(
        summary=(
            f"Processed {counts['modules']} modules, "
            f"removed {counts['removed_imports']} imports and "
            f"{counts['removed_dependencies']} dependencies"
        ),
        details=details,
        metrics={
            **{name: float(value) for name, value in counts.items()},
            "duration_ms": (time.perf_counter() - start) * 1000.0,
        },
    )


__all__ = ["cleanup_command"]
