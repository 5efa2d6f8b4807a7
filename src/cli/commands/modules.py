"""Module layout commands: create, move and stats."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

from cyclopts import Parameter

from buck.config import CreateInput, MoveInput, StatsInput, load_input
from buck.create import ModuleCreator
from buck.errors import RootFolderError
from buck.move import ModuleMover
from buck.rename import RenameEngine
from buck.stats import ModuleStats, format_stats
from cli.context import RunContext
from cli.result import CliResult


def _context(run_context: RunContext | None) -> RunContext:
    context = run_context or RunContext(run_id="local")
    if not context.root.is_dir():
        msg = f"Root folder {context.root} does not exist"
        raise RootFolderError(msg)
    return context


def _rename_engine(context: RunContext) -> RenameEngine:
    return RenameEngine(print_only=context.print_only, max_workers=context.max_workers)


def create_command(
    input_path: Annotated[
        Path,
        Parameter(help="JSON file listing the modules to create."),
    ],
    *,
    run_context: Annotated[RunContext | None, Parameter(parse=False)] = None,
) -> CliResult:
    """Create modules from loose files and write their build files.

    Returns
    -------
    CliResult
        Targets of the created modules.
    """
    context = _context(run_context)
    create_input = load_input(input_path, target_type=CreateInput)
    creator = ModuleCreator(
        context.build_oracle(),
        settings=context.settings,
        rename=_rename_engine(context),
        print_only=context.print_only,
    )
    targets = creator.create(create_input, context.root)
    return CliResult.success(summary=f"Created {len(targets)} modules", details=targets)


def move_command(
    input_path: Annotated[
        Path,
        Parameter(help="JSON file listing the folders to move."),
    ],
    *,
    run_context: Annotated[RunContext | None, Parameter(parse=False)] = None,
) -> CliResult:
    """Move module folders and rename every reference to them.

    Returns
    -------
    CliResult
        The performed moves.
    """
    context = _context(run_context)
    move_input = load_input(input_path, target_type=MoveInput)
    mover = ModuleMover(
        settings=context.settings,
        rename=_rename_engine(context),
        print_only=context.print_only,
    )
    moves = mover.move(move_input, context.root)
    return CliResult.success(
        summary=f"Moved {len(moves)} folders",
        details=[f"{source} -> {destination}" for source, destination in moves],
    )


def stats_command(
    input_path: Annotated[
        Path,
        Parameter(help="JSON file listing the root targets to analyze."),
    ],
    *,
    run_context: Annotated[RunContext | None, Parameter(parse=False)] = None,
) -> CliResult:
    """Report module counts and lines of code per root target.

    Returns
    -------
    CliResult
        The statistics report.
    """
    context = _context(run_context)
    stats_input = load_input(input_path, target_type=StatsInput)
    stats = ModuleStats(
        context.build_oracle(),
        settings=context.settings,
        max_workers=context.max_workers,
    ).compute(stats_input, context.root)
    return CliResult.success(summary=format_stats(stats))


__all__ = ["create_command", "move_command", "stats_command"]
