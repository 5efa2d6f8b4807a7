"""Module counts and lines of code per root target."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from buck.config import StatsInput
from buck.loader import ModuleGraphLoader
from buck.model import Module
from buck.oracle import BuildOracle
from buck.settings import DEFAULT_SETTINGS, RefactorSettings
from obs.otel.scopes import SCOPE_MODULES
from obs.otel.tracing import stage_span
from utils.file_io import read_text
from utils.parallel import bounded_map

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class SharedStats:
    """Split of a root's modules against every other root."""

    shared_modules: int
    shared_lines: int
    shared_percent: int
    unique_modules: int
    unique_lines: int
    unique_percent: int


@dataclass(frozen=True)
class RootStats:
    """Statistics for one root target."""

    target: str
    modules: int
    lines: int
    shared: SharedStats | None = None


def count_lines(path: Path) -> int:
    """Count non-blank lines of ``path``; unreadable files count as zero."""
    try:
        content = read_text(path)
    except (OSError, UnicodeDecodeError) as exc:
        _LOGGER.warning("Cannot read %s: %s", path, exc)
        return 0
    return sum(1 for line in content.splitlines() if line.strip())


def _percent(part: int, total: int) -> int:
    if total == 0:
        return 0
    return int(100.0 * part / total)


class ModuleStats:
    """Compute RootStats for a set of root targets.

    Parameters
    ----------
    oracle
        Build tool adapter.
    settings
        Tool settings; supplies the counted file suffixes.
    max_workers
        Bound for the line-counting worker pool.
    """

    def __init__(
        self,
        oracle: BuildOracle,
        *,
        settings: RefactorSettings = DEFAULT_SETTINGS,
        max_workers: int | None = None,
    ) -> None:
        self._loader = ModuleGraphLoader(oracle, settings)
        self._settings = settings
        self._max_workers = max_workers

    def module_lines(self, module: Module, root: Path) -> int:
        """Return the lines of code of ``module``."""
        files = [
            path
            for path in module.files(root)
            if path.name.endswith(self._settings.stats_file_suffixes)
        ]
        total = 0
        for path in files:
            lines = count_lines(path)
            if lines > self._settings.huge_file_lines:
                _LOGGER.info("Huge file %s with %d lines", path, lines)
            total += lines
        _LOGGER.info("%s has %d files, %d lines of code", module.target, len(files), total)
        return total

    def compute(self, stats_input: StatsInput, root: Path) -> list[RootStats]:
        """Compute statistics for every root of ``stats_input``.

        Returns
        -------
        list[RootStats]
            One entry per root, in input order.
        """
        root = root.resolve()
        allowed = set(stats_input.modules) if stats_input.modules is not None else None
        roots = list(stats_input.project_build_targets)
        modules_by_root: dict[str, set[str]] = {}
        lines_by_target: dict[str, int] = {}
        with stage_span("modules.stats", stage="stats", scope_name=SCOPE_MODULES):
            for target in roots:
                libraries = [
                    module
                    for module in self._loader.query([target]).values()
                    if allowed is None or module.target in allowed
                ]
                modules_by_root[target] = {module.target for module in libraries}
                pending = [module for module in libraries if module.target not in lines_by_target]
                counts = bounded_map(
                    pending,
                    lambda module: self.module_lines(module, root),
                    max_workers=self._max_workers,
                )
                for module, lines in zip(pending, counts, strict=True):
                    lines_by_target.setdefault(module.target, lines)
        compare = len(roots) > 1
        return [
            self._root_stats(target, modules_by_root, lines_by_target, compare=compare)
            for target in roots
        ]

    @staticmethod
    def _root_stats(
        target: str,
        modules_by_root: dict[str, set[str]],
        lines_by_target: dict[str, int],
        *,
        compare: bool,
    ) -> RootStats:
        modules = modules_by_root[target]
        total = sum(lines_by_target.get(module, 0) for module in modules)
        if not compare:
            return RootStats(target=target, modules=len(modules), lines=total)
        others: set[str] = set()
        for other, other_modules in modules_by_root.items():
            if other != target:
                others |= other_modules
        shared = modules & others
        unique = modules - others
        shared_lines = sum(lines_by_target.get(module, 0) for module in shared)
        shared_percent = _percent(shared_lines, total)
        return RootStats(
            target=target,
            modules=len(modules),
            lines=total,
            shared=SharedStats(
                shared_modules=len(shared),
                shared_lines=shared_lines,
                shared_percent=shared_percent,
                unique_modules=len(unique),
                unique_lines=sum(lines_by_target.get(module, 0) for module in unique),
                unique_percent=100 - shared_percent,
            ),
        )


def format_stats(stats: Sequence[RootStats]) -> str:
    """Render statistics in the plain-text report format.

    Returns
    -------
    str
        Report text.
    """
    parts: list[str] = []
    for entry in stats:
        parts.append(f"\n\n{entry.target}\n")
        parts.append(f"Total modules {entry.modules}\n")
        parts.append(f"Total lines of code {entry.lines}\n")
        if entry.shared is not None:
            shared = entry.shared
            parts.append(f"Shared modules {shared.shared_modules}\n")
            parts.append(
                f"Shared modules lines of code {shared.shared_lines} ({shared.shared_percent}%)\n"
            )
            parts.append(f"Unique modules {shared.unique_modules}\n")
            parts.append(
                f"Unique modules lines of code {shared.unique_lines} ({shared.unique_percent}%)\n"
            )
    return "".join(parts)


__all__ = ["ModuleStats", "RootStats", "SharedStats", "count_lines", "format_stats"]
