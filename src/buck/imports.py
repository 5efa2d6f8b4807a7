"""Empirical import minimization, one line at a time."""

from __future__ import annotations

import logging
import re
from collections.abc import Collection, Sequence
from pathlib import Path

from buck.estimate import EMPTY_ESTIMATE, UsageEstimate
from buck.model import Module
from buck.oracle import BuildOracle
from buck.paths import is_excluded
from buck.settings import RefactorSettings
from buck.trial import guarded_file
from obs.otel.metrics import record_trial
from obs.otel.scopes import SCOPE_IMPORTS
from obs.otel.tracing import stage_span
from utils.file_io import read_text, write_text

_LOGGER = logging.getLogger(__name__)

_CATEGORY_SEPARATOR_RE = re.compile(r"[+_]")
_INCLUDE_DIRECTIVES = ("#import", "#include")


def _file_order(path: Path) -> int:
    match path.suffix:
        case ".h":
            return 1
        case ".swift":
            return 2
        case _:
            return 3


def paired_import_guards(path: Path) -> tuple[tuple[str, ...], tuple[str, ...]]:
    """Return the prefixes and suffixes of a file's own header imports.

    ``Foo+Private.m`` must keep ``#import "Foo.h"``, ``#import "Foo+Bar.h"``,
    ``#import "Foo_Baz.h"`` and ``#import <M/Foo.h>``.

    Returns
    -------
    tuple[tuple[str, ...], tuple[str, ...]]
        Line prefixes and line suffixes that mark a paired import.
    """
    base = _CATEGORY_SEPARATOR_RE.split(path.stem, maxsplit=1)[0]
    if not base:
        return (), ()
    prefixes = tuple(
        f'{directive} "{base}{separator}'
        for directive in _INCLUDE_DIRECTIVES
        for separator in (".", "+", "_")
    )
    return prefixes, (f"/{base}.h>",)


class ImportMinimizer:
    """Remove import lines that the build proves unnecessary.

    Parameters
    ----------
    oracle
        Build tool adapter.
    settings
        Tool settings; supplies prefixes, denylist and file suffixes.
    root
        Project root folder.
    ignore_folders
        Root-relative path prefixes whose files are never rewritten.
    """

    def __init__(
        self,
        oracle: BuildOracle,
        settings: RefactorSettings,
        root: Path,
        *,
        ignore_folders: Sequence[str] = (),
    ) -> None:
        self._oracle = oracle
        self._settings = settings
        self._root = root.resolve()
        self._ignore_folders = tuple(ignore_folders)

    def is_candidate(
        self,
        line: str,
        *,
        guards: tuple[tuple[str, ...], tuple[str, ...]],
        keep: Collection[str],
    ) -> bool:
        """Return True when ``line`` may be trialled for removal."""
        settings = self._settings
        if not line.startswith(settings.import_prefixes):
            return False
        if line.startswith(settings.never_remove_imports):
            return False
        prefixes, suffixes = guards
        if prefixes and line.startswith(prefixes):
            return False
        if suffixes and line.endswith(suffixes):
            return False
        return line not in keep

    def eligible_files(self, module: Module) -> list[Path]:
        """Return the module's import-bearing files: headers, then Swift, then the rest."""
        files = [
            path
            for path in module.files(self._root)
            if path.name.endswith(self._settings.import_file_suffixes)
            and not is_excluded(path.relative_to(self._root).as_posix(), self._ignore_folders)
        ]
        return sorted(files, key=lambda path: (_file_order(path), str(path)))

    def minimize_file(
        self,
        path: Path,
        *,
        targets: Sequence[str],
        keep: Collection[str] = frozenset(),
    ) -> list[str]:
        """Trial-remove each candidate import of ``path``.

        A removal is kept when ``targets`` still build; otherwise the line is
        reinserted at the same index. The walk never advances past a kept
        removal because the next line has shifted into its place.

        Returns
        -------
        list[str]
            Removed import lines, in removal order.
        """
        _LOGGER.info("Reducing imports for %s", path)
        try:
            original = read_text(path)
        except (UnicodeDecodeError, OSError) as exc:
            _LOGGER.warning("Skipping import reduction for %s: %s", path, exc)
            return []
        removed: list[str] = []
        with guarded_file(path):
            lines = original.split("\n")
            guards = paired_import_guards(path)
            index = 0
            while index < len(lines):
                line = lines[index]
                if not self.is_candidate(line.rstrip("\r"), guards=guards, keep=keep):
                    index += 1
                    continue
                del lines[index]
                write_text(path, "\n".join(lines))
                if not self._oracle.build(targets, no_cache=False):
                    lines.insert(index, line)
                    write_text(path, "\n".join(lines))
                    record_trial("import", kept=False)
                    index += 1
                    continue
                record_trial("import", kept=True)
                removed.append(line.rstrip("\r"))
                _LOGGER.info("Successfully removed %s from %s", line.rstrip("\r"), path)
            if not removed:
                write_text(path, original)
        return removed

    def minimize_module(
        self,
        module: Module,
        *,
        root_targets: Sequence[str],
        file_types: Collection[str],
        estimate: UsageEstimate = EMPTY_ESTIMATE,
    ) -> dict[str, list[str]]:
        """Minimize imports of every eligible file of ``module``.

        Headers are verified against every root target because their imports
        leak into dependents; other files only against the module itself. The
        module is skipped when it does not build before any change.

        Returns
        -------
        dict[str, list[str]]
            Relative file path to removed lines, for files that changed.
        """
        files = self.eligible_files(module)
        if not files:
            return {}
        with stage_span(
            "imports.module",
            stage="reduce_imports",
            scope_name=SCOPE_IMPORTS,
            attributes={"buckrefactor.target": module.target, "files": len(files)},
        ):
            if not self._oracle.build([module.target], no_cache=False):
                _LOGGER.error("Failed to build %s, skipping import reduction", module.target)
                return {}
            results: dict[str, list[str]] = {}
            for path in files:
                if path.suffix.removeprefix(".") not in file_types:
                    _LOGGER.info("Skipped %s, extension not in the file type allow-list", path)
                    continue
                targets = (
                    list(root_targets) if self._settings.is_header(path.name) else [module.target]
                )
                relative = path.relative_to(self._root).as_posix()
                removed = self.minimize_file(
                    path, targets=targets, keep=estimate.imports_for(relative)
                )
                if removed:
                    results[relative] = removed
        _LOGGER.info("Reduced imports for %d files in %s", len(files), module.target)
        return results

    def minimize(
        self,
        modules: Sequence[Module],
        *,
        root_targets: Sequence[str],
        file_types: Collection[str],
        estimate: UsageEstimate = EMPTY_ESTIMATE,
    ) -> dict[str, list[str]]:
        """Minimize imports of ``modules`` in order."""
        _LOGGER.info("Reducing imports for %d modules", len(modules))
        results: dict[str, list[str]] = {}
        for module in modules:
            results.update(
                self.minimize_module(
                    module,
                    root_targets=root_targets,
                    file_types=file_types,
                    estimate=estimate,
                )
            )
        return results


__all__ = ["ImportMinimizer", "paired_import_guards"]
