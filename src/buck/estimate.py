"""Usage estimate derived from type-parser output.

The estimate names import lines and dependency edges that are known to be
needed, so the minimizers never spend a build on them.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

from buck.config import load_input
from buck.model import Module
from buck.settings import RefactorSettings
from obs.otel.scopes import SCOPE_ESTIMATE
from obs.otel.tracing import stage_span
from serde_msgspec import StructBaseCompat
from utils.file_io import read_text
from utils.parallel import bounded_map

_LOGGER = logging.getLogger(__name__)

_MODULE_SEPARATOR_RE = re.compile(r"[./]")


class ParsedFile(StructBaseCompat, frozen=True, rename="camel"):
    """Types defined and required by one source file."""

    file_path: str
    defined_type_names: tuple[str, ...] = ()
    required_type_names: tuple[str, ...] = ()
    error: str | None = None


class ParserOutput(StructBaseCompat, frozen=True):
    """Top-level parser results document."""

    files: tuple[ParsedFile, ...] = ()


def load_parsed_files(path: Path | None) -> list[ParsedFile]:
    """Load parser results, or return nothing when no path is configured."""
    if path is None:
        _LOGGER.warning(
            "No parser results configured; run the parser first to speed up minimization"
        )
        return []
    output = load_input(path, target_type=ParserOutput)
    _LOGGER.info("Loaded %d parsed files from %s", len(output.files), path)
    return list(output.files)


def imported_module_name(line: str, prefixes: Sequence[str]) -> str | None:
    """Return the module named by an import line, if the line imports one.

    ``#import <M/F.h>``, ``import M.F`` and ``@testable import M`` all yield
    ``M``. Quoted includes name no module.
    """
    stripped = line.strip()
    matching = [prefix for prefix in prefixes if stripped.startswith(prefix)]
    if not matching:
        return None
    remainder = stripped[len(max(matching, key=len)) :]
    for part in _MODULE_SEPARATOR_RE.split(remainder):
        candidate = part.strip().rstrip(">").strip()
        if candidate:
            return candidate
    return None


def scan_module_imports(paths: Iterable[Path], prefixes: Sequence[str]) -> set[str]:
    """Collect module names imported by any of ``paths``.

    Returns
    -------
    set[str]
        Imported module names.
    """
    names: set[str] = set()
    for path in paths:
        try:
            content = read_text(path)
        except (UnicodeDecodeError, OSError) as exc:
            _LOGGER.warning("Skipping import scan of %s: %s", path, exc)
            continue
        for line in content.splitlines():
            name = imported_module_name(line, prefixes)
            if name is not None:
                names.add(name)
    return names


@dataclass(frozen=True)
class UsageEstimate:
    """Never-remove sets keyed by file path and by target."""

    imports: Mapping[str, frozenset[str]] = field(default_factory=dict)
    dependencies: Mapping[str, frozenset[str]] = field(default_factory=dict)

    def imports_for(self, relative_path: str) -> frozenset[str]:
        return self.imports.get(relative_path, frozenset())

    def dependencies_for(self, target: str) -> frozenset[str]:
        return self.dependencies.get(target, frozenset())


EMPTY_ESTIMATE = UsageEstimate()


def _import_spellings(file_name: str, public_name: str | None) -> tuple[str, ...]:
    if public_name is None:
        return (f'#import "{file_name}"',)
    return (
        f'#import "{file_name}"',
        f"#import <{public_name}/{file_name}>",
        f"import {public_name}.{file_name}",
        f"import {public_name}",
    )


class UsageEstimator:
    """Build a UsageEstimate for a set of modules.

    Parameters
    ----------
    settings
        Tool settings; supplies the module import prefixes.
    root
        Project root folder.
    max_workers
        Bound for the file-resolution worker pool.
    """

    def __init__(
        self,
        settings: RefactorSettings,
        root: Path,
        *,
        max_workers: int | None = None,
    ) -> None:
        self._settings = settings
        self._root = root.resolve()
        self._max_workers = max_workers

    def relative_path(self, path: Path | str) -> str:
        """Return ``path`` relative to the root in POSIX form."""
        candidate = Path(path)
        if candidate.is_absolute():
            try:
                candidate = candidate.relative_to(self._root)
            except ValueError:
                return candidate.as_posix()
        return PurePosixPath(candidate.as_posix()).as_posix()

    def module_files(self, modules: Sequence[Module]) -> dict[str, list[Path]]:
        """Resolve every module's files over the worker pool.

        Returns
        -------
        dict[str, list[Path]]
            Target to existing files, sorted by path.
        """
        resolved = bounded_map(
            modules,
            lambda module: module.files(self._root),
            max_workers=self._max_workers,
        )
        return {module.target: files for module, files in zip(modules, resolved, strict=True)}

    def _owners(
        self, modules: Sequence[Module], files_by_target: Mapping[str, list[Path]]
    ) -> dict[str, tuple[Module, Path]]:
        owners: dict[str, tuple[Module, Path]] = {}
        for module in modules:
            for path in files_by_target.get(module.target, []):
                owners[self.relative_path(path)] = (module, path)
        return owners

    def estimate_imports(
        self,
        parsed_files: Sequence[ParsedFile],
        owners: Mapping[str, tuple[Module, Path]],
    ) -> dict[str, frozenset[str]]:
        """Map each parsed file to the import lines it must keep.

        The first file to define a type wins; later definitions are logged
        and dropped.

        Returns
        -------
        dict[str, frozenset[str]]
            Relative file path to never-remove import lines.
        """
        spellings_by_type: dict[str, tuple[str, ...]] = {}
        for parsed in parsed_files:
            if parsed.error:
                _LOGGER.warning("Parser reported %r for %s", parsed.error, parsed.file_path)
            key = self.relative_path(parsed.file_path)
            owner = owners.get(key)
            if owner is None:
                _LOGGER.error("Missing module for %s", parsed.file_path)
                continue
            module, path = owner
            spellings = _import_spellings(path.name, module.public_name)
            for type_name in parsed.defined_type_names:
                if type_name in spellings_by_type:
                    _LOGGER.error("Found duplicate entry for %s in %s", type_name, key)
                    continue
                spellings_by_type[type_name] = spellings
        estimate: dict[str, frozenset[str]] = {}
        for parsed in parsed_files:
            required = {
                spelling
                for type_name in parsed.required_type_names
                for spelling in spellings_by_type.get(type_name, ())
            }
            estimate[self.relative_path(parsed.file_path)] = frozenset(required)
        return estimate

    def estimate_dependencies(
        self,
        modules: Sequence[Module],
        parsed_files: Sequence[ParsedFile],
        owners: Mapping[str, tuple[Module, Path]],
        files_by_target: Mapping[str, list[Path]],
    ) -> dict[str, frozenset[str]]:
        """Map each module to the dependency targets it must keep.

        A dependency is kept when the module requires a type that it defines
        or when one of the module's files imports it by public name.

        Returns
        -------
        dict[str, frozenset[str]]
            Target to never-remove dependency targets.
        """
        defining_target: dict[str, str] = {}
        required_by_target: dict[str, set[str]] = {}
        for parsed in parsed_files:
            owner = owners.get(self.relative_path(parsed.file_path))
            if owner is None:
                continue
            target = owner[0].target
            for type_name in parsed.defined_type_names:
                defining_target.setdefault(type_name, target)
            required_by_target.setdefault(target, set()).update(parsed.required_type_names)

        target_by_name = {
            module.module_name: module.target for module in modules if module.module_name
        }
        prefixes = self._settings.module_import_prefixes
        imported = bounded_map(
            modules,
            lambda module: scan_module_imports(files_by_target.get(module.target, []), prefixes),
            max_workers=self._max_workers,
        )
        estimate: dict[str, frozenset[str]] = {}
        for module, names in zip(modules, imported, strict=True):
            keep = {
                defining_target[type_name]
                for type_name in required_by_target.get(module.target, ())
                if type_name in defining_target
            }
            keep.update(target_by_name[name] for name in names if name in target_by_name)
            keep.discard(module.target)
            estimate[module.target] = frozenset(keep)
        return estimate

    def estimate(
        self,
        modules: Sequence[Module],
        parsed_files: Sequence[ParsedFile],
        *,
        imports: bool = True,
        dependencies: bool = True,
    ) -> UsageEstimate:
        """Compute the requested halves of the usage estimate.

        Returns
        -------
        UsageEstimate
            Read-only estimate.
        """
        with stage_span(
            "estimate.build",
            stage="estimate",
            scope_name=SCOPE_ESTIMATE,
            attributes={"modules": len(modules), "parsed_files": len(parsed_files)},
        ):
            files_by_target = self.module_files(modules)
            owners = self._owners(modules, files_by_target)
            import_estimate = self.estimate_imports(parsed_files, owners) if imports else {}
            dependency_estimate = (
                self.estimate_dependencies(modules, parsed_files, owners, files_by_target)
                if dependencies
                else {}
            )
        _LOGGER.info(
            "Estimated imports for %d files and dependencies for %d modules",
            len(import_estimate),
            len(dependency_estimate),
        )
        return UsageEstimate(imports=import_estimate, dependencies=dependency_estimate)


__all__ = [
    "EMPTY_ESTIMATE",
    "ParsedFile",
    "ParserOutput",
    "UsageEstimate",
    "UsageEstimator",
    "imported_module_name",
    "load_parsed_files",
    "scan_module_imports",
]
