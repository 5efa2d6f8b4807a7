"""Cleanup orchestration: load, expand, estimate, minimize."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

from buck.config import CleanupInput
from buck.deps import DependencyMinimizer
from buck.errors import RootFolderError
from buck.estimate import EMPTY_ESTIMATE, UsageEstimator, load_parsed_files
from buck.imports import ImportMinimizer
from buck.loader import ModuleGraphLoader
from buck.model import Module
from buck.oracle import BuildOracle
from buck.rename import RenameEngine, RenameInput, RenameItem
from buck.settings import DEFAULT_SETTINGS, RefactorSettings
from obs.otel.scopes import SCOPE_MODULES
from obs.otel.tracing import stage_span
from utils.parallel import bounded_map

_LOGGER = logging.getLogger(__name__)

_UMBRELLA_FILE_TYPES = (".h", ".m", ".mm")


@dataclass
class CleanupReport:
    """Outcome of a cleanup run."""

    processed: list[str] = field(default_factory=list)
    expanded_files: list[str] = field(default_factory=list)
    removed_imports: dict[str, list[str]] = field(default_factory=dict)
    removed_dependencies: dict[str, list[str]] = field(default_factory=dict)

    def summary(self) -> dict[str, int]:
        return {
            "modules": len(self.processed),
            "expanded_files": len(self.expanded_files),
            "removed_imports": sum(len(lines) for lines in self.removed_imports.values()),
            "removed_dependencies": sum(
                len(deps) for deps in self.removed_dependencies.values()
            ),
        }


def umbrella_rename_items(
    modules: Sequence[Module],
    oracle: BuildOracle,
    *,
    max_workers: int | None = None,
) -> list[RenameItem]:
    """Build rename items replacing umbrella imports with individual ones.

    Returns
    -------
    list[RenameItem]
        One item per module whose generated umbrella header lists imports.
    """
    named = [module for module in modules if module.module_name]
    headers = bounded_map(
        named,
        lambda module: oracle.umbrella_headers(f"{module.module_name}.h"),
        max_workers=max_workers,
    )
    items: list[RenameItem] = []
    for module, lines in zip(named, headers, strict=True):
        if not lines:
            continue
        name = module.module_name
        items.append(
            RenameItem(
                original_text=f"#import <{name}/{name}.h>",
                new_text="\n".join(lines).strip(),
                file_types=_UMBRELLA_FILE_TYPES,
            )
        )
    return items


def expand_imports(
    modules: Sequence[Module],
    *,
    oracle: BuildOracle,
    rename: RenameEngine,
    root: Path,
    excluding_paths: Sequence[str] = (),
) -> list[Path]:
    """Replace umbrella imports of ``modules`` across the tree.

    Returns
    -------
    list[Path]
        Files that changed.
    """
    _LOGGER.info("Expanding imports for %d modules", len(modules))
    items = umbrella_rename_items(modules, oracle)
    if not items:
        _LOGGER.info("Nothing to rename")
        return []
    _LOGGER.info("Created %d rename items", len(items))
    rename_input = RenameInput(items=tuple(items), excluding_paths=tuple(excluding_paths))
    return rename.rename(rename_input, root)


def cleanup_module(
    config: CleanupInput,
    root: Path,
    *,
    oracle: BuildOracle,
    settings: RefactorSettings = DEFAULT_SETTINGS,
    rename: RenameEngine | None = None,
    max_workers: int | None = None,
) -> CleanupReport:
    """Run the configured cleanup phases over the module graph.

    Parameters
    ----------
    config
        Cleanup input.
    root
        Project root folder.
    oracle
        Build tool adapter.
    settings
        Tool settings.
    rename
        Rename engine used by import expansion.
    max_workers
        Bound for read-only worker pools.

    Returns
    -------
    CleanupReport
        Processed targets and everything removed.

    Raises
    ------
    RootFolderError
        Raised when ``root`` is not a directory.
    """
    if not root.is_dir():
        msg = f"Root folder {root} does not exist"
        raise RootFolderError(msg)
    root = root.resolve()
    _LOGGER.info("Cleanup module\n%s", config.describe())
    roots = list(config.project_build_targets)
    report = CleanupReport()
    with stage_span(
        "cleanup.run",
        stage="cleanup",
        scope_name=SCOPE_MODULES,
        attributes={"roots": roots},
    ):
        modules = ModuleGraphLoader(oracle, settings).load_ordered(
            roots,
            explicit_modules=config.modules,
            ignore_modules=config.ignore_modules,
        )
        report.processed = [module.target for module in modules]

        imports_config = config.cleanup_imports_config
        deps_config = config.cleanup_buck_config
        ignore_folders = config.ignore_folders or ()
        if imports_config.expand_imports:
            changed = expand_imports(
                modules,
                oracle=oracle,
                rename=rename or RenameEngine(max_workers=max_workers),
                root=root,
                excluding_paths=ignore_folders,
            )
            report.expanded_files = [path.relative_to(root).as_posix() for path in changed]

        estimate_imports = (
            imports_config.reduce_imports and not imports_config.ignore_estimated_imports
        )
        estimate_deps = (
            deps_config.reduce_buck_dependencies and not deps_config.ignore_estimated_dependencies
        )
        estimate = EMPTY_ESTIMATE
        if estimate_imports or estimate_deps:
            parser_path = Path(config.parser_results_path) if config.parser_results_path else None
            estimate = UsageEstimator(settings, root, max_workers=max_workers).estimate(
                modules,
                load_parsed_files(parser_path),
                imports=estimate_imports,
                dependencies=estimate_deps,
            )

        if imports_config.reduce_imports:
            report.removed_imports = ImportMinimizer(
                oracle, settings, root, ignore_folders=ignore_folders
            ).minimize(
                modules,
                root_targets=roots,
                file_types=frozenset(imports_config.file_types),
                estimate=estimate,
            )
        if deps_config.reduce_buck_dependencies:
            report.removed_dependencies = DependencyMinimizer(
                oracle, settings, root, ignore_folders=ignore_folders
            ).minimize(
                modules,
                root_targets=roots,
                estimate=estimate,
            )

    _LOGGER.info("Processing modules:\n%s", "\n".join(report.processed))
    _LOGGER.info("Completed cleaning modules")
    return report


__all__ = ["CleanupReport", "cleanup_module", "expand_imports", "umbrella_rename_items"]
