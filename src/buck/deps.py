"""Empirical dependency-edge minimization on build-definition files."""

from __future__ import annotations

import logging
import time
from collections.abc import Collection, Sequence
from pathlib import Path
from typing import Literal

from buck.build_file import BuildFile, RawTargetBlock
from buck.estimate import EMPTY_ESTIMATE, UsageEstimate
from buck.model import Module
from buck.oracle import BuildOracle
from buck.paths import is_excluded
from buck.settings import RefactorSettings
from buck.trial import guarded_file
from obs.otel.metrics import record_trial
from obs.otel.scopes import SCOPE_DEPS
from obs.otel.tracing import stage_span
from utils.file_io import read_text, write_text

_LOGGER = logging.getLogger(__name__)

type DependencyField = Literal["exported_deps", "deps"]

# Exported edges are trialled before plain ones.
_FIELDS: tuple[DependencyField, ...] = ("exported_deps", "deps")


class DependencyMinimizer:
    """Remove dependency edges that the build proves unnecessary.

    Parameters
    ----------
    oracle
        Build tool adapter.
    settings
        Tool settings; supplies rule names, reserved tokens and settle delay.
    root
        Project root folder.
    ignore_folders
        Root-relative path prefixes whose build files are never rewritten.
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

    def _normalize(self, module: Module, dependency: str) -> str:
        if dependency.startswith(":"):
            return f"{module.base_path}{dependency}"
        return dependency

    def _should_process(
        self,
        module: Module,
        dependency: str,
        *,
        keep: Collection[str],
        valid: Collection[str],
    ) -> bool:
        if dependency in self._settings.reserved_dependencies:
            return False
        normalized = self._normalize(module, dependency)
        if normalized in keep:
            return False
        return normalized in valid

    def _persist(self, path: Path, build_file: BuildFile) -> None:
        write_text(path, build_file.render())
        self._oracle.format_build_file(path)
        if self._settings.settle_delay_s:
            time.sleep(self._settings.settle_delay_s)

    def _reduce_field(
        self,
        module: Module,
        field_name: DependencyField,
        *,
        block: RawTargetBlock,
        build_file: BuildFile,
        path: Path,
        root_targets: Sequence[str],
        keep: Collection[str],
        valid: Collection[str],
    ) -> list[str]:
        values: list[str] = getattr(block, field_name)
        removed: list[str] = []
        index = 0
        while index < len(values):
            dependency = values[index]
            if not self._should_process(module, dependency, keep=keep, valid=valid):
                index += 1
                continue
            del values[index]
            setattr(block, field_name, values)
            self._persist(path, build_file)
            if not self._oracle.build(root_targets, no_cache=True):
                values.insert(index, dependency)
                setattr(block, field_name, values)
                self._persist(path, build_file)
                record_trial("dependency", kept=False)
                index += 1
                continue
            record_trial("dependency", kept=True)
            removed.append(self._normalize(module, dependency))
            _LOGGER.info("Successfully removed %s from %s", dependency, module.target)
        return removed

    def minimize_module(
        self,
        module: Module,
        *,
        root_targets: Sequence[str],
        valid: Collection[str],
        keep: Collection[str] = frozenset(),
    ) -> list[str]:
        """Trial-remove each eligible dependency edge of ``module``.

        Every trial re-renders the whole build file, runs the formatter, waits
        the settle delay and builds all roots with caching disabled. The file
        is restored byte-for-byte when nothing was removed.

        Returns
        -------
        list[str]
            Removed dependency targets, normalized.
        """
        relative = module.build_file_path(self._settings.build_file_name)
        if relative is None:
            _LOGGER.error("Missing build file for %s, skipping dependency reduction", module.target)
            return []
        if is_excluded(relative, self._ignore_folders):
            _LOGGER.info("Skipped %s, build file is in an ignored folder", module.target)
            return []
        path = self._root / relative
        if not path.is_file():
            _LOGGER.error("Build file %s for %s does not exist", path, module.target)
            return []
        try:
            original = read_text(path)
        except (UnicodeDecodeError, OSError) as exc:
            _LOGGER.error("Could not read %s for %s: %s", path, module.target, exc)
            return []
        if not original:
            return []
        build_file = BuildFile.parse(
            module.folder or "", original, rule_names=self._settings.rule_names
        )
        block = build_file.block(module.target)
        if block is None:
            _LOGGER.error(
                "Missing target block for %s, skipping dependency reduction", module.target
            )
            return []
        removed: list[str] = []
        with (
            stage_span(
                "deps.module",
                stage="reduce_deps",
                scope_name=SCOPE_DEPS,
                attributes={"buckrefactor.target": module.target},
            ),
            guarded_file(path) as original_bytes,
        ):
            for field_name in _FIELDS:
                removed.extend(
                    self._reduce_field(
                        module,
                        field_name,
                        block=block,
                        build_file=build_file,
                        path=path,
                        root_targets=root_targets,
                        keep=keep,
                        valid=valid,
                    )
                )
            if not removed:
                path.write_bytes(original_bytes)
                return []
        _LOGGER.info("Reduced dependencies for %s", module.target)
        return removed

    def minimize(
        self,
        modules: Sequence[Module],
        *,
        root_targets: Sequence[str],
        estimate: UsageEstimate = EMPTY_ESTIMATE,
    ) -> dict[str, list[str]]:
        """Minimize dependencies of ``modules`` in order.

        Nothing is touched unless ``root_targets`` build first.

        Returns
        -------
        dict[str, list[str]]
            Target to removed dependencies, for modules that changed.
        """
        _LOGGER.info("Reducing dependencies for %d modules", len(modules))
        if not self._oracle.build(root_targets, no_cache=False):
            _LOGGER.error("Failed to build %s, skipping dependency reduction", list(root_targets))
            return {}
        valid = frozenset(module.target for module in modules)
        results: dict[str, list[str]] = {}
        for module in modules:
            removed = self.minimize_module(
                module,
                root_targets=root_targets,
                valid=valid,
                keep=estimate.dependencies_for(module.target),
            )
            if removed:
                results[module.target] = removed
        return results


__all__ = ["DependencyMinimizer"]
