"""Refactoring engine for Buck-style multi-module native codebases."""

from __future__ import annotations

from buck.build_file import BuildFile, RawTargetBlock
from buck.cleanup import CleanupReport, cleanup_module
from buck.config import CleanupInput, CreateInput, MoveInput, StatsInput, load_input
from buck.create import ModuleCreator
from buck.deps import DependencyMinimizer
from buck.errors import (
    InputError,
    OracleQueryError,
    OracleResponseError,
    RefactorError,
    RootFolderError,
)
from buck.estimate import UsageEstimate, UsageEstimator
from buck.imports import ImportMinimizer
from buck.loader import ModuleGraphLoader
from buck.model import Module
from buck.move import ModuleMover
from buck.oracle import BuildOracle, ShellBuildOracle
from buck.rename import RenameEngine, RenameInput, RenameItem
from buck.settings import DEFAULT_SETTINGS, RefactorSettings, ToolPaths
from buck.stats import ModuleStats, format_stats

__all__ = [
    "DEFAULT_SETTINGS",
    "BuildFile",
    "BuildOracle",
    "CleanupInput",
    "CleanupReport",
    "CreateInput",
    "DependencyMinimizer",
    "ImportMinimizer",
    "InputError",
    "Module",
    "ModuleCreator",
    "ModuleGraphLoader",
    "ModuleMover",
    "ModuleStats",
    "MoveInput",
    "OracleQueryError",
    "OracleResponseError",
    "RawTargetBlock",
    "RefactorError",
    "RefactorSettings",
    "RenameEngine",
    "RenameInput",
    "RenameItem",
    "RootFolderError",
    "ShellBuildOracle",
    "StatsInput",
    "ToolPaths",
    "UsageEstimate",
    "UsageEstimator",
    "cleanup_module",
    "format_stats",
    "load_input",
]
