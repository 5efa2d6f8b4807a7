"""Immutable tool settings threaded through every component.

The denylists, prefix tables and file-type allow-lists live here instead of
module constants so tests and ``buckrefactor.toml`` can substitute them.
"""

from __future__ import annotations

from pathlib import Path

import msgspec

from core_types import NonNegativeFloat, NonNegativeInt
from serde_msgspec import StructBaseStrict


class ToolPaths(StructBaseStrict, frozen=True):
    """External executables and the folder they run in."""

    build_tool: str = "buck"
    formatter: str = "buildifier"
    working_folder: Path = msgspec.field(default_factory=Path)


class RefactorSettings(StructBaseStrict, frozen=True):
    """Static configuration tables for refactoring runs.

    Parameters
    ----------
    build_file_name
        File name of the build-definition file inside a module folder.
    library_rule
        Rule invocation that declares a library target.
    test_library_rule
        Rule invocation that declares a test library target.
    rule_load_path
        Label of the macro file both rules are loaded from.
    import_prefixes
        Line prefixes that mark an import statement eligible for removal.
    module_import_prefixes
        Prefixes stripped from an import line to recover the imported module.
    never_remove_imports
        Core framework imports that are never trialled.
    import_file_suffixes
        File-name suffixes whose imports may be minimized.
    header_suffixes
        Header suffixes; a header change is verified against every root.
    source_suffixes
        Source suffixes listed under ``srcs`` when creating a module.
    stats_file_suffixes
        Suffixes counted by ``stats``.
    reserved_dependencies
        Dependency tokens that are never removed.
    vendored_prefixes
        Target prefixes of vendored or external code, never processed.
    framework_path_prefix
        Prefix stripped from framework entries reported by the query.
    framework_path_suffix
        Suffix stripped from framework entries reported by the query.
    settle_delay_s
        Pause after each persisted build-file write before the next build.
    huge_file_lines
        Line count above which ``stats`` logs a file as huge.
    """

    build_file_name: str = "BUCK"
    library_rule: str = "dbx_apple_library"
    test_library_rule: str = "dbx_apple_test_library"
    rule_load_path: str = "//tools/buck/rules:buck_rule_macros.bzl"
    import_prefixes: tuple[str, ...] = (
        "#import",
        "#include",
        "import",
        "@_implementationOnly import",
        "@testable import",
    )
    module_import_prefixes: tuple[str, ...] = (
        "#import <",
        "import ",
        "@_implementationOnly import ",
        "@testable import ",
    )
    never_remove_imports: tuple[str, ...] = (
        "import Foundation",
        "import UIKit",
        "#import <Foundation/Foundation.h>",
        "#import <UIKit/UIKit.h>",
    )
    import_file_suffixes: tuple[str, ...] = (".h", ".m", ".mm", ".swift")
    header_suffixes: tuple[str, ...] = (".h",)
    source_suffixes: tuple[str, ...] = (".swift", ".m", ".mm")
    stats_file_suffixes: tuple[str, ...] = (
        ".h",
        ".hpp",
        ".c",
        ".cc",
        ".cpp",
        ".swift",
        ".m",
        ".mm",
    )
    reserved_dependencies: tuple[str, ...] = (":cpp",)
    vendored_prefixes: tuple[str, ...] = ("//third_party/",)
    framework_path_prefix: str = "$SDKROOT/System/Library/Frameworks/"
    framework_path_suffix: str = ".framework"
    settle_delay_s: NonNegativeFloat = 5.0
    huge_file_lines: NonNegativeInt = 5000
    tools: ToolPaths = msgspec.field(default_factory=ToolPaths)

    @property
    def rule_names(self) -> tuple[str, ...]:
        """Rule invocations recognized as target blocks."""
        return (self.library_rule, self.test_library_rule)

    def is_header(self, file_name: str) -> bool:
        """Return True when ``file_name`` carries a header suffix."""
        return file_name.endswith(self.header_suffixes)

    def is_vendored(self, target: str) -> bool:
        """Return True when ``target`` lives under a vendored prefix."""
        return target.startswith(self.vendored_prefixes)


DEFAULT_SETTINGS = RefactorSettings()


__all__ = ["DEFAULT_SETTINGS", "RefactorSettings", "ToolPaths"]
