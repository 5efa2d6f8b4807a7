"""Tests for the usage estimate."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from buck.errors import InputError
from buck.estimate import (
    ParsedFile,
    UsageEstimator,
    imported_module_name,
    load_parsed_files,
    scan_module_imports,
)
from buck.model import Module
from buck.settings import DEFAULT_SETTINGS, RefactorSettings
from tests.test_helpers.project import write_file

_PREFIXES = DEFAULT_SETTINGS.module_import_prefixes


@pytest.mark.parametrize(
    ("line", "expected"),
    [
        ("#import <Logging/Logger.h>", "Logging"),
        ("import Utilities.Strings", "Utilities"),
        ("@testable import Feature", "Feature"),
        ("@_implementationOnly import Hidden", "Hidden"),
        ("  import Foundation  ", "Foundation"),
        ('#import "Local.h"', None),
        ("let x = 1", None),
    ],
)
def test_imported_module_name(line: str, expected: str | None) -> None:
    """Ensure import lines map to the module they name."""
    assert imported_module_name(line, _PREFIXES) == expected


def test_scan_module_imports(tmp_path: Path) -> None:
    """Ensure every imported module across files is collected."""
    first = write_file(tmp_path, "A.swift", "import Foundation\nimport lib_a\n")
    second = write_file(tmp_path, "B.m", '#import <lib_b/B.h>\n#import "Local.h"\n')

    assert scan_module_imports([first, second], _PREFIXES) == {"Foundation", "lib_a", "lib_b"}


def test_load_parsed_files(tmp_path: Path) -> None:
    """Ensure parser output decodes and tolerates extra fields."""
    path = tmp_path / "parsed.json"
    path.write_text(
        json.dumps(
            {
                "files": [
                    {
                        "filePath": "lib/a/A.swift",
                        "definedTypeNames": ["TypeA"],
                        "requiredTypeNames": [],
                        "parserVersion": 2,
                    },
                    {"filePath": "lib/b/B.h", "error": "unsupported syntax"},
                ]
            }
        ),
        encoding="utf-8",
    )

    parsed = load_parsed_files(path)

    assert [item.file_path for item in parsed] == ["lib/a/A.swift", "lib/b/B.h"]
    assert parsed[0].defined_type_names == ("TypeA",)
    assert parsed[1].error == "unsupported syntax"
    assert load_parsed_files(None) == []


def test_load_parsed_files_rejects_malformed_json(tmp_path: Path) -> None:
    """Ensure unreadable parser output is reported as an input error."""
    path = tmp_path / "parsed.json"
    path.write_text("{", encoding="utf-8")

    with pytest.raises(InputError):
        load_parsed_files(path)


def _project(root: Path) -> list[Module]:
    write_file(root, "lib/a/A.swift", "public struct TypeA {}\n")
    write_file(root, "lib/b/B.h", "@interface TypeB\n@end\n")
    write_file(root, "lib/b/B.m", '#import "B.h"\n')
    write_file(root, "app/main.swift", "import Foundation\nimport lib_a\n")
    return [
        Module(target="//lib/a:a", name="a", module_name="lib_a", srcs=("A.swift",)),
        Module(target="//lib/b:b", name="b", srcs=("B.m",), headers=("B.h",)),
        Module(
            target="//app:app",
            name="app",
            srcs=("main.swift",),
            deps=("//lib/a:a", "//lib/b:b"),
        ),
    ]


def _parsed() -> list[ParsedFile]:
    return [
        ParsedFile(file_path="lib/a/A.swift", defined_type_names=("TypeA",)),
        ParsedFile(file_path="lib/b/B.h", defined_type_names=("TypeB",)),
        ParsedFile(file_path="lib/b/B.m", defined_type_names=("TypeA",)),
        ParsedFile(file_path="app/main.swift", required_type_names=("TypeA", "TypeB")),
    ]


def test_estimate_imports_lists_every_spelling(
    tmp_path: Path, settings: RefactorSettings
) -> None:
    """Ensure required types map to every legal import spelling of their file."""
    modules = _project(tmp_path)

    estimate = UsageEstimator(settings, tmp_path, max_workers=2).estimate(modules, _parsed())

    keep = estimate.imports_for("app/main.swift")
    assert "import lib_a" in keep
    assert "#import <lib_a/A.swift>" in keep
    assert '#import "A.swift"' in keep
    assert '#import "B.h"' in keep
    assert "#import <b/B.h>" not in keep
    assert '#import "B.m"' not in keep
    assert estimate.imports_for("lib/a/A.swift") == frozenset()


def test_estimate_dependencies_unions_types_and_imports(
    tmp_path: Path, settings: RefactorSettings
) -> None:
    """Ensure dependency keeps come from required types and scanned imports."""
    modules = _project(tmp_path)
    parsed = [item for item in _parsed() if item.file_path != "app/main.swift"]

    estimate = UsageEstimator(settings, tmp_path).estimate(modules, parsed, imports=False)

    assert estimate.imports == {}
    assert estimate.dependencies_for("//app:app") == frozenset({"//lib/a:a"})
    assert estimate.dependencies_for("//lib/b:b") == frozenset()


def test_estimate_dependencies_excludes_the_module_itself(
    tmp_path: Path, settings: RefactorSettings
) -> None:
    """Ensure a module never lists itself as a kept dependency."""
    modules = _project(tmp_path)

    estimate = UsageEstimator(settings, tmp_path).estimate(modules, _parsed())

    assert estimate.dependencies_for("//app:app") == frozenset({"//lib/a:a", "//lib/b:b"})
    assert "//lib/a:a" not in estimate.dependencies_for("//lib/a:a")


def test_estimate_accepts_absolute_paths_and_unknown_files(
    tmp_path: Path, settings: RefactorSettings
) -> None:
    """Ensure absolute parser paths resolve and unowned files are skipped."""
    modules = _project(tmp_path)
    parsed = [
        ParsedFile(file_path=str(tmp_path / "lib/a/A.swift"), defined_type_names=("TypeA",)),
        ParsedFile(file_path="elsewhere/X.swift", defined_type_names=("TypeX",)),
        ParsedFile(file_path="app/main.swift", required_type_names=("TypeA", "TypeX")),
    ]

    estimate = UsageEstimator(settings, tmp_path).estimate(modules, parsed)

    assert "import lib_a" in estimate.imports_for("app/main.swift")
