"""Tests for module statistics."""

from __future__ import annotations

from pathlib import Path

import msgspec
import pytest

from buck.config import StatsInput
from buck.settings import RefactorSettings
from buck.stats import ModuleStats, RootStats, SharedStats, count_lines, format_stats
from tests.test_helpers.fake_oracle import FakeBuildOracle
from tests.test_helpers.project import query_entry, write_file


def _oracle() -> FakeBuildOracle:
    shared = query_entry("shared", srcs=["S.swift", "notes.txt"])
    return FakeBuildOracle(
        graphs={
            "//app1:app1": {
                "//app1:app1": query_entry("app1", srcs=["Main.swift"]),
                "//lib/shared:shared": shared,
            },
            "//app2:app2": {
                "//app2:app2": query_entry("app2", srcs=["Main.swift"]),
                "//lib/shared:shared": shared,
            },
        }
    )


def _project(root: Path) -> None:
    write_file(root, "app1/Main.swift", "import shared\n\nlet a = 1\nlet b = 2\n")
    write_file(root, "app2/Main.swift", "import shared\n")
    shared_source = "".join(f"let v{index} = {index}\n" for index in range(6))
    write_file(root, "lib/shared/S.swift", shared_source)
    write_file(root, "lib/shared/notes.txt", "not code\n" * 10)


def test_count_lines_skips_blank_and_unreadable(tmp_path: Path) -> None:
    """Ensure blank lines and unreadable files do not count."""
    path = write_file(tmp_path, "A.swift", "a\n\n   \nb\n")

    assert count_lines(path) == 2
    assert count_lines(tmp_path / "missing.swift") == 0


def test_single_root_has_no_comparison(tmp_path: Path, settings: RefactorSettings) -> None:
    """Ensure a lone root reports totals only."""
    _project(tmp_path)

    stats = ModuleStats(_oracle(), settings=settings).compute(
        StatsInput(project_build_targets=("//app1:app1",)), tmp_path
    )

    assert stats == [RootStats(target="//app1:app1", modules=2, lines=9)]
    assert format_stats(stats) == "\n\n//app1:app1\nTotal modules 2\nTotal lines of code 9\n"


def test_multiple_roots_split_shared_and_unique(
    tmp_path: Path, settings: RefactorSettings
) -> None:
    """Ensure each root is compared against the union of the others."""
    _project(tmp_path)

    first, second = ModuleStats(_oracle(), settings=settings, max_workers=2).compute(
        StatsInput(project_build_targets=("//app1:app1", "//app2:app2")), tmp_path
    )

    assert first.shared == SharedStats(
        shared_modules=1,
        shared_lines=6,
        shared_percent=66,
        unique_modules=1,
        unique_lines=3,
        unique_percent=34,
    )
    assert second.lines == 7
    assert second.shared is not None
    assert second.shared.shared_percent == 85
    assert second.shared.unique_percent == 15
    assert format_stats([first]) == (
        "\n\n//app1:app1\n"
        "Total modules 2\n"
        "Total lines of code 9\n"
        "Shared modules 1\n"
        "Shared modules lines of code 6 (66%)\n"
        "Unique modules 1\n"
        "Unique modules lines of code 3 (34%)\n"
    )


def test_allow_list_restricts_modules(tmp_path: Path, settings: RefactorSettings) -> None:
    """Ensure only allow-listed modules are analyzed."""
    _project(tmp_path)

    stats = ModuleStats(_oracle(), settings=settings).compute(
        StatsInput(project_build_targets=("//app1:app1",), modules=("//lib/shared:shared",)),
        tmp_path,
    )

    assert stats == [RootStats(target="//app1:app1", modules=1, lines=6)]


def test_empty_roots_report_zero_percent(tmp_path: Path, settings: RefactorSettings) -> None:
    """Ensure roots without lines of code do not divide by zero."""
    stats = ModuleStats(_oracle(), settings=settings).compute(
        StatsInput(project_build_targets=("//app1:app1", "//app2:app2")), tmp_path
    )

    assert all(entry.lines == 0 for entry in stats)
    assert all(entry.shared is not None and entry.shared.shared_percent == 0 for entry in stats)


def test_huge_files_are_logged(
    tmp_path: Path, settings: RefactorSettings, caplog: pytest.LogCaptureFixture
) -> None:
    """Ensure files over the size threshold are reported."""
    _project(tmp_path)
    tight = msgspec.structs.replace(settings, huge_file_lines=5)

    ModuleStats(_oracle(), settings=tight).compute(
        StatsInput(project_build_targets=("//app1:app1",)), tmp_path
    )

    assert "Huge file" in caplog.text
    assert "S.swift" in caplog.text
