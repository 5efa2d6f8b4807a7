"""Tests for the Module model."""

from __future__ import annotations

from pathlib import Path

import pytest

from buck.model import Module


@pytest.mark.parametrize(
    "srcs",
    [
        ["A.swift", "B.swift"],
        {"A.swift": "A.swift", "B.swift": "B.swift"},
        [["A.swift"], ["B.swift"]],
    ],
)
def test_from_query_normalizes_file_list_shapes(srcs: object) -> None:
    """Ensure flat lists, path maps and pair lists all become flat lists."""
    module = Module.from_query("//lib/foo:foo", {"name": "foo", "srcs": srcs})

    assert module.srcs == ("A.swift", "B.swift")


def test_from_query_expands_shorthand_dependencies() -> None:
    """Ensure ``:name`` dependencies are qualified with the module folder."""
    module = Module.from_query(
        "//lib/foo:foo",
        {"name": "foo", "deps": [":bar", "//lib/baz:baz"], "module_name": "lib_foo"},
    )

    assert module.deps == ("//lib/foo:bar", "//lib/baz:baz")
    assert module.module_name == "lib_foo"


def test_from_query_tolerates_unexpected_values() -> None:
    """Ensure unparseable attribute values become empty lists."""
    module = Module.from_query("//lib/foo:foo", {"name": "foo", "srcs": 7, "module_name": 3})

    assert module.srcs == ()
    assert module.module_name is None
    assert not module.has_files


def test_folder_and_build_file_path() -> None:
    """Ensure folder resolution strips the prefix and the target name."""
    module = Module(target="//ios/common/files:files", name="files")

    assert module.folder == "ios/common/files"
    assert module.base_path == "//ios/common/files"
    assert module.build_file_path("BUCK") == "ios/common/files/BUCK"


@pytest.mark.parametrize(
    ("target", "name"),
    [
        ("lib/foo:foo", "foo"),
        ("//lib/foo:foo", "bar"),
        ("//lib/foofoo", "foo"),
    ],
)
def test_invalid_targets_have_no_folder(target: str, name: str) -> None:
    """Ensure malformed targets are excluded from folder resolution."""
    module = Module(target=target, name=name)

    assert module.folder is None
    assert module.build_file_path("BUCK") is None


def test_public_name_prefers_declared_module_name() -> None:
    """Ensure the declared module name wins over the single-language rule."""
    declared = Module(target="//a:a", name="a", module_name="lib_a", srcs=("A.swift",))
    swift_only = Module(target="//b:b", name="b", srcs=("B.swift", "C.swift"))
    mixed = Module(target="//c:c", name="c", srcs=("C.swift", "D.m"))
    with_headers = Module(target="//d:d", name="d", srcs=("D.m",), headers=("D.h",))

    assert declared.public_name == "lib_a"
    assert swift_only.public_name == "b"
    assert mixed.public_name is None
    assert with_headers.public_name is None


def test_files_returns_existing_sorted_unique(tmp_path: Path) -> None:
    """Ensure only files present on disk are returned, once each."""
    folder = tmp_path / "lib" / "foo"
    folder.mkdir(parents=True)
    (folder / "B.m").write_text("", encoding="utf-8")
    (folder / "A.h").write_text("", encoding="utf-8")
    module = Module(
        target="//lib/foo:foo",
        name="foo",
        srcs=("B.m", "Missing.m"),
        headers=("A.h",),
        exported_headers=("A.h",),
    )

    assert module.files(tmp_path) == [folder / "A.h", folder / "B.m"]
