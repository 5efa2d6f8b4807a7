"""Tests for empirical import minimization."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from buck.estimate import UsageEstimate
from buck.imports import ImportMinimizer, paired_import_guards
from buck.model import Module
from buck.settings import RefactorSettings
from tests.test_helpers.fake_oracle import FakeBuildOracle
from tests.test_helpers.project import write_file

_ROOTS = ["//app:app"]
_ALL_TYPES = frozenset({"h", "m", "swift"})

_HEADER = (
    '#import <Foundation/Foundation.h>\n#import "Bar.h"\n#import "Unused.h"\n'
    "\n@interface Foo\n@end\n"
)
_SOURCE = (
    '#import "Foo.h"\n#import "Unused.h"\n#import "Needed.h"\n'
    "\n@implementation Foo\n@end\n"
)
_SWIFT = "import Foundation\nimport Unused\nimport Needed\n\nstruct S {}\n"


def _module() -> Module:
    return Module(
        target="//lib/foo:foo",
        name="foo",
        srcs=("Foo.m", "Foo.swift"),
        headers=("Foo.h",),
    )


def _write_project(root: Path) -> dict[str, Path]:
    return {
        "h": write_file(root, "lib/foo/Foo.h", _HEADER),
        "m": write_file(root, "lib/foo/Foo.m", _SOURCE),
        "swift": write_file(root, "lib/foo/Foo.swift", _SWIFT),
    }


def _needs(files: dict[str, Path]) -> FakeBuildOracle:
    required = {
        "h": ('#import "Bar.h"',),
        "m": ('#import "Needed.h"',),
        "swift": ("import Needed", "import Foundation"),
    }

    def _predicate(_targets: Sequence[str], _no_cache: bool) -> bool:
        return all(
            needle in files[kind].read_text(encoding="utf-8")
            for kind, needles in required.items()
            for needle in needles
        )

    return FakeBuildOracle(predicate=_predicate)


def test_paired_import_guards_cover_categories() -> None:
    """Ensure a file's own header and category headers are guarded."""
    prefixes, suffixes = paired_import_guards(Path("Foo+Private.m"))

    assert '#import "Foo.' in prefixes
    assert '#import "Foo+' in prefixes
    assert '#include "Foo_' in prefixes
    assert suffixes == ("/Foo.h>",)


def test_minimize_module_removes_only_unneeded_imports(
    tmp_path: Path, settings: RefactorSettings
) -> None:
    """Ensure removals stick only when the build still passes."""
    files = _write_project(tmp_path)
    oracle = _needs(files)

    removed = ImportMinimizer(oracle, settings, tmp_path).minimize_module(
        _module(), root_targets=_ROOTS, file_types=_ALL_TYPES
    )

    assert removed == {
        "lib/foo/Foo.h": ['#import "Unused.h"'],
        "lib/foo/Foo.swift": ["import Unused"],
        "lib/foo/Foo.m": ['#import "Unused.h"'],
    }
    assert files["h"].read_text(encoding="utf-8") == (
        '#import <Foundation/Foundation.h>\n#import "Bar.h"\n\n@interface Foo\n@end\n'
    )
    assert files["m"].read_text(encoding="utf-8") == (
        '#import "Foo.h"\n#import "Needed.h"\n\n@implementation Foo\n@end\n'
    )
    assert files["swift"].read_text(encoding="utf-8") == (
        "import Foundation\nimport Needed\n\nstruct S {}\n"
    )


def test_header_trials_build_every_root(tmp_path: Path, settings: RefactorSettings) -> None:
    """Ensure header edits verify all roots and other files only the module."""
    files = _write_project(tmp_path)
    oracle = _needs(files)

    ImportMinimizer(oracle, settings, tmp_path).minimize_module(
        _module(), root_targets=_ROOTS, file_types=_ALL_TYPES
    )

    precheck, *trials = oracle.builds
    assert precheck == (("//lib/foo:foo",), False)
    assert trials[:2] == [(("//app:app",), False), (("//app:app",), False)]
    assert all(targets == ("//lib/foo:foo",) for targets, _ in trials[2:])
    assert all(not no_cache for _, no_cache in trials)


def test_core_framework_and_self_imports_are_never_trialled(
    tmp_path: Path, settings: RefactorSettings
) -> None:
    """Ensure denylisted and paired imports stay even when every build passes."""
    files = _write_project(tmp_path)
    swift_snapshots: list[str] = []
    source_snapshots: list[str] = []

    def _record(_targets: Sequence[str], _no_cache: bool) -> bool:
        swift_snapshots.append(files["swift"].read_text(encoding="utf-8"))
        source_snapshots.append(files["m"].read_text(encoding="utf-8"))
        return True

    oracle = FakeBuildOracle(predicate=_record)

    ImportMinimizer(oracle, settings, tmp_path).minimize_module(
        _module(), root_targets=_ROOTS, file_types=_ALL_TYPES
    )

    assert all("import Foundation\n" in text for text in swift_snapshots)
    assert all('#import "Foo.h"' in text for text in source_snapshots)
    assert files["swift"].read_text(encoding="utf-8").startswith("import Foundation\n")
    assert files["m"].read_text(encoding="utf-8").startswith('#import "Foo.h"\n')
    assert "#import <Foundation/Foundation.h>" in files["h"].read_text(encoding="utf-8")


def test_failed_trials_restore_original_bytes(tmp_path: Path, settings: RefactorSettings) -> None:
    """Ensure a file whose trials all fail is left byte-for-byte unchanged."""
    path = write_file(tmp_path, "lib/foo/Foo.swift", "")
    path.write_bytes(b"import A\r\nimport B\r\n\r\nstruct S {}\r\n")
    module = Module(target="//lib/foo:foo", name="foo", srcs=("Foo.swift",))
    builds = iter([True])
    oracle = FakeBuildOracle(predicate=lambda _targets, _no_cache: next(builds, False))

    removed = ImportMinimizer(oracle, settings, tmp_path).minimize_module(
        module, root_targets=_ROOTS, file_types=_ALL_TYPES
    )

    assert removed == {}
    assert path.read_bytes() == b"import A\r\nimport B\r\n\r\nstruct S {}\r\n"


def test_crlf_line_endings_survive_removal(tmp_path: Path, settings: RefactorSettings) -> None:
    """Ensure removing a line keeps the remaining line endings."""
    path = write_file(tmp_path, "lib/foo/Foo.swift", "")
    path.write_bytes(b"import A\r\nimport B\r\n")
    module = Module(target="//lib/foo:foo", name="foo", srcs=("Foo.swift",))

    def _needs_b(_targets: Sequence[str], _no_cache: bool) -> bool:
        return b"import B" in path.read_bytes()

    oracle = FakeBuildOracle(predicate=_needs_b)

    ImportMinimizer(oracle, settings, tmp_path).minimize_module(
        module, root_targets=_ROOTS, file_types=_ALL_TYPES
    )

    assert path.read_bytes() == b"import B\r\n"


def test_module_precheck_failure_skips_module(tmp_path: Path, settings: RefactorSettings) -> None:
    """Ensure a module that does not build is left alone."""
    files = _write_project(tmp_path)
    oracle = FakeBuildOracle(predicate=lambda _targets, _no_cache: False)

    removed = ImportMinimizer(oracle, settings, tmp_path).minimize_module(
        _module(), root_targets=_ROOTS, file_types=_ALL_TYPES
    )

    assert removed == {}
    assert len(oracle.builds) == 1
    assert files["h"].read_text(encoding="utf-8") == _HEADER


def test_file_types_and_estimate_limit_candidates(
    tmp_path: Path, settings: RefactorSettings
) -> None:
    """Ensure only allow-listed files are edited and estimated imports are kept."""
    files = _write_project(tmp_path)
    oracle = FakeBuildOracle()
    estimate = UsageEstimate(imports={"lib/foo/Foo.swift": frozenset({"import Unused"})})

    removed = ImportMinimizer(oracle, settings, tmp_path).minimize_module(
        _module(), root_targets=_ROOTS, file_types=frozenset({"swift"}), estimate=estimate
    )

    assert removed == {"lib/foo/Foo.swift": ["import Needed"]}
    assert files["swift"].read_text(encoding="utf-8") == (
        "import Foundation\nimport Unused\n\nstruct S {}\n"
    )
    assert files["h"].read_text(encoding="utf-8") == _HEADER
    assert files["m"].read_text(encoding="utf-8") == _SOURCE


def test_second_run_is_a_fixed_point(tmp_path: Path, settings: RefactorSettings) -> None:
    """Ensure rerunning on a minimized module removes nothing more."""
    files = _write_project(tmp_path)
    oracle = _needs(files)
    minimizer = ImportMinimizer(oracle, settings, tmp_path)
    minimizer.minimize([_module()], root_targets=_ROOTS, file_types=_ALL_TYPES)
    first = {kind: path.read_text(encoding="utf-8") for kind, path in files.items()}

    removed = minimizer.minimize([_module()], root_targets=_ROOTS, file_types=_ALL_TYPES)

    assert removed == {}
    assert {kind: path.read_text(encoding="utf-8") for kind, path in files.items()} == first
    for kind, original in (("h", _HEADER), ("m", _SOURCE), ("swift", _SWIFT)):
        assert set(first[kind].splitlines()) <= set(original.splitlines())


def test_undecodable_file_is_skipped(tmp_path: Path, settings: RefactorSettings) -> None:
    """Ensure a file that is not UTF-8 is left alone while its siblings are minimized."""
    bad = tmp_path / "lib" / "foo" / "Bad.m"
    bad.parent.mkdir(parents=True)
    bad.write_bytes(b'#import "Unused.h"\n\xff\xfe\n')
    good = write_file(tmp_path, "lib/foo/Good.swift", "import Foundation\nimport Unused\n")
    module = Module(target="//lib/foo:foo", name="foo", srcs=("Bad.m", "Good.swift"))

    removed = ImportMinimizer(FakeBuildOracle(), settings, tmp_path).minimize_module(
        module, root_targets=_ROOTS, file_types=_ALL_TYPES
    )

    assert removed == {"lib/foo/Good.swift": ["import Unused"]}
    assert good.read_text(encoding="utf-8") == "import Foundation\n"
    assert bad.read_bytes() == b'#import "Unused.h"\n\xff\xfe\n'


def test_ignored_folders_are_never_rewritten(tmp_path: Path, settings: RefactorSettings) -> None:
    """Ensure files under an ignored folder are not trialled."""
    vendored = write_file(tmp_path, "vendor/v/V.swift", "import Unused\n")
    module = Module(target="//vendor/v:v", name="v", srcs=("V.swift",))
    oracle = FakeBuildOracle()

    removed = ImportMinimizer(
        oracle, settings, tmp_path, ignore_folders=("vendor",)
    ).minimize_module(module, root_targets=_ROOTS, file_types=_ALL_TYPES)

    assert removed == {}
    assert oracle.builds == []
    assert vendored.read_text(encoding="utf-8") == "import Unused\n"
