"""Tests for module graph loading and ordering."""

from __future__ import annotations

import pytest

from buck.errors import OracleQueryError, OracleResponseError
from buck.loader import ModuleGraphLoader, order_modules, parse_query_response
from buck.model import Module
from buck.settings import RefactorSettings
from tests.test_helpers.fake_oracle import FakeBuildOracle
from tests.test_helpers.project import query_entry


def _graph() -> dict[str, dict[str, object]]:
    return {
        "//app:app": query_entry("app", srcs=["main.swift"], deps=["//lib/b:b", "//lib/a:a"]),
        "//lib/a:a": query_entry("a", srcs=["A.swift"], deps=[":gen"]),
        "//lib/a:gen": query_entry("gen"),
        "//lib/b:b": query_entry("b", srcs=["B.swift"], deps=["//lib/a:a"]),
        "//third_party/x:x": query_entry("x", srcs=["X.c"]),
    }


def test_parse_query_response_rejects_non_object() -> None:
    """Ensure a response that is not a target mapping is fatal."""
    with pytest.raises(OracleResponseError):
        parse_query_response("[1, 2]", target="//app:app")
    with pytest.raises(OracleResponseError):
        parse_query_response("not json", target="//app:app")


def test_load_filters_non_source_and_vendored(settings: RefactorSettings) -> None:
    """Ensure targets without files and vendored targets are dropped."""
    oracle = FakeBuildOracle(graphs={"//app:app": _graph()})

    modules = ModuleGraphLoader(oracle, settings).load(["//app:app"])

    assert sorted(modules) == ["//app:app", "//lib/a:a", "//lib/b:b"]
    assert modules["//lib/a:a"].deps == ("//lib/a:gen",)


def test_query_runs_once_per_root_and_first_writer_wins(settings: RefactorSettings) -> None:
    """Ensure merged results keep the first root's entry on collisions."""
    first = {"//lib/a:a": query_entry("a", srcs=["A.swift"])}
    second = {"//lib/a:a": query_entry("a", srcs=["Other.swift"])}
    oracle = FakeBuildOracle(graphs={"//r1:r1": first, "//r2:r2": second})

    merged = ModuleGraphLoader(oracle, settings).query(["//r1:r1", "//r2:r2"])

    assert oracle.queries == ["//r1:r1", "//r2:r2"]
    assert merged["//lib/a:a"].srcs == ("A.swift",)


def test_query_failure_propagates(settings: RefactorSettings) -> None:
    """Ensure a failing dependency query aborts the load."""
    oracle = FakeBuildOracle()

    with pytest.raises(OracleQueryError):
        ModuleGraphLoader(oracle, settings).load(["//missing:missing"])


def test_order_modules_is_leaves_first_and_deterministic() -> None:
    """Ensure every module follows its in-set dependencies."""
    modules = {
        key: Module.from_query(key, attrs)
        for key, attrs in _graph().items()
        if key != "//third_party/x:x"
    }

    order = order_modules(modules)

    assert order.index("//lib/a:a") < order.index("//lib/b:b") < order.index("//app:app")
    assert order == order_modules(dict(reversed(list(modules.items()))))


def test_order_modules_appends_cycles_in_name_order() -> None:
    """Ensure a dependency cycle does not stall ordering."""
    modules = {
        "//c:c": Module(target="//c:c", name="c", deps=("//b:b",)),
        "//b:b": Module(target="//b:b", name="b", deps=("//c:c",)),
        "//a:a": Module(target="//a:a", name="a"),
    }

    assert order_modules(modules) == ["//a:a", "//b:b", "//c:c"]


def test_load_ordered_appends_roots_last(settings: RefactorSettings) -> None:
    """Ensure roots come last even when the sort would place them earlier."""
    oracle = FakeBuildOracle(graphs={"//app:app": _graph()})

    modules = ModuleGraphLoader(oracle, settings).load_ordered(["//app:app"])

    assert [module.target for module in modules] == ["//lib/a:a", "//lib/b:b", "//app:app"]


def test_resolve_explicit_and_ignored_modules(settings: RefactorSettings) -> None:
    """Ensure explicit lists win over the sort and ignored modules are skipped."""
    oracle = FakeBuildOracle(graphs={"//app:app": _graph()})
    loader = ModuleGraphLoader(oracle, settings)
    modules = loader.load(["//app:app"])

    resolved = loader.resolve(
        modules,
        ["//app:app"],
        explicit_modules=["//lib/b:b", "//unknown:unknown", "//lib/a:a"],
        ignore_modules=["//lib/a:a"],
    )

    assert [module.target for module in resolved] == ["//lib/b:b"]
