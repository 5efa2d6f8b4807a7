"""Load and order the module graph reachable from root targets."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence

import msgspec

from buck.errors import OracleResponseError
from buck.model import Module
from buck.oracle import BuildOracle
from buck.settings import RefactorSettings
from obs.otel.scopes import SCOPE_LOADER
from obs.otel.tracing import stage_span
from serde_msgspec import loads_json

_LOGGER = logging.getLogger(__name__)

QueryResponse = dict[str, dict[str, object]]


def parse_query_response(payload: str, *, target: str) -> dict[str, Module]:
    """Decode a dependency query response into modules keyed by target.

    Raises
    ------
    OracleResponseError
        Raised when the payload is not a JSON object of attribute objects.

    Returns
    -------
    dict[str, Module]
        Modules keyed by target string.
    """
    try:
        decoded = loads_json(payload, target_type=QueryResponse)
    except msgspec.DecodeError as exc:
        msg = f"Invalid dependency query response for {target}: {exc}"
        raise OracleResponseError(msg) from exc
    return {key: Module.from_query(key, attrs) for key, attrs in decoded.items()}


def order_modules(modules: Mapping[str, Module]) -> list[str]:
    """Order targets so each one follows every in-set dependency.

    Candidates are visited in lexicographic order, which makes the result
    stable across runs. A cycle stalls the walk; the remaining targets are
    logged and appended in lexicographic order.

    Returns
    -------
    list[str]
        Targets, leaves first.
    """
    unprocessed = set(modules)
    ordered: list[str] = []
    while unprocessed:
        progressed = False
        for key in sorted(unprocessed):
            if unprocessed.intersection(modules[key].deps):
                continue
            ordered.append(key)
            unprocessed.discard(key)
            progressed = True
        if not progressed:
            remaining = sorted(unprocessed)
            _LOGGER.warning("Dependency cycle among %s, appending in name order", remaining)
            ordered.extend(remaining)
            break
    return ordered


class ModuleGraphLoader:
    """Query the build tool for module graphs and pick the processing order.

    Parameters
    ----------
    oracle
        Build tool adapter.
    settings
        Tool settings; supplies the vendored target prefixes.
    """

    def __init__(self, oracle: BuildOracle, settings: RefactorSettings) -> None:
        self._oracle = oracle
        self._settings = settings

    def query(self, root_targets: Sequence[str]) -> dict[str, Module]:
        """Return the merged, unfiltered dependency closure of ``root_targets``.

        One query runs per root; on key collisions the first root wins.
        """
        merged: dict[str, Module] = {}
        for root in root_targets:
            payload = self._oracle.query_dependencies(root)
            for key, module in parse_query_response(payload, target=root).items():
                merged.setdefault(key, module)
        return merged

    def load(self, root_targets: Sequence[str]) -> dict[str, Module]:
        """Load source modules reachable from ``root_targets``.

        Targets without files and vendored targets are dropped.

        Returns
        -------
        dict[str, Module]
            Modules keyed by target.
        """
        with stage_span(
            "loader.load",
            stage="load",
            scope_name=SCOPE_LOADER,
            attributes={"roots": list(root_targets)},
        ):
            merged = self.query(root_targets)
            modules = {
                key: module
                for key, module in merged.items()
                if module.has_files and not self._settings.is_vendored(key)
            }
        _LOGGER.info("Loaded %d source modules out of %d targets", len(modules), len(merged))
        return modules

    @staticmethod
    def resolve(
        modules: Mapping[str, Module],
        root_targets: Sequence[str],
        *,
        explicit_modules: Sequence[str] | None = None,
        ignore_modules: Sequence[str] | None = None,
    ) -> list[Module]:
        """Pick the modules to process and their order.

        An explicit module list wins over the computed order. Otherwise roots
        are removed from the topological order and appended last.

        Returns
        -------
        list[Module]
            Modules in processing order.
        """
        if explicit_modules:
            order = list(explicit_modules)
        else:
            order = [key for key in order_modules(modules) if key not in root_targets]
            order.extend(root_targets)
        ignored = set(ignore_modules or ())
        resolved: list[Module] = []
        for key in order:
            if key in ignored:
                _LOGGER.info("Ignoring %s", key)
                continue
            module = modules.get(key)
            if module is None:
                _LOGGER.debug("Skipping %s, not a loaded source module", key)
                continue
            resolved.append(module)
        return resolved

    def load_ordered(
        self,
        root_targets: Sequence[str],
        *,
        explicit_modules: Sequence[str] | None = None,
        ignore_modules: Sequence[str] | None = None,
    ) -> list[Module]:
        """Load and resolve in one step."""
        modules = self.load(root_targets)
        return self.resolve(
            modules,
            root_targets,
            explicit_modules=explicit_modules,
            ignore_modules=ignore_modules,
        )


__all__ = ["ModuleGraphLoader", "order_modules", "parse_query_response"]
