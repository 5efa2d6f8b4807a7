"""Canonical OpenTelemetry instrumentation scopes for buckrefactor."""

from __future__ import annotations

from obs.otel.constants import ScopeName

SCOPE_ROOT = ScopeName.ROOT
SCOPE_CLI = ScopeName.CLI
SCOPE_LOADER = ScopeName.LOADER
SCOPE_ESTIMATE = ScopeName.ESTIMATE
SCOPE_IMPORTS = ScopeName.IMPORTS
SCOPE_DEPS = ScopeName.DEPS
SCOPE_ORACLE = ScopeName.ORACLE
SCOPE_MODULES = ScopeName.MODULES
SCOPE_OBS = ScopeName.OBS


__all__ = [
    "SCOPE_CLI",
    "SCOPE_DEPS",
    "SCOPE_ESTIMATE",
    "SCOPE_IMPORTS",
    "SCOPE_LOADER",
    "SCOPE_MODULES",
    "SCOPE_OBS",
    "SCOPE_ORACLE",
    "SCOPE_ROOT",
]
