"""Shared help-panel groups for the buckrefactor CLI."""

from __future__ import annotations

from cyclopts import Group

session_group = Group(
    "Session",
    help="Session and run context options.",
    sort_key=0,
)

tools_group = Group(
    "Build Tools",
    help="External executables and the folder they run in.",
    sort_key=1,
)

execution_group = Group(
    "Execution",
    help="Control file writes and parallelism.",
    sort_key=2,
)

observability_group = Group(
    "Observability",
    help="Configure OpenTelemetry tracing and metrics.",
    sort_key=8,
)

admin_group = Group(
    "Admin",
    help="Administrative commands and help.",
    sort_key=99,
)

__all__ = [
    "admin_group",
    "execution_group",
    "observability_group",
    "session_group",
    "tools_group",
]
