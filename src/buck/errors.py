"""Exception taxonomy for refactoring runs.

Only fatal-to-run conditions are exceptions. Build verdicts are booleans and
fatal-to-phase or skip-and-continue conditions are logged where they occur.
"""

from __future__ import annotations


class RefactorError(RuntimeError):
    """Base error for refactoring failures."""

    exit_code: int = 1


class InputError(RefactorError):
    """Configuration or input payload could not be decoded."""

    exit_code: int = 3


class RootFolderError(RefactorError):
    """Project root folder is missing or not a directory."""

    exit_code: int = 4


class OracleQueryError(RefactorError):
    """The build tool dependency query could not be executed."""

    exit_code: int = 20


class OracleResponseError(RefactorError):
    """The build tool returned a dependency query response that is not usable."""

    exit_code: int = 21


__all__ = [
    "InputError",
    "OracleQueryError",
    "OracleResponseError",
    "RefactorError",
    "RootFolderError",
]
