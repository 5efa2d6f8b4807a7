"""Helpers for user-supplied folder paths."""

from __future__ import annotations

from collections.abc import Sequence


def trim_folder(path: str) -> str:
    """Strip every non-alphanumeric character from both ends of ``path``.

    ``"//ios/common/files/"`` becomes ``"ios/common/files"``.

    Returns
    -------
    str
        Trimmed path.
    """
    start = 0
    end = len(path)
    while start < end and not path[start].isalnum():
        start += 1
    while end > start and not path[end - 1].isalnum():
        end -= 1
    return path[start:end]


def name_from_folder(path: str) -> str:
    """Return the module name implied by a folder, ``a/b/c`` -> ``a_b_c``."""
    return path.replace("/", "_").lower()


def is_excluded(relative: str, prefixes: Sequence[str]) -> bool:
    """Return True when the root-relative ``relative`` path starts with any of ``prefixes``."""
    return any(relative.startswith(prefix) for prefix in prefixes)


__all__ = ["is_excluded", "name_from_folder", "trim_folder"]
