"""Guard for read-modify-persist-verify units on a single file."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

_LOGGER = logging.getLogger(__name__)


@contextmanager
def guarded_file(path: Path) -> Iterator[bytes]:
    """Restore ``path`` to its original bytes if the body raises.

    The body is responsible for committing or rolling back its own trials;
    the guard only covers interruptions between a write and its verdict.

    Yields
    ------
    bytes
        Original file content.
    """
    original = path.read_bytes()
    try:
        yield original
    except BaseException:
        _LOGGER.warning("Restoring %s after an interrupted trial", path)
        path.write_bytes(original)
        raise


__all__ = ["guarded_file"]
