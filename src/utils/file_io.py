"""File I/O utilities with consistent encoding handling."""

from __future__ import annotations

import os
import shutil
import tempfile
from collections.abc import Mapping
from pathlib import Path

import msgspec

_DEFAULT_MODE = 0o644


def read_text(path: Path, *, encoding: str = "utf-8") -> str:
    """Read text file with consistent encoding.

    Newlines are returned untranslated so a later write reproduces the
    original bytes.

    Parameters
    ----------
    path
        Path to the file.
    encoding
        Text encoding.

    Returns
    -------
    str
        File contents.
    """
    with path.open(encoding=encoding, newline="") as handle:
        return handle.read()


def write_text(path: Path, content: str, *, encoding: str = "utf-8") -> None:
    """Write text atomically by replacing the file with a sibling temp file.

    Parameters
    ----------
    path
        Destination path.
    content
        Text to persist.
    encoding
        Text encoding.
    """
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding=encoding, newline="") as handle:
            handle.write(content)
            handle.flush()
            os.fsync(handle.fileno())
        if path.exists():
            shutil.copymode(path, tmp_name)
        else:
            Path(tmp_name).chmod(_DEFAULT_MODE)
        Path(tmp_name).replace(path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def read_toml(path: Path) -> Mapping[str, object]:
    """Read and parse a TOML file.

    Parameters
    ----------
    path
        Path to the TOML file.

    Returns
    -------
    Mapping[str, object]
        Parsed TOML content.

    Raises
    ------
    TypeError
        Raised when the TOML content is not a mapping.
    """
    payload = msgspec.toml.decode(path.read_text(encoding="utf-8"), type=object, strict=True)
    if not isinstance(payload, dict):
        msg = f"Expected TOML mapping in {path}, got {type(payload).__name__}."
        raise TypeError(msg)
    return payload


def find_in_parents(filename: str, *, start: Path | None = None) -> Path | None:
    """Walk parents from ``start`` (default cwd) to find a filename.

    Returns
    -------
    Path | None
        Path to the first matching file in the directory or its parents.
    """
    path = (start or Path.cwd()).resolve()
    while True:
        candidate = path / filename
        if candidate.exists():
            return candidate
        if path.parent == path:
            return None
        path = path.parent


__all__ = ["find_in_parents", "read_text", "read_toml", "write_text"]
