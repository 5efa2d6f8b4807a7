"""Bulk literal text replacement across a folder tree."""

from __future__ import annotations

import logging
import os
from collections.abc import Sequence
from pathlib import Path

from rich.console import Console

from buck.paths import is_excluded
from serde_msgspec import StructBaseStrict
from utils.file_io import read_text, write_text
from utils.parallel import bounded_map

_LOGGER = logging.getLogger(__name__)


class RenameItem(StructBaseStrict, frozen=True, rename="camel"):
    """One literal replacement.

    Parameters
    ----------
    original_text
        Text to find.
    new_text
        Replacement text.
    file_types
        File-name suffixes the replacement applies to (``".h"``, ``"BUCK"``).
    excluding_paths
        Root-relative path prefixes the replacement never touches.
    """

    original_text: str
    new_text: str
    file_types: tuple[str, ...]
    excluding_paths: tuple[str, ...] = ()


class RenameInput(StructBaseStrict, frozen=True, rename="camel"):
    """A batch of replacements and the folders the walk skips."""

    items: tuple[RenameItem, ...]
    excluding_paths: tuple[str, ...] = ()


class RenameEngine:
    """Apply RenameInput batches to every file under a root folder.

    Parameters
    ----------
    print_only
        Print the would-be content instead of writing files.
    max_workers
        Bound for the worker pool computing replacements.
    console
        Console used in print-only mode.
    """

    def __init__(
        self,
        *,
        print_only: bool = False,
        max_workers: int | None = None,
        console: Console | None = None,
    ) -> None:
        self.print_only = print_only
        self._max_workers = max_workers
        self._console = console or Console(highlight=False)

    def collect_files(self, root: Path, excluding_paths: Sequence[str]) -> list[Path]:
        """Walk ``root`` and return every file once.

        Excluded folders and symbolic links to folders are not entered.

        Returns
        -------
        list[Path]
            Files in walk order.
        """
        seen: set[Path] = set()
        files: list[Path] = []
        pending = [root]
        while pending:
            folder = pending.pop()
            relative = folder.relative_to(root).as_posix()
            if relative != "." and is_excluded(relative, excluding_paths):
                _LOGGER.debug("Skipping rename in folder %s", folder)
                continue
            with os.scandir(folder) as entries:
                for entry in sorted(entries, key=lambda item: item.name):
                    path = Path(entry.path)
                    if entry.is_dir(follow_symlinks=False):
                        pending.append(path)
                    elif entry.is_symlink() and path.is_dir():
                        _LOGGER.warning("Skipping symbolic link at %s", path)
                    elif entry.is_file() and path not in seen:
                        seen.add(path)
                        files.append(path)
        return files

    @staticmethod
    def apply(content: str, relative: str, items: Sequence[RenameItem], name: str) -> str:
        """Return ``content`` with every applicable item replaced."""
        for item in items:
            if not name.endswith(item.file_types):
                continue
            if is_excluded(relative, item.excluding_paths):
                continue
            content = content.replace(item.original_text, item.new_text)
        return content

    def rename(self, rename_input: RenameInput, root: Path) -> list[Path]:
        """Apply ``rename_input`` under ``root``.

        Workers compute new contents; this method alone writes or prints
        them.

        Returns
        -------
        list[Path]
            Files whose content changed.
        """
        _LOGGER.info("Starting renames with %d items", len(rename_input.items))
        if not rename_input.items:
            return []
        files = [
            path
            for path in self.collect_files(root, rename_input.excluding_paths)
            if any(path.name.endswith(item.file_types) for item in rename_input.items)
        ]

        def _compute(path: Path) -> str | None:
            relative = path.relative_to(root).as_posix()
            if is_excluded(relative, rename_input.excluding_paths):
                return None
            try:
                original = read_text(path)
            except (UnicodeDecodeError, OSError) as exc:
                _LOGGER.warning("Skipping %s: %s", path, exc)
                return None
            updated = self.apply(original, relative, rename_input.items, path.name)
            return None if updated == original else updated

        changed: list[Path] = []
        for path, updated in zip(
            files, bounded_map(files, _compute, max_workers=self._max_workers), strict=True
        ):
            if updated is None:
                continue
            _LOGGER.info("Updating %s", path)
            changed.append(path)
            if self.print_only:
                self._console.print(f"Update {path} to:\n{updated}", markup=False)
            else:
                write_text(path, updated)
        _LOGGER.info("Renames finished, %d files changed", len(changed))
        return changed


__all__ = ["RenameEngine", "RenameInput", "RenameItem"]
