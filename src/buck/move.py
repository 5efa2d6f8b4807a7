"""Move module folders and rewrite references to their old location."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from rich.console import Console

from buck.config import MoveInput
from buck.errors import InputError
from buck.paths import name_from_folder, trim_folder
from buck.rename import RenameEngine, RenameInput, RenameItem
from buck.settings import DEFAULT_SETTINGS, RefactorSettings
from obs.otel.scopes import SCOPE_MODULES
from obs.otel.tracing import stage_span

_LOGGER = logging.getLogger(__name__)

_NAME_FILE_TYPES = (".h", ".m", ".mm", ".swift")
_PATH_FILE_TYPES = (".bzl", ".bmbf.yaml")


class ModuleMover:
    """Move folder contents and rename path-derived identifiers.

    Parameters
    ----------
    settings
        Tool settings; supplies the build file name.
    rename
        Engine that rewrites references across the tree.
    print_only
        Print moves instead of performing them.
    console
        Console used in print-only mode.
    """

    def __init__(
        self,
        *,
        settings: RefactorSettings = DEFAULT_SETTINGS,
        rename: RenameEngine | None = None,
        print_only: bool = False,
        console: Console | None = None,
    ) -> None:
        self._settings = settings
        self._console = console or Console(highlight=False)
        self._rename = rename or RenameEngine(print_only=print_only, console=self._console)
        self._print_only = print_only

    def rename_items(self, source: str, destination: str) -> list[RenameItem]:
        """Return the renames implied by moving ``source`` to ``destination``."""
        build_file_name = self._settings.build_file_name
        return [
            RenameItem(
                original_text=name_from_folder(source),
                new_text=name_from_folder(destination),
                file_types=(*_NAME_FILE_TYPES, build_file_name),
            ),
            RenameItem(
                original_text=source,
                new_text=destination,
                file_types=(*_PATH_FILE_TYPES, build_file_name),
            ),
        ]

    def _move_contents(self, source: Path, destination: Path) -> None:
        destination.mkdir(parents=True, exist_ok=True)
        for child in sorted(source.iterdir()):
            shutil.move(child, destination / child.name)

    def move(self, move_input: MoveInput, root: Path) -> list[tuple[str, str]]:
        """Perform every move in ``move_input`` then rename references.

        Raises
        ------
        InputError
            Raised when a source folder does not exist.

        Returns
        -------
        list[tuple[str, str]]
            Trimmed ``(source, destination)`` pairs.
        """
        root = root.resolve()
        moves: list[tuple[str, str]] = []
        items: list[RenameItem] = []
        with stage_span(
            "modules.move",
            stage="move",
            scope_name=SCOPE_MODULES,
            attributes={"paths": len(move_input.paths)},
        ):
            for entry in move_input.paths:
                source_path = trim_folder(entry.source)
                destination_path = trim_folder(entry.destination)
                source = root / source_path
                if not source.is_dir():
                    msg = f"Source folder {source} does not exist"
                    raise InputError(msg)
                if self._print_only:
                    self._console.print(f"mv {source_path} to {destination_path}", markup=False)
                else:
                    _LOGGER.info("Moving %s to %s", source_path, destination_path)
                    self._move_contents(source, root / destination_path)
                moves.append((source_path, destination_path))
                items.extend(self.rename_items(source_path, destination_path))
            rename_input = RenameInput(
                items=tuple(items), excluding_paths=tuple(move_input.ignore_folders or ())
            )
            self._rename.rename(rename_input, root)
        return moves


__all__ = ["ModuleMover"]
