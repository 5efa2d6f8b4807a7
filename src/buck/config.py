"""JSON command inputs for cleanup, create, move and stats."""

from __future__ import annotations

import logging
from pathlib import Path

import msgspec

from buck.errors import InputError
from core_types import TargetStr
from serde_msgspec import StructBaseStrict, loads_json, validation_error_payload

_LOGGER = logging.getLogger(__name__)


class CleanupImportsConfig(StructBaseStrict, frozen=True, rename="camel"):
    """Import-side switches of a cleanup run.

    ``file_types`` lists extensions without the dot (``"h"``, not ``".h"``).
    An empty list means no file is minimized.
    """

    expand_imports: bool = False
    reduce_imports: bool = False
    file_types: tuple[str, ...] = ()
    ignore_estimated_imports: bool = False


class CleanupBuckConfig(StructBaseStrict, frozen=True, rename="camel"):
    """Build-graph switches of a cleanup run."""

    reduce_buck_dependencies: bool = False
    ignore_estimated_dependencies: bool = False


class CleanupInput(StructBaseStrict, frozen=True, rename="camel"):
    """Configuration for the ``cleanup`` command."""

    project_build_targets: tuple[TargetStr, ...]
    parser_results_path: str | None = None
    modules: tuple[TargetStr, ...] | None = None
    ignore_modules: tuple[TargetStr, ...] | None = None
    ignore_folders: tuple[str, ...] | None = None
    cleanup_imports_config: CleanupImportsConfig = msgspec.field(
        default_factory=CleanupImportsConfig
    )
    cleanup_buck_config: CleanupBuckConfig = msgspec.field(default_factory=CleanupBuckConfig)

    def describe(self) -> str:
        """Return a multi-line summary suitable for logging."""
        imports = self.cleanup_imports_config
        deps = self.cleanup_buck_config
        lines = [
            f"roots: {', '.join(self.project_build_targets) or '-'}",
            f"parser results: {self.parser_results_path or '-'}",
            f"explicit modules: {len(self.modules or ())}",
            f"ignored modules: {len(self.ignore_modules or ())}",
            f"ignored folders: {', '.join(self.ignore_folders or ()) or '-'}",
            (
                f"imports: expand={imports.expand_imports} reduce={imports.reduce_imports} "
                f"file_types={','.join(imports.file_types) or '-'} "
                f"ignore_estimate={imports.ignore_estimated_imports}"
            ),
            (
                f"deps: reduce={deps.reduce_buck_dependencies} "
                f"ignore_estimate={deps.ignore_estimated_dependencies}"
            ),
        ]
        return "\n".join(lines)


class CreateModuleSpec(StructBaseStrict, frozen=True, rename="camel"):
    """One module to extract with ``create``."""

    destination: str
    files: tuple[str, ...]
    target_name: str | None = None
    module_name: str | None = None
    visibility: tuple[str, ...] | None = None
    test_target: bool = False


class CreateInput(StructBaseStrict, frozen=True, rename="camel"):
    """Configuration for the ``create`` command.

    Every dependency or framework used by the new modules must be reachable
    from ``project_build_targets``.
    """

    modules: tuple[CreateModuleSpec, ...]
    project_build_targets: tuple[TargetStr, ...]
    ignore_folders: tuple[str, ...] | None = None


class MovePath(StructBaseStrict, frozen=True):
    """A single folder move."""

    source: str
    destination: str


class MoveInput(StructBaseStrict, frozen=True, rename="camel"):
    """Configuration for the ``move`` command."""

    paths: tuple[MovePath, ...]
    ignore_folders: tuple[str, ...] | None = None


class StatsInput(StructBaseStrict, frozen=True, rename="camel"):
    """Configuration for the ``stats`` command.

    ``modules`` restricts the analyzed dependencies to an allow-list.
    """

    project_build_targets: tuple[TargetStr, ...]
    modules: tuple[TargetStr, ...] | None = None


def load_input[T](path: Path, *, target_type: type[T]) -> T:
    """Decode a JSON input file into ``target_type``.

    Parameters
    ----------
    path
        JSON file to read.
    target_type
        Input struct type.

    Returns
    -------
    T
        Decoded input.

    Raises
    ------
    InputError
        Raised when the file is missing or does not match the input contract.
    """
    try:
        payload = path.read_bytes()
    except OSError as exc:
        msg = f"Cannot read input file {path}: {exc}"
        raise InputError(msg) from exc
    try:
        decoded = loads_json(payload, target_type=target_type)
    except msgspec.ValidationError as exc:
        details = validation_error_payload(exc)
        msg = f"Invalid input in {path}: {details}"
        raise InputError(msg) from exc
    except msgspec.DecodeError as exc:
        msg = f"Malformed JSON in {path}: {exc}"
        raise InputError(msg) from exc
    _LOGGER.debug("Loaded %s from %s", target_type.__name__, path)
    return decoded


__all__ = [
    "CleanupBuckConfig",
    "CleanupImportsConfig",
    "CleanupInput",
    "CreateInput",
    "CreateModuleSpec",
    "MoveInput",
    "MovePath",
    "StatsInput",
    "load_input",
]
