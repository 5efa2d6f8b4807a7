"""Settings loading from buckrefactor.toml or pyproject.toml."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path

import msgspec

from buck.errors import InputError
from buck.settings import DEFAULT_SETTINGS, RefactorSettings, ToolPaths
from serde_msgspec import convert, validation_error_payload
from utils.file_io import find_in_parents, read_toml

_LOGGER = logging.getLogger(__name__)

CONFIG_FILE_NAME = "buckrefactor.toml"
PYPROJECT_FILE_NAME = "pyproject.toml"
TOOL_KEY = "buckrefactor"


def _extract_tool_config(raw: Mapping[str, object]) -> Mapping[str, object] | None:
    tool = raw.get("tool")
    if not isinstance(tool, Mapping):
        return None
    nested = tool.get(TOOL_KEY)
    if not isinstance(nested, Mapping):
        return None
    return nested


def _decode_settings(raw: Mapping[str, object], *, location: str) -> RefactorSettings:
    try:
        return convert(raw, target_type=RefactorSettings, strict=True)
    except msgspec.ValidationError as exc:
        details = validation_error_payload(exc)
        msg = f"Config validation failed for {location}: {details}"
        raise InputError(msg) from exc


def _read_config(path: Path) -> Mapping[str, object]:
    try:
        return read_toml(path)
    except (OSError, msgspec.DecodeError, TypeError) as exc:
        msg = f"Cannot read config file {path}: {exc}"
        raise InputError(msg) from exc


def _resolve_working_folder(settings: RefactorSettings, base: Path) -> RefactorSettings:
    folder = settings.tools.working_folder
    if folder.is_absolute():
        return settings
    tools = msgspec.structs.replace(settings.tools, working_folder=base / folder)
    return msgspec.structs.replace(settings, tools=tools)


def load_settings(
    config_file: Path | None = None,
    *,
    start: Path | None = None,
) -> tuple[RefactorSettings, Path | None]:
    """Load tool settings from an explicit file or the nearest config file.

    Without ``config_file`` the search walks up from ``start`` (default cwd)
    and takes ``buckrefactor.toml`` first, then the ``[tool.buckrefactor]``
    table of ``pyproject.toml``. A relative ``tools.working_folder`` is
    resolved against the folder holding the config file.

    Parameters
    ----------
    config_file
        Optional explicit settings file.
    start
        Folder the parent search starts from.

    Returns
    -------
    tuple[RefactorSettings, Path | None]
        Effective settings and the file they were read from.

    Raises
    ------
    InputError
        Raised when the explicit file is missing or a config file is invalid.
    """
    if config_file is not None:
        if not config_file.is_file():
            msg = f"Config file not found: {config_file}"
            raise InputError(msg)
        raw = _read_config(config_file)
        if config_file.name == PYPROJECT_FILE_NAME:
            raw = _extract_tool_config(raw) or {}
        settings = _decode_settings(raw, location=str(config_file))
        _LOGGER.info("Loaded settings from %s", config_file)
        return _resolve_working_folder(settings, config_file.parent), config_file

    config_path = find_in_parents(CONFIG_FILE_NAME, start=start)
    if config_path is not None:
        settings = _decode_settings(_read_config(config_path), location=str(config_path))
        _LOGGER.info("Loaded settings from %s", config_path)
        return _resolve_working_folder(settings, config_path.parent), config_path

    pyproject_path = find_in_parents(PYPROJECT_FILE_NAME, start=start)
    if pyproject_path is not None:
        nested = _extract_tool_config(_read_config(pyproject_path))
        if nested is not None:
            location = f"{pyproject_path}:tool.{TOOL_KEY}"
            settings = _decode_settings(nested, location=location)
            _LOGGER.info("Loaded settings from %s", location)
            return _resolve_working_folder(settings, pyproject_path.parent), pyproject_path

    _LOGGER.debug("No settings file found, using defaults")
    return DEFAULT_SETTINGS, None


def apply_tool_overrides(
    settings: RefactorSettings,
    *,
    build_tool: str | None = None,
    formatter: str | None = None,
    working_folder: Path | None = None,
) -> RefactorSettings:
    """Return ``settings`` with command-line tool paths applied.

    Returns
    -------
    RefactorSettings
        Settings with the given tool fields replaced.
    """
    overrides: dict[str, object] = {}
    if build_tool is not None:
        overrides["build_tool"] = build_tool
    if formatter is not None:
        overrides["formatter"] = formatter
    if working_folder is not None:
        overrides["working_folder"] = working_folder
    if not overrides:
        return settings
    tools: ToolPaths = msgspec.structs.replace(settings.tools, **overrides)
    return msgspec.structs.replace(settings, tools=tools)


__all__ = [
    "CONFIG_FILE_NAME",
    "PYPROJECT_FILE_NAME",
    "TOOL_KEY",
    "apply_tool_overrides",
    "load_settings",
]
