"""Configuration management commands."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Annotated

import msgspec
from cyclopts import Parameter

from buck.settings import DEFAULT_SETTINGS, RefactorSettings
from cli.config_loader import CONFIG_FILE_NAME, load_settings
from cli.context import RunContext
from cli.groups import admin_group
from serde_msgspec import dumps_json

_TEMPLATE = """# buckrefactor.toml

build_file_name = "BUCK"
library_rule = "dbx_apple_library"
test_library_rule = "dbx_apple_test_library"
rule_load_path = "//tools/buck/rules:buck_rule_macros.bzl"
settle_delay_s = 5.0
vendored_prefixes = ["//third_party/"]
reserved_dependencies = [":cpp"]

[tools]
build_tool = "buck"
formatter = "buildifier"
working_folder = "."

# never_remove_imports = ["import Foundation", "import UIKit"]
# import_file_suffixes = [".h", ".m", ".mm", ".swift"]
# stats_file_suffixes = [".h", ".hpp", ".c", ".cc", ".cpp", ".swift", ".m", ".mm"]
"""


def settings_payload(settings: RefactorSettings) -> dict[str, object]:
    """Return every settings field, defaults included.

    Returns
    -------
    dict[str, object]
        Settings mapping with the nested tool paths expanded.
    """
    payload = msgspec.structs.asdict(settings)
    payload["tools"] = msgspec.structs.asdict(settings.tools)
    return payload


def show_config(
    *,
    defaults: Annotated[
        bool,
        Parameter(
            name="--defaults",
            help="Show built-in defaults instead of the effective settings.",
        ),
    ] = False,
    run_context: Annotated[RunContext | None, Parameter(parse=False)] = None,
) -> int:
    """Show the effective settings as JSON.

    Returns
    -------
    int
        Exit status code.
    """
    if defaults:
        settings = DEFAULT_SETTINGS
    elif run_context is not None:
        settings = run_context.settings
    else:
        settings, _ = load_settings()
    payload = dumps_json(settings_payload(settings), pretty=True).decode()
    sys.stdout.write(payload + "\n")
    return 0


def init_config(
    *,
    path: Annotated[
        Path | None,
        Parameter(
            name="--path",
            help="Path to write the configuration template (default: buckrefactor.toml).",
        ),
    ] = None,
    force: Annotated[
        bool,
        Parameter(
            name="--force",
            help="Overwrite existing config file.",
            group=admin_group,
        ),
    ] = False,
) -> int:
    """Write a configuration template to disk.

    Returns
    -------
    int
        Exit status code.

    Raises
    ------
    FileExistsError
        Raised when the target path exists and ``force`` is false.
    """
    target_path = path if path is not None else Path(CONFIG_FILE_NAME)
    if target_path.exists() and not force:
        msg = f"Config file already exists: {target_path}."
        raise FileExistsError(msg)
    target_path.write_text(_TEMPLATE, encoding="utf-8")
    return 0


__all__ = ["init_config", "settings_payload", "show_config"]
