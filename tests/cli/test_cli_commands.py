"""Tests for command dispatch, context injection and command output."""

from __future__ import annotations

import io
import json
from pathlib import Path

import pytest
from rich.console import Console

from buck.settings import RefactorSettings
from cli.app import ExecutionOptions, SessionOptions, ToolOptions, app, meta_launcher
from cli.commands.config import init_config, show_config
from cli.commands.version import version_command
from cli.config_loader import load_settings
from cli.context import RunContext
from cli.exit_codes import ExitCode
from cli.telemetry import invoke_with_telemetry
from tests.test_helpers.fake_oracle import FakeBuildOracle
from tests.test_helpers.project import query_entry, write_file


def _oracle() -> FakeBuildOracle:
    graph = {
        "//app:app": query_entry("app", srcs=["Main.swift"], deps=["//lib/a:a"]),
        "//lib/a:a": query_entry("a", srcs=["A.swift"], module_name="lib_a"),
    }
    return FakeBuildOracle(graphs={"//app:app": graph})


def _context(root: Path, settings: RefactorSettings, **overrides: object) -> RunContext:
    return RunContext(run_id="test", root=root, settings=settings, oracle=_oracle(), **overrides)


def _invoke(tokens: list[str], context: RunContext) -> tuple[int, str, str | None]:
    buffer = io.StringIO()
    exit_code, event = invoke_with_telemetry(
        app, tokens, run_context=context, console=Console(file=buffer, width=200)
    )
    return exit_code, buffer.getvalue(), event.error_class


def test_stats_command_prints_report(tmp_path: Path, settings: RefactorSettings) -> None:
    """Ensure the stats command receives the injected context."""
    write_file(tmp_path, "app/Main.swift", "import lib_a\n")
    write_file(tmp_path, "lib/a/A.swift", "let a = 1\nlet b = 2\n")
    config = write_file(tmp_path, "stats.json", json.dumps({"projectBuildTargets": ["//app:app"]}))

    exit_code, output, error_class = _invoke(
        ["stats", str(config)], _context(tmp_path, settings)
    )

    assert exit_code == ExitCode.SUCCESS
    assert error_class is None
    assert "//app:app\nTotal modules 2\nTotal lines of code 3\n" in output


def test_cleanup_command_summarizes_report(tmp_path: Path, settings: RefactorSettings) -> None:
    """Ensure cleanup output includes the processed count and duration."""
    config = write_file(
        tmp_path, "cleanup.json", json.dumps({"projectBuildTargets": ["//app:app"]})
    )

    exit_code, output, _ = _invoke(["cleanup", str(config)], _context(tmp_path, settings))

    assert exit_code == ExitCode.SUCCESS
    assert "Processed 2 modules, removed 0 imports and 0 dependencies" in output
    assert "Duration: " in output


def test_move_command_print_only(tmp_path: Path, settings: RefactorSettings) -> None:
    """Ensure the print-only flag reaches the mover."""
    feature = write_file(tmp_path, "ios/old/Feature.swift", "")
    config = write_file(
        tmp_path,
        "move.json",
        json.dumps({"paths": [{"source": "ios/old", "destination": "ios/new"}]}),
    )

    exit_code, output, _ = _invoke(
        ["move", str(config)], _context(tmp_path, settings, print_only=True)
    )

    assert exit_code == ExitCode.SUCCESS
    assert "Moved 1 folders\n  ios/old -> ios/new\n" in output
    assert feature.is_file()


def test_invalid_input_maps_to_validation_error(
    tmp_path: Path, settings: RefactorSettings
) -> None:
    """Ensure an input file that breaks the contract exits with code 3."""
    config = write_file(tmp_path, "stats.json", json.dumps({"projectBuildTargets": "//app:app"}))

    exit_code, _, error_class = _invoke(["stats", str(config)], _context(tmp_path, settings))

    assert exit_code == ExitCode.VALIDATION_ERROR
    assert error_class == "buck.errors.InputError"


def test_missing_root_maps_to_config_error(tmp_path: Path, settings: RefactorSettings) -> None:
    """Ensure commands refuse a project root that does not exist."""
    config = write_file(tmp_path, "stats.json", json.dumps({"projectBuildTargets": ["//a:a"]}))

    exit_code, _, _ = _invoke(["stats", str(config)], _context(tmp_path / "missing", settings))

    assert exit_code == ExitCode.CONFIG_ERROR


def test_oracle_query_failure_maps_to_oracle_error(
    tmp_path: Path, settings: RefactorSettings
) -> None:
    """Ensure a failing dependency query exits with the oracle code."""
    config = write_file(tmp_path, "stats.json", json.dumps({"projectBuildTargets": ["//x:x"]}))

    exit_code, _, _ = _invoke(["stats", str(config)], _context(tmp_path, settings))

    assert exit_code == ExitCode.ORACLE_QUERY_ERROR


def test_unknown_command_is_a_parse_error(tmp_path: Path, settings: RefactorSettings) -> None:
    """Ensure parse failures exit with code 2."""
    exit_code, _, error_class = _invoke(["unknown-command"], _context(tmp_path, settings))

    assert exit_code == ExitCode.PARSE_ERROR
    assert error_class is not None
    assert error_class.startswith("cyclopts.")


def test_show_config_prints_every_field(
    settings: RefactorSettings, capsys: pytest.CaptureFixture[str]
) -> None:
    """Ensure defaults are included in the settings dump."""
    assert show_config(run_context=RunContext(run_id="test", settings=settings)) == 0

    payload = json.loads(capsys.readouterr().out)
    assert payload["build_file_name"] == "BUCK"
    assert payload["settle_delay_s"] == 0.0
    assert payload["tools"]["build_tool"] == "buck"
    assert payload["tools"]["working_folder"] == "."


def test_init_config_writes_loadable_template(tmp_path: Path) -> None:
    """Ensure the template decodes and is not overwritten without force."""
    path = tmp_path / "buckrefactor.toml"

    assert init_config(path=path) == 0
    with pytest.raises(FileExistsError):
        init_config(path=path)
    assert init_config(path=path, force=True) == 0

    settings, _ = load_settings(path)
    assert settings.tools.build_tool == "buck"
    assert settings.tools.working_folder == tmp_path


def test_version_command(capsys: pytest.CaptureFixture[str]) -> None:
    """Ensure version output is a JSON payload naming the package."""
    assert version_command() == 0

    payload = json.loads(capsys.readouterr().out)
    assert "buckrefactor" in payload
    assert "msgspec" in payload["dependencies"]


def test_meta_launcher_builds_run_context(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Ensure settings, flags and session options reach the run context."""
    config = write_file(tmp_path, "buckrefactor.toml", "settle_delay_s = 1.5\n")
    captured: list[RunContext] = []

    def _invoke_stub(
        _app: object, tokens: list[str], *, run_context: RunContext
    ) -> tuple[int, None]:
        assert tokens == ["stats", "stats.json"]
        captured.append(run_context)
        return 0, None

    monkeypatch.setattr("cli.app.invoke_with_telemetry", _invoke_stub)

    exit_code = meta_launcher(
        "stats",
        "stats.json",
        session=SessionOptions(config_file=config, run_id="run-1", root=tmp_path),
        tools=ToolOptions(build_tool="buck2"),
        execution=ExecutionOptions(print_only=True, workers=3),
    )

    assert exit_code == 0
    (context,) = captured
    assert context.run_id == "run-1"
    assert context.root == tmp_path.resolve()
    assert context.config_path == config
    assert context.settings.settle_delay_s == 1.5
    assert context.settings.tools.build_tool == "buck2"
    assert context.print_only
    assert context.max_workers == 3


def test_meta_launcher_rejects_missing_config(tmp_path: Path) -> None:
    """Ensure an unreadable settings file stops before dispatch."""
    exit_code = meta_launcher(
        "stats",
        "stats.json",
        session=SessionOptions(config_file=tmp_path / "absent.toml"),
    )

    assert exit_code == ExitCode.VALIDATION_ERROR
