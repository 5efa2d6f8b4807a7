"""Build tool adapter used as the correctness oracle."""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Sequence
from pathlib import Path
from typing import Protocol, runtime_checkable

from buck.errors import OracleQueryError
from buck.settings import ToolPaths
from obs.otel.metrics import record_oracle_invocation
from obs.otel.scopes import SCOPE_ORACLE
from obs.otel.tracing import stage_span

_LOGGER = logging.getLogger(__name__)

QUERY_ATTRIBUTES = (
    "frameworks",
    "module_name",
    "name",
    "headers",
    "exported_headers",
    "srcs",
    "deps",
)


@runtime_checkable
class BuildOracle(Protocol):
    """Operations the refactoring engine needs from the build tool."""

    def build(self, targets: Sequence[str], *, no_cache: bool = False) -> bool:
        """Return True when every target builds."""
        ...

    def query_dependencies(self, target: str, depth: int | None = None) -> str:
        """Return the JSON dependency closure of ``target``."""
        ...

    def format_build_file(self, path: Path) -> None:
        """Run the build-file formatter on ``path``."""
        ...

    def umbrella_headers(self, header_name: str) -> list[str]:
        """Return the sorted unique lines of generated umbrella headers."""
        ...


class ShellBuildOracle:
    """BuildOracle backed by the build tool and formatter executables.

    Parameters
    ----------
    tools
        Executable paths and the folder commands run in.
    """

    def __init__(self, tools: ToolPaths) -> None:
        self._tools = tools

    @property
    def working_folder(self) -> Path:
        return self._tools.working_folder

    def _run(self, args: Sequence[str]) -> subprocess.CompletedProcess[str]:
        _LOGGER.debug("Running %s in %s", " ".join(args), self.working_folder)
        return subprocess.run(
            list(args),
            cwd=self.working_folder,
            capture_output=True,
            text=True,
            check=False,
        )

    def build(self, targets: Sequence[str], *, no_cache: bool = False) -> bool:
        """Build ``targets`` and report a boolean verdict.

        A build passes only when the tool exits cleanly and prints nothing on
        stdout, not even whitespace. Launch failures count as a failed build.

        Returns
        -------
        bool
            Build verdict.
        """
        args = [self._tools.build_tool, "build"]
        if no_cache:
            args.append("--no-cache")
        args.extend(targets)
        _LOGGER.info("%s", " ".join(args))
        with stage_span(
            "oracle.build",
            stage="build",
            scope_name=SCOPE_ORACLE,
            attributes={"targets": list(targets), "no_cache": no_cache},
        ) as span:
            try:
                result = self._run(args)
            except OSError as exc:
                _LOGGER.warning("Build invocation failed: %s", exc)
                ok = False
            else:
                ok = result.returncode == 0 and result.stdout == ""
                if not ok:
                    _LOGGER.debug(
                        "Build of %s failed (exit %s): %s%s",
                        targets,
                        result.returncode,
                        result.stdout,
                        result.stderr,
                    )
            span.set_attribute("verdict", ok)
        record_oracle_invocation("build", ok=ok)
        return ok

    def query_dependencies(self, target: str, depth: int | None = None) -> str:
        """Query the dependency closure of ``target``.

        Returns
        -------
        str
            Raw JSON mapping target to attribute object.

        Raises
        ------
        OracleQueryError
            Raised when the query cannot be executed or exits non-zero.
        """
        expression = f"deps('{target}')" if depth is None else f"deps('{target}', {depth})"
        args = [
            self._tools.build_tool,
            "query",
            expression,
            "--output-format",
            "json",
            "--output-attributes",
            *QUERY_ATTRIBUTES,
        ]
        with stage_span(
            "oracle.query",
            stage="query",
            scope_name=SCOPE_ORACLE,
            attributes={"target": target, "depth": depth},
        ):
            try:
                result = self._run(args)
            except OSError as exc:
                record_oracle_invocation("query", ok=False)
                msg = f"Dependency query for {target} could not run: {exc}"
                raise OracleQueryError(msg) from exc
            if result.returncode != 0:
                record_oracle_invocation("query", ok=False)
                msg = f"Dependency query for {target} failed: {result.stderr.strip()}"
                raise OracleQueryError(msg)
        record_oracle_invocation("query", ok=True)
        _LOGGER.debug("Queried %s:\n%s", target, result.stdout)
        return result.stdout

    def format_build_file(self, path: Path) -> None:
        """Run the formatter on ``path``; failures are logged, not raised."""
        try:
            result = self._run([self._tools.formatter, str(path)])
        except OSError as exc:
            _LOGGER.warning("Formatter could not run on %s: %s", path, exc)
            return
        if result.returncode != 0:
            _LOGGER.warning("Formatter failed on %s: %s", path, result.stderr.strip())

    def umbrella_headers(self, header_name: str) -> list[str]:
        """Collect import lines of generated umbrella headers named ``header_name``.

        Returns
        -------
        list[str]
            Sorted unique non-empty lines across all matching files.
        """
        output_root = self.working_folder / "buck-out"
        if not output_root.is_dir():
            return []
        lines: set[str] = set()
        for path in output_root.rglob(header_name, case_sensitive=False):
            if not path.is_file():
                continue
            try:
                content = path.read_text(encoding="utf-8")
            except (UnicodeDecodeError, OSError) as exc:
                _LOGGER.warning("Skipping umbrella header %s: %s", path, exc)
                continue
            lines.update(line for line in content.splitlines() if line)
        return sorted(lines)


__all__ = ["QUERY_ATTRIBUTES", "BuildOracle", "ShellBuildOracle"]
