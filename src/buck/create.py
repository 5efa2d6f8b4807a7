"""Extract files into a new module with an inferred build definition."""

from __future__ import annotations

import logging
import shutil
from collections.abc import Iterable, Sequence
from pathlib import Path

from rich.console import Console

from buck.config import CreateInput, CreateModuleSpec
from buck.errors import InputError
from buck.estimate import scan_module_imports
from buck.loader import ModuleGraphLoader
from buck.model import Module
from buck.oracle import BuildOracle
from buck.paths import name_from_folder, trim_folder
from buck.rename import RenameEngine, RenameInput, RenameItem
from buck.settings import DEFAULT_SETTINGS, RefactorSettings
from obs.otel.scopes import SCOPE_MODULES
from obs.otel.tracing import stage_span
from utils.file_io import write_text

_LOGGER = logging.getLogger(__name__)

_QUOTED_IMPORT_FILE_TYPES = (".h", ".m", ".mm")


def derive_module_name(destination: str, target_name: str) -> str:
    """Return the default public module name for a new module.

    Returns
    -------
    str
        ``a_b_c`` for ``a/b/c`` when it ends with the target name, otherwise
        ``a_b_c_<target>``.
    """
    from_path = name_from_folder(destination)
    if from_path.endswith(target_name):
        return from_path
    return f"{from_path}_{target_name}"


def infer_frameworks(
    libraries: Iterable[Module], imports: set[str], settings: RefactorSettings
) -> list[str]:
    """Return the frameworks linked by ``libraries`` that ``imports`` names."""
    cleaned = {
        framework.replace(settings.framework_path_prefix, "").replace(
            settings.framework_path_suffix, ""
        )
        for library in libraries
        for framework in library.frameworks
    }
    return sorted(cleaned & imports)


def infer_dependencies(libraries: Iterable[Module], imports: set[str]) -> list[str]:
    """Return the targets whose public module name ``imports`` names."""
    by_name = {library.module_name: library.target for library in libraries if library.module_name}
    return sorted({by_name[name] for name in imports if name in by_name})


def _list_section(key: str, values: Sequence[str]) -> str:
    if not values:
        return ""
    items = "\n".join(f'"{value}",' for value in values)
    return f"{key} = [\n{items}\n],\n"


def render_module_build_file(
    *,
    target_name: str,
    module_name: str,
    file_names: Sequence[str],
    visibility: Sequence[str],
    frameworks: Sequence[str],
    dependencies: Sequence[str],
    test_target: bool,
    settings: RefactorSettings = DEFAULT_SETTINGS,
) -> str:
    """Render the build-definition text of a new module.

    The formatter is expected to normalize indentation afterwards.

    Returns
    -------
    str
        Build file content.
    """
    headers = [name for name in file_names if name.endswith(settings.header_suffixes)]
    sources = [name for name in file_names if name.endswith(settings.source_suffixes)]
    rule = settings.test_library_rule if test_target else settings.library_rule
    parts = [
        f"load('{settings.rule_load_path}', '{rule}')\n\n",
        f"{rule}(\n",
        f"name = '{target_name}',\n",
    ]
    if test_target:
        parts.append(_list_section("headers", headers))
    else:
        parts.extend(
            (
                f"module_name = '{module_name}',\n",
                "modular = True,\n",
                "coverage_exception_percent = 0.0,\n",
                _list_section("exported_headers", headers),
            )
        )
    parts.extend(
        (
            _list_section("srcs", sources),
            _list_section("frameworks", frameworks),
            _list_section("deps", dependencies),
            _list_section("visibility", visibility),
            ")\n\n",
        )
    )
    return "".join(parts)


class ModuleCreator:
    """Create modules from loose files.

    Parameters
    ----------
    oracle
        Build tool adapter; queried for the library map and used to format.
    settings
        Tool settings.
    rename
        Engine that rewrites quoted imports of moved headers.
    print_only
        Print moves and build files instead of touching disk.
    console
        Console used in print-only mode.
    """

    def __init__(
        self,
        oracle: BuildOracle,
        *,
        settings: RefactorSettings = DEFAULT_SETTINGS,
        rename: RenameEngine | None = None,
        print_only: bool = False,
        console: Console | None = None,
    ) -> None:
        self._oracle = oracle
        self._settings = settings
        self._console = console or Console(highlight=False)
        self._rename = rename or RenameEngine(print_only=print_only, console=self._console)
        self._print_only = print_only

    def _header_rename_items(
        self, files: Sequence[Path], module_name: str, destination: str
    ) -> list[RenameItem]:
        return [
            RenameItem(
                original_text=f'#import "{path.name}"',
                new_text=f"#import <{module_name}/{path.name}>",
                file_types=_QUOTED_IMPORT_FILE_TYPES,
                excluding_paths=(destination,),
            )
            for path in files
            if self._settings.is_header(path.name)
        ]

    def _move(self, files: Sequence[Path], destination: Path) -> None:
        if self._print_only:
            for path in files:
                self._console.print(f"mv {path} to {destination}", markup=False)
            return
        _LOGGER.info("Moving %d files to %s", len(files), destination)
        for path in files:
            shutil.move(path, destination / path.name)

    def create_one(
        self,
        spec: CreateModuleSpec,
        root: Path,
        libraries: Sequence[Module],
    ) -> tuple[str, list[RenameItem]]:
        """Create a single module and return its target and import renames.

        Raises
        ------
        InputError
            Raised when a listed file does not exist.

        Returns
        -------
        tuple[str, list[RenameItem]]
            New target string and the rename items for its headers.
        """
        destination_path = trim_folder(spec.destination)
        destination = root / destination_path
        files = [root / name for name in spec.files]
        missing = [str(path) for path in files if not path.is_file()]
        if missing:
            msg = f"Files for {destination_path} do not exist: {', '.join(missing)}"
            raise InputError(msg)
        target_name = spec.target_name or Path(destination_path).name
        module_name = spec.module_name or derive_module_name(destination_path, target_name)

        imports = scan_module_imports(files, self._settings.module_import_prefixes)
        content = render_module_build_file(
            target_name=target_name,
            module_name=module_name,
            file_names=sorted(path.name for path in files),
            visibility=sorted(spec.visibility or ()),
            frameworks=infer_frameworks(libraries, imports, self._settings),
            dependencies=infer_dependencies(libraries, imports),
            test_target=spec.test_target,
            settings=self._settings,
        )
        if self._print_only:
            self._console.print(f"Build file\n{content}", markup=False)
        else:
            destination.mkdir(parents=True, exist_ok=True)
            build_file = destination / self._settings.build_file_name
            _LOGGER.info("Creating build file at %s", build_file)
            _LOGGER.debug("%s", content)
            write_text(build_file, content)
            self._oracle.format_build_file(build_file)
        self._move(files, destination)
        items = self._header_rename_items(files, module_name, destination_path)
        return f"//{destination_path}:{target_name}", items

    def create(self, create_input: CreateInput, root: Path) -> list[str]:
        """Create every module in ``create_input``.

        Returns
        -------
        list[str]
            Targets of the created modules.
        """
        root = root.resolve()
        with stage_span(
            "modules.create",
            stage="create",
            scope_name=SCOPE_MODULES,
            attributes={"modules": len(create_input.modules)},
        ):
            libraries = list(
                ModuleGraphLoader(self._oracle, self._settings)
                .query(create_input.project_build_targets)
                .values()
            )
            targets: list[str] = []
            items: list[RenameItem] = []
            for spec in create_input.modules:
                target, module_items = self.create_one(spec, root, libraries)
                targets.append(target)
                items.extend(module_items)
            rename_input = RenameInput(
                items=tuple(items), excluding_paths=tuple(create_input.ignore_folders or ())
            )
            self._rename.rename(rename_input, root)
        _LOGGER.info("Extracted modules:\n%s", "\n".join(targets))
        return targets


__all__ = [
    "ModuleCreator",
    "derive_module_name",
    "infer_dependencies",
    "infer_frameworks",
    "render_module_build_file",
]
