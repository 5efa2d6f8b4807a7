"""Module model built from dependency query output."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path, PurePosixPath

from serde_msgspec import StructBaseStrict

_LOGGER = logging.getLogger(__name__)

_FILE_LIST_KEYS = ("srcs", "headers", "exported_headers")


def _string_list(key: str, value: object) -> tuple[str, ...]:
    """Normalize the file-list shapes the build tool emits.

    Accepts a flat list of paths, a mapping whose values are paths, or a list
    of pairs whose first element is the path.
    """
    if value is None:
        return ()
    if isinstance(value, Mapping):
        return tuple(item for item in value.values() if isinstance(item, str))
    if isinstance(value, list):
        items: list[str] = []
        for item in value:
            if isinstance(item, str):
                items.append(item)
            elif isinstance(item, list) and item and isinstance(item[0], str):
                items.append(item[0])
        return tuple(items)
    _LOGGER.info("Failed to parse %s value %r", key, value)
    return ()


class Module(StructBaseStrict, frozen=True):
    """A build target that owns source files.

    Parameters
    ----------
    target
        Fully-qualified target string, ``//folder:name``.
    name
        Short target name.
    module_name
        Public import name, if the target declares one.
    frameworks
        System frameworks linked by the target.
    srcs
        Source files, relative to the module folder.
    headers
        Private headers, relative to the module folder.
    exported_headers
        Public headers, relative to the module folder.
    deps
        Fully-qualified dependency targets.
    """

    target: str
    name: str
    module_name: str | None = None
    frameworks: tuple[str, ...] = ()
    srcs: tuple[str, ...] = ()
    headers: tuple[str, ...] = ()
    exported_headers: tuple[str, ...] = ()
    deps: tuple[str, ...] = ()

    @classmethod
    def from_query(cls, target: str, attrs: Mapping[str, object]) -> Module:
        """Build a Module from one entry of a dependency query response.

        Shorthand dependencies (``:name``) are expanded to ``//folder:name``.

        Returns
        -------
        Module
            Parsed module.
        """
        raw_name = attrs.get("name")
        name = raw_name if isinstance(raw_name, str) else ""
        raw_module_name = attrs.get("module_name")
        module_name = raw_module_name if isinstance(raw_module_name, str) else None
        base_path = target.replace(f":{name}", "") if name else target.partition(":")[0]
        deps = tuple(
            f"{base_path}{dep}" if dep.startswith(":") else dep
            for dep in _string_list("deps", attrs.get("deps"))
        )
        srcs, headers, exported_headers = (
            _string_list(key, attrs.get(key)) for key in _FILE_LIST_KEYS
        )
        return cls(
            target=target,
            name=name,
            module_name=module_name,
            frameworks=_string_list("frameworks", attrs.get("frameworks")),
            srcs=srcs,
            headers=headers,
            exported_headers=exported_headers,
            deps=deps,
        )

    @property
    def has_files(self) -> bool:
        """Whether the target declares any source or header file."""
        return bool(self.srcs or self.headers or self.exported_headers)

    @property
    def is_single_language(self) -> bool:
        """Whether the target has no headers and all sources share one extension."""
        if self.headers or self.exported_headers or not self.srcs:
            return False
        suffixes = {PurePosixPath(src).suffix for src in self.srcs}
        return len(suffixes) == 1

    @property
    def public_name(self) -> str | None:
        """Name other modules use to import this one, if any."""
        if self.module_name:
            return self.module_name
        if self.is_single_language:
            return self.name
        return None

    @property
    def base_path(self) -> str:
        """Target prefix before the colon, ``//folder``."""
        return self.target.partition(":")[0]

    @property
    def folder(self) -> str | None:
        """Folder of the target relative to the project root.

        Returns ``None`` and logs when the target is not ``//<folder>:<name>``.
        """
        if not self.target.startswith("//"):
            _LOGGER.error("Invalid prefix for %s", self.target)
            return None
        remainder = self.target[2:]
        if not remainder.endswith(self.name):
            _LOGGER.error("Invalid suffix for %s, expected name %r", self.target, self.name)
            return None
        remainder = remainder[: len(remainder) - len(self.name)]
        if not remainder.endswith(":"):
            _LOGGER.error("Invalid suffix : for %s", self.target)
            return None
        return remainder[:-1]

    def build_file_path(self, build_file_name: str) -> str | None:
        """Return the root-relative path of the module's build-definition file."""
        folder = self.folder
        if folder is None:
            return None
        return f"{folder}/{build_file_name}" if folder else build_file_name

    def files(self, root: Path) -> list[Path]:
        """Return existing files declared by the module, sorted by path.

        Parameters
        ----------
        root
            Project root folder.

        Returns
        -------
        list[Path]
            Absolute paths of declared files that exist on disk.
        """
        folder = self.folder
        if folder is None:
            _LOGGER.info("Skipping files for %s, invalid folder", self.name)
            return []
        module_folder = root / folder
        found: dict[str, Path] = {}
        for relative in (*self.srcs, *self.headers, *self.exported_headers):
            path = module_folder / relative
            if path.is_file():
                found.setdefault(str(path), path)
        return sorted(found.values())


__all__ = ["Module"]
