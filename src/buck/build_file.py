"""Text model of a build-definition file.

A file is split into its ``load(...)`` preamble, the target blocks opened by a
recognized rule invocation, and a trailer holding everything else verbatim.
Rendering joins the three parts back together; only blocks that were mutated
differ from the source text.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

_LOGGER = logging.getLogger(__name__)

_LOAD_RE = re.compile(r"(?s)load\([^)]*\)")
_ITEM_RE = re.compile(r"""(?P<quote>["'])(?P<value>.*?)(?P=quote)""")
_DEFAULT_INDENT = "    "


def _scalar_pattern(key: str) -> re.Pattern[str]:
    return re.compile(
        rf"(?m)^[ \t]*{key}[ \t]*=[ \t]*(?P<quote>[\"'])(?P<value>[^\"'\n]*)(?P=quote)"
    )


def _list_pattern(key: str) -> re.Pattern[str]:
    return re.compile(rf"(?m)^(?P<indent>[ \t]*){key}[ \t]*=[ \t]*\[(?P<body>[^\]]*)\]")


_NAME_RE = _scalar_pattern("name")
_MODULE_NAME_RE = _scalar_pattern("module_name")
_SRCS_RE = _list_pattern("srcs")
_HEADERS_RE = _list_pattern("headers")
_EXPORTED_HEADERS_RE = _list_pattern("exported_headers")
_DEPS_RE = _list_pattern("deps")
_EXPORTED_DEPS_RE = _list_pattern("exported_deps")


def _block_pattern(rule_names: Iterable[str]) -> re.Pattern[str]:
    alternatives = "|".join(re.escape(name) for name in rule_names)
    return re.compile(rf"(?s)(?<![\w.])(?:{alternatives})\(\n[^)]*\n\)")


def _render_list(values: Sequence[str], *, body: str, indent: str) -> str:
    if not values:
        return ""
    item_indent = indent + _DEFAULT_INDENT
    for line in body.splitlines():
        if line.strip():
            item_indent = line[: len(line) - len(line.lstrip())]
            break
    closing_indent = indent
    tail = body.rpartition("\n")[2]
    if "\n" in body and not tail.strip():
        closing_indent = tail
    existing = _ITEM_RE.search(body)
    quote = existing.group("quote") if existing else '"'
    items = "".join(f"{item_indent}{quote}{value}{quote},\n" for value in values)
    return f"\n{items}{closing_indent}"


@dataclass
class RawTargetBlock:
    """Raw text of one rule invocation with field accessors.

    Every setter rewrites only the sub-region holding that field. Setting a
    field the block does not declare is a no-op.
    """

    text: str

    def _get_scalar(self, pattern: re.Pattern[str]) -> str:
        match = pattern.search(self.text)
        return match.group("value") if match else ""

    def _set_scalar(self, pattern: re.Pattern[str], value: str) -> None:
        match = pattern.search(self.text)
        if match is None:
            return
        start, end = match.span("value")
        self.text = f"{self.text[:start]}{value}{self.text[end:]}"

    def _get_list(self, pattern: re.Pattern[str]) -> list[str]:
        match = pattern.search(self.text)
        if match is None:
            return []
        return [item.group("value") for item in _ITEM_RE.finditer(match.group("body"))]

    def _set_list(self, pattern: re.Pattern[str], values: Sequence[str]) -> None:
        match = pattern.search(self.text)
        if match is None:
            return
        rendered = _render_list(values, body=match.group("body"), indent=match.group("indent"))
        start, end = match.span("body")
        self.text = f"{self.text[:start]}{rendered}{self.text[end:]}"

    @property
    def is_valid(self) -> bool:
        """A block is usable only when it declares a name."""
        return bool(self.name)

    @property
    def name(self) -> str:
        return self._get_scalar(_NAME_RE)

    @name.setter
    def name(self, value: str) -> None:
        self._set_scalar(_NAME_RE, value)

    @property
    def module_name(self) -> str:
        return self._get_scalar(_MODULE_NAME_RE)

    @module_name.setter
    def module_name(self, value: str) -> None:
        self._set_scalar(_MODULE_NAME_RE, value)

    @property
    def sources(self) -> list[str]:
        return self._get_list(_SRCS_RE)

    @sources.setter
    def sources(self, values: Sequence[str]) -> None:
        self._set_list(_SRCS_RE, values)

    @property
    def headers(self) -> list[str]:
        return self._get_list(_HEADERS_RE)

    @headers.setter
    def headers(self, values: Sequence[str]) -> None:
        self._set_list(_HEADERS_RE, values)

    @property
    def exported_headers(self) -> list[str]:
        return self._get_list(_EXPORTED_HEADERS_RE)

    @exported_headers.setter
    def exported_headers(self, values: Sequence[str]) -> None:
        self._set_list(_EXPORTED_HEADERS_RE, values)

    @property
    def deps(self) -> list[str]:
        return self._get_list(_DEPS_RE)

    @deps.setter
    def deps(self, values: Sequence[str]) -> None:
        self._set_list(_DEPS_RE, values)

    @property
    def exported_deps(self) -> list[str]:
        return self._get_list(_EXPORTED_DEPS_RE)

    @exported_deps.setter
    def exported_deps(self, values: Sequence[str]) -> None:
        self._set_list(_EXPORTED_DEPS_RE, values)


@dataclass
class BuildFile:
    """Parsed build-definition file.

    Parameters
    ----------
    path
        Folder of the file relative to the project root.
    imports
        ``load(...)`` statements in source order.
    blocks
        Target string (``//path:name``) to block, in parse order.
    trailer
        Text outside recognized statements, preserved verbatim.
    """

    path: str
    imports: list[str] = field(default_factory=list)
    blocks: dict[str, RawTargetBlock] = field(default_factory=dict)
    trailer: str = ""

    @classmethod
    def parse(cls, path: str, text: str, *, rule_names: Iterable[str]) -> BuildFile:
        """Split build-file text into preamble, blocks and trailer.

        Blocks without a ``name`` and duplicate targets are logged and left in
        the trailer untouched.

        Returns
        -------
        BuildFile
            Parsed file.
        """
        imports = [match.group(0) for match in _LOAD_RE.finditer(text)]
        remaining = _LOAD_RE.sub("", text)
        blocks: dict[str, RawTargetBlock] = {}

        def _take_block(match: re.Match[str]) -> str:
            block = RawTargetBlock(match.group(0))
            if not block.is_valid:
                _LOGGER.error("Failed to parse target block in %s from %s", path, match.group(0))
                return match.group(0)
            target = f"//{path}:{block.name}"
            if target in blocks:
                _LOGGER.warning("Duplicate target block %s, keeping the first", target)
                return match.group(0)
            blocks[target] = block
            return ""

        trailer = _block_pattern(rule_names).sub(_take_block, remaining)
        return cls(path=path, imports=imports, blocks=blocks, trailer=trailer)

    def render(self) -> str:
        """Return the file text.

        Returns
        -------
        str
            Preamble, blocks and trailer joined by newlines.
        """
        imports = "\n".join(self.imports)
        blocks = "\n".join(block.text for block in self.blocks.values())
        return f"{imports}\n{blocks}\n{self.trailer}"

    def block(self, target: str) -> RawTargetBlock | None:
        """Return the block declaring ``target``, if any."""
        return self.blocks.get(target)


__all__ = ["BuildFile", "RawTargetBlock"]
