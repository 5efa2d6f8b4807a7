"""Shared utilities for buckrefactor."""

from utils.env_utils import env_value
from utils.file_io import find_in_parents, read_text, read_toml, write_text
from utils.parallel import bounded_map, resolve_max_workers

__all__ = [
    "bounded_map",
    "env_value",
    "find_in_parents",
    "read_text",
    "read_toml",
    "resolve_max_workers",
    "write_text",
]
