"""Shared type aliases and small typing helpers."""

from __future__ import annotations

from typing import Annotated

from msgspec import Meta

TARGET_PATTERN = r"^//[^:]*:[^:/]+$"

NonNegativeInt = Annotated[int, Meta(ge=0)]
NonNegativeFloat = Annotated[float, Meta(ge=0)]

TargetStr = Annotated[
    str,
    Meta(
        pattern=TARGET_PATTERN,
        title="Target",
        description="Fully-qualified build target of the form //folder:name.",
    ),
]


__all__ = [
    "TARGET_PATTERN",
    "NonNegativeFloat",
    "NonNegativeInt",
    "TargetStr",
]
