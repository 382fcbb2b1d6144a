"""Shared layout types."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

DUMMY_PREFIX = "__dummy_"


class Direction(Enum):
    """Primary layout axis: depth grows left-to-right or top-to-bottom."""

    LR = "LR"
    TB = "TB"

    @classmethod
    def parse(cls, value: str | Direction) -> Direction:
        if isinstance(value, Direction):
            return value
        aliases = {"LR": cls.LR, "LEFT-TO-RIGHT": cls.LR, "TB": cls.TB, "TD": cls.TB, "TOP-TO-BOTTOM": cls.TB}
        try:
            return aliases[value.strip().upper()]
        except KeyError:
            raise ValueError(f"unknown layout direction: {value!r}") from None


@dataclass
class LayoutNode:
    """A vertex positioned by the layered layout (pixel units, top-left anchored)."""

    id: str
    layer: int
    order: int
    x: float
    y: float
    width: float
    height: float
