"""Test utilities package."""

from .item_records import (
    Clash,
    Dept,
    Gadget,
    Loose,
    Manager,
    NeedsArgs,
    Plain,
    Point,
    Shift,
    Worker,
)

__all__ = [
    "Clash",
    "Dept",
    "Gadget",
    "Loose",
    "Manager",
    "NeedsArgs",
    "Plain",
    "Point",
    "Shift",
    "Worker",
]
