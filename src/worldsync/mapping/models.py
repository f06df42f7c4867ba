"""Identity types shared across the engine."""

from __future__ import annotations

from dataclasses import dataclass

EntityId = str
"""Concrete in-world entity identifier, e.g. ``"DJ3"`` or ``"Star12"``."""

ItemId = int
"""Abstract remote item type identifier."""

LocationId = int
"""Abstract remote location identifier, 1:1 with an EntityId."""


@dataclass(frozen=True, slots=True)
class Classification:
    """Raw classification read from a world entity.

    Attributes:
        type_code: Entity type enum value (1, 2, 4, ... 64).
        shape_code: Shape/subtype enum value (1, 2, 4, ... 64).
        ordinal: Per-family number, 1-based.
    """

    type_code: int
    shape_code: int
    ordinal: int
