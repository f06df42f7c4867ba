"""Narrated text rendering.

The server narrates events as typed segments (player, item, location,
entrance, named color, plain text). Each segment is resolved to display
text and a color category.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from worldsync.notify.models import ColorCategory, TextSegment, color_for_flags, color_for_name
from worldsync.session.models import JSONMessagePart


class NameResolver(Protocol):
    def player_name(self, slot: int) -> str: ...

    def item_name(self, item_id: int, slot: int) -> str | None: ...

    def location_name(self, location_id: int, slot: int) -> str | None: ...


def _parse_int(text: str) -> int | None:
    try:
        return int(text)
    except ValueError:
        return None


def render_part(part: JSONMessagePart, names: NameResolver) -> TextSegment:
    """Resolve one segment to text and color."""
    kind = part.type or "text"

    if kind == "player_id":
        slot = _parse_int(part.text)
        return TextSegment(names.player_name(slot or 0), ColorCategory.PLAYER)

    if kind == "player_name":
        return TextSegment(part.text, ColorCategory.PLAYER)

    if kind == "item_id":
        item_id = _parse_int(part.text)
        name = names.item_name(item_id, part.player) if item_id is not None else None
        return TextSegment(name or "Unknown Item", color_for_flags(part.flags))

    if kind == "item_name":
        return TextSegment(part.text, color_for_flags(part.flags))

    if kind == "location_id":
        location_id = _parse_int(part.text)
        name = names.location_name(location_id, part.player) if location_id is not None else None
        return TextSegment(name or "Unknown Location", ColorCategory.LOCATION)

    if kind == "location_name":
        return TextSegment(part.text, ColorCategory.LOCATION)

    if kind == "entrance_name":
        return TextSegment(part.text, ColorCategory.ENTRANCE)

    if kind == "color":
        return TextSegment(part.text, color_for_name(part.color))

    # "text" and anything unrecognised render plain
    return TextSegment(part.text, ColorCategory.WHITE)


def render_message(parts: Sequence[JSONMessagePart], names: NameResolver) -> list[TextSegment]:
    """Render a narrated message, dropping empty segments."""
    segments = [render_part(part, names) for part in parts]
    return [segment for segment in segments if segment.text]
