"""Notification data models.

A notification is an ordered list of colored text segments. Presentation
(fonts, widgets, layout) belongs to the host; these types only carry what
to show and for how long.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntFlag


class ColorCategory(Enum):
    """Semantic color of a text segment."""

    WHITE = "white"
    PLAYER = "player"
    ITEM = "item"
    PROGRESSION = "progression"
    USEFUL = "useful"
    TRAP = "trap"
    LOCATION = "location"
    ENTRANCE = "entrance"
    SERVER = "server"


class ItemFlags(IntFlag):
    """Item classification flags carried on network items."""

    FILLER = 0
    PROGRESSION = 1
    USEFUL = 2
    TRAP = 4


# Named colors used by narrated text segments.
NAMED_COLORS: dict[str, ColorCategory] = {
    "red": ColorCategory.TRAP,
    "green": ColorCategory.ITEM,
    "blue": ColorCategory.USEFUL,
    "slateblue": ColorCategory.USEFUL,
    "magenta": ColorCategory.PROGRESSION,
    "purple": ColorCategory.PROGRESSION,
    "plum": ColorCategory.PROGRESSION,
    "yellow": ColorCategory.LOCATION,
    "cyan": ColorCategory.PLAYER,
    "salmon": ColorCategory.TRAP,
    "white": ColorCategory.WHITE,
    "black": ColorCategory.WHITE,  # never render invisible text
}


def color_for_flags(flags: int) -> ColorCategory:
    """Map item flags to a color. Progression wins over useful over trap."""
    item_flags = ItemFlags(flags & 0b111)
    if ItemFlags.PROGRESSION in item_flags:
        return ColorCategory.PROGRESSION
    if ItemFlags.USEFUL in item_flags:
        return ColorCategory.USEFUL
    if ItemFlags.TRAP in item_flags:
        return ColorCategory.TRAP
    return ColorCategory.ITEM


def color_for_name(name: str | None) -> ColorCategory:
    if not name:
        return ColorCategory.WHITE
    return NAMED_COLORS.get(name.lower(), ColorCategory.WHITE)


@dataclass(frozen=True, slots=True)
class TextSegment:
    """One colored piece of a notification line."""

    text: str
    color: ColorCategory = ColorCategory.WHITE


@dataclass(slots=True)
class Notification:
    """A queued or visible notification.

    Attributes:
        segments: Colored text pieces, rendered left to right.
        duration: Display time in seconds.
        expires_at: Feed clock time at which a visible entry is removed.
    """

    segments: list[TextSegment] = field(default_factory=list)
    duration: float = 6.0
    expires_at: float | None = None

    @property
    def text(self) -> str:
        return "".join(segment.text for segment in self.segments)
