"""User-facing notifications produced by the engine."""

from worldsync.notify.feed import NotificationFeed
from worldsync.notify.models import (
    NAMED_COLORS,
    ColorCategory,
    ItemFlags,
    Notification,
    TextSegment,
    color_for_flags,
    color_for_name,
)

__all__ = [
    "NotificationFeed",
    "Notification",
    "TextSegment",
    "ColorCategory",
    "ItemFlags",
    "NAMED_COLORS",
    "color_for_flags",
    "color_for_name",
]
