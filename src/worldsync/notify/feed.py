"""Notification feed consumed by an external presentation layer.

Usage:
    feed = NotificationFeed(max_visible=15)
    feed.notify([TextSegment("Alice", ColorCategory.PLAYER), TextSegment(" sent you ")])
    feed.tick(delta_ticks=12, ticks_per_second=60)
    for entry in feed.visible:
        render(entry.segments)
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from collections.abc import Sequence

from worldsync.notify.models import ColorCategory, Notification, TextSegment

logger = logging.getLogger(__name__)


class NotificationFeed:
    """Pending queue plus a bounded list of visible, expiring entries.

    ``notify`` may be called from the network context; ``tick`` runs in the
    tick context. A small lock keeps the two queues consistent.

    Args:
        max_visible: Cap for both the pending queue and the visible list.
        default_duration: Display time for entries without an explicit one.
    """

    def __init__(self, max_visible: int = 15, default_duration: float = 6.0) -> None:
        if max_visible < 1:
            raise ValueError(f"max_visible must be positive, got {max_visible}")
        self._max_visible = max_visible
        self._default_duration = default_duration
        self._pending: deque[Notification] = deque()
        self._visible: deque[Notification] = deque()
        self._clock = 0.0
        self._lock = threading.Lock()

    @property
    def clock(self) -> float:
        return self._clock

    @property
    def pending(self) -> list[Notification]:
        with self._lock:
            return list(self._pending)

    @property
    def visible(self) -> list[Notification]:
        with self._lock:
            return list(self._visible)

    def notify(self, segments: Sequence[TextSegment], duration: float | None = None) -> None:
        """Queue a multi-color notification. Empty segment lists are ignored."""
        if not segments:
            return
        entry = Notification(
            segments=list(segments),
            duration=self._default_duration if duration is None else duration,
        )
        logger.info("Notify: %s", entry.text)
        with self._lock:
            self._pending.append(entry)
            while len(self._pending) > self._max_visible:
                self._pending.popleft()

    def notify_simple(
        self,
        text: str,
        color: ColorCategory = ColorCategory.WHITE,
        duration: float | None = None,
    ) -> None:
        self.notify([TextSegment(text, color)], duration)

    def tick(self, delta_ticks: float = 1.0, ticks_per_second: float = 60.0) -> None:
        """Advance the clock, move pending entries to visible, expire old ones."""
        with self._lock:
            self._clock += delta_ticks / ticks_per_second

            while self._pending:
                entry = self._pending.popleft()
                entry.expires_at = self._clock + entry.duration
                self._visible.append(entry)
                while len(self._visible) > self._max_visible:
                    self._visible.popleft()

            self._visible = deque(
                entry
                for entry in self._visible
                if entry.expires_at is None or entry.expires_at > self._clock
            )

    def clear(self) -> None:
        with self._lock:
            self._pending.clear()
            self._visible.clear()
