"""Session state mirroring the server's authoritative sets.

One SessionState lives for the whole process. The protocol client mutates
it on inbound events and the enforcement pass mutates it on proximity
pickups. All mutation goes through methods that take ``lock``; callers that
need several reads or writes to be observed atomically (a whole event
batch, a whole enforcement pass) hold ``lock`` around them.

Usage:
    state = SessionState()
    with state.lock:
        state.begin_epoch()
        state.mark_checked("DJ1")
        state.mark_synced()
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable

from worldsync.mapping.models import EntityId

logger = logging.getLogger(__name__)


class SessionState:
    """Granted and checked sets plus sync gating.

    Attributes:
        granted: Entities the server has granted this session.
        checked: Entities confirmed as checked (locally or by the server).
        sync_ready: False until the first full replay after a handshake.
        epoch: Increments on every successful (re)connect.
        reusable: Session setting; claimed entities may be used again.
        lock: Re-entrant lock serializing every mutation.
    """

    def __init__(self) -> None:
        self.lock = threading.RLock()
        self._granted: set[EntityId] = set()
        self._checked: set[EntityId] = set()
        self._sync_ready = False
        self._epoch = 0
        self.reusable = False

    @property
    def sync_ready(self) -> bool:
        return self._sync_ready

    @property
    def epoch(self) -> int:
        return self._epoch

    @property
    def granted(self) -> frozenset[EntityId]:
        with self.lock:
            return frozenset(self._granted)

    @property
    def checked(self) -> frozenset[EntityId]:
        with self.lock:
            return frozenset(self._checked)

    # Epoch lifecycle

    def begin_epoch(self) -> int:
        """Start a new replay epoch: bump the counter and clear grants.

        Checked locations survive so a local-ahead state can be reported
        back to the server.
        """
        with self.lock:
            self._epoch += 1
            self._granted.clear()
            logger.debug("Session epoch %d started", self._epoch)
            return self._epoch

    def mark_synced(self) -> None:
        with self.lock:
            if not self._sync_ready:
                logger.info("Sync ready, enforcement enabled")
            self._sync_ready = True

    def mark_unsynced(self) -> None:
        with self.lock:
            self._sync_ready = False

    # Granted

    def grant(self, entity: EntityId) -> bool:
        """Add a granted entity. Returns True if it was new."""
        with self.lock:
            if entity in self._granted:
                return False
            self._granted.add(entity)
            logger.debug("Item granted: %s", entity)
            return True

    def clear_granted(self) -> None:
        with self.lock:
            self._granted.clear()

    def is_granted(self, entity: EntityId) -> bool:
        with self.lock:
            return entity in self._granted

    # Checked

    def mark_checked(self, entity: EntityId) -> bool:
        """Add a checked entity. Returns True if it was new."""
        with self.lock:
            if entity in self._checked:
                return False
            self._checked.add(entity)
            return True

    def mark_all_checked(self, entities: Iterable[EntityId]) -> int:
        """Union entities into the checked set. Returns how many were new."""
        with self.lock:
            before = len(self._checked)
            self._checked.update(entities)
            return len(self._checked) - before

    def reset_checked(self) -> None:
        with self.lock:
            self._checked.clear()

    def is_checked(self, entity: EntityId) -> bool:
        with self.lock:
            return entity in self._checked

    def should_be_collectable(self, entity: EntityId) -> bool:
        """True while the entity's location has not been checked."""
        return not self.is_checked(entity)
