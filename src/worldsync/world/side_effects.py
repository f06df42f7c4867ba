"""Bounded retry queue for deferred world mutations.

Targets are held by stable key and re-resolved from scratch on every
attempt; no handle survives between passes.

Usage:
    queue = SideEffectQueue(world)
    queue.enqueue("/Game/Level/Door_3", action="open")
    queue.process_once()
"""

from __future__ import annotations

import logging

from worldsync.world.models import BARRIER_KIND, PendingSideEffect
from worldsync.world.protocol import Handle, WorldQuery

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 10


class SideEffectQueue:
    """Pending side effects with a fixed attempt ceiling.

    Args:
        world: Host world collaborator.
        max_attempts: Failed attempts after which an entry is dropped.
    """

    def __init__(self, world: WorldQuery, max_attempts: int = DEFAULT_MAX_ATTEMPTS) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self._world = world
        self._max_attempts = max_attempts
        self._pending: list[PendingSideEffect] = []

    def __len__(self) -> int:
        return len(self._pending)

    @property
    def pending(self) -> tuple[PendingSideEffect, ...]:
        return tuple(self._pending)

    def enqueue(
        self,
        target_key: str,
        action: str = "open",
        kind: str = BARRIER_KIND,
        label: str = "",
    ) -> PendingSideEffect:
        """Queue an action on the entity identified by ``target_key``.

        An identical pending entry (same key, action and kind) is reused.
        """
        for effect in self._pending:
            if (effect.target_key, effect.action, effect.kind) == (target_key, action, kind):
                return effect
        effect = PendingSideEffect(target_key, action, kind, label=label)
        self._pending.append(effect)
        logger.debug("Queued %s on %s (%s)", action, target_key, label or "no label")
        return effect

    def clear(self) -> None:
        self._pending.clear()

    def process_once(self) -> int:
        """Attempt every pending entry once.

        Returns:
            Number of entries that succeeded and were removed.
        """
        if not self._pending:
            return 0

        completed = 0
        remaining: list[PendingSideEffect] = []
        for effect in self._pending:
            if self._attempt(effect):
                completed += 1
                logger.info("%s on %s succeeded", effect.action, effect.target_key)
                continue
            effect.attempts += 1
            if effect.attempts >= self._max_attempts:
                logger.warning(
                    "Giving up on %s %s after %d attempts",
                    effect.action,
                    effect.target_key,
                    effect.attempts,
                )
                continue
            remaining.append(effect)
        self._pending = remaining
        return completed

    def _resolve(self, effect: PendingSideEffect) -> Handle | None:
        for handle in self._world.enumerate(effect.kind):
            if self._world.read_stable_key(handle) == effect.target_key:
                return handle
        return None

    def _attempt(self, effect: PendingSideEffect) -> bool:
        try:
            handle = self._resolve(effect)
            if handle is None:
                logger.debug("%s not resolvable yet", effect.target_key)
                return False
            return bool(self._world.invoke(handle, effect.action))
        except Exception as exc:
            logger.warning("%s on %s failed: %s", effect.action, effect.target_key, exc)
            return False
