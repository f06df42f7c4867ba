"""Keeps the host's collected-inventory map equal to the granted set."""

from __future__ import annotations

import logging

from worldsync.session.state import SessionState
from worldsync.world.protocol import WorldQuery

logger = logging.getLogger(__name__)


class InventoryReconciler:
    """Removes ungranted entries, adds missing granted ones.

    When the session marks claimed entities as reusable, every used flag
    is reset as well. Inert until the session is sync-ready, so a partial
    replay never strips the host inventory.
    """

    def __init__(self, world: WorldQuery, state: SessionState) -> None:
        self._world = world
        self._state = state

    def reconcile(self) -> int:
        """Run one reconciliation pass.

        Returns:
            Number of inventory entries changed.
        """
        if not self._state.sync_ready:
            return 0
        try:
            with self._state.lock:
                return self._reconcile()
        except Exception:
            logger.exception("Inventory reconciliation failed")
            return 0

    def _reconcile(self) -> int:
        inventory = self._world.read_inventory()
        if inventory is None:
            logger.debug("Inventory unavailable")
            return 0

        granted = self._state.granted
        changed = 0

        to_remove = [entity for entity in inventory if entity and entity not in granted]
        for entity in to_remove:
            if self._world.remove_inventory_entry(entity):
                changed += 1
        if to_remove:
            logger.info("Removed %d/%d ungranted inventory entries", changed, len(to_remove))

        for entity in sorted(granted - inventory.keys()):
            if self._world.write_inventory_entry(entity, False):
                changed += 1

        if self._state.reusable:
            for entity, used in inventory.items():
                if used and entity in granted and self._world.write_inventory_entry(entity, False):
                    changed += 1

        return changed
