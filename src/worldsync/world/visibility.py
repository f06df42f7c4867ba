"""Visibility and proximity enforcement.

Two cadences share one tracked-entity table:

- ``scan``/``refresh`` (low frequency): enumerate every collectible, derive
  its entity id and replace the tracked table wholesale. Unchecked entities
  are shown and get a fresh visibility retry budget, checked ones are
  hidden.
- ``enforce`` (high frequency): re-enumerate live handles, force visibility
  while the retry budget lasts, fire proximity pickups once per entity and
  keep checked entities hidden.

Nothing here mutates the world while the session is not sync-ready.

Usage:
    enforcer = VisibilityEnforcer(world, state, table, side_effects, report=client.report_location_checked)
    enforcer.scan()
    enforcer.enforce()
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping

from worldsync.mapping import EntityId, ItemMappingTable, LocationId, format_entity_id
from worldsync.session.state import SessionState
from worldsync.world.models import COLLECTIBLE_KIND, TrackedEntity
from worldsync.world.protocol import Handle, WorldQuery
from worldsync.world.side_effects import SideEffectQueue

logger = logging.getLogger(__name__)

DEFAULT_PICKUP_RADIUS = 250.0
DEFAULT_VISIBILITY_RETRIES = 10

ReportCallback = Callable[[LocationId], object]


class VisibilityEnforcer:
    """Keeps in-world collectibles consistent with the session state.

    Args:
        world: Host world collaborator.
        state: Shared session state.
        table: Item mapping table, used for entity to location lookup.
        side_effects: Queue receiving barrier openings on pickup.
        report: Called with the location id of every proximity pickup.
        pickup_radius_sq: Squared proximity threshold in world units.
        visibility_retries: Retry budget granted by each scan.
    """

    def __init__(
        self,
        world: WorldQuery,
        state: SessionState,
        table: ItemMappingTable,
        side_effects: SideEffectQueue | None = None,
        report: ReportCallback | None = None,
        pickup_radius_sq: float = DEFAULT_PICKUP_RADIUS * DEFAULT_PICKUP_RADIUS,
        visibility_retries: int = DEFAULT_VISIBILITY_RETRIES,
    ) -> None:
        self._world = world
        self._state = state
        self._table = table
        self._side_effects = side_effects
        self._report = report
        self._radius_sq = pickup_radius_sq
        self._visibility_retries = visibility_retries
        self._tracked: dict[EntityId, TrackedEntity] = {}
        self._links: dict[EntityId, str] = {}

    @property
    def tracked(self) -> Mapping[EntityId, TrackedEntity]:
        return dict(self._tracked)

    @property
    def links(self) -> Mapping[EntityId, str]:
        """Entity id to stable key of the barrier it opens."""
        return dict(self._links)

    def reset_cache(self) -> None:
        """Forget every tracked entity and link, e.g. before a level change."""
        with self._state.lock:
            self._tracked.clear()
            self._links.clear()

    def scan(self) -> int:
        """Full rebuild of the tracked table and the barrier link map.

        Returns:
            Number of tracked entities after the scan.
        """
        try:
            with self._state.lock:
                self._links = self._build_links()
                self._tracked = self._rebuild()
            logger.info("Scan: tracking %d collectibles, %d links", len(self._tracked), len(self._links))
            return len(self._tracked)
        except Exception:
            logger.exception("Scan failed")
            return 0

    def refresh(self) -> int:
        """Rebuild the tracked table, keeping the existing link map."""
        try:
            with self._state.lock:
                self._tracked = self._rebuild()
            return len(self._tracked)
        except Exception:
            logger.exception("Refresh failed")
            return 0

    def enforce(self) -> int:
        """Per-tick enforcement pass.

        Returns:
            Number of proximity pickups fired by this pass.
        """
        if not self._state.sync_ready or not self._tracked:
            return 0
        try:
            with self._state.lock:
                return self._enforce()
        except Exception:
            logger.exception("Enforcement pass failed")
            return 0

    def dump(self) -> None:
        """Log the tracked table and link map."""
        logger.info(
            "Tracked %d collectibles (sync_ready=%s)", len(self._tracked), self._state.sync_ready
        )
        for entity, entry in sorted(self._tracked.items()):
            logger.info(
                "  %s pos=%s reported=%s retries=%d checked=%s granted=%s",
                entity,
                entry.position,
                entry.reported,
                entry.visibility_retries,
                self._state.is_checked(entity),
                self._state.is_granted(entity),
            )
        for entity, barrier in sorted(self._links.items()):
            logger.info("  link %s -> %s", entity, barrier)

    def _entity_of(self, handle: Handle) -> EntityId | None:
        classification = self._world.read_classification(handle)
        if classification is None:
            return None
        return format_entity_id(classification)

    def _live_handles(self) -> dict[EntityId, Handle]:
        live: dict[EntityId, Handle] = {}
        for handle in self._world.enumerate(COLLECTIBLE_KIND):
            entity = self._entity_of(handle)
            if entity is not None and entity not in live:
                live[entity] = handle
        return live

    def _build_links(self) -> dict[EntityId, str]:
        links: dict[EntityId, str] = {}
        for collectible, barrier in self._world.enumerate_links():
            entity = self._entity_of(collectible)
            if entity is None or entity in links:
                continue
            key = self._world.read_stable_key(barrier)
            if key:
                links[entity] = key
        return links

    def _rebuild(self) -> dict[EntityId, TrackedEntity]:
        previous = self._tracked
        synced = self._state.sync_ready
        tracked: dict[EntityId, TrackedEntity] = {}

        for entity, handle in self._live_handles().items():
            old = previous.get(entity)
            position = self._world.read_position(handle)
            if position is None and old is not None:
                position = old.position

            entry = TrackedEntity(entity, position, reported=old.reported if old else False)
            if self._state.is_checked(entity):
                if synced:
                    self._world.set_hidden(handle)
            else:
                entry.visibility_retries = self._visibility_retries
                if synced:
                    self._world.set_visible(handle)
            tracked[entity] = entry

        return tracked

    def _enforce(self) -> int:
        live = self._live_handles()
        player = self._world.read_player_position()
        pickups = 0

        for entity, entry in self._tracked.items():
            handle = live.get(entity)
            if handle is None:
                continue

            if self._state.is_checked(entity):
                self._world.set_hidden(handle)
                continue

            if entry.visibility_retries > 0:
                if self._world.is_hidden(handle):
                    self._world.set_visible(handle)
                entry.visibility_retries -= 1

            if entry.reported or entry.position is None or player is None:
                continue
            if self._world.is_hidden(handle):
                continue
            if player.distance_sq(entry.position) < self._radius_sq:
                self._pick_up(entity, entry, handle)
                pickups += 1

        return pickups

    def _pick_up(self, entity: EntityId, entry: TrackedEntity, handle: Handle) -> None:
        entry.reported = True
        self._world.set_hidden(handle)
        self._state.mark_checked(entity)

        location = self._table.location_id(entity)
        logger.info("Picked up %s (location %s)", entity, location)
        if location is not None and self._report is not None:
            self._report(location)

        barrier = self._links.get(entity)
        if barrier is not None and self._side_effects is not None:
            self._side_effects.enqueue(barrier, label=entity)
