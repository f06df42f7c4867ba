"""World-query collaborator protocol.

The host game implements this narrow interface; the engine never reaches
into host objects any other way. Handles are opaque and only valid for the
duration of the call sequence that produced them: callers re-enumerate on
every pass and never keep a handle across passes.

Failures are reported through return values (``None`` or ``False``).
Implementations should still expect callers to contain any exception they
raise, since the host side may be concurrently mutated.

Usage:
    world = InMemoryWorld()
    enforcer = VisibilityEnforcer(world, state, table, side_effects)
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from worldsync.mapping.models import Classification, EntityId
from worldsync.world.models import Vec3

Handle = Any
"""Opaque, short-lived reference to a world entity."""


@runtime_checkable
class WorldQuery(Protocol):
    """Host world query and mutation interface."""

    def enumerate(self, kind: str) -> list[Handle]:
        """All live entities of a kind (e.g. ``"collectible"``)."""
        ...

    def read_classification(self, handle: Handle) -> Classification | None:
        """Type, shape and ordinal of an entity, None if unavailable."""
        ...

    def read_position(self, handle: Handle) -> Vec3 | None:
        """World-space position, None if unavailable."""
        ...

    def read_stable_key(self, handle: Handle) -> str | None:
        """Identifier that stays valid across passes (e.g. a full object path)."""
        ...

    def is_hidden(self, handle: Handle) -> bool:
        """True if the host currently hides the entity."""
        ...

    def set_visible(self, handle: Handle) -> bool:
        ...

    def set_hidden(self, handle: Handle) -> bool:
        ...

    def read_player_position(self) -> Vec3 | None:
        ...

    def enumerate_links(self) -> list[tuple[Handle, Handle]]:
        """(collectible, barrier) pairs: barriers that open when a collectible is taken."""
        ...

    def invoke(self, handle: Handle, action: str) -> bool:
        """Invoke a remote action on an entity. Returns True on success."""
        ...

    def read_inventory(self) -> dict[EntityId, bool] | None:
        """Host's collected-inventory map (entity -> used flag), None if unavailable."""
        ...

    def write_inventory_entry(self, entity: EntityId, used: bool) -> bool:
        ...

    def remove_inventory_entry(self, entity: EntityId) -> bool:
        ...
