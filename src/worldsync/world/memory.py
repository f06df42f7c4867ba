"""In-memory world implementation.

Dict-based stand-in for a host game, suitable for offline runs and tests.
Handles are plain integers that are never reused.

Usage:
    world = InMemoryWorld()
    door = world.add_barrier("/Level/Door_1")
    dj1 = world.add_collectible("DJ1", Vec3(0, 0, 0), opens=door)
    world.set_player_position(Vec3(10, 0, 0))
"""

from __future__ import annotations

from dataclasses import dataclass, field

from worldsync.mapping import Classification, EntityId, split_entity_id
from worldsync.mapping.data import SHAPE_LETTERS, TYPE_LETTERS
from worldsync.world.models import BARRIER_KIND, COLLECTIBLE_KIND, Vec3

_TYPE_CODES = {letter: code for code, letter in TYPE_LETTERS.items()}
_SHAPE_CODES = {letter: code for code, letter in SHAPE_LETTERS.items()}


def classify(entity: EntityId) -> Classification:
    """Inverse of ``format_entity_id``.

    Raises:
        ValueError: If the id is not a two-letter prefix plus ordinal.
    """
    prefix, ordinal = split_entity_id(entity)
    if len(prefix) != 2 or prefix[0] not in _TYPE_CODES or prefix[1] not in _SHAPE_CODES:
        raise ValueError(f"Not a collectible entity id: {entity!r}")
    return Classification(_TYPE_CODES[prefix[0]], _SHAPE_CODES[prefix[1]], ordinal)


@dataclass(slots=True)
class WorldEntity:
    kind: str
    key: str
    classification: Classification | None = None
    position: Vec3 | None = None
    hidden: bool = False
    failures_left: int = 0
    """Number of upcoming ``invoke`` calls that fail."""
    invocations: list[str] = field(default_factory=list)


class InMemoryWorld:
    """Simple world backed by a dict of entities.

    Implements the ``WorldQuery`` protocol plus helpers to build and mutate
    the scene.
    """

    def __init__(self) -> None:
        self._entities: dict[int, WorldEntity] = {}
        self._next_handle = 1
        self._links: list[tuple[int, int]] = []
        self.player_position: Vec3 | None = None
        self.inventory: dict[EntityId, bool] | None = {}

    # Scene building

    def _add(self, entity: WorldEntity) -> int:
        handle = self._next_handle
        self._next_handle += 1
        self._entities[handle] = entity
        return handle

    def add_collectible(
        self,
        entity: EntityId,
        position: Vec3 | None = None,
        hidden: bool = False,
        opens: int | None = None,
    ) -> int:
        handle = self._add(
            WorldEntity(COLLECTIBLE_KIND, f"/Collectible/{entity}", classify(entity), position, hidden)
        )
        if opens is not None:
            self.link(handle, opens)
        return handle

    def link(self, collectible: int, barrier: int) -> None:
        """Record that taking ``collectible`` opens ``barrier``."""
        self._links.append((collectible, barrier))

    def add_barrier(self, key: str, failures: int = 0) -> int:
        return self._add(WorldEntity(BARRIER_KIND, key, failures_left=failures))

    def remove(self, handle: int) -> None:
        self._entities.pop(handle, None)
        self._links = [link for link in self._links if handle not in link]

    def clear(self) -> None:
        """Tear down every entity, as a level unload would."""
        self._entities.clear()
        self._links.clear()

    def set_player_position(self, position: Vec3 | None) -> None:
        self.player_position = position

    def entity(self, handle: int) -> WorldEntity:
        return self._entities[handle]

    # WorldQuery

    def enumerate(self, kind: str) -> list[int]:
        return [handle for handle, entity in self._entities.items() if entity.kind == kind]

    def read_classification(self, handle: int) -> Classification | None:
        entity = self._entities.get(handle)
        return entity.classification if entity else None

    def read_position(self, handle: int) -> Vec3 | None:
        entity = self._entities.get(handle)
        return entity.position if entity else None

    def read_stable_key(self, handle: int) -> str | None:
        entity = self._entities.get(handle)
        return entity.key if entity else None

    def is_hidden(self, handle: int) -> bool:
        entity = self._entities.get(handle)
        return entity.hidden if entity else False

    def set_visible(self, handle: int) -> bool:
        return self._set_hidden(handle, False)

    def set_hidden(self, handle: int) -> bool:
        return self._set_hidden(handle, True)

    def _set_hidden(self, handle: int, hidden: bool) -> bool:
        entity = self._entities.get(handle)
        if entity is None:
            return False
        entity.hidden = hidden
        return True

    def read_player_position(self) -> Vec3 | None:
        return self.player_position

    def enumerate_links(self) -> list[tuple[int, int]]:
        return list(self._links)

    def invoke(self, handle: int, action: str) -> bool:
        entity = self._entities.get(handle)
        if entity is None:
            return False
        if entity.failures_left > 0:
            entity.failures_left -= 1
            return False
        entity.invocations.append(action)
        return True

    def read_inventory(self) -> dict[EntityId, bool] | None:
        return None if self.inventory is None else dict(self.inventory)

    def write_inventory_entry(self, entity: EntityId, used: bool) -> bool:
        if self.inventory is None:
            return False
        self.inventory[entity] = used
        return True

    def remove_inventory_entry(self, entity: EntityId) -> bool:
        if self.inventory is None or entity not in self.inventory:
            return False
        del self.inventory[entity]
        return True
