"""Item mapping table: abstract item/location ids to concrete entities.

Each item type id belongs to a family (e.g. ``0x540000`` is ``"DJ"``, Green J).
Repeated grants of one family resolve to successive entities of that family
(``DJ1``, ``DJ2``, ...), so resolution depends on replay order and the
per-family counters must be reset before the server replays its item stream.

Usage:
    table = ItemMappingTable()
    table.resolve(0x540000)   # "DJ1"
    table.resolve(0x540000)   # "DJ2"
    table.reset_counters()
    table.resolve(0x540000)   # "DJ1" again
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Sequence

from worldsync.mapping import data
from worldsync.mapping.models import Classification, EntityId, ItemId, LocationId

logger = logging.getLogger(__name__)

_ENTITY_PATTERN = re.compile(r"^([A-Za-z]+)(\d*)$")


def split_entity_id(entity: EntityId) -> tuple[str, int]:
    """Split ``"DJ3"`` into ``("DJ", 3)``. Missing suffix counts as 0."""
    match = _ENTITY_PATTERN.match(entity)
    if match is None:
        return "", 0
    prefix, number = match.groups()
    return prefix, int(number) if number else 0


def format_entity_id(classification: Classification) -> EntityId | None:
    """Build an entity id from a world classification.

    Returns:
        Entity id such as ``"DJ3"``, or None when the type or shape code is
        unknown or the ordinal is not positive.
    """
    type_letter = data.TYPE_LETTERS.get(classification.type_code)
    shape_letter = data.SHAPE_LETTERS.get(classification.shape_code)
    if type_letter is None or shape_letter is None or classification.ordinal <= 0:
        return None
    return f"{type_letter}{shape_letter}{classification.ordinal}"


class ItemMappingTable:
    """Bidirectional lookup tables plus per-family grant counters.

    Static tables are built once at construction. The only mutable state is
    ``received_count`` per family, which callers serialize behind the
    session state lock when events arrive from another thread.

    Args:
        item_families: Ordered (prefix, display name) pairs; item ids are
            assigned sequentially from ``base_item_id``.
        collectibles: Every collectible entity, in location-id order.
        stars: (puzzle code, entity id) pairs appended after collectibles.
        base_item_id: First item type id.
        base_location_id: First location id.
    """

    def __init__(
        self,
        item_families: Sequence[tuple[str, str]] = data.ITEM_FAMILIES,
        collectibles: Sequence[EntityId] = data.COLLECTIBLES,
        stars: Sequence[tuple[str, EntityId]] = data.STARS,
        base_item_id: ItemId = data.BASE_ITEM_ID,
        base_location_id: LocationId = data.BASE_LOCATION_ID,
    ) -> None:
        self._item_prefix: dict[ItemId, str] = {}
        self._display_names: dict[str, str] = {}
        for offset, (prefix, name) in enumerate(item_families):
            self._item_prefix[base_item_id + offset] = prefix
            self._display_names[prefix] = name

        self._sequences = self._build_sequences(collectibles)

        self._location_by_entity: dict[EntityId, LocationId] = {}
        self._entity_by_location: dict[LocationId, EntityId] = {}
        entities = list(collectibles) + [star_id for _, star_id in stars]
        for offset, entity in enumerate(entities):
            if entity in self._location_by_entity:
                raise ValueError(f"Duplicate entity in location table: {entity}")
            location = base_location_id + offset
            self._location_by_entity[entity] = location
            self._entity_by_location[location] = entity

        self._received: dict[str, int] = {}

        logger.debug(
            "Mappings built: %d locations, %d item types",
            len(self._entity_by_location),
            len(self._item_prefix),
        )

    @staticmethod
    def _build_sequences(collectibles: Iterable[EntityId]) -> dict[str, tuple[EntityId, ...]]:
        grouped: dict[str, list[EntityId]] = {}
        for entity in collectibles:
            prefix, _ = split_entity_id(entity)
            if prefix:
                grouped.setdefault(prefix, []).append(entity)
        return {
            prefix: tuple(sorted(members, key=lambda e: split_entity_id(e)[1]))
            for prefix, members in grouped.items()
        }

    # Resolution

    def resolve(self, item_id: ItemId) -> EntityId | None:
        """Resolve the next concrete entity for a granted item type.

        Increments the family counter. Grants beyond the family size are
        rejected (not wrapped) and logged as an overflow.

        Args:
            item_id: Remote item type id.

        Returns:
            The entity for this grant, or None if the type is unknown or
            the family is exhausted.
        """
        prefix = self._item_prefix.get(item_id)
        if prefix is None:
            logger.warning("Unknown item id: %d (0x%X)", item_id, item_id)
            return None

        sequence = self._sequences.get(prefix, ())
        if not sequence:
            logger.warning("No entity sequence for family %s", prefix)
            return None

        count = self._received.get(prefix, 0) + 1
        self._received[prefix] = count
        if count > len(sequence):
            logger.warning(
                "Received more %s items (%d) than exist (%d), ignoring", prefix, count, len(sequence)
            )
            return None

        entity = sequence[count - 1]
        logger.debug(
            "Resolved item %d (0x%X) -> %s [%s %d/%d]",
            item_id,
            item_id,
            entity,
            prefix,
            count,
            len(sequence),
        )
        return entity

    def reset_counters(self) -> None:
        """Forget all resolved grants. Call before the server replays items."""
        self._received.clear()
        logger.debug("Item received counters reset")

    def received_count(self, prefix: str) -> int:
        return self._received.get(prefix, 0)

    def sequence(self, prefix: str) -> tuple[EntityId, ...]:
        return self._sequences.get(prefix, ())

    # Lookups

    def location_id(self, entity: EntityId) -> LocationId | None:
        return self._location_by_entity.get(entity)

    def entity_for_location(self, location: LocationId) -> EntityId | None:
        return self._entity_by_location.get(location)

    def prefix(self, item_id: ItemId) -> str | None:
        return self._item_prefix.get(item_id)

    def display_name(self, item_id: ItemId) -> str | None:
        """Human-readable name for an item type (e.g. ``"Green J"``)."""
        prefix = self._item_prefix.get(item_id)
        if prefix is None:
            return None
        return self._display_names.get(prefix)

    def display_name_for_entity(self, entity: EntityId) -> str | None:
        prefix, _ = split_entity_id(entity)
        return self._display_names.get(prefix)

    def all_location_ids(self) -> list[LocationId]:
        return sorted(self._entity_by_location)

    def all_item_ids(self) -> list[ItemId]:
        return sorted(self._item_prefix)
