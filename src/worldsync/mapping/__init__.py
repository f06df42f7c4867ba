"""Item identity resolution.

Maps abstract remote item and location identifiers to concrete in-world
entities.
"""

from worldsync.mapping.models import Classification, EntityId, ItemId, LocationId
from worldsync.mapping.table import ItemMappingTable, format_entity_id, split_entity_id

__all__ = [
    "Classification",
    "EntityId",
    "ItemId",
    "LocationId",
    "ItemMappingTable",
    "format_entity_id",
    "split_entity_id",
]
