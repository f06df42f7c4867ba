"""World-side enforcement.

The host world is reached only through the ``WorldQuery`` protocol;
everything here re-enumerates handles on every pass.
"""

from worldsync.world.inventory import InventoryReconciler
from worldsync.world.memory import InMemoryWorld, classify
from worldsync.world.models import (
    BARRIER_KIND,
    COLLECTIBLE_KIND,
    PendingSideEffect,
    TrackedEntity,
    Vec3,
)
from worldsync.world.protocol import Handle, WorldQuery
from worldsync.world.side_effects import SideEffectQueue
from worldsync.world.visibility import VisibilityEnforcer

__all__ = [
    "BARRIER_KIND",
    "COLLECTIBLE_KIND",
    "Handle",
    "InMemoryWorld",
    "InventoryReconciler",
    "PendingSideEffect",
    "SideEffectQueue",
    "TrackedEntity",
    "Vec3",
    "VisibilityEnforcer",
    "WorldQuery",
    "classify",
]
