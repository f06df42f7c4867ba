"""World-side data models."""

from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple

from worldsync.mapping.models import EntityId

COLLECTIBLE_KIND = "collectible"
"""Entity kind enumerated for checkable entities."""

BARRIER_KIND = "barrier"
"""Entity kind enumerated when resolving side-effect targets."""


class Vec3(NamedTuple):
    x: float
    y: float
    z: float

    def distance_sq(self, other: Vec3) -> float:
        dx = self.x - other.x
        dy = self.y - other.y
        dz = self.z - other.z
        return dx * dx + dy * dy + dz * dz


@dataclass(slots=True)
class TrackedEntity:
    """Per-entity tracking data, rebuilt wholesale by every scan.

    No world handle is stored: handles are only valid during the pass
    that enumerated them.

    Attributes:
        entity: Entity id, e.g. ``"DJ1"``.
        position: Last known world position, None if never read.
        reported: Proximity pickup already fired this session.
        visibility_retries: Remaining passes allowed to force visibility.
    """

    entity: EntityId
    position: Vec3 | None = None
    reported: bool = False
    visibility_retries: int = 0


@dataclass(slots=True)
class PendingSideEffect:
    """A deferred world mutation awaiting a resolvable target.

    Attributes:
        target_key: Stable key of the target entity, never a live handle.
        action: Remote action invoked on the target.
        kind: Entity kind enumerated to find the target.
        attempts: Failed attempts so far.
        label: What triggered the effect, for logs.
    """

    target_key: str
    action: str
    kind: str = BARRIER_KIND
    attempts: int = 0
    label: str = ""
