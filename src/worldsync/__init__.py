"""worldsync: multiworld state reconciliation engine.

Keeps a host game world consistent with a remote multiworld session:
items granted by the server become collectible in-world, locations
checked anywhere are hidden locally, and proximity pickups are reported
back upstream.

Usage:
    from worldsync import Engine, EngineSettings, load_settings

    engine = Engine(load_settings(), EngineSettings(), world)
    engine.start()
    while running:
        engine.tick()
"""

__version__ = "0.1.0"

from worldsync.config import EngineSettings, SessionSettings, load_settings
from worldsync.engine import Engine
from worldsync.errors import ProtocolError, TransportError, WorldSyncError
from worldsync.mapping import ItemMappingTable
from worldsync.notify import NotificationFeed
from worldsync.session import SessionClient, SessionState
from worldsync.world import InMemoryWorld, Vec3, WorldQuery

__all__ = [
    "__version__",
    "Engine",
    "EngineSettings",
    "SessionSettings",
    "load_settings",
    "WorldSyncError",
    "ProtocolError",
    "TransportError",
    "ItemMappingTable",
    "NotificationFeed",
    "SessionClient",
    "SessionState",
    "InMemoryWorld",
    "Vec3",
    "WorldQuery",
]
