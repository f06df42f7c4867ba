"""Engine coordinator running every pass on tick cadences."""

from worldsync.engine.engine import Engine, default_transport

__all__ = ["Engine", "default_transport"]
