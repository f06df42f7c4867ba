"""Configuration module using Pydantic Settings.

Provides typed configuration for the session client and the tick engine,
with environment variable and JSON file support.

Usage:
    from worldsync.config import SessionSettings, EngineSettings, load_settings

    session = load_settings("config.json")
    engine = EngineSettings(enforce_every=3)
"""

from worldsync.config.settings import EngineSettings, SessionSettings, load_settings

__all__ = [
    "SessionSettings",
    "EngineSettings",
    "load_settings",
]
