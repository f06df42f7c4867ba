"""Configuration settings using Pydantic Settings.

Usage:
    from worldsync.config import SessionSettings, load_settings

    # Load from environment variables (WORLDSYNC_*)
    settings = SessionSettings()

    # Or overlay a JSON config file on the defaults
    settings = load_settings("Mods/worldsync/config.json")
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError, field_validator

try:
    from pydantic_settings import BaseSettings, SettingsConfigDict
except ImportError as e:
    raise ImportError(
        "pydantic-settings is required for config module. "
        "Install with: pip install worldsync"
    ) from e

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_NAME = "config.json"


class SessionSettings(BaseSettings):  # type: ignore[misc]
    """Connection settings for the session server.

    Attributes:
        server: Host and port of the session server (scheme optional).
        slot_name: Slot (participant) name used for authentication.
        password: Room password, empty when the room has none.
        game: Game name announced during the handshake.
        offline_mode: Disable the protocol client and play locally.
        uuid_file: File holding this client's persistent UUID.
        items_handling: Capability bitmask (7 = receive items from all sources).
        tags: Capability tags sent with the slot request.
        connect_attempts: Socket-open attempts (1 = no retry).
        connect_backoff: Base delay in seconds between socket-open attempts.

    Environment Variables:
        WORLDSYNC_SERVER
        WORLDSYNC_SLOT_NAME
        WORLDSYNC_PASSWORD
        WORLDSYNC_GAME
        WORLDSYNC_OFFLINE_MODE
    """

    model_config = SettingsConfigDict(
        env_prefix="WORLDSYNC_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    server: str = "archipelago.gg:38281"
    slot_name: str = "Player1"
    password: str = ""
    game: str = "The Talos Principle Reawakened"
    offline_mode: bool = False
    uuid_file: str = "worldsync_uuid.txt"
    items_handling: int = 0b111
    tags: list[str] = ["AP"]
    connect_attempts: int = 1
    connect_backoff: float = 0.5

    @field_validator("server", "slot_name", "game", mode="before")
    @classmethod
    def _keep_default_when_blank(cls, value: Any, info: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return cls.model_fields[info.field_name].default
        return value

    def server_url(self) -> str:
        """Server address with a websocket scheme."""
        if "://" in self.server:
            return self.server
        return f"ws://{self.server}"

    def describe(self) -> dict[str, Any]:
        """Loggable view of the settings with the password masked."""
        view = self.model_dump()
        view["password"] = "****" if self.password else "(none)"
        return view


class EngineSettings(BaseSettings):  # type: ignore[misc]
    """Tick cadences and enforcement tuning.

    Cadences are expressed in ticks; ``ticks_per_second`` converts them to
    simulated time. The proximity threshold is compared squared.

    Environment Variables:
        WORLDSYNC_ENGINE_<FIELD>
    """

    model_config = SettingsConfigDict(
        env_prefix="WORLDSYNC_ENGINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    ticks_per_second: float = 60.0
    enforce_every: int = 5
    refresh_every: int = 60
    side_effects_every: int = 6
    inventory_every: int = 60
    notifications_every: int = 12
    pickup_radius: float = 250.0
    visibility_retries: int = 10
    side_effect_attempts: int = 10
    transition_cooldown: int = 30
    notification_max_visible: int = 15
    notification_duration: float = 6.0

    @property
    def pickup_radius_sq(self) -> float:
        return self.pickup_radius * self.pickup_radius


def _read_config_file(path: Path) -> dict[str, Any] | None:
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError:
        return None

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.warning("Config %s parse error: %s", path, e)
        return {}

    if not isinstance(data, dict):
        logger.warning("Config %s is not a JSON object, ignoring", path)
        return {}
    return data


def load_settings(path: str | Path | None = None) -> SessionSettings:
    """Load session settings from a JSON file, falling back to defaults.

    Searches ``path`` (when given) and then ``./config.json``. Recognised keys
    are overlaid on the defaults; anything unreadable or invalid is logged
    and the compiled-in defaults are used instead. Never raises.

    Args:
        path: Explicit config file location.

    Returns:
        Populated SessionSettings.
    """
    candidates = [Path(path)] if path is not None else []
    candidates.append(Path(DEFAULT_CONFIG_NAME))

    data: dict[str, Any] | None = None
    found: Path | None = None
    for candidate in candidates:
        data = _read_config_file(candidate)
        if data is not None:
            found = candidate
            break

    if found is None:
        logger.warning("%s not found, using defaults", DEFAULT_CONFIG_NAME)
        return SessionSettings()

    known = {key: value for key, value in (data or {}).items() if key in SessionSettings.model_fields}
    try:
        settings = SessionSettings(**known)
    except ValidationError as e:
        logger.warning("Config %s has invalid values, using defaults: %s", found, e)
        return SessionSettings()

    logger.info("Config loaded from %s: %s", found, settings.describe())
    return settings
