"""Name lookups for items, locations and players from other games."""

from __future__ import annotations

import logging

from worldsync.session.models import GameData, NetworkPlayer

logger = logging.getLogger(__name__)


class DataPackageCache:
    """Per-game id -> name tables received from the server."""

    def __init__(self) -> None:
        self._items: dict[str, dict[int, str]] = {}
        self._locations: dict[str, dict[int, str]] = {}

    def update(self, games: dict[str, GameData]) -> None:
        for game, contents in games.items():
            self._items[game] = {item_id: name for name, item_id in contents.item_name_to_id.items()}
            self._locations[game] = {
                location_id: name for name, location_id in contents.location_name_to_id.items()
            }
        logger.debug("Data package updated for %d games", len(games))

    def has_game(self, game: str) -> bool:
        return game in self._items

    def item_name(self, item_id: int, game: str | None) -> str | None:
        if game is None:
            return None
        return self._items.get(game, {}).get(item_id)

    def location_name(self, location_id: int, game: str | None) -> str | None:
        if game is None:
            return None
        return self._locations.get(game, {}).get(location_id)


class PlayerDirectory:
    """Slot -> alias and slot -> game for the current room."""

    def __init__(self) -> None:
        self._aliases: dict[int, str] = {}
        self._games: dict[int, str] = {}

    def clear(self) -> None:
        self._aliases.clear()
        self._games.clear()

    def update_players(self, players: list[NetworkPlayer]) -> None:
        for player in players:
            self._aliases[player.slot] = player.alias or player.name

    def set_game(self, slot: int, game: str) -> None:
        if game:
            self._games[slot] = game

    def game(self, slot: int) -> str | None:
        return self._games.get(slot)

    def name(self, slot: int) -> str:
        """Display name for a slot. Slot 0 is the server itself."""
        if slot == 0:
            return "Server"
        alias = self._aliases.get(slot)
        return alias if alias else f"Player {slot}"
