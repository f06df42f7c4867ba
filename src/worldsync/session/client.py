"""Session protocol client.

Owns the connection state machine and applies every inbound event to the
session state and item mapping table. Handlers run synchronously inside
``poll`` while holding ``SessionState.lock``, so an enforcement pass on
another thread only ever observes a fully applied event.

State machine:
    DISCONNECTED -> SOCKET_CONNECTING -> SOCKET_CONNECTED -> ROOM_INFO -> SLOT_CONNECTED
    (any state) -> DISCONNECTED on socket loss

Usage:
    client = SessionClient(settings, state, table, WebSocketTransport(), feed)
    client.connect()
    while running:
        client.poll()
        ...
        client.report_location_checked(location_id)
"""

from __future__ import annotations

import logging
import uuid as uuid_lib
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from worldsync.config.settings import SessionSettings
from worldsync.errors import ProtocolError, TransportError
from worldsync.mapping.models import LocationId
from worldsync.mapping.table import ItemMappingTable
from worldsync.notify.feed import NotificationFeed
from worldsync.notify.models import ColorCategory, TextSegment, color_for_flags
from worldsync.session.models import (
    STATUS_TEXT,
    ClientStatus,
    Connect,
    Connected,
    ConnectionRefused,
    ConnectionStatus,
    DataPackage,
    GetDataPackage,
    LocationChecks,
    NetworkItem,
    PrintJSON,
    ReceivedItems,
    RoomInfo,
    RoomUpdate,
    StatusUpdate,
    Sync,
    parse_packet,
)
from worldsync.session.names import DataPackageCache, PlayerDirectory
from worldsync.session.protocol import Transport, TransportEvent, TransportEventKind
from worldsync.session.state import SessionState
from worldsync.session.text import render_message

logger = logging.getLogger(__name__)


def load_or_create_uuid(path: str | Path) -> str:
    """Read this client's persistent UUID, creating it on first use."""
    uuid_path = Path(path)
    try:
        existing = uuid_path.read_text(encoding="utf-8").strip()
    except OSError:
        existing = ""
    if existing:
        return existing

    created = uuid_lib.uuid4().hex
    try:
        uuid_path.write_text(created, encoding="utf-8")
    except OSError as e:
        logger.warning("Could not persist client UUID to %s: %s", uuid_path, e)
    return created


class SessionClient:
    """Client side of the session protocol.

    Args:
        settings: Connection settings.
        state: Shared session state, mutated on every inbound event.
        table: Item mapping table used to resolve grants and locations.
        transport: Message channel to the session server.
        feed: Optional sink for user-facing notifications.
        client_uuid: Explicit client UUID; read from ``settings.uuid_file``
            when omitted.
    """

    def __init__(
        self,
        settings: SessionSettings,
        state: SessionState,
        table: ItemMappingTable,
        transport: Transport,
        feed: NotificationFeed | None = None,
        client_uuid: str | None = None,
    ) -> None:
        self._settings = settings
        self._state = state
        self._table = table
        self._transport = transport
        self._feed = feed
        self._uuid = client_uuid

        self._status = ConnectionStatus.DISCONNECTED
        self._refused_reasons: list[str] = []
        self._player_slot = -1
        self._team = -1
        self._players = PlayerDirectory()
        self._data_package = DataPackageCache()
        self._next_item_index = 0
        self._announced_items = 0
        self._goal_sent = False

    # Accessors

    @property
    def status(self) -> ConnectionStatus:
        return self._status

    @property
    def is_connected(self) -> bool:
        return self._status not in (ConnectionStatus.DISCONNECTED, ConnectionStatus.SOCKET_CONNECTING)

    @property
    def is_slot_connected(self) -> bool:
        return self._status is ConnectionStatus.SLOT_CONNECTED

    @property
    def player_slot(self) -> int:
        return self._player_slot

    @property
    def team(self) -> int:
        return self._team

    @property
    def refused_reasons(self) -> list[str]:
        return list(self._refused_reasons)

    @property
    def goal_sent(self) -> bool:
        return self._goal_sent

    def status_text(self) -> str:
        if self._refused_reasons and self._status is not ConnectionStatus.SLOT_CONNECTED:
            return "connection refused: " + ", ".join(self._refused_reasons)
        return STATUS_TEXT[self._status]

    def player_name(self, slot: int) -> str:
        return self._players.name(slot)

    def item_name(self, item_id: int, slot: int) -> str | None:
        return self._data_package.item_name(item_id, self._game_for(slot))

    def location_name(self, location_id: int, slot: int) -> str | None:
        return self._data_package.location_name(location_id, self._game_for(slot))

    def _game_for(self, slot: int) -> str | None:
        game = self._players.game(slot)
        if game is None and slot == self._player_slot:
            return self._settings.game
        return game

    # Outbound

    def connect(self) -> None:
        """Open the socket. Progress is driven by subsequent ``poll`` calls."""
        if self._status is not ConnectionStatus.DISCONNECTED:
            logger.warning("connect() ignored while %s", self.status_text())
            return
        if self._uuid is None:
            self._uuid = load_or_create_uuid(self._settings.uuid_file)

        url = self._settings.server_url()
        logger.info("Connecting to %s as '%s' (%s)", url, self._settings.slot_name, self._settings.game)
        self._refused_reasons = []
        self._status = ConnectionStatus.SOCKET_CONNECTING
        try:
            self._transport.open(url)
        except TransportError as e:
            logger.error("Could not open transport: %s", e)
            self._status = ConnectionStatus.DISCONNECTED

    def disconnect(self) -> None:
        try:
            self._transport.close()
        except TransportError as e:
            logger.warning("Error closing transport: %s", e)
        self._on_closed("client disconnect")

    def _send(self, *packets: BaseModel) -> bool:
        wire = [packet.to_wire() for packet in packets]  # type: ignore[attr-defined]
        try:
            self._transport.send(wire)
        except TransportError as e:
            logger.error("Send failed: %s", e)
            return False
        return True

    def report_location_checked(self, location_id: LocationId) -> bool:
        """Report one checked location. Returns True if it was sent."""
        return self.report_locations_checked([location_id])

    def report_locations_checked(self, location_ids: Iterable[LocationId]) -> bool:
        locations = sorted(set(location_ids))
        if not locations:
            return False
        if not self.is_slot_connected:
            logger.warning("Cannot send location checks %s, not connected", locations)
            return False
        sent = self._send(LocationChecks(locations=locations))
        if sent:
            logger.info("Sent location checks: %s", locations)
        return sent

    def report_goal_complete(self) -> bool:
        """Report goal completion once. Returns True if it was sent now."""
        if self._goal_sent:
            return False
        if not self.is_slot_connected:
            logger.warning("Cannot send goal, not connected")
            return False
        if self._send(StatusUpdate(status=ClientStatus.GOAL)):
            self._goal_sent = True
            logger.info("Sent goal completion")
            return True
        return False

    # Inbound

    def poll(self) -> None:
        """Process all pending transport events in arrival order.

        Never raises: transport failures are logged and leave ``sync_ready``
        untouched.
        """
        try:
            events = self._transport.poll()
        except Exception:
            logger.exception("Poll failed")
            return

        for event in events:
            try:
                with self._state.lock:
                    self._dispatch_event(event)
            except Exception:
                logger.exception("Error handling %s event", event.kind.name)

    def _dispatch_event(self, event: TransportEvent) -> None:
        if event.kind is TransportEventKind.OPENED:
            self._on_opened()
        elif event.kind is TransportEventKind.MESSAGE:
            for raw in event.packets:
                try:
                    packet = parse_packet(raw)
                except ProtocolError as e:
                    logger.warning("Skipping packet: %s", e)
                    continue
                if packet is not None:
                    self._dispatch_packet(packet)
        elif event.kind is TransportEventKind.ERROR:
            logger.error("Socket error: %s", event.reason)
        elif event.kind is TransportEventKind.CLOSED:
            self._on_closed(event.reason)

    def _dispatch_packet(self, packet: BaseModel) -> None:
        if isinstance(packet, RoomInfo):
            self._on_room_info(packet)
        elif isinstance(packet, Connected):
            self._on_connected(packet)
        elif isinstance(packet, ConnectionRefused):
            self._on_refused(packet)
        elif isinstance(packet, ReceivedItems):
            self._on_received_items(packet)
        elif isinstance(packet, RoomUpdate):
            self._on_room_update(packet)
        elif isinstance(packet, PrintJSON):
            self._on_print_json(packet)
        elif isinstance(packet, DataPackage):
            self._data_package.update(packet.data.games)

    def _notify(self, segments: list[TextSegment]) -> None:
        if self._feed is not None:
            self._feed.notify(segments)

    def _on_opened(self) -> None:
        self._status = ConnectionStatus.SOCKET_CONNECTED
        logger.info("Socket connected to server")
        self._notify([TextSegment("Connected to session server", ColorCategory.SERVER)])

    def _on_closed(self, reason: str) -> None:
        was_open = self._status is not ConnectionStatus.DISCONNECTED
        self._status = ConnectionStatus.DISCONNECTED
        if not was_open:
            return
        logger.warning("Socket disconnected%s", f": {reason}" if reason else "")
        self._notify([TextSegment("Disconnected from session server", ColorCategory.TRAP)])

    def _on_room_info(self, packet: RoomInfo) -> None:
        self._status = ConnectionStatus.ROOM_INFO
        logger.info("Room info received, connecting slot '%s'", self._settings.slot_name)

        missing = [game for game in packet.games if not self._data_package.has_game(game)]
        outbound: list[BaseModel] = []
        if missing:
            outbound.append(GetDataPackage(games=missing))
        outbound.append(
            Connect(
                password=self._settings.password,
                game=self._settings.game,
                name=self._settings.slot_name,
                uuid=self._uuid or "",
                items_handling=self._settings.items_handling,
                tags=list(self._settings.tags),
            )
        )
        self._send(*outbound)

    def _on_connected(self, packet: Connected) -> None:
        self._status = ConnectionStatus.SLOT_CONNECTED
        self._refused_reasons = []
        self._player_slot = packet.slot
        self._team = packet.team
        self._players.clear()
        self._players.update_players(packet.players)
        for slot, info in packet.slot_info.items():
            self._players.set_game(slot, info.game)
        logger.info("Slot connected: player=%d team=%d", self._player_slot, self._team)

        # Fresh replay: counters and grants are rebuilt from the item stream
        self._state.begin_epoch()
        self._table.reset_counters()
        self._next_item_index = 0

        server_checked = set(packet.checked_locations)
        restored = self._apply_checked_locations(server_checked)
        if restored:
            logger.info("Restored %d checked locations from server", restored)

        local_ahead = []
        for entity in self._state.checked:
            location = self._table.location_id(entity)
            if location is not None and location not in server_checked:
                local_ahead.append(location)
        if local_ahead:
            logger.info("Sending %d locally checked locations to server", len(local_ahead))
            self.report_locations_checked(local_ahead)

        slot_data = packet.slot_data or {}
        if "reusable_tetrominos" in slot_data:
            self._state.reusable = bool(slot_data["reusable_tetrominos"])
            logger.info("reusable = %s", self._state.reusable)

        self._state.mark_synced()
        self._send(StatusUpdate(status=ClientStatus.PLAYING))
        self._notify([TextSegment("Slot connected, game synced!", ColorCategory.SERVER)])

    def _on_refused(self, packet: ConnectionRefused) -> None:
        self._refused_reasons = list(packet.errors)
        message = ", ".join(packet.errors) or "unknown reason"
        logger.error("Connection refused: %s", message)
        self._notify(
            [
                TextSegment("Connection refused: ", ColorCategory.TRAP),
                TextSegment(message, ColorCategory.WHITE),
            ]
        )

    def _apply_checked_locations(self, locations: Iterable[LocationId]) -> int:
        entities = []
        for location in locations:
            entity = self._table.entity_for_location(location)
            if entity is None:
                logger.debug("Ignoring unknown location %d", location)
                continue
            entities.append(entity)
        return self._state.mark_all_checked(entities)

    def _on_room_update(self, packet: RoomUpdate) -> None:
        if packet.players is not None:
            self._players.update_players(packet.players)
        if packet.checked_locations:
            added = self._apply_checked_locations(packet.checked_locations)
            logger.debug(
                "Server confirmed %d location checks (%d new)", len(packet.checked_locations), added
            )

    def _on_received_items(self, packet: ReceivedItems) -> None:
        if not self.is_slot_connected:
            logger.warning("Ignoring %d items received before slot connect", len(packet.items))
            return

        if packet.index == 0 and self._next_item_index > 0:
            logger.info("Full item replay received, rebuilding grants")
            self._table.reset_counters()
            self._state.clear_granted()
            self._next_item_index = 0
        elif packet.index > self._next_item_index:
            logger.warning(
                "Item index gap (expected %d, got %d), requesting sync",
                self._next_item_index,
                packet.index,
            )
            self._send(Sync())
            return

        skip = self._next_item_index - packet.index
        fresh = packet.items[skip:]
        logger.debug("Received %d items (%d new) at index %d", len(packet.items), len(fresh), packet.index)

        granted = 0
        for offset, item in enumerate(fresh):
            absolute_index = self._next_item_index + offset
            if self._apply_item(item, announce=absolute_index >= self._announced_items):
                granted += 1
        self._next_item_index += len(fresh)
        self._announced_items = max(self._announced_items, self._next_item_index)
        logger.debug("Processed items: %d granted, %d other", granted, len(fresh) - granted)

    def _apply_item(self, item: NetworkItem, announce: bool) -> bool:
        entity = self._table.resolve(item.item)
        if entity is not None:
            self._state.grant(entity)

        display = (
            self._table.display_name(item.item)
            or self.item_name(item.item, self._player_slot)
            or f"Item #{item.item}"
        )
        if entity is None:
            logger.info("Unmapped item received: %d (0x%X) = %s", item.item, item.item, display)

        if announce:
            color = color_for_flags(item.flags)
            if item.player == self._player_slot:
                logger.info("You found %s", display)
                self._notify([TextSegment("You found ", ColorCategory.WHITE), TextSegment(display, color)])
            else:
                sender = self.player_name(item.player)
                logger.info("%s sent you %s", sender, display)
                self._notify(
                    [
                        TextSegment(sender, ColorCategory.PLAYER),
                        TextSegment(" sent you ", ColorCategory.WHITE),
                        TextSegment(display, color),
                    ]
                )
        return entity is not None

    def _on_print_json(self, packet: PrintJSON) -> None:
        if (
            packet.type == "ItemSend"
            and packet.receiving == self._player_slot
            and packet.item is not None
            and packet.item.player == self._player_slot
        ):
            return

        segments = render_message(packet.data, self)
        if not segments:
            return
        logger.info("[Chat] %s", "".join(segment.text for segment in segments))
        self._notify(segments)

    def snapshot(self) -> dict[str, Any]:
        """Snapshot of client state for debug dumps."""
        return {
            "status": self.status_text(),
            "slot": self._player_slot,
            "team": self._team,
            "next_item_index": self._next_item_index,
            "goal_sent": self._goal_sent,
        }
