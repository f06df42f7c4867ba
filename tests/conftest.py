"""Shared test fixtures."""

import sys

import pytest

# Ensure src is in path
sys.path.insert(0, "src")

from typing import Any

from worldsync.config import SessionSettings
from worldsync.mapping import ItemMappingTable
from worldsync.notify import NotificationFeed
from worldsync.session import SessionClient, SessionState, TransportEvent
from worldsync.world import InMemoryWorld

BASE = 0x540000
DJ_ITEM = BASE  # "Green J" family: DJ1..DJ5
DZ_ITEM = BASE + 1


class FakeTransport:
    """Scripted transport: tests push inbound events and inspect sent packets."""

    def __init__(self) -> None:
        self.url: str | None = None
        self.sent: list[dict[str, Any]] = []
        self.closed = False
        self._events: list[TransportEvent] = []

    def open(self, url: str) -> None:
        self.url = url
        self._events.append(TransportEvent.opened())

    def send(self, packets: list[dict[str, Any]]) -> None:
        self.sent.extend(packets)

    def poll(self) -> list[TransportEvent]:
        events, self._events = self._events, []
        return events

    def close(self) -> None:
        self.closed = True

    def push(self, *packets: dict[str, Any]) -> None:
        self._events.append(TransportEvent.message(list(packets)))

    def inject(self, event: TransportEvent) -> None:
        self._events.append(event)

    def drop(self, reason: str = "gone") -> None:
        self._events.append(TransportEvent.closed(reason))

    def sent_commands(self, cmd: str) -> list[dict[str, Any]]:
        return [packet for packet in self.sent if packet.get("cmd") == cmd]


def connected_packet(checked: list[int] | None = None, slot: int = 1, **slot_data: Any) -> dict[str, Any]:
    return {
        "cmd": "Connected",
        "team": 0,
        "slot": slot,
        "players": [
            {"team": 0, "slot": 1, "alias": "Me", "name": "Me"},
            {"team": 0, "slot": 2, "alias": "Alice", "name": "Alice"},
        ],
        "missing_locations": [],
        "checked_locations": checked or [],
        "slot_data": slot_data,
        "slot_info": {"1": {"name": "Me", "game": "The Talos Principle Reawakened", "type": 1}},
    }


def items_packet(index: int, *item_ids: int, player: int = 1) -> dict[str, Any]:
    return {
        "cmd": "ReceivedItems",
        "index": index,
        "items": [{"item": item_id, "location": 0, "player": player, "flags": 1} for item_id in item_ids],
    }


@pytest.fixture
def settings() -> SessionSettings:
    return SessionSettings(server="localhost:38281", slot_name="Me", uuid_file="unused.txt")


@pytest.fixture
def state() -> SessionState:
    return SessionState()


@pytest.fixture
def table() -> ItemMappingTable:
    return ItemMappingTable()


@pytest.fixture
def feed() -> NotificationFeed:
    return NotificationFeed()


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def world() -> InMemoryWorld:
    return InMemoryWorld()


@pytest.fixture
def client(settings, state, table, transport, feed) -> SessionClient:
    return SessionClient(settings, state, table, transport, feed, client_uuid="test-uuid")


@pytest.fixture
def slot_connected(client: SessionClient, transport: FakeTransport) -> SessionClient:
    """Client that completed the handshake with an empty server state."""
    client.connect()
    transport.push({"cmd": "RoomInfo", "games": []})
    transport.push(connected_packet())
    client.poll()
    transport.sent.clear()
    return client


@pytest.fixture
def make_connected():
    """Builder for Connected packets."""
    return connected_packet


@pytest.fixture
def make_items():
    """Builder for ReceivedItems packets."""
    return items_packet
