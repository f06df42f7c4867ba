"""Tests for wire packet parsing and serialization."""

import pytest

from worldsync.errors import ProtocolError
from worldsync.session import ClientStatus, parse_packet
from worldsync.session.models import (
    Connect,
    Connected,
    LocationChecks,
    PrintJSON,
    ReceivedItems,
    StatusUpdate,
)


def test_parse_received_items() -> None:
    packet = parse_packet(
        {"cmd": "ReceivedItems", "index": 3, "items": [{"item": 5505024, "location": 7, "player": 2, "flags": 1}]}
    )

    assert isinstance(packet, ReceivedItems)
    assert packet.index == 3
    assert packet.items[0].item == 5505024
    assert packet.items[0].player == 2


def test_parse_connected_with_string_slot_keys() -> None:
    packet = parse_packet(
        {
            "cmd": "Connected",
            "team": 0,
            "slot": 1,
            "players": [{"team": 0, "slot": 1, "alias": "Me", "name": "Me"}],
            "checked_locations": [1, 2],
            "slot_info": {"1": {"name": "Me", "game": "Some Game", "type": 1}},
            "hint_points": 0,
        }
    )

    assert isinstance(packet, Connected)
    assert packet.slot_info[1].game == "Some Game"
    assert packet.checked_locations == [1, 2]


def test_unknown_command_is_ignored() -> None:
    assert parse_packet({"cmd": "Bounced", "data": {}}) is None


def test_non_object_packet_raises() -> None:
    with pytest.raises(ProtocolError):
        parse_packet(["cmd"])


def test_malformed_packet_raises_protocol_error() -> None:
    with pytest.raises(ProtocolError, match="ReceivedItems"):
        parse_packet({"cmd": "ReceivedItems", "index": "soon", "items": []})


def test_print_json_parts() -> None:
    packet = parse_packet(
        {
            "cmd": "PrintJSON",
            "type": "ItemSend",
            "receiving": 1,
            "item": {"item": 1, "location": 2, "player": 1, "flags": 0},
            "data": [{"type": "player_id", "text": "1"}, {"text": " found "}],
        }
    )

    assert isinstance(packet, PrintJSON)
    assert packet.data[0].type == "player_id"
    assert packet.data[1].type is None


def test_connect_wire_format() -> None:
    wire = Connect(game="G", name="Me", uuid="u", tags=["AP"]).to_wire()

    assert wire["cmd"] == "Connect"
    assert wire["version"] == {"major": 0, "minor": 5, "build": 1, "class": "Version"}
    assert wire["items_handling"] == 7
    assert wire["slot_data"] is True


def test_status_and_checks_wire_format() -> None:
    assert StatusUpdate(status=ClientStatus.GOAL).to_wire() == {"cmd": "StatusUpdate", "status": 30}
    assert LocationChecks(locations=[1, 2]).to_wire() == {"cmd": "LocationChecks", "locations": [1, 2]}
