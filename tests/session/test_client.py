"""Tests for the session protocol client.

Critical Invariants:
- Reconciliation (sync_ready) only happens after a full handshake
- Server checks replayed twice leave the checked set unchanged
- A local-ahead check is reported exactly once per handshake
- Item replays rebuild identical grants and are not re-announced
- Transport failures never raise out of poll and never touch sync_ready
"""

import pytest

from worldsync.session import ConnectionStatus, SessionClient, SessionState
from worldsync.session.protocol import TransportEvent

BASE = 0x540000
DJ = BASE
DZ = BASE + 1
DJ1_LOCATION = BASE + 4
DZ1_LOCATION = BASE + 2


def handshake(client, transport, packet) -> None:
    client.connect()
    transport.push({"cmd": "RoomInfo", "games": []})
    transport.push(packet)
    client.poll()


def reconnect(client, transport, packet) -> None:
    transport.drop()
    client.poll()
    handshake(client, transport, packet)


def texts(feed) -> list[str]:
    return [entry.text for entry in feed.pending]


# Handshake


def test_connect_opens_websocket_url(client: SessionClient, transport) -> None:
    client.connect()

    assert transport.url == "ws://localhost:38281"
    assert client.status is ConnectionStatus.SOCKET_CONNECTING

    client.poll()
    assert client.status is ConnectionStatus.SOCKET_CONNECTED
    assert client.is_connected


def test_room_info_sends_connect_with_credentials(client: SessionClient, transport) -> None:
    client.connect()
    transport.push({"cmd": "RoomInfo", "games": []})
    client.poll()

    assert client.status is ConnectionStatus.ROOM_INFO
    [connect] = transport.sent_commands("Connect")
    assert connect["name"] == "Me"
    assert connect["uuid"] == "test-uuid"
    assert connect["items_handling"] == 7
    assert connect["game"] == "The Talos Principle Reawakened"


def test_room_info_requests_missing_data_packages(client: SessionClient, transport) -> None:
    client.connect()
    transport.push({"cmd": "RoomInfo", "games": ["Other Game"]})
    client.poll()

    [request] = transport.sent_commands("GetDataPackage")
    assert request["games"] == ["Other Game"]


def test_slot_connect_enables_sync_and_reports_playing(
    client: SessionClient, transport, state: SessionState, make_connected
) -> None:
    assert not state.sync_ready

    handshake(client, transport, make_connected())

    assert client.is_slot_connected
    assert client.player_slot == 1
    assert state.sync_ready
    assert state.epoch == 1
    assert transport.sent_commands("StatusUpdate") == [{"cmd": "StatusUpdate", "status": 20}]


def test_slot_data_sets_reusable(client, transport, state, make_connected) -> None:
    handshake(client, transport, make_connected(reusable_tetrominos=1))

    assert state.reusable


def test_server_checked_locations_are_restored(client, transport, state, make_connected) -> None:
    handshake(client, transport, make_connected(checked=[DJ1_LOCATION, DZ1_LOCATION, 999]))

    assert state.checked == frozenset({"DJ1", "DZ1"})


def test_reconnect_replay_is_idempotent(client, transport, state, make_connected) -> None:
    """CRITICAL: Replaying the same server checked set twice changes nothing.

    Why: Reconnects must not drift the checked set.
    """
    packet = make_connected(checked=[DJ1_LOCATION])
    handshake(client, transport, packet)
    first = state.checked

    reconnect(client, transport, packet)

    assert state.checked == first
    assert state.epoch == 2


def test_local_ahead_check_reported_once_per_handshake(client, transport, state, make_connected) -> None:
    """CRITICAL: A check the server lacks is sent once on connect, not per poll.

    Why: Interrupted sessions must catch the server up without flooding it.
    """
    state.mark_checked("DJ1")

    handshake(client, transport, make_connected(checked=[DZ1_LOCATION]))
    for _ in range(5):
        client.poll()

    assert transport.sent_commands("LocationChecks") == [{"cmd": "LocationChecks", "locations": [DJ1_LOCATION]}]

    transport.sent.clear()
    reconnect(client, transport, make_connected(checked=[DZ1_LOCATION, DJ1_LOCATION]))

    assert transport.sent_commands("LocationChecks") == []


def test_refused_connection_surfaces_reasons(client, transport, state, feed) -> None:
    client.connect()
    transport.push({"cmd": "RoomInfo", "games": []})
    transport.push({"cmd": "ConnectionRefused", "errors": ["InvalidSlot"]})
    client.poll()

    assert client.refused_reasons == ["InvalidSlot"]
    assert "InvalidSlot" in client.status_text()
    assert not client.is_slot_connected
    assert not state.sync_ready
    assert any("InvalidSlot" in text for text in texts(feed))


# Items


def test_items_are_resolved_and_granted(slot_connected, transport, state, make_items) -> None:
    transport.push(make_items(0, DJ, DZ, DJ))
    slot_connected.poll()

    assert state.granted == frozenset({"DJ1", "DJ2", "DZ1"})


def test_items_before_slot_connect_are_ignored(client, transport, state, make_items) -> None:
    client.connect()
    transport.push(make_items(0, DJ))
    client.poll()

    assert state.granted == frozenset()


def test_index_gap_requests_sync(slot_connected, transport, state, make_items) -> None:
    transport.push(make_items(4, DJ))
    slot_connected.poll()

    assert transport.sent_commands("Sync") == [{"cmd": "Sync"}]
    assert state.granted == frozenset()


def test_overlapping_batch_applies_only_new_items(slot_connected, transport, state, table, make_items) -> None:
    transport.push(make_items(0, DJ, DJ))
    transport.push(make_items(1, DJ, DZ))
    slot_connected.poll()

    assert state.granted == frozenset({"DJ1", "DJ2", "DZ1"})
    assert table.received_count("DJ") == 2


def test_full_replay_rebuilds_same_grants(slot_connected, transport, state, make_items) -> None:
    transport.push(make_items(0, DJ, DZ))
    slot_connected.poll()
    before = state.granted

    transport.push(make_items(0, DJ, DZ))
    slot_connected.poll()

    assert state.granted == before


def test_reconnect_replay_rebuilds_grants_silently(
    slot_connected, transport, state, feed, make_connected, make_items
) -> None:
    """CRITICAL: Item history replayed after reconnect yields the same grants and no new notices.

    Why: The server replays every item on each handshake.
    """
    transport.push(make_items(0, DJ, DZ, player=2))
    slot_connected.poll()
    before = state.granted
    announced = sum("sent you" in text for text in texts(feed))

    reconnect(slot_connected, transport, make_connected())
    assert state.granted == frozenset()
    transport.push(make_items(0, DJ, DZ, player=2))
    slot_connected.poll()

    assert state.granted == before
    assert announced == 2
    assert sum("sent you" in text for text in texts(feed)) == 2


def test_item_notifications_name_sender(slot_connected, transport, feed, make_items) -> None:
    feed.clear()
    transport.push(make_items(0, DJ, player=1))
    transport.push(make_items(1, DZ, player=2))
    slot_connected.poll()

    assert texts(feed) == ["You found Green J", "Alice sent you Green Z"]


def test_unknown_item_uses_generic_label(slot_connected, transport, state, feed, make_items) -> None:
    feed.clear()
    transport.push(make_items(0, 42))
    slot_connected.poll()

    assert state.granted == frozenset()
    assert texts(feed) == ["You found Item #42"]


# Other inbound events


def test_room_update_confirms_checked_locations(slot_connected, transport, state) -> None:
    transport.push({"cmd": "RoomUpdate", "checked_locations": [DZ1_LOCATION]})
    slot_connected.poll()

    assert state.is_checked("DZ1")


def test_self_item_send_narration_is_suppressed(slot_connected, transport, feed) -> None:
    feed.clear()
    transport.push(
        {
            "cmd": "PrintJSON",
            "type": "ItemSend",
            "receiving": 1,
            "item": {"item": DJ, "location": 5, "player": 1, "flags": 0},
            "data": [{"type": "player_id", "text": "1"}, {"text": " found their Green J"}],
        }
    )
    transport.push(
        {
            "cmd": "PrintJSON",
            "type": "ItemSend",
            "receiving": 1,
            "item": {"item": DJ, "location": 5, "player": 2, "flags": 0},
            "data": [{"type": "player_id", "text": "2"}, {"text": " sent Green J to Me"}],
        }
    )
    slot_connected.poll()

    assert texts(feed) == ["Alice sent Green J to Me"]


def test_malformed_packet_skips_only_itself(slot_connected, transport, state, make_items) -> None:
    transport.push({"cmd": "ReceivedItems", "index": "x"}, make_items(0, DJ))
    slot_connected.poll()

    assert state.granted == frozenset({"DJ1"})


# Outbound reports


def test_reports_are_dropped_while_disconnected(client, transport) -> None:
    assert not client.report_location_checked(DJ1_LOCATION)
    assert transport.sent == []


def test_report_location_checked(slot_connected, transport) -> None:
    assert slot_connected.report_location_checked(DJ1_LOCATION)
    assert transport.sent == [{"cmd": "LocationChecks", "locations": [DJ1_LOCATION]}]


def test_goal_is_sent_once(slot_connected, transport) -> None:
    assert slot_connected.report_goal_complete()
    assert not slot_connected.report_goal_complete()

    assert transport.sent_commands("StatusUpdate") == [{"cmd": "StatusUpdate", "status": 30}]
    assert slot_connected.goal_sent


# Failures


def test_socket_loss_disconnects_and_keeps_sync(slot_connected, transport, state) -> None:
    transport.drop("reset by peer")
    slot_connected.poll()

    assert slot_connected.status is ConnectionStatus.DISCONNECTED
    assert state.sync_ready


def test_transport_error_in_poll_is_contained(slot_connected, transport, state, monkeypatch) -> None:
    def broken_poll() -> list[TransportEvent]:
        raise RuntimeError("socket exploded")

    monkeypatch.setattr(transport, "poll", broken_poll)

    slot_connected.poll()

    assert state.sync_ready
    assert slot_connected.is_slot_connected


@pytest.mark.parametrize("event", [TransportEvent.error("boom"), TransportEvent.message(["not a dict"])])
def test_bad_events_do_not_raise(slot_connected, transport, event) -> None:
    transport.inject(event)

    slot_connected.poll()

    assert slot_connected.is_slot_connected


def test_uuid_is_created_once_and_reused(tmp_path) -> None:
    from worldsync.session import load_or_create_uuid

    path = tmp_path / "uuid.txt"

    first = load_or_create_uuid(path)

    assert path.read_text(encoding="utf-8") == first
    assert load_or_create_uuid(path) == first
