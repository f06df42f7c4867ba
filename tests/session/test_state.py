"""Tests for SessionState.

Critical Invariants:
- A new epoch clears grants but keeps checked locations
- Marking checked is idempotent set union
"""

from worldsync.session import SessionState


def test_new_state_is_not_sync_ready(state: SessionState) -> None:
    assert not state.sync_ready
    assert state.epoch == 0
    assert state.granted == frozenset()
    assert state.checked == frozenset()


def test_begin_epoch_clears_grants_and_keeps_checks(state: SessionState) -> None:
    """CRITICAL: Checked locations survive a new epoch.

    Why: Local-ahead checks must still be known when the handshake reconciles them.
    """
    state.grant("DJ1")
    state.mark_checked("DZ1")

    assert state.begin_epoch() == 1

    assert state.granted == frozenset()
    assert state.checked == frozenset({"DZ1"})


def test_grant_and_check_report_newness(state: SessionState) -> None:
    assert state.grant("DJ1")
    assert not state.grant("DJ1")
    assert state.mark_checked("DJ1")
    assert not state.mark_checked("DJ1")


def test_mark_all_checked_is_idempotent(state: SessionState) -> None:
    assert state.mark_all_checked(["DJ1", "DJ2"]) == 2
    assert state.mark_all_checked(["DJ1", "DJ2"]) == 0
    assert state.checked == frozenset({"DJ1", "DJ2"})


def test_should_be_collectable_until_checked(state: SessionState) -> None:
    assert state.should_be_collectable("DJ1")
    state.mark_checked("DJ1")
    assert not state.should_be_collectable("DJ1")
    state.reset_checked()
    assert state.should_be_collectable("DJ1")


def test_sync_flag(state: SessionState) -> None:
    state.mark_synced()
    assert state.sync_ready
    state.mark_unsynced()
    assert not state.sync_ready
