"""Tests for the side-effect retry queue.

Critical Invariants:
- A never-succeeding effect is attempted exactly max_attempts times, then dropped
- Targets are re-resolved by stable key on every attempt
- process_once on an empty queue does nothing
"""

import pytest

from worldsync.world import InMemoryWorld, SideEffectQueue


@pytest.fixture
def queue(world: InMemoryWorld) -> SideEffectQueue:
    return SideEffectQueue(world)


def test_empty_queue_is_a_no_op(queue: SideEffectQueue) -> None:
    assert queue.process_once() == 0
    assert len(queue) == 0


def test_success_removes_entry(world: InMemoryWorld, queue: SideEffectQueue) -> None:
    door = world.add_barrier("/Level/Door_1")
    queue.enqueue("/Level/Door_1")

    assert queue.process_once() == 1

    assert len(queue) == 0
    assert world.entity(door).invocations == ["open"]


def test_unresolvable_target_is_dropped_after_ten_attempts(
    world: InMemoryWorld, queue: SideEffectQueue, monkeypatch
) -> None:
    """CRITICAL: Exactly ten attempts, then the entry is gone.

    Why: Failing effects must never be retried forever.
    """
    lookups = []
    real_enumerate = world.enumerate

    def counting_enumerate(kind: str) -> list[int]:
        lookups.append(kind)
        return real_enumerate(kind)

    monkeypatch.setattr(world, "enumerate", counting_enumerate)
    queue.enqueue("/Level/Missing")

    for attempt in range(1, 10):
        queue.process_once()
        assert queue.pending[0].attempts == attempt

    queue.process_once()

    assert len(queue) == 0
    assert len(lookups) == 10
    queue.process_once()
    assert len(lookups) == 10


def test_target_appearing_later_succeeds(world: InMemoryWorld, queue: SideEffectQueue) -> None:
    queue.enqueue("/Level/Door_1")
    queue.process_once()
    queue.process_once()

    door = world.add_barrier("/Level/Door_1")
    queue.process_once()

    assert len(queue) == 0
    assert world.entity(door).invocations == ["open"]


def test_target_is_re_resolved_each_attempt(world: InMemoryWorld, queue: SideEffectQueue) -> None:
    """A torn-down handle is never reused: the replacement entity receives the action."""
    stale = world.add_barrier("/Level/Door_1", failures=5)
    queue.enqueue("/Level/Door_1")
    queue.process_once()

    world.remove(stale)
    fresh = world.add_barrier("/Level/Door_1")
    queue.process_once()

    assert len(queue) == 0
    assert world.entity(fresh).invocations == ["open"]


def test_failing_invocation_is_retried(world: InMemoryWorld, queue: SideEffectQueue) -> None:
    door = world.add_barrier("/Level/Door_1", failures=3)
    queue.enqueue("/Level/Door_1")

    results = [queue.process_once() for _ in range(4)]

    assert results == [0, 0, 0, 1]
    assert world.entity(door).invocations == ["open"]


def test_collaborator_exception_counts_as_failure(world: InMemoryWorld, queue: SideEffectQueue, monkeypatch) -> None:
    world.add_barrier("/Level/Door_1")

    def broken(handle: int, action: str) -> bool:
        raise RuntimeError("stale object")

    monkeypatch.setattr(world, "invoke", broken)
    queue.enqueue("/Level/Door_1")

    assert queue.process_once() == 0
    assert queue.pending[0].attempts == 1


def test_duplicate_enqueue_is_merged(queue: SideEffectQueue) -> None:
    first = queue.enqueue("/Level/Door_1")
    second = queue.enqueue("/Level/Door_1")

    assert first is second
    assert len(queue) == 1


def test_custom_ceiling(world: InMemoryWorld) -> None:
    queue = SideEffectQueue(world, max_attempts=2)
    queue.enqueue("/Level/Missing")

    queue.process_once()
    queue.process_once()

    assert len(queue) == 0


def test_invalid_ceiling_rejected(world: InMemoryWorld) -> None:
    with pytest.raises(ValueError):
        SideEffectQueue(world, max_attempts=0)
