"""Unit tests for the Camera Arbiter.

These tests exercise CameraLock and CameraLease in isolation from any
engine; camera moves are stood in for by plain futures.
"""

import asyncio

import pytest

from overlaymap.camera import CameraLock, wait_for_move
from overlaymap.errors import CameraMoveError, CameraMoveInterrupted


class TestCameraLock:
    """Mutual exclusion and basic contract."""

    def test_starts_free(self):
        lock = CameraLock()
        assert not lock.is_held()
        assert lock.holder is None

    def test_second_acquire_is_denied(self):
        lock = CameraLock()
        assert lock.try_acquire("boundary-fit") is True
        assert lock.try_acquire("locate") is False
        assert lock.holder == "boundary-fit"

    def test_at_most_one_of_many_succeeds(self):
        lock = CameraLock()
        results = [lock.try_acquire(f"owner-{i}") for i in range(5)]
        assert results.count(True) == 1
        stats = lock.get_stats()
        assert stats["grants"] == 1
        assert stats["denials"] == 4

    def test_release_frees_the_lock(self):
        lock = CameraLock()
        lock.try_acquire()
        lock.release()
        assert not lock.is_held()
        assert lock.try_acquire() is True

    def test_release_when_free_is_noop(self):
        lock = CameraLock()
        lock.release()
        assert not lock.is_held()


class TestCameraLease:
    """Lease ownership of an acquisition."""

    def test_release_is_idempotent(self):
        lock = CameraLock()
        lease = lock.acquire_lease("a")
        lease.release()
        lease.release()
        assert lease.released
        assert not lock.is_held()

    def test_stale_lease_does_not_clear_later_holder(self):
        lock = CameraLock()
        first = lock.acquire_lease("first")
        first.release()
        second = lock.acquire_lease("second")

        first.release()
        assert lock.is_held()
        assert lock.holder == "second"
        assert not second.released

    def test_denied_acquire_returns_none(self):
        lock = CameraLock()
        lock.acquire_lease("a")
        assert lock.acquire_lease("b") is None

    @pytest.mark.asyncio
    async def test_release_after(self):
        lock = CameraLock()
        lease = lock.acquire_lease("locate")
        lease.release_after(0.02)
        assert lock.is_held()
        await asyncio.sleep(0.05)
        assert not lock.is_held()

    @pytest.mark.asyncio
    async def test_explicit_release_cancels_timer(self):
        lock = CameraLock()
        lease = lock.acquire_lease("locate")
        lease.release_after(0.02)
        lease.release()
        other = lock.acquire_lease("markers")
        await asyncio.sleep(0.05)
        assert lock.holder == "markers"
        assert not other.released


class TestReleaseWhenSettled:
    """The lease is released on every exit path."""

    @pytest.mark.asyncio
    async def test_successful_move_holds_for_grace_window(self):
        loop = asyncio.get_running_loop()
        lock = CameraLock()
        lease = lock.acquire_lease("fit")
        move = loop.create_future()
        loop.call_later(0.01, move.set_result, None)

        started = loop.time()
        completed = await lease.release_when_settled(move, grace_seconds=0.05, max_wait_seconds=1.0)

        assert completed is True
        assert loop.time() - started >= 0.045
        assert not lock.is_held()

    @pytest.mark.asyncio
    async def test_slow_move_outlasts_grace_window(self):
        loop = asyncio.get_running_loop()
        lock = CameraLock()
        lease = lock.acquire_lease("fit")
        move = loop.create_future()
        loop.call_later(0.08, move.set_result, None)

        started = loop.time()
        await lease.release_when_settled(move, grace_seconds=0.01, max_wait_seconds=1.0)
        assert loop.time() - started >= 0.075
        assert not lock.is_held()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [
        CameraMoveError("rejected"),
        CameraMoveInterrupted("superseded"),
        RuntimeError("engine exploded"),
    ])
    async def test_failed_move_still_releases(self, error):
        loop = asyncio.get_running_loop()
        lock = CameraLock()
        lease = lock.acquire_lease("fit")
        move = loop.create_future()
        move.set_exception(error)

        completed = await lease.release_when_settled(move, grace_seconds=0.0, max_wait_seconds=1.0)
        assert completed is False
        assert not lock.is_held()

    @pytest.mark.asyncio
    async def test_move_that_never_completes_is_capped(self):
        loop = asyncio.get_running_loop()
        lock = CameraLock()
        lease = lock.acquire_lease("fit")
        move = loop.create_future()

        completed = await lease.release_when_settled(move, grace_seconds=0.0, max_wait_seconds=0.03)
        assert completed is False
        assert not lock.is_held()
        move.cancel()

    @pytest.mark.asyncio
    async def test_cancellation_releases(self):
        loop = asyncio.get_running_loop()
        lock = CameraLock()
        lease = lock.acquire_lease("fit")
        move = loop.create_future()

        task = asyncio.create_task(lease.release_when_settled(move, 0.0, 10.0))
        await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert not lock.is_held()
        move.cancel()

    @pytest.mark.asyncio
    async def test_no_move_waits_grace_only(self):
        lock = CameraLock()
        lease = lock.acquire_lease("fit")
        completed = await lease.release_when_settled(None, grace_seconds=0.01, max_wait_seconds=1.0)
        assert completed is False
        assert not lock.is_held()


class TestWaitForMove:
    """Bounded wait on a single move."""

    @pytest.mark.asyncio
    async def test_completed_move_returns(self):
        loop = asyncio.get_running_loop()
        move = loop.create_future()
        move.set_result(None)
        await wait_for_move(move, max_wait_seconds=0.1)

    @pytest.mark.asyncio
    async def test_silent_move_raises_after_cap(self):
        loop = asyncio.get_running_loop()
        move = loop.create_future()
        with pytest.raises(CameraMoveError):
            await asyncio.wait_for(wait_for_move(move, max_wait_seconds=0.03), timeout=1.0)
        assert not move.done()
        move.cancel()

    @pytest.mark.asyncio
    async def test_move_failure_propagates(self):
        loop = asyncio.get_running_loop()
        move = loop.create_future()
        move.set_exception(CameraMoveInterrupted("superseded"))
        with pytest.raises(CameraMoveInterrupted):
            await wait_for_move(move, max_wait_seconds=0.1)
