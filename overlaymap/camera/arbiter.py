"""
Camera Arbiter - Mutual exclusion for camera moves.

Every component that wants to move the shared camera asks the CameraLock
first. The lock is a single held/free flag with no queue: while it is held,
competing requests are denied and the requester simply skips its move.

A successful acquisition is represented by a CameraLease, which is the only
thing that can release that acquisition. Releasing a lease twice, or
releasing a lease after someone else has acquired the lock, is a no-op.
"""

import asyncio
from typing import Any, Awaitable, Dict, Optional

from overlaymap.errors import CameraMoveError
from overlaymap.utils.logger import get_logger

logger = get_logger(__name__)


async def wait_for_move(move: Awaitable[Any], max_wait_seconds: float) -> None:
    """
    Await a camera move's completion signal, bounded by max_wait_seconds.

    Raises:
        CameraMoveError: If the move failed or did not signal in time
    """
    try:
        await asyncio.wait_for(asyncio.shield(asyncio.ensure_future(move)), timeout=max_wait_seconds)
    except asyncio.TimeoutError:
        raise CameraMoveError(
            f"Camera move did not signal completion within {max_wait_seconds:.2f}s"
        ) from None


class CameraLease:
    """
    One successful acquisition of the CameraLock.

    Attributes:
        owner: Name of the operation holding the camera
    """

    def __init__(self, lock: "CameraLock", owner: str):
        self._lock = lock
        self.owner = owner
        self._released = False
        self._timer: Optional[asyncio.TimerHandle] = None

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> None:
        """Release the acquisition. Safe to call more than once."""
        if self._released:
            return
        self._released = True
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._lock._release_lease(self)

    def release_after(self, seconds: float) -> None:
        """
        Schedule the release on the running event loop.

        Rescheduling replaces any earlier pending release.

        Args:
            seconds: Delay before releasing
        """
        if self._released:
            return
        if self._timer is not None:
            self._timer.cancel()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(max(0.0, seconds), self.release)

    async def release_when_settled(
        self,
        move: Optional[Awaitable[Any]],
        grace_seconds: float,
        max_wait_seconds: float
    ) -> bool:
        """
        Wait for a camera move to settle, then release.

        The lease is released once the move's completion signal has resolved
        and the grace window has elapsed. The completion wait is capped at
        max_wait_seconds. Move failures are logged and swallowed; the lease is
        released on every exit path, including cancellation.

        Args:
            move: Completion signal returned by the engine, or None
            grace_seconds: Minimum time to hold the camera
            max_wait_seconds: Longest time to wait for the completion signal

        Returns:
            True if the move completed successfully
        """
        loop = asyncio.get_running_loop()
        started = loop.time()
        completed = False
        try:
            if move is not None:
                try:
                    await wait_for_move(move, max_wait_seconds)
                    completed = True
                except CameraMoveError as e:
                    logger.warning(f"Camera move by '{self.owner}' failed: {e}")
                except Exception as e:
                    logger.warning(f"Camera move by '{self.owner}' errored: {e}", exc_info=True)

            remaining = grace_seconds - (loop.time() - started)
            if remaining > 0:
                await asyncio.sleep(remaining)
        finally:
            self.release()
        return completed

    def __repr__(self) -> str:
        state = "released" if self._released else "held"
        return f"CameraLease(owner={self.owner!r}, {state})"


class CameraLock:
    """
    Process-wide camera gate.

    try_acquire/release/is_held form the basic contract; acquire_lease is
    the preferred entry point because it ties the release to its owner.
    """

    def __init__(self):
        """Initialize a free lock."""
        self._lease: Optional[CameraLease] = None
        self._grants = 0
        self._denials = 0

    @property
    def held(self) -> bool:
        return self._lease is not None

    @property
    def holder(self) -> Optional[str]:
        """Owner name of the current lease, if any."""
        return self._lease.owner if self._lease else None

    def is_held(self) -> bool:
        return self.held

    def acquire_lease(self, owner: str = "anonymous") -> Optional[CameraLease]:
        """
        Acquire the camera if it is free.

        Args:
            owner: Name of the requesting operation

        Returns:
            A CameraLease, or None when another operation holds the camera
        """
        if self._lease is not None:
            self._denials += 1
            logger.debug(f"Camera busy ({self._lease.owner}); denied '{owner}'")
            return None
        lease = CameraLease(self, owner)
        self._lease = lease
        self._grants += 1
        logger.debug(f"Camera acquired by '{owner}'")
        return lease

    def try_acquire(self, owner: str = "anonymous") -> bool:
        """
        Acquire the camera without keeping the lease object.

        Returns:
            True if the camera was free and is now held
        """
        return self.acquire_lease(owner) is not None

    def release(self) -> None:
        """Release whatever acquisition is current. No-op when free."""
        if self._lease is not None:
            self._lease.release()

    def _release_lease(self, lease: CameraLease) -> None:
        if self._lease is lease:
            self._lease = None
            logger.debug(f"Camera released by '{lease.owner}'")

    def get_stats(self) -> Dict[str, Any]:
        """Counters for diagnostics."""
        return {
            "held": self.held,
            "holder": self.holder,
            "grants": self._grants,
            "denials": self._denials,
        }
