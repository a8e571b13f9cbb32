"""
Async Readiness Sequencer - One-time camera fit once a layer has loaded.

State machine per layer instance:

    attached -> waiting_for_ready -> acquiring_camera -> animating -> settled

Any branch that cannot or should not move the camera (load failure, empty
extent, camera busy, host torn down) goes straight to settled. None of
these are errors.
"""

import asyncio
from enum import Enum
from typing import TYPE_CHECKING, Callable, List, Optional

from overlaymap.config import CameraConfig
from overlaymap.data.schemas.models import CameraTarget
from overlaymap.errors import LayerLoadError
from overlaymap.layers.handle import LayerHandle
from overlaymap.utils.logger import get_logger

if TYPE_CHECKING:
    from overlaymap.host import MapHost

logger = get_logger(__name__)


class FitState(str, Enum):
    """States of a camera-fit sequence."""
    ATTACHED = "attached"
    WAITING_FOR_READY = "waiting_for_ready"
    ACQUIRING_CAMERA = "acquiring_camera"
    ANIMATING = "animating"
    SETTLED = "settled"


class FitOutcome(str, Enum):
    """Why a sequence settled."""
    FITTED = "fitted"
    MOVE_FAILED = "move_failed"
    NOT_READY = "not_ready"
    NO_EXTENT = "no_extent"
    CAMERA_BUSY = "camera_busy"
    DETACHED = "detached"


class ReadinessSequencer:
    """
    Waits for a layer to load, then fits the camera to it once.
    """

    def __init__(
        self,
        host: "MapHost",
        handle: LayerHandle,
        owner: str = "boundary-fit",
        camera_config: Optional[CameraConfig] = None
    ):
        """
        Initialize the sequencer in the attached state.

        Args:
            host: Map Host providing the camera lock and go_to
            handle: Handle of the freshly attached layer
            owner: Name used when acquiring the camera
            camera_config: Timings (defaults to the host's)
        """
        self._host = host
        self._handle = handle
        self._owner = owner
        self._config = camera_config or host.camera_config

        self._state = FitState.ATTACHED
        self._history: List[FitState] = [FitState.ATTACHED]
        self._outcome: Optional[FitOutcome] = None
        self._started = False
        self._state_handlers: List[Callable[[FitState], None]] = []

    @property
    def state(self) -> FitState:
        return self._state

    @property
    def history(self) -> List[FitState]:
        return list(self._history)

    @property
    def outcome(self) -> Optional[FitOutcome]:
        return self._outcome

    def on_state_change(self, handler: Callable[[FitState], None]) -> None:
        """Register a handler for state transitions."""
        self._state_handlers.append(handler)

    def _transition(self, state: FitState) -> None:
        self._state = state
        self._history.append(state)
        for handler in self._state_handlers:
            handler(state)

    def _settle(self, outcome: FitOutcome) -> FitState:
        self._outcome = outcome
        self._transition(FitState.SETTLED)
        logger.debug(f"{self._handle.layer_id} settled: {outcome.value}")
        return self._state

    async def run(self) -> FitState:
        """
        Drive the sequence to completion.

        Only the first call does anything; later calls return the current
        state.

        Returns:
            The final state (always SETTLED for the first call)
        """
        if self._started:
            logger.debug(f"Sequencer for {self._handle.layer_id} already ran")
            return self._state
        self._started = True

        self._transition(FitState.WAITING_FOR_READY)
        try:
            await self._handle.when_ready()
        except LayerLoadError as e:
            logger.info(f"Skipping camera fit: {e}")
            return self._settle(FitOutcome.NOT_READY)

        extent = self._handle.full_extent()
        if extent is None:
            logger.info(f"Layer {self._handle.layer_id} has no extent; skipping camera fit")
            return self._settle(FitOutcome.NO_EXTENT)

        self._transition(FitState.ACQUIRING_CAMERA)
        lease = self._host.camera_lock.acquire_lease(self._owner)
        if lease is None:
            logger.debug(f"Camera busy; boundary fit for {self._handle.layer_id} skipped")
            return self._settle(FitOutcome.CAMERA_BUSY)

        self._transition(FitState.ANIMATING)
        outcome = FitOutcome.DETACHED
        try:
            # Let overlays mounted in the same tick issue their moves first
            await asyncio.sleep(self._config.fit_delay_ms / 1000.0)
            if not (self._handle.detached or self._host.is_torn_down):
                try:
                    move = self._host.go_to(CameraTarget(
                        target=extent,
                        duration_ms=self._config.fit_duration_ms,
                    ))
                except Exception as e:
                    logger.warning(f"Boundary fit move could not start: {e}", exc_info=True)
                    outcome = FitOutcome.MOVE_FAILED
                else:
                    fitted = await lease.release_when_settled(
                        move,
                        grace_seconds=self._config.fit_settle_ms / 1000.0,
                        max_wait_seconds=self._config.max_move_wait_ms / 1000.0,
                    )
                    outcome = FitOutcome.FITTED if fitted else FitOutcome.MOVE_FAILED
        finally:
            lease.release()

        return self._settle(outcome)
