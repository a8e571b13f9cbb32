"""
Locate Control - Centers the map on the device position.

One locate is one logical camera operation: the lease is taken before the
position is requested and every internal move (center, then optional
heading rotation) runs under it. After a successful locate the lease is
kept for locate_release_ms so other overlays do not immediately yank the
camera away from the user.
"""

from typing import Any, List, Optional

from overlaymap.camera.arbiter import wait_for_move
from overlaymap.camera.sequencer import FitState
from overlaymap.data.schemas.models import CameraTarget, GeoPoint
from overlaymap.engine.interface import EVENT_LOCATE, EVENT_LOCATE_REQUEST
from overlaymap.errors import CameraMoveError, LocationUnavailableError
from overlaymap.host import MapHost
from overlaymap.layers.handle import LayerHandle
from overlaymap.overlays.base import Overlay
from overlaymap.utils.logger import get_logger

logger = get_logger(__name__)


class LocateControl(Overlay):
    """
    "Locate me" button logic.

    Attributes:
        zoom: Zoom level to locate at (ignored when scale is set)
        scale: Map scale to locate at
        use_heading: Rotate the view to the reported heading
        last_position: Position of the last successful locate
    """

    def __init__(
        self,
        zoom: Optional[float] = None,
        scale: Optional[float] = None,
        use_heading: bool = True,
        owner: str = "locate"
    ):
        super().__init__()
        self.zoom = zoom
        self.scale = scale
        self.use_heading = use_heading
        self.owner = owner

        self.state = FitState.ATTACHED
        self.history: List[FitState] = [FitState.ATTACHED]
        self.last_position: Optional[GeoPoint] = None

    def mount(self, host: MapHost) -> Optional[LayerHandle]:
        self._host = host
        self._subscribe(EVENT_LOCATE_REQUEST, self._on_locate_request)
        return None

    def _transition(self, state: FitState) -> None:
        self.state = state
        self.history.append(state)

    def _on_locate_request(self, payload: Any) -> None:
        if self.mounted:
            self._host.spawn(self.locate(), name="locate")

    def _target(self, position: GeoPoint) -> CameraTarget:
        config = self._host.camera_config
        zoom = None
        if self.scale is None:
            zoom = self.zoom if self.zoom is not None else config.locate_zoom
        return CameraTarget(
            target=position,
            zoom=zoom,
            scale=self.scale,
            duration_ms=config.locate_duration_ms,
        )

    async def locate(self) -> bool:
        """
        Run one locate.

        Skipped when the camera is held by another operation. A missing
        position or a failed move releases the camera immediately.

        Returns:
            True if the camera was moved to the device position
        """
        host = self._host
        if host is None or host.is_torn_down:
            return False

        self._transition(FitState.ACQUIRING_CAMERA)
        lease = host.camera_lock.acquire_lease(self.owner)
        if lease is None:
            logger.debug("Camera busy; locate skipped")
            self._transition(FitState.SETTLED)
            return False

        self._transition(FitState.ANIMATING)
        located = False
        max_wait = host.camera_config.max_move_wait_ms / 1000.0
        try:
            position = await host.engine.current_position()
            await wait_for_move(host.go_to(self._target(position)), max_wait)
            if self.use_heading and position.heading is not None and not host.is_torn_down:
                await wait_for_move(host.go_to(CameraTarget(
                    target=position,
                    rotation=position.heading,
                    duration_ms=host.camera_config.locate_duration_ms,
                )), max_wait)
            located = True
        except LocationUnavailableError as e:
            logger.warning(f"Location unavailable: {e}")
        except CameraMoveError as e:
            logger.warning(f"Locate move failed: {e}")
        except Exception as e:
            logger.warning(f"Locate errored: {e}", exc_info=True)
        finally:
            if located and not host.is_torn_down:
                lease.release_after(host.camera_config.locate_release_ms / 1000.0)
            else:
                lease.release()
            self._transition(FitState.SETTLED)

        if located:
            self.last_position = position
            host.engine.emit(EVENT_LOCATE, position)
            logger.info(f"Located at ({position.lng:.5f}, {position.lat:.5f})")
        return located
