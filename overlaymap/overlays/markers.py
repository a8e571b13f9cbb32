"""
Marker Overlay - Point markers supplied by the host application.

Each redraw replaces every previously drawn marker. When auto-fit is on,
the overlay asks the camera arbiter for the camera and silently skips the
fit if another operation holds it.
"""

from typing import Any, Dict, List, Optional

from overlaymap.data.schemas.models import (
    CameraTarget,
    GeoPoint,
    Graphic,
    MarkerItem,
    OverlayKey,
)
from overlaymap.host import MapHost
from overlaymap.layers.handle import LayerHandle, LayerSpec
from overlaymap.overlays.base import Overlay
from overlaymap.utils.logger import get_logger

logger = get_logger(__name__)

MARKER_SIZE = 15


def marker_symbol(color: Any) -> Dict[str, Any]:
    return {
        "type": "simple-marker",
        "color": color,
        "size": MARKER_SIZE,
        "outline": {"color": "white", "width": 2},
    }


def marker_to_graphic(marker: MarkerItem) -> Graphic:
    """
    Build the point graphic for a marker.

    A popup is attached only when the marker has a title or description.
    """
    popup = None
    if marker.title or marker.description:
        popup = {"title": "{name}", "content": "{description}"}
    return Graphic(
        geometry_type="point",
        coordinates=[marker.lng, marker.lat],
        attributes={
            "id": marker.id,
            "name": marker.title,
            "description": marker.description,
        },
        symbol=marker_symbol(marker.color),
        popup_template=popup,
    )


class MarkerOverlay(Overlay):
    """Point marker layer with optional camera auto-fit."""

    def __init__(
        self,
        markers: Optional[List[MarkerItem]] = None,
        auto_fit: bool = True,
        title: str = "Markers"
    ):
        super().__init__()
        self.markers: List[MarkerItem] = list(markers or [])
        self.auto_fit = auto_fit
        self.title = title
        self.fit_requests = 0
        self.fits_started = 0

    def mount(self, host: MapHost) -> Optional[LayerHandle]:
        self._host = host
        spec = LayerSpec(
            key=OverlayKey.MARKERS,
            title=self.title,
            create=lambda engine, layer_id: engine.create_graphics_layer(layer_id, self.title),
        )
        self.handle = host.layers.attach(spec)
        self._draw()
        return self.handle

    def set_markers(self, markers: List[MarkerItem]) -> None:
        """Replace the marker list and redraw."""
        self.markers = list(markers)
        self._draw()

    def _draw(self) -> None:
        if self.handle is None or self.handle.detached:
            return
        graphics = [marker_to_graphic(m) for m in self.markers]
        self.handle.replace_graphics(graphics)

        if self.auto_fit and graphics:
            self._request_fit(graphics)

    def _request_fit(self, graphics: List[Graphic]) -> None:
        self.fit_requests += 1
        host = self._host
        lease = host.camera_lock.acquire_lease("marker-fit")
        if lease is None:
            return

        extent = graphics[0].extent()
        for graphic in graphics[1:]:
            extent = extent.union(graphic.extent())

        if extent.xmin == extent.xmax and extent.ymin == extent.ymax:
            target = CameraTarget(target=GeoPoint(lng=extent.xmin, lat=extent.ymin))
        else:
            target = CameraTarget(target=extent)
        target.duration_ms = host.camera_config.fit_duration_ms

        self.fits_started += 1
        try:
            move = host.go_to(target)
        except Exception as e:
            logger.warning(f"Marker fit move could not start: {e}", exc_info=True)
            lease.release()
            return
        task = host.spawn(lease.release_when_settled(
            move,
            grace_seconds=host.camera_config.fit_settle_ms / 1000.0,
            max_wait_seconds=host.camera_config.max_move_wait_ms / 1000.0,
        ), name="marker-fit")
        if task is None:
            lease.release()
