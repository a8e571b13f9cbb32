"""
Map Scene - Composition root for the overlay map.

Builds a MapHost around an engine and mounts the boundary, marker, sketch
and locate overlays once the view is ready.
"""

from typing import Any, Dict, List, Optional

from overlaymap.config import OverlayMapConfig, get_config
from overlaymap.data.schemas.models import MarkerItem
from overlaymap.engine.interface import MapEngine
from overlaymap.host import MapHost
from overlaymap.overlays.boundary import BoundaryOverlay, BoundarySource
from overlaymap.overlays.locate import LocateControl
from overlaymap.overlays.markers import MarkerOverlay
from overlaymap.overlays.sketch import SketchOverlay
from overlaymap.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_MARKERS = [
    MarkerItem(
        id="kantor-gub",
        lng=114.83371,
        lat=-3.48415,
        title="Kantor Gubernur Kalsel",
        description=(
            "Jalan Aneka Tambang, Trikora, Palam, Kec. Cemp., "
            "Kota Banjar Baru, Kalimantan Selatan 70114"
        ),
        color="red",
    ),
]


class MapScene:
    """
    The full map: host plus every overlay.

    Attributes:
        host: Shared Map Host
        boundary: Boundary overlay
        markers: Marker overlay
        sketch: Sketch overlay
        locate: Locate control
    """

    def __init__(
        self,
        engine: MapEngine,
        config: Optional[OverlayMapConfig] = None,
        boundary_source: Optional[BoundarySource] = None,
        markers: Optional[List[MarkerItem]] = None,
        auto_fit_markers: bool = False
    ):
        self.config = config or get_config()
        self.host = MapHost(engine, camera_config=self.config.camera)

        self.boundary = BoundaryOverlay(
            boundary_source if boundary_source is not None else self.config.data.boundary_path,
            title=self.config.data.boundary_title,
            label_field=self.config.data.label_field,
        )
        self.markers = MarkerOverlay(
            markers if markers is not None else DEFAULT_MARKERS,
            auto_fit=auto_fit_markers,
        )
        self.sketch = SketchOverlay()
        self.locate = LocateControl(zoom=self.config.camera.locate_zoom)

        self.host.on_ready(self._mount_overlays)

    def _mount_overlays(self, host: MapHost) -> None:
        for overlay in (self.boundary, self.markers, self.sketch, self.locate):
            try:
                overlay.mount(host)
            except Exception as e:
                logger.error(f"Failed to mount {type(overlay).__name__}: {e}", exc_info=True)

    async def start(self) -> None:
        """Wait for the view and mount every overlay."""
        await self.host.start()

    async def settle(self) -> None:
        """Wait for all background camera work to finish."""
        await self.host.drain()

    def stop(self) -> None:
        """Tear the map down."""
        self.host.teardown()

    def summary(self) -> Dict[str, Any]:
        """Snapshot of the scene for logging and diagnostics."""
        feature_set = self.boundary.feature_set
        sequencer = self.boundary.sequencer
        return {
            "ready": self.host.is_ready,
            "layers": [layer.layer_id for layer in self.host.engine.layers],
            "boundary_features": len(feature_set.features) if feature_set else 0,
            "boundary_dropped": feature_set.dropped_count if feature_set else 0,
            "fit_state": sequencer.state.value if sequencer else None,
            "fit_outcome": sequencer.outcome.value if sequencer and sequencer.outcome else None,
            "markers": len(self.markers.markers),
            "sketches": len(self.sketch.graphics),
            "camera": self.host.camera_lock.get_stats(),
        }
