"""
In-Memory Map Engine - A headless, deterministic Map Engine.

Used by the headless runner and the test-suite. Layers load on the event
loop after a configurable delay, camera moves complete after their
(scaled) animation duration, and a newer move interrupts an older one the
way browser engines do.
"""

import asyncio
import math
from typing import Any, Dict, List, Optional

from overlaymap.data.schemas.models import (
    CameraTarget,
    Extent,
    GeoPoint,
    Graphic,
    IngestResult,
)
from overlaymap.engine.interface import EngineLayer, MapEngine
from overlaymap.errors import (
    CameraMoveError,
    CameraMoveInterrupted,
    LayerLoadError,
    LocationUnavailableError,
)
from overlaymap.utils.logger import get_logger

logger = get_logger(__name__)


class InMemoryLayer(EngineLayer):
    """Engine layer kept entirely in memory."""

    def __init__(
        self,
        layer_id: str,
        title: str,
        feature_set: Optional[IngestResult] = None,
        presentation: Optional[Dict[str, Any]] = None
    ):
        super().__init__(layer_id, title)
        self.feature_set = feature_set
        self.presentation = presentation or {}
        self._graphics: List[Graphic] = []
        self._loaded = False
        self._load_error: Optional[str] = None
        self._ready: Optional[asyncio.Event] = None

    @property
    def is_feature_layer(self) -> bool:
        return self.feature_set is not None

    @property
    def loaded(self) -> bool:
        return self._loaded

    def _finish_loading(self, error: Optional[str] = None) -> None:
        if self._loaded or self._load_error:
            return
        if error:
            self._load_error = error
        else:
            self._loaded = True
        if self._ready is not None:
            self._ready.set()

    async def when_ready(self) -> None:
        if not self._loaded and not self._load_error:
            if self._ready is None:
                self._ready = asyncio.Event()
            await self._ready.wait()
        if self._load_error:
            raise LayerLoadError(f"Layer {self.layer_id} failed to load: {self._load_error}")

    def full_extent(self) -> Optional[Extent]:
        if self._destroyed or not self._loaded:
            return None
        if self.feature_set is not None:
            return self.feature_set.full_extent
        extent = None
        for graphic in self._graphics:
            graphic_extent = graphic.extent()
            if graphic_extent is None:
                continue
            extent = graphic_extent if extent is None else extent.union(graphic_extent)
        return extent

    @property
    def graphics(self) -> List[Graphic]:
        return list(self._graphics)

    def add_graphics(self, graphics: List[Graphic]) -> None:
        if self._destroyed:
            return
        self._graphics.extend(graphics)

    def remove_all(self) -> None:
        self._graphics.clear()

    def destroy(self) -> None:
        if self._destroyed:
            return
        self._destroyed = True
        self._graphics.clear()
        self._finish_loading(error="destroyed")


class InMemoryMapEngine(MapEngine):
    """
    Headless Map Engine.

    Attributes:
        camera: Current camera state (center as [lng, lat], zoom, rotation)
        move_log: Every CameraTarget passed to go_to, in order
        interrupted_moves: Moves that were superseded before finishing
        max_concurrent_moves: Highest number of moves in flight at once
    """

    def __init__(
        self,
        center: Optional[List[float]] = None,
        zoom: float = 15,
        animation_scale: float = 1.0,
        default_duration_ms: int = 1000,
        layer_load_delay: float = 0.0,
        position: Optional[GeoPoint] = None,
        reject_moves: bool = False
    ):
        """
        Initialize the in-memory engine.

        Args:
            center: Initial [lng, lat]
            zoom: Initial zoom
            animation_scale: Multiplier applied to move durations (0 = instant)
            default_duration_ms: Duration for moves that do not set one
            layer_load_delay: Seconds a layer needs to load after being added
            position: Position reported to the locate control
            reject_moves: Fail every camera move (for failure-path testing)
        """
        super().__init__()
        self.camera: Dict[str, Any] = {
            "center": list(center) if center else [0.0, 0.0],
            "zoom": zoom,
            "rotation": 0.0,
        }
        self.animation_scale = animation_scale
        self.default_duration_ms = default_duration_ms
        self.layer_load_delay = layer_load_delay
        self.position = position
        self.reject_moves = reject_moves
        self.failing_layers: set = set()

        self.move_log: List[CameraTarget] = []
        self.interrupted_moves = 0
        self.max_concurrent_moves = 0
        self._in_flight: List[asyncio.Future] = []
        self._layers: List[InMemoryLayer] = []
        self._ready = False
        self._destroyed = False

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    async def when_ready(self) -> None:
        # Yield once so the view readiness is always asynchronous
        await asyncio.sleep(0)
        self._ready = True

    # Layers

    def create_feature_layer(
        self,
        layer_id: str,
        title: str,
        feature_set: IngestResult,
        renderer: Optional[Dict[str, Any]] = None,
        popup_template: Optional[Dict[str, Any]] = None,
        labeling_info: Optional[List[Dict[str, Any]]] = None
    ) -> InMemoryLayer:
        return InMemoryLayer(
            layer_id,
            title,
            feature_set=feature_set,
            presentation={
                "renderer": renderer,
                "popup_template": popup_template,
                "labeling_info": labeling_info,
            },
        )

    def create_graphics_layer(self, layer_id: str, title: str) -> InMemoryLayer:
        return InMemoryLayer(layer_id, title)

    def add_layer(self, layer: EngineLayer, index: Optional[int] = None) -> None:
        if self._destroyed or layer in self._layers:
            return
        if index is None:
            self._layers.append(layer)
        else:
            self._layers.insert(max(0, index), layer)

        error = "simulated load failure" if layer.layer_id in self.failing_layers else None
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            layer._finish_loading(error)
            return
        if self.layer_load_delay > 0:
            loop.call_later(self.layer_load_delay, layer._finish_loading, error)
        else:
            loop.call_soon(layer._finish_loading, error)

    def remove_layer(self, layer: EngineLayer) -> None:
        if layer in self._layers:
            self._layers.remove(layer)

    @property
    def layers(self) -> List[InMemoryLayer]:
        return list(self._layers)

    # Camera

    def go_to(self, target: CameraTarget) -> asyncio.Future:
        loop = asyncio.get_running_loop()
        future = loop.create_future()
        self.move_log.append(target)

        if self._destroyed or self.reject_moves:
            future.set_exception(CameraMoveError("camera move rejected by engine"))
            return future

        pending = [f for f in self._in_flight if not f.done()]
        self.max_concurrent_moves = max(self.max_concurrent_moves, len(pending) + 1)
        for superseded in pending:
            superseded.set_exception(CameraMoveInterrupted("superseded by a newer move"))
            self.interrupted_moves += 1
        self._in_flight = [future]

        duration_ms = target.duration_ms if target.duration_ms is not None else self.default_duration_ms
        delay = max(0.0, duration_ms / 1000.0 * self.animation_scale)
        loop.call_later(delay, self._finish_move, future, target)
        return future

    def _finish_move(self, future: asyncio.Future, target: CameraTarget) -> None:
        if future.done():
            return
        self._apply_camera(target)
        future.set_result(None)
        if future in self._in_flight:
            self._in_flight.remove(future)

    def _apply_camera(self, target: CameraTarget) -> None:
        destination = target.target
        if isinstance(destination, Extent):
            self.camera["center"] = destination.center
            span = max(destination.xmax - destination.xmin, destination.ymax - destination.ymin)
            self.camera["zoom"] = zoom_for_span(span)
        else:
            self.camera["center"] = [destination.lng, destination.lat]
        if target.zoom is not None:
            self.camera["zoom"] = target.zoom
        if target.rotation is not None:
            self.camera["rotation"] = target.rotation

    async def current_position(self) -> GeoPoint:
        await asyncio.sleep(0)
        if self.position is None:
            raise LocationUnavailableError("no position configured")
        return self.position

    # Lifecycle

    def destroy(self) -> None:
        if self._destroyed:
            return
        self._destroyed = True
        for layer in list(self._layers):
            layer.destroy()
        self._layers.clear()
        self.clear_handlers()
        logger.info("In-memory map engine destroyed")


def zoom_for_span(span_degrees: float) -> float:
    """Rough web-mercator zoom that fits a span of degrees."""
    if span_degrees <= 0:
        return 20.0
    return max(0.0, min(20.0, math.floor(math.log2(360.0 / span_degrees))))
