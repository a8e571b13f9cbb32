"""
Map Engine Interface - Abstract contract for the external mapping engine.

OverlayMap never projects, tiles or draws anything itself. It talks to a
Map Engine that owns a stack of layers, a camera, readiness signals and an
interaction event stream. This module defines that contract so overlays can
run against a browser-backed engine or the in-memory one alike.
"""

from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, List, Optional

from overlaymap.data.schemas.models import (
    CameraTarget,
    Extent,
    GeoPoint,
    Graphic,
    IngestResult,
)
from overlaymap.utils.logger import get_logger

logger = get_logger(__name__)

EventHandler = Callable[[Any], Any]

# Interaction events emitted by engines
EVENT_LOCATE_REQUEST = "locate-request"
EVENT_LOCATE = "locate"
EVENT_SKETCH_CREATED = "sketch-created"


class EngineLayer(ABC):
    """
    A drawable unit owned by the engine.

    Feature layers hold an ingested feature set; graphics layers hold
    free-form graphics (markers, sketches).
    """

    def __init__(self, layer_id: str, title: str):
        self.layer_id = layer_id
        self.title = title
        self._destroyed = False

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    @abstractmethod
    async def when_ready(self) -> None:
        """
        Wait until the layer has loaded its backing data.

        Raises:
            LayerLoadError: If loading failed or the layer was destroyed first
        """
        pass

    @abstractmethod
    def full_extent(self) -> Optional[Extent]:
        """
        Extent of the loaded data.

        Returns:
            Extent, or None when the layer holds nothing
        """
        pass

    @property
    @abstractmethod
    def graphics(self) -> List[Graphic]:
        """Graphics currently drawn by this layer."""
        pass

    @abstractmethod
    def add_graphics(self, graphics: List[Graphic]) -> None:
        """Draw additional graphics."""
        pass

    @abstractmethod
    def remove_all(self) -> None:
        """Remove every graphic from the layer."""
        pass

    @abstractmethod
    def destroy(self) -> None:
        """Release the engine resources behind this layer."""
        pass


class MapEngine(ABC):
    """
    Abstract interface for Map Engine implementations.

    Subclasses provide layers, camera moves and positioning. Event
    registration is shared by all engines and implemented here.
    """

    def __init__(self):
        self._handlers: Dict[str, List[EventHandler]] = {}

    # Readiness

    @abstractmethod
    async def when_ready(self) -> None:
        """Wait until the view can accept layers and camera moves."""
        pass

    # Layers

    @abstractmethod
    def create_feature_layer(
        self,
        layer_id: str,
        title: str,
        feature_set: IngestResult,
        renderer: Optional[Dict[str, Any]] = None,
        popup_template: Optional[Dict[str, Any]] = None,
        labeling_info: Optional[List[Dict[str, Any]]] = None
    ) -> EngineLayer:
        """
        Create a client-side feature layer from an ingested feature set.

        The layer is not on the map until add_layer is called.
        """
        pass

    @abstractmethod
    def create_graphics_layer(self, layer_id: str, title: str) -> EngineLayer:
        """Create an empty graphics layer."""
        pass

    @abstractmethod
    def add_layer(self, layer: EngineLayer, index: Optional[int] = None) -> None:
        """
        Add a layer to the map.

        Args:
            layer: Layer to add
            index: Stacking position (0 = bottom); None puts it on top
        """
        pass

    @abstractmethod
    def remove_layer(self, layer: EngineLayer) -> None:
        """Remove a layer from the map. Unknown layers are ignored."""
        pass

    @property
    @abstractmethod
    def layers(self) -> List[EngineLayer]:
        """Layers on the map, bottom to top."""
        pass

    # Camera

    @abstractmethod
    def go_to(self, target: CameraTarget) -> Awaitable[None]:
        """
        Start a camera move.

        Returns:
            Completion signal; fails with CameraMoveError (or
            CameraMoveInterrupted when superseded)
        """
        pass

    @abstractmethod
    async def current_position(self) -> GeoPoint:
        """
        Device position for the locate control.

        Raises:
            LocationUnavailableError: If no position can be determined
        """
        pass

    # Lifecycle

    @abstractmethod
    def destroy(self) -> None:
        """Tear down the view and every layer still on it."""
        pass

    # Events

    def on(self, event: str, handler: EventHandler) -> Callable[[], None]:
        """
        Register a handler for an interaction event.

        Returns:
            A callable that removes the handler
        """
        self._handlers.setdefault(event, []).append(handler)

        def remove() -> None:
            handlers = self._handlers.get(event, [])
            if handler in handlers:
                handlers.remove(handler)

        return remove

    def emit(self, event: str, payload: Any = None) -> None:
        """Deliver an event to its handlers in registration order."""
        for handler in list(self._handlers.get(event, [])):
            try:
                handler(payload)
            except Exception as e:
                logger.error(f"Handler for '{event}' failed: {e}", exc_info=True)

    def clear_handlers(self) -> None:
        self._handlers.clear()
