"""
Layer Handle - Ownership of one overlay's engine layer.

A handle stays usable as a guard after it has been detached: every method
turns into a no-op so async work that resumes after teardown cannot fail.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, List, Optional

from overlaymap.data.schemas.models import Extent, Graphic, OverlayKey
from overlaymap.engine.interface import EngineLayer, MapEngine
from overlaymap.errors import LayerLoadError

if TYPE_CHECKING:
    from overlaymap.layers.manager import LayerLifecycleManager


@dataclass
class LayerSpec:
    """
    What to attach for an overlay.

    Attributes:
        key: Overlay slot; at most one live handle per key
        title: Display title
        create: Factory called as create(engine, layer_id)
    """
    key: OverlayKey
    title: str
    create: Callable[[MapEngine, str], EngineLayer]


class LayerHandle:
    """Live (or detached) ownership of an engine layer."""

    def __init__(self, manager: "LayerLifecycleManager", key: OverlayKey, layer: EngineLayer):
        self._manager = manager
        self.key = key
        self.layer = layer
        self._detached = False

    @property
    def detached(self) -> bool:
        return self._detached

    @property
    def layer_id(self) -> str:
        return self.layer.layer_id

    def _mark_detached(self) -> None:
        self._detached = True

    def detach(self) -> None:
        """Detach through the owning manager. Safe to call twice."""
        self._manager.detach(self)

    async def when_ready(self) -> None:
        """
        Wait for the layer's readiness signal.

        Raises:
            LayerLoadError: If the layer failed to load or was detached
        """
        if self._detached:
            raise LayerLoadError(f"Layer {self.layer_id} is detached")
        await self.layer.when_ready()
        if self._detached:
            raise LayerLoadError(f"Layer {self.layer_id} was detached while loading")

    def full_extent(self) -> Optional[Extent]:
        if self._detached:
            return None
        return self.layer.full_extent()

    @property
    def graphics(self) -> List[Graphic]:
        if self._detached:
            return []
        return self.layer.graphics

    def add_graphics(self, graphics: List[Graphic]) -> None:
        if self._detached:
            return
        self.layer.add_graphics(graphics)

    def clear(self) -> None:
        if self._detached:
            return
        self.layer.remove_all()

    def replace_graphics(self, graphics: List[Graphic]) -> None:
        """Clear every drawn graphic, then draw the new set."""
        if self._detached:
            return
        self.layer.remove_all()
        self.layer.add_graphics(graphics)

    def __repr__(self) -> str:
        state = "detached" if self._detached else "live"
        return f"LayerHandle({self.key.value}, {self.layer_id}, {state})"
