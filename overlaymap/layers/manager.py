"""
Layer Lifecycle Manager - Creation and teardown of overlay layers.

One manager belongs to one Map Host. It keeps at most one live handle per
overlay key, stacks the boundary overlay underneath interactive overlays,
and detaches everything when the host is torn down.
"""

import itertools
from contextlib import contextmanager
from typing import TYPE_CHECKING, Dict, Iterator, List, Optional

from overlaymap.data.schemas.models import OverlayKey
from overlaymap.layers.handle import LayerHandle, LayerSpec
from overlaymap.utils.logger import get_logger

if TYPE_CHECKING:
    from overlaymap.host import MapHost

logger = get_logger(__name__)

# Overlays pinned to the bottom of the stack
BOTTOM_OVERLAYS = {OverlayKey.BOUNDARY}


class LayerLifecycleManager:
    """Registry of live overlay layers for one Map Host."""

    def __init__(self, host: "MapHost"):
        """
        Initialize the manager and bind it to the host's lifetime.

        Args:
            host: Owning Map Host
        """
        self._host = host
        self._handles: Dict[OverlayKey, LayerHandle] = {}
        self._ids = itertools.count(1)
        host.on_teardown(self.detach_all)

    def attach(self, spec: LayerSpec) -> Optional[LayerHandle]:
        """
        Create the spec's layer and put it on the map.

        An existing live handle for the same key is detached first.

        Args:
            spec: What to attach

        Returns:
            The new LayerHandle, or None if the host is already torn down
        """
        if self._host.is_torn_down:
            logger.debug(f"Host torn down; not attaching {spec.key.value}")
            return None

        existing = self._handles.get(spec.key)
        if existing is not None:
            logger.debug(f"Replacing live {spec.key.value} layer {existing.layer_id}")
            self.detach(existing)

        engine = self._host.engine
        layer_id = f"{spec.key.value}-{next(self._ids)}"
        layer = spec.create(engine, layer_id)
        index = 0 if spec.key in BOTTOM_OVERLAYS else None
        engine.add_layer(layer, index)

        handle = LayerHandle(self, spec.key, layer)
        self._handles[spec.key] = handle
        logger.info(f"Attached {spec.key.value} layer '{spec.title}' ({layer_id})")
        return handle

    def detach(self, handle: Optional[LayerHandle]) -> None:
        """
        Remove the handle's layer from the map and destroy it.

        Calling this for an already detached handle does nothing.
        """
        if handle is None or handle.detached:
            return
        handle._mark_detached()
        if self._handles.get(handle.key) is handle:
            del self._handles[handle.key]

        self._host.engine.remove_layer(handle.layer)
        handle.layer.destroy()
        logger.debug(f"Detached {handle.key.value} layer {handle.layer_id}")

    def detach_all(self) -> None:
        """Detach every live handle."""
        for handle in list(self._handles.values()):
            self.detach(handle)

    @contextmanager
    def attached(self, spec: LayerSpec) -> Iterator[Optional[LayerHandle]]:
        """
        Attach for the duration of a with-block.

        The handle is detached on every exit path.
        """
        handle = self.attach(spec)
        try:
            yield handle
        finally:
            self.detach(handle)

    def get(self, key: OverlayKey) -> Optional[LayerHandle]:
        return self._handles.get(key)

    def live_keys(self) -> List[OverlayKey]:
        return list(self._handles.keys())


def attach(host: "MapHost", spec: LayerSpec) -> Optional[LayerHandle]:
    """Attach a layer on a host through its lifecycle manager."""
    return host.layers.attach(spec)


def detach(handle: Optional[LayerHandle]) -> None:
    """Detach a handle. Safe to call twice or with None."""
    if handle is not None:
        handle.detach()
