"""
Overlay base - Shared mount/unmount plumbing for map overlays.
"""

from abc import ABC, abstractmethod
from typing import Callable, List, Optional

from overlaymap.host import MapHost
from overlaymap.layers.handle import LayerHandle
from overlaymap.layers.manager import detach


class Overlay(ABC):
    """
    A component bound to a Map Host between mount() and unmount().

    Layers attached through host.layers are released automatically when the
    host is torn down; unmount() covers the case where the overlay goes away
    while the host stays.
    """

    def __init__(self):
        self._host: Optional[MapHost] = None
        self.handle: Optional[LayerHandle] = None
        self._subscriptions: List[Callable[[], None]] = []

    @property
    def host(self) -> Optional[MapHost]:
        return self._host

    @property
    def mounted(self) -> bool:
        return self._host is not None and not self._host.is_torn_down

    @abstractmethod
    def mount(self, host: MapHost) -> Optional[LayerHandle]:
        """Bind the overlay to a ready host."""
        pass

    def _subscribe(self, event: str, handler: Callable) -> None:
        self._subscriptions.append(self._host.engine.on(event, handler))

    def unmount(self) -> None:
        """Detach the overlay's layer and drop its event handlers."""
        for unsubscribe in self._subscriptions:
            unsubscribe()
        self._subscriptions.clear()
        detach(self.handle)
        self.handle = None
        self._host = None
