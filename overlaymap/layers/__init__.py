"""
Layers module - Overlay layer ownership for OverlayMap.

This module contains:
- handle: LayerHandle and LayerSpec
- manager: LayerLifecycleManager plus attach/detach helpers
"""

from overlaymap.layers.handle import LayerHandle, LayerSpec
from overlaymap.layers.manager import (
    LayerLifecycleManager,
    attach,
    detach,
)

__all__ = [
    "LayerHandle",
    "LayerSpec",
    "LayerLifecycleManager",
    "attach",
    "detach",
]
