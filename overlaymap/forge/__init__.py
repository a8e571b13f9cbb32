"""
Forge module - NiceGUI front end for OverlayMap.

This module provides the browser UI and the Leaflet-backed Map Engine.
"""

from overlaymap.forge.ui import (
    create_app,
    run_app,
)

__all__ = [
    'create_app',
    'run_app',
]
