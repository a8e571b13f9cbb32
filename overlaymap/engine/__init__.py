"""
Engine module - The Map Engine contract and its headless implementation.

This module contains:
- interface: MapEngine / EngineLayer abstract base classes and event names
- memory: InMemoryMapEngine used by the headless runner and the tests

The browser-backed engine lives in overlaymap.forge.leaflet_engine so that
importing the core never pulls in NiceGUI.
"""

from overlaymap.engine.interface import (
    MapEngine,
    EngineLayer,
    EVENT_LOCATE_REQUEST,
    EVENT_LOCATE,
    EVENT_SKETCH_CREATED,
)
from overlaymap.engine.memory import (
    InMemoryMapEngine,
    InMemoryLayer,
    zoom_for_span,
)

__all__ = [
    "MapEngine",
    "EngineLayer",
    "EVENT_LOCATE_REQUEST",
    "EVENT_LOCATE",
    "EVENT_SKETCH_CREATED",
    "InMemoryMapEngine",
    "InMemoryLayer",
    "zoom_for_span",
]
