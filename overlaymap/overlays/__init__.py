"""
Overlays module - Components mounted on the shared map.

This module contains:
- boundary: EsriJSON boundary polygons with a one-time camera fit
- markers: Host-supplied point markers with optional auto-fit
- sketch: Freehand drawing layer
- locate: "Locate me" control
- measurement: Geodesic length and area of sketched shapes
"""

from overlaymap.overlays.base import Overlay
from overlaymap.overlays.boundary import (
    BoundaryOverlay,
    DEFAULT_POPUP_FIELDS,
    DEFAULT_RENDERER,
    build_label_class,
    build_popup_template,
)
from overlaymap.overlays.markers import MarkerOverlay, marker_to_graphic
from overlaymap.overlays.sketch import SketchOverlay, SKETCH_TOOLS, circle_ring, rectangle_ring
from overlaymap.overlays.locate import LocateControl
from overlaymap.overlays.measurement import (
    Measurement,
    geodesic_area,
    geodesic_length,
    measure,
    measure_all,
)

__all__ = [
    "Overlay",
    "BoundaryOverlay",
    "DEFAULT_POPUP_FIELDS",
    "DEFAULT_RENDERER",
    "build_label_class",
    "build_popup_template",
    "MarkerOverlay",
    "marker_to_graphic",
    "SketchOverlay",
    "SKETCH_TOOLS",
    "circle_ring",
    "rectangle_ring",
    "LocateControl",
    "Measurement",
    "geodesic_area",
    "geodesic_length",
    "measure",
    "measure_all",
]
