"""
Sketch Overlay - Freehand drawing layer.

Shapes arrive either from the front end's draw control (as
sketch-created events) or through the add_* methods. Rectangles and
circles are stored as polygons; circles are geodesic and approximated by
CIRCLE_VERTICES points.
"""

from typing import Any, Callable, Dict, List, Optional, Sequence

from overlaymap.data.schemas.models import Coordinate, Graphic, OverlayKey
from overlaymap.engine.interface import EVENT_SKETCH_CREATED
from overlaymap.host import MapHost
from overlaymap.layers.handle import LayerHandle, LayerSpec
from overlaymap.overlays.base import Overlay
from overlaymap.overlays.measurement import WGS84, Measurement, measure
from overlaymap.utils.logger import get_logger

logger = get_logger(__name__)

SKETCH_TOOLS = ("point", "polyline", "polygon", "rectangle", "circle")
CIRCLE_VERTICES = 64

POINT_SYMBOL = {
    "type": "simple-marker",
    "color": [255, 140, 0],
    "size": 8,
    "outline": {"color": "white", "width": 1},
}
LINE_SYMBOL = {"type": "simple-line", "color": [255, 140, 0], "width": 2}
FILL_SYMBOL = {
    "type": "simple-fill",
    "color": [255, 140, 0, 0.2],
    "outline": {"color": [255, 140, 0], "width": 2},
}


def _close(ring: Sequence[Coordinate]) -> List[Coordinate]:
    closed = [list(p) for p in ring]
    if closed and closed[0] != closed[-1]:
        closed.append(list(closed[0]))
    return closed


def rectangle_ring(corner: Coordinate, opposite: Coordinate) -> List[Coordinate]:
    """Closed ring of an axis-aligned rectangle given two opposite corners."""
    xmin, xmax = sorted((corner[0], opposite[0]))
    ymin, ymax = sorted((corner[1], opposite[1]))
    return [[xmin, ymin], [xmin, ymax], [xmax, ymax], [xmax, ymin], [xmin, ymin]]


def circle_ring(center: Coordinate, radius_m: float, vertices: int = CIRCLE_VERTICES) -> List[Coordinate]:
    """Closed geodesic circle around center with the given radius in meters."""
    lons = [center[0]] * vertices
    lats = [center[1]] * vertices
    azimuths = [i * 360.0 / vertices for i in range(vertices)]
    out_lons, out_lats, _ = WGS84.fwd(lons, lats, azimuths, [radius_m] * vertices)
    ring = [[float(x), float(y)] for x, y in zip(out_lons, out_lats)]
    return _close(ring)


def _polygon_graphic(ring: Sequence[Coordinate], tool: str) -> Graphic:
    return Graphic(
        geometry_type="polygon",
        coordinates=[_close(ring)],
        attributes={"tool": tool},
        symbol=FILL_SYMBOL,
    )


class SketchOverlay(Overlay):
    """Graphics layer holding user sketches."""

    def __init__(self, title: str = "Sketch Layer"):
        super().__init__()
        self.title = title
        self._change_handlers: List[Callable[[List[Graphic]], None]] = []

    def mount(self, host: MapHost) -> Optional[LayerHandle]:
        self._host = host
        spec = LayerSpec(
            key=OverlayKey.SKETCH,
            title=self.title,
            create=lambda engine, layer_id: engine.create_graphics_layer(layer_id, self.title),
        )
        self.handle = host.layers.attach(spec)
        if self.handle is not None:
            self._subscribe(EVENT_SKETCH_CREATED, self._on_sketch_created)
        return self.handle

    @property
    def graphics(self) -> List[Graphic]:
        if self.handle is None:
            return []
        return self.handle.graphics

    def on_change(self, handler: Callable[[List[Graphic]], None]) -> None:
        """Register a handler called with the current sketches after every add or clear."""
        self._change_handlers.append(handler)

    def _changed(self) -> None:
        graphics = self.graphics
        for handler in list(self._change_handlers):
            handler(graphics)

    def _add(self, graphic: Graphic) -> Graphic:
        if self.handle is not None:
            self.handle.add_graphics([graphic])
            self._changed()
        return graphic

    def add_point(self, point: Coordinate) -> Graphic:
        return self._add(Graphic(
            geometry_type="point",
            coordinates=list(point),
            attributes={"tool": "point"},
            symbol=POINT_SYMBOL,
        ))

    def add_polyline(self, points: Sequence[Coordinate]) -> Graphic:
        return self._add(Graphic(
            geometry_type="polyline",
            coordinates=[list(p) for p in points],
            attributes={"tool": "polyline"},
            symbol=LINE_SYMBOL,
        ))

    def add_polygon(self, ring: Sequence[Coordinate], tool: str = "polygon") -> Graphic:
        return self._add(_polygon_graphic(ring, tool))

    def add_rectangle(self, corner: Coordinate, opposite: Coordinate) -> Graphic:
        return self.add_polygon(rectangle_ring(corner, opposite), tool="rectangle")

    def add_circle(self, center: Coordinate, radius_m: float) -> Graphic:
        graphic = _polygon_graphic(circle_ring(center, radius_m), "circle")
        graphic.attributes["radius_m"] = radius_m
        return self._add(graphic)

    def create(self, tool: str, coordinates: Any, radius_m: Optional[float] = None) -> Graphic:
        """
        Add a shape drawn with one of SKETCH_TOOLS.

        Args:
            tool: Drawing tool name
            coordinates: Point, path, ring, or [corner, opposite] for rectangles
            radius_m: Circle radius in meters (circle only)

        Raises:
            ValueError: For an unknown tool or a circle without a radius
        """
        if tool == "point":
            return self.add_point(coordinates)
        if tool == "polyline":
            return self.add_polyline(coordinates)
        if tool == "polygon":
            return self.add_polygon(coordinates)
        if tool == "rectangle":
            return self.add_rectangle(coordinates[0], coordinates[1])
        if tool == "circle":
            if radius_m is None:
                raise ValueError("circle requires radius_m")
            return self.add_circle(coordinates, radius_m)
        raise ValueError(f"Unknown sketch tool: {tool}")

    def _on_sketch_created(self, payload: Dict[str, Any]) -> None:
        try:
            graphic = self.create(
                payload.get("tool", ""),
                payload.get("coordinates"),
                radius_m=payload.get("radius_m"),
            )
        except (AttributeError, ValueError, TypeError, IndexError) as e:
            logger.warning(f"Ignoring malformed sketch: {e}")
            return
        logger.debug(f"Sketch added: {graphic.attributes.get('tool')}")

    def clear(self) -> None:
        """Remove every sketch."""
        if self.handle is not None:
            self.handle.clear()
            self._changed()

    def measurements(self) -> List[Measurement]:
        return [measure(g) for g in self.graphics]
