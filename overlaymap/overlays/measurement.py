"""
Measurement tools - Geodesic length and area of sketched shapes.

Distances are measured on the WGS84 ellipsoid with pyproj.Geod, so results
are in meters and square meters regardless of the map projection.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from pyproj import Geod

from overlaymap.data.schemas.models import Coordinate, Graphic

WGS84 = Geod(ellps="WGS84")


def geodesic_length(points: Sequence[Coordinate]) -> float:
    """Length in meters of a path of [lng, lat] points."""
    if len(points) < 2:
        return 0.0
    lons = [p[0] for p in points]
    lats = [p[1] for p in points]
    return float(WGS84.line_length(lons, lats))


def ring_area(ring: Sequence[Coordinate]) -> float:
    """Unsigned area in square meters enclosed by a ring."""
    if len(ring) < 3:
        return 0.0
    lons = [p[0] for p in ring]
    lats = [p[1] for p in ring]
    area, _ = WGS84.polygon_area_perimeter(lons, lats)
    return abs(float(area))


def geodesic_area(rings: Sequence[Sequence[Coordinate]]) -> float:
    """
    Area in square meters of a polygon.

    The first ring is the outer boundary; any further rings are holes.
    """
    if not rings:
        return 0.0
    area = ring_area(rings[0]) - sum(ring_area(hole) for hole in rings[1:])
    return max(0.0, area)


def geodesic_perimeter(rings: Sequence[Sequence[Coordinate]]) -> float:
    """Perimeter in meters of a polygon's outer ring."""
    if not rings:
        return 0.0
    ring = list(rings[0])
    if ring and ring[0] != ring[-1]:
        ring.append(ring[0])
    return geodesic_length(ring)


def format_length(meters: float) -> str:
    if meters >= 1000:
        return f"{meters / 1000:.2f} km"
    return f"{meters:.1f} m"


def format_area(square_meters: float) -> str:
    if square_meters >= 1_000_000:
        return f"{square_meters / 1_000_000:.2f} km²"
    if square_meters >= 10_000:
        return f"{square_meters / 10_000:.2f} ha"
    return f"{square_meters:.1f} m²"


@dataclass
class Measurement:
    """Measured size of one graphic."""
    geometry_type: str
    length_m: Optional[float] = None
    area_m2: Optional[float] = None
    perimeter_m: Optional[float] = None

    def describe(self) -> str:
        if self.geometry_type == "polyline":
            return format_length(self.length_m or 0.0)
        if self.geometry_type == "polygon":
            return (
                f"{format_area(self.area_m2 or 0.0)} "
                f"(perimeter {format_length(self.perimeter_m or 0.0)})"
            )
        return "point"


def measure(graphic: Graphic) -> Measurement:
    """
    Measure a sketch graphic.

    Points have no size; polylines get a length; polygons get an area and
    a perimeter.
    """
    if graphic.geometry_type == "polyline":
        return Measurement("polyline", length_m=geodesic_length(graphic.coordinates))
    if graphic.geometry_type == "polygon":
        return Measurement(
            "polygon",
            area_m2=geodesic_area(graphic.coordinates),
            perimeter_m=geodesic_perimeter(graphic.coordinates),
        )
    return Measurement("point")


def measure_all(graphics: List[Graphic]) -> Dict[str, Any]:
    """Per-graphic measurements plus totals."""
    measurements = [measure(g) for g in graphics]
    return {
        "measurements": measurements,
        "total_length_m": sum(m.length_m or 0.0 for m in measurements),
        "total_area_m2": sum(m.area_m2 or 0.0 for m in measurements),
    }
