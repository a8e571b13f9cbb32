"""
Converters module - Data conversion helpers for OverlayMap.

Browser map libraries speak GeoJSON and [lat, lng] bounds; the internal
model speaks Esri-style rings and [x, y] = [lng, lat]. These helpers bridge
the two.
"""

import html
import re
from typing import Any, Dict, List, Optional, Union

from overlaymap.data.schemas.models import (
    Extent,
    Graphic,
    InternalFeature,
    PolygonGeometry,
)

_GEOJSON_TYPES = {
    "point": "Point",
    "polyline": "LineString",
    "polygon": "Polygon",
}


def polygon_to_geojson(geometry: PolygonGeometry) -> Dict[str, Any]:
    """Convert a polygon's rings to a GeoJSON Polygon geometry."""
    return {
        "type": "Polygon",
        "coordinates": [[list(point) for point in ring] for ring in geometry.rings],
    }


def feature_to_geojson(feature: InternalFeature) -> Dict[str, Any]:
    """Convert an ingested feature to a GeoJSON Feature."""
    return {
        "type": "Feature",
        "id": feature.id,
        "geometry": polygon_to_geojson(feature.geometry),
        "properties": dict(feature.attributes),
    }


def graphic_to_geojson(graphic: Graphic) -> Dict[str, Any]:
    """Convert a marker or sketch graphic to a GeoJSON Feature."""
    return {
        "type": "Feature",
        "geometry": {
            "type": _GEOJSON_TYPES[graphic.geometry_type],
            "coordinates": graphic.coordinates,
        },
        "properties": dict(graphic.attributes),
    }


def extent_to_bounds(extent: Extent) -> List[List[float]]:
    """Extent to Leaflet bounds [[south, west], [north, east]]."""
    return [[extent.ymin, extent.xmin], [extent.ymax, extent.xmax]]


def color_to_css(color: Union[str, List[float]]) -> str:
    """
    Normalize a symbol color to a CSS color string.

    RGB lists map to rgb(); RGBA lists map to rgba(), with alpha values
    above 1 treated as 0-255.
    """
    if isinstance(color, str):
        return color
    channels = list(color)
    if len(channels) == 3:
        r, g, b = (int(c) for c in channels)
        return f"rgb({r}, {g}, {b})"
    if len(channels) == 4:
        r, g, b = (int(c) for c in channels[:3])
        alpha = channels[3]
        alpha = alpha / 255.0 if alpha > 1 else alpha
        return f"rgba({r}, {g}, {b}, {round(alpha, 3)})"
    raise ValueError(f"Unsupported color: {color!r}")


_PLACEHOLDER = re.compile(r"\{(\w+)\}")


def fill_template(template: str, attributes: Dict[str, Any]) -> str:
    """Substitute {field} placeholders with escaped attribute values."""
    def replace(match: "re.Match") -> str:
        value = attributes.get(match.group(1))
        return "" if value is None else html.escape(str(value))
    return _PLACEHOLDER.sub(replace, template)


def popup_to_html(popup_template: Optional[Dict[str, Any]], attributes: Dict[str, Any]) -> Optional[str]:
    """
    Render a popup template against a feature's attributes.

    Supports a string content template and "fields" content blocks, which
    render as a label/value table.

    Returns:
        HTML string, or None when there is no template
    """
    if not popup_template:
        return None

    parts = []
    title = popup_template.get("title")
    if title:
        parts.append(f"<b>{fill_template(title, attributes)}</b>")

    content = popup_template.get("content")
    if isinstance(content, str):
        parts.append(f"<div>{fill_template(content, attributes)}</div>")
    elif isinstance(content, list):
        for block in content:
            if not isinstance(block, dict) or block.get("type") != "fields":
                continue
            rows = []
            for info in block.get("fieldInfos", []):
                value = attributes.get(info.get("fieldName"))
                shown = "" if value is None else html.escape(str(value))
                label = html.escape(str(info.get("label") or info.get("fieldName")))
                rows.append(f"<tr><th>{label}</th><td>{shown}</td></tr>")
            parts.append(f"<table>{''.join(rows)}</table>")

    return "".join(parts)
