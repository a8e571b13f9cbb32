"""Unit tests for Leaflet layer drawing.

The NiceGUI leaflet element is replaced by a mock; these tests check which
Leaflet layers get created for each kind of graphic.
"""

import pytest

from overlaymap.data.schemas.models import Graphic, MarkerItem
from overlaymap.forge.leaflet_engine import LeafletLayer, style_from_symbol, zoom_for_scale
from overlaymap.overlays.markers import marker_to_graphic

# Scale denominator of web-mercator zoom 18
ZOOM_18_SCALE = 2256.994353


@pytest.fixture
def leaflet_engine(mocker):
    return mocker.MagicMock()


class TestDrawGraphic:
    """Graphics to Leaflet layers."""

    def test_point_is_circle_marker(self, leaflet_engine):
        layer = LeafletLayer(leaflet_engine, "markers-1", "Markers")
        graphic = marker_to_graphic(MarkerItem(lng=114.83, lat=-3.48, title="Kantor"))

        layer._draw_graphic(graphic)

        call = leaflet_engine.leaflet.generic_layer.call_args
        assert call.kwargs["name"] == "circleMarker"
        assert call.kwargs["args"][0] == [-3.48, 114.83]
        leaflet_layer = leaflet_engine.leaflet.generic_layer.return_value
        leaflet_layer.run_method.assert_called_once_with("bindPopup", "<b>Kantor</b><div></div>")

    @pytest.mark.parametrize("geometry_type,coordinates,expected", [
        ("polyline", [[0, 0], [1, 1]], "LineString"),
        ("polygon", [[[0, 0], [1, 0], [0, 1], [0, 0]]], "Polygon"),
    ])
    def test_lines_and_polygons_are_geojson(self, leaflet_engine, geometry_type, coordinates, expected):
        layer = LeafletLayer(leaflet_engine, "sketch-1", "Sketch Layer")
        graphic = Graphic(
            geometry_type=geometry_type,
            coordinates=coordinates,
            symbol={"type": "simple-line", "color": [255, 140, 0], "width": 2},
        )

        layer._draw_graphic(graphic)

        call = leaflet_engine.leaflet.generic_layer.call_args
        assert call.kwargs["name"] == "geoJSON"
        geojson, options = call.kwargs["args"]
        assert geojson["geometry"] == {"type": expected, "coordinates": coordinates}
        assert options == {"style": {"color": "rgb(255, 140, 0)", "weight": 2}}
        leaflet_engine.leaflet.generic_layer.return_value.run_method.assert_not_called()


class TestHelpers:
    """Symbol and scale translation."""

    def test_fill_alpha(self):
        style = style_from_symbol({
            "type": "simple-fill",
            "color": [0, 120, 255, 0.1],
            "outline": {"color": [0, 80, 200, 200], "width": 1},
        })
        assert style["fillColor"] == "rgb(0, 120, 255)"
        assert style["fillOpacity"] == pytest.approx(0.1)
        assert style["weight"] == 1

    def test_zoom_for_scale(self):
        assert zoom_for_scale(ZOOM_18_SCALE) == 18

    def test_zoom_for_scale_rejects_zero(self):
        with pytest.raises(ValueError):
            zoom_for_scale(0)
