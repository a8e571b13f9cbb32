"""Unit tests for the GeoJSON and Leaflet conversion helpers."""

import pytest

from overlaymap.data.schemas.models import Extent, Graphic
from overlaymap.ingest import ingest
from overlaymap.utils.converters import (
    color_to_css,
    extent_to_bounds,
    feature_to_geojson,
    fill_template,
    graphic_to_geojson,
    popup_to_html,
)


class TestGeoJSON:
    """GeoJSON conversion."""

    def test_feature(self, scenario_a_document):
        feature = feature_to_geojson(ingest(scenario_a_document).features[0])
        assert feature["type"] == "Feature"
        assert feature["id"] == 1
        assert feature["geometry"]["type"] == "Polygon"
        assert feature["properties"]["OBJECTID"] == 1

    @pytest.mark.parametrize("geometry_type,coordinates,expected", [
        ("point", [1, 2], "Point"),
        ("polyline", [[0, 0], [1, 1]], "LineString"),
        ("polygon", [[[0, 0], [1, 0], [0, 1], [0, 0]]], "Polygon"),
    ])
    def test_graphic(self, geometry_type, coordinates, expected):
        graphic = Graphic(geometry_type=geometry_type, coordinates=coordinates, attributes={"k": "v"})
        result = graphic_to_geojson(graphic)
        assert result["geometry"] == {"type": expected, "coordinates": coordinates}
        assert result["properties"] == {"k": "v"}


class TestLeafletHelpers:
    """Bounds, colors and popups."""

    def test_extent_to_bounds_swaps_axes(self):
        extent = Extent(xmin=114.7, ymin=-3.53, xmax=114.86, ymax=-3.40)
        assert extent_to_bounds(extent) == [[-3.53, 114.7], [-3.40, 114.86]]

    @pytest.mark.parametrize("color,expected", [
        ("red", "red"),
        ([0, 120, 255], "rgb(0, 120, 255)"),
        ([0, 120, 255, 0.1], "rgba(0, 120, 255, 0.1)"),
        ([0, 80, 200, 255], "rgba(0, 80, 200, 1.0)"),
    ])
    def test_color_to_css(self, color, expected):
        assert color_to_css(color) == expected

    def test_color_to_css_rejects_bad_length(self):
        with pytest.raises(ValueError):
            color_to_css([1, 2])

    def test_fill_template_escapes_and_blanks_missing(self):
        text = fill_template("{name} - {missing}", {"name": "<b>Kantor</b>"})
        assert text == "&lt;b&gt;Kantor&lt;/b&gt; - "

    def test_popup_fields_table(self):
        template = {
            "title": "{namobj}",
            "content": [{"type": "fields", "fieldInfos": [
                {"fieldName": "namobj", "label": "Nama Objek"},
                {"fieldName": "wadmkc", "label": "Kecamatan"},
            ]}],
        }
        html = popup_to_html(template, {"namobj": "Cempaka", "wadmkc": None})
        assert html.startswith("<b>Cempaka</b>")
        assert "<th>Nama Objek</th><td>Cempaka</td>" in html
        assert "<th>Kecamatan</th><td></td>" in html

    def test_popup_without_template(self):
        assert popup_to_html(None, {"a": 1}) is None
