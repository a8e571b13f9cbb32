"""Unit tests for the Feature Ingestor.

Covers geometry filtering, identifier density and synthesis, field type
mapping and tolerance of malformed input.
"""

import json

import pytest

from overlaymap.data.schemas.models import SemanticFieldType
from overlaymap.errors import DocumentLoadError
from overlaymap.ingest import (
    DEFAULT_IDENTIFIER_FIELD,
    ingest,
    ingest_file,
    load_document,
    map_field_type,
    sanitize_rings,
)


class TestGeometryFiltering:
    """Features without usable rings never reach the output."""

    def test_scenario_a_single_survivor(self, scenario_a_document):
        result = ingest(scenario_a_document)
        assert len(result.features) == 1
        assert result.features[0].id == 1
        assert result.features[0].attributes["namobj"] == "Valid"
        assert result.raw_count == 3
        assert result.dropped_count == 2

    def test_retained_count_matches_features_with_rings(self, factory):
        features = [
            factory.create_raw_feature("a", rings=[factory.square_ring(0, 0)]),
            factory.create_raw_feature("b", geometry=None),
            factory.create_raw_feature("c", rings=[[]]),
            factory.create_raw_feature("d", rings=[[], factory.square_ring(1, 1)]),
            factory.create_raw_feature("e", geometry={"paths": [[[0, 0], [1, 1]]]}),
            "not a feature",
        ]
        result = ingest(factory.create_document(features))
        assert [f.attributes["namobj"] for f in result.features] == ["a", "d"]
        # the empty ring of "d" is dropped, the populated one kept
        assert len(result.features[1].geometry.rings) == 1

    def test_non_numeric_points_are_dropped(self):
        rings = sanitize_rings({"rings": [[[0, 0], ["x", 1], [1, None], [float("nan"), 1], [2, 2]]]})
        assert rings == [[[0.0, 0.0], [2.0, 2.0]]]

    def test_ring_of_only_bad_points_is_dropped(self, factory):
        doc = factory.create_document([
            factory.create_raw_feature("bad", rings=[[["a", "b"], [True, False]]]),
        ])
        assert ingest(doc).is_empty

    def test_bundled_sample(self, sample_path):
        result = ingest_file(sample_path)
        assert len(result.features) == 4
        assert result.dropped_count == 2
        extent = result.full_extent
        assert extent.xmin == pytest.approx(114.70)
        assert extent.ymax == pytest.approx(-3.40)


class TestIdentifiers:
    """Identifier density and synthesis."""

    def test_ids_are_dense_and_start_at_one(self, factory):
        features = []
        for i in range(10):
            if i % 3 == 0:
                features.append(factory.create_raw_feature(f"gap{i}", geometry=None))
            else:
                features.append(factory.create_raw_feature(f"ok{i}", rings=[factory.square_ring(i, 0)]))
        result = ingest(factory.create_document(features))
        assert [f.id for f in result.features] == list(range(1, len(result.features) + 1))

    def test_identifier_written_into_attributes(self, factory):
        feature = factory.create_raw_feature("x", rings=[factory.square_ring(0, 0)])
        feature["attributes"][DEFAULT_IDENTIFIER_FIELD] = 99
        result = ingest(factory.create_document([feature]))
        assert result.features[0].attributes[DEFAULT_IDENTIFIER_FIELD] == 1

    def test_scenario_c_synthesized_identifier_field(self, factory):
        doc = factory.create_document([])
        input_names = [f["name"] for f in doc["fields"]]
        result = ingest(doc)

        first = result.fields[0]
        assert first.name == "OBJECTID"
        assert first.semantic_type == SemanticFieldType.IDENTIFIER
        assert "OBJECTID" not in input_names
        assert [f.name for f in result.fields[1:]] == input_names
        assert result.identifier_field == "OBJECTID"

    def test_colliding_text_field_is_replaced(self, factory):
        doc = factory.create_document([], fields=[
            {"name": "OBJECTID", "type": "esriFieldTypeString"},
            {"name": "namobj", "type": "esriFieldTypeString"},
        ])
        result = ingest(doc)
        assert [f.name for f in result.fields] == ["OBJECTID", "namobj"]
        assert result.fields[0].semantic_type == SemanticFieldType.IDENTIFIER

    def test_existing_identifier_field_is_kept(self, factory):
        doc = factory.create_document(
            [factory.create_raw_feature("x", rings=[factory.square_ring(0, 0)])],
            fields=[
                {"name": "FID", "type": "esriFieldTypeOID"},
                {"name": "namobj", "type": "esriFieldTypeString"},
            ],
            objectIdField="FID",
        )
        result = ingest(doc)
        assert [f.name for f in result.fields] == ["FID", "namobj"]
        assert result.identifier_field == "FID"
        assert result.features[0].attributes["FID"] == 1


class TestFieldMapping:
    """Field type table and descriptor cleanup."""

    @pytest.mark.parametrize("code,expected", [
        ("esriFieldTypeOID", SemanticFieldType.IDENTIFIER),
        ("esriFieldTypeString", SemanticFieldType.TEXT),
        ("esriFieldTypeDate", SemanticFieldType.DATE),
        ("esriFieldTypeDouble", SemanticFieldType.DOUBLE),
        ("esriFieldTypeSingle", SemanticFieldType.SINGLE),
        ("esriFieldTypeInteger", SemanticFieldType.INTEGER),
        ("esriFieldTypeSmallInteger", SemanticFieldType.SMALL_INTEGER),
        ("ESRIFIELDTYPEDOUBLE", SemanticFieldType.DOUBLE),
        ("esriFieldTypeGeometry", SemanticFieldType.TEXT),
        (None, SemanticFieldType.TEXT),
    ])
    def test_map_field_type(self, code, expected):
        assert map_field_type(code) == expected

    def test_alias_defaults_to_name_and_nameless_fields_skipped(self, factory):
        doc = factory.create_document([], fields=[
            {"name": "namobj", "type": "esriFieldTypeString", "length": 250},
            {"type": "esriFieldTypeString"},
            "garbage",
        ])
        fields = ingest(doc).fields
        assert [f.name for f in fields] == ["OBJECTID", "namobj"]
        assert fields[1].alias == "namobj"
        assert fields[1].length == 250


class TestTolerance:
    """Ingestion never raises on malformed content."""

    @pytest.mark.parametrize("doc", [
        None,
        [],
        {},
        {"features": None, "fields": None},
        {"features": [None, 1, {"geometry": "x"}], "fields": [None]},
        {"spatialReference": "bogus", "features": []},
    ])
    def test_malformed_documents_yield_empty_result(self, doc):
        result = ingest(doc)
        assert result.is_empty
        assert result.fields[0].name == "OBJECTID"
        assert result.spatial_reference.wkid == 4326

    def test_spatial_reference_is_carried(self, factory):
        doc = factory.create_document(
            [factory.create_raw_feature("x", rings=[factory.square_ring(0, 0)])],
            spatialReference={"wkid": 102100, "latestWkid": 3857},
        )
        result = ingest(doc)
        assert result.spatial_reference.wkid == 102100
        assert result.features[0].geometry.spatial_reference.latest_wkid == 3857


class TestLoadDocument:
    """Reading documents from disk."""

    def test_missing_file(self, tmp_path):
        with pytest.raises(DocumentLoadError) as exc_info:
            load_document(tmp_path / "missing.json")
        assert exc_info.value.path.endswith("missing.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(DocumentLoadError):
            load_document(path)

    def test_json_array_loads_as_empty_document(self, tmp_path):
        path = tmp_path / "array.json"
        path.write_text(json.dumps([1, 2, 3]), encoding="utf-8")
        assert ingest(load_document(path)).is_empty
