"""Test configuration and utilities for OverlayMap.

This module provides test data factories for EsriJSON documents and
markers shared by the test suite.
"""

from typing import Any, Dict, List, Optional

from overlaymap.config import CameraConfig
from overlaymap.data.schemas.models import MarkerItem


class TestDataFactory:
    """Factory for creating test data."""

    @staticmethod
    def square_ring(x: float, y: float, size: float = 0.01) -> List[List[float]]:
        """Closed square ring with its south-west corner at (x, y)."""
        return [[x, y], [x + size, y], [x + size, y + size], [x, y + size], [x, y]]

    @staticmethod
    def create_raw_feature(
        name: str,
        rings: Optional[List[Any]] = None,
        geometry: Any = "default"
    ) -> Dict[str, Any]:
        """Create a raw EsriJSON feature; geometry=None drops the geometry key's value."""
        if geometry == "default":
            geometry = {"rings": rings if rings is not None else []}
        return {
            "attributes": {"namobj": name, "wadmkc": name},
            "geometry": geometry,
        }

    @staticmethod
    def create_document(
        features: List[Dict[str, Any]],
        fields: Optional[List[Dict[str, Any]]] = None,
        **extra: Any
    ) -> Dict[str, Any]:
        """Create an EsriJSON FeatureSet without an identifier field."""
        document = {
            "geometryType": "esriGeometryPolygon",
            "spatialReference": {"wkid": 4326},
            "fields": fields if fields is not None else [
                {"name": "namobj", "type": "esriFieldTypeString", "alias": "Nama"},
                {"name": "wadmkc", "type": "esriFieldTypeString", "alias": "Kecamatan"},
            ],
            "features": features,
        }
        document.update(extra)
        return document

    @staticmethod
    def create_scenario_a_document() -> Dict[str, Any]:
        """Three raw features: empty rings, valid rings, no geometry."""
        return TestDataFactory.create_document([
            TestDataFactory.create_raw_feature("Kosong", rings=[]),
            TestDataFactory.create_raw_feature(
                "Valid", rings=[TestDataFactory.square_ring(114.8, -3.45)]
            ),
            {"attributes": {"namobj": "Tanpa Geometri"}},
        ])

    @staticmethod
    def create_markers() -> List[MarkerItem]:
        return [
            MarkerItem(id="a", lng=114.80, lat=-3.44, title="A", description="Pertama"),
            MarkerItem(id="b", lng=114.85, lat=-3.47, color=[0, 0, 255]),
        ]

    @staticmethod
    def create_camera_config(**overrides: Any) -> CameraConfig:
        """Camera timings short enough for tests."""
        values = dict(
            fit_delay_ms=5,
            fit_settle_ms=20,
            fit_duration_ms=30,
            locate_duration_ms=20,
            locate_release_ms=60,
            locate_zoom=11,
            max_move_wait_ms=500,
        )
        values.update(overrides)
        return CameraConfig(**values)
