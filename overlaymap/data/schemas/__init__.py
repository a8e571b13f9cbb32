"""
Data Schemas for OverlayMap.

This module exports the Pydantic models and enums shared by the ingestor,
the layer manager and the overlays.
"""

from overlaymap.data.schemas.models import (
    # Enums
    SemanticFieldType,
    OverlayKey,

    # Raw input
    RawFeatureDocument,

    # Validated feature set
    SpatialReference,
    InternalFieldSpec,
    PolygonGeometry,
    InternalFeature,
    IngestResult,

    # Camera and drawing
    Extent,
    GeoPoint,
    CameraTarget,
    Graphic,
    MarkerItem,
)

__all__ = [
    # Enums
    'SemanticFieldType',
    'OverlayKey',

    # Raw input
    'RawFeatureDocument',

    # Validated feature set
    'SpatialReference',
    'InternalFieldSpec',
    'PolygonGeometry',
    'InternalFeature',
    'IngestResult',

    # Camera and drawing
    'Extent',
    'GeoPoint',
    'CameraTarget',
    'Graphic',
    'MarkerItem',
]
