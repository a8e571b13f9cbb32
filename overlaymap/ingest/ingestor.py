"""
Feature Ingestor - Converts an untrusted EsriJSON export into a validated
feature set.

Ingestion is tolerant: features without usable polygon geometry are dropped,
unknown field types fall back to text, and a missing identifier field is
synthesized. Nothing in here raises on malformed content; an export with no
usable features produces an empty, still valid, IngestResult.
"""

import json
import math
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from overlaymap.data.schemas.models import (
    RawFeatureDocument,
    InternalFieldSpec,
    InternalFeature,
    IngestResult,
    PolygonGeometry,
    SemanticFieldType,
    SpatialReference,
    Ring,
)
from overlaymap.errors import DocumentLoadError
from overlaymap.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_IDENTIFIER_FIELD = "OBJECTID"

# Esri field type code (lowercased) -> internal semantic type
FIELD_TYPE_TABLE: Dict[str, SemanticFieldType] = {
    "esrifieldtypeoid": SemanticFieldType.IDENTIFIER,
    "esrifieldtypestring": SemanticFieldType.TEXT,
    "esrifieldtypedate": SemanticFieldType.DATE,
    "esrifieldtypedouble": SemanticFieldType.DOUBLE,
    "esrifieldtypesingle": SemanticFieldType.SINGLE,
    "esrifieldtypelong": SemanticFieldType.INTEGER,
    "esrifieldtypesmallinteger": SemanticFieldType.SMALL_INTEGER,
    "esrifieldtypeinteger": SemanticFieldType.INTEGER,
}


def map_field_type(type_code: Any) -> SemanticFieldType:
    """
    Map an external field type code to a semantic type.

    Args:
        type_code: Raw type code, e.g. "esriFieldTypeString"

    Returns:
        The mapped type, TEXT for anything unrecognized
    """
    if not isinstance(type_code, str):
        return SemanticFieldType.TEXT
    return FIELD_TYPE_TABLE.get(type_code.lower(), SemanticFieldType.TEXT)


def _coerce_point(point: Any) -> Optional[List[float]]:
    if not isinstance(point, (list, tuple)) or len(point) < 2:
        return None
    x, y = point[0], point[1]
    if isinstance(x, bool) or isinstance(y, bool):
        return None
    if not isinstance(x, (int, float)) or not isinstance(y, (int, float)):
        return None
    if not (math.isfinite(x) and math.isfinite(y)):
        return None
    return [float(x), float(y)]


def sanitize_rings(geometry: Any) -> List[Ring]:
    """
    Extract the usable rings of a raw polygon geometry.

    Points that are not finite numeric pairs are discarded; rings left
    without points are discarded too.

    Args:
        geometry: Raw geometry value from a feature

    Returns:
        List of non-empty rings, empty when the geometry is unusable
    """
    if not isinstance(geometry, dict):
        return []
    rings = geometry.get("rings")
    if not isinstance(rings, list):
        return []

    cleaned: List[Ring] = []
    for ring in rings:
        if not isinstance(ring, list):
            continue
        points = [p for p in (_coerce_point(pt) for pt in ring) if p is not None]
        if points:
            cleaned.append(points)
    return cleaned


def _parse_spatial_reference(raw: Any) -> SpatialReference:
    if not isinstance(raw, dict):
        return SpatialReference.geographic()
    wkid = raw.get("wkid")
    latest = raw.get("latestWkid")
    wkt = raw.get("wkt")
    if not isinstance(wkid, int) and not isinstance(latest, int) and not isinstance(wkt, str):
        return SpatialReference.geographic()
    return SpatialReference(
        wkid=wkid if isinstance(wkid, int) else (latest if isinstance(latest, int) else None),
        latest_wkid=latest if isinstance(latest, int) else None,
        wkt=wkt if isinstance(wkt, str) else None,
    )


def _map_fields(raw_fields: List[Any]) -> List[InternalFieldSpec]:
    mapped: List[InternalFieldSpec] = []
    for raw in raw_fields:
        if not isinstance(raw, dict):
            continue
        name = raw.get("name")
        if not isinstance(name, str) or not name:
            logger.debug(f"Skipping field descriptor without a name: {raw!r}")
            continue
        alias = raw.get("alias")
        length = raw.get("length")
        nullable = raw.get("nullable")
        mapped.append(InternalFieldSpec(
            name=name,
            alias=alias if isinstance(alias, str) and alias else name,
            semantic_type=map_field_type(raw.get("type")),
            length=length if isinstance(length, int) and not isinstance(length, bool) else None,
            nullable=nullable if isinstance(nullable, bool) else True,
            domain=raw.get("domain"),
        ))
    return mapped


def resolve_identifier_field(
    fields: List[InternalFieldSpec],
    declared: Any
) -> Tuple[List[InternalFieldSpec], str]:
    """
    Decide which field identifies features, synthesizing one if needed.

    Args:
        fields: Mapped field list
        declared: The document's objectIdField value

    Returns:
        Tuple of (final field list, identifier field name)
    """
    has_identifier = any(f.semantic_type == SemanticFieldType.IDENTIFIER for f in fields)
    if has_identifier:
        name = declared if isinstance(declared, str) and declared else DEFAULT_IDENTIFIER_FIELD
        return fields, name

    synthesized = InternalFieldSpec(
        name=DEFAULT_IDENTIFIER_FIELD,
        alias=DEFAULT_IDENTIFIER_FIELD,
        semantic_type=SemanticFieldType.IDENTIFIER,
        nullable=False,
    )
    # A raw text field already called OBJECTID would shadow the synthesized one
    remaining = [f for f in fields if f.name != DEFAULT_IDENTIFIER_FIELD]
    if len(remaining) != len(fields):
        logger.debug(f"Replacing non-identifier field named {DEFAULT_IDENTIFIER_FIELD}")
    return [synthesized] + remaining, DEFAULT_IDENTIFIER_FIELD


def ingest(doc: Union[RawFeatureDocument, Dict[str, Any], Any]) -> IngestResult:
    """
    Convert an external feature document into a validated feature set.

    Args:
        doc: RawFeatureDocument or the parsed JSON of an export

    Returns:
        IngestResult with dense 1-based feature ids
    """
    if not isinstance(doc, RawFeatureDocument):
        doc = RawFeatureDocument.from_untrusted(doc)

    spatial_reference = _parse_spatial_reference(doc.spatial_reference)
    fields, identifier_field = resolve_identifier_field(
        _map_fields(doc.fields), doc.object_id_field
    )

    raw_count = len(doc.features)
    logger.info(f"Feature count from document: {raw_count}")

    features: List[InternalFeature] = []
    for index, raw in enumerate(doc.features):
        raw = raw if isinstance(raw, dict) else {}
        rings = sanitize_rings(raw.get("geometry"))
        if not rings:
            logger.debug(f"Dropping raw feature #{index}: no usable rings")
            continue

        attributes = raw.get("attributes")
        attributes = dict(attributes) if isinstance(attributes, dict) else {}
        feature_id = len(features) + 1
        attributes[identifier_field] = feature_id

        features.append(InternalFeature(
            id=feature_id,
            attributes=attributes,
            geometry=PolygonGeometry(rings=rings, spatial_reference=spatial_reference),
        ))

    logger.info(f"Valid features (geometry OK): {len(features)}")

    return IngestResult(
        features=features,
        fields=fields,
        identifier_field=identifier_field,
        spatial_reference=spatial_reference,
        raw_count=raw_count,
        dropped_count=raw_count - len(features),
    )


def load_document(path: Union[str, Path]) -> RawFeatureDocument:
    """
    Read an EsriJSON export from disk.

    Args:
        path: Path to the JSON file

    Returns:
        RawFeatureDocument (possibly empty if the JSON is not an object)

    Raises:
        DocumentLoadError: If the file cannot be read or is not valid JSON
    """
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        raise DocumentLoadError(str(path), str(e)) from e
    except json.JSONDecodeError as e:
        raise DocumentLoadError(str(path), f"invalid JSON: {e}") from e

    return RawFeatureDocument.from_untrusted(data)


def ingest_file(path: Union[str, Path]) -> IngestResult:
    """Load and ingest a document in one step."""
    return ingest(load_document(path))
