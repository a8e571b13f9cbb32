"""
Ingest module - Turns external geometry exports into validated feature sets.
"""

from overlaymap.ingest.ingestor import (
    ingest,
    ingest_file,
    load_document,
    map_field_type,
    resolve_identifier_field,
    sanitize_rings,
    FIELD_TYPE_TABLE,
    DEFAULT_IDENTIFIER_FIELD,
)

__all__ = [
    "ingest",
    "ingest_file",
    "load_document",
    "map_field_type",
    "resolve_identifier_field",
    "sanitize_rings",
    "FIELD_TYPE_TABLE",
    "DEFAULT_IDENTIFIER_FIELD",
]
