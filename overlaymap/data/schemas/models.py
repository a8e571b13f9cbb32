"""
Pydantic Models for OverlayMap.

This module defines the data models shared by every overlay:
- RawFeatureDocument: the untrusted EsriJSON export as it arrives
- InternalFieldSpec / InternalFeature / IngestResult: the validated feature set
- Extent / GeoPoint / CameraTarget: what the camera can be pointed at
- Graphic / MarkerItem: point and sketch primitives drawn by the host
"""

from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field

Coordinate = List[float]
Ring = List[Coordinate]

GEOGRAPHIC_WKID = 4326


class SemanticFieldType(str, Enum):
    """Internal semantic type of an attribute field."""
    IDENTIFIER = "identifier"
    TEXT = "text"
    DATE = "date"
    DOUBLE = "double"
    SINGLE = "single"
    INTEGER = "integer"
    SMALL_INTEGER = "small-integer"


class OverlayKey(str, Enum):
    """Logical overlay slots on the shared map."""
    BOUNDARY = "boundary"
    MARKERS = "markers"
    SKETCH = "sketch"


class SpatialReference(BaseModel):
    """Coordinate system of a document or geometry."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    wkid: Optional[int] = Field(GEOGRAPHIC_WKID, description="Well-known ID")
    latest_wkid: Optional[int] = Field(None, alias="latestWkid")
    wkt: Optional[str] = Field(None, description="Well-known text definition")

    @classmethod
    def geographic(cls) -> "SpatialReference":
        """WGS84 longitude/latitude."""
        return cls(wkid=GEOGRAPHIC_WKID)

    @property
    def is_geographic(self) -> bool:
        return self.wkid == GEOGRAPHIC_WKID or self.latest_wkid == GEOGRAPHIC_WKID


class RawFeatureDocument(BaseModel):
    """
    An external feature-collection export (EsriJSON FeatureSet).

    Every member is loosely typed because the document is untrusted; the
    ingestor is the only place that interprets its contents.
    """
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    features: List[Any] = Field(default_factory=list)
    fields: List[Any] = Field(default_factory=list)
    spatial_reference: Optional[Any] = Field(None, alias="spatialReference")
    object_id_field: Optional[Any] = Field(None, alias="objectIdField")
    geometry_type: Optional[Any] = Field(None, alias="geometryType")

    @classmethod
    def from_untrusted(cls, data: Any) -> "RawFeatureDocument":
        """
        Build a document from parsed JSON without ever raising.

        Args:
            data: Anything json.loads could return

        Returns:
            RawFeatureDocument, empty when data is not a mapping
        """
        if not isinstance(data, dict):
            return cls()
        features = data.get("features")
        fields = data.get("fields")
        return cls(
            features=features if isinstance(features, list) else [],
            fields=fields if isinstance(fields, list) else [],
            spatialReference=data.get("spatialReference"),
            objectIdField=data.get("objectIdField"),
            geometryType=data.get("geometryType"),
        )


class InternalFieldSpec(BaseModel):
    """A validated attribute field."""
    name: str = Field(..., description="Field name")
    alias: str = Field(..., description="Display name")
    semantic_type: SemanticFieldType = Field(SemanticFieldType.TEXT)
    length: Optional[int] = Field(None, description="Maximum length for text fields")
    nullable: bool = Field(True)
    domain: Optional[Any] = Field(None, description="Coded-value or range domain, passed through")


class Extent(BaseModel):
    """Axis-aligned bounding box."""
    xmin: float
    ymin: float
    xmax: float
    ymax: float
    spatial_reference: SpatialReference = Field(default_factory=SpatialReference.geographic)

    @classmethod
    def from_points(
        cls,
        points: List[Coordinate],
        spatial_reference: Optional[SpatialReference] = None
    ) -> Optional["Extent"]:
        """Bounding box of a list of [x, y] points, None when empty."""
        if not points:
            return None
        xs = [p[0] for p in points]
        ys = [p[1] for p in points]
        return cls(
            xmin=min(xs), ymin=min(ys), xmax=max(xs), ymax=max(ys),
            spatial_reference=spatial_reference or SpatialReference.geographic()
        )

    def union(self, other: "Extent") -> "Extent":
        return Extent(
            xmin=min(self.xmin, other.xmin),
            ymin=min(self.ymin, other.ymin),
            xmax=max(self.xmax, other.xmax),
            ymax=max(self.ymax, other.ymax),
            spatial_reference=self.spatial_reference,
        )

    @property
    def center(self) -> Coordinate:
        return [(self.xmin + self.xmax) / 2, (self.ymin + self.ymax) / 2]


class PolygonGeometry(BaseModel):
    """Polygon as an ordered list of rings."""
    rings: List[Ring] = Field(..., description="Rings of [x, y] pairs")
    spatial_reference: SpatialReference = Field(default_factory=SpatialReference.geographic)

    def extent(self) -> Optional[Extent]:
        points = [point for ring in self.rings for point in ring]
        return Extent.from_points(points, self.spatial_reference)


class InternalFeature(BaseModel):
    """
    A validated polygon feature.

    ids are dense and 1-based over the retained features only.
    """
    id: int = Field(..., ge=1)
    attributes: Dict[str, Any] = Field(default_factory=dict)
    geometry: PolygonGeometry


class IngestResult(BaseModel):
    """Output of the Feature Ingestor."""
    features: List[InternalFeature] = Field(default_factory=list)
    fields: List[InternalFieldSpec] = Field(default_factory=list)
    identifier_field: str = Field("OBJECTID")
    spatial_reference: SpatialReference = Field(default_factory=SpatialReference.geographic)
    raw_count: int = Field(0, description="Features present in the raw document")
    dropped_count: int = Field(0, description="Features dropped for missing geometry")

    @property
    def is_empty(self) -> bool:
        return not self.features

    @property
    def full_extent(self) -> Optional[Extent]:
        """Union of every feature extent, None for an empty set."""
        extent = None
        for feature in self.features:
            feature_extent = feature.geometry.extent()
            if feature_extent is None:
                continue
            extent = feature_extent if extent is None else extent.union(feature_extent)
        return extent


class GeoPoint(BaseModel):
    """A longitude/latitude position, optionally with a compass heading."""
    lng: float
    lat: float
    heading: Optional[float] = Field(None, description="Degrees clockwise from north")


class CameraTarget(BaseModel):
    """Where a camera move should end up."""
    target: Union[Extent, GeoPoint]
    zoom: Optional[float] = None
    scale: Optional[float] = None
    rotation: Optional[float] = None
    duration_ms: Optional[int] = None


class Graphic(BaseModel):
    """A drawable primitive with attributes, symbol and optional popup."""
    geometry_type: Literal["point", "polyline", "polygon"]
    coordinates: Any = Field(..., description="[x, y], [[x, y], ...] or [[[x, y], ...], ...]")
    attributes: Dict[str, Any] = Field(default_factory=dict)
    symbol: Dict[str, Any] = Field(default_factory=dict)
    popup_template: Optional[Dict[str, Any]] = None

    def points(self) -> List[Coordinate]:
        """Flatten coordinates into a list of [x, y] points."""
        if self.geometry_type == "point":
            return [list(self.coordinates)]
        if self.geometry_type == "polyline":
            return [list(p) for p in self.coordinates]
        return [list(p) for ring in self.coordinates for p in ring]

    def extent(self) -> Optional[Extent]:
        return Extent.from_points(self.points())


class MarkerItem(BaseModel):
    """A point marker supplied by the host application."""
    id: Optional[Union[str, int]] = None
    lng: float
    lat: float
    title: Optional[str] = None
    description: Optional[str] = None
    color: Union[str, List[int]] = Field("red", description="CSS color name or RGB(A) list")
