"""
Boundary Overlay - Administrative boundary polygons from an EsriJSON export.

The export is ingested once, attached at the bottom of the layer stack and
handed to a ReadinessSequencer that fits the camera to it after load.
"""

import asyncio
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from overlaymap.camera.sequencer import ReadinessSequencer
from overlaymap.data.schemas.models import IngestResult, OverlayKey, RawFeatureDocument
from overlaymap.errors import DocumentLoadError
from overlaymap.host import MapHost
from overlaymap.ingest.ingestor import ingest, load_document
from overlaymap.layers.handle import LayerHandle, LayerSpec
from overlaymap.overlays.base import Overlay
from overlaymap.utils.logger import get_logger

logger = get_logger(__name__)

BoundarySource = Union[str, Path, RawFeatureDocument, Dict[str, Any]]

DEFAULT_RENDERER: Dict[str, Any] = {
    "type": "simple",
    "symbol": {
        "type": "simple-fill",
        "color": [0, 120, 255, 0.1],
        "outline": {"color": [0, 80, 200, 200], "width": 1},
    },
}

# (field, label) pairs shown in the popup
DEFAULT_POPUP_FIELDS: List[Tuple[str, str]] = [
    ("namobj", "Nama Objek"),
    ("wadmkc", "Kecamatan"),
    ("wadmkk", "Kab/Kota"),
    ("wadmpr", "Provinsi"),
    ("shape_area", "Luas (derajat²)"),
]


def build_popup_template(title_field: str, fields: List[Tuple[str, str]]) -> Dict[str, Any]:
    """Popup listing the given fields under a title taken from title_field."""
    return {
        "title": f"{{{title_field}}}",
        "content": [{
            "type": "fields",
            "fieldInfos": [{"fieldName": name, "label": label} for name, label in fields],
        }],
    }


def build_label_class(field: str) -> Dict[str, Any]:
    """Bold 10pt label with a white halo."""
    return {
        "labelExpressionInfo": {"expression": f"$feature.{field}"},
        "symbol": {
            "type": "text",
            "font": {"size": 10, "weight": "bold"},
            "haloColor": "white",
            "haloSize": 1,
        },
    }


class BoundaryOverlay(Overlay):
    """
    Polygon boundary layer with a one-time camera fit.

    Attributes:
        feature_set: Ingested features, set by mount()
        sequencer: The camera-fit sequencer of the current layer
        fit_task: Task running the sequencer
    """

    def __init__(
        self,
        source: BoundarySource,
        title: str = "Batas Kota",
        label_field: Optional[str] = "namobj",
        popup_fields: Optional[List[Tuple[str, str]]] = None,
        renderer: Optional[Dict[str, Any]] = None
    ):
        super().__init__()
        self.source = source
        self.title = title
        self.label_field = label_field
        self.popup_fields = popup_fields if popup_fields is not None else DEFAULT_POPUP_FIELDS
        self.renderer = renderer or DEFAULT_RENDERER

        self.feature_set: Optional[IngestResult] = None
        self.sequencer: Optional[ReadinessSequencer] = None
        self.fit_task: Optional[asyncio.Task] = None

    def _load(self) -> RawFeatureDocument:
        if isinstance(self.source, (str, Path)):
            return load_document(self.source)
        if isinstance(self.source, RawFeatureDocument):
            return self.source
        return RawFeatureDocument.from_untrusted(self.source)

    def mount(self, host: MapHost) -> Optional[LayerHandle]:
        """
        Ingest the source, attach the layer and start the camera fit.

        A source that cannot be read is logged and leaves the map without a
        boundary layer.

        Returns:
            The boundary LayerHandle, or None if nothing was attached
        """
        self._host = host
        try:
            document = self._load()
        except DocumentLoadError as e:
            logger.error(f"Failed to load boundary layer: {e}")
            return None

        feature_set = ingest(document)
        self.feature_set = feature_set

        popup_template = build_popup_template(
            self.label_field or feature_set.identifier_field, self.popup_fields
        )
        labeling_info = [build_label_class(self.label_field)] if self.label_field else []

        spec = LayerSpec(
            key=OverlayKey.BOUNDARY,
            title=self.title,
            create=lambda engine, layer_id: engine.create_feature_layer(
                layer_id,
                self.title,
                feature_set,
                renderer=self.renderer,
                popup_template=popup_template,
                labeling_info=labeling_info,
            ),
        )
        self.handle = host.layers.attach(spec)
        if self.handle is None:
            return None

        self.sequencer = ReadinessSequencer(host, self.handle, owner="boundary-fit")
        self.fit_task = host.spawn(self.sequencer.run(), name=f"fit-{self.handle.layer_id}")
        return self.handle
