"""
Leaflet Map Engine - MapEngine backed by a NiceGUI ui.leaflet element.

Feature layers and graphics are drawn as Leaflet generic layers built from
GeoJSON. Camera moves use flyTo/flyToBounds and complete on the next
map-moveend event; a newer move interrupts an older one. The device
position comes from the browser's geolocation API.
"""

import asyncio
import math
from typing import Any, Dict, List, Optional

from nicegui import ui
from nicegui.elements.leaflet_layer import Layer

from overlaymap.data.schemas.models import (
    CameraTarget,
    Extent,
    GeoPoint,
    Graphic,
    IngestResult,
)
from overlaymap.engine.interface import EngineLayer, MapEngine
from overlaymap.errors import (
    CameraMoveError,
    CameraMoveInterrupted,
    LayerLoadError,
    LocationUnavailableError,
)
from overlaymap.utils.converters import (
    color_to_css,
    extent_to_bounds,
    feature_to_geojson,
    graphic_to_geojson,
    popup_to_html,
)
from overlaymap.utils.logger import get_logger

logger = get_logger(__name__)

BASEMAPS: Dict[str, Dict[str, Any]] = {
    "osm": {
        "url_template": "https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png",
        "options": {"maxZoom": 19, "attribution": "&copy; OpenStreetMap contributors"},
    },
    "topo": {
        "url_template": "https://{s}.tile.opentopomap.org/{z}/{x}/{y}.png",
        "options": {"maxZoom": 17, "attribution": "&copy; OpenTopoMap (CC-BY-SA)"},
    },
    "satellite": {
        "url_template": (
            "https://server.arcgisonline.com/ArcGIS/rest/services/"
            "World_Imagery/MapServer/tile/{z}/{y}/{x}"
        ),
        "options": {"maxZoom": 19, "attribution": "Tiles &copy; Esri"},
    },
}

# Scale denominator at zoom 0 for 256px web-mercator tiles at 96 dpi
ZOOM_0_SCALE = 591657527.591555

GEOLOCATION_JS = """
return await new Promise((resolve) => {
    if (!navigator.geolocation) {
        resolve({error: "geolocation not supported"});
        return;
    }
    navigator.geolocation.getCurrentPosition(
        (p) => resolve({lng: p.coords.longitude, lat: p.coords.latitude, heading: p.coords.heading}),
        (e) => resolve({error: e.message}),
        {enableHighAccuracy: true, timeout: 10000}
    );
});
"""


def zoom_for_scale(scale: float) -> float:
    """Web-mercator zoom level closest to a map scale denominator."""
    if scale <= 0:
        raise ValueError("scale must be positive")
    return max(0.0, min(20.0, round(math.log2(ZOOM_0_SCALE / scale))))


def style_from_symbol(symbol: Dict[str, Any]) -> Dict[str, Any]:
    """Translate a fill/line/marker symbol into Leaflet path options."""
    style: Dict[str, Any] = {}
    symbol_type = symbol.get("type")
    outline = symbol.get("outline") or {}

    if symbol_type == "simple-line":
        style["color"] = color_to_css(symbol.get("color", "blue"))
        style["weight"] = symbol.get("width", 1)
        return style

    if "color" in symbol:
        style["fillColor"] = color_to_css(symbol["color"])
        style["fillOpacity"] = 1.0
        color = symbol["color"]
        if not isinstance(color, str) and len(color) == 4:
            alpha = color[3]
            style["fillOpacity"] = alpha / 255.0 if alpha > 1 else alpha
            style["fillColor"] = color_to_css(list(color[:3]))
    if outline:
        style["color"] = color_to_css(outline.get("color", "black"))
        style["weight"] = outline.get("width", 1)
    if symbol_type == "simple-marker":
        style["radius"] = symbol.get("size", 12) / 2
    return style


class LeafletLayer(EngineLayer):
    """
    Engine layer drawn as a group of Leaflet generic layers.

    A feature layer draws one GeoJSON layer per feature; a graphics layer
    draws one Leaflet layer per graphic.
    """

    def __init__(
        self,
        engine: "LeafletMapEngine",
        layer_id: str,
        title: str,
        feature_set: Optional[IngestResult] = None,
        presentation: Optional[Dict[str, Any]] = None
    ):
        super().__init__(layer_id, title)
        self._engine = engine
        self.feature_set = feature_set
        self.presentation = presentation or {}
        self._graphics: List[Graphic] = []
        self._leaflet_layers: List[Layer] = []
        self._on_map = False
        self._ready = asyncio.Event()
        self._load_error: Optional[str] = None

    async def when_ready(self) -> None:
        await self._ready.wait()
        if self._load_error:
            raise LayerLoadError(f"Layer {self.layer_id} failed to load: {self._load_error}")

    def full_extent(self) -> Optional[Extent]:
        if self._destroyed or not self._on_map:
            return None
        if self.feature_set is not None:
            return self.feature_set.full_extent
        extent = None
        for graphic in self._graphics:
            graphic_extent = graphic.extent()
            if graphic_extent is not None:
                extent = graphic_extent if extent is None else extent.union(graphic_extent)
        return extent

    @property
    def graphics(self) -> List[Graphic]:
        return list(self._graphics)

    def _draw(self, bring_to_back: bool) -> None:
        """Create the Leaflet layers for everything this layer holds."""
        try:
            if self.feature_set is not None:
                self._draw_features()
            for graphic in self._graphics:
                self._draw_graphic(graphic)
            if bring_to_back:
                for leaflet_layer in self._leaflet_layers:
                    leaflet_layer.run_method("bringToBack")
        except Exception as e:
            logger.error(f"Failed to draw layer {self.layer_id}: {e}", exc_info=True)
            self._load_error = str(e)
        self._on_map = True
        self._ready.set()

    def _draw_features(self) -> None:
        leaflet_map = self._engine.leaflet
        symbol = (self.presentation.get("renderer") or {}).get("symbol", {})
        style = style_from_symbol(symbol)
        popup_template = self.presentation.get("popup_template")
        labeling_info = self.presentation.get("labeling_info") or []

        for feature in self.feature_set.features:
            leaflet_layer = leaflet_map.generic_layer(
                name="geoJSON", args=[feature_to_geojson(feature), {"style": style}]
            )
            popup = popup_to_html(popup_template, feature.attributes)
            if popup:
                leaflet_layer.run_method("bindPopup", popup)
            for label_class in labeling_info:
                expression = label_class.get("labelExpressionInfo", {}).get("expression", "")
                field = expression.replace("$feature.", "")
                text = feature.attributes.get(field)
                if text is not None:
                    leaflet_layer.run_method("bindTooltip", str(text), {
                        "permanent": True,
                        "direction": "center",
                        "className": "boundary-label",
                    })
            self._leaflet_layers.append(leaflet_layer)

    def _draw_graphic(self, graphic: Graphic) -> None:
        leaflet_map = self._engine.leaflet
        style = style_from_symbol(graphic.symbol)
        if graphic.geometry_type == "point":
            lng, lat = graphic.coordinates[0], graphic.coordinates[1]
            leaflet_layer = leaflet_map.generic_layer(
                name="circleMarker", args=[[lat, lng], {**style, "fillOpacity": 1.0}]
            )
        else:
            leaflet_layer = leaflet_map.generic_layer(
                name="geoJSON", args=[graphic_to_geojson(graphic), {"style": style}]
            )

        popup = popup_to_html(graphic.popup_template, graphic.attributes)
        if popup:
            leaflet_layer.run_method("bindPopup", popup)
        self._leaflet_layers.append(leaflet_layer)

    def add_graphics(self, graphics: List[Graphic]) -> None:
        if self._destroyed:
            return
        self._graphics.extend(graphics)
        if self._on_map:
            for graphic in graphics:
                self._draw_graphic(graphic)

    def _erase(self) -> None:
        leaflet_map = self._engine.leaflet
        for leaflet_layer in self._leaflet_layers:
            leaflet_map.remove_layer(leaflet_layer)
        self._leaflet_layers.clear()

    def remove_all(self) -> None:
        self._graphics.clear()
        if self.feature_set is None:
            self._erase()

    def _remove_from_map(self) -> None:
        self._erase()
        self._on_map = False

    def destroy(self) -> None:
        if self._destroyed:
            return
        self._destroyed = True
        if self._on_map:
            self._erase()
        self._graphics.clear()
        if not self._ready.is_set():
            self._load_error = "destroyed"
            self._ready.set()


class LeafletMapEngine(MapEngine):
    """
    Map Engine driving a NiceGUI Leaflet element.

    Must be created inside a NiceGUI page context.
    """

    def __init__(
        self,
        center: tuple,
        zoom: int,
        basemap: str = "osm",
        default_duration_ms: int = 1000
    ):
        """
        Create the Leaflet element.

        Args:
            center: Initial (lng, lat)
            zoom: Initial zoom
            basemap: Key into BASEMAPS
            default_duration_ms: Duration for moves that do not set one
        """
        super().__init__()
        lng, lat = center
        self.leaflet = ui.leaflet(center=(lat, lng), zoom=zoom)
        self.default_duration_ms = default_duration_ms
        self._layers: List[LeafletLayer] = []
        self._pending_moves: List[asyncio.Future] = []
        self._destroyed = False

        self._apply_basemap(basemap)
        self.leaflet.on("map-moveend", self._on_move_end)

    def _apply_basemap(self, basemap: str) -> None:
        if basemap == "osm":
            return
        tiles = BASEMAPS.get(basemap)
        if tiles is None:
            logger.warning(f"Unknown basemap '{basemap}', using osm")
            return
        self.leaflet.clear_layers()
        self.leaflet.tile_layer(url_template=tiles["url_template"], options=tiles["options"])

    async def when_ready(self) -> None:
        await self.leaflet.initialized()

    # Layers

    def create_feature_layer(
        self,
        layer_id: str,
        title: str,
        feature_set: IngestResult,
        renderer: Optional[Dict[str, Any]] = None,
        popup_template: Optional[Dict[str, Any]] = None,
        labeling_info: Optional[List[Dict[str, Any]]] = None
    ) -> LeafletLayer:
        return LeafletLayer(
            self,
            layer_id,
            title,
            feature_set=feature_set,
            presentation={
                "renderer": renderer,
                "popup_template": popup_template,
                "labeling_info": labeling_info,
            },
        )

    def create_graphics_layer(self, layer_id: str, title: str) -> LeafletLayer:
        return LeafletLayer(self, layer_id, title)

    def add_layer(self, layer: EngineLayer, index: Optional[int] = None) -> None:
        if self._destroyed or layer in self._layers:
            return
        if index is None:
            self._layers.append(layer)
        else:
            self._layers.insert(max(0, index), layer)
        layer._draw(bring_to_back=index == 0)

    def remove_layer(self, layer: EngineLayer) -> None:
        if layer in self._layers:
            self._layers.remove(layer)
            layer._remove_from_map()

    @property
    def layers(self) -> List[LeafletLayer]:
        return list(self._layers)

    # Camera

    def go_to(self, target: CameraTarget) -> asyncio.Future:
        loop = asyncio.get_running_loop()
        future = loop.create_future()
        if self._destroyed:
            future.set_exception(CameraMoveError("map destroyed"))
            return future

        for superseded in self._pending_moves:
            if not superseded.done():
                superseded.set_exception(CameraMoveInterrupted("superseded by a newer move"))
        self._pending_moves = [future]

        duration_ms = target.duration_ms if target.duration_ms is not None else self.default_duration_ms
        options = {"duration": duration_ms / 1000.0}
        destination = target.target

        try:
            if isinstance(destination, Extent):
                self.leaflet.run_map_method("flyToBounds", extent_to_bounds(destination), options)
            elif target.zoom is None and target.scale is None and target.rotation is not None:
                # Leaflet maps cannot rotate
                logger.debug("Ignoring rotation-only camera move")
                self._pending_moves.remove(future)
                future.set_result(None)
            else:
                zoom = target.zoom
                if zoom is None and target.scale is not None:
                    zoom = zoom_for_scale(target.scale)
                if zoom is None:
                    zoom = self.leaflet.zoom
                self.leaflet.run_map_method("flyTo", [destination.lat, destination.lng], zoom, options)
        except Exception as e:
            self._pending_moves = []
            if not future.done():
                future.set_exception(CameraMoveError(str(e)))
        return future

    def _on_move_end(self, _event: Any) -> None:
        pending, self._pending_moves = self._pending_moves, []
        for future in pending:
            if not future.done():
                future.set_result(None)

    async def current_position(self) -> GeoPoint:
        try:
            result = await self.leaflet.client.run_javascript(GEOLOCATION_JS, timeout=15.0)
        except TimeoutError as e:
            raise LocationUnavailableError("timed out waiting for the browser") from e
        if not isinstance(result, dict) or result.get("error"):
            reason = result.get("error") if isinstance(result, dict) else "no response"
            raise LocationUnavailableError(reason)
        return GeoPoint(lng=result["lng"], lat=result["lat"], heading=result.get("heading"))

    # Lifecycle

    def destroy(self) -> None:
        if self._destroyed:
            return
        self._destroyed = True
        for layer in list(self._layers):
            layer.destroy()
        self._layers.clear()
        for future in self._pending_moves:
            if not future.done():
                future.set_exception(CameraMoveInterrupted("map destroyed"))
        self._pending_moves = []
        self.clear_handlers()
        logger.info("Leaflet map engine destroyed")
