"""
NiceGUI App - Browser front end for OverlayMap.

Every page visit builds its own Leaflet-backed engine and MapScene, so each
browser tab owns an independent map host that is torn down when the tab
disconnects.
"""

from typing import Any, List, Optional

from nicegui import ui
from nicegui.events import GenericEventArguments

from overlaymap.config import get_config
from overlaymap.data.schemas.models import Graphic
from overlaymap.engine.interface import EVENT_LOCATE, EVENT_LOCATE_REQUEST, EVENT_SKETCH_CREATED
from overlaymap.forge.leaflet_engine import LeafletMapEngine
from overlaymap.overlays.measurement import WGS84, measure_all
from overlaymap.overlays.sketch import SKETCH_TOOLS
from overlaymap.scene import MapScene
from overlaymap.utils.logger import get_logger

logger = get_logger(__name__)

# Clicks that complete a shape; None means "until Finish is pressed"
CLICKS_PER_TOOL = {
    "point": 1,
    "rectangle": 2,
    "circle": 2,
    "polyline": None,
    "polygon": None,
}


class SketchController:
    """
    Turns map clicks into sketch-created events.

    Rectangles take two opposite corners; circles take the center and a
    point on the rim.
    """

    def __init__(self, engine: LeafletMapEngine):
        self.engine = engine
        self.tool: Optional[str] = None
        self.points: List[List[float]] = []

    def select(self, tool: Optional[str]) -> None:
        self.tool = tool
        self.points = []

    def handle_click(self, lng: float, lat: float) -> None:
        if self.tool is None:
            return
        self.points.append([lng, lat])
        needed = CLICKS_PER_TOOL[self.tool]
        if needed is not None and len(self.points) >= needed:
            self.finish()

    def finish(self) -> None:
        """Emit the shape drawn so far, if it is complete."""
        tool, points = self.tool, self.points
        self.points = []
        if tool is None or not points:
            return

        if tool == "point":
            payload = {"tool": tool, "coordinates": points[0]}
        elif tool == "rectangle":
            payload = {"tool": tool, "coordinates": points[:2]}
        elif tool == "circle":
            (lng1, lat1), (lng2, lat2) = points[:2]
            _, _, radius = WGS84.inv(lng1, lat1, lng2, lat2)
            payload = {"tool": tool, "coordinates": points[0], "radius_m": radius}
        elif tool == "polyline" and len(points) >= 2:
            payload = {"tool": tool, "coordinates": points}
        elif tool == "polygon" and len(points) >= 3:
            payload = {"tool": tool, "coordinates": points}
        else:
            ui.notify(f'Not enough points for a {tool}', type='warning')
            return
        self.engine.emit(EVENT_SKETCH_CREATED, payload)


class MapPage:
    """
    One browser tab's map.

    Holds the Leaflet engine, the scene and the side-panel widgets.
    """

    def __init__(self):
        self.config = get_config()
        self.engine: Optional[LeafletMapEngine] = None
        self.scene: Optional[MapScene] = None
        self.sketcher: Optional[SketchController] = None

        self.status_label = None
        self.measure_container = None

    def build(self) -> None:
        """Build the page layout and the map."""
        if self.config.ui.dark_mode:
            ui.dark_mode().enable()

        ui.add_css('''
            .boundary-label {
                background: transparent;
                border: none;
                box-shadow: none;
                font-weight: bold;
                font-size: 10pt;
                text-shadow: -1px -1px 0 #fff, 1px -1px 0 #fff, -1px 1px 0 #fff, 1px 1px 0 #fff;
            }
        ''')

        with ui.header().classes('items-center justify-between'):
            ui.label(self.config.ui.title).classes('text-2xl font-bold')
            self.status_label = ui.label('Loading map...').classes('text-sm')

        with ui.row().classes('w-full no-wrap gap-4 p-4'):
            with ui.column().classes('w-3/4'):
                self.engine = LeafletMapEngine(
                    center=self.config.map.center,
                    zoom=self.config.map.zoom,
                    basemap=self.config.map.basemap,
                    default_duration_ms=self.config.camera.fit_duration_ms,
                )
                self.engine.leaflet.classes('w-full').style('height: 80vh')

            with ui.column().classes('w-1/4 gap-4'):
                self._build_controls()

        self.sketcher = SketchController(self.engine)
        self.engine.leaflet.on('map-click', self._on_map_click)
        self.engine.on(EVENT_LOCATE, self._on_located)
        self.scene = MapScene(self.engine, config=self.config)
        self.scene.sketch.on_change(self._refresh_measurements)

    def _build_controls(self) -> None:
        with ui.card().classes('w-full'):
            ui.label('Location').classes('text-lg font-bold')
            ui.button('Locate me', on_click=self._on_locate)

        with ui.card().classes('w-full'):
            ui.label('Sketch').classes('text-lg font-bold')
            ui.select(
                ['none', *SKETCH_TOOLS],
                value='none',
                on_change=lambda e: self.sketcher.select(None if e.value == 'none' else e.value),
            ).classes('w-full')
            with ui.row().classes('gap-2'):
                ui.button('Finish', on_click=self._on_finish)
                ui.button('Clear', on_click=self._on_clear).props('color=negative')

        with ui.card().classes('w-full'):
            ui.label('Measurements').classes('text-lg font-bold')
            self.measure_container = ui.column().classes('w-full gap-1')

    # Event handlers

    def _on_map_click(self, e: GenericEventArguments) -> None:
        latlng = e.args.get('latlng') or {}
        if 'lat' in latlng and 'lng' in latlng:
            self.sketcher.handle_click(latlng['lng'], latlng['lat'])

    def _on_locate(self) -> None:
        self.engine.emit(EVENT_LOCATE_REQUEST)

    def _on_located(self, position: Any) -> None:
        self.status_label.set_text(f'Located at {position.lat:.5f}, {position.lng:.5f}')

    def _on_finish(self) -> None:
        self.sketcher.finish()

    def _on_clear(self) -> None:
        self.scene.sketch.clear()

    def _refresh_measurements(self, graphics: List[Graphic]) -> None:
        self.measure_container.clear()
        with self.measure_container:
            for index, measurement in enumerate(measure_all(graphics)["measurements"], start=1):
                ui.label(f'#{index} {measurement.describe()}').classes('text-sm')

    async def start(self) -> None:
        """Mount the overlays once the browser has rendered the map."""
        try:
            await self.scene.start()
            summary = self.scene.summary()
            self.status_label.set_text(f"{summary['boundary_features']} boundary features")
        except Exception as e:
            logger.error(f"Map start failed: {e}", exc_info=True)
            self.status_label.set_text(f'Error: {e}')

    def stop(self) -> None:
        if self.scene:
            self.scene.stop()


def create_app() -> None:
    """Register the map page."""

    @ui.page('/')
    async def main_page():
        page = MapPage()
        page.build()
        client = ui.context.client
        client.on_disconnect(page.stop)
        await client.connected()
        await page.start()


def run_app(
    host: Optional[str] = None,
    port: Optional[int] = None,
    reload: bool = False
) -> None:
    """
    Run the NiceGUI application.

    Args:
        host: Host to bind to
        port: Port to bind to
        reload: Enable auto-reload for development
    """
    config = get_config()

    host = host or config.ui.host
    port = port or config.ui.port
    reload = reload or config.ui.reload

    logger.info(f"Starting OverlayMap UI at http://{host}:{port}")

    ui.run(
        host=host,
        port=port,
        title=config.ui.title,
        reload=reload,
        dark=config.ui.dark_mode
    )
