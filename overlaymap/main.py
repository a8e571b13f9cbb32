"""
OverlayMap - Main Entry Point

Serves the NiceGUI map page, or mounts the full scene on the in-memory
engine and logs what happened.

Usage:
    python -m overlaymap.main [--host HOST] [--port PORT] [--data PATH] [--no-ui]
"""

import argparse
import asyncio
import json

from overlaymap.config import get_config
from overlaymap.utils.logger import get_logger

logger = get_logger("overlaymap.main")


def run_ui(host: str, port: int) -> None:
    """
    Run the NiceGUI-based user interface.

    Args:
        host: Host to bind to
        port: Port to bind to
    """
    from overlaymap.forge.ui import create_app, run_app

    create_app()
    run_app(host=host, port=port)


async def run_headless(animation_scale: float = 0.0) -> dict:
    """
    Mount every overlay on the in-memory engine and wait for the camera to
    settle.

    Args:
        animation_scale: Multiplier for simulated move durations

    Returns:
        Scene summary
    """
    from overlaymap.engine.memory import InMemoryMapEngine
    from overlaymap.scene import MapScene

    config = get_config()
    engine = InMemoryMapEngine(
        center=list(config.map.center),
        zoom=config.map.zoom,
        animation_scale=animation_scale,
        default_duration_ms=config.camera.fit_duration_ms,
    )
    scene = MapScene(engine, config=config)

    logger.info("Running scene in headless mode...")
    await scene.start()
    await scene.settle()

    summary = scene.summary()
    summary["camera_center"] = engine.camera["center"]
    summary["camera_zoom"] = engine.camera["zoom"]
    logger.info(f"Scene summary: {json.dumps(summary, default=str)}")

    scene.stop()
    logger.info("Headless run complete!")
    return summary


def main():
    """Main entry point."""
    config = get_config()

    parser = argparse.ArgumentParser(
        description="OverlayMap - Boundary, marker, sketch and locate overlays on a shared map"
    )
    parser.add_argument(
        "--host",
        default=config.ui.host,
        help="Host to bind the UI server"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=config.ui.port,
        help="Port to bind the UI server"
    )
    parser.add_argument(
        "--data",
        default=None,
        help="Path to the boundary EsriJSON document"
    )
    parser.add_argument(
        "--no-ui",
        action="store_true",
        help="Run in headless mode (no UI)"
    )
    parser.add_argument(
        "--animation-scale",
        type=float,
        default=0.0,
        help="Scale of simulated camera animations in headless mode"
    )

    args = parser.parse_args()

    if args.data:
        config.data.boundary_path = args.data

    if args.no_ui:
        asyncio.run(run_headless(args.animation_scale))
    else:
        run_ui(args.host, args.port)


if __name__ in {"__main__", "__mp_main__"}:
    main()
