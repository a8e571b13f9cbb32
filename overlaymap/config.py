"""
Configuration module for OverlayMap.

Centralizes configuration management and environment variable handling.
Camera timings are kept in milliseconds; components convert to seconds
at the point where they sleep or schedule.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

DEFAULT_BOUNDARY_PATH = Path(__file__).parent / "data" / "samples" / "batas_kota.json"


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


@dataclass
class MapConfig:
    """Initial camera and basemap for the Map Host."""
    basemap: str = field(default_factory=lambda: os.getenv("MAP_BASEMAP", "osm"))
    center_lng: float = field(
        default_factory=lambda: float(os.getenv("MAP_CENTER_LNG", "114.831928"))
    )
    center_lat: float = field(
        default_factory=lambda: float(os.getenv("MAP_CENTER_LAT", "-3.440115"))
    )
    zoom: int = field(default_factory=lambda: int(os.getenv("MAP_ZOOM", "15")))

    @property
    def center(self) -> tuple:
        """Center as (lng, lat)."""
        return (self.center_lng, self.center_lat)


@dataclass
class CameraConfig:
    """Timings used by everything that competes for the camera."""
    fit_delay_ms: int = field(
        default_factory=lambda: int(os.getenv("CAMERA_FIT_DELAY_MS", "50"))
    )
    fit_settle_ms: int = field(
        default_factory=lambda: int(os.getenv("CAMERA_FIT_SETTLE_MS", "400"))
    )
    fit_duration_ms: int = field(
        default_factory=lambda: int(os.getenv("CAMERA_FIT_DURATION_MS", "1000"))
    )
    locate_duration_ms: int = field(
        default_factory=lambda: int(os.getenv("CAMERA_LOCATE_DURATION_MS", "800"))
    )
    locate_release_ms: int = field(
        default_factory=lambda: int(os.getenv("CAMERA_LOCATE_RELEASE_MS", "2000"))
    )
    locate_zoom: int = field(
        default_factory=lambda: int(os.getenv("CAMERA_LOCATE_ZOOM", "11"))
    )
    # Upper bound on waiting for an engine completion signal
    max_move_wait_ms: int = field(
        default_factory=lambda: int(os.getenv("CAMERA_MAX_MOVE_WAIT_MS", "5000"))
    )


@dataclass
class DataConfig:
    """Boundary document location and presentation."""
    boundary_path: str = field(
        default_factory=lambda: os.getenv("BOUNDARY_DATA_PATH", str(DEFAULT_BOUNDARY_PATH))
    )
    boundary_title: str = field(
        default_factory=lambda: os.getenv("BOUNDARY_TITLE", "Batas Kota")
    )
    label_field: str = field(
        default_factory=lambda: os.getenv("BOUNDARY_LABEL_FIELD", "namobj")
    )


@dataclass
class UIConfig:
    """NiceGUI configuration."""
    host: str = field(default_factory=lambda: os.getenv("HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: int(os.getenv("PORT", "8080")))
    title: str = field(default_factory=lambda: os.getenv("UI_TITLE", "OverlayMap"))
    dark_mode: bool = field(default_factory=lambda: _env_bool("UI_DARK_MODE", "false"))
    reload: bool = field(default_factory=lambda: _env_bool("UI_RELOAD", "false"))


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())


@dataclass
class OverlayMapConfig:
    """Main configuration class for OverlayMap."""
    map: MapConfig = field(default_factory=MapConfig)
    camera: CameraConfig = field(default_factory=CameraConfig)
    data: DataConfig = field(default_factory=DataConfig)
    ui: UIConfig = field(default_factory=UIConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


# Global configuration instance
config = OverlayMapConfig()


def get_config() -> OverlayMapConfig:
    """Get the global configuration instance."""
    return config


def reload_config() -> OverlayMapConfig:
    """Reload configuration from environment variables."""
    global config
    load_dotenv(override=True)
    config = OverlayMapConfig()
    return config
