"""Unit tests for environment-driven configuration."""

import logging
from pathlib import Path

from overlaymap.config import (
    CameraConfig,
    DEFAULT_BOUNDARY_PATH,
    LoggingConfig,
    OverlayMapConfig,
    get_config,
    reload_config,
)
from overlaymap.utils.logger import get_logger


class TestDefaults:
    """Defaults when the environment is silent."""

    def test_camera_defaults(self, monkeypatch):
        for name in ("CAMERA_FIT_DELAY_MS", "CAMERA_FIT_SETTLE_MS", "CAMERA_LOCATE_ZOOM"):
            monkeypatch.delenv(name, raising=False)
        camera = CameraConfig()
        assert camera.fit_delay_ms == 50
        assert camera.fit_settle_ms == 400
        assert camera.locate_zoom == 11

    def test_map_center_is_lng_lat(self, monkeypatch):
        monkeypatch.delenv("MAP_CENTER_LNG", raising=False)
        monkeypatch.delenv("MAP_CENTER_LAT", raising=False)
        config = OverlayMapConfig()
        assert config.map.center == (114.831928, -3.440115)

    def test_bundled_sample_exists(self):
        assert Path(DEFAULT_BOUNDARY_PATH).is_file()


class TestEnvironment:
    """Overrides through environment variables."""

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("CAMERA_FIT_SETTLE_MS", "250")
        monkeypatch.setenv("BOUNDARY_TITLE", "Batas Kecamatan")
        monkeypatch.setenv("UI_DARK_MODE", "True")
        config = OverlayMapConfig()
        assert config.camera.fit_settle_ms == 250
        assert config.data.boundary_title == "Batas Kecamatan"
        assert config.ui.dark_mode is True

    def test_reload_config_replaces_global(self, monkeypatch):
        monkeypatch.setenv("MAP_ZOOM", "9")
        original = get_config()
        try:
            reloaded = reload_config()
            assert reloaded is get_config()
            assert reloaded.map.zoom == 9
        finally:
            monkeypatch.delenv("MAP_ZOOM")
            reload_config()
        assert get_config() is not original


class TestLogLevel:
    """Logger level comes from the logging config section."""

    def test_level_from_config(self, mocker):
        config = OverlayMapConfig(logging=LoggingConfig(level="DEBUG"))
        mocker.patch("overlaymap.utils.logger.get_config", return_value=config)
        logger = get_logger("overlaymap.tests.level-from-config")
        assert logger.level == logging.DEBUG

    def test_unknown_level_falls_back_to_info(self, mocker):
        config = OverlayMapConfig(logging=LoggingConfig(level="LOUD"))
        mocker.patch("overlaymap.utils.logger.get_config", return_value=config)
        logger = get_logger("overlaymap.tests.unknown-level")
        assert logger.level == logging.INFO
