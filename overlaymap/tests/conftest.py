"""Shared fixtures and configuration for OverlayMap tests."""

from typing import Any, Dict, Generator

import pytest

from overlaymap.config import DEFAULT_BOUNDARY_PATH, CameraConfig
from overlaymap.engine.memory import InMemoryMapEngine
from overlaymap.host import MapHost

from test_config import TestDataFactory

BANJARBARU = [114.831928, -3.440115]


@pytest.fixture
def factory() -> type:
    """The test data factory."""
    return TestDataFactory


@pytest.fixture
def camera_config() -> CameraConfig:
    """Fast camera timings."""
    return TestDataFactory.create_camera_config()


@pytest.fixture
def sample_path():
    """Path to the bundled boundary sample."""
    return DEFAULT_BOUNDARY_PATH


@pytest.fixture
def scenario_a_document() -> Dict[str, Any]:
    return TestDataFactory.create_scenario_a_document()


@pytest.fixture
def engine() -> Generator[InMemoryMapEngine, None, None]:
    """In-memory engine centered on Banjarbaru."""
    engine = InMemoryMapEngine(center=BANJARBARU, zoom=15)
    yield engine
    engine.destroy()


@pytest.fixture
def host(engine: InMemoryMapEngine, camera_config: CameraConfig) -> Generator[MapHost, None, None]:
    """Map Host over the in-memory engine; torn down after the test."""
    host = MapHost(engine, camera_config=camera_config)
    yield host
    host.teardown()
