"""
Errors - Exception hierarchy for OverlayMap.

Only DocumentLoadError is meant to reach callers. The remaining types are
raised by Map Engine adapters and absorbed by the components that compete
for the camera.
"""


class OverlayMapError(Exception):
    """Base class for all OverlayMap errors."""


class DocumentLoadError(OverlayMapError):
    """A feature document could not be read or decoded."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"Cannot load feature document {path}: {reason}")
        self.path = path
        self.reason = reason


class LayerLoadError(OverlayMapError):
    """An engine layer failed to load its backing data."""


class CameraMoveError(OverlayMapError):
    """The engine rejected a camera move."""


class CameraMoveInterrupted(CameraMoveError):
    """A camera move was superseded by a newer move before it finished."""


class LocationUnavailableError(OverlayMapError):
    """The device position could not be determined."""
