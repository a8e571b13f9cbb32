"""
Camera module - Shared-camera coordination for OverlayMap.

This module contains:
- arbiter: CameraLock and CameraLease
- sequencer: ReadinessSequencer, the one-time fit after a layer loads
"""

from overlaymap.camera.arbiter import CameraLock, CameraLease, wait_for_move
from overlaymap.camera.sequencer import (
    ReadinessSequencer,
    FitState,
    FitOutcome,
)

__all__ = [
    "CameraLock",
    "CameraLease",
    "wait_for_move",
    "ReadinessSequencer",
    "FitState",
    "FitOutcome",
]
