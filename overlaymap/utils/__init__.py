"""
Utilities module - Logging and conversion helpers for OverlayMap.
"""
