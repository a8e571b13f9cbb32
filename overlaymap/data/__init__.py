"""
Data module - Schemas and bundled sample documents for OverlayMap.
"""
