"""Heightmap Domain Layer.

This package contains the core logic organized by bounded contexts:
- dem: Elevation rasters, statistics, georeferencing, heightmap resampling
"""

from domain import dem

__all__ = ["dem"]
