"""Domain Port(s) for DEM raster I/O.

Defines interfaces (Protocols) that infrastructure adapters must implement.
No concrete I/O here.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from .value_objects import RawRaster


class RasterSource(Protocol):
    """Port for decoding single-band elevation rasters.

    Implementations live in infrastructure (e.g., the rasterio adapter) and
    raise errors from ``domain.dem.errors`` (or OSError) on failure.
    """

    def read_raster(self, file_path: Path | str) -> RawRaster:
        """Decode band 1 of a raster together with its georeferencing."""
        ...
