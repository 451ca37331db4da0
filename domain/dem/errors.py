"""DEM Bounded Context - Error Hierarchy.

Custom exceptions raised while decoding DEM rasters.

These never escape ``Dem.load``: the application boundary converts them into
a non-zero status code. Queries on a loaded DEM are sentinel based and raise
nothing.
"""

from __future__ import annotations


class DemError(Exception):
    """Base error for DEM operations."""


class InvalidRasterError(DemError):
    """File is not a valid raster, is empty, or is corrupted."""


class UnsupportedRasterError(InvalidRasterError):
    """File is a valid raster but cannot be used as a DEM.

    Attributes:
        band_count: Number of bands found in the file
    """

    def __init__(self, band_count: int) -> None:
        self.band_count = band_count
        super().__init__(
            f"Unsupported number of bands: found {band_count}, only 1 is valid"
        )


class InvalidGeotransformError(DemError):
    """Raster has an invalid geotransform (NaN/Inf values or zero scale)."""


class InsufficientMemoryError(DemError):
    """Operation requires more memory than the configured budget."""
