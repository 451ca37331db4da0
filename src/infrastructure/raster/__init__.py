"""Infrastructure adapters for the DEM bounded context.

This module provides the infrastructure layer implementations for raster
decoding, including the process-wide GDAL environment.
"""

from .env import initialize_raster_env, raster_env
from .rasterio_adapter import RasterioDemSource

__all__ = ["RasterioDemSource", "initialize_raster_env", "raster_env"]
