"""Rasterio adapter for the RasterSource port.

Decodes band 1 of any single-band raster GDAL can open (GeoTIFF, USGS DEM,
...) and returns a domain RawRaster. No reprojection happens here: the
native CRS travels as WKT and georeferencing is resolved by domain services.

Lifecycle (to avoid resource leaks):
1) Check the file exists and is not empty
2) Enter the shared GDAL environment (raster_env)
3) Open dataset with context manager (rasterio.open)
4) Validate band count, size and geotransform
5) Read band 1 as a masked float64 array
6) Exit contexts to release GDAL handles
7) Return RawRaster
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from pathlib import Path

import numpy as np
import rasterio
from affine import Affine
from rasterio.errors import RasterioError

from domain.dem.errors import (
    InsufficientMemoryError,
    InvalidGeotransformError,
    InvalidRasterError,
    UnsupportedRasterError,
)
from domain.dem.value_objects import RasterMetadata, RawRaster

from .env import initialize_raster_env, raster_env

# Module-level logger (reused across all calls)
logger = logging.getLogger(__name__)

# Bytes per cell of the resulting float32 elevation grid
_GRID_CELL_BYTES = 4


def _validate_transform(transform: Affine) -> None:
    if not isinstance(transform, Affine):
        raise InvalidGeotransformError("Missing affine transform")
    if any(
        math.isnan(v) or math.isinf(v)
        for v in (
            transform.a,
            transform.b,
            transform.c,
            transform.d,
            transform.e,
            transform.f,
        )
    ):
        raise InvalidGeotransformError("Invalid (NaN/Inf) transform values")
    if transform.a == 0 or transform.e == 0:
        raise InvalidGeotransformError("Invalid transform scale (zero)")


class RasterioDemSource:
    """Infrastructure adapter decoding DEM rasters with rasterio.

    Parameters
    ----------
    max_bytes: int | None
        Optional memory budget for the resulting float32 grid (height*width*4).
        Rasters exceeding it raise InsufficientMemoryError.
    env_options: Mapping[str, str] | None
        GDAL options for the process-wide raster environment. Initialization
        happens here, once per process.
    """

    def __init__(
        self,
        max_bytes: int | None = None,
        env_options: Mapping[str, str] | None = None,
    ) -> None:
        self.max_bytes = max_bytes
        initialize_raster_env(env_options)

    def _check_budget(self, width: int, height: int) -> None:
        if self.max_bytes is None:
            return
        est_bytes = width * height * _GRID_CELL_BYTES
        if est_bytes > self.max_bytes:
            raise InsufficientMemoryError(
                f"Estimated grid size {est_bytes}B exceeds budget {self.max_bytes}B"
            )

    def read_raster(self, file_path: Path | str) -> RawRaster:
        """Decode band 1 of ``file_path``.

        Raises:
            FileNotFoundError: If the file does not exist
            PermissionError: If the file cannot be read
            InvalidRasterError: Empty, corrupted or unrecognized file
            UnsupportedRasterError: Raster with a band count other than 1
            InvalidGeotransformError: NaN/Inf or zero-scale geotransform
            InsufficientMemoryError: Grid larger than ``max_bytes``
        """
        path = Path(file_path)

        if not path.exists():
            raise FileNotFoundError(str(path))

        try:
            st = path.stat()
        except OSError as e:
            # Log only filename, errno and strerror to avoid leaking absolute paths
            logger.error(
                "Failed to stat %s (errno=%s, strerror=%s)",
                path.name,
                getattr(e, "errno", "unknown"),
                getattr(e, "strerror", "unknown"),
            )
            raise

        if st.st_size == 0:
            raise InvalidRasterError("Empty file")
        # File size is typically larger than the final grid; 2x budget is
        # certainly too large
        if self.max_bytes is not None and st.st_size > self.max_bytes * 2:
            raise InsufficientMemoryError(
                f"File size {st.st_size}B exceeds 2x memory budget {self.max_bytes}B"
            )

        try:
            with raster_env():
                with rasterio.open(path) as src:
                    if src.count == 0:
                        raise InvalidRasterError("Empty or bandless file")
                    if src.count != 1:
                        raise UnsupportedRasterError(src.count)
                    if src.width == 0 or src.height == 0:
                        raise InvalidRasterError(
                            f"Illegal raster size ({src.width}, {src.height})"
                        )

                    transform: Affine = src.transform
                    _validate_transform(transform)
                    self._check_budget(src.width, src.height)

                    band = src.read(1, masked=True, out_dtype="float64")
                    samples = np.ma.getdata(band)
                    mask = np.ma.getmaskarray(band)

                    nodata_values = () if src.nodata is None else (float(src.nodata),)
                    metadata = RasterMetadata(
                        width=src.width,
                        height=src.height,
                        transform=transform,
                        crs_wkt=src.crs.to_wkt() if src.crs else None,
                        nodata_values=nodata_values,
                        driver=src.driver,
                        dtype=src.dtypes[0],
                    )
        except PermissionError as e:
            # Re-raise with filename only to avoid leaking full path in logs
            raise PermissionError(path.name) from e
        except RasterioError as e:
            raise InvalidRasterError(f"Corrupted or invalid raster: {e}") from e
        except MemoryError as e:
            raise InsufficientMemoryError("Insufficient memory to load raster") from e

        logger.debug(
            "DEM %s: decoded %dx%d %s raster (%s)",
            path.name,
            metadata.width,
            metadata.height,
            metadata.dtype,
            metadata.driver,
        )
        return RawRaster(metadata=metadata, samples=samples, mask=mask)
