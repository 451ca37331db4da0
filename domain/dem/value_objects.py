"""DEM Bounded Context - Value Objects.

Immutable data structures describing a decoded DEM raster.
All validation occurs at construction time via Pydantic.
"""

from __future__ import annotations

import math

import numpy as np
from affine import Affine
from numpy.typing import NDArray
from pydantic import BaseModel, ConfigDict, Field, model_validator

# ---------------------------------------------------------------------------
# Sentinels
# ---------------------------------------------------------------------------
# Single internal nodata marker stored in ElevationGrid.data
NODATA = float("nan")

# World extent reported when the spatial reference is not Earth based
UNAVAILABLE_EXTENT = -1.0


class RasterMetadata(BaseModel):
    """Georeferencing and layout metadata of a single-band raster (Value Object).

    The affine transform maps (column, row) raster positions to coordinates
    in the raster's own CRS; ``crs_wkt`` is None when the file carries no
    spatial reference.
    """

    width: int = Field(gt=0)
    height: int = Field(gt=0)
    transform: Affine
    crs_wkt: str | None = None
    nodata_values: tuple[float, ...] = ()
    driver: str = ""
    dtype: str = "float32"

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    @model_validator(mode="after")
    def validate_transform(self) -> "RasterMetadata":
        if not isinstance(self.transform, Affine):
            raise ValueError("transform must be an affine.Affine")
        return self

    @property
    def pixel_size(self) -> tuple[float, float]:
        """Absolute (x, y) cell size in CRS units."""
        return (abs(self.transform.a), abs(self.transform.e))

    @property
    def origin(self) -> tuple[float, float]:
        """CRS coordinate of the upper-left corner of cell (0, 0)."""
        return (self.transform.c, self.transform.f)


class RawRaster(BaseModel):
    """Band samples as decoded by a RasterSource, before nodata normalization."""

    metadata: RasterMetadata
    samples: NDArray[np.float64]  # 2D (height x width)
    mask: NDArray[np.bool_] | None = None  # True = source flags nodata

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    @model_validator(mode="after")
    def validate_shape(self) -> "RawRaster":
        expected = (self.metadata.height, self.metadata.width)
        if self.samples.shape != expected:
            raise ValueError(
                f"Samples shape {self.samples.shape} does not match {expected}"
            )
        if self.mask is not None and self.mask.shape != expected:
            raise ValueError(f"Mask shape {self.mask.shape} does not match {expected}")
        return self


class ElevationGrid(BaseModel):
    """Dense elevation store with NaN as the only nodata marker (Value Object).

    The data array is an owned, read-only float32 copy made at construction
    time, so callers can never mutate a loaded DEM.
    """

    data: NDArray[np.float32]  # 2D float32 array (height x width), read-only

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    @model_validator(mode="after")
    def validate_grid(self) -> "ElevationGrid":
        if self.data.ndim != 2:
            raise ValueError(f"Data must be 2D, got {self.data.ndim}D")
        if self.data.shape[0] == 0 or self.data.shape[1] == 0:
            raise ValueError(f"Data cannot be empty: {self.data.shape}")

        immutable = np.array(self.data, dtype=np.float32, copy=True, order="C")
        immutable.flags.writeable = False
        object.__setattr__(self, "data", immutable)
        return self

    @property
    def width(self) -> int:
        return int(self.data.shape[1])

    @property
    def height(self) -> int:
        return int(self.data.shape[0])

    @property
    def nodata_mask(self) -> NDArray[np.bool_]:
        """Boolean mask, True where the cell holds no measurement."""
        return np.isnan(self.data)


class ElevationStatistics(BaseModel):
    """Nodata-excluded elevation bounds (Value Object).

    Invariants:
        If has_data, min_elevation <= max_elevation.
        If not has_data, both bounds are 0.0.
    """

    min_elevation: float = 0.0
    max_elevation: float = 0.0
    valid_cells: int = Field(default=0, ge=0)
    nodata_cells: int = Field(default=0, ge=0)

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def validate_bounds(self) -> "ElevationStatistics":
        if self.has_data and self.min_elevation > self.max_elevation:
            raise ValueError(
                f"min_elevation {self.min_elevation} > max_elevation {self.max_elevation}"
            )
        if not self.has_data and (self.min_elevation != 0.0 or self.max_elevation != 0.0):
            raise ValueError("Statistics without valid cells must report 0.0 bounds")
        return self

    @property
    def has_data(self) -> bool:
        return self.valid_cells > 0

    @property
    def nodata_ratio(self) -> float:
        """Fraction of nodata cells (0.0 to 1.0)."""
        total = self.valid_cells + self.nodata_cells
        return self.nodata_cells / total if total else 0.0


class WorldExtent(BaseModel):
    """Ground distance covered by the raster, in meters (Value Object).

    Both sides equal UNAVAILABLE_EXTENT when the raster is not Earth
    referenced.
    """

    width_m: float = UNAVAILABLE_EXTENT
    height_m: float = UNAVAILABLE_EXTENT

    model_config = ConfigDict(frozen=True)

    @property
    def available(self) -> bool:
        return self.width_m != UNAVAILABLE_EXTENT and self.height_m != UNAVAILABLE_EXTENT


class GeoPoint(BaseModel):
    """WGS84 latitude/longitude in degrees, range checked on construction."""

    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)

    model_config = ConfigDict(frozen=True)


class Vector3(BaseModel):
    """Three component vector used for heightmap size and scale."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    model_config = ConfigDict(frozen=True)

    @classmethod
    def of(cls, value: "Vector3 | tuple[float, float, float]") -> "Vector3":
        """Accept a Vector3 or any (x, y, z) sequence."""
        if isinstance(value, Vector3):
            return value
        x, y, z = value
        return cls(x=float(x), y=float(y), z=float(z))

    def is_finite(self) -> bool:
        return all(math.isfinite(v) for v in (self.x, self.y, self.z))
