"""DEM Bounded Context - Domain Services.

Pure domain logic over decoded rasters.
NO I/O operations - file decoding is implemented by infrastructure adapters
under `src/infrastructure/raster/rasterio_adapter.py` via domain ports.
"""

from __future__ import annotations

import math
from collections.abc import Iterable

import numpy as np
from pyproj import CRS, Geod, Transformer
from pyproj.exceptions import CRSError, ProjError

from domain.dem.value_objects import (
    UNAVAILABLE_EXTENT,
    ElevationGrid,
    ElevationStatistics,
    GeoPoint,
    RasterMetadata,
    RawRaster,
    WorldExtent,
)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
# Void markers used by SRTM (-32768) and USGS DEM (-32767) products, which are
# frequently present in files that do not declare them as nodata.
DEFAULT_VOID_VALUES: tuple[float, ...] = (-32768.0, -32767.0)

WGS84_SEMI_MAJOR_M = 6378137.0
# Every terrestrial ellipsoid in use lies within a few km of WGS84
EARTH_AXIS_TOLERANCE_M = 10_000.0

# WGS84 ellipsoid for geodesic calculations (same as GPS, EPSG:4326)
_geod = Geod(ellps="WGS84")
_WGS84 = CRS.from_epsg(4326)


# ---------------------------------------------------------------------------
# ElevationStore: nodata normalization
# ---------------------------------------------------------------------------
def build_elevation_grid(
    raw: RawRaster, void_values: Iterable[float] = DEFAULT_VOID_VALUES
) -> ElevationGrid:
    """Build the elevation store, folding every nodata source into NaN.

    Cells are nodata when any of the following holds:
        - the source mask flags them
        - they equal one of the declared nodata values (exact comparison)
        - they equal one of the extra void values
        - they are not finite

    Args:
        raw: Samples and metadata as decoded by a RasterSource
        void_values: Extra markers treated as nodata even if undeclared

    Returns:
        ElevationGrid holding NaN in every nodata cell
    """
    samples = np.asarray(raw.samples, dtype=np.float64)

    nodata = ~np.isfinite(samples)
    if raw.mask is not None:
        nodata |= raw.mask

    # dict.fromkeys keeps declaration order while dropping duplicates
    markers = dict.fromkeys((*raw.metadata.nodata_values, *void_values))
    for marker in markers:
        if marker is None or math.isnan(marker):
            continue
        nodata |= samples == marker

    data = np.where(nodata, np.nan, samples).astype(np.float32)
    return ElevationGrid(data=data)


# ---------------------------------------------------------------------------
# StatisticsEngine
# ---------------------------------------------------------------------------
def compute_statistics(grid: ElevationGrid) -> ElevationStatistics:
    """Compute min/max elevation over valid cells only.

    An all-nodata grid is valid input: both bounds fall back to 0.0 and
    ``has_data`` is False.
    """
    mask = grid.nodata_mask
    valid = grid.data[~mask]
    nodata_cells = int(mask.sum())

    if valid.size == 0:
        return ElevationStatistics(valid_cells=0, nodata_cells=nodata_cells)

    return ElevationStatistics(
        min_elevation=float(valid.min()),
        max_elevation=float(valid.max()),
        valid_cells=int(valid.size),
        nodata_cells=nodata_cells,
    )


# ---------------------------------------------------------------------------
# GeoReferenceResolver
# ---------------------------------------------------------------------------
def _parse_crs(crs_wkt: str | None) -> CRS | None:
    if not crs_wkt:
        return None
    try:
        return CRS.from_wkt(crs_wkt)
    except CRSError:
        return None


def is_earth_crs(crs_wkt: str | None) -> bool:
    """Check if a CRS is defined on an Earth ellipsoid.

    Planetary CRSs (Moon, Mars, ...) and rasters without a usable CRS are
    reported as non-Earth.

    Args:
        crs_wkt: WKT of the raster CRS, or None

    Returns:
        True if the ellipsoid semi-major axis matches the Earth's.
    """
    crs = _parse_crs(crs_wkt)
    if crs is None or crs.ellipsoid is None:
        return False
    return abs(crs.ellipsoid.semi_major_metre - WGS84_SEMI_MAJOR_M) <= EARTH_AXIS_TOLERANCE_M


def resolve_geo_reference(
    metadata: RasterMetadata, x: float, y: float
) -> GeoPoint | None:
    """Convert a raster position into WGS84 latitude/longitude.

    The position is given in (column, row) raster units; (0, 0) is the
    upper-left corner of the first cell.

    Returns:
        GeoPoint with longitude wrapped into [-180, 180), or None when the
        CRS is not Earth based or the latitude falls outside [-90, 90].
    """
    if not is_earth_crs(metadata.crs_wkt):
        return None

    src_crs = _parse_crs(metadata.crs_wkt)
    crs_x, crs_y = metadata.transform * (x, y)

    try:
        transformer = Transformer.from_crs(src_crs, _WGS84, always_xy=True)
        lon, lat = transformer.transform(crs_x, crs_y)
    except (CRSError, ProjError):
        return None

    if not (math.isfinite(lat) and math.isfinite(lon)):
        return None
    if not -90 <= lat <= 90:
        return None
    # 0..360 and antimeridian-crossing rasters are still Earth referenced
    lon = (lon + 180.0) % 360.0 - 180.0
    return GeoPoint(latitude=float(lat), longitude=float(lon))


def world_extent(metadata: RasterMetadata) -> WorldExtent:
    """Measure the ground size of the raster along its top and left edges.

    Width is the geodesic distance from the upper-left to the upper-right
    corner, height from the upper-left to the lower-left corner, both on the
    WGS84 ellipsoid.

    Returns:
        WorldExtent in meters, or the unavailable (-1, -1) extent for
        non-Earth rasters.
    """
    upper_left = resolve_geo_reference(metadata, 0, 0)
    upper_right = resolve_geo_reference(metadata, metadata.width, 0)
    lower_left = resolve_geo_reference(metadata, 0, metadata.height)

    if upper_left is None or upper_right is None or lower_left is None:
        return WorldExtent(width_m=UNAVAILABLE_EXTENT, height_m=UNAVAILABLE_EXTENT)

    return WorldExtent(
        width_m=geodesic_distance(upper_left, upper_right),
        height_m=geodesic_distance(upper_left, lower_left),
    )


def geodesic_distance(start: GeoPoint, end: GeoPoint) -> float:
    """Calculate geodesic distance between two points in meters."""
    _, _, distance = _geod.inv(
        start.longitude, start.latitude, end.longitude, end.latitude
    )
    return float(abs(distance))
