"""Synthetic DEM rasters shared by scripts/gen_fixtures.py and the tests.

Each ``write_*`` function writes one raster into ``directory`` and returns
its path. The elevation arrays are deterministic so tests can derive exact
expectations from ``build_*`` helpers instead of hard-coding values.

Requires rasterio (writing rasters is test tooling only, never library code).
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import numpy as np
import rasterio
from affine import Affine
from numpy.typing import NDArray
from rasterio.crs import CRS

# =============================================================================
# Georeferencing of the synthetic rasters
# =============================================================================
# One arc-second cells anchored at a point in the San Francisco Bay area
SQUARED_ORIGIN_LON, SQUARED_ORIGIN_LAT = -122.22278, 38.001667
ARC_SECOND = 1.0 / 3600.0

# Three arc-minute cells for the coarse "unfinished" and "nodata" rasters
COARSE_ORIGIN_LON, COARSE_ORIGIN_LAT = -120.0, 37.0
ARC_MINUTE_3 = 3.0 / 60.0

# IAU 2000 lunar geographic CRS (sphere of radius 1737.4 km)
MOON_WKT = (
    'GEOGCS["Moon 2000",'
    'DATUM["D_Moon_2000",SPHEROID["Moon_2000_IAU_IAG",1737400.0,0.0]],'
    'PRIMEM["Reference_Meridian",0.0],'
    'UNIT["Degree",0.0174532925199433]]'
)

VOID_SRTM = -32768
VOID_USGS = -32767


def write_raster(
    path: Path,
    data: NDArray[Any],
    transform: Affine,
    crs: CRS | None = None,
    nodata: float | None = None,
    driver: str = "GTiff",
) -> Path:
    """Write a 2D (single band) or 3D (bands x height x width) raster."""
    if data.ndim == 2:
        count = 1
        height, width = data.shape
    elif data.ndim == 3:
        count, height, width = data.shape
    else:
        raise ValueError(f"Data must be 2D or 3D, got {data.ndim}D")

    kwargs: dict[str, Any] = {
        "driver": driver,
        "height": height,
        "width": width,
        "count": count,
        "dtype": str(data.dtype),
        "transform": transform,
    }
    if crs is not None:
        kwargs["crs"] = crs
    if nodata is not None:
        kwargs["nodata"] = nodata

    with rasterio.open(path, "w", **kwargs) as dst:
        if data.ndim == 2:
            dst.write(data, 1)
        else:
            for band_idx in range(count):
                dst.write(data[band_idx], band_idx + 1)
    return path


# =============================================================================
# Elevation arrays
# =============================================================================
def build_terrain(height: int, width: int, low: float, high: float) -> NDArray[np.float32]:
    """Smooth hill-and-slope surface spanning exactly [low, high]."""
    rows, cols = np.mgrid[0:height, 0:width].astype(np.float64)
    surface = np.sin(cols / max(width - 1, 1) * np.pi) * np.cos(
        rows / max(height - 1, 1) * np.pi / 2
    ) + (cols + rows) / (width + height)
    surface -= surface.min()
    surface /= surface.max()
    return (low + surface * (high - low)).astype(np.float32)


def build_unfinished(size: int = 33) -> NDArray[np.int16]:
    """int16 terrain in [-10, 1909] whose last rows were never surveyed.

    The void cells hold -32768 and the file declares no nodata value.
    """
    data = np.rint(build_terrain(size, size, -10.0, 1909.0)).astype(np.int16)
    data[-5:, :] = VOID_SRTM
    return data


def build_multi_nodata(size: int = 65) -> NDArray[np.int16]:
    """int16 terrain in [682, 2932] with two distinct void markers.

    -32767 is declared as the file nodata; -32768 appears undeclared.
    """
    data = np.rint(build_terrain(size, size, 682.0, 2932.0)).astype(np.int16)
    data[:3, :] = VOID_USGS
    data[:, -2:] = VOID_SRTM
    return data


# =============================================================================
# Rasters
# =============================================================================
def _arc_second_transform() -> Affine:
    return Affine.translation(SQUARED_ORIGIN_LON, SQUARED_ORIGIN_LAT) * Affine.scale(
        ARC_SECOND, -ARC_SECOND
    )


def _coarse_transform() -> Affine:
    return Affine.translation(COARSE_ORIGIN_LON, COARSE_ORIGIN_LAT) * Affine.scale(
        ARC_MINUTE_3, -ARC_MINUTE_3
    )


def write_squared(directory: Path) -> Path:
    """129x129 float32 DEM in EPSG:4326, elevations [65.3583, 318.441]."""
    data = build_terrain(129, 129, 65.3583, 318.441)
    return write_raster(
        directory / "dem_squared.tif", data, _arc_second_transform(), CRS.from_epsg(4326)
    )


def write_portrait(directory: Path) -> Path:
    """20 columns x 40 rows."""
    data = build_terrain(40, 20, 100.0, 200.0)
    return write_raster(
        directory / "dem_portrait.tif", data, _arc_second_transform(), CRS.from_epsg(4326)
    )


def write_landscape(directory: Path) -> Path:
    """40 columns x 20 rows."""
    data = build_terrain(20, 40, 100.0, 200.0)
    return write_raster(
        directory / "dem_landscape.tif", data, _arc_second_transform(), CRS.from_epsg(4326)
    )


def write_utm(directory: Path) -> Path:
    """50x50 float32 DEM in EPSG:32610 (UTM 10N), 30 m cells."""
    data = build_terrain(50, 50, 10.0, 400.0)
    transform = Affine.translation(567000.0, 4206000.0) * Affine.scale(30.0, -30.0)
    return write_raster(directory / "dem_utm10n.tif", data, transform, CRS.from_epsg(32610))


def write_unfinished(directory: Path) -> Path:
    return write_raster(
        directory / "dem_unfinished.tif",
        build_unfinished(),
        _coarse_transform(),
        CRS.from_epsg(4326),
    )


def write_multi_nodata(directory: Path) -> Path:
    return write_raster(
        directory / "dem_nodata.tif",
        build_multi_nodata(),
        _coarse_transform(),
        CRS.from_epsg(4326),
        nodata=VOID_USGS,
    )


def write_all_nodata(directory: Path) -> Path:
    data = np.full((10, 10), -9999.0, dtype=np.float32)
    return write_raster(
        directory / "dem_all_nodata.tif",
        data,
        _arc_second_transform(),
        CRS.from_epsg(4326),
        nodata=-9999.0,
    )


def write_flat(directory: Path) -> Path:
    """17x17 sea-level DEM (max elevation 0)."""
    data = np.zeros((17, 17), dtype=np.float32)
    return write_raster(
        directory / "dem_flat.tif", data, _arc_second_transform(), CRS.from_epsg(4326)
    )


def write_moon(directory: Path) -> Path:
    """33x33 float32 lunar DEM, elevations [-212.29616, -205.44009]."""
    data = build_terrain(33, 33, -212.29616, -205.44009)
    transform = Affine.translation(10.0, 5.0) * Affine.scale(0.01, -0.01)
    return write_raster(directory / "dem_moon.tif", data, transform, CRS.from_wkt(MOON_WKT))


def write_no_crs(directory: Path) -> Path:
    data = build_terrain(16, 16, 0.0, 50.0)
    transform = Affine.translation(0.0, 16.0) * Affine.scale(1.0, -1.0)
    return write_raster(directory / "dem_no_crs.tif", data, transform)


def write_rgb_png(directory: Path) -> Path:
    """Three band PNG heightmap image (valid raster, unsupported DEM)."""
    rows, cols = np.mgrid[0:32, 0:32]
    gray = ((rows + cols) * 4).astype(np.uint8)
    data = np.stack([gray, gray, gray])
    return write_raster(
        directory / "heightmap_bowl.png", data, Affine.identity(), driver="PNG"
    )


def write_text(directory: Path) -> Path:
    path = directory / "not_a_dem.txt"
    path.write_text("cmake_minimum_required(VERSION 3.10)\nproject(dem)\n")
    return path


def write_empty(directory: Path) -> Path:
    path = directory / "empty.tif"
    path.write_bytes(b"")
    return path


WRITERS = (
    write_all_nodata,
    write_empty,
    write_flat,
    write_landscape,
    write_moon,
    write_multi_nodata,
    write_no_crs,
    write_portrait,
    write_rgb_png,
    write_squared,
    write_text,
    write_unfinished,
    write_utm,
)


def write_all(directory: Path) -> list[Path]:
    """Write every fixture into ``directory`` (created if missing)."""
    directory.mkdir(parents=True, exist_ok=True)
    return [writer(directory) for writer in WRITERS]
