"""DEM Bounded Context - Heightmap resampling.

Converts an elevation grid of any shape into a square ``vert_size x
vert_size`` heightmap suitable for terrain meshes.

Sampling model:
    Output vertex (row i, column j) sits at source position
    (j / subsampling, i / subsampling). Heights come from bilinear
    interpolation between the floor/ceil neighbours on each axis.

Height convention:
    h = (interpolated - max(0, min_elevation)) * scale.z
    A negative size.z inverts the heights (1 = ground, 0 = full height);
    otherwise negative heights are clamped to ground level (0.0).

Flat DEMs:
    A DEM whose maximum elevation is exactly 0.0 (sea level) cannot be
    normalized by its maximum; ``heightmap_scale`` then uses the absolute
    elevation range as the vertical scale.

Output rows are produced in blocks of about ``_BLOCK_CELLS`` vertices, so
temporary memory stays bounded whatever the output size.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from domain.dem.value_objects import (
    ElevationGrid,
    ElevationStatistics,
    Vector3,
    WorldExtent,
)

GROUND_LEVEL = 0.0

# Vertices interpolated per block of output rows
_BLOCK_CELLS = 1 << 16


def _axis_samples(
    vert_size: int, subsampling: int, cells: int
) -> tuple[NDArray[np.intp], NDArray[np.intp], NDArray[np.float64], NDArray[np.bool_]]:
    """Neighbour indices and fractional offsets along one axis.

    Returns (lower, upper, fraction, inside). The upper neighbour is clamped
    to the last cell; ``inside`` is False where the lower neighbour falls
    past the end of the raster (padding of non-square sources).
    """
    steps = np.arange(vert_size, dtype=np.float64) / subsampling
    lower = np.floor(steps).astype(np.intp)
    upper = np.ceil(steps).astype(np.intp)
    fraction = steps - lower

    inside = lower < cells
    lower = np.minimum(lower, cells - 1)
    upper = np.minimum(upper, cells - 1)
    return lower, upper, fraction, inside


def _interpolate_block(
    data: NDArray[np.float32],
    rows: tuple[NDArray[np.intp], NDArray[np.intp], NDArray[np.float64]],
    cols: tuple[NDArray[np.intp], NDArray[np.intp], NDArray[np.float64]],
) -> NDArray[np.float64]:
    """Bilinear interpolation for a block of output rows, NaN where no value exists."""
    y_lo, y_hi, fy = rows
    x_lo, x_hi, fx = cols
    y_lo, y_hi, fy = y_lo[:, None], y_hi[:, None], fy[:, None]
    x_lo, x_hi, fx = x_lo[None, :], x_hi[None, :], fx[None, :]

    q11 = data[y_lo, x_lo].astype(np.float64)  # top-left
    q21 = data[y_lo, x_hi].astype(np.float64)  # top-right
    q12 = data[y_hi, x_lo].astype(np.float64)  # bottom-left
    q22 = data[y_hi, x_hi].astype(np.float64)  # bottom-right

    h1 = q11 - (q11 - q21) * fx
    h2 = q12 - (q12 - q22) * fx
    heights = h1 - (h1 - h2) * fy

    # Any nodata corner turns the bilinear value into NaN; partial nodata
    # neighbourhoods then take the nearest valid neighbour instead.
    if np.isnan(heights).any():
        corners = np.stack([q11, q21, q12, q22])
        weights = np.stack(
            np.broadcast_arrays(
                (1 - fx) * (1 - fy), fx * (1 - fy), (1 - fx) * fy, fx * fy
            )
        )
        valid = ~np.isnan(corners)
        partial = ~valid.all(axis=0) & valid.any(axis=0)
        if partial.any():
            nearest = np.argmax(np.where(valid, weights, -1.0), axis=0)
            fallback = np.take_along_axis(corners, nearest[None, ...], axis=0)[0]
            heights = np.where(partial, fallback, heights)

    return heights


def fill_heightmap(
    grid: ElevationGrid,
    statistics: ElevationStatistics,
    subsampling: int,
    vert_size: int,
    size: Vector3 | tuple[float, float, float],
    scale: Vector3 | tuple[float, float, float],
    flip_y: bool = False,
) -> NDArray[np.float32]:
    """Resample the grid into a flat, row-major heightmap.

    Args:
        grid: Loaded elevation store
        statistics: Statistics of ``grid`` (min elevation sets the offset)
        subsampling: Output vertices per source cell along each axis
        vert_size: Rows/columns of the square output, typically
            ``width * subsampling - 1``
        size: World-space terrain size; the sign of ``size.z`` selects the
            height convention
        scale: World units per output step; ``scale.z`` multiplies heights
        flip_y: Store the rows bottom-up

    Returns:
        float32 array of exactly ``vert_size * vert_size`` heights

    Raises:
        ValueError: If subsampling or vert_size is not positive, or the
            scale is not finite
    """
    if subsampling <= 0:
        raise ValueError(f"Illegal subsampling value ({subsampling})")
    if vert_size <= 0:
        raise ValueError(f"Illegal vertex count ({vert_size})")

    size = Vector3.of(size)
    scale = Vector3.of(scale)
    if not scale.is_finite():
        raise ValueError(f"Scale must be finite, got {scale}")

    height, width = grid.data.shape
    y_lo, y_hi, fy, y_in = _axis_samples(vert_size, subsampling, height)
    x_lo, x_hi, fx, x_in = _axis_samples(vert_size, subsampling, width)
    cols = (x_lo, x_hi, fx)

    offset = max(0.0, statistics.min_elevation)
    heights = np.empty((vert_size, vert_size), dtype=np.float32)
    step = max(1, _BLOCK_CELLS // vert_size)

    for start in range(0, vert_size, step):
        stop = min(start + step, vert_size)
        block_rows = slice(start, stop)
        block = _interpolate_block(
            grid.data, (y_lo[block_rows], y_hi[block_rows], fy[block_rows]), cols
        )
        # Vertices past the raster (non-square sources) are padding
        block[~(y_in[block_rows, None] & x_in[None, :])] = np.nan

        block = (block - offset) * scale.z
        block[np.isnan(block)] = GROUND_LEVEL
        if size.z < 0:
            np.negative(block, out=block)
        else:
            np.maximum(block, GROUND_LEVEL, out=block)

        if flip_y:
            heights[vert_size - stop : vert_size - start] = block[::-1, :]
        else:
            heights[block_rows] = block

    return heights.reshape(-1)


# ---------------------------------------------------------------------------
# Caller-side helpers
# ---------------------------------------------------------------------------
def heightmap_vert_size(width: int, subsampling: int) -> int:
    """Vertex count matching a raster width at the given subsampling."""
    return width * subsampling - 1


def heightmap_scale(
    grid: ElevationGrid,
    statistics: ElevationStatistics,
    extent: WorldExtent,
    vert_size: int,
) -> tuple[Vector3, Vector3]:
    """Derive (size, scale) for ``fill_heightmap`` from a loaded DEM.

    Horizontal size is the world extent, or the cell counts when the raster
    is not Earth referenced. The vertical scale normalizes by the maximum
    elevation; a flat DEM (max elevation exactly 0.0) uses the absolute
    size instead.
    """
    if extent.available:
        size_x, size_y = extent.width_m, extent.height_m
    else:
        size_x, size_y = float(grid.width), float(grid.height)

    size = Vector3(
        x=size_x,
        y=size_y,
        z=statistics.max_elevation - statistics.min_elevation,
    )

    if statistics.max_elevation == 0.0:
        scale_z = abs(size.z)
    else:
        scale_z = abs(size.z) / statistics.max_elevation

    scale = Vector3(x=size.x / vert_size, y=size.y / vert_size, z=scale_z)
    return size, scale


def terrain_side(cells: int) -> int:
    """Smallest 2^n + 1 side that holds ``cells`` samples."""
    if cells <= 2:
        return 2
    if (cells - 1) & (cells - 2) == 0:
        return cells
    return 1 << (cells - 1).bit_length() | 1
