"""DEM application service.

``Dem`` is the public entry point: it loads a raster through a RasterSource,
builds the elevation store and its statistics, resolves georeferencing and
answers elevation / heightmap queries.

Error boundary:
    ``load`` is the only place where decoding errors are handled. They are
    logged and turned into a non-zero status; the instance is then reset to
    the unloaded state. Every query afterwards returns sentinels (inf, -1,
    None, 0.0) instead of raising.
"""

from __future__ import annotations

import logging
import math
from pathlib import Path

import numpy as np
from numpy.typing import NDArray
from pydantic import ValidationError

from domain.dem.errors import DemError
from domain.dem.heightmap import (
    fill_heightmap,
    heightmap_scale,
    heightmap_vert_size,
    terrain_side,
)
from domain.dem.repositories import RasterSource
from domain.dem.services import (
    build_elevation_grid,
    compute_statistics,
    is_earth_crs,
    resolve_geo_reference,
    world_extent,
)
from domain.dem.value_objects import (
    ElevationGrid,
    ElevationStatistics,
    GeoPoint,
    RasterMetadata,
    Vector3,
    WorldExtent,
)
from infrastructure.raster import RasterioDemSource

from .settings import DemSettings, get_settings

logger = logging.getLogger(__name__)

LOAD_OK = 0
LOAD_FAILED = -1

# Stand-in grid for heightmap requests on an unloaded DEM: every vertex is ground
_UNLOADED_GRID = ElevationGrid(data=np.full((1, 1), np.nan, dtype=np.float32))


class Dem:
    """Digital Elevation Model loaded from a single-band raster.

    Parameters
    ----------
    settings: DemSettings | None
        Configuration; defaults to the environment-driven settings.
    source: RasterSource | None
        Raster decoder; defaults to the rasterio adapter.
    """

    def __init__(
        self,
        settings: DemSettings | None = None,
        source: RasterSource | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._source = source or RasterioDemSource(
            max_bytes=self._settings.max_bytes,
            env_options=self._settings.gdal_options,
        )
        self._reset()

    def _reset(self) -> None:
        self._filename = ""
        self._metadata: RasterMetadata | None = None
        self._grid: ElevationGrid | None = None
        self._statistics = ElevationStatistics()
        self._extent = WorldExtent()
        self._origin: GeoPoint | None = None
        self._is_earth = False

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------
    def load(self, filename: Path | str) -> int:
        """Load a DEM file, replacing any previously loaded one.

        Returns:
            0 on success, -1 on failure (the instance is then unloaded)
        """
        path = Path(filename)
        try:
            raw = self._source.read_raster(path)
            grid = build_elevation_grid(raw, self._settings.void_values)
        except (DemError, OSError, ValidationError) as e:
            logger.error("Unable to load DEM file %s: %s", path.name, e)
            self._reset()
            return LOAD_FAILED

        metadata = raw.metadata
        statistics = compute_statistics(grid)
        is_earth = is_earth_crs(metadata.crs_wkt)

        if not statistics.has_data:
            logger.warning("DEM %s is composed of nodata values", path.name)
        elif statistics.nodata_ratio * 100.0 > self._settings.high_nodata_warning_pct:
            logger.warning(
                "DEM %s: %.1f%% NoData pixels detected",
                path.name,
                statistics.nodata_ratio * 100.0,
            )
        if not is_earth:
            logger.info(
                "DEM %s: spatial reference is not Earth based, "
                "world size and geographic origin are unavailable",
                path.name,
            )

        self._filename = str(filename)
        self._metadata = metadata
        self._grid = grid
        self._statistics = statistics
        self._is_earth = is_earth
        self._extent = world_extent(metadata) if is_earth else WorldExtent()
        self._origin = resolve_geo_reference(metadata, 0, 0) if is_earth else None

        logger.debug(
            "DEM %s: loaded %dx%d grid, elevation [%.3f, %.3f]",
            path.name,
            grid.width,
            grid.height,
            statistics.min_elevation,
            statistics.max_elevation,
        )
        return LOAD_OK

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    @property
    def is_loaded(self) -> bool:
        return self._grid is not None

    @property
    def filename(self) -> str:
        """Path given to the last successful load, or ""."""
        return self._filename

    @property
    def width(self) -> int:
        return self._grid.width if self._grid is not None else 0

    @property
    def height(self) -> int:
        return self._grid.height if self._grid is not None else 0

    @property
    def world_width(self) -> float:
        """Ground width in meters, -1 when not Earth referenced."""
        return self._extent.width_m

    @property
    def world_height(self) -> float:
        """Ground height in meters, -1 when not Earth referenced."""
        return self._extent.height_m

    @property
    def min_elevation(self) -> float:
        return self._statistics.min_elevation

    @property
    def max_elevation(self) -> float:
        return self._statistics.max_elevation

    @property
    def statistics(self) -> ElevationStatistics:
        return self._statistics

    @property
    def nodata_ratio(self) -> float:
        return self._statistics.nodata_ratio

    @property
    def is_earth(self) -> bool:
        return self._is_earth

    @property
    def metadata(self) -> RasterMetadata | None:
        return self._metadata

    @property
    def terrain_side(self) -> int:
        """Side of the smallest 2^n + 1 square holding the raster, 0 if unloaded."""
        if self._grid is None:
            return 0
        return terrain_side(max(self._grid.width, self._grid.height))

    def elevation(self, x: int, y: int) -> float:
        """Elevation of cell (column x, row y).

        Out-of-range cells return +inf; nodata cells return NaN.
        """
        if self._grid is None or x < 0 or y < 0 or x >= self.width or y >= self.height:
            return math.inf
        return float(self._grid.data[y, x])

    # ------------------------------------------------------------------
    # Georeferencing
    # ------------------------------------------------------------------
    def geo_reference_origin(self) -> GeoPoint | None:
        """WGS84 position of the raster origin, None if not Earth referenced."""
        return self._origin

    def geo_reference(self, x: float, y: float) -> GeoPoint | None:
        """WGS84 position of raster position (x, y), None if unavailable."""
        if self._metadata is None or not self._is_earth:
            return None
        return resolve_geo_reference(self._metadata, x, y)

    # ------------------------------------------------------------------
    # Heightmap
    # ------------------------------------------------------------------
    def fill_heightmap(
        self,
        subsampling: int,
        vert_size: int,
        size: Vector3 | tuple[float, float, float],
        scale: Vector3 | tuple[float, float, float],
        flip_y: bool = False,
    ) -> NDArray[np.float32]:
        """Resample the DEM into ``vert_size * vert_size`` row-major heights.

        An unloaded DEM yields a heightmap at ground level.

        Raises:
            ValueError: If subsampling or vert_size is not positive
        """
        grid = self._grid if self._grid is not None else _UNLOADED_GRID
        return fill_heightmap(
            grid, self._statistics, subsampling, vert_size, size, scale, flip_y
        )

    def heightmap_parameters(self, subsampling: int) -> tuple[int, Vector3, Vector3]:
        """Default (vert_size, size, scale) for ``fill_heightmap``.

        Raises:
            ValueError: If no DEM is loaded or subsampling is not positive
        """
        if self._grid is None:
            raise ValueError("No DEM loaded")
        if subsampling <= 0:
            raise ValueError(f"Illegal subsampling value ({subsampling})")

        vert_size = heightmap_vert_size(self._grid.width, subsampling)
        size, scale = heightmap_scale(
            self._grid, self._statistics, self._extent, vert_size
        )
        return vert_size, size, scale
