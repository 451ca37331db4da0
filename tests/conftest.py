"""Root pytest configuration for all tests.

Synthetic DEM rasters are written once per session with real rasterio into
a temporary directory (see shared/dem_fixtures.py).
"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest

from application.settings import get_settings
from infrastructure.raster.env import reset_raster_env


@pytest.fixture(scope="session")
def dem_fixtures_dir(tmp_path_factory: pytest.TempPathFactory) -> Path:
    """Directory holding every synthetic fixture from shared.dem_fixtures."""
    from shared.dem_fixtures import write_all

    directory = tmp_path_factory.mktemp("dem_fixtures")
    write_all(directory)
    return directory


@pytest.fixture(autouse=True)
def _isolate_process_state() -> Iterator[None]:
    """Reset cached settings and the raster environment around every test."""
    get_settings.cache_clear()
    reset_raster_env()
    yield
    get_settings.cache_clear()
    reset_raster_env()
