"""Single source of truth for expected synthetic DEM fixtures.

This module defines the list of expected fixture filenames used by both:
- scripts/gen_fixtures.py (generation verification)
- tests/application/test_fixtures_sanity.py (existence verification)

Location: shared/ (not tests/) to avoid scripts->tests dependency.

When adding/removing fixtures, update this list and shared/dem_fixtures.WRITERS.
"""

from __future__ import annotations

# Sorted alphabetically for deterministic comparison.
EXPECTED_FIXTURES: list[str] = sorted(
    [
        "dem_all_nodata.tif",  # Every cell is nodata
        "dem_flat.tif",  # Max elevation 0 (degenerate scale)
        "dem_landscape.tif",  # Non-square, wider than tall
        "dem_moon.tif",  # Non-Earth CRS
        "dem_no_crs.tif",  # No spatial reference at all
        "dem_nodata.tif",  # Two distinct nodata markers
        "dem_portrait.tif",  # Non-square, taller than wide
        "dem_squared.tif",  # Happy path, EPSG:4326
        "dem_unfinished.tif",  # Undeclared -32768 voids
        "dem_utm10n.tif",  # Projected Earth CRS
        "empty.tif",  # Zero-byte file
        "heightmap_bowl.png",  # Valid raster, unsupported band count
        "not_a_dem.txt",  # Not a raster
    ]
)

# Count derived from list for verification
EXPECTED_FIXTURE_COUNT: int = len(EXPECTED_FIXTURES)
