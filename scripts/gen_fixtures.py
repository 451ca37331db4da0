#!/usr/bin/env python3
"""Generate synthetic DEM fixtures for manual inspection.

Writes every raster built by shared/dem_fixtures.py into tests/fixtures/.
The test suite does not depend on this output: it builds the same rasters
in a temporary directory.

Usage:
    python scripts/gen_fixtures.py

Requirements:
    pip install -e .
"""

from __future__ import annotations

import sys
from pathlib import Path

from shared.dem_fixtures import write_all
from shared.fixtures_expected import EXPECTED_FIXTURE_COUNT, EXPECTED_FIXTURES

# Output directory
FIXTURES_DIR = Path(__file__).parent.parent / "tests" / "fixtures"


def main() -> int:
    print(f"Output directory: {FIXTURES_DIR}")
    written = write_all(FIXTURES_DIR)
    for path in written:
        print(f"  Created: {path.name}")

    names = sorted(path.name for path in written)
    if names != EXPECTED_FIXTURES:
        missing = set(EXPECTED_FIXTURES) - set(names)
        extra = set(names) - set(EXPECTED_FIXTURES)
        print(f"Fixture mismatch: missing={sorted(missing)} extra={sorted(extra)}")
        return 1

    print(f"Generated {EXPECTED_FIXTURE_COUNT} fixtures")
    return 0


if __name__ == "__main__":
    sys.exit(main())
