"""DEM Bounded Context.

Responsible for elevation rasters and their derived products:
- Value Objects: RasterMetadata, ElevationGrid, ElevationStatistics, GeoPoint
- Services: nodata normalization, statistics, georeferencing
- Heightmap: resampling into square terrain grids
"""
