"""Application Layer.

Infrastructure and application services that orchestrate domain logic.
This layer handles raster I/O, configuration and the public Dem service.
"""
