"""Application services for the DEM bounded context."""

from .dem import LOAD_FAILED, LOAD_OK, Dem
from .settings import DemSettings, get_settings

__all__ = ["Dem", "DemSettings", "LOAD_FAILED", "LOAD_OK", "get_settings"]
