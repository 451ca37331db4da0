"""Process-wide GDAL environment for raster decoding.

GDAL configuration (driver options, caching, VSI behaviour) is shared by
every dataset opened in the process. ``initialize_raster_env`` records it
once; every read then runs inside ``raster_env()``, a fresh ``rasterio.Env``
built from the recorded options.

Initialization is explicit and idempotent: adapters call it when they are
constructed, never lazily from inside a read.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping

import rasterio

logger = logging.getLogger(__name__)

_lock = threading.Lock()
_env_options: dict[str, str] | None = None


def initialize_raster_env(options: Mapping[str, str] | None = None) -> None:
    """Record the GDAL options used by every raster read.

    Safe to call any number of times; only the first call takes effect.
    Later calls with different options are ignored with a warning.
    """
    global _env_options

    with _lock:
        requested = dict(options or {})
        if _env_options is not None:
            if requested and requested != _env_options:
                logger.warning(
                    "Raster environment already initialized; ignoring options %s",
                    sorted(requested),
                )
            return

        _env_options = requested
        logger.info(
            "Raster environment initialized (GDAL %s, %d option(s))",
            rasterio.__gdal_version__,
            len(_env_options),
        )


def is_initialized() -> bool:
    return _env_options is not None


def raster_env() -> rasterio.Env:
    """Context manager applying the recorded GDAL options.

    Raises:
        RuntimeError: If initialize_raster_env() was never called
    """
    if _env_options is None:
        raise RuntimeError(
            "Raster environment not initialized; call initialize_raster_env() first"
        )
    return rasterio.Env(**_env_options)


def reset_raster_env() -> None:
    """Forget the recorded options (test isolation only)."""
    global _env_options

    with _lock:
        _env_options = None
