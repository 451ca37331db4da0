from __future__ import annotations

import pytest
from pydantic import ValidationError

from application import Dem
from application.settings import DemSettings, get_settings
from domain.dem.services import DEFAULT_VOID_VALUES


def test_defaults(monkeypatch):
    for name in ("DEM_MAX_BYTES", "DEM_VOID_VALUES", "DEM_GDAL_OPTIONS"):
        monkeypatch.delenv(name, raising=False)

    settings = DemSettings()

    assert settings.max_bytes is None
    assert settings.void_values == DEFAULT_VOID_VALUES
    assert settings.gdal_options == {}
    assert settings.high_nodata_warning_pct == 80.0


def test_void_values_from_env(monkeypatch):
    monkeypatch.setenv("DEM_VOID_VALUES", "-9999, -32768")

    assert DemSettings().void_values == (-9999.0, -32768.0)


def test_empty_void_values_disable_defaults(monkeypatch):
    monkeypatch.setenv("DEM_VOID_VALUES", "")

    assert DemSettings().void_values == ()


def test_max_bytes_and_gdal_options_from_env(monkeypatch):
    monkeypatch.setenv("DEM_MAX_BYTES", "1048576")
    monkeypatch.setenv("DEM_GDAL_OPTIONS", '{"GDAL_CACHEMAX": "64"}')

    settings = DemSettings()

    assert settings.max_bytes == 1048576
    assert settings.gdal_options == {"GDAL_CACHEMAX": "64"}


@pytest.mark.parametrize(
    "kwargs",
    [
        {"max_bytes": 0},
        {"high_nodata_warning_pct": 120.0},
        {"void_values": "abc"},
    ],
)
def test_invalid_values_rejected(kwargs):
    with pytest.raises(ValidationError):
        DemSettings(**kwargs)


def test_get_settings_is_cached(monkeypatch):
    monkeypatch.setenv("DEM_VOID_VALUES", "-1")
    first = get_settings()
    monkeypatch.setenv("DEM_VOID_VALUES", "-2")

    assert get_settings() is first
    assert first.void_values == (-1.0,)


def test_dem_uses_environment_settings(monkeypatch):
    monkeypatch.setenv("DEM_MAX_BYTES", "4096")
    dem = Dem()

    assert dem._source.max_bytes == 4096
