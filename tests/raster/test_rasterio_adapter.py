"""Unit tests for the rasterio adapter.

rasterio.open and rasterio.Env are monkeypatched with a FakeDataset, so no
raster files are read here. End-to-end decoding of real files is covered in
tests/application/test_dem.py.
"""

from __future__ import annotations

import math
from contextlib import nullcontext

import numpy as np
import numpy.ma as ma
import pytest
from affine import Affine
from rasterio.errors import RasterioIOError

from domain.dem.errors import (
    InsufficientMemoryError,
    InvalidGeotransformError,
    InvalidRasterError,
    UnsupportedRasterError,
)
from infrastructure.raster.rasterio_adapter import RasterioDemSource

WGS84_WKT = 'GEOGCS["WGS 84",DATUM["WGS_1984",SPHEROID["WGS 84",6378137,298.257223563]]]'


class FakeCRS:
    def __init__(self, wkt: str):
        self._wkt = wkt

    def to_wkt(self) -> str:
        return self._wkt

    def __bool__(self) -> bool:
        return bool(self._wkt)


class FakeDataset:
    def __init__(
        self,
        *,
        count: int = 1,
        crs: str | None = WGS84_WKT,
        transform=None,
        width: int = 4,
        height: int = 3,
        nodata=None,
        dtype: str = "float32",
    ):
        self.count = count
        self.crs = FakeCRS(crs) if crs is not None else None
        self.transform = transform if transform is not None else Affine.identity()
        self.width = width
        self.height = height
        self.nodata = nodata
        self.driver = "GTiff"
        self.dtypes = (dtype,) * max(count, 1)

    def read(self, band: int, *, masked: bool, out_dtype: str):
        # Default: gradient with no masked pixel
        data = np.arange(self.width * self.height, dtype=out_dtype).reshape(
            self.height, self.width
        )
        return ma.MaskedArray(data, mask=np.zeros_like(data, dtype=bool))

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False


@pytest.fixture
def raster_file(tmp_path):
    p = tmp_path / "dem.tif"
    p.write_bytes(b"x")
    return p


@pytest.fixture
def fake_env(monkeypatch):
    monkeypatch.setattr("rasterio.Env", lambda *a, **k: nullcontext())


def use_dataset(monkeypatch, ds: FakeDataset) -> None:
    monkeypatch.setattr("rasterio.open", lambda path: ds)


def test_file_not_found_raises(tmp_path):
    source = RasterioDemSource()
    with pytest.raises(FileNotFoundError):
        source.read_raster(tmp_path / "missing.tif")


def test_empty_file_raises(tmp_path):
    p = tmp_path / "empty.tif"
    p.write_bytes(b"")

    with pytest.raises(InvalidRasterError, match="Empty file"):
        RasterioDemSource().read_raster(p)


def test_happy_path(monkeypatch, fake_env, raster_file):
    transform = Affine.translation(-10.0, 10.0) * Affine.scale(0.01, -0.01)
    use_dataset(monkeypatch, FakeDataset(transform=transform, nodata=-9999.0))

    raw = RasterioDemSource().read_raster(raster_file)

    assert raw.samples.shape == (3, 4)
    assert raw.samples.dtype == np.float64
    assert raw.samples[2, 3] == 11.0
    assert raw.mask is not None and not raw.mask.any()
    assert raw.metadata.width == 4
    assert raw.metadata.height == 3
    assert raw.metadata.transform == transform
    assert raw.metadata.crs_wkt == WGS84_WKT
    assert raw.metadata.nodata_values == (-9999.0,)
    assert raw.metadata.driver == "GTiff"
    assert raw.metadata.dtype == "float32"


def test_path_vs_string_input(monkeypatch, fake_env, raster_file):
    use_dataset(monkeypatch, FakeDataset())
    source = RasterioDemSource()

    from_path = source.read_raster(raster_file)
    from_str = source.read_raster(str(raster_file))

    np.testing.assert_array_equal(from_path.samples, from_str.samples)


def test_missing_crs_is_not_an_error(monkeypatch, fake_env, raster_file):
    use_dataset(monkeypatch, FakeDataset(crs=None))

    raw = RasterioDemSource().read_raster(raster_file)
    assert raw.metadata.crs_wkt is None


def test_masked_pixels_are_forwarded(monkeypatch, fake_env, raster_file):
    def fake_read(self, band, *, masked, out_dtype):
        data = np.arange(25, dtype=out_dtype).reshape(5, 5)
        m = np.zeros((5, 5), dtype=bool)
        m[0, 0] = True  # nodata
        return ma.MaskedArray(data, mask=m)

    monkeypatch.setattr(FakeDataset, "read", fake_read)
    use_dataset(monkeypatch, FakeDataset(width=5, height=5))

    raw = RasterioDemSource().read_raster(raster_file)
    assert raw.mask[0, 0]
    assert int(raw.mask.sum()) == 1


def test_unmasked_array_gets_full_mask(monkeypatch, fake_env, raster_file):
    def fake_read(self, band, *, masked, out_dtype):
        return ma.MaskedArray(np.ones((3, 4), dtype=out_dtype))  # mask is nomask

    monkeypatch.setattr(FakeDataset, "read", fake_read)
    use_dataset(monkeypatch, FakeDataset())

    raw = RasterioDemSource().read_raster(raster_file)
    assert raw.mask.shape == (3, 4)
    assert not raw.mask.any()


@pytest.mark.parametrize("count", [3, 4])
def test_multiband_rejected(monkeypatch, fake_env, raster_file, count):
    use_dataset(monkeypatch, FakeDataset(count=count))

    with pytest.raises(UnsupportedRasterError) as exc_info:
        RasterioDemSource().read_raster(raster_file)
    assert exc_info.value.band_count == count


def test_bandless_rejected(monkeypatch, fake_env, raster_file):
    use_dataset(monkeypatch, FakeDataset(count=0))

    with pytest.raises(InvalidRasterError, match="bandless"):
        RasterioDemSource().read_raster(raster_file)


@pytest.mark.parametrize(
    "transform",
    [
        Affine(math.nan, 0.0, 0.0, 0.0, -1.0, 0.0),
        Affine(1.0, 0.0, math.inf, 0.0, -1.0, 0.0),
        Affine(0.0, 0.0, 0.0, 0.0, -1.0, 0.0),
    ],
)
def test_invalid_geotransform_rejected(monkeypatch, fake_env, raster_file, transform):
    use_dataset(monkeypatch, FakeDataset(transform=transform))

    with pytest.raises(InvalidGeotransformError):
        RasterioDemSource().read_raster(raster_file)


def test_memory_budget_exceeded(monkeypatch, fake_env, raster_file):
    use_dataset(monkeypatch, FakeDataset(width=100, height=100))

    with pytest.raises(InsufficientMemoryError, match="exceeds budget"):
        RasterioDemSource(max_bytes=1000).read_raster(raster_file)


def test_memory_budget_file_preflight(tmp_path):
    p = tmp_path / "big.tif"
    p.write_bytes(b"x" * 64)

    with pytest.raises(InsufficientMemoryError, match="2x memory budget"):
        RasterioDemSource(max_bytes=16).read_raster(p)


def test_corrupted_file_rejected(monkeypatch, fake_env, raster_file):
    def fake_open(path):
        raise RasterioIOError("not recognized as a supported file format")

    monkeypatch.setattr("rasterio.open", fake_open)

    with pytest.raises(InvalidRasterError, match="Corrupted or invalid raster"):
        RasterioDemSource().read_raster(raster_file)


def test_permission_error_hides_full_path(monkeypatch, fake_env, raster_file):
    def fake_open(path):
        raise PermissionError("permission denied")

    monkeypatch.setattr("rasterio.open", fake_open)

    with pytest.raises(PermissionError) as exc_info:
        RasterioDemSource().read_raster(raster_file)
    assert str(exc_info.value) == raster_file.name


def test_memory_error_translated(monkeypatch, fake_env, raster_file):
    def fake_read(self, band, *, masked, out_dtype):
        raise MemoryError

    monkeypatch.setattr(FakeDataset, "read", fake_read)
    use_dataset(monkeypatch, FakeDataset())

    with pytest.raises(InsufficientMemoryError):
        RasterioDemSource().read_raster(raster_file)


def test_debug_log_uses_file_name_only(monkeypatch, fake_env, raster_file, caplog):
    use_dataset(monkeypatch, FakeDataset())

    caplog.set_level("DEBUG", logger="infrastructure.raster.rasterio_adapter")
    RasterioDemSource().read_raster(raster_file)

    assert "DEM dem.tif: decoded 4x3 float32 raster (GTiff)" in caplog.text
    assert str(raster_file.parent) not in caplog.text
