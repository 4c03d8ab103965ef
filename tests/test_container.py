"""Test the fetching and opening of encoded containers, and the extraction of their metadata."""

from __future__ import annotations

import io
import logging
import pathlib

import pytest
import rasterio as rio
from affine import Affine

from parsegeoraster._dispatch import BlobSource, BufferSource, UrlSource
from parsegeoraster.exceptions import ContainerDecodeError
from parsegeoraster.raster.container import (
    _fetch_url,
    _geokeys,
    _geometry,
    _open_container,
    _palette,
    _projection,
    _read_source,
)


class TestContainer:
    def test_read_source(self, utm_geotiff: bytes, tmp_path: pathlib.Path) -> None:
        """Check that the bytes are the same for every type of source."""

        path = tmp_path / "utm.tif"
        path.write_bytes(utm_geotiff)

        assert _read_source(BufferSource(bytearray(utm_geotiff))) == utm_geotiff
        assert _read_source(BlobSource(io.BytesIO(utm_geotiff))) == utm_geotiff
        assert _read_source(UrlSource(path.as_uri())) == utm_geotiff

    def test_fetch_url__exceptions(self, tmp_path: pathlib.Path) -> None:
        """Check that unreachable URLs raise a decode error."""

        with pytest.raises(ContainerDecodeError, match="Could not fetch container"):
            _fetch_url((tmp_path / "missing.tif").as_uri())

        with pytest.raises(ContainerDecodeError, match="Could not fetch container"):
            _fetch_url("lol")

    def test_read_source__closed_blob(self) -> None:
        blob = io.BytesIO(b"lol")
        blob.close()
        with pytest.raises(ContainerDecodeError, match="Could not read container from blob"):
            _read_source(BlobSource(blob))

    def test_open_container(self, utm_geotiff: bytes) -> None:
        mfh, ds = _open_container(utm_geotiff)
        try:
            assert ds.count == 3
            assert (ds.height, ds.width) == (4, 5)
        finally:
            ds.close()
            mfh.close()

    def test_open_container__malformed(self) -> None:
        """Check that bytes which are not a raster raise a decode error."""

        with pytest.raises(ContainerDecodeError):
            _open_container(b"this is not a GeoTIFF")

    def test_geokeys_projection(self, utm_geotiff: bytes, geographic_geotiff: bytes, no_crs_geotiff: bytes) -> None:
        """Check that the projected code takes precedence over the geographic code, and both over the fallback."""

        with rio.io.MemoryFile(utm_geotiff) as mfh, mfh.open() as ds:
            assert _geokeys(ds.crs) == {"ProjectedCSTypeGeoKey": 32633, "GeographicTypeGeoKey": 4326}
            assert _projection(ds.crs, fallback=2056) == 32633

        with rio.io.MemoryFile(geographic_geotiff) as mfh, mfh.open() as ds:
            assert _geokeys(ds.crs) == {"ProjectedCSTypeGeoKey": None, "GeographicTypeGeoKey": 4326}
            assert _projection(ds.crs, fallback=2056) == 4326

        with rio.io.MemoryFile(no_crs_geotiff) as mfh, mfh.open() as ds:
            assert _projection(ds.crs, fallback=2056) == 2056
            assert _projection(ds.crs) is None

    def test_geometry(self, utm_geotiff: bytes, rotated_geotiff: bytes) -> None:
        """Check that an affine transform is only returned for rotated geotransforms."""

        with rio.io.MemoryFile(utm_geotiff) as mfh, mfh.open() as ds:
            geom = _geometry(ds)
        assert geom["height"] == 4
        assert geom["width"] == 5
        assert geom["origin"] == (500000, 4000000)
        assert geom["resolution"] == (30, -30)
        assert geom["transform"] is None

        with rio.io.MemoryFile(rotated_geotiff) as mfh, mfh.open() as ds:
            geom = _geometry(ds)
        assert geom["transform"] is not None
        assert geom["transform"].almost_equals(Affine(1.0, 0.5, 100.0, 0.5, -1.0, 200.0))

    def test_palette(self, palette_geotiff: bytes, utm_geotiff: bytes) -> None:
        """Check that the palette is only extracted from color-mapped rasters."""

        with rio.io.MemoryFile(palette_geotiff) as mfh, mfh.open() as ds:
            palette = _palette(ds)
        assert palette is not None
        assert palette[0] == (0, 0, 0, 255)
        assert palette[1] == (255, 0, 0, 255)
        assert palette[2] == (0, 255, 0, 255)

        with rio.io.MemoryFile(utm_geotiff) as mfh, mfh.open() as ds:
            assert _palette(ds) is None

    def test_fetch_url__ignored_options(
        self, utm_geotiff: bytes, tmp_path: pathlib.Path, caplog  # type: ignore
    ) -> None:
        """Check that options other than headers and timeout are logged as ignored."""

        path = tmp_path / "utm.tif"
        path.write_bytes(utm_geotiff)

        with caplog.at_level(logging.DEBUG):
            content = _fetch_url(path.as_uri(), {"timeout": 5, "mode": "cors", "credentials": "omit"})
        assert content == utm_geotiff
        assert "Fetch options not used by the URL fetcher: credentials, mode" in caplog.text
