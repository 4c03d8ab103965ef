"""Configuration file for Pytest: in-memory GeoTIFF containers used across tests."""

from __future__ import annotations

from typing import Any

import numpy as np
import pytest
import rasterio as rio
from affine import Affine


def write_geotiff(
    data: np.ndarray,
    transform: Affine,
    crs: Any = None,
    nodata: float | None = None,
    colormap: dict[int, tuple[int, int, int, int]] | None = None,
) -> bytes:
    """Encode an array of shape (count, height, width) as GeoTIFF bytes."""

    count, height, width = data.shape
    with rio.io.MemoryFile() as mfh:
        with mfh.open(
            driver="GTiff",
            height=height,
            width=width,
            count=count,
            dtype=data.dtype,
            crs=crs,
            transform=transform,
            nodata=nodata,
        ) as ds:
            ds.write(data)
            if colormap is not None:
                ds.write_colormap(1, colormap)
        mfh.seek(0)
        return mfh.read()


@pytest.fixture
def utm_array() -> np.ndarray:
    """Three bands of 4 rows and 5 columns, with a nodata value in each band."""

    data = np.arange(3 * 4 * 5, dtype="float32").reshape((3, 4, 5))
    data[:, 0, 0] = -9999
    return data


@pytest.fixture
def utm_geotiff(utm_array: np.ndarray) -> bytes:
    """North-up projected GeoTIFF (EPSG:32633) with 30 m pixels and nodata -9999."""

    return write_geotiff(
        utm_array, transform=rio.transform.from_origin(500000, 4000000, 30, 30), crs="EPSG:32633", nodata=-9999
    )


@pytest.fixture
def geographic_geotiff() -> bytes:
    """North-up geographic GeoTIFF (EPSG:4326) without nodata."""

    data = np.arange(2 * 3, dtype="int16").reshape((1, 2, 3))
    return write_geotiff(data, transform=rio.transform.from_origin(10, 50, 0.5, 0.25), crs="EPSG:4326")


@pytest.fixture
def rotated_geotiff() -> bytes:
    """GeoTIFF with a rotated geotransform, stored as a model transformation."""

    data = np.ones((1, 3, 4), dtype="uint8")
    return write_geotiff(data, transform=Affine(1.0, 0.5, 100.0, 0.5, -1.0, 200.0), crs="EPSG:32633")


@pytest.fixture
def palette_geotiff() -> bytes:
    """Color-mapped single band GeoTIFF."""

    data = np.array([[[0, 1], [2, 1]]], dtype="uint8")
    colormap = {0: (0, 0, 0, 255), 1: (255, 0, 0, 255), 2: (0, 255, 0, 255)}
    return write_geotiff(data, transform=rio.transform.from_origin(0, 2, 1, 1), crs="EPSG:4326", colormap=colormap)


@pytest.fixture
def no_crs_geotiff() -> bytes:
    """GeoTIFF without a coordinate reference system."""

    data = np.zeros((1, 2, 2), dtype="float32")
    return write_geotiff(data, transform=rio.transform.from_origin(0, 2, 1, 1))


@pytest.fixture
def int16_geotiff() -> bytes:
    """Geographic int16 GeoTIFF spanning the full value range, with nodata 0."""

    data = np.array([[[-32768, 32767], [0, 1]]], dtype="int16")
    return write_geotiff(data, transform=rio.transform.from_origin(0, 2, 1, 1), crs="EPSG:4326", nodata=0)
