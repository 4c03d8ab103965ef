# Copyright (c) 2025 parsegeoraster developers
#
# This file is part of the parsegeoraster project.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
#
# You may obtain a copy of the License at
#
# http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Functions to fetch and open encoded raster containers with Rasterio, and to extract their image geometry,
geo-keys and palette.
"""

from __future__ import annotations

import logging
import urllib.request
from collections.abc import Mapping
from typing import Any

import pyproj
import rasterio as rio
from affine import Affine
from rasterio.enums import ColorInterp

from parsegeoraster._config import config
from parsegeoraster._dispatch import BlobSource, BufferSource, ContainerSource, UrlSource
from parsegeoraster.exceptions import ContainerDecodeError, InputShapeError


def _fetch_url(url: str, options: Mapping[str, Any] | None = None) -> bytes:
    """
    Fetch the bytes of a container from a URL.

    :param url: URL of the container (any scheme supported by :mod:`urllib.request`).
    :param options: Fetch options: "headers" (dictionary of request headers) and "timeout" (in seconds). Other
        keys are ignored.

    :raises ContainerDecodeError: If the URL cannot be reached or returns a non-200 response.

    :return: Content of the response.
    """
    options = options or {}
    ignored = sorted(set(options) - {"headers", "timeout"})
    if ignored:
        logging.debug("Fetch options not used by the URL fetcher: %s", ", ".join(map(str, ignored)))
    timeout = options.get("timeout", config["url_timeout"])

    try:
        req = urllib.request.Request(url, headers=dict(options.get("headers", {})))
        with urllib.request.urlopen(req, timeout=timeout) as response:
            # Local schemes (file://) do not return a status code
            code = response.getcode()
            if code is not None and code != 200:
                raise ContainerDecodeError(f"Fetching {url} gave non-200 response: {code}")
            return response.read()
    except ContainerDecodeError:
        raise
    except (OSError, ValueError) as e:
        raise ContainerDecodeError(f"Could not fetch container from {url}: {e}") from e


def _read_source(source: ContainerSource) -> bytes:
    """Get the encoded bytes of a container, for any type of source."""

    if isinstance(source, BufferSource):
        return bytes(source.data)

    elif isinstance(source, UrlSource):
        return _fetch_url(source.url, source.options)

    elif isinstance(source, BlobSource):
        try:
            return source.blob.read()
        except (OSError, ValueError) as e:
            raise ContainerDecodeError(f"Could not read container from blob: {e}") from e

    else:
        raise InputShapeError(f"Source of type {type(source).__name__!r} not recognized.")


def _open_container(content: bytes) -> tuple[rio.io.MemoryFile, rio.io.DatasetReader]:
    """
    Open the encoded bytes of a container.

    :param content: Bytes of the container.

    :raises ContainerDecodeError: If Rasterio cannot decode the bytes.

    :return: Memory file holding the bytes, and the dataset opened from it.
    """
    try:
        mfh = rio.io.MemoryFile(content)
    except (rio.errors.RasterioError, OSError, ValueError) as e:
        raise ContainerDecodeError(f"Could not load raster container in memory: {e}") from e

    try:
        ds = mfh.open()
    except (rio.errors.RasterioError, OSError, ValueError) as e:
        mfh.close()
        raise ContainerDecodeError(f"Could not decode raster container: {e}") from e

    return mfh, ds


def _geokeys(crs: rio.crs.CRS | None) -> dict[str, int | None]:
    """
    EPSG codes of the projected and geographic coordinate systems of a dataset CRS.

    For a projected CRS, the geographic code is that of its base geodetic CRS.
    """
    keys: dict[str, int | None] = {"ProjectedCSTypeGeoKey": None, "GeographicTypeGeoKey": None}
    if crs is None:
        return keys

    try:
        pcrs = pyproj.CRS.from_user_input(crs.to_wkt())
    except pyproj.exceptions.CRSError:
        logging.debug("CRS of the container not recognized by Pyproj, no geo-keys extracted.")
        return keys

    if pcrs.is_projected:
        keys["ProjectedCSTypeGeoKey"] = pcrs.to_epsg()
        if pcrs.geodetic_crs is not None:
            keys["GeographicTypeGeoKey"] = pcrs.geodetic_crs.to_epsg()
    elif pcrs.is_geographic:
        keys["GeographicTypeGeoKey"] = pcrs.to_epsg()

    return keys


def _projection(crs: rio.crs.CRS | None, fallback: Any = None) -> Any:
    """Spatial-reference identifier: projected code, otherwise geographic code, otherwise the fallback."""

    keys = _geokeys(crs)

    if keys["ProjectedCSTypeGeoKey"] is not None:
        return keys["ProjectedCSTypeGeoKey"]
    elif keys["GeographicTypeGeoKey"] is not None:
        return keys["GeographicTypeGeoKey"]
    else:
        return fallback


def _geometry(dataset: rio.io.DatasetReader) -> dict[str, Any]:
    """
    Image geometry of a dataset: shape, origin, signed resolution and affine transform.

    The affine transform is only returned for rotated or sheared geotransforms, the ones that a GeoTIFF stores
    as a model transformation rather than a tie point and pixel scale.
    """
    transform: Affine = dataset.transform

    return {
        "height": dataset.height,
        "width": dataset.width,
        "origin": (transform.c, transform.f),
        "resolution": (transform.a, transform.e),
        "transform": None if transform.is_rectilinear else transform,
    }


def _palette(dataset: rio.io.DatasetReader) -> list[tuple[int, int, int, int]] | None:
    """Color map of the first band as a list of (R, G, B, A) indexed by pixel value, or None if not color-mapped."""

    if dataset.count == 0 or dataset.colorinterp[0] != ColorInterp.palette:
        return None

    try:
        cmap = dataset.colormap(1)
    except ValueError:
        return None

    return [tuple(cmap[k]) for k in sorted(cmap)]  # type: ignore
