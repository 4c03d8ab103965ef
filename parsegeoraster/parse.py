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
Parsing of decoded arrays or encoded containers into a georeferenced raster descriptor.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import Any

from parsegeoraster._dispatch import (
    BlobSource,
    BufferSource,
    ContainerRequest,
    ContainerSource,
    DecodedRequest,
    ParseRequest,
    UrlSource,
    _check_request,
    _read_on_demand,
)
from parsegeoraster.exceptions import InputShapeError
from parsegeoraster.raster.container import _open_container, _read_source
from parsegeoraster.raster.georaster import GeoRaster
from parsegeoraster.raster.materialize import _materialize


def _log(debug: bool, msg: str, *args: Any) -> None:
    """Log a diagnostic message, at INFO level if debugging was requested, at DEBUG level otherwise."""
    logging.log(logging.INFO if debug else logging.DEBUG, msg, *args)


def _source_data(source: ContainerSource) -> Any:
    """Raw source of a container, as retained on the raster."""

    if isinstance(source, BufferSource):
        return source.data
    elif isinstance(source, UrlSource):
        return source.url
    elif isinstance(source, BlobSource):
        return source.blob
    else:
        raise InputShapeError(f"Source of type {type(source).__name__!r} not recognized.")


async def _parse_decoded(request: DecodedRequest, debug: bool) -> GeoRaster:
    """Assemble a raster from decoded bands, and compute their statistics."""

    _log(debug, "Parsing %d decoded band(s).", len(request.data))
    raster = GeoRaster._from_decoded(request)
    _log(debug, "Bounding box: %s", tuple(raster.bounds))

    return raster


async def _parse_container(request: ContainerRequest, debug: bool) -> GeoRaster:
    """
    Open an encoded container, resolve its georeferencing, then read its values unless they are deferred.

    Blocking I/O runs in the default executor of the event loop.
    """
    loop = asyncio.get_running_loop()
    read_on_demand = _read_on_demand(request)

    _log(debug, "Parsing container from %s source.", type(request.source).__name__)
    content = await loop.run_in_executor(None, _read_source, request.source)
    mfh, ds = await loop.run_in_executor(None, _open_container, content)
    _log(debug, "Opened dataset with driver %s.", ds.driver)

    keep_open = False
    try:
        raster = GeoRaster._from_dataset(ds, data=_source_data(request.source), metadata=request.metadata)
        _log(debug, "Projection: %s", raster.projection)
        _log(debug, "Height: %s, width: %s", raster.height, raster.width)
        _log(debug, "Bounding box: %s", tuple(raster.bounds))

        if read_on_demand:
            _log(debug, "Values deferred, retaining the dataset.")
            raster._dataset, raster._memfile = ds, mfh
            keep_open = True
            return raster

        values = await loop.run_in_executor(None, _materialize, ds, raster.height, raster.width)
        raster._set_values(values)
        _log(debug, "Loaded %d band(s).", len(values))

        return raster
    finally:
        if not keep_open:
            ds.close()
            mfh.close()


async def parse_data(request: ParseRequest | Mapping[str, Any], debug: bool = False) -> GeoRaster:
    """
    Parse a raster into a georeferenced descriptor.

    The request is either a :class:`DecodedRequest`, a :class:`ContainerRequest`, or a mapping with keys:

    - "rasterType": "decoded" for per-band arrays, or "container" for an encoded container (GeoTIFF),
    - "data": bands of rows and columns, or the bytes, URL or binary file-like object of the container,
    - "sourceType": "buffer" (default), "url" or "blob", for a container,
    - "options": fetch options for a URL ("headers", "timeout"),
    - "metadata": "height", "width", "pixelHeight", "pixelWidth", "projection", "xmin", "ymax", "noDataValue",
    - "readOnDemand": whether to defer reading the values of a container.

    :param request: Parse request.
    :param debug: Whether to log diagnostic messages at INFO level.

    :raises InputShapeError: If the request is not recognized.
    :raises ContainerDecodeError: If the container cannot be fetched or decoded.
    :raises MaterializationError: If the values of the container cannot be read.
    :raises StatsComputeError: If a band is inconsistent with the height and width.

    :return: Raster descriptor, with values and statistics unless they are deferred.
    """
    try:
        req = _check_request(request)

        if isinstance(req, DecodedRequest):
            return await _parse_decoded(req, debug=debug)
        elif isinstance(req, ContainerRequest):
            return await _parse_container(req, debug=debug)
        else:
            raise InputShapeError(f"Request of type {type(req).__name__!r} not recognized.")

    except Exception as e:
        logging.error("error parsing georaster: %s", e)
        raise


def parse_data_sync(request: ParseRequest | Mapping[str, Any], debug: bool = False) -> GeoRaster:
    """Parse a raster into a georeferenced descriptor, outside of an event loop. See :func:`parse_data`."""

    return asyncio.run(parse_data(request, debug=debug))
