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

"""Functions for consistent input checks and dispatching of parse requests."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, replace
from typing import Any, Union

import numpy as np

from parsegeoraster._config import config
from parsegeoraster._typing import ArrayLike, BlobLike, BytesLike, Number
from parsegeoraster.exceptions import InputShapeError

# Request types: one variant per input modality
###############################################


@dataclass(frozen=True)
class RasterMetadata:
    """Georeferencing metadata supplied by the caller, used as fallback or override values."""

    height: int | None = None
    width: int | None = None
    pixel_height: Number | None = None
    pixel_width: Number | None = None
    projection: Any = None
    xmin: Number | None = None
    ymax: Number | None = None
    no_data_value: Number | None = None

    # Canonical (camelCase) names of the metadata keys
    _KEYS = {
        "height": "height",
        "width": "width",
        "pixelHeight": "pixel_height",
        "pixelWidth": "pixel_width",
        "projection": "projection",
        "xmin": "xmin",
        "ymax": "ymax",
        "noDataValue": "no_data_value",
    }

    @classmethod
    def from_dict(cls, metadata: Mapping[str, Any] | None) -> RasterMetadata:
        """Create metadata from a mapping with canonical (camelCase) or snake_case keys, ignoring other keys."""

        if metadata is None:
            return cls()

        kwargs = {}
        for key, value in metadata.items():
            if key in cls._KEYS:
                kwargs[cls._KEYS[key]] = value
            elif key in cls._KEYS.values():
                kwargs[key] = value

        return cls(**kwargs)


@dataclass(frozen=True)
class BufferSource:
    """Encoded container held in memory."""

    data: BytesLike


@dataclass(frozen=True)
class UrlSource:
    """Encoded container to fetch from a URL, with options passed to the fetcher."""

    url: str
    options: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class BlobSource:
    """Encoded container readable from a binary file-like object."""

    blob: BlobLike


ContainerSource = Union[BufferSource, UrlSource, BlobSource]


@dataclass(frozen=True)
class DecodedRequest:
    """Already-decoded per-band pixel arrays with their georeferencing metadata."""

    data: Sequence[ArrayLike]
    metadata: RasterMetadata = field(default_factory=RasterMetadata)


@dataclass(frozen=True)
class ContainerRequest:
    """Encoded raster container, read eagerly or on demand."""

    source: ContainerSource
    metadata: RasterMetadata = field(default_factory=RasterMetadata)
    read_on_demand: bool | None = None


ParseRequest = Union[DecodedRequest, ContainerRequest]

# Names accepted for the modalities, including the historical ones
_RASTER_TYPES = {"decoded": "decoded", "object": "decoded", "container": "container", "geotiff": "container"}
_SOURCE_TYPES = {"buffer": "buffer", "ArrayBuffer": "buffer", "url": "url", "blob": "blob", "Blob": "blob"}


# Checks on user input
######################


def _check_decoded_data(data: Any) -> list[ArrayLike]:
    """Check that decoded data is a non-empty sequence of bands."""

    if isinstance(data, np.ndarray):
        if data.ndim == 2:
            data = data[np.newaxis, :, :]
        if data.ndim != 3:
            raise InputShapeError(f"Decoded data must be a 2D or 3D array, got {data.ndim} dimensions.")
        data = list(data)

    elif not isinstance(data, Sequence) or isinstance(data, (str, bytes)):
        raise InputShapeError(
            f"Decoded data must be a sequence of bands, got object of type {type(data).__name__!r}."
        )

    if len(data) == 0:
        raise InputShapeError("Decoded data must contain at least one band.")

    return list(data)


def _check_nodata(nodata: Any) -> Number | None:
    """Check that a nodata value is numeric, converting numeric strings."""

    if nodata is None or (isinstance(nodata, (int, float, np.number)) and not isinstance(nodata, (bool, np.bool_))):
        return nodata

    try:
        return float(nodata)
    except (TypeError, ValueError) as e:
        raise InputShapeError(f"Nodata value must be numeric, got {nodata!r}.") from e


def _check_metadata(metadata: Any) -> RasterMetadata:
    """Function for checking and normalizing caller metadata consistently."""

    if not isinstance(metadata, RasterMetadata):
        metadata = RasterMetadata.from_dict(metadata)

    return replace(metadata, no_data_value=_check_nodata(metadata.no_data_value))


def _check_source(data: Any, source_type: str | None, options: Mapping[str, Any] | None) -> ContainerSource:
    """Function for checking and normalizing the source of an encoded container consistently."""

    # Buffer is the default
    source_type = "buffer" if source_type is None else _SOURCE_TYPES.get(source_type)

    if source_type == "buffer":
        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise InputShapeError(f"A buffer source must be bytes-like, got {type(data).__name__!r}.")
        logging.debug("Match source input: using in-memory buffer.")
        return BufferSource(data)

    elif source_type == "url":
        if not isinstance(data, str):
            raise InputShapeError(f"A URL source must be a string, got {type(data).__name__!r}.")
        logging.debug("Match source input: using URL.")
        return UrlSource(data, options=dict(options or {}))

    elif source_type == "blob":
        if not hasattr(data, "read"):
            raise InputShapeError(f"A blob source must be a binary file-like object, got {type(data).__name__!r}.")
        logging.debug("Match source input: using blob.")
        return BlobSource(data)

    else:
        raise InputShapeError(
            "Source type not recognized, expected one of " + ", ".join(repr(k) for k in _SOURCE_TYPES) + "."
        )


def _check_request(request: ParseRequest | Mapping[str, Any]) -> ParseRequest:
    """
    Function for checking and normalizing a parse request consistently.

    :param request: Either a request object, or a mapping with keys 'rasterType', 'data', 'sourceType',
        'options', 'metadata' and 'readOnDemand'.

    :raises InputShapeError: If the raster type or the source type is not recognized, or the nodata value is
        not numeric.

    :return: Request object.
    """

    if isinstance(request, DecodedRequest):
        return DecodedRequest(_check_decoded_data(request.data), metadata=_check_metadata(request.metadata))

    elif isinstance(request, ContainerRequest):
        return replace(request, metadata=_check_metadata(request.metadata))

    elif not isinstance(request, Mapping):
        raise InputShapeError(
            f"Cannot interpret request of type {type(request).__name__!r}. Expected a mapping with a "
            f"'rasterType' key, a DecodedRequest or a ContainerRequest."
        )

    metadata = _check_metadata(request.get("metadata"))

    raster_type = _RASTER_TYPES.get(request.get("rasterType"))  # type: ignore

    if raster_type == "decoded":
        logging.debug("Match request input: using decoded arrays.")
        return DecodedRequest(_check_decoded_data(request.get("data")), metadata=metadata)

    elif raster_type == "container":
        logging.debug("Match request input: using encoded container.")
        source = _check_source(request.get("data"), request.get("sourceType"), request.get("options"))
        return ContainerRequest(source, metadata=metadata, read_on_demand=request.get("readOnDemand"))

    else:
        raise InputShapeError(
            f"Raster type {request.get('rasterType')!r} not recognized, expected one of "
            + ", ".join(repr(k) for k in _RASTER_TYPES)
            + "."
        )


def _read_on_demand(request: ContainerRequest) -> bool:
    """Whether to defer reading the values of a container, defaulting to the global config."""

    if request.read_on_demand is None:
        return config["read_on_demand"]
    return bool(request.read_on_demand)
