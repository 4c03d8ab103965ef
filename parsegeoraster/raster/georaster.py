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
Module for the GeoRaster class, the in-memory descriptor of a parsed raster.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import numpy as np
import rasterio as rio

from parsegeoraster._dispatch import DecodedRequest, RasterMetadata
from parsegeoraster._typing import ArrayLike, NDArrayNum
from parsegeoraster.exceptions import InputShapeError
from parsegeoraster.raster.container import _geometry, _palette, _projection
from parsegeoraster.raster.georeferencing import _bounds, _bounds_from_geometry, _res
from parsegeoraster.raster.materialize import _materialize
from parsegeoraster.stats.stats import _band_stats, _statistics

# Names of the attributes exported by GeoRaster.to_dict()
_CANONICAL_KEYS = {
    "values": "values",
    "height": "height",
    "width": "width",
    "pixel_height": "pixelHeight",
    "pixel_width": "pixelWidth",
    "projection": "projection",
    "xmin": "xmin",
    "ymin": "ymin",
    "xmax": "xmax",
    "ymax": "ymax",
    "no_data_value": "noDataValue",
    "number_of_rasters": "numberOfRasters",
    "maxs": "maxs",
    "mins": "mins",
    "ranges": "ranges",
    "palette": "palette",
    "_data": "_data",
    "_dataset": "_geotiff",
}


class GeoRaster:
    """
    The georeferenced raster descriptor.

     Main attributes:
        values: :class:`list` of :class:`np.ndarray`
            Bands of the raster, each of shape (height, width). None if not loaded.
        height, width: :class:`int`
            Number of rows and columns shared by all bands.
        pixel_height, pixel_width: :class:`float`
            Absolute size of a pixel in projection units.
        projection: :class:`int` or other
            EPSG code of the raster, or the identifier supplied by the user.
        xmin, ymin, xmax, ymax: :class:`float`
            Extent of the raster in projection units.
        no_data_value: :class:`float`
            Nodata sentinel of the raster, or None.
        number_of_rasters: :class:`int`
            Number of bands.
        maxs, mins, ranges: :class:`list`
            Per-band maximum, minimum and range of valid values. None if not loaded.

    A raster parsed with ``read_on_demand=True`` retains its opened dataset, and its values are read with
    :func:`GeoRaster.load`.
    """

    def __init__(self) -> None:
        self.values: list[NDArrayNum] | None = None
        self.height: int | None = None
        self.width: int | None = None
        self.pixel_height: float | None = None
        self.pixel_width: float | None = None
        self.projection: Any = None
        self.xmin: float | None = None
        self.ymin: float | None = None
        self.xmax: float | None = None
        self.ymax: float | None = None
        self.no_data_value: float | None = None
        self.number_of_rasters: int | None = None
        self.maxs: list[Any] | None = None
        self.mins: list[Any] | None = None
        self.ranges: list[Any] | None = None
        self.palette: list[tuple[int, int, int, int]] | None = None

        self._data: Any = None
        self._dataset: rio.io.DatasetReader | None = None
        self._memfile: rio.io.MemoryFile | None = None

    @classmethod
    def _from_decoded(cls, request: DecodedRequest) -> GeoRaster:
        """
        Assemble a raster from decoded bands and the metadata supplied with them.

        Height and width default to the number of rows and columns of the first band, and the extent is
        derived from the upper-left corner (xmin, ymax) and the pixel size.
        """
        meta = request.metadata
        raster = cls()

        try:
            values = [np.asarray(band) for band in request.data]
        except ValueError as e:
            raise InputShapeError(f"Decoded bands must be regular arrays of rows and columns: {e}") from e
        if any(band.ndim != 2 for band in values):
            raise InputShapeError("Decoded bands must be 2-dimensional, of rows and columns.")

        raster.values = values
        raster.height = meta.height or values[0].shape[0]
        raster.width = meta.width or values[0].shape[1]
        raster.pixel_height = abs(meta.pixel_height) if meta.pixel_height is not None else None
        raster.pixel_width = abs(meta.pixel_width) if meta.pixel_width is not None else None
        raster.projection = meta.projection
        raster.xmin = meta.xmin
        raster.ymax = meta.ymax
        raster.no_data_value = meta.no_data_value
        raster.number_of_rasters = len(values)

        if raster.xmin is not None and raster.pixel_width is not None:
            raster.xmax = raster.xmin + raster.width * raster.pixel_width
        if raster.ymax is not None and raster.pixel_height is not None:
            raster.ymin = raster.ymax - raster.height * raster.pixel_height

        raster._data = None
        raster._set_stats()

        return raster

    @classmethod
    def _from_dataset(
        cls, dataset: rio.io.DatasetReader, data: Any = None, metadata: RasterMetadata | None = None
    ) -> GeoRaster:
        """
        Assemble the georeferencing of a raster from an opened dataset, without reading its values.

        :param dataset: Dataset opened from the container.
        :param data: Source of the container (bytes, URL or blob), retained on the raster.
        :param metadata: Metadata supplied by the user, of which only the projection is used as fallback.
        """
        metadata = metadata or RasterMetadata()
        raster = cls()
        raster._data = data

        raster.projection = _projection(dataset.crs, fallback=metadata.projection)

        geom = _geometry(dataset)
        raster.height = geom["height"]
        raster.width = geom["width"]
        raster.pixel_width, raster.pixel_height = _res(geom["resolution"])

        raster.xmin, raster.ymin, raster.xmax, raster.ymax = _bounds_from_geometry(**geom)

        raster.no_data_value = float(dataset.nodata) if dataset.nodata is not None else None
        raster.number_of_rasters = dataset.count
        raster.palette = _palette(dataset)

        return raster

    def _set_values(self, values: Sequence[ArrayLike]) -> None:
        """Set the bands of the raster and compute their statistics."""

        self.values = [np.asarray(band) for band in values]
        self._set_stats()

    def _set_stats(self) -> None:
        """Compute the per-band maximum, minimum and range of the loaded values."""

        self.maxs, self.mins, self.ranges = _band_stats(
            self.values, height=self.height, width=self.width, nodata=self.no_data_value  # type: ignore
        )

    @property
    def is_loaded(self) -> bool:
        """Whether the raster values are loaded in memory."""
        return self.values is not None

    @property
    def bounds(self) -> rio.coords.BoundingBox:
        """Bounding box of the raster."""
        return _bounds((self.xmin, self.ymin, self.xmax, self.ymax))  # type: ignore

    @property
    def shape(self) -> tuple[int | None, int | None, int | None]:
        """Shape of the raster (count, height, width)."""
        return self.number_of_rasters, self.height, self.width

    def load(self) -> None:
        """
        Load the raster values from the retained dataset, and compute their statistics.

        :raises ValueError: If the values are already loaded.
        :raises AttributeError: If no dataset is retained (already closed).
        """
        if self.is_loaded:
            raise ValueError("Values are already loaded.")

        if self._dataset is None or self._dataset.closed:
            raise AttributeError("Cannot load as no opened dataset is retained. Was the raster closed?")

        self._set_values(_materialize(self._dataset, height=self.height, width=self.width))  # type: ignore

    def close(self) -> None:
        """Release the dataset retained for reading values on demand."""

        if self._dataset is not None:
            self._dataset.close()
            self._dataset = None
        if self._memfile is not None:
            self._memfile.close()
            self._memfile = None

    def get_stats(
        self, stats_name: str | list[str] | None = None
    ) -> list[dict[str, Any]] | list[Any]:
        """
        Retrieve statistics of each band, ignoring nodata and non-finite values.

        Values are loaded first if they were deferred.

        :param stats_name: Name or list of names of the statistics to retrieve. If None, all statistics are
            returned. See :data:`parsegeoraster.stats.STATS_LIST`.

        :returns: For each band, the value of the statistic if a single name was passed, or a dictionary of
            statistics otherwise.
        """
        if not self.is_loaded:
            self.load()

        bands: list[NDArrayNum] = self.values  # type: ignore

        if isinstance(stats_name, str):
            return [_statistics(band, nodata=self.no_data_value, stats_name=[stats_name])[stats_name] for band in bands]

        return [_statistics(band, nodata=self.no_data_value, stats_name=stats_name) for band in bands]

    def to_dict(self) -> dict[str, Any]:
        """Export the raster as a dictionary with canonical (camelCase) keys, omitting unloaded values."""

        out = {key: getattr(self, attr) for attr, key in _CANONICAL_KEYS.items()}
        if not self.is_loaded:
            for key in ["values", "maxs", "mins", "ranges"]:
                del out[key]
        if self._dataset is None:
            del out["_geotiff"]

        return out

    def __repr__(self) -> str:
        if not self.is_loaded:
            str_values = "not_loaded; shape on disk " + str(self.shape)
        else:
            str_values = "\n       ".join("\n".join(str(band) for band in self.values).split("\n"))  # type: ignore

        return (
            f"GeoRaster(\n"
            f"  values={str_values}\n"
            f"  bounds={self.bounds}\n"
            f"  res=({self.pixel_width}, {self.pixel_height})\n"
            f"  projection={self.projection}\n"
            f"  nodata={self.no_data_value})"
        )
