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

"""Functions to read raster values from a dataset and shape them into bands of rows and columns."""

from __future__ import annotations

import numpy as np
import rasterio as rio

from parsegeoraster._typing import ArrayLike, NDArrayNum
from parsegeoraster.exceptions import MaterializationError


def _unflatten(values: ArrayLike, height: int, width: int) -> NDArrayNum:
    """
    Reshape a row-major sequence of samples into an array of rows and columns.

    No interpolation or resampling is performed, the sample at flat index k lands in row k // width and
    column k % width.

    :param values: Sequence of height * width samples.
    :param height: Number of rows.
    :param width: Number of columns.

    :raises MaterializationError: If the number of samples does not match the shape.

    :return: Array of shape (height, width).
    """
    arr = np.asarray(values)
    if arr.size != height * width:
        raise MaterializationError(
            f"Cannot reshape a band of {arr.size} samples into {height} rows and {width} columns."
        )

    return arr.reshape((height, width), order="C")


def _load_rio(dataset: rio.io.DatasetReader, indexes: int | list[int] | None = None) -> NDArrayNum:
    """
    Load bands of the dataset, using :func:`rasterio.io.DatasetReader.read`.

    Ensure that the output has ``ndim=3``, with the bands along the first axis.

    :param dataset: Dataset to read (opened with :func:`rasterio.open`).
    :param indexes: Band(s) to load. Note that rasterio begins counting at 1, not 0. Default loads all bands.

    :raises MaterializationError: If the read fails.

    :return: Unmasked array of shape (count, height, width).
    """
    try:
        if indexes is None:
            data = dataset.read(masked=False)
        else:
            data = dataset.read(indexes=indexes, masked=False)
    except (rio.errors.RasterioError, OSError, IndexError, ValueError) as e:
        raise MaterializationError(f"Failed to read raster values: {e}") from e

    if data.ndim == 2:
        data = data[np.newaxis, :, :]

    return data


def _materialize(dataset: rio.io.DatasetReader, height: int, width: int) -> list[NDArrayNum]:
    """
    Read every band of the dataset into a list of arrays of ``height`` rows and ``width`` columns.

    Either all bands are returned, or an error is raised.
    """
    rasters = _load_rio(dataset)

    return [_unflatten(band, height=height, width=width) for band in rasters]
