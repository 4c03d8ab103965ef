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

"""Module for per-band statistics."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

import numpy as np

from parsegeoraster._typing import ArrayLike, MArrayNum, NDArrayNum, Number
from parsegeoraster.exceptions import StatsComputeError

_STATS_ALIASES = {
    "max": "Max",
    "maximum": "Max",
    "min": "Min",
    "minimum": "Min",
    "range": "Range",
    "mean": "Mean",
    "std": "Standard deviation",
    "standarddeviation": "Standard deviation",
    "standard_deviation": "Standard deviation",
    "validcount": "Valid count",
    "valid_count": "Valid count",
    "totalcount": "Total count",
    "total_count": "Total count",
}

STATS_LIST = [
    "Max",
    "Min",
    "Range",
    "Mean",
    "Standard deviation",
    "Valid count",
    "Total count",
]


def _as_numeric(band: ArrayLike) -> NDArrayNum:
    """Convert a band to a numeric array, replacing non-numeric or missing samples by NaN."""

    arr = np.asarray(band)
    if arr.dtype.kind in "biuf":
        return arr

    flat = [
        float(v) if isinstance(v, (int, float, np.number)) and not isinstance(v, (bool, np.bool_)) else np.nan
        for v in arr.ravel()
    ]
    return np.asarray(flat, dtype=float).reshape(arr.shape)


def _valid_data(band: ArrayLike, nodata: Number | None) -> MArrayNum:
    """
    Mask the invalid samples of a band: non-finite values and values equal to the nodata sentinel.

    :param band: Band of samples.
    :param nodata: Nodata sentinel, or None.

    :return: Masked array of the band.
    """
    data = np.ma.masked_invalid(_as_numeric(band))
    if nodata is not None and not np.isnan(nodata):
        data = np.ma.masked_where(np.ma.getdata(data) == nodata, data)

    return data


def _statistics(
    data: ArrayLike,
    nodata: Number | None = None,
    stats_name: Sequence[str] | None = None,
) -> dict[str, Any]:
    """
    Calculate statistics of one band, ignoring the samples equal to the nodata sentinel and non-finite samples:

    - Max: maximum valid value.
    - Min: minimum valid value.
    - Range: difference between Max and Min.
    - Mean: arithmetic mean of valid values.
    - Standard deviation: spread of valid values around the mean.
    - Valid count: number of valid samples.
    - Total count: total number of samples.

    If a band has no valid samples, all statistics except the counts are NaN, which marks a statistic that
    is undefined, and a warning is logged.

    :param data: Band on which to compute statistics.
    :param nodata: Nodata sentinel of the band, or None.
    :param stats_name: List of names of the statistics to retrieve. If None, all statistics are returned.
        Accepted names are the ones of ``STATS_LIST`` and their lower-case aliases.

    :returns: A dictionary containing the calculated statistics for the band.
    """

    valid = _valid_data(data, nodata=nodata)
    valid_count = int(valid.count())

    stats_dict = {
        "Max": np.ma.max,
        "Min": np.ma.min,
        # Promoted to float, integer subtraction can overflow
        "Range": lambda x: float(np.ma.max(x)) - float(np.ma.min(x)),
        "Mean": np.ma.mean,
        "Standard deviation": np.ma.std,
        "Valid count": valid_count,
        "Total count": valid.size,
    }  # type: ignore

    if stats_name is None:
        stats_name = STATS_LIST

    if valid_count == 0:
        logging.warning("Empty band, returns NaN for all stats")

    res_dict = {}
    for name in stats_name:
        key = name if name in stats_dict else _STATS_ALIASES.get(name)
        if key is None:
            logging.warning("Statistic name '%s' is not recognized", name)
            res_dict[name] = np.nan
        elif not callable(stats_dict[key]):
            res_dict[name] = stats_dict[key]
        elif valid_count == 0:
            res_dict[name] = np.nan
        else:
            res_dict[name] = stats_dict[key](valid)  # type: ignore

    return res_dict


def _band_stats(
    values: Sequence[ArrayLike], height: int, width: int, nodata: Number | None
) -> tuple[list[Any], list[Any], list[Any]]:
    """
    Compute the maximum, minimum and range of each band.

    :param values: Bands of shape (height, width).
    :param height: Declared number of rows.
    :param width: Declared number of columns.
    :param nodata: Nodata sentinel, or None.

    :raises StatsComputeError: If a band shape is not (height, width).

    :returns: Lists of maximums, minimums and ranges, in band order.
    """

    maxs, mins, ranges = [], [], []
    for i, band in enumerate(values):
        shape = np.shape(band)
        if shape != (height, width):
            raise StatsComputeError(
                f"Band {i} has shape {shape}, inconsistent with the raster height {height} and width {width}."
            )
        stats = _statistics(band, nodata=nodata, stats_name=["Max", "Min", "Range"])
        maxs.append(stats["Max"])
        mins.append(stats["Min"])
        ranges.append(stats["Range"])

    return maxs, mins, ranges
