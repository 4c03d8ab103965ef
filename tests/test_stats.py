"""Test the per-band statistics, that only examine valid samples."""

from __future__ import annotations

import logging

import numpy as np
import pytest

from parsegeoraster.exceptions import StatsComputeError
from parsegeoraster.stats import STATS_LIST
from parsegeoraster.stats.stats import _band_stats, _statistics, _valid_data

stat_types = (int, float, np.integer, np.floating)


class TestStats:
    def test_statistics__excludes_nodata(self) -> None:
        """Check that samples equal to the sentinel are ignored."""

        band = np.array([[1, 2], [-9999, 4]])
        stats = _statistics(band, nodata=-9999, stats_name=["Max", "Min", "Range"])

        assert stats == {"Max": 4, "Min": 1, "Range": 3}

    def test_statistics__excludes_non_finite(self) -> None:
        """Check that NaN, infinite, missing and non-numeric samples are ignored."""

        band = np.array([[1.0, np.nan], [np.inf, 5.0]])
        stats = _statistics(band, nodata=None)
        assert stats["Max"] == 5
        assert stats["Min"] == 1
        assert stats["Valid count"] == 2
        assert stats["Total count"] == 4

        band_obj = [[1, None], ["a", 7]]
        stats_obj = _statistics(band_obj, nodata=None, stats_name=["max", "min", "range"])
        assert stats_obj == {"max": 7, "min": 1, "range": 6}

    def test_statistics__signed_integer_limits(self) -> None:
        """Check that the range of signed integer bands spanning their whole type range does not wrap around."""

        band = np.array([[-30000, 30000], [0, 1]], dtype="int16")
        stats = _statistics(band, stats_name=["Max", "Min", "Range"])
        assert stats == {"Max": 30000, "Min": -30000, "Range": 60000}

        band8 = np.array([[-128, 127], [0, 1]], dtype="int8")
        assert _statistics(band8, nodata=0, stats_name=["Range"])["Range"] == 255

        maxs, mins, ranges = _band_stats([band8], height=2, width=2, nodata=None)
        assert (maxs, mins, ranges) == ([127], [-128], [255])

    def test_statistics__nan_nodata(self) -> None:
        """Check that a NaN sentinel is supported."""

        band = np.array([[np.nan, 2.0], [3.0, 8.0]])
        stats = _statistics(band, nodata=np.nan, stats_name=["Range"])
        assert stats["Range"] == 6

    def test_statistics__all_stats(self) -> None:
        """Check that all statistics are returned by default, with numeric types."""

        band = np.arange(12, dtype="float32").reshape((3, 4))
        stats = _statistics(band, nodata=0)

        assert list(stats.keys()) == STATS_LIST
        for name in STATS_LIST:
            assert isinstance(stats[name], stat_types)
        assert stats["Mean"] == pytest.approx(6.0)
        assert stats["Standard deviation"] == pytest.approx(np.std(np.arange(1, 12)), rel=1e-5)
        assert stats["Valid count"] == 11
        assert stats["Total count"] == 12

    def test_statistics__empty_band(self, caplog) -> None:  # type: ignore
        """Check that a band of only nodata gives NaN statistics and a warning, rather than failing."""

        band = np.full((2, 2), -9999)
        with caplog.at_level(logging.WARNING):
            stats = _statistics(band, nodata=-9999)
        assert "Empty band, returns NaN for all stats" in caplog.text

        for name in ["Max", "Min", "Range", "Mean", "Standard deviation"]:
            assert np.isnan(stats[name])
        assert stats["Valid count"] == 0
        assert stats["Total count"] == 4

    def test_statistics__unknown_name(self, caplog) -> None:  # type: ignore
        with caplog.at_level(logging.WARNING):
            stats = _statistics(np.ones((2, 2)), stats_name=["lol"])
        assert "Statistic name 'lol' is not recognized" in caplog.text
        assert np.isnan(stats["lol"])

    def test_valid_data(self) -> None:
        valid = _valid_data(np.array([[1, 2], [3, 0]]), nodata=0)
        assert np.array_equal(np.ma.getmaskarray(valid), [[False, False], [False, True]])

    def test_band_stats(self) -> None:
        """Check the maximums, minimums and ranges of several bands."""

        values = [np.array([[1, 2], [-1, 4]]), np.array([[-1, -1], [10, 20]]), np.full((2, 2), -1)]
        maxs, mins, ranges = _band_stats(values, height=2, width=2, nodata=-1)

        assert maxs[:2] == [4, 20]
        assert mins[:2] == [1, 10]
        assert ranges[:2] == [3, 10]
        assert len(maxs) == len(mins) == len(ranges) == 3
        assert np.isnan(maxs[2]) and np.isnan(mins[2]) and np.isnan(ranges[2])

    def test_band_stats__inconsistent_shape(self) -> None:
        """Check that a band not matching the height and width raises an error."""

        values = [np.ones((2, 2)), np.ones((2, 3))]
        with pytest.raises(StatsComputeError, match="Band 1 has shape"):
            _band_stats(values, height=2, width=2, nodata=None)
