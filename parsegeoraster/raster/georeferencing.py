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
Functions for deriving the georeferencing (extent and resolution) of a raster from its image geometry.
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np
import rasterio as rio
from affine import Affine

from parsegeoraster._typing import BoundsLike, Number


def _affine_from_model_transformation(coefs: Sequence[Number]) -> Affine:
    """
    Convert the coefficients of a GeoTIFF ModelTransformation tag into an affine transform.

    The tag stores a 4x4 matrix in row-major order, of which the first 8 coefficients (a, b, c, d, e, f, g, h)
    map pixel coordinates (I, J) to X = d + a * I + b * J and Y = h + e * I + f * J.

    :param coefs: Sequence of at least 8 coefficients.

    :return: Affine transform.
    """
    if len(coefs) < 8:
        raise ValueError(f"A model transformation needs at least 8 coefficients, got {len(coefs)}.")

    a, b, _, d, e, f, _, h = (float(c) for c in coefs[:8])

    return Affine(a, b, d, e, f, h)


def _res(resolution: tuple[Number, Number]) -> tuple[float, float]:
    """Absolute pixel width and height from a signed (X, Y) resolution."""

    return abs(float(resolution[0])), abs(float(resolution[1]))


def _bounds_from_transform(transform: Affine, shape: tuple[int, int]) -> BoundsLike:
    """
    Bounding box of a raster from its affine transform, projecting the four pixel-space corners.

    Works with rotated or sheared transforms, for which the extent is the envelope of the corners.

    :param transform: Affine transform mapping (column, row) to (X, Y).
    :param shape: Shape of the raster (height, width).

    :return: Bounding box (xmin, ymin, xmax, ymax).
    """
    height, width = shape

    corners_i = np.array([0, 0, width, width])
    corners_j = np.array([0, height, 0, height])

    xs = transform.c + transform.a * corners_i + transform.b * corners_j
    ys = transform.f + transform.d * corners_i + transform.e * corners_j

    return float(np.min(xs)), float(np.min(ys)), float(np.max(xs)), float(np.max(ys))


def _bounds_from_origin_res(
    origin: tuple[Number, Number], resolution: tuple[Number, Number], shape: tuple[int, int]
) -> BoundsLike:
    """
    Bounding box of a raster from its origin and signed resolution.

    The opposite corner is origin + resolution * size on each axis, so that both north-up (negative Y resolution)
    and south-up (positive Y resolution) rasters give ordered bounds.

    :param origin: Coordinates (X, Y) of the raster origin, the upper-left corner for a north-up raster.
    :param resolution: Signed pixel size along (X, Y).
    :param shape: Shape of the raster (height, width).

    :return: Bounding box (xmin, ymin, xmax, ymax).
    """
    height, width = shape

    x1, y1 = float(origin[0]), float(origin[1])
    x2 = x1 + float(resolution[0]) * width
    y2 = y1 + float(resolution[1]) * height

    return min(x1, x2), min(y1, y2), max(x1, x2), max(y1, y2)


def _bounds_from_geometry(
    height: int,
    width: int,
    origin: tuple[Number, Number] | None = None,
    resolution: tuple[Number, Number] | None = None,
    transform: Affine | Sequence[Number] | None = None,
    tilegrid: bool = False,
) -> BoundsLike:
    """
    Bounding box of a raster from its image geometry.

    The affine transform is used when it exists, unless a tile-grid context explicitly requests the
    origin and resolution computation.

    :param height: Number of rows.
    :param width: Number of columns.
    :param origin: Coordinates (X, Y) of the raster origin.
    :param resolution: Signed pixel size along (X, Y).
    :param transform: Affine transform, or the coefficients of a GeoTIFF ModelTransformation tag.
    :param tilegrid: Whether to force the origin and resolution computation.

    :return: Bounding box (xmin, ymin, xmax, ymax).
    """

    if transform is not None and not tilegrid:
        if not isinstance(transform, Affine):
            transform = _affine_from_model_transformation(transform)
        return _bounds_from_transform(transform, shape=(height, width))

    if origin is None or resolution is None:
        raise ValueError("Both 'origin' and 'resolution' must be given when no affine transform is used.")

    return _bounds_from_origin_res(origin, resolution, shape=(height, width))


def _bounds(bounds: BoundsLike) -> rio.coords.BoundingBox:
    """Convert bounds (xmin, ymin, xmax, ymax) into a bounding box object."""

    return rio.coords.BoundingBox(*bounds)
