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

"""Exceptions raised while parsing a raster into a descriptor."""

from __future__ import annotations


class InputShapeError(ValueError):
    """Raised when the raster type, source type or content of a request is not recognized."""


class ContainerDecodeError(OSError):
    """Raised when an encoded raster container cannot be fetched or opened."""


class MaterializationError(OSError):
    """Raised when raster values cannot be read from a container, or reshaped into bands."""


class StatsComputeError(ValueError):
    """Raised when a band shape is inconsistent with the declared height and width."""
