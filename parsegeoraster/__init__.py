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
parsegeoraster is a Python package to parse geospatial rasters into georeferenced descriptors.
"""

from parsegeoraster._config import config  # noqa
from parsegeoraster._dispatch import (  # noqa
    BlobSource,
    BufferSource,
    ContainerRequest,
    DecodedRequest,
    RasterMetadata,
    UrlSource,
)
from parsegeoraster.exceptions import (  # noqa
    ContainerDecodeError,
    InputShapeError,
    MaterializationError,
    StatsComputeError,
)

from parsegeoraster.raster import GeoRaster  # noqa isort:skip
from parsegeoraster.parse import parse_data, parse_data_sync  # noqa isort:skip

try:
    from parsegeoraster.version import version as __version__  # noqa
except ImportError:  # pragma: no cover
    raise ImportError(
        "parsegeoraster is not properly installed. If you are "
        "running from the source directory, please instead "
        "create a new virtual environment (using conda or "
        "virtualenv) and then install it in-place by running: "
        "pip install -e ."
    )
