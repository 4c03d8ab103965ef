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

"""Setup of runtime configuration of parsegeoraster."""

from __future__ import annotations

import configparser
import os
from typing import Any

# The setup is inspired by that of Matplotlib and Geowombat
# https://github.com/matplotlib/matplotlib/blob/main/lib/matplotlib/rcsetup.py
# https://github.com/jgrss/geowombat/blob/main/src/geowombat/config.py

_config_ini_file = os.path.abspath(os.path.join(os.path.dirname(__file__), "config.ini"))

# Validators: to check the format of user inputs


def validate_bool(b: bool | str | int) -> bool:
    """Convert b to ``bool`` or raise."""
    if isinstance(b, str):
        b = b.lower()
    if b in ("t", "y", "yes", "on", "true", "1", 1, True):
        return True
    elif b in ("f", "n", "no", "off", "false", "0", 0, False):
        return False
    else:
        raise ValueError(f"Cannot convert {b!r} to bool")


def validate_positive_float(f: float | str | int) -> float:
    """Convert f to a strictly positive ``float`` or raise."""
    try:
        f = float(f)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Cannot convert {f!r} to float") from e
    if not f > 0:
        raise ValueError(f"Expected a strictly positive value, got {f!r}")
    return f


# Map the parameter names with a validating function to check user input
_validators = {
    "read_on_demand": validate_bool,
    "url_timeout": validate_positive_float,
}


class ParseGeoRasterConfigDict(dict):  # type: ignore
    """Class for a parsegeoraster config dictionary"""

    def __setitem__(self, k: str, v: Any) -> None:
        """We override setitem to check user input."""

        validate_func = _validators[k]
        new_value = validate_func(v)
        super().__setitem__(k, new_value)

    def _set_defaults(self, path_init_file: str) -> None:
        """Set the default values from an .ini file."""

        config_parser = configparser.ConfigParser()
        config_parser.read(path_init_file)

        for section in config_parser.sections():
            for k, v in config_parser[section].items():
                # Select validator function and update dictionary
                validate_func = _validators[k]
                self.__setitem__(k, validate_func(v))


# Generate default config dictionary
config = ParseGeoRasterConfigDict()
config._set_defaults(path_init_file=_config_ini_file)
