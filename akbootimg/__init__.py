#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2026 NXP
#
# SPDX-License-Identifier: BSD-3-Clause

"""akbootimg - Manipulate (read, modify, create) Android boot images.

The package offers:
    - A pure Python codec for the Android boot image header and its page-aligned layout
    - Extraction of kernel, ramdisk and second stage into standalone files
    - In-place update and creation of boot images driven by a textual configuration
    - The `akbootimg` command line tool built on top of the library
"""

import os
from typing import Optional, Union

from packaging.version import Version, parse
from platformdirs import PlatformDirs


def get_akbootimg_version() -> Version:
    """Get akbootimg version information.

    :return: Parsed version object containing akbootimg version information.
    """
    from .__version__ import __version__ as akbootimg_version

    return parse(akbootimg_version)


def value_to_bool(value: Optional[Union[bool, int, str]]) -> bool:
    """Convert value to boolean from various input formats.

    Supports conversion from string representations like "True", "true", "T", "1"
    and standard Python truthy/falsy values for other types.

    :param value: Value to convert to boolean (string, int, bool, or None).
    :return: Boolean representation of the input value.
    """
    if isinstance(value, str):
        return value in ("True", "true", "T", "1")
    return bool(value)


version = get_akbootimg_version()

__author__ = "NXP"
__license__ = "BSD-3-Clause"
__version__ = str(version)

AKBOOTIMG_VERSION_BASE = version.base_version
AKBOOTIMG_PLATFORM_DIRS = PlatformDirs(
    appauthor="nxp",
    appname="akbootimg",
    version=AKBOOTIMG_VERSION_BASE,
)

AKBOOTIMG_DEBUG = value_to_bool(os.environ.get("AKBOOTIMG_DEBUG"))

AKBOOTIMG_DEBUG_LOGGING_DISABLED = value_to_bool(
    os.environ.get("AKBOOTIMG_DEBUG_LOGGING_DISABLED")
)
AKBOOTIMG_DEBUG_LOG_FILE = os.environ.get(
    "AKBOOTIMG_DEBUG_LOG_FILE",
    os.path.join(AKBOOTIMG_PLATFORM_DIRS.user_log_dir, "debug.log"),
)

# additional place to look for the logging.yaml configuration
AKBOOTIMG_USER_CONFIG_DIR = os.path.expanduser("~/.akbootimg")
