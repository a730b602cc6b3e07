#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2026 NXP
#
# SPDX-License-Identifier: BSD-3-Clause

"""akbootimg exception classes.

Every error raised by the boot image codec derives from BootImgError, so callers
(the command line tool in particular) can catch the whole family at once.
"""

from typing import Optional

#######################################################################
# # Boot image exceptions
#######################################################################


class BootImgError(Exception):
    """akbootimg base exception.

    Base exception class for all errors raised by the boot image codec.

    :cvar fmt: Default error message format template.
    """

    fmt = "akbootimg: {description}"

    def __init__(self, desc: Optional[str] = None) -> None:
        """Initialize the base exception.

        :param desc: Optional description of the exception.
        """
        super().__init__()
        self.description = desc

    def __str__(self) -> str:
        """Return string representation of the exception.

        :return: Formatted exception message as string.
        """
        return self.fmt.format(description=self.description or "Unknown Error")


class BootImgValueError(BootImgError, ValueError):
    """Invalid value passed to a codec operation."""


class BootImgKeyError(BootImgError, KeyError):
    """Lookup of a missing key, e.g. an unknown enum label."""


class BootImgTypeError(BootImgError, TypeError):
    """Value of an unexpected type passed to a codec operation."""


class BootImgFormatError(BootImgError):
    """Boot image cannot be unpacked.

    Raised for a bad magic value, a truncated header, a null kernel size or
    a null (or too small) page size.
    """


class BootImgCapacityError(BootImgError):
    """Computed layout does not fit into the available image size."""


class BootImgOversizeError(BootImgCapacityError):
    """Updated content is too big for the declared size of the target image."""


class BootImgImmutableSizeError(BootImgError):
    """Attempt to change the size of a fixed-capacity target (block device)."""


class BootImgConfigError(BootImgError, ValueError):
    """Malformed or unrecognized configuration entry."""


class BootImgIOError(BootImgError, IOError):
    """Underlying read, write, seek or stat failure.

    The offending path is kept in the `path` attribute.
    """

    def __init__(self, desc: Optional[str] = None, path: Optional[str] = None) -> None:
        """Initialize the IO error.

        :param desc: Description of the failure.
        :param path: Path of the file the failure relates to.
        """
        super().__init__(desc)
        self.path = path
