#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2026 NXP
#
# SPDX-License-Identifier: BSD-3-Clause

"""Boot image destination and block device probing.

A boot image is either a regular file, which grows or shrinks to fit its
content, or a raw partition (block device) whose capacity is fixed.
"""

import logging
import os
import stat
from dataclasses import dataclass, replace
from typing import Optional

from typing_extensions import Self

from akbootimg.exceptions import BootImgError, BootImgImmutableSizeError, BootImgIOError

logger = logging.getLogger(__name__)

# (offset, magic, filesystem type) of well-known filesystem superblocks
FILESYSTEM_SIGNATURES = [
    (0x0, b"hsqs", "squashfs"),
    (0x0, b"XFSB", "xfs"),
    (0x36, b"FAT12   ", "vfat"),
    (0x36, b"FAT16   ", "vfat"),
    (0x52, b"FAT32   ", "vfat"),
    (0x400, b"\x10\x20\xf5\xf2", "f2fs"),
    (0x400, b"\xe2\xe1\xf5\xe0", "erofs"),
    (0x438, b"\x53\xef", "ext4"),
    (0x10040, b"_BHRfS_M", "btrfs"),
]
_SIGNATURE_AREA_SIZE = max(offset + len(magic) for offset, magic, _ in FILESYSTEM_SIGNATURES)


def is_block_device(path: str) -> bool:
    """Check whether the path points to a block device.

    :param path: Path to check.
    :return: True for block devices, False for anything else including missing files.
    :raises BootImgIOError: The path cannot be examined.
    """
    try:
        return stat.S_ISBLK(os.stat(path).st_mode)
    except FileNotFoundError:
        return False
    except OSError as exc:
        raise BootImgIOError(f"{path}: {exc.strerror}", path=path) from exc


def get_device_size(path: str) -> int:
    """Get exact capacity of a block device (or size of a regular file).

    :param path: Path to the device.
    :return: Size in bytes.
    :raises BootImgIOError: The device cannot be opened or sought.
    """
    try:
        with open(path, "rb") as device:
            return device.seek(0, os.SEEK_END)
    except OSError as exc:
        raise BootImgIOError(f"{path}: {exc.strerror}", path=path) from exc


def detect_filesystem(path: str) -> Optional[str]:
    """Look for a well-known filesystem signature at the beginning of the device.

    :param path: Path to the device or image.
    :return: Filesystem type or None if no known signature was found.
    :raises BootImgIOError: The device cannot be read.
    """
    try:
        with open(path, "rb") as device:
            head = device.read(_SIGNATURE_AREA_SIZE)
    except OSError as exc:
        raise BootImgIOError(f"{path}: {exc.strerror}", path=path) from exc
    for offset, magic, fs_type in FILESYSTEM_SIGNATURES:
        if head[offset : offset + len(magic)] == magic:
            return fs_type
    return None


@dataclass(frozen=True)
class ImageTarget:
    """Destination boot image.

    `size` of 0 means the image is unconstrained and grows to fit its content.
    The size of a block device is fixed and comes from the device itself.
    """

    path: str
    size: int = 0
    is_block_device: bool = False

    @classmethod
    def from_existing(cls, path: str) -> Self:
        """Describe an existing image which is going to be read or updated.

        :param path: Path to the image file or block device.
        :return: Target with size of the file or capacity of the device.
        :raises BootImgIOError: The image cannot be examined.
        """
        if is_block_device(path):
            return cls(path=path, size=get_device_size(path), is_block_device=True)
        try:
            size = os.path.getsize(path)
        except OSError as exc:
            raise BootImgIOError(f"{path}: {exc.strerror}", path=path) from exc
        return cls(path=path, size=size)

    @classmethod
    def for_create(cls, path: str) -> Self:
        """Describe a boot image which is going to be created.

        Regular files are overwritten and unconstrained. Block devices keep their
        capacity, and a device carrying a recognized filesystem is refused.

        :param path: Path to the image file or block device.
        :return: Target description.
        :raises BootImgError: Device contains a valid partition type.
        """
        if not is_block_device(path):
            return cls(path=path)
        fs_type = detect_filesystem(path)
        if fs_type:
            raise BootImgError(f"{path}: refuse to write on a valid partition type ({fs_type})")
        size = get_device_size(path)
        logger.info(f"{path} is a block device of {size} bytes")
        return cls(path=path, size=size, is_block_device=True)

    def with_size(self, size: int) -> Self:
        """Get target with a new declared size.

        :param size: New total size of the image in bytes.
        :return: Updated target.
        :raises BootImgImmutableSizeError: The target is a block device of different size.
        """
        if self.is_block_device and size != self.size:
            raise BootImgImmutableSizeError(
                f"{self.path}: cannot change Boot Image size for a block device"
            )
        return replace(self, size=size)
