#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2026 NXP
#
# SPDX-License-Identifier: BSD-3-Clause

"""Android boot image header.

The header is the fixed 608 bytes record stored at the beginning of the first
page of the image (boot image version 0)::

    struct boot_img_hdr {
        unsigned char magic[8];       /* "ANDROID!" */
        unsigned kernel_size;
        unsigned kernel_addr;
        unsigned ramdisk_size;
        unsigned ramdisk_addr;
        unsigned second_size;
        unsigned second_addr;
        unsigned tags_addr;
        unsigned page_size;
        unsigned unused[2];
        unsigned char name[16];
        unsigned char cmdline[512];
        unsigned id[8];
    };
"""

import logging
from dataclasses import dataclass, replace
from struct import calcsize, pack, unpack_from

from typing_extensions import Self

from akbootimg.exceptions import (
    BootImgCapacityError,
    BootImgFormatError,
    BootImgValueError,
)
from akbootimg.image.layout import Layout, calc_layout
from akbootimg.image.segment_kind import SegmentKind
from akbootimg.utils.abstract import BaseClass

logger = logging.getLogger(__name__)

BOOT_MAGIC = b"ANDROID!"
BOOT_MAGIC_SIZE = len(BOOT_MAGIC)
BOOT_NAME_SIZE = 16
BOOT_ARGS_SIZE = 512
BOOT_ID_SIZE = 32
BOOT_UNUSED_SIZE = 8

DEFAULT_PAGE_SIZE = 2048
MAX_FIELD_VALUE = 0xFFFF_FFFF

# raw command line bytes that are not valid UTF-8 map to surrogate escapes and back
CMDLINE_ENCODING = "utf-8"
CMDLINE_ERRORS = "surrogateescape"

_SIZE_FIELDS = {
    SegmentKind.KERNEL: "kernel_size",
    SegmentKind.RAMDISK: "ramdisk_size",
    SegmentKind.SECOND: "second_size",
}


@dataclass(frozen=True)
class BootImgHeader(BaseClass):
    """Boot image header record.

    The object is immutable, every modification returns a new header.
    Reserved fields (`unused`, `name`, `id`) are carried through unmodified.
    """

    FORMAT = "<8s8I8s16s512s32s"
    SIZE = calcsize(FORMAT)

    magic: bytes = BOOT_MAGIC
    kernel_size: int = 0
    kernel_addr: int = 0
    ramdisk_size: int = 0
    ramdisk_addr: int = 0
    second_size: int = 0
    second_addr: int = 0
    tags_addr: int = 0
    page_size: int = DEFAULT_PAGE_SIZE
    unused: bytes = bytes(BOOT_UNUSED_SIZE)
    name: bytes = bytes(BOOT_NAME_SIZE)
    cmdline: bytes = bytes(BOOT_ARGS_SIZE)
    id: bytes = bytes(BOOT_ID_SIZE)

    @classmethod
    def default(cls) -> Self:
        """Get header of a new image: magic stamped, all sizes zero, default page size."""
        return cls()

    @property
    def cmdline_text(self) -> str:
        """Kernel command line up to the terminating zero."""
        return self.cmdline.split(b"\x00", 1)[0].decode(CMDLINE_ENCODING, errors=CMDLINE_ERRORS)

    @property
    def layout(self) -> Layout:
        """Page layout computed from sizes stored in the header."""
        return calc_layout(self.page_size, self.kernel_size, self.ramdisk_size, self.second_size)

    def segment_size(self, kind: SegmentKind) -> int:
        """Get size of given segment as declared in the header.

        :param kind: Segment kind.
        :return: Size of the segment in bytes.
        """
        return getattr(self, _SIZE_FIELDS[kind])

    def with_segment_size(self, kind: SegmentKind, size: int) -> Self:
        """Get copy of the header with updated segment size.

        :param kind: Segment kind.
        :param size: New size of the segment in bytes.
        :return: Updated header.
        :raises BootImgValueError: Size doesn't fit into the header field.
        """
        if not 0 <= size <= MAX_FIELD_VALUE:
            raise BootImgValueError(f"Invalid {kind.description.lower()} size: {size}")
        return replace(self, **{_SIZE_FIELDS[kind]: size})

    def with_cmdline(self, cmdline: str) -> Self:
        """Get copy of the header with new kernel command line.

        :param cmdline: Kernel command line.
        :return: Updated header.
        :raises BootImgValueError: Command line doesn't fit into the header field.
        """
        raw = cmdline.encode(CMDLINE_ENCODING, errors=CMDLINE_ERRORS)
        if len(raw) >= BOOT_ARGS_SIZE:
            raise BootImgValueError(
                f"cmdline length ({len(raw)}) is too long (max {BOOT_ARGS_SIZE - 1})"
            )
        return replace(self, cmdline=raw.ljust(BOOT_ARGS_SIZE, b"\x00"))

    def __str__(self) -> str:
        return (
            f"Boot image header <page size: {self.page_size}, kernel: {self.kernel_size}B "
            f"@ {self.kernel_addr:#x}, ramdisk: {self.ramdisk_size}B @ {self.ramdisk_addr:#x}, "
            f"second: {self.second_size}B @ {self.second_addr:#x}, tags @ {self.tags_addr:#x}>"
        )

    def export(self) -> bytes:
        """Binary representation of the header."""
        return pack(
            self.FORMAT,
            self.magic,
            self.kernel_size,
            self.kernel_addr,
            self.ramdisk_size,
            self.ramdisk_addr,
            self.second_size,
            self.second_addr,
            self.tags_addr,
            self.page_size,
            self.unused,
            self.name,
            self.cmdline,
            self.id,
        )

    @classmethod
    def parse(cls, data: bytes) -> Self:
        """Parse and validate header.

        :param data: Raw data as bytes, at least the header record.
        :return: Header object
        :raises BootImgFormatError: Data do not contain a valid boot image header.
        """
        if len(data) < cls.SIZE:
            raise BootImgFormatError(
                f"cannot read image header, {len(data)} bytes available, {cls.SIZE} required"
            )
        (
            magic,
            kernel_size,
            kernel_addr,
            ramdisk_size,
            ramdisk_addr,
            second_size,
            second_addr,
            tags_addr,
            page_size,
            unused,
            name,
            cmdline,
            boot_id,
        ) = unpack_from(cls.FORMAT, data)
        header = cls(
            magic=magic,
            kernel_size=kernel_size,
            kernel_addr=kernel_addr,
            ramdisk_size=ramdisk_size,
            ramdisk_addr=ramdisk_addr,
            second_size=second_size,
            second_addr=second_addr,
            tags_addr=tags_addr,
            page_size=page_size,
            unused=unused,
            name=name,
            cmdline=cmdline,
            id=boot_id,
        )
        header.validate()
        if not header.ramdisk_size:
            logger.warning("ramdisk size is null")
        return header

    def validate(self) -> None:
        """Check that the boot image can be unpacked using this header.

        A null ramdisk size is accepted, devices using system as rootfs boot
        without any initrd.

        :raises BootImgFormatError: Bad magic, null kernel size or invalid page size.
        """
        if self.magic != BOOT_MAGIC:
            raise BootImgFormatError("no Android Magic Value")
        if not self.kernel_size:
            raise BootImgFormatError("kernel size is null")
        if not self.page_size:
            raise BootImgFormatError("Image page size is null")
        if self.page_size < self.SIZE:
            raise BootImgFormatError(
                f"Image page size ({self.page_size}) is smaller than the header ({self.SIZE})"
            )

    def validate_capacity(self, available_size: int) -> None:
        """Check that all segments declared by the header fit into the image.

        :param available_size: Size of the image in bytes.
        :raises BootImgCapacityError: Computed layout exceeds the available size.
        """
        total_size = self.layout.total_size
        if total_size > available_size:
            raise BootImgCapacityError(
                f"sizes mismatches in boot image ({total_size} vs {available_size} bytes)"
            )
