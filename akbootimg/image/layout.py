#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2026 NXP
#
# SPDX-License-Identifier: BSD-3-Clause

"""Boot image page layout calculation.

The boot image is a sequence of pages::

    +-----------------+
    | boot header     | 1 page
    +-----------------+
    | kernel          | n pages
    +-----------------+
    | ramdisk         | m pages
    +-----------------+
    | second stage    | o pages
    +-----------------+

    n = (kernel_size + page_size - 1) / page_size
    m = (ramdisk_size + page_size - 1) / page_size
    o = (second_size + page_size - 1) / page_size

All offsets used when reading or writing an image come from `calc_layout`.
"""

from dataclasses import dataclass

from akbootimg.exceptions import BootImgFormatError
from akbootimg.image.segment_kind import SegmentKind


def pages_count(size: int, page_size: int) -> int:
    """Get number of pages occupied by `size` bytes; zero bytes occupy no page."""
    return (size + page_size - 1) // page_size


@dataclass(frozen=True)
class Layout:
    """Page-aligned placement of boot image segments."""

    page_size: int
    kernel_pages: int
    ramdisk_pages: int
    second_pages: int

    @property
    def kernel_offset(self) -> int:
        """Byte offset of the kernel; the header always occupies the first page."""
        return self.page_size

    @property
    def ramdisk_offset(self) -> int:
        """Byte offset of the ramdisk."""
        return (1 + self.kernel_pages) * self.page_size

    @property
    def second_offset(self) -> int:
        """Byte offset of the second stage."""
        return (1 + self.kernel_pages + self.ramdisk_pages) * self.page_size

    @property
    def total_size(self) -> int:
        """Total size of the image in bytes."""
        return (1 + self.kernel_pages + self.ramdisk_pages + self.second_pages) * self.page_size

    def offset(self, kind: SegmentKind) -> int:
        """Get byte offset of given segment.

        :param kind: Segment kind.
        :return: Offset of the segment from the beginning of the image.
        """
        return {
            SegmentKind.KERNEL: self.kernel_offset,
            SegmentKind.RAMDISK: self.ramdisk_offset,
            SegmentKind.SECOND: self.second_offset,
        }[kind]

    def pages(self, kind: SegmentKind) -> int:
        """Get number of pages occupied by given segment.

        :param kind: Segment kind.
        :return: Count of pages.
        """
        return {
            SegmentKind.KERNEL: self.kernel_pages,
            SegmentKind.RAMDISK: self.ramdisk_pages,
            SegmentKind.SECOND: self.second_pages,
        }[kind]

    def __str__(self) -> str:
        return (
            f"Layout <page size: {self.page_size}, kernel: {self.kernel_offset:#x}, "
            f"ramdisk: {self.ramdisk_offset:#x}, second: {self.second_offset:#x}, "
            f"total: {self.total_size:#x}>"
        )


def calc_layout(page_size: int, kernel_size: int, ramdisk_size: int, second_size: int) -> Layout:
    """Compute page layout of a boot image.

    :param page_size: Size of one page in bytes.
    :param kernel_size: Size of the kernel in bytes.
    :param ramdisk_size: Size of the ramdisk in bytes, 0 if absent.
    :param second_size: Size of the second stage in bytes, 0 if absent.
    :return: Layout with segment offsets and total image size.
    :raises BootImgFormatError: Page size is null.
    """
    if page_size <= 0:
        raise BootImgFormatError("Image page size is null")
    return Layout(
        page_size=page_size,
        kernel_pages=pages_count(kernel_size, page_size),
        ramdisk_pages=pages_count(ramdisk_size, page_size),
        second_pages=pages_count(second_size, page_size),
    )
