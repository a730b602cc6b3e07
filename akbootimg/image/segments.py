#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2026 NXP
#
# SPDX-License-Identifier: BSD-3-Clause

"""Boot image payload segments.

A segment (kernel, ramdisk or second stage) is either loaded from a standalone
file, carried over from the image being rewritten, or absent. Assembly always
rewrites the image from offset 0, so any segment whose bytes must stay valid
while its offset may move is read from the source image before anything is
written.
"""

import logging
from dataclasses import dataclass
from typing import BinaryIO, Iterator, Mapping, Optional

from akbootimg.exceptions import BootImgError, BootImgIOError
from akbootimg.image.header import BootImgHeader
from akbootimg.image.layout import Layout
from akbootimg.image.segment_kind import SegmentKind
from akbootimg.utils.bootimg_enum import BootImgEnum
from akbootimg.utils.misc import align_block, load_binary, size_fmt

logger = logging.getLogger(__name__)


class SegmentOrigin(BootImgEnum):
    """Where the segment content comes from."""

    FILE = (0, "file", "Loaded from file")
    CARRIED = (1, "carried", "Carried over from the source image")


@dataclass
class Segment:
    """Materialized boot image segment."""

    kind: SegmentKind
    data: bytes
    origin: SegmentOrigin

    @property
    def size(self) -> int:
        """Size of the segment content in bytes."""
        return len(self.data)

    def __str__(self) -> str:
        return f"{self.kind.description} <{size_fmt(self.size)}, {self.origin.description.lower()}>"

    def export(self, page_size: int) -> bytes:
        """Get segment content zero padded up to the page boundary.

        :param page_size: Page size of the image.
        :return: Padded segment content.
        """
        return align_block(self.data, page_size)


def read_segment(stream: BinaryIO, layout: Layout, kind: SegmentKind, size: int) -> bytes:
    """Read segment content from a boot image.

    :param stream: Opened boot image.
    :param layout: Layout of the boot image.
    :param kind: Segment to read.
    :param size: Size of the segment in bytes.
    :return: Segment content.
    :raises BootImgIOError: The segment cannot be read completely.
    """
    name = getattr(stream, "name", "boot image")
    offset = layout.offset(kind)
    try:
        stream.seek(offset)
        data = stream.read(size)
    except OSError as exc:
        raise BootImgIOError(f"{name}: {exc.strerror}", path=str(name)) from exc
    if len(data) != size:
        raise BootImgIOError(
            f"{name}: cannot read {kind.description.lower()} "
            f"({len(data)} of {size} bytes at {offset:#x})",
            path=str(name),
        )
    return data


class SegmentStore:
    """Holder of zero or one buffer per segment kind."""

    def __init__(self) -> None:
        """Initialize empty store."""
        self._segments: dict[SegmentKind, Segment] = {}

    def __contains__(self, kind: SegmentKind) -> bool:
        return kind in self._segments

    def __getitem__(self, kind: SegmentKind) -> Segment:
        return self._segments[kind]

    def __iter__(self) -> Iterator[Segment]:
        """Iterate over materialized segments in image order."""
        return iter([self._segments[kind] for kind in SegmentKind if kind in self._segments])

    def __len__(self) -> int:
        return len(self._segments)

    def get(self, kind: SegmentKind) -> Optional[Segment]:
        """Get segment if materialized.

        :param kind: Segment kind.
        :return: Segment or None.
        """
        return self._segments.get(kind)

    def load(self, kind: SegmentKind, path: str) -> Segment:
        """Load segment from a standalone file.

        :param kind: Segment kind.
        :param path: Path to the file with segment content.
        :return: Loaded segment.
        """
        logger.info(f"Reading {kind.description.lower()} from {path}")
        segment = Segment(kind, load_binary(path), SegmentOrigin.FILE)
        self._segments[kind] = segment
        return segment

    def carry(self, kind: SegmentKind, stream: BinaryIO, layout: Layout, size: int) -> Segment:
        """Copy segment from the source image.

        :param kind: Segment kind.
        :param stream: Opened source image.
        :param layout: Layout of the source image.
        :param size: Size of the segment in the source image.
        :return: Carried segment.
        """
        logger.debug(f"Copying {kind.description.lower()} from offset {layout.offset(kind):#x}")
        segment = Segment(kind, read_segment(stream, layout, kind, size), SegmentOrigin.CARRIED)
        self._segments[kind] = segment
        return segment

    def release(self) -> None:
        """Drop all segment buffers."""
        self._segments.clear()

    def resolve(
        self,
        header: BootImgHeader,
        replacements: Mapping[SegmentKind, Optional[str]],
        source: Optional[BinaryIO] = None,
        source_header: Optional[BootImgHeader] = None,
    ) -> BootImgHeader:
        """Materialize segments needed to write the image and update their sizes.

        Decision per segment, in image order:

        - a replacement file is given: it is loaded and the header size updated,
        - kernel: carried over from the source image,
        - ramdisk: carried over if the kernel was replaced,
        - second stage: carried over if the kernel or the ramdisk was replaced.

        Any other non-empty segment is carried over as well when its offset in
        the new layout differs from the source one, as after a page size change.

        :param header: Header of the image to be written (config already applied).
        :param replacements: Paths to files with new segment content.
        :param source: Opened source image, None when creating a new image.
        :param source_header: Header of the source image as it was loaded.
        :return: Header with updated segment sizes.
        :raises BootImgError: No kernel available.
        """
        source_layout = source_header.layout if source_header else None
        if source_header and header.page_size != source_header.page_size:
            logger.info("Page size changed, all segments are re-placed")

        for kind in SegmentKind:
            path = replacements.get(kind)
            if path:
                segment = self.load(kind, path)
                header = header.with_segment_size(kind, segment.size)
                continue
            if source is None or source_header is None or source_layout is None:
                if kind == SegmentKind.KERNEL:
                    raise BootImgError("kernel image is required")
                continue

            size = source_header.segment_size(kind)
            replaced = [
                segment.kind for segment in self if segment.origin == SegmentOrigin.FILE
            ]
            if kind == SegmentKind.KERNEL:
                carry = True
            elif kind == SegmentKind.RAMDISK:
                carry = SegmentKind.KERNEL in replaced
            else:
                carry = bool(replaced)
            # sizes of the preceding segments are final here, so is this offset
            moved = header.layout.offset(kind) != source_layout.offset(kind)
            if size and (carry or moved):
                self.carry(kind, source, source_layout, size)

        for segment in self:
            logger.debug(f"Resolved {segment}")
        return header
