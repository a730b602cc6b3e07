#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2026 NXP
#
# SPDX-License-Identifier: BSD-3-Clause

"""Android boot image assembler.

The assembler drives the three operations on a boot image:

- extract: header is loaded, the configuration and every present segment
  are written to standalone files,
- update: header is loaded, configuration edits are applied, segments are
  resolved (replaced or carried over), the layout is validated and the image
  is rewritten in place,
- create: same as update, but starting from a default header and requiring
  at least a kernel.

The whole layout is validated before the first byte of the image is written,
a failing operation never leaves a half written image.
"""

import contextlib
import logging
from typing import BinaryIO, Iterator, Mapping, Optional, Sequence

from akbootimg.exceptions import (
    BootImgCapacityError,
    BootImgError,
    BootImgFormatError,
    BootImgIOError,
    BootImgOversizeError,
)
from akbootimg.image.config import apply_all, serialize
from akbootimg.image.header import BootImgHeader
from akbootimg.image.layout import Layout
from akbootimg.image.segment_kind import SegmentKind
from akbootimg.image.segments import SegmentStore, read_segment
from akbootimg.image.target import ImageTarget
from akbootimg.utils.bootimg_enum import BootImgEnum
from akbootimg.utils.misc import extend_block, write_file

logger = logging.getLogger(__name__)


class AssemblyState(BootImgEnum):
    """States of a boot image operation."""

    OPENED = (0, "opened", "Image opened")
    HEADER_LOADED = (1, "header_loaded", "Header loaded from the image")
    INITIALIZED = (2, "initialized", "Default header initialized")
    CONFIG_APPLIED = (3, "config_applied", "Configuration applied")
    SEGMENTS_RESOLVED = (4, "segments_resolved", "Segments resolved")
    LAYOUT_VALIDATED = (5, "layout_validated", "Layout validated")
    WRITTEN = (6, "written", "Image written")
    ABORTED = (7, "aborted", "Operation aborted")


class BootImage:
    """Boot image assembler bound to one destination image."""

    def __init__(self, target: ImageTarget) -> None:
        """Constructor.

        :param target: Image to operate on.
        """
        self.target = target
        self.header: Optional[BootImgHeader] = None
        self.segments = SegmentStore()
        self.state: Optional[AssemblyState] = None

    def __repr__(self) -> str:
        return f"BootImage({self.target.path!r})"

    def __str__(self) -> str:
        state = self.state.label if self.state else "new"
        return f"Boot image {self.target.path} <{state}>"

    def _set_state(self, state: AssemblyState) -> None:
        logger.debug(f"{self.target.path}: {state.description}")
        self.state = state

    @contextlib.contextmanager
    def _operation(self) -> Iterator[None]:
        """Mark the operation aborted on any error and release segment buffers."""
        try:
            yield
        except BaseException:
            self._set_state(AssemblyState.ABORTED)
            raise
        finally:
            self.segments.release()

    def _open(self, mode: str) -> BinaryIO:
        try:
            return open(self.target.path, mode)  # pylint: disable=consider-using-with
        except OSError as exc:
            raise BootImgIOError(
                f"{self.target.path}: {exc.strerror}", path=self.target.path
            ) from exc

    def _load_header(self, stream: BinaryIO) -> BootImgHeader:
        """Read header of the opened image and check it describes a valid image.

        :param stream: Opened image.
        :return: Loaded header.
        :raises BootImgFormatError: Not a valid Android boot image.
        :raises BootImgCapacityError: Declared segments don't fit into the image.
        """
        try:
            stream.seek(0)
            data = stream.read(BootImgHeader.SIZE)
        except OSError as exc:
            raise BootImgIOError(
                f"{self.target.path}: {exc.strerror}", path=self.target.path
            ) from exc
        try:
            header = BootImgHeader.parse(data)
            header.validate_capacity(self.target.size)
        except (BootImgFormatError, BootImgCapacityError) as exc:
            raise type(exc)(
                f"{self.target.path}: {exc.description}, not a valid Android Boot Image"
            ) from exc
        self.header = header
        self._set_state(AssemblyState.HEADER_LOADED)
        logger.info(f"{self.target.path}: {header}")
        return header

    def _apply_config(self, header: BootImgHeader, config_sources: Sequence[str]) -> BootImgHeader:
        header, self.target = apply_all(header, self.target, config_sources)
        self.header = header
        self._set_state(AssemblyState.CONFIG_APPLIED)
        return header

    def _resolve_segments(
        self,
        header: BootImgHeader,
        replacements: Mapping[SegmentKind, Optional[str]],
        source: Optional[BinaryIO] = None,
        source_header: Optional[BootImgHeader] = None,
    ) -> BootImgHeader:
        header = self.segments.resolve(header, replacements, source, source_header)
        self.header = header
        self._set_state(AssemblyState.SEGMENTS_RESOLVED)
        return header

    def _validate_layout(
        self, header: BootImgHeader, source_header: Optional[BootImgHeader] = None
    ) -> Layout:
        """Check the final header and fit its layout into the target.

        :param header: Final header.
        :param source_header: Header of the source image, None for a new image.
        :return: Final layout.
        :raises BootImgOversizeError: The content is bigger than the declared image size.
        """
        try:
            header.validate()
        except BootImgFormatError as exc:
            raise BootImgFormatError(f"{self.target.path}: {exc.description}") from exc
        if not header.ramdisk_size and (source_header is None or source_header.ramdisk_size):
            logger.warning(f"{self.target.path}: ramdisk size is null")

        layout = header.layout
        if not self.target.size:
            self.target = self.target.with_size(layout.total_size)
        elif layout.total_size > self.target.size:
            raise BootImgOversizeError(
                f"{self.target.path}: updated is too big for the Boot Image "
                f"({layout.total_size} vs {self.target.size} bytes)"
            )
        self._set_state(AssemblyState.LAYOUT_VALIDATED)
        logger.debug(f"{self.target.path}: {layout}")
        return layout

    def _write(self, stream: BinaryIO, header: BootImgHeader, layout: Layout) -> None:
        """Write header and materialized segments, then fix the image size.

        :param stream: Image opened for writing.
        :param header: Final header.
        :param layout: Final layout.
        """
        logger.info(f"Writing Boot Image {self.target.path}")
        try:
            stream.seek(0)
            stream.write(extend_block(header.export(), layout.page_size))
            for segment in self.segments:
                stream.seek(layout.offset(segment.kind))
                stream.write(segment.export(layout.page_size))
            if not self.target.is_block_device:
                stream.truncate(self.target.size)
            stream.flush()
        except OSError as exc:
            raise BootImgIOError(
                f"{self.target.path}: {exc.strerror}", path=self.target.path
            ) from exc
        self._set_state(AssemblyState.WRITTEN)

    def load_header(self) -> BootImgHeader:
        """Read and validate the header of an existing image.

        :return: Image header.
        """
        with self._operation(), self._open("rb") as stream:
            self._set_state(AssemblyState.OPENED)
            return self._load_header(stream)

    def extract(
        self, config_path: Optional[str], outputs: Mapping[SegmentKind, Optional[str]]
    ) -> list[str]:
        """Unpack the image into a configuration file and segment files.

        Absent segments (ramdisk or second stage of null size) are skipped.

        :param config_path: Where to store the configuration, None to skip.
        :param outputs: Paths where to store segments; missing kinds are skipped.
        :return: List of created files.
        """
        created: list[str] = []
        with self._operation(), self._open("rb") as stream:
            self._set_state(AssemblyState.OPENED)
            header = self._load_header(stream)
            if config_path:
                logger.info(f"Writing boot image config in {config_path}")
                write_file(serialize(header), config_path)
                created.append(config_path)

            layout = header.layout
            for kind in SegmentKind:
                path = outputs.get(kind)
                size = header.segment_size(kind)
                if not path or not size:
                    continue
                logger.info(f"Extracting {kind.description.lower()} in {path}")
                write_file(read_segment(stream, layout, kind, size), path, mode="wb")
                created.append(path)
            self._set_state(AssemblyState.WRITTEN)
        return created

    def update(
        self,
        config_sources: Sequence[str] = (),
        replacements: Optional[Mapping[SegmentKind, Optional[str]]] = None,
    ) -> BootImgHeader:
        """Update the image in place.

        :param config_sources: Configuration texts applied in order.
        :param replacements: Paths to files with new segment content.
        :return: Header of the written image.
        """
        with self._operation(), self._open("r+b") as stream:
            self._set_state(AssemblyState.OPENED)
            source_header = self._load_header(stream)
            header = self._apply_config(source_header, config_sources)
            header = self._resolve_segments(header, replacements or {}, stream, source_header)
            layout = self._validate_layout(header, source_header)
            self._write(stream, header, layout)
        return header

    def create(
        self,
        config_sources: Sequence[str] = (),
        replacements: Optional[Mapping[SegmentKind, Optional[str]]] = None,
    ) -> BootImgHeader:
        """Create a new image.

        :param config_sources: Configuration texts applied in order.
        :param replacements: Paths to files with segment content, kernel is mandatory.
        :return: Header of the written image.
        :raises BootImgError: Kernel was not given.
        """
        replacements = replacements or {}
        if not replacements.get(SegmentKind.KERNEL):
            raise BootImgError("kernel image is required to create a boot image")
        with self._operation():
            header = BootImgHeader.default()
            self.header = header
            self._set_state(AssemblyState.INITIALIZED)
            header = self._apply_config(header, config_sources)
            header = self._resolve_segments(header, replacements)
            layout = self._validate_layout(header)
            with self._open("r+b" if self.target.is_block_device else "wb") as stream:
                self._write(stream, header, layout)
        return header
