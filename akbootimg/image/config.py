#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2026 NXP
#
# SPDX-License-Identifier: BSD-3-Clause

"""Boot image textual configuration.

The configuration is a line oriented `key = value` text, for example::

    pagesize = 0x800
    kerneladdr = 0x10008000
    ramdiskaddr = 0x11000000
    secondaddr = 0x10f00000
    tagsaddr = 0x10000100
    cmdline = console=ttyS0,115200n8 androidboot.hardware=qcom

Directives are first parsed into `ConfigEntry` objects and only then folded
over the (immutable) header, so a malformed line never leaves a header half
updated.
"""

import logging
from dataclasses import dataclass, replace
from typing import Iterable, Optional, Sequence, Union

from akbootimg.exceptions import BootImgConfigError, BootImgValueError
from akbootimg.image.header import (
    BOOT_ARGS_SIZE,
    CMDLINE_ENCODING,
    CMDLINE_ERRORS,
    MAX_FIELD_VALUE,
    BootImgHeader,
)
from akbootimg.image.target import ImageTarget
from akbootimg.utils.bootimg_enum import BootImgEnum
from akbootimg.utils.misc import load_text, str_to_uint

logger = logging.getLogger(__name__)


class ConfigKey(BootImgEnum):
    """Recognized configuration keys."""

    CMDLINE = (0, "cmdline", "Kernel command line")
    BOOTSIZE = (1, "bootsize", "Total size of the boot image")
    PAGESIZE = (2, "pagesize", "Page size")
    KERNELADDR = (3, "kerneladdr", "Kernel load address")
    RAMDISKADDR = (4, "ramdiskaddr", "Ramdisk load address")
    SECONDADDR = (5, "secondaddr", "Second stage load address")
    TAGSADDR = (6, "tagsaddr", "Kernel tags address")


# numeric keys stored in the header, in the order they are serialized
HEADER_FIELDS = {
    ConfigKey.PAGESIZE: "page_size",
    ConfigKey.KERNELADDR: "kernel_addr",
    ConfigKey.RAMDISKADDR: "ramdisk_addr",
    ConfigKey.SECONDADDR: "second_addr",
    ConfigKey.TAGSADDR: "tags_addr",
}


@dataclass(frozen=True)
class ConfigEntry:
    """Single validated `key = value` directive."""

    key: ConfigKey
    value: Union[int, str]

    def __str__(self) -> str:
        if isinstance(self.value, int):
            return f"{self.key.label} = {self.value:#x}"
        return f"{self.key.label} = {self.value}"

    def apply(
        self, header: BootImgHeader, target: ImageTarget
    ) -> tuple[BootImgHeader, ImageTarget]:
        """Apply the directive.

        :param header: Current header.
        :param target: Current image target.
        :return: Updated header and target.
        :raises BootImgImmutableSizeError: Size of a block device is being changed.
        """
        if self.key == ConfigKey.CMDLINE:
            assert isinstance(self.value, str)
            return header.with_cmdline(self.value), target
        assert isinstance(self.value, int)
        if self.key == ConfigKey.BOOTSIZE:
            return header, target.with_size(self.value)
        return replace(header, **{HEADER_FIELDS[self.key]: self.value}), target


def parse_entry(line: str) -> Optional[ConfigEntry]:
    """Parse one configuration line.

    :param line: Line of configuration text, with or without the line terminator.
    :return: Parsed entry, None for a blank line.
    :raises BootImgConfigError: Malformed line, unknown key or value out of range.
    """
    line = line.rstrip("\r\n")
    if not line.strip():
        return None
    token, separator, raw_value = line.partition("=")
    token = token.strip()
    value = raw_value.strip()
    if not separator or not ConfigKey.contains(token):
        raise BootImgConfigError(f"{token}: bad config entry")
    key = ConfigKey.from_label(token)

    if key == ConfigKey.CMDLINE:
        length = len(value.encode(CMDLINE_ENCODING, errors=CMDLINE_ERRORS))
        if length >= BOOT_ARGS_SIZE:
            raise BootImgConfigError(
                f"cmdline length ({length}) is too long (max {BOOT_ARGS_SIZE - 1})"
            )
        return ConfigEntry(key, value)

    number = str_to_uint(value)
    if key != ConfigKey.BOOTSIZE and number > MAX_FIELD_VALUE:
        raise BootImgConfigError(f"{token}: value {value} doesn't fit into 32 bits")
    return ConfigEntry(key, number)


def parse_config(text: str, source: str = "config") -> list[ConfigEntry]:
    """Parse all directives of one configuration source.

    :param text: Configuration text; the last line doesn't need a terminator.
    :param source: Name of the source used in error messages.
    :return: List of entries in the order of appearance.
    :raises BootImgConfigError: Any line is malformed.
    """
    entries = []
    for line_no, line in enumerate(text.splitlines(), start=1):
        try:
            entry = parse_entry(line)
        except BootImgConfigError as exc:
            raise BootImgConfigError(f"{source}:{line_no}: {exc.description}") from exc
        if entry:
            entries.append(entry)
    return entries


def apply_entries(
    header: BootImgHeader, target: ImageTarget, entries: Iterable[ConfigEntry]
) -> tuple[BootImgHeader, ImageTarget]:
    """Fold configuration entries over a header and image target.

    :param header: Initial header.
    :param target: Initial image target.
    :param entries: Entries to apply, in order.
    :return: Resulting header and target.
    """
    for entry in entries:
        logger.debug(f"Applying config entry '{entry}'")
        try:
            header, target = entry.apply(header, target)
        except BootImgValueError as exc:
            raise BootImgConfigError(exc.description) from exc
    return header, target


def apply_all(
    header: BootImgHeader, target: ImageTarget, sources: Sequence[str]
) -> tuple[BootImgHeader, ImageTarget]:
    """Apply configuration from many text sources.

    All sources are parsed before the first entry is applied. Entries are applied
    in the order of the sources and, within a source, in order of appearance.

    :param header: Initial header.
    :param target: Initial image target.
    :param sources: Configuration texts.
    :return: Resulting header and target.
    :raises BootImgConfigError: Any source contains a malformed line.
    """
    entries: list[ConfigEntry] = []
    for index, text in enumerate(sources):
        entries.extend(parse_config(text, source=f"config source #{index + 1}"))
    return apply_entries(header, target, entries)


def serialize(header: BootImgHeader) -> str:
    """Get configuration text describing the header.

    Image size is not part of the output.

    :param header: Header to describe.
    :return: Configuration text, one directive per line.
    """
    lines = [
        str(ConfigEntry(key, getattr(header, field_name)))
        for key, field_name in HEADER_FIELDS.items()
    ]
    lines.append(str(ConfigEntry(ConfigKey.CMDLINE, header.cmdline_text)))
    return "\n".join(lines) + "\n"


def load_config_sources(
    config_path: Optional[str] = None, directives: Optional[Sequence[str]] = None
) -> list[str]:
    """Collect configuration sources: the config file first, inline directives after it.

    :param config_path: Path to a configuration file, optional.
    :param directives: Inline `key=value` directives, optional.
    :return: Ordered list of configuration texts.
    """
    sources = []
    if config_path:
        logger.debug(f"Reading config file {config_path}")
        sources.append(load_text(config_path))
    if directives:
        logger.info("Reading config args")
        sources.extend(directives)
    return sources
