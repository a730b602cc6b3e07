#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2026 NXP
#
# SPDX-License-Identifier: BSD-3-Clause

"""Console script for akbootimg: manipulate (read, modify, create) Android boot images."""

import os
import sys
from typing import Optional

import click
import colorama
import prettytable

from akbootimg.apps.utils import akbootimg_logger
from akbootimg.apps.utils.common_cli_options import (
    CommandsTreeGroup,
    akbootimg_apps_common_options,
    config_entry_option,
    config_file_option,
    image_argument,
    output_dir_option,
    segment_options,
)
from akbootimg.apps.utils.utils import AppError, catch_error
from akbootimg.image.bootimg import BootImage
from akbootimg.image.config import load_config_sources, serialize
from akbootimg.image.header import CMDLINE_ENCODING, CMDLINE_ERRORS, BootImgHeader
from akbootimg.image.segment_kind import SegmentKind
from akbootimg.image.target import ImageTarget
from akbootimg.utils.misc import size_fmt


DEFAULT_CONFIG_NAME = "boot.info"
DEFAULT_OUTPUT_NAMES = {
    SegmentKind.KERNEL: "Image",
    SegmentKind.RAMDISK: "ramdisk.img",
    SegmentKind.SECOND: "stage2.img",
}


@click.group(name="akbootimg", no_args_is_help=True, cls=CommandsTreeGroup)
@akbootimg_apps_common_options
def main(log_level: int) -> None:
    """Utility for manipulation (extract, update, create) of Android boot images."""
    akbootimg_logger.install(level=log_level)


@main.command(name="extract", no_args_is_help=True)
@image_argument(exists=True)
@config_file_option(
    exists=False, help=f"Where to store the config file [default: {DEFAULT_CONFIG_NAME}]"
)
@segment_options(exists=False, help_prefix="Where to store the")
@output_dir_option
def extract_command(
    image: str,
    config_file: Optional[str],
    kernel: Optional[str],
    ramdisk: Optional[str],
    second: Optional[str],
    output: str,
) -> None:
    """Extract config file and segments from a boot image.

    Segments that are not present in the image (null size) are skipped.
    """
    outputs = {
        SegmentKind.KERNEL: kernel,
        SegmentKind.RAMDISK: ramdisk,
        SegmentKind.SECOND: second,
    }
    for kind, name in DEFAULT_OUTPUT_NAMES.items():
        if not outputs[kind]:
            outputs[kind] = os.path.join(output, name)
    created = extract(image, config_file or os.path.join(output, DEFAULT_CONFIG_NAME), outputs)
    for path in created:
        click.echo(f"Created file: {path}")


def extract(
    image: str, config_file: str, outputs: dict[SegmentKind, Optional[str]]
) -> list[str]:
    """Extract config file and segments from a boot image.

    :param image: Path to the boot image.
    :param config_file: Where to store the config file.
    :param outputs: Where to store the segments.
    :return: List of created files.
    """
    boot_image = BootImage(ImageTarget.from_existing(image))
    return boot_image.extract(config_file, outputs)


@main.command(name="update", no_args_is_help=True)
@image_argument(exists=True)
@config_file_option()
@config_entry_option
@segment_options()
def update_command(
    image: str,
    config_file: Optional[str],
    config_entry: tuple[str, ...],
    kernel: Optional[str],
    ramdisk: Optional[str],
    second: Optional[str],
) -> None:
    """Update an existing boot image in place.

    Segments without a replacement file are carried over from the image.
    """
    header = update(image, config_file, config_entry, kernel, ramdisk, second)
    click.echo(f"Boot image {image} updated ({size_fmt(header.layout.total_size)})")


def update(
    image: str,
    config_file: Optional[str],
    config_entry: tuple[str, ...],
    kernel: Optional[str],
    ramdisk: Optional[str],
    second: Optional[str],
) -> BootImgHeader:
    """Update an existing boot image in place.

    :param image: Path to the boot image.
    :param config_file: Path to the config file.
    :param config_entry: Inline config directives.
    :param kernel: Path to the new kernel.
    :param ramdisk: Path to the new ramdisk.
    :param second: Path to the new second stage.
    :return: Header of the updated image.
    """
    sources = load_config_sources(config_file, config_entry)
    boot_image = BootImage(ImageTarget.from_existing(image))
    return boot_image.update(
        sources,
        {SegmentKind.KERNEL: kernel, SegmentKind.RAMDISK: ramdisk, SegmentKind.SECOND: second},
    )


@main.command(name="create", no_args_is_help=True)
@image_argument(exists=False)
@config_file_option()
@config_entry_option
@segment_options()
def create_command(
    image: str,
    config_file: Optional[str],
    config_entry: tuple[str, ...],
    kernel: Optional[str],
    ramdisk: Optional[str],
    second: Optional[str],
) -> None:
    """Create a new boot image.

    The kernel is mandatory. An existing regular file is overwritten. A block
    device keeps its size and is refused if it contains a known filesystem.
    """
    if not kernel:
        raise AppError("Kernel image must be specified with -k/--kernel to create a boot image")
    sources = load_config_sources(config_file, config_entry)
    boot_image = BootImage(ImageTarget.for_create(image))
    header = boot_image.create(
        sources,
        {SegmentKind.KERNEL: kernel, SegmentKind.RAMDISK: ramdisk, SegmentKind.SECOND: second},
    )
    click.echo(f"Boot image {image} created ({size_fmt(header.layout.total_size)})")


@main.command(name="info", no_args_is_help=True)
@image_argument(exists=True)
def info_command(image: str) -> None:
    """Print header fields and page layout of a boot image."""
    header = BootImage(ImageTarget.from_existing(image)).load_header()
    click.echo(get_info_table(header))
    click.echo(colorama.Style.RESET_ALL, nl=False)
    click.echo("Config:")
    # raw bytes, the command line may hold non UTF-8 characters
    click.echo(serialize(header).encode(CMDLINE_ENCODING, errors=CMDLINE_ERRORS), nl=False)


def get_info_table(header: BootImgHeader) -> prettytable.PrettyTable:
    """Get table describing the segments of the boot image.

    :param header: Boot image header.
    :return: Table with one row per image part.
    """
    layout = header.layout
    table = prettytable.PrettyTable(["Part", "Offset", "Size", "Pages", "Load address"])
    table.set_style(prettytable.DOUBLE_BORDER)
    table.align["Part"] = "l"
    table.add_row(
        [
            colorama.Fore.GREEN + "Header" + colorama.Style.RESET_ALL,
            "0x0",
            BootImgHeader.SIZE,
            1,
            "",
        ]
    )
    addresses = {
        SegmentKind.KERNEL: header.kernel_addr,
        SegmentKind.RAMDISK: header.ramdisk_addr,
        SegmentKind.SECOND: header.second_addr,
    }
    for kind in SegmentKind:
        table.add_row(
            [
                colorama.Fore.GREEN + kind.description + colorama.Style.RESET_ALL,
                hex(layout.offset(kind)),
                header.segment_size(kind),
                layout.pages(kind),
                hex(addresses[kind]),
            ]
        )
    table.add_row(
        [
            colorama.Fore.YELLOW + "Total" + colorama.Style.RESET_ALL,
            "",
            layout.total_size,
            layout.total_size // layout.page_size,
            "",
        ]
    )
    return table


@catch_error
def safe_main() -> None:
    """Call the main function."""
    sys.exit(main())  # pylint: disable=no-value-for-parameter


if __name__ == "__main__":
    safe_main()
