#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2026 NXP
#
# SPDX-License-Identifier: BSD-3-Clause

"""CLI helper for Click."""

import logging
from gettext import gettext
from typing import Any, Callable, Optional, Sequence, TypeVar, Union

import click
from click_command_tree import _build_command_tree, _CommandWrapper

from akbootimg import __version__ as akbootimg_version
from akbootimg.image.segment_kind import SegmentKind

FC = TypeVar("FC", bound=Union[Callable[..., Any], click.Command])

SEGMENT_OPTIONS = {
    SegmentKind.KERNEL: ("-k", "--kernel"),
    SegmentKind.RAMDISK: ("-r", "--ramdisk"),
    SegmentKind.SECOND: ("-s", "--second"),
}


def akbootimg_apps_common_options(options: FC) -> FC:
    """Common click options.

    Sets --help, --version; provides: `log_level: int` for logging.

    :return: click decorator
    """
    options = click.help_option("--help")(options)
    options = click.version_option(akbootimg_version, "--version")(options)
    options = click.option(
        "-vv",
        "--debug",
        "log_level",
        flag_value=logging.DEBUG,
        help="Display more debugging information.",
    )(options)
    options = click.option(
        "-v",
        "--verbose",
        "log_level",
        flag_value=logging.INFO,
        help="Print more detailed information",
    )(options)
    return options


def image_argument(exists: bool = True) -> Callable[[FC], FC]:
    """Click decorator handling the boot image path.

    Provides: `image: str` a full path to the boot image or block device.

    :param exists: The image must already exist.
    :return: Click decorator.
    """
    return click.argument(
        "image",
        metavar="IMAGE",
        type=click.Path(resolve_path=True, exists=exists, dir_okay=False),
    )


def config_file_option(exists: bool = True, help: Optional[str] = None) -> Callable[[FC], FC]:
    """Click decorator handling the boot image config file.

    Provides: `config_file: str` a full path to config file.

    :param exists: The config file must already exist.
    :param help: Customized help message, defaults to None
    :return: Click decorator.
    """
    return click.option(
        "-f",
        "--config-file",
        type=click.Path(resolve_path=True, exists=exists, dir_okay=False),
        help=help or "Path to the boot image config file (key = value lines).",
    )


def config_entry_option(options: FC) -> FC:
    """Click decorator handling inline config directives.

    Provides: `config_entry: tuple[str, ...]` directives in the order given.

    :return: Click decorator
    """
    return click.option(
        "-c",
        "--config-entry",
        metavar='"KEY=VALUE"',
        multiple=True,
        help="Config directive, can be used multiple times. Applied after the config file.",
    )(options)


def segment_options(exists: bool = True, help_prefix: str = "Path to the") -> Callable[[FC], FC]:
    """Click decorator handling kernel, ramdisk and second stage paths.

    Provides: `kernel: str`, `ramdisk: str` and `second: str`.

    :param exists: The files must already exist.
    :param help_prefix: Beginning of the help message of each option.
    :return: Click decorator
    """

    def decorator(func: FC) -> FC:
        for kind, decls in reversed(SEGMENT_OPTIONS.items()):
            func = click.option(
                *decls,
                type=click.Path(resolve_path=True, exists=exists, dir_okay=False),
                help=f"{help_prefix} {kind.description.lower()} file.",
            )(func)
        return func

    return decorator


def output_dir_option(options: FC) -> FC:
    """Click decorator handling the output directory.

    Provides: `output: str` a full path to the directory.

    :return: Click decorator
    """
    return click.option(
        "-o",
        "--output",
        type=click.Path(resolve_path=True, file_okay=False),
        default=".",
        show_default=True,
        help="Directory for the config and segment files not given by their own option.",
    )(options)


class CommandsTreeGroup(click.Group):
    """Click group with the commands section printed as a tree."""

    def format_commands(self, ctx: click.Context, formatter: click.HelpFormatter) -> None:
        """Extra format methods for multi methods that adds all the commands after the options.

        :param ctx: click Context
        :param formatter: click HelpFormatter
        """
        root_cmd = _build_command_tree(ctx.find_root().command)
        rows = _get_tree(root_cmd)

        with formatter.section(gettext("Commands")):
            formatter.width = 160
            formatter.write_dl(rows, col_max=80)


def _get_tree(
    command: _CommandWrapper,
    rows: Optional[list] = None,
    depth: int = 0,
    is_last_item: bool = False,
) -> Sequence[tuple[str, str]]:
    """Generate tree of commands to be used with Click HelpFormatter.

    :param command: command wrapper
    :param rows: list of str lines to be printed, defaults to None
    :param depth: tree depth, defaults to 0
    :param is_last_item: last item has different formatting, defaults to False
    :return: definition list to be used with click HelpFormatter
    """
    if rows is None:
        rows = []
    tree_item = "" if depth == 0 else ("└── " if is_last_item else "├── ")
    doc: str = command.command.__doc__ or ""
    # first line of doc only, truncated to be compliant with max width
    formatted_doc = doc.strip().partition("\n")[0]
    formatted_doc = formatted_doc[:78] + (formatted_doc[78:] and "..")
    rows.append((tree_item + command.name, formatted_doc))

    children = sorted(command.children, key=lambda x: x.name)
    for i, child in enumerate(children):
        _get_tree(child, rows, depth=depth + 1, is_last_item=i == len(children) - 1)
    return rows
