#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2026 NXP
#
# SPDX-License-Identifier: BSD-3-Clause

"""akbootimg logging utilities with colored console output support."""

import logging
import logging.config
import logging.handlers
import os
import platform
import re
import sys
from datetime import datetime
from typing import Optional, TextIO

import colorama

from akbootimg import (
    AKBOOTIMG_DEBUG,
    AKBOOTIMG_DEBUG_LOG_FILE,
    AKBOOTIMG_DEBUG_LOGGING_DISABLED,
    AKBOOTIMG_USER_CONFIG_DIR,
    __version__,
)
from akbootimg.exceptions import BootImgError
from akbootimg.utils.misc import find_file, load_configuration

colorama.just_fix_windows_console()


def load_logging_config() -> Optional[str]:
    """Apply user logging configuration (logging.yaml) if there is any.

    :return: Path to the applied configuration file, None if not found.
    """
    try:
        logging_config_file = find_file(
            "logging.yaml", use_cwd=False, search_paths=[AKBOOTIMG_USER_CONFIG_DIR]
        )
        config_data = load_configuration(logging_config_file)
    except BootImgError:
        return None
    logging.config.dictConfig(config_data)
    return logging_config_file


class ColoredFormatter(logging.Formatter):
    """Colored logging formatter.

    Colors the record according to its level; warnings and errors also carry
    the source location of the log call.

    :cvar COLORED_FORMATS: Color-coded format strings for each logging level.
    :cvar FORMATS: Plain text format strings for each logging level.
    """

    FORMAT = logging.BASIC_FORMAT
    FORMAT_DEBUG = FORMAT + " (%(relativeCreated)dms since start, %(filename)s:%(lineno)d)"

    COLORED_FORMATS = {
        logging.DEBUG: colorama.Fore.BLUE + FORMAT_DEBUG + colorama.Fore.RESET,
        logging.INFO: colorama.Fore.WHITE
        + colorama.Style.BRIGHT
        + FORMAT
        + colorama.Fore.RESET
        + colorama.Style.RESET_ALL,
        logging.WARNING: colorama.Fore.YELLOW + FORMAT_DEBUG + colorama.Fore.RESET,
        logging.ERROR: colorama.Fore.RED + FORMAT_DEBUG + colorama.Fore.RESET,
        logging.CRITICAL: colorama.Fore.RED
        + colorama.Style.BRIGHT
        + FORMAT_DEBUG
        + colorama.Fore.RESET
        + colorama.Style.RESET_ALL,
    }
    FORMATS = {
        logging.DEBUG: FORMAT_DEBUG,
        logging.INFO: FORMAT,
        logging.WARNING: FORMAT_DEBUG,
        logging.ERROR: FORMAT_DEBUG,
        logging.CRITICAL: FORMAT_DEBUG,
    }

    def __init__(self, colored: bool = True) -> None:
        """Overloaded init method to add colored parameter."""
        super().__init__()

        self.colored = colored
        self.formats = self.COLORED_FORMATS if colored else self.FORMATS

    def format(self, record: logging.LogRecord) -> str:
        """Modified format method.

        :param record: Input logging record to print.
        :return: Formatted logging string.
        """
        formatter = logging.Formatter(self.formats.get(record.levelno))
        if not self.colored and isinstance(record.msg, str):
            record.msg = re.sub(r"\x1b\[\d{1,3}m", "", record.msg)
        return formatter.format(record)


def _install_debug_logger(target_logger: logging.Logger) -> None:
    """Attach rotating debug log file to the logger, at most once."""
    for handler in target_logger.handlers:
        if (
            isinstance(handler, logging.handlers.RotatingFileHandler)
            and handler.baseFilename == os.path.abspath(AKBOOTIMG_DEBUG_LOG_FILE)
        ):
            return
    try:
        os.makedirs(os.path.dirname(AKBOOTIMG_DEBUG_LOG_FILE), exist_ok=True)
        debug_handler = logging.handlers.RotatingFileHandler(
            AKBOOTIMG_DEBUG_LOG_FILE, mode="a", maxBytes=1_000_000, backupCount=5, encoding="utf-8"
        )
    except OSError as exc:
        target_logger.warning(f"Failed to initialize debug logging: {str(exc)}")
        return
    debug_handler.setFormatter(ColoredFormatter(colored=False))
    debug_handler.setLevel(logging.DEBUG)
    target_logger.addHandler(debug_handler)

    starter = f"* AKBOOTIMG DEBUG LOGGING STARTED {datetime.now().strftime('%Y-%m-%d %H:%M:%S')} *"
    padding = len(starter) - 2
    target_logger.debug("*" * len(starter))
    target_logger.debug(starter)
    # pylint: disable=logging-not-lazy
    target_logger.debug(f"* akbootimg version: {__version__}".ljust(padding) + " *")
    target_logger.debug(f"* Python version: {sys.version.split()[0]}".ljust(padding) + " *")
    target_logger.debug(f"* OS version: {platform.platform()}".ljust(padding) + " *")
    target_logger.debug(f"* Last command: {sys.argv}".ljust(padding) + " *")
    target_logger.debug("*" * len(starter))


def install(
    level: Optional[int] = None,
    stream: TextIO = sys.stderr,
    colored: Optional[bool] = None,
    logger: Optional[logging.Logger] = None,
    create_debug_logger: bool = True,
) -> None:
    """Install akbootimg log handler for colored output.

    :param level: logging level, defaults to logging.WARNING (DEBUG with AKBOOTIMG_DEBUG)
    :param stream: stream to output logging, defaults to sys.stderr
    :param colored: colored output, always colored if true
    :param logger: defaults to the akbootimg package logger
    :param create_debug_logger: create debug logger
    """
    if not level:
        level = logging.DEBUG if AKBOOTIMG_DEBUG else logging.WARNING

    target_logger = logger or logging.getLogger("akbootimg")
    target_logger.setLevel(logging.DEBUG)

    color = True
    if "NO_COLOR" in os.environ:
        # For details see https://no-color.org/
        color = False
    if not hasattr(stream, "isatty") or not stream.isatty():
        color = False
    if colored is not None:
        color = colored

    handler = logging.StreamHandler(stream)
    handler.setLevel(level)
    handler.setFormatter(ColoredFormatter(color))
    target_logger.addHandler(handler)
    target_logger.propagate = True

    if create_debug_logger and not AKBOOTIMG_DEBUG_LOGGING_DISABLED:
        _install_debug_logger(target_logger)

    config_file = load_logging_config()
    if config_file:
        target_logger.debug(f"Logging config loaded from {config_file}")
