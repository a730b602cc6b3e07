#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2026 NXP
#
# SPDX-License-Identifier: BSD-3-Clause

"""akbootimg application utilities and helper functions."""

import logging
import sys
from functools import wraps
from typing import Any, Callable, Optional

import click

from akbootimg import AKBOOTIMG_DEBUG_LOG_FILE, AKBOOTIMG_DEBUG_LOGGING_DISABLED
from akbootimg.exceptions import BootImgError

logger = logging.getLogger(__name__)


class AppError(BootImgError):
    """Application error exception for the CLI tool.

    :cvar fmt: Format string template for error message display.
    """

    fmt = "{description}"

    def __init__(self, desc: Optional[str] = None, error_code: int = 1) -> None:
        """Initialize the AppError.

        :param desc: Description to print out on command line, defaults to None
        :param error_code: Error code passed to OS, defaults to 1
        """
        super().__init__(desc)
        self.error_code = error_code


def catch_error(function: Callable) -> Callable:
    """Catch and handle BootImgError and other exceptions.

    AppError exits with its own error code, BootImgError and AssertionError
    with code 2 and anything else with code 3. Details go to the debug log.

    :param function: The function to be decorated.
    :return: The decorated function.
    """

    @wraps(function)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return function(*args, **kwargs)
        except AppError as app_exc:
            if app_exc.description:
                click.echo(f"{app_exc.__class__.__name__}: {app_exc}", err=True)
            if 0 < app_exc.error_code < 256:
                sys.exit(app_exc.error_code)
            sys.exit(1)
        except (AssertionError, BootImgError) as exc:
            click.echo(f"{exc.__class__.__name__}: {exc}", err=True)
            logger.debug(str(exc), exc_info=True)
            if not AKBOOTIMG_DEBUG_LOGGING_DISABLED:
                click.secho(
                    f"See debug log file: {AKBOOTIMG_DEBUG_LOG_FILE} for more info", fg="yellow"
                )
            sys.exit(2)
        except (Exception, KeyboardInterrupt) as base_exc:  # pylint: disable=broad-except
            click.echo(f"GENERAL ERROR: {type(base_exc).__name__}: {base_exc}", err=True)
            logger.debug(str(base_exc), exc_info=True)
            if not AKBOOTIMG_DEBUG_LOGGING_DISABLED:
                click.secho(
                    f"See debug log file: {AKBOOTIMG_DEBUG_LOG_FILE} for more info.", fg="yellow"
                )
            sys.exit(3)

    return wrapper
