#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2026 NXP
#
# SPDX-License-Identifier: BSD-3-Clause

"""akbootimg pytest configuration and shared test fixtures."""

import os
from typing import Any, Callable

import pytest

# must be set before akbootimg is imported
os.environ["AKBOOTIMG_DEBUG_LOGGING_DISABLED"] = "True"

from tests.cli_runner import CliRunner  # noqa: E402
from tests.misc import build_image, pattern, write_bin  # noqa: E402

KERNEL_SIZE = 5000
RAMDISK_SIZE = 3000
SECOND_SIZE = 100


@pytest.fixture
def cli_runner() -> CliRunner:
    """Get CLI runner instance for testing.

    :return: CliRunner instance for testing CLI commands.
    """
    return CliRunner()


@pytest.fixture
def kernel_data() -> bytes:
    """Kernel payload of the sample image."""
    return pattern(KERNEL_SIZE, seed=1)


@pytest.fixture
def ramdisk_data() -> bytes:
    """Ramdisk payload of the sample image."""
    return pattern(RAMDISK_SIZE, seed=2)


@pytest.fixture
def second_data() -> bytes:
    """Second stage payload of the sample image."""
    return pattern(SECOND_SIZE, seed=3)


@pytest.fixture
def image_factory(tmpdir: Any) -> Callable[..., str]:
    """Get function storing a boot image built by `tests.misc.build_image` into tmpdir.

    :param tmpdir: Temporary directory.
    :return: Function returning path to the created image.
    """

    def factory(name: str = "boot.img", **kwargs: Any) -> str:
        return write_bin(os.path.join(str(tmpdir), name), build_image(**kwargs))

    return factory


@pytest.fixture
def sample_image(
    image_factory: Callable[..., str], kernel_data: bytes, ramdisk_data: bytes
) -> str:
    """Boot image with 5000 B kernel and 3000 B ramdisk, 2048 B pages."""
    return image_factory(
        kernel=kernel_data, ramdisk=ramdisk_data, cmdline=b"console=ttyS0,115200n8"
    )
