#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2026 NXP
#
# SPDX-License-Identifier: BSD-3-Clause

"""Boot image segment kind enum."""
from akbootimg.utils.bootimg_enum import BootImgEnum


class SegmentKind(BootImgEnum):
    """Boot image payload segments, in the order they are placed in the image."""

    KERNEL = (0, "kernel", "Kernel")
    RAMDISK = (1, "ramdisk", "Ramdisk")
    SECOND = (2, "second", "Second stage")
