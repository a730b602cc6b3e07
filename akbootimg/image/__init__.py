#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2026 NXP
#
# SPDX-License-Identifier: BSD-3-Clause

"""Android boot image processing.

This module provides the boot image header codec, the page layout calculator,
the textual configuration codec, segment handling and the image assembler
driving extraction, update and creation of boot images.
"""
