#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2026 NXP
#
# SPDX-License-Identifier: BSD-3-Clause

"""akbootimg utilities.

This module contains utility functions and classes shared by the boot image
codec and the command line application: file handling, alignment helpers,
number parsing and common base classes.
"""
