#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2026 NXP
#
# SPDX-License-Identifier: BSD-3-Clause

"""akbootimg application utilities.

This module provides helpers shared by the command-line application: click
options, logger installation and error handling.
"""
