#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2026 NXP
#
# SPDX-License-Identifier: BSD-3-Clause

"""akbootimg abstract base classes for binary records."""

from abc import ABC, abstractmethod

from typing_extensions import Self


########################################################################################################################
# Abstract Class for Binary Records
########################################################################################################################
class BaseClass(ABC):
    """Abstract base class for objects exported to and parsed from binary form."""

    @abstractmethod
    def __str__(self) -> str:
        """Get string representation of the object.

        :return: Object description in string format.
        """

    @abstractmethod
    def export(self) -> bytes:
        """Export object into bytes array.

        :return: Object representation as bytes.
        """

    @classmethod
    @abstractmethod
    def parse(cls, data: bytes) -> Self:
        """Parse object from bytes array.

        :param data: Byte array containing the serialized object data.
        :return: Parsed object instance.
        """
