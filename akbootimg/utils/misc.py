#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2026 NXP
#
# SPDX-License-Identifier: BSD-3-Clause

"""akbootimg miscellaneous utilities and helper functions.

This module provides file operations, alignment helpers, number parsing and
configuration loading used throughout the akbootimg package.
"""

import json
import logging
import os
import re
from typing import Callable, Optional, Union

import yaml

from akbootimg.exceptions import BootImgError, BootImgIOError, BootImgValueError

logger = logging.getLogger(__name__)

# C strtoul(value, NULL, 0) accepted prefixes: hex, octal (leading zero), decimal
_C_UINT_PATTERN = re.compile(r"(?P<hex>0[xX][0-9a-fA-F]+)|(?P<oct>0[0-7]*)|(?P<dec>[1-9][0-9]*)")


def align(number: int, alignment: int = 4) -> int:
    """Align number to specified byte boundary.

    The function aligns the input number up to the nearest multiple of the specified
    alignment value, e.g. a segment size up to the next page boundary.

    :param number: The number to be aligned (size or address).
    :param alignment: The boundary alignment value.
    :return: Aligned number that is always greater than or equal to the input number.
    :raises BootImgValueError: When alignment is non-positive or number is negative.
    """
    if alignment <= 0 or number < 0:
        raise BootImgValueError("Wrong alignment")

    return (number + (alignment - 1)) // alignment * alignment


def align_block(data: Union[bytes, bytearray], alignment: int = 4, padding: int = 0) -> bytes:
    """Align binary data block length to specified boundary by adding padding bytes to the end.

    :param data: Binary data to be aligned.
    :param alignment: Boundary alignment in bytes.
    :param padding: 8-bit value used as padding, defaults to zero.
    :return: Aligned binary data block.
    """
    current_size = len(data)
    return extend_block(bytes(data), align(current_size, alignment), padding)


def extend_block(data: bytes, length: int, padding: int = 0) -> bytes:
    """Extend binary data block with padding to reach specified length.

    :param data: Binary block to be extended.
    :param length: Requested block length; must be >= current block length.
    :param padding: 8-bit value to be used as padding (default: 0).
    :return: Block extended with padding bytes.
    :raises BootImgValueError: When the length is smaller than current block length.
    """
    current_len = len(data)
    if length < current_len:
        raise BootImgValueError("Incorrect length")
    num_padding = length - current_len
    if not num_padding:
        return data
    return data + bytes([padding]) * num_padding


def get_abs_path(file_path: str, base_dir: Optional[str] = None) -> str:
    """Convert relative or absolute file path to normalized absolute path.

    :param file_path: File path to be converted to absolute path.
    :param base_dir: Base directory to create absolute path, if not specified the system CWD is used.
    :return: Absolute file path with normalized separators.
    """
    if os.path.isabs(file_path):
        return file_path.replace("\\", "/")

    return os.path.abspath(os.path.join(base_dir or os.getcwd(), file_path)).replace("\\", "/")


def _find_path(
    path: str,
    check_func: Callable[[str], bool],
    use_cwd: bool = True,
    search_paths: Optional[list[str]] = None,
) -> str:
    """Find and return the full path to a file or directory.

    Search paths take precedence over current working directory.

    :param path: File name, part of file path or full path to search for.
    :param check_func: Function to validate if the found path exists and meets criteria.
    :param use_cwd: Try current working directory to find the file, defaults to True.
    :param search_paths: List of paths where to search for the file, defaults to None.
    :return: Full absolute path to the found file.
    :raises BootImgIOError: File not found in any of the searched locations.
    """
    path = path.replace("\\", "/")

    if os.path.isabs(path):
        if not check_func(path):
            raise BootImgIOError(f"Path '{path}' not found", path=path)
        return path
    for dir_candidate in filter(None, search_paths or []):
        path_candidate = get_abs_path(path, base_dir=dir_candidate.replace("\\", "/"))
        if check_func(path_candidate):
            return path_candidate
    if use_cwd and check_func(path):
        return get_abs_path(path)
    searched_in: list[str] = []
    if use_cwd:
        searched_in.append(os.path.abspath(os.curdir))
    if search_paths:
        searched_in.extend(filter(None, search_paths))
    raise BootImgIOError(
        f"Path '{path}' not found, Searched in: {', '.join(searched_in)}", path=path
    )


def find_file(
    file_path: str, use_cwd: bool = True, search_paths: Optional[list[str]] = None
) -> str:
    """Find file in filesystem using multiple search strategies.

    :param file_path: File name, part of file path or full path to search for.
    :param use_cwd: Try current working directory to find the file, defaults to True.
    :param search_paths: List of paths where to search for the file, defaults to None.
    :return: Full absolute path to the found file.
    :raises BootImgIOError: File not found in any of the search locations.
    """
    return _find_path(
        path=file_path, check_func=os.path.isfile, use_cwd=use_cwd, search_paths=search_paths
    )


def load_binary(path: str, search_paths: Optional[list[str]] = None) -> bytes:
    """Load binary file into bytes.

    :param path: Path to the binary file to load.
    :param search_paths: List of paths where to search for the file, defaults to None.
    :return: Content of the binary file as bytes.
    """
    data = load_file(path, mode="rb", search_paths=search_paths)
    assert isinstance(data, bytes)
    return data


def load_text(path: str, search_paths: Optional[list[str]] = None) -> str:
    """Load text file content into string.

    :param path: Path to the text file to load.
    :param search_paths: List of directories to search for the file, defaults to None.
    :return: Content of the text file as string.
    """
    text = load_file(path, mode="r", search_paths=search_paths)
    assert isinstance(text, str)
    return text


def load_file(
    path: str, mode: str = "r", search_paths: Optional[list[str]] = None
) -> Union[str, bytes]:
    """Load file content from specified path.

    :param path: Path to the file to be loaded.
    :param mode: File reading mode, 'r' for text or 'rb' for binary.
    :param search_paths: List of paths where to search for the file, defaults to None.
    :return: File content as string (text mode) or bytes (binary mode).
    :raises BootImgIOError: The file cannot be found or read.
    """
    path = find_file(path, search_paths=search_paths)
    logger.debug(f"Loading {'binary' if 'b' in mode else 'text'} file from {path}")
    encoding = None if "b" in mode else "utf-8"
    try:
        # newline="" keeps line endings untouched for the config parser, bytes that are
        # not valid UTF-8 (kernel command line) survive as surrogate escapes
        with open(
            path,
            mode,
            encoding=encoding,
            errors=None if "b" in mode else "surrogateescape",
            newline=None if "b" in mode else "",
        ) as f:
            return f.read()
    except OSError as exc:
        raise BootImgIOError(f"Cannot read {path}: {exc.strerror}", path=path) from exc


def write_file(data: Union[str, bytes], path: str, mode: str = "w", encoding: str = "utf-8") -> int:
    """Write data to a file with automatic directory creation.

    :param data: Data to write to the file.
    :param path: Path to the target file.
    :param mode: File writing mode ('w' for text, 'wb' for binary), defaults to 'w'.
    :param encoding: Text encoding ('ascii', 'utf-8'), defaults to 'utf-8'.
    :return: Number of characters or bytes written to the file.
    :raises BootImgIOError: The file cannot be written.
    """
    path = path.replace("\\", "/")
    folder = os.path.dirname(path)
    try:
        if folder and not os.path.exists(folder):
            os.makedirs(folder, exist_ok=True)

        logger.debug(f"Storing {'binary' if 'b' in mode else 'text'} file at {path}")
        with open(
            path,
            mode,
            encoding=None if "b" in mode else encoding,
            errors=None if "b" in mode else "surrogateescape",
        ) as f:
            return f.write(data)
    except OSError as exc:
        raise BootImgIOError(f"Cannot write {path}: {exc.strerror}", path=path) from exc


def load_configuration(path: str, search_paths: Optional[list[str]] = None) -> dict:
    """Load configuration from YAML or JSON file.

    :param path: Path to configuration file (relative or absolute).
    :param search_paths: List of paths where to search for the file, defaults to None.
    :raises BootImgError: When file cannot be loaded, parsed, or contains invalid format.
    :return: Content of configuration as dictionary.
    """
    try:
        config = load_text(path, search_paths=search_paths)
    except Exception as exc:
        raise BootImgError(f"Can't load configuration file: {str(exc)}") from exc

    config_data: Optional[dict] = None
    try:
        config_data = json.loads(config)
    except json.JSONDecodeError:
        try:
            config_data = yaml.safe_load(config)
        except (yaml.YAMLError, UnicodeDecodeError):
            pass

    if not config_data:
        raise BootImgError(f"Can't parse configuration file: {path}")
    if not isinstance(config_data, dict):
        raise BootImgError(f"Invalid configuration file: {path}")

    return config_data


def str_to_uint(value: str) -> int:
    """Convert text to unsigned integer the way C strtoul(value, NULL, 0) does.

    Leading whitespace is skipped, a `0x` prefix selects hexadecimal, a leading
    zero selects octal, anything else is decimal. The longest valid prefix is
    converted and the rest of the text is ignored; text without any valid prefix
    yields 0.

    :param value: Text to convert.
    :return: Converted number, 0 if nothing could be converted.
    """
    match = _C_UINT_PATTERN.match(value.lstrip())
    if not match:
        return 0
    if match.group("hex"):
        return int(match.group("hex"), 16)
    if match.group("oct"):
        return int(match.group("oct"), 8)
    return int(match.group("dec"), 10)


def size_fmt(num: Union[float, int], use_kibibyte: bool = True) -> str:
    """Format byte size into human-readable string representation.

    :param num: The byte size value to format.
    :param use_kibibyte: If True, use binary prefixes (1024-based) with 'iB' suffix,
                         if False, use decimal prefixes (1000-based) with 'B' suffix.
    :return: Formatted size string with value and unit (e.g., "1.5 MiB", "1024 B").
    """
    base, suffix = [(1000.0, "B"), (1024.0, "iB")][use_kibibyte]
    i = "B"
    for i in ["B"] + [i + suffix for i in list("kMGTP")]:
        if num < base:
            break
        num /= base

    return f"{int(num)} {i}" if i == "B" else f"{num:3.1f} {i}"
