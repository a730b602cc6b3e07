#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2026 NXP
#
# SPDX-License-Identifier: BSD-3-Clause

"""Tests of extract, update and create operations on boot image files."""

import os
from typing import Callable

import pytest

from akbootimg.exceptions import (
    BootImgCapacityError,
    BootImgConfigError,
    BootImgError,
    BootImgFormatError,
    BootImgIOError,
    BootImgOversizeError,
)
from akbootimg.image.bootimg import AssemblyState, BootImage
from akbootimg.image.config import load_config_sources
from akbootimg.image.header import BootImgHeader
from akbootimg.image.segment_kind import SegmentKind
from akbootimg.image.target import ImageTarget
from tests.misc import build_image, pack_header, pattern, read_bin, write_bin


def _outputs(directory: str) -> dict:
    return {
        SegmentKind.KERNEL: os.path.join(directory, "Image"),
        SegmentKind.RAMDISK: os.path.join(directory, "ramdisk.img"),
        SegmentKind.SECOND: os.path.join(directory, "stage2.img"),
    }


def _segment(data: bytes, kind: SegmentKind) -> bytes:
    header = BootImgHeader.parse(data)
    offset = header.layout.offset(kind)
    return data[offset : offset + header.segment_size(kind)]


def test_load_header(sample_image):
    boot_image = BootImage(ImageTarget.from_existing(sample_image))
    header = boot_image.load_header()
    assert header.kernel_size == 5000
    assert header.cmdline_text == "console=ttyS0,115200n8"
    assert boot_image.state == AssemblyState.HEADER_LOADED


def test_load_header_bad_magic(image_factory, kernel_data):
    path = image_factory(kernel=kernel_data, magic=b"NOTANDRO")
    boot_image = BootImage(ImageTarget.from_existing(path))
    with pytest.raises(BootImgFormatError, match="not a valid Android Boot Image"):
        boot_image.load_header()
    assert boot_image.state == AssemblyState.ABORTED


def test_load_header_truncated_image(tmpdir, kernel_data, ramdisk_data):
    """Declared segments must fit into the image"""
    data = build_image(kernel_data, ramdisk_data)
    path = write_bin(os.path.join(str(tmpdir), "boot.img"), data[:-2048])
    with pytest.raises(BootImgCapacityError, match="sizes mismatches"):
        BootImage(ImageTarget.from_existing(path)).load_header()


def test_load_header_short_file(tmpdir):
    path = write_bin(os.path.join(str(tmpdir), "boot.img"), b"ANDROID!")
    with pytest.raises(BootImgFormatError):
        BootImage(ImageTarget.from_existing(path)).load_header()


def test_extract(sample_image, tmpdir, kernel_data, ramdisk_data):
    out_dir = os.path.join(str(tmpdir), "out")
    config = os.path.join(out_dir, "boot.info")
    outputs = _outputs(out_dir)
    created = BootImage(ImageTarget.from_existing(sample_image)).extract(config, outputs)

    assert created == [config, outputs[SegmentKind.KERNEL], outputs[SegmentKind.RAMDISK]]
    assert read_bin(outputs[SegmentKind.KERNEL]) == kernel_data
    assert read_bin(outputs[SegmentKind.RAMDISK]) == ramdisk_data
    assert not os.path.exists(outputs[SegmentKind.SECOND])
    with open(config) as f:
        assert f.read().splitlines() == [
            "pagesize = 0x800",
            "kerneladdr = 0x10008000",
            "ramdiskaddr = 0x11000000",
            "secondaddr = 0x10f00000",
            "tagsaddr = 0x10000100",
            "cmdline = console=ttyS0,115200n8",
        ]


def test_extract_selected(sample_image, tmpdir, kernel_data):
    kernel = os.path.join(str(tmpdir), "zImage")
    created = BootImage(ImageTarget.from_existing(sample_image)).extract(
        None, {SegmentKind.KERNEL: kernel}
    )
    assert created == [kernel]
    assert read_bin(kernel) == kernel_data


def test_extract_create_identical(image_factory, tmpdir, kernel_data, ramdisk_data, second_data):
    """Image assembled from extracted parts is byte identical to the source"""
    source = image_factory(
        kernel=kernel_data, ramdisk=ramdisk_data, second=second_data, page_size=4096, cmdline=b"x"
    )
    out_dir = os.path.join(str(tmpdir), "out")
    config = os.path.join(out_dir, "boot.info")
    outputs = _outputs(out_dir)
    BootImage(ImageTarget.from_existing(source)).extract(config, outputs)

    rebuilt = os.path.join(str(tmpdir), "rebuilt.img")
    with open(config) as f:
        config_text = f.read()
    BootImage(ImageTarget.for_create(rebuilt)).create([config_text], outputs)
    assert read_bin(rebuilt) == read_bin(source)


def test_update_without_changes(sample_image):
    original = read_bin(sample_image)
    BootImage(ImageTarget.from_existing(sample_image)).update()
    assert read_bin(sample_image) == original


def test_update_cmdline(sample_image):
    original = read_bin(sample_image)
    header = BootImage(ImageTarget.from_existing(sample_image)).update(["cmdline = quiet"])
    assert header.cmdline_text == "quiet"
    updated = read_bin(sample_image)
    assert BootImgHeader.parse(updated).cmdline_text == "quiet"
    assert updated[2048:] == original[2048:]


def test_update_smaller_kernel_carries_ramdisk(sample_image, tmpdir, ramdisk_data):
    """Ramdisk is moved right behind the new kernel"""
    original_size = len(read_bin(sample_image))
    kernel = write_bin(os.path.join(str(tmpdir), "zImage"), pattern(1000, seed=9))
    header = BootImage(ImageTarget.from_existing(sample_image)).update(
        replacements={SegmentKind.KERNEL: kernel}
    )
    assert header.kernel_size == 1000
    assert header.layout.ramdisk_offset == 2 * 2048

    data = read_bin(sample_image)
    assert _segment(data, SegmentKind.KERNEL) == pattern(1000, seed=9)
    assert _segment(data, SegmentKind.RAMDISK) == ramdisk_data
    # regular file keeps its size
    assert len(data) == original_size


def test_update_bigger_kernel_unconstrained(sample_image, tmpdir, ramdisk_data):
    """Resetting bootsize lets the image grow"""
    kernel = write_bin(os.path.join(str(tmpdir), "zImage"), pattern(7000, seed=9))
    BootImage(ImageTarget.from_existing(sample_image)).update(
        ["bootsize = 0"], {SegmentKind.KERNEL: kernel}
    )
    data = read_bin(sample_image)
    assert len(data) == (1 + 4 + 2) * 2048
    assert _segment(data, SegmentKind.RAMDISK) == ramdisk_data


def test_update_oversize(sample_image, tmpdir):
    """Image is left untouched when the new content doesn't fit"""
    original = read_bin(sample_image)
    kernel = write_bin(os.path.join(str(tmpdir), "zImage"), pattern(7000, seed=9))
    boot_image = BootImage(ImageTarget.from_existing(sample_image))
    with pytest.raises(BootImgOversizeError, match="too big"):
        boot_image.update(replacements={SegmentKind.KERNEL: kernel})
    assert read_bin(sample_image) == original
    assert boot_image.state == AssemblyState.ABORTED
    assert len(boot_image.segments) == 0


def test_update_bad_config(sample_image):
    original = read_bin(sample_image)
    with pytest.raises(BootImgConfigError):
        BootImage(ImageTarget.from_existing(sample_image)).update(["cmdline = a", "foo = 1"])
    assert read_bin(sample_image) == original


def test_update_page_size(sample_image, kernel_data, ramdisk_data):
    """Changing page size re-places all segments"""
    BootImage(ImageTarget.from_existing(sample_image)).update(["pagesize = 4096", "bootsize = 0"])
    data = read_bin(sample_image)
    header = BootImgHeader.parse(data)
    assert header.page_size == 4096
    assert header.layout.ramdisk_offset == 3 * 4096
    assert _segment(data, SegmentKind.KERNEL) == kernel_data
    assert _segment(data, SegmentKind.RAMDISK) == ramdisk_data


def test_update_add_second(sample_image, tmpdir, kernel_data, ramdisk_data, second_data):
    second = write_bin(os.path.join(str(tmpdir), "stage2.img"), second_data)
    BootImage(ImageTarget.from_existing(sample_image)).update(
        ["bootsize = 0"], {SegmentKind.SECOND: second}
    )
    data = read_bin(sample_image)
    assert len(data) == (1 + 3 + 2 + 1) * 2048
    assert _segment(data, SegmentKind.KERNEL) == kernel_data
    assert _segment(data, SegmentKind.RAMDISK) == ramdisk_data
    assert _segment(data, SegmentKind.SECOND) == second_data


def test_update_invalid_image(image_factory, kernel_data):
    path = image_factory(kernel=kernel_data, magic=b"NOTANDRO")
    original = read_bin(path)
    with pytest.raises(BootImgFormatError):
        BootImage(ImageTarget.from_existing(path)).update(["cmdline = quiet"])
    assert read_bin(path) == original


def test_create(tmpdir, kernel_data):
    kernel = write_bin(os.path.join(str(tmpdir), "Image"), kernel_data)
    path = os.path.join(str(tmpdir), "boot.img")
    boot_image = BootImage(ImageTarget.for_create(path))
    header = boot_image.create(
        ["pagesize = 0x1000", "cmdline = console=ttyS0"], {SegmentKind.KERNEL: kernel}
    )
    assert boot_image.state == AssemblyState.WRITTEN
    assert header.ramdisk_size == 0

    data = read_bin(path)
    assert len(data) == 3 * 0x1000
    assert data[:608] == header.export()
    assert data[608:0x1000] == bytes(0x1000 - 608)
    assert data[0x1000 : 0x1000 + 5000] == kernel_data


def test_create_overwrites_file(tmpdir, kernel_data):
    kernel = write_bin(os.path.join(str(tmpdir), "Image"), kernel_data)
    path = write_bin(os.path.join(str(tmpdir), "boot.img"), b"\xff" * 100000)
    BootImage(ImageTarget.for_create(path)).create(replacements={SegmentKind.KERNEL: kernel})
    data = read_bin(path)
    assert len(data) == 4 * 2048
    assert data[2048 + 5000 :] == bytes(3 * 2048 - 5000)


def test_create_single_page_kernel(tmpdir):
    """One page header and one page kernel"""
    kernel = write_bin(os.path.join(str(tmpdir), "Image"), pattern(2048))
    path = os.path.join(str(tmpdir), "boot.img")
    BootImage(ImageTarget.for_create(path)).create(replacements={SegmentKind.KERNEL: kernel})
    assert len(read_bin(path)) == 2 * 2048


def test_create_with_bootsize(tmpdir, kernel_data):
    kernel = write_bin(os.path.join(str(tmpdir), "Image"), kernel_data)
    path = os.path.join(str(tmpdir), "boot.img")
    BootImage(ImageTarget.for_create(path)).create(
        ["bootsize = 0x10000"], {SegmentKind.KERNEL: kernel}
    )
    assert len(read_bin(path)) == 0x10000
    with pytest.raises(BootImgOversizeError):
        BootImage(ImageTarget.for_create(path)).create(
            ["bootsize = 0x1000"], {SegmentKind.KERNEL: kernel}
        )


def test_create_without_kernel(tmpdir, ramdisk_data):
    ramdisk = write_bin(os.path.join(str(tmpdir), "ramdisk.img"), ramdisk_data)
    path = os.path.join(str(tmpdir), "boot.img")
    with pytest.raises(BootImgError, match="kernel image is required"):
        BootImage(ImageTarget.for_create(path)).create(replacements={SegmentKind.RAMDISK: ramdisk})
    assert not os.path.exists(path)


def test_create_failure_keeps_existing_file(tmpdir, kernel_data):
    """Nothing is written when validation fails"""
    kernel = write_bin(os.path.join(str(tmpdir), "Image"), kernel_data)
    path = write_bin(os.path.join(str(tmpdir), "boot.img"), b"previous content")
    with pytest.raises(BootImgFormatError, match="page size"):
        BootImage(ImageTarget.for_create(path)).create(
            ["pagesize = 0x100"], {SegmentKind.KERNEL: kernel}
        )
    assert read_bin(path) == b"previous content"


def test_create_missing_kernel_file(tmpdir):
    path = os.path.join(str(tmpdir), "boot.img")
    with pytest.raises(BootImgIOError):
        BootImage(ImageTarget.for_create(path)).create(
            replacements={SegmentKind.KERNEL: os.path.join(str(tmpdir), "missing")}
        )
    assert not os.path.exists(path)


def test_extract_updated_image(sample_image, tmpdir, ramdisk_data):
    """Extraction reads back what update wrote"""
    kernel_data = pattern(1000, seed=9)
    kernel = write_bin(os.path.join(str(tmpdir), "zImage"), kernel_data)
    BootImage(ImageTarget.from_existing(sample_image)).update(
        ["kerneladdr = 0x80008000"], {SegmentKind.KERNEL: kernel}
    )
    out_dir = os.path.join(str(tmpdir), "out")
    outputs = _outputs(out_dir)
    BootImage(ImageTarget.from_existing(sample_image)).extract(None, outputs)
    assert read_bin(outputs[SegmentKind.KERNEL]) == kernel_data
    assert read_bin(outputs[SegmentKind.RAMDISK]) == ramdisk_data
    header = BootImgHeader.parse(read_bin(sample_image))
    assert header.kernel_addr == 0x80008000


def test_header_reserved_fields_preserved(tmpdir, kernel_data, ramdisk_data):
    header = pack_header(len(kernel_data), len(ramdisk_data), name=b"board", boot_id=b"\x42" * 32)
    path = write_bin(
        os.path.join(str(tmpdir), "boot.img"),
        build_image(kernel_data, ramdisk_data, header=header),
    )
    BootImage(ImageTarget.from_existing(path)).update(["cmdline = quiet"])
    updated = BootImgHeader.parse(read_bin(path))
    assert updated.name.rstrip(b"\x00") == b"board"
    assert updated.id == b"\x42" * 32


def test_repr(sample_image):
    boot_image = BootImage(ImageTarget.from_existing(sample_image))
    assert "<new>" in str(boot_image)
    assert sample_image in repr(boot_image)


def test_update_image_without_ramdisk(image_factory: Callable[..., str], kernel_data):
    """Image without ramdisk can be updated"""
    path = image_factory(kernel=kernel_data)
    BootImage(ImageTarget.from_existing(path)).update(["tagsaddr = 0x100"])
    assert BootImgHeader.parse(read_bin(path)).tags_addr == 0x100


@pytest.mark.parametrize(
    "kernel_size,config",
    [(1000, []), (7000, ["bootsize = 0"])],
)
def test_update_kernel_without_ramdisk_moves_second(
    image_factory: Callable[..., str], tmpdir, kernel_data, second_data, kernel_size, config
):
    """Second stage is re-placed right behind the new kernel when there is no ramdisk"""
    path = image_factory(kernel=kernel_data, ramdisk=b"", second=second_data)
    kernel = write_bin(os.path.join(str(tmpdir), "zImage"), pattern(kernel_size, seed=9))
    header = BootImage(ImageTarget.from_existing(path)).update(
        config, {SegmentKind.KERNEL: kernel}
    )
    assert header.ramdisk_size == 0
    data = read_bin(path)
    assert _segment(data, SegmentKind.KERNEL) == pattern(kernel_size, seed=9)
    assert _segment(data, SegmentKind.SECOND) == second_data


def _device(path: str, size: int) -> ImageTarget:
    """Regular file standing for a block device of given capacity."""
    return ImageTarget(path=path, size=size, is_block_device=True)


def test_update_device_oversize(sample_image, tmpdir):
    """Device is left untouched when the new content exceeds its capacity"""
    original = read_bin(sample_image)
    kernel = write_bin(os.path.join(str(tmpdir), "zImage"), pattern(7000, seed=9))
    boot_image = BootImage(_device(sample_image, len(original)))
    with pytest.raises(BootImgOversizeError, match="too big"):
        boot_image.update(replacements={SegmentKind.KERNEL: kernel})
    assert read_bin(sample_image) == original
    assert boot_image.state == AssemblyState.ABORTED


def test_update_device_not_truncated(sample_image, tmpdir, ramdisk_data):
    original_size = len(read_bin(sample_image))
    kernel = write_bin(os.path.join(str(tmpdir), "zImage"), pattern(7000, seed=9))
    BootImage(_device(sample_image, original_size + 4 * 2048)).update(
        replacements={SegmentKind.KERNEL: kernel}
    )
    data = read_bin(sample_image)
    # the content grew by one page, the device capacity is never applied as a file size
    assert len(data) == original_size + 2048
    assert _segment(data, SegmentKind.KERNEL) == pattern(7000, seed=9)
    assert _segment(data, SegmentKind.RAMDISK) == ramdisk_data


def test_create_device_keeps_size(tmpdir, kernel_data):
    """Existing device content behind the new image is not discarded"""
    kernel = write_bin(os.path.join(str(tmpdir), "Image"), kernel_data)
    path = write_bin(os.path.join(str(tmpdir), "boot.img"), b"\xff" * 0x10000)
    header = BootImage(_device(path, 0x10000)).create(replacements={SegmentKind.KERNEL: kernel})
    data = read_bin(path)
    assert len(data) == 0x10000
    assert data[:608] == header.export()
    assert _segment(data, SegmentKind.KERNEL) == kernel_data
    assert data[2048 + 5000 : 4 * 2048] == bytes(3 * 2048 - 5000)
    assert data[4 * 2048 :] == b"\xff" * (0x10000 - 4 * 2048)


def test_create_device_oversize(tmpdir, kernel_data):
    kernel = write_bin(os.path.join(str(tmpdir), "Image"), kernel_data)
    path = write_bin(os.path.join(str(tmpdir), "boot.img"), b"\xff" * 0x1000)
    with pytest.raises(BootImgOversizeError):
        BootImage(_device(path, 0x1000)).create(replacements={SegmentKind.KERNEL: kernel})
    assert read_bin(path) == b"\xff" * 0x1000


def test_extract_create_raw_cmdline(image_factory, tmpdir, kernel_data):
    """Non UTF-8 command line survives extraction and re-creation"""
    source = image_factory(kernel=kernel_data, cmdline=b"console=ttyS0 tag=\xe9\xff")
    out_dir = os.path.join(str(tmpdir), "out")
    config = os.path.join(out_dir, "boot.info")
    outputs = _outputs(out_dir)
    BootImage(ImageTarget.from_existing(source)).extract(config, outputs)

    rebuilt = os.path.join(str(tmpdir), "rebuilt.img")
    BootImage(ImageTarget.for_create(rebuilt)).create(
        load_config_sources(config), {SegmentKind.KERNEL: outputs[SegmentKind.KERNEL]}
    )
    assert read_bin(rebuilt) == read_bin(source)
