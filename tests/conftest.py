"""Shared test helpers."""

import os
import struct

import numpy as np

from TexHeaders.config import FILE_MAGIC, SUPPORTED_VERSION
from TexHeaders.core import File, MipMap, TextureEntry


def make_entry(path="data\\wall_co.paa", fmt=6, mips=2, file_size=4096):
    """Return a texture entry that passes validation."""
    mipmaps = [
        MipMap(
            width=max(1, 256 >> i),
            height=max(1, 128 >> i),
            reserved_zero=0,
            format=fmt,
            reserved_three=3,
            data_offset=100 + i * 1000,
        )
        for i in range(mips)
    ]
    return TextureEntry(
        path=path,
        palette_count=1,
        palette_ptr=0,
        average_color_f=tuple(np.array([0.5, 0.25, 0.125, 1.0], dtype=np.float32)),
        average_color=b"\x20\x40\x80\xff",
        max_color=b"\x10\x20\x30\x40",
        has_max_color=1,
        is_alpha=0,
        mip_count=mips,
        mip_count_copy=mips,
        format=fmt,
        suffix_type=0,
        file_size=file_size,
        mipmaps=mipmaps,
    )


def make_file(count=3):
    """Return a valid model with `count` entries."""
    return File(
        magic=FILE_MAGIC,
        version=SUPPORTED_VERSION,
        textures=[make_entry(f"data\\tex{i}_co.paa", mips=i % 3 + 1) for i in range(count)],
    )


def make_paa(type_tag=0xFF05, average=None, maximum=None, flags=None,
             mips=((8, 8), (4, 4)), palette=0, extra_taggs=(), payload_size=8):
    """Return the bytes of a minimal .paa file with the given header data.

    Mip offsets are recorded at the start of each mip header.
    """
    buf = bytearray(struct.pack("<H", type_tag))

    def _tagg(name, payload):
        buf.extend(b"GGAT" + name + struct.pack("<I", len(payload)) + payload)

    for name, payload in extra_taggs:
        _tagg(name, payload)
    if average is not None:
        _tagg(b"CGVA", bytes(average))
    if maximum is not None:
        _tagg(b"CXAM", bytes(maximum))
    if flags is not None:
        _tagg(b"GALF", struct.pack("<I", flags))

    buf.extend(struct.pack("<H", palette))
    buf.extend(b"\x00" * (3 * palette))
    for width, height in mips:
        buf.extend(struct.pack("<HH", width, height))
        buf.extend(payload_size.to_bytes(3, "little"))
        buf.extend(b"\xab" * payload_size)
    buf.extend(struct.pack("<HH", 0, 0))
    return bytes(buf)


def write_paa(path, **kwargs):
    """Write a minimal .paa file and return its path."""
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "wb") as f:
        f.write(make_paa(**kwargs))
    return path

