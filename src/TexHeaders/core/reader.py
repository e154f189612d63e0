"""Decode texture index files from binary streams.

Decoding is a single sequential pass: every field is read in file order,
and the first structural problem aborts with no partial result.
"""

import io
import logging
import struct
from typing import BinaryIO

import numpy as np

from ..config import FILE_MAGIC, SUPPORTED_VERSION
from .errors import (
    InvalidASCIIZError, InvalidMagicError, ShortReadError, UnsupportedVersionError,
)
from .records import File, MipMap, TextureEntry

logger = logging.getLogger("texheaders.reader")

_U16 = struct.Struct("<H")
_U32 = struct.Struct("<I")
_F32X4 = np.dtype("<f4")


class _Decoder:
    """Little-endian field reader over a binary stream."""

    def __init__(self, stream: BinaryIO):
        self._stream = stream

    def read_exact(self, size: int, field: str) -> bytes:
        try:
            data = self._stream.read(size)
        except OSError as exc:
            raise OSError(f"read {field}: {exc}") from exc
        if data is None:
            data = b""
        if len(data) < size:
            raise ShortReadError(field, size, len(data))
        return bytes(data)

    def read_u8(self, field: str) -> int:
        return self.read_exact(1, field)[0]

    def read_u16(self, field: str) -> int:
        return _U16.unpack(self.read_exact(2, field))[0]

    def read_u32(self, field: str) -> int:
        return _U32.unpack(self.read_exact(4, field))[0]

    def read_f32x4(self, field: str):
        raw = self.read_exact(16, field)
        return tuple(np.frombuffer(raw, dtype=_F32X4))

    def read_asciiz(self, field: str) -> str:
        buf = bytearray()
        while True:
            try:
                ch = self._stream.read(1)
            except OSError as exc:
                raise OSError(f"read {field}: {exc}") from exc
            if not ch:
                raise InvalidASCIIZError(
                    f"missing zero terminator after {len(buf)} bytes", field=field
                )
            if ch == b"\x00":
                return buf.decode("utf-8", errors="surrogateescape")
            buf += ch


def read(stream: BinaryIO) -> File:
    """Decode a texture index file from a readable binary stream."""
    d = _Decoder(stream)

    magic = d.read_exact(4, "magic")
    if magic != FILE_MAGIC:
        raise InvalidMagicError(f"got {magic!r}, want {FILE_MAGIC!r}", field="magic")

    version = d.read_u32("version")
    if version != SUPPORTED_VERSION:
        raise UnsupportedVersionError(
            f"got {version}, want {SUPPORTED_VERSION}", field="version"
        )

    texture_count = d.read_u32("texture_count")
    textures = []
    for i in range(texture_count):
        textures.append(_read_texture_entry(d, f"texture[{i}]"))

    logger.debug("Decoded %d texture entries", len(textures))
    return File(magic=magic, version=version, textures=textures)


def decode(data: bytes) -> File:
    """Decode a texture index file from an in-memory buffer."""
    return read(io.BytesIO(data))


def read_file(path: str) -> File:
    """Decode a texture index file from disk."""
    try:
        with open(path, "rb") as f:
            return read(f)
    except OSError as exc:
        raise OSError(f"Failed to read texture index '{path}': {exc}") from exc


def _read_texture_entry(d: _Decoder, prefix: str) -> TextureEntry:
    entry = TextureEntry()
    entry.palette_count = d.read_u32(f"{prefix}.palette_count")
    entry.palette_ptr = d.read_u32(f"{prefix}.palette_ptr")
    entry.average_color_f = d.read_f32x4(f"{prefix}.average_color_f")
    entry.average_color = d.read_exact(4, f"{prefix}.average_color")
    entry.max_color = d.read_exact(4, f"{prefix}.max_color")
    entry.clamp_flags = d.read_u32(f"{prefix}.clamp_flags")
    entry.transparent_color = d.read_u32(f"{prefix}.transparent_color")
    entry.has_max_color = d.read_u8(f"{prefix}.has_max_color")
    entry.is_alpha = d.read_u8(f"{prefix}.is_alpha")
    entry.is_transparent = d.read_u8(f"{prefix}.is_transparent")
    entry.is_alpha_non_opaque = d.read_u8(f"{prefix}.is_alpha_non_opaque")
    entry.mip_count = d.read_u32(f"{prefix}.mip_count")
    entry.format = d.read_u32(f"{prefix}.format")
    entry.little_endian = d.read_u8(f"{prefix}.little_endian")
    entry.is_paa = d.read_u8(f"{prefix}.is_paa")
    entry.path = d.read_asciiz(f"{prefix}.path")
    entry.suffix_type = d.read_u32(f"{prefix}.suffix_type")
    entry.mip_count_copy = d.read_u32(f"{prefix}.mip_count_copy")

    entry.mipmaps = []
    for i in range(entry.mip_count_copy):
        entry.mipmaps.append(_read_mipmap(d, f"{prefix}.mipmaps[{i}]"))

    entry.file_size = d.read_u32(f"{prefix}.file_size")
    return entry


def _read_mipmap(d: _Decoder, prefix: str) -> MipMap:
    return MipMap(
        width=d.read_u16(f"{prefix}.width"),
        height=d.read_u16(f"{prefix}.height"),
        reserved_zero=d.read_u16(f"{prefix}.reserved_zero"),
        format=d.read_u8(f"{prefix}.format"),
        reserved_three=d.read_u8(f"{prefix}.reserved_three"),
        data_offset=d.read_u32(f"{prefix}.data_offset"),
    )
