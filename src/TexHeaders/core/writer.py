"""Encode texture index files to binary streams.

The whole file is serialized into memory first, so a bounds or format
failure never leaves partial output in the destination.
"""

import logging
import os
import struct
import threading
from typing import BinaryIO

import numpy as np

from ..config import FILE_MAGIC, SUPPORTED_VERSION
from .errors import BoundsError, InvalidASCIIZError, InvalidMagicError, UnsupportedVersionError
from .records import File, MipMap, TextureEntry

logger = logging.getLogger("texheaders.writer")

U8_MAX = 0xFF
U16_MAX = 0xFFFF
U32_MAX = 0xFFFFFFFF

_U16 = struct.Struct("<H")
_U32 = struct.Struct("<I")
_F32 = np.dtype("<f4")


def to_u32(value, field: str, stage: str = "encode") -> int:
    """Narrow an integer to the u32 range or raise BoundsError."""
    return _checked(value, U32_MAX, field, stage)


def _checked(value, limit: int, field: str, stage: str = "encode") -> int:
    v = int(value)
    if v < 0 or v > limit:
        raise BoundsError(field, v, limit, stage=stage)
    return v


class _Encoder:
    """Little-endian field writer into an in-memory buffer."""

    def __init__(self):
        self.buf = bytearray()

    def write_raw(self, data: bytes, size: int, field: str):
        data = bytes(data)
        if len(data) != size:
            raise BoundsError(field, len(data), size)
        self.buf += data

    def write_u8(self, value, field: str):
        self.buf.append(_checked(value, U8_MAX, field))

    def write_u16(self, value, field: str):
        self.buf += _U16.pack(_checked(value, U16_MAX, field))

    def write_u32(self, value, field: str):
        self.buf += _U32.pack(_checked(value, U32_MAX, field))

    def write_f32x4(self, values, field: str):
        if len(values) != 4:
            raise BoundsError(field, len(values), 4)
        self.buf += np.asarray(values, dtype=_F32).tobytes()

    def write_asciiz(self, text: str, field: str):
        raw = text.encode("utf-8", errors="surrogateescape")
        if b"\x00" in raw:
            raise InvalidASCIIZError(
                "embedded zero byte in string", stage="encode", field=field
            )
        self.buf += raw
        self.buf.append(0)


def encode(file: File) -> bytes:
    """Serialize a model to bytes."""
    if file is None:
        raise ValueError("file is None")

    magic = bytes(file.magic) if file.magic else FILE_MAGIC
    if magic != FILE_MAGIC:
        raise InvalidMagicError(
            f"got {magic!r}, want {FILE_MAGIC!r}", stage="encode", field="magic"
        )

    version = file.version or SUPPORTED_VERSION
    if version != SUPPORTED_VERSION:
        raise UnsupportedVersionError(
            f"got {version}, want {SUPPORTED_VERSION}", stage="encode", field="version"
        )

    e = _Encoder()
    e.write_raw(magic, 4, "magic")
    e.write_u32(version, "version")
    e.write_u32(len(file.textures), "texture_count")
    for i, entry in enumerate(file.textures):
        _write_texture_entry(e, entry, f"texture[{i}]")

    logger.debug("Encoded %d texture entries (%d bytes)", len(file.textures), len(e.buf))
    return bytes(e.buf)


def write(stream: BinaryIO, file: File) -> int:
    """Encode a model into a writable binary stream. Returns bytes written."""
    data = encode(file)
    try:
        stream.write(data)
    except OSError as exc:
        raise OSError(f"write texture index: {exc}") from exc
    return len(data)


def write_file(path: str, file: File) -> int:
    """Encode a model to disk, replacing the target atomically."""
    data = encode(file)
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    tmp_path = f"{path}.tmp.{os.getpid()}.{threading.get_ident()}"
    try:
        with open(tmp_path, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    except OSError as exc:
        raise OSError(f"Failed to write texture index '{path}': {exc}") from exc
    finally:
        if os.path.exists(tmp_path):
            try:
                os.remove(tmp_path)
            except OSError:
                pass
    logger.info("Texture index saved: %s (%d entries)", path, len(file.textures))
    return len(data)


def _write_texture_entry(e: _Encoder, entry: TextureEntry, prefix: str):
    e.write_u32(entry.palette_count, f"{prefix}.palette_count")
    e.write_u32(entry.palette_ptr, f"{prefix}.palette_ptr")
    e.write_f32x4(entry.average_color_f, f"{prefix}.average_color_f")
    e.write_raw(entry.average_color, 4, f"{prefix}.average_color")
    e.write_raw(entry.max_color, 4, f"{prefix}.max_color")
    e.write_u32(entry.clamp_flags, f"{prefix}.clamp_flags")
    e.write_u32(entry.transparent_color, f"{prefix}.transparent_color")
    e.write_u8(entry.has_max_color, f"{prefix}.has_max_color")
    e.write_u8(entry.is_alpha, f"{prefix}.is_alpha")
    e.write_u8(entry.is_transparent, f"{prefix}.is_transparent")
    e.write_u8(entry.is_alpha_non_opaque, f"{prefix}.is_alpha_non_opaque")
    e.write_u32(entry.mip_count, f"{prefix}.mip_count")
    e.write_u32(entry.format, f"{prefix}.format")
    e.write_u8(entry.little_endian, f"{prefix}.little_endian")
    e.write_u8(entry.is_paa, f"{prefix}.is_paa")
    e.write_asciiz(entry.path, f"{prefix}.path")
    e.write_u32(entry.suffix_type, f"{prefix}.suffix_type")
    # The count in front of the mip list always matches the list itself.
    e.write_u32(len(entry.mipmaps), f"{prefix}.mip_count_copy")
    for i, mip in enumerate(entry.mipmaps):
        _write_mipmap(e, mip, f"{prefix}.mipmaps[{i}]")
    e.write_u32(entry.file_size, f"{prefix}.file_size")


def _write_mipmap(e: _Encoder, mip: MipMap, prefix: str):
    e.write_u16(mip.width, f"{prefix}.width")
    e.write_u16(mip.height, f"{prefix}.height")
    e.write_u16(mip.reserved_zero, f"{prefix}.reserved_zero")
    e.write_u8(mip.format, f"{prefix}.format")
    e.write_u8(mip.reserved_three, f"{prefix}.reserved_three")
    e.write_u32(mip.data_offset, f"{prefix}.data_offset")
