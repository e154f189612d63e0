"""Scan source .paa texture headers for the metadata stored in index entries.

Only headers are read: pixel payloads are skipped, never decoded.
"""

import logging
import os
import struct
from dataclasses import dataclass, field
from typing import BinaryIO, Callable, List, Optional

from ..config import PaxType
from .errors import PaaFormatError

logger = logging.getLogger("texheaders.paa")

# Leading u16 type tag -> storage format.
PAA_TYPE_TAGS = {
    0xFF01: PaxType.DXT1,
    0xFF02: PaxType.DXT2,
    0xFF03: PaxType.DXT3,
    0xFF04: PaxType.DXT4,
    0xFF05: PaxType.DXT5,
    0x4444: PaxType.ARGB4,
    0x1555: PaxType.ARGBA5,
    0x8888: PaxType.ARGB8,
    0x8080: PaxType.GRAYA,
}

_DXT_TYPES = {PaxType.DXT1, PaxType.DXT2, PaxType.DXT3, PaxType.DXT4, PaxType.DXT5}

# Tag records are stored with reversed names ("TAGG" + "AVGC" -> "GGAT" + "CGVA").
TAGG_SIGNATURE = b"GGAT"
TAGG_AVERAGE_COLOR = b"CGVA"
TAGG_MAX_COLOR = b"CXAM"
TAGG_FLAGS = b"GALF"

# Width bit marking an LZO-compressed DXT mip.
_LZO_WIDTH_FLAG = 0x8000

_U16 = struct.Struct("<H")
_U32 = struct.Struct("<I")


@dataclass
class MipHeader:
    """One mip level: dimensions and the stream offset of its header."""

    width: int
    height: int
    offset: int


@dataclass
class AssetMetadata:
    """Header data of a source texture as reported by a metadata provider."""

    pax_type: int
    average_color: Optional[bytes] = None
    max_color: Optional[bytes] = None
    flags: Optional[int] = None
    mips: List[MipHeader] = field(default_factory=list)


# Callable contract every metadata provider implements.
MetadataProvider = Callable[[BinaryIO], AssetMetadata]


def _read(stream: BinaryIO, size: int, what: str) -> bytes:
    data = stream.read(size)
    if data is None or len(data) < size:
        got = 0 if data is None else len(data)
        raise PaaFormatError(f"short read (need {size} bytes, got {got})", field=what)
    return data


def read_paa_metadata(stream: BinaryIO) -> AssetMetadata:
    """Scan a seekable .paa stream and return its header metadata."""
    start = stream.tell()
    total = stream.seek(0, os.SEEK_END)
    stream.seek(start)

    type_tag = _U16.unpack(_read(stream, 2, "type tag"))[0]
    pax_type = PAA_TYPE_TAGS.get(type_tag)
    if pax_type is None:
        raise PaaFormatError(f"unknown texture type tag 0x{type_tag:04X}", field="type tag")
    meta = AssetMetadata(pax_type=pax_type)

    while True:
        pos = stream.tell()
        sig = stream.read(4)
        if sig != TAGG_SIGNATURE:
            stream.seek(pos)
            break
        name = _read(stream, 4, "tagg name")
        length = _U32.unpack(_read(stream, 4, f"tagg {name!r} length"))[0]
        if stream.tell() + length > total:
            raise PaaFormatError(
                f"tagg {name!r} payload of {length} bytes runs past end of file",
                field="tagg",
            )
        payload = _read(stream, length, f"tagg {name!r} payload")
        if name == TAGG_AVERAGE_COLOR and length >= 4:
            meta.average_color = bytes(payload[:4])
        elif name == TAGG_MAX_COLOR and length >= 4:
            meta.max_color = bytes(payload[:4])
        elif name == TAGG_FLAGS and length >= 1:
            meta.flags = int.from_bytes(payload[:4], "little")
        else:
            logger.debug("Skipping tagg %r (%d bytes)", name, length)

    palette_count = _U16.unpack(_read(stream, 2, "palette count"))[0]
    if palette_count:
        _read(stream, palette_count * 3, "palette")

    index = 0
    while True:
        offset = stream.tell()
        if offset >= total:
            break
        width = _U16.unpack(_read(stream, 2, f"mip[{index}] width"))[0]
        height = _U16.unpack(_read(stream, 2, f"mip[{index}] height"))[0]
        if width == 0 and height == 0:
            break
        size = int.from_bytes(_read(stream, 3, f"mip[{index}] size"), "little")
        if offset + 7 + size > total:
            raise PaaFormatError(
                f"payload of {size} bytes runs past end of file", field=f"mip[{index}]"
            )
        stream.seek(size, os.SEEK_CUR)
        if pax_type in _DXT_TYPES:
            width &= ~_LZO_WIDTH_FLAG
        meta.mips.append(MipHeader(width=width, height=height, offset=offset))
        index += 1

    logger.debug(
        "Scanned paa header: type=%s mips=%d avg=%s max=%s flags=%s",
        pax_type.name, len(meta.mips),
        meta.average_color is not None, meta.max_color is not None, meta.flags,
    )
    return meta
