"""Texture index model dataclasses."""

from dataclasses import dataclass, field
from typing import List, Tuple

import numpy as np

from ..config import TRANSPARENT_COLOR_NONE


def _zero_float_color() -> Tuple[np.float32, ...]:
    return tuple(np.zeros(4, dtype=np.float32))


def _require_mapping(data, what: str) -> None:
    if not isinstance(data, dict):
        raise ValueError(f"{what} must be a mapping, got {type(data).__name__}")


def _as_int(key, value) -> int:
    if isinstance(value, (list, dict)) or value is None:
        raise ValueError(f"field {key!r} must be an integer, got {value!r}")
    return int(value)


def _float_color(value) -> Tuple[np.float32, ...]:
    try:
        color = np.asarray(value, dtype=np.float32)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"field 'average_color_f' must be four floats: {exc}") from exc
    if color.shape != (4,):
        raise ValueError(f"field 'average_color_f' must be four floats, got {value!r}")
    return tuple(color)


def _color_bytes(key, value) -> bytes:
    if not isinstance(value, (list, bytes)) or len(value) != 4:
        raise ValueError(f"field {key!r} must be four bytes, got {value!r}")
    try:
        return bytes(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"field {key!r}: {exc}") from exc


@dataclass
class MipMap:
    """One mip descriptor pointing at a payload inside the source texture."""

    width: int = 0
    height: int = 0
    reserved_zero: int = 0
    format: int = 0
    reserved_three: int = 3
    data_offset: int = 0

    def to_dict(self) -> dict:
        """Return fields as a plain dictionary."""
        return {
            "width": self.width,
            "height": self.height,
            "reserved_zero": self.reserved_zero,
            "format": self.format,
            "reserved_three": self.reserved_three,
            "data_offset": self.data_offset,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "MipMap":
        """Build a mip descriptor from a plain dictionary."""
        _require_mapping(data, "mip descriptor")
        unknown = set(data) - _MIP_FIELDS
        if unknown:
            raise ValueError(f"unknown mip descriptor field(s): {sorted(unknown, key=str)}")
        return cls(**{k: _as_int(k, v) for k, v in data.items()})


_MIP_FIELDS = {"width", "height", "reserved_zero", "format", "reserved_three", "data_offset"}


@dataclass
class TextureEntry:
    """Metadata record for one texture.

    Flag fields hold the raw byte read from disk (any non-zero value is
    true) and ``average_color_f`` holds float32 scalars, so a decoded entry
    re-encodes to identical bytes.
    """

    path: str = ""
    palette_count: int = 1
    palette_ptr: int = 0
    # R,G,B,A in [0, 1].
    average_color_f: Tuple[np.float32, ...] = field(default_factory=_zero_float_color)
    # B,G,R,A bytes.
    average_color: bytes = b"\x00\x00\x00\x00"
    max_color: bytes = b"\xff\xff\xff\xff"
    clamp_flags: int = 0
    transparent_color: int = TRANSPARENT_COLOR_NONE
    has_max_color: int = 0
    is_alpha: int = 0
    is_transparent: int = 0
    is_alpha_non_opaque: int = 0
    mip_count: int = 0
    format: int = 0
    little_endian: int = 1
    is_paa: int = 1
    suffix_type: int = 0
    mip_count_copy: int = 0
    file_size: int = 0
    mipmaps: List[MipMap] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Return fields as JSON/YAML-friendly plain values."""
        return {
            "path": self.path,
            "palette_count": self.palette_count,
            "palette_ptr": self.palette_ptr,
            "average_color_f": [float(v) for v in self.average_color_f],
            "average_color": list(self.average_color),
            "max_color": list(self.max_color),
            "clamp_flags": self.clamp_flags,
            "transparent_color": self.transparent_color,
            "has_max_color": int(self.has_max_color),
            "is_alpha": int(self.is_alpha),
            "is_transparent": int(self.is_transparent),
            "is_alpha_non_opaque": int(self.is_alpha_non_opaque),
            "mip_count": self.mip_count,
            "format": self.format,
            "little_endian": int(self.little_endian),
            "is_paa": int(self.is_paa),
            "suffix_type": int(self.suffix_type),
            "mip_count_copy": self.mip_count_copy,
            "file_size": self.file_size,
            "mipmaps": [m.to_dict() for m in self.mipmaps],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "TextureEntry":
        """Build an entry from the output of ``to_dict``.

        Raises ValueError for unknown fields and for values of the wrong shape.
        """
        _require_mapping(data, "texture entry")
        kwargs = {}
        for key, value in data.items():
            if key == "mipmaps":
                if not isinstance(value, list):
                    raise ValueError(f"mipmaps must be a list, got {type(value).__name__}")
                kwargs[key] = [MipMap.from_dict(m) for m in value]
            elif key == "average_color_f":
                kwargs[key] = _float_color(value)
            elif key in ("average_color", "max_color"):
                kwargs[key] = _color_bytes(key, value)
            elif key == "path":
                kwargs[key] = str(value)
            elif key in _ENTRY_INT_FIELDS:
                kwargs[key] = _as_int(key, value)
            else:
                raise ValueError(f"unknown texture entry field: {key!r}")
        return cls(**kwargs)


_ENTRY_INT_FIELDS = {
    "palette_count", "palette_ptr", "clamp_flags", "transparent_color",
    "has_max_color", "is_alpha", "is_transparent", "is_alpha_non_opaque",
    "mip_count", "format", "little_endian", "is_paa", "suffix_type",
    "mip_count_copy", "file_size",
}


@dataclass
class File:
    """Whole texture index file.

    An empty ``magic`` and a zero ``version`` mean "use the defaults" to the
    encoder and are skipped by the validator.
    """

    magic: bytes = b""
    version: int = 0
    textures: List[TextureEntry] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Return the model as JSON/YAML-friendly plain values."""
        return {
            "magic": self.magic.decode("latin-1"),
            "version": self.version,
            "textures": [t.to_dict() for t in self.textures],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "File":
        """Build a model from the output of ``to_dict``."""
        _require_mapping(data, "index dump")
        magic = data.get("magic", "")
        if not isinstance(magic, str):
            raise ValueError(f"magic must be a string, got {type(magic).__name__}")
        textures = data.get("textures", [])
        if not isinstance(textures, list):
            raise ValueError(f"textures must be a list, got {type(textures).__name__}")
        entries = []
        for i, item in enumerate(textures):
            try:
                entries.append(TextureEntry.from_dict(item))
            except ValueError as exc:
                raise ValueError(f"texture[{i}]: {exc}") from exc
        return cls(
            magic=magic.encode("latin-1"),
            version=_as_int("version", data.get("version", 0)),
            textures=entries,
        )
