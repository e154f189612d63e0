"""Define format constants, lookup tables, and the typed build configuration.

Use `BuildConfig` to load, validate, and persist builder settings.
"""

import os
import threading
import logging
import yaml
from dataclasses import asdict, dataclass, field
from typing import Dict, List, Tuple
from enum import IntEnum

logger = logging.getLogger("texheaders.config")

# Required 4-byte file signature.
FILE_MAGIC = b"0DHT"
# The only file version the codec reads and writes.
SUPPORTED_VERSION = 1

# Transparent color sentinel written by the builder.
TRANSPARENT_COLOR_NONE = 0xFFFFFFFF

# Worker setting that derives the pool size from host parallelism.
WORKERS_AUTO = -1

# Primary source container, and the recognized but unimplemented one.
PAA_EXTENSION = ".paa"
PAC_EXTENSION = ".pac"


class SuffixType(IntEnum):
    """Enumerate texture suffix classes stored in entry.suffix_type."""

    DIFFUSE_SRGB = 0
    DIFFUSE_LINEAR = 1
    DETAIL_LINEAR = 2
    NORMAL_MAP = 3
    IRRADIANCE_MAP = 4
    RANDOM_05_TO_1 = 5
    TREE_CROWN_CALC = 6
    MACRO_OBJECT_SRGB = 7
    AMBIENT_SHADOW = 8
    SPECULAR_AMOUNT = 9
    DITHER_TEXTURE = 10
    DETAIL_SPECULAR_AMOUNT = 11
    MULTI_SHADER_MASK = 12
    THERMAL_IMAGE_CA = 13


class PaxType(IntEnum):
    """Enumerate source texture storage formats reported by a metadata provider."""

    GRAYA = 1
    ARGBA5 = 3
    ARGB4 = 4
    ARGB8 = 5
    DXT1 = 6
    DXT2 = 7
    DXT3 = 8
    DXT4 = 9
    DXT5 = 10


# Provider storage format -> on-disk u8 format code.
PAX_FORMAT_CODES: Dict[int, int] = {
    PaxType.GRAYA: 1,
    PaxType.ARGBA5: 3,
    PaxType.ARGB4: 4,
    PaxType.ARGB8: 5,
    PaxType.DXT1: 6,
    PaxType.DXT2: 7,
    PaxType.DXT3: 8,
    PaxType.DXT4: 9,
    PaxType.DXT5: 10,
}

# Ordered (token, class) rules, first match wins. Tokens that contain a
# shorter token must stay ahead of it.
SUFFIX_GUESS_RULES: List[Tuple[str, SuffixType]] = [
    ("_nohq_alpha", SuffixType.DIFFUSE_SRGB),
    ("_dtsmdi", SuffixType.DETAIL_SPECULAR_AMOUNT),
    ("_ti_ca", SuffixType.THERMAL_IMAGE_CA),
    ("_smdi", SuffixType.SPECULAR_AMOUNT),
    ("_detail", SuffixType.DETAIL_LINEAR),
    ("_normalmap", SuffixType.NORMAL_MAP),
    ("_nohq", SuffixType.NORMAL_MAP),
    ("_novhq", SuffixType.NORMAL_MAP),
    ("_nofhq", SuffixType.NORMAL_MAP),
    ("_nofex", SuffixType.NORMAL_MAP),
    ("_noex", SuffixType.NORMAL_MAP),
    ("_nsex", SuffixType.NORMAL_MAP),
    ("_nshq", SuffixType.NORMAL_MAP),
    ("_nopx", SuffixType.NORMAL_MAP),
    ("_non", SuffixType.NORMAL_MAP),
    ("_nof", SuffixType.NORMAL_MAP),
    ("_nse", SuffixType.NORMAL_MAP),
    ("_ns", SuffixType.NORMAL_MAP),
    ("_no", SuffixType.NORMAL_MAP),
    ("_mask", SuffixType.MULTI_SHADER_MASK),
    ("_sky", SuffixType.DIFFUSE_LINEAR),
    ("_lco", SuffixType.DIFFUSE_LINEAR),
    ("_dxt5", SuffixType.DIFFUSE_LINEAR),
    ("_mco", SuffixType.DETAIL_LINEAR),
    ("_cdt", SuffixType.DETAIL_LINEAR),
    ("_dt", SuffixType.DETAIL_LINEAR),
    ("_mc", SuffixType.MACRO_OBJECT_SRGB),
    ("_as", SuffixType.AMBIENT_SHADOW),
    ("_sm", SuffixType.SPECULAR_AMOUNT),
    ("_ca", SuffixType.DIFFUSE_SRGB),
    ("_co", SuffixType.DIFFUSE_SRGB),
]

_U32_MAX = 0xFFFFFFFF
_SUPPORTED_CONFIG_VERSION = 1


@dataclass
class BuildConfig:
    """Builder configuration."""

    config_version: int = 1
    # Stored entry paths are made relative to this directory. When empty,
    # absolute inputs are made relative to the current working directory.
    base_dir: str = ""
    skip_invalid: bool = False
    lowercase_paths: bool = True
    backslash_paths: bool = True
    strip_dot_prefix: bool = True
    # <= 1 builds serially, WORKERS_AUTO picks from CPU count, > 1 is explicit.
    workers: int = 1
    # Normalized entry path -> forced suffix class code.
    suffix_overrides: Dict[str, int] = field(default_factory=dict)
    show_progress: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_yaml(cls, path: str) -> "BuildConfig":
        """Load builder configuration from YAML or return defaults."""
        if not os.path.exists(path):
            logger.info("Config file '%s' not found. Using defaults.", path)
            config = cls()
            config.validate()
            return config
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(
                f"Failed to parse YAML config '{path}': {exc}"
            ) from exc
        if not isinstance(data, dict):
            raise ValueError(
                f"Config file '{path}' must contain a YAML mapping, "
                f"got {type(data).__name__}"
            )
        yaml_version = data.get("config_version", 1)
        if isinstance(yaml_version, int) and yaml_version > _SUPPORTED_CONFIG_VERSION:
            logger.warning(
                "Config file '%s' has config_version=%d, but this build only "
                "supports up to version %d. Some settings may be ignored.",
                path, yaml_version, _SUPPORTED_CONFIG_VERSION,
            )
        config = cls()
        _merge_dict_to_dataclass(config, data)
        try:
            config.validate()
        except ValueError as exc:
            raise ValueError(f"{path}: {exc}") from exc
        return config

    def to_yaml(self, path: str):
        """Write the config as a YAML mapping, replacing ``path`` atomically."""
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        tmp_path = f"{path}.tmp.{os.getpid()}.{threading.get_ident()}"
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                yaml.safe_dump(asdict(self), f, default_flow_style=False, sort_keys=False)
            os.replace(tmp_path, path)
        finally:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)

    def validate(self):
        """Validate configuration values. Raises ValueError on invalid config."""
        errors = []

        valid_log_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if self.log_level.upper() not in valid_log_levels:
            errors.append(
                f"log_level must be one of {sorted(valid_log_levels)}, "
                f"got '{self.log_level}'"
            )

        if self.workers < WORKERS_AUTO:
            errors.append(
                f"workers must be >= 0 or {WORKERS_AUTO} (auto), got {self.workers}"
            )
        if self.workers > 256:
            errors.append("workers must be <= 256")

        known_suffixes = {int(s) for s in SuffixType}
        for key, value in self.suffix_overrides.items():
            if not isinstance(key, str) or not key.strip():
                errors.append(f"suffix_overrides key must be a non-empty path, got {key!r}")
                continue
            if isinstance(value, bool) or not isinstance(value, int):
                errors.append(
                    f"suffix_overrides['{key}'] must be an integer, got {value!r}"
                )
                continue
            if not (0 <= value <= _U32_MAX):
                errors.append(
                    f"suffix_overrides['{key}'] out of u32 range: {value}"
                )
            elif value not in known_suffixes:
                logger.warning(
                    "suffix_overrides['%s'] = %d is not a known suffix class; "
                    "it will be stored as-is.",
                    key, value,
                )

        if errors:
            raise ValueError(
                "Configuration validation failed:\n" +
                "\n".join(f"  - {e}" for e in errors)
            )


def _merge_dict_to_dataclass(obj, data: dict):
    """Copy known keys from ``data`` onto ``obj``.

    Unknown keys, nulls, and values of the wrong type are logged and the
    field keeps its default. ``suffix_overrides`` entries are merged.
    """
    for key, value in data.items():
        if not hasattr(obj, key):
            logger.warning("Unknown config key ignored: '%s'", key)
            continue
        current = getattr(obj, key)
        expected = type(current)
        if value is None:
            logger.warning("Config key '%s' is null. Using default %r.", key, current)
            continue
        # YAML 4.0 -> 4
        if expected is int and isinstance(value, float) and value.is_integer():
            value = int(value)
        # bool is an int subclass; keep "workers: true" out.
        wrong_bool = isinstance(value, bool) and expected is not bool
        if wrong_bool or not isinstance(value, expected):
            logger.warning(
                "Config type mismatch for '%s': expected %s, got %s (%r). "
                "Using default value.",
                key, expected.__name__, type(value).__name__, value,
            )
            continue
        if isinstance(current, dict):
            current.update(value)
        else:
            setattr(obj, key, value)
