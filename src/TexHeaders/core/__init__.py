"""Core utilities -- re-exports all public symbols for convenience."""

from .records import MipMap, TextureEntry, File
from .reader import read, decode, read_file
from .writer import write, encode, write_file, to_u32, U8_MAX, U16_MAX, U32_MAX
from .validate import (
    collect_file_issues, collect_entry_issues,
    validate_file, validate_entry,
)
from .classify import guess_suffix_type, contains_token_boundary
from .paths import normalize_entry_path
from .paa import (
    MipHeader, AssetMetadata, MetadataProvider,
    read_paa_metadata, PAA_TYPE_TAGS,
)
from .logging import setup_logging

__all__ = [
    "MipMap", "TextureEntry", "File",
    "read", "decode", "read_file",
    "write", "encode", "write_file", "to_u32", "U8_MAX", "U16_MAX", "U32_MAX",
    "collect_file_issues", "collect_entry_issues",
    "validate_file", "validate_entry",
    "guess_suffix_type", "contains_token_boundary",
    "normalize_entry_path",
    "MipHeader", "AssetMetadata", "MetadataProvider",
    "read_paa_metadata", "PAA_TYPE_TAGS",
    "setup_logging",
]
