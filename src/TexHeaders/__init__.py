"""Read, write, validate, and build texHeaders.bin texture indexes."""

__version__ = "0.1.0"

from .config import (  # noqa: E402
    BuildConfig, SuffixType, PaxType, FILE_MAGIC, SUPPORTED_VERSION, WORKERS_AUTO,
)
from .core import (  # noqa: E402
    File, TextureEntry, MipMap,
    read, decode, read_file, write, encode, write_file,
    validate_file, validate_entry, collect_file_issues,
    guess_suffix_type, normalize_entry_path,
)
from .builder import Builder, BuildIssue, resolve_build_workers  # noqa: E402

__all__ = [
    "__version__",
    "BuildConfig", "SuffixType", "PaxType",
    "FILE_MAGIC", "SUPPORTED_VERSION", "WORKERS_AUTO",
    "File", "TextureEntry", "MipMap",
    "read", "decode", "read_file", "write", "encode", "write_file",
    "validate_file", "validate_entry", "collect_file_issues",
    "guess_suffix_type", "normalize_entry_path",
    "Builder", "BuildIssue", "resolve_build_workers",
]
