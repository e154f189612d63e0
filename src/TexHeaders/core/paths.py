"""Stored entry path helpers."""

import logging
import os

logger = logging.getLogger("texheaders.paths")


def _relative_to(path: str, start: str) -> str | None:
    """Return path relative to start, or None when the two cannot be related."""
    # Mixed absolute/relative pairs are left alone rather than resolved
    # against the current directory.
    if os.path.isabs(path) != os.path.isabs(start):
        return None
    try:
        return os.path.relpath(path, start)
    except ValueError:
        # Different drives on Windows.
        return None


def normalize_entry_path(input_path: str, base_dir: str = "",
                         backslash: bool = True, lowercase: bool = True,
                         strip_dot_prefix: bool = True) -> str:
    """Return the canonical relative path stored in a texture entry."""
    clean = os.path.normpath(input_path)
    base = (base_dir or "").strip()

    rel = clean
    if base:
        r = _relative_to(clean, os.path.normpath(base))
        if r is not None:
            rel = r
        else:
            logger.debug("Cannot relate %s to base dir %s; keeping path", clean, base)
    elif os.path.isabs(clean):
        try:
            r = _relative_to(clean, os.getcwd())
        except OSError:
            r = None
        if r is not None:
            rel = r

    if backslash:
        rel = rel.replace("/", "\\")

    if strip_dot_prefix:
        for prefix in (".\\", "./"):
            if rel.startswith(prefix):
                rel = rel[len(prefix):]
                break

    if lowercase:
        rel = rel.lower()
    return rel
