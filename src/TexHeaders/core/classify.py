"""Texture suffix classification by filename token patterns."""

from typing import Tuple

from ..config import SuffixType, SUFFIX_GUESS_RULES

_TOKEN_SEPARATORS = frozenset("_-.")


def guess_suffix_type(filepath: str) -> Tuple[SuffixType, bool]:
    """Infer the suffix class of a texture from its path.

    Rules are tried in table order and the first token found at a boundary
    wins. Unknown names fall back to DIFFUSE_SRGB with ``recognized=False``.
    """
    name = filepath.lower()
    dot = name.rfind(".")
    if dot > 0:
        name = name[:dot]

    for token, suffix_type in SUFFIX_GUESS_RULES:
        if contains_token_boundary(name, token):
            return suffix_type, True
    return SuffixType.DIFFUSE_SRGB, False


def contains_token_boundary(name: str, token: str) -> bool:
    """Return whether token occurs followed by a separator or end of string.

    E.g. "_co" matches "wall_co" and "wall_co_2" but not "wall_cover".
    """
    start = name.find(token)
    while start >= 0:
        end = start + len(token)
        if end >= len(name) or name[end] in _TOKEN_SEPARATORS:
            return True
        start = name.find(token, start + 1)
    return False
