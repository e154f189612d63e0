"""Cross-field invariant checks for decoded or built texture index models.

Validation never stops at the first problem: every check runs and the
result is the full list of violations.
"""

import logging
from typing import List

from ..config import FILE_MAGIC, SUPPORTED_VERSION
from .errors import ValidationError, ValidationIssue
from .records import File, TextureEntry
from .writer import U8_MAX, U32_MAX

logger = logging.getLogger("texheaders.validator")


def collect_file_issues(file: File) -> List[ValidationIssue]:
    """Return every file-level and entry-level invariant violation."""
    if file is None:
        return [ValidationIssue("file", "file is None")]

    issues: List[ValidationIssue] = []
    if file.magic and bytes(file.magic) != FILE_MAGIC:
        issues.append(ValidationIssue(
            "magic", f"magic={bytes(file.magic)!r} want={FILE_MAGIC!r}",
        ))
    if file.version and file.version != SUPPORTED_VERSION:
        issues.append(ValidationIssue(
            "version", f"version={file.version} want={SUPPORTED_VERSION}",
        ))
    if len(file.textures) > U32_MAX:
        issues.append(ValidationIssue(
            "textures", f"texture count out of range: {len(file.textures)}",
        ))

    for i, entry in enumerate(file.textures):
        issues.extend(collect_entry_issues(entry, i))

    if issues:
        logger.debug("Validation found %d issue(s)", len(issues))
    return issues


def collect_entry_issues(entry: TextureEntry, entry_index: int) -> List[ValidationIssue]:
    """Return every invariant violation of one texture entry."""
    prefix = f"texture[{entry_index}]"
    if entry is None:
        return [ValidationIssue(prefix, "entry is None", entry_index)]

    issues: List[ValidationIssue] = []

    def add(location: str, message: str, mip_index=None):
        issues.append(ValidationIssue(location, message, entry_index, mip_index))

    if not entry.path:
        add(f"{prefix}.path", "path is empty")

    if entry.format > U8_MAX:
        add(f"{prefix}.format", f"format out of u8 range: {entry.format}")

    mip_len = len(entry.mipmaps)
    if mip_len > U32_MAX:
        add(f"{prefix}.mipmaps", f"mipmaps length out of range: {mip_len}")
        mip_len = 0
    if entry.mip_count != mip_len:
        add(f"{prefix}.mip_count", f"mip_count={entry.mip_count} len(mipmaps)={mip_len}")
    if entry.mip_count_copy != mip_len:
        add(
            f"{prefix}.mip_count_copy",
            f"mip_count_copy={entry.mip_count_copy} len(mipmaps)={mip_len}",
        )
    if entry.mip_count != entry.mip_count_copy:
        add(
            f"{prefix}.mip_count",
            f"mip_count={entry.mip_count} != mip_count_copy={entry.mip_count_copy}",
        )

    prev_offset = 0
    for i, mip in enumerate(entry.mipmaps):
        mp = f"{prefix}.mipmaps[{i}]"
        if mip.width == 0 or mip.height == 0:
            add(mp, f"zero dimension ({mip.width} x {mip.height})", i)
        if mip.reserved_zero != 0:
            add(f"{mp}.reserved_zero", f"reserved_zero={mip.reserved_zero} want=0", i)
        if mip.reserved_three != 3:
            add(f"{mp}.reserved_three", f"reserved_three={mip.reserved_three} want=3", i)
        if entry.format <= U8_MAX and mip.format != entry.format:
            add(f"{mp}.format", f"format={mip.format} entry.format={entry.format}", i)
        if i > 0 and mip.data_offset < prev_offset:
            add(
                f"{mp}.data_offset",
                f"data_offset={mip.data_offset} is less than previous={prev_offset}",
                i,
            )
        prev_offset = mip.data_offset

    return issues


def validate_file(file: File) -> None:
    """Raise ValidationError listing every violation, or return None."""
    issues = collect_file_issues(file)
    if issues:
        raise ValidationError(issues)


def validate_entry(entry: TextureEntry, entry_index: int) -> None:
    """Raise ValidationError listing every violation of one entry."""
    issues = collect_entry_issues(entry, entry_index)
    if issues:
        raise ValidationError(issues)
