"""Exception taxonomy shared by the codec, validator, and builder."""

from dataclasses import dataclass
from typing import List, Optional


class TexHeadersError(Exception):
    """Base error. Renders as ``<stage>: <field>: <message>``."""

    default_stage = "texheaders"

    def __init__(self, message: str, *, stage: Optional[str] = None,
                 field: Optional[str] = None):
        self.message = message
        self.stage = stage or self.default_stage
        self.field = field
        super().__init__(self._render())

    def _render(self) -> str:
        parts = [self.stage]
        if self.field:
            parts.append(self.field)
        parts.append(self.message)
        return ": ".join(parts)


class FormatError(TexHeadersError, ValueError):
    """Structural problem in a binary stream."""

    default_stage = "decode"


class InvalidMagicError(FormatError):
    """File signature is not the expected tag."""


class UnsupportedVersionError(FormatError):
    """File version is not the supported one."""


class InvalidASCIIZError(FormatError):
    """String payload has no zero terminator, or contains an embedded one."""


class ShortReadError(FormatError, EOFError):
    """Stream ended before a fixed-width field was complete."""

    def __init__(self, field: str, need: int, got: int, *, stage: Optional[str] = None):
        self.need = need
        self.got = got
        super().__init__(
            f"short read (need {need} bytes, got {got})", stage=stage, field=field
        )


class PaaFormatError(FormatError):
    """Source texture header could not be scanned."""

    default_stage = "scan"


class BoundsError(TexHeadersError, OverflowError):
    """A value does not fit its fixed-width on-disk field."""

    default_stage = "encode"

    def __init__(self, field: str, value, limit: int, *, stage: Optional[str] = None):
        self.value = value
        self.limit = limit
        super().__init__(
            f"value {value} out of range [0, {limit}]", stage=stage, field=field
        )


@dataclass(frozen=True)
class ValidationIssue:
    """One violated invariant with its location."""

    location: str
    message: str
    entry_index: Optional[int] = None
    mip_index: Optional[int] = None

    def __str__(self) -> str:
        return f"{self.location}: {self.message}" if self.location else self.message


class ValidationError(TexHeadersError, ValueError):
    """Aggregate of every invariant violation found in a model."""

    default_stage = "validate"

    def __init__(self, issues: List[ValidationIssue]):
        self.issues = list(issues)
        count = len(self.issues)
        noun = "issue" if count == 1 else "issues"
        super().__init__(
            f"{count} {noun}:\n" + "\n".join(f"  - {i}" for i in self.issues)
        )


class BuildError(TexHeadersError):
    """Failure while building one entry from a source asset."""

    default_stage = "build"

    def __init__(self, message: str, *, path: Optional[str] = None,
                 stage: Optional[str] = None):
        self.path = path
        super().__init__(message, stage=stage, field=repr(path) if path else None)


class BuildInputError(BuildError, ValueError):
    """Input path is unusable before any file access happens."""


class EmptyInputPathError(BuildInputError):
    """Input path is empty after trimming whitespace."""

    def __init__(self):
        super().__init__("empty input path")


class UnsupportedInputFormatError(BuildInputError):
    """Source extension is not a supported texture container."""

    def __init__(self, path: str):
        super().__init__("unsupported input texture format", path=path)


class PacUnsupportedError(BuildInputError):
    """Source is a .pac container, which is recognized but not supported yet."""

    def __init__(self, path: str):
        super().__init__(".pac source is not supported yet", path=path)


class UnsupportedPaxFormatError(BuildError):
    """Provider reported a storage format with no on-disk format code."""

    def __init__(self, pax_type: int, *, path: Optional[str] = None):
        self.pax_type = pax_type
        super().__init__(f"unsupported pax format: {pax_type}", path=path)
