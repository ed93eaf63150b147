"""
EIF Parse Errors
=================

Exception hierarchy for fatal conditions met while decoding an EIF image.
Every error can carry the section descriptors and size warnings gathered
before the failure, so that a caller can still report the sections that
decoded cleanly.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from eif.core.models import SectionDescriptor, SizeMismatch


class EifError(Exception):
    """Base class for every fatal EIF decoding condition."""

    #: Short machine-readable name used in reports.
    kind: str = "EifError"

    def __init__(
        self,
        message: str,
        *,
        descriptors: Sequence[SectionDescriptor] = (),
        warnings: Sequence[SizeMismatch] = (),
    ) -> None:
        super().__init__(message)
        self.descriptors: list[SectionDescriptor] = list(descriptors)
        self.warnings: list[SizeMismatch] = list(warnings)


class TruncatedInputError(EifError):
    """Fewer bytes were available than a fixed-size record requires."""

    kind = "TruncatedInput"

    def __init__(self, message: str, *, expected: int, got: int, **kwargs) -> None:
        super().__init__(message, **kwargs)
        self.expected = expected
        self.got = got


class TruncatedSectionHeaderError(TruncatedInputError):
    """A section header at its declared offset is shorter than 12 bytes."""

    kind = "TruncatedSectionHeader"


class TruncatedMetadataError(TruncatedInputError):
    """The metadata payload is shorter than its declared size."""

    kind = "TruncatedMetadata"


class SeekFailedError(EifError):
    """A declared section offset cannot be reached in the byte source."""

    kind = "SeekFailed"

    def __init__(self, message: str, *, requested: int, actual: int | None, **kwargs) -> None:
        super().__init__(message, **kwargs)
        self.requested = requested
        self.actual = actual


class TooManySectionsError(EifError):
    """The header declares more sections than the format can hold."""

    kind = "TooManySections"

    def __init__(self, message: str, *, section_count: int, **kwargs) -> None:
        super().__init__(message, **kwargs)
        self.section_count = section_count


class BadMagicError(EifError):
    """The header magic is not ``.eif`` and strict checking is enabled."""

    kind = "BadMagic"

    def __init__(self, message: str, *, magic: bytes, **kwargs) -> None:
        super().__init__(message, **kwargs)
        self.magic = magic
