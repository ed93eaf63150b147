"""
EIF Core Module
================

Data models, error types and the parse engine.
"""

from eif.core.errors import (
    BadMagicError,
    EifError,
    SeekFailedError,
    TooManySectionsError,
    TruncatedInputError,
    TruncatedMetadataError,
    TruncatedSectionHeaderError,
)
from eif.core.models import (
    EifParseResult,
    FileHeader,
    SectionDescriptor,
    SectionHeader,
    SectionType,
    SizeMismatch,
    WalkResult,
)

__all__ = [
    "BadMagicError",
    "EifError",
    "SeekFailedError",
    "TooManySectionsError",
    "TruncatedInputError",
    "TruncatedMetadataError",
    "TruncatedSectionHeaderError",
    "EifParseResult",
    "FileHeader",
    "SectionDescriptor",
    "SectionHeader",
    "SectionType",
    "SizeMismatch",
    "WalkResult",
]
