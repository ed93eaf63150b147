"""
EIF Data Models
================

Pydantic models for the records found in an Enclave Image File (EIF) and
for the results the parser hands to the reporting layer.

On-disk layout of the file header (548 bytes, all integers big-endian)::

    off  size  field
      0     4  magic            b".eif"
      4     2  version
      6     2  flags
      8     8  default_memory
     16     8  default_cpus
     24     2  reserved
     26     2  section_count
     28   256  section_offsets  32 x u64
    284   256  section_sizes    32 x u64
    540     4  unused
    544     4  crc32

Each declared section starts with a 12-byte section header (type u16,
flags u16, size u64) followed by ``size`` payload bytes.
"""

from __future__ import annotations

import enum
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from shared.models import Finding


# ---------------------------------------------------------------------------
# Format constants
# ---------------------------------------------------------------------------

EIF_MAGIC: bytes = b".eif"
EIF_HEADER_SIZE: int = 548
EIF_SECTION_HEADER_SIZE: int = 12
MAX_SECTIONS: int = 32

U16 = Annotated[int, Field(ge=0, le=0xFFFF)]
U32 = Annotated[int, Field(ge=0, le=0xFFFF_FFFF)]
U64 = Annotated[int, Field(ge=0, le=0xFFFF_FFFF_FFFF_FFFF)]


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class SectionType(enum.IntEnum):
    """Known values of the section header ``section_type`` field."""
    INVALID = 0
    KERNEL = 1
    CMDLINE = 2
    RAMDISK = 3
    SIGNATURE = 4
    METADATA = 5

    @classmethod
    def label(cls, value: int) -> str:
        """Return the lower-case name for *value*, or ``"unknown"``."""
        try:
            return cls(value).name.lower()
        except ValueError:
            return "unknown"


# ---------------------------------------------------------------------------
# On-disk records
# ---------------------------------------------------------------------------

class SectionEntry(BaseModel):
    """One meaningful ``(offset, size)`` pair from the file header."""
    model_config = ConfigDict(frozen=True)

    index: int
    offset: U64
    size: U64


class FileHeader(BaseModel):
    """Decoded EIF file header.

    ``section_offsets`` and ``section_sizes`` keep all 32 on-disk slots so
    the record re-encodes to the exact bytes it came from.  Code outside
    the decoder should use :attr:`sections`, which only lists the entries
    covered by ``section_count``.

    Attributes:
        magic: Raw 4-byte tag, recorded even when it is not ``.eif``.
        version: Format version, not checked against a known set.
        flags: Opaque header flags.
        default_memory: Suggested enclave memory.
        default_cpus: Suggested vCPU count.
        reserved: Preserved, not validated.
        section_count: Number of meaningful section slots.
        section_offsets: 32 absolute section offsets.
        section_sizes: 32 section sizes as declared by the file header.
        unused: Padding word.
        crc32: Whole-file checksum, exposed but never verified.
    """
    model_config = ConfigDict(frozen=True)

    magic: bytes = Field(min_length=4, max_length=4)
    version: U16 = 0
    flags: U16 = 0
    default_memory: U64 = 0
    default_cpus: U64 = 0
    reserved: U16 = 0
    section_count: U16 = 0
    section_offsets: tuple[U64, ...] = Field(
        default=(0,) * MAX_SECTIONS, min_length=MAX_SECTIONS, max_length=MAX_SECTIONS,
    )
    section_sizes: tuple[U64, ...] = Field(
        default=(0,) * MAX_SECTIONS, min_length=MAX_SECTIONS, max_length=MAX_SECTIONS,
    )
    unused: U32 = 0
    crc32: U32 = 0

    @property
    def has_valid_magic(self) -> bool:
        return self.magic == EIF_MAGIC

    @property
    def sections(self) -> list[SectionEntry]:
        """Declared ``(offset, size)`` pairs, at most :data:`MAX_SECTIONS`."""
        count = min(self.section_count, MAX_SECTIONS)
        return [
            SectionEntry(index=i, offset=self.section_offsets[i], size=self.section_sizes[i])
            for i in range(count)
        ]

    @field_serializer("magic", when_used="json")
    def _magic_hex(self, value: bytes) -> str:
        return value.hex()


class SectionHeader(BaseModel):
    """The 12-byte header found at each declared section offset."""
    model_config = ConfigDict(frozen=True)

    section_type: U16
    flags: U16 = 0
    section_size: U64 = 0

    @property
    def type_label(self) -> str:
        return SectionType.label(self.section_type)

    @property
    def is_metadata(self) -> bool:
        return self.section_type == SectionType.METADATA


# ---------------------------------------------------------------------------
# Walk results
# ---------------------------------------------------------------------------

class SizeMismatch(BaseModel):
    """Non-fatal disagreement between the two size fields of a section.

    Attributes:
        index: Section slot in the file header.
        declared_size: Size recorded in the file header.
        header_size: Size recorded in the section's own header.
    """
    model_config = ConfigDict(frozen=True)

    index: int
    declared_size: U64
    header_size: U64

    def as_tuple(self) -> tuple[int, int]:
        return (self.declared_size, self.header_size)


class SectionDescriptor(BaseModel):
    """Everything learned about one visited section."""
    model_config = ConfigDict(frozen=True)

    index: int
    offset: U64
    section_type: U16
    flags: U16
    declared_size: U64
    header_size: U64
    size_mismatch: bool = False
    payload_captured: bool = False

    @property
    def type_label(self) -> str:
        return SectionType.label(self.section_type)


def _decode_metadata(payload: bytes | None, encoding: str) -> str | None:
    if payload is None:
        return None
    if payload.endswith(b"\x00"):
        payload = payload[:-1]
    return payload.decode(encoding, errors="replace")


class WalkResult(BaseModel):
    """Output of :func:`eif.parsers.sections.walk_sections`.

    ``metadata`` is the raw payload of the first metadata section followed
    by a single ``b"\\x00"`` sentinel, or ``None`` when the image has no
    metadata section.
    """

    descriptors: list[SectionDescriptor] = Field(default_factory=list)
    metadata: Optional[bytes] = None
    warnings: list[SizeMismatch] = Field(default_factory=list)

    def metadata_text(self, encoding: str = "utf-8") -> str | None:
        return _decode_metadata(self.metadata, encoding)


class EifParseResult(BaseModel):
    """Complete result of parsing one EIF image.

    When a fatal error stops the walk, ``error``/``error_kind`` describe it
    and ``sections`` holds the descriptors decoded before the failure.
    """

    path: str = ""
    file_size: int = 0
    sha256: str = ""
    header: Optional[FileHeader] = None
    sections: list[SectionDescriptor] = Field(default_factory=list)
    metadata: Optional[bytes] = None
    warnings: list[SizeMismatch] = Field(default_factory=list)
    findings: list[Finding] = Field(default_factory=list)
    error: Optional[str] = None
    error_kind: Optional[str] = None
    metadata_encoding: str = "utf-8"

    @property
    def ok(self) -> bool:
        return self.error is None

    def metadata_text(self, encoding: str | None = None) -> str | None:
        return _decode_metadata(self.metadata, encoding or self.metadata_encoding)

    @field_serializer("metadata", when_used="json")
    def _metadata_as_text(self, value: bytes | None) -> str | None:
        return _decode_metadata(value, self.metadata_encoding)
