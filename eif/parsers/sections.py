"""
EIF Section Walker
===================

Visits the sections declared by an EIF file header, decodes the 12-byte
section header found at each declared offset, cross-checks the two size
fields, and captures the payload of the first metadata section.

Sections are visited in header order.  Offsets are not assumed to be
sorted or disjoint; each section is located by an absolute seek.
"""

from __future__ import annotations

from eif.core.errors import (
    EifError,
    SeekFailedError,
    TooManySectionsError,
    TruncatedInputError,
    TruncatedMetadataError,
    TruncatedSectionHeaderError,
)
from eif.core.models import (
    EIF_SECTION_HEADER_SIZE,
    MAX_SECTIONS,
    FileHeader,
    SectionDescriptor,
    SectionHeader,
    SectionType,
    SizeMismatch,
    WalkResult,
)
from eif.parsers.reader import BigEndianReader, pack_u16, pack_u64
from eif.parsers.source import ByteSource
from shared.logger import EifToolLogger

_logger: EifToolLogger | None = None


def _get_logger() -> EifToolLogger:
    global _logger
    if _logger is None:
        _logger = EifToolLogger("eif.sections")
    return _logger


def decode_section_header(data: bytes) -> SectionHeader:
    """Decode a section header from the first 12 bytes of *data*.

    Raises:
        TruncatedSectionHeaderError: If *data* is shorter than 12 bytes.
    """
    if len(data) < EIF_SECTION_HEADER_SIZE:
        raise TruncatedSectionHeaderError(
            f"section header needs {EIF_SECTION_HEADER_SIZE} bytes, got {len(data)}",
            expected=EIF_SECTION_HEADER_SIZE,
            got=len(data),
        )
    reader = BigEndianReader(data)
    return SectionHeader(
        section_type=reader.u16(),
        flags=reader.u16(),
        section_size=reader.u64(),
    )


def encode_section_header(header: SectionHeader) -> bytes:
    """Serialise *header* to its 12-byte on-disk form."""
    return (
        pack_u16(header.section_type)
        + pack_u16(header.flags)
        + pack_u64(header.section_size)
    )


class SectionWalker:
    """Linear walk over ``[0, section_count)`` of one file header.

    The only state carried from one section to the next is whether a
    metadata payload has been captured: the first metadata section wins,
    later ones are decoded and reported but their payload is not read.
    Each call to :meth:`walk` starts again from section 0 with empty state.

    Usage::

        walker = SectionWalker(header, ByteSource(fh))
        result = walker.walk()
        for desc in result.descriptors:
            print(desc.index, desc.type_label, desc.header_size)
    """

    def __init__(
        self,
        header: FileHeader,
        source: ByteSource,
        logger: EifToolLogger | None = None,
    ) -> None:
        self._header = header
        self._source = source
        self._logger: EifToolLogger = logger or _get_logger()
        self._descriptors: list[SectionDescriptor] = []
        self._warnings: list[SizeMismatch] = []
        self._metadata: bytes | None = None

    @property
    def metadata_captured(self) -> bool:
        return self._metadata is not None

    def walk(self) -> WalkResult:
        """Visit every declared section.

        Returns:
            Descriptors in header order, the retained metadata payload
            (with its ``b"\\x00"`` sentinel) and the size warnings.

        Raises:
            TooManySectionsError: Before any I/O, if ``section_count > 32``.
            SeekFailedError: If a declared offset cannot be reached.
            TruncatedSectionHeaderError: If fewer than 12 bytes follow an offset.
            TruncatedMetadataError: If the metadata payload is short.

            Every raised error carries the descriptors and warnings
            collected before the failure.
        """
        count = self._header.section_count
        if count > MAX_SECTIONS:
            raise TooManySectionsError(
                f"header declares {count} sections, at most {MAX_SECTIONS} allowed",
                section_count=count,
            )

        self._descriptors = []
        self._warnings = []
        self._metadata = None

        with self._logger.operation("walk_sections"):
            for entry in self._header.sections:
                try:
                    self._visit(entry.index, entry.offset, entry.size)
                except EifError as exc:
                    exc.descriptors = list(self._descriptors)
                    exc.warnings = list(self._warnings)
                    self._logger.error(
                        "Section %d: %s", entry.index, exc, kind=exc.kind,
                    )
                    raise

        return WalkResult(
            descriptors=list(self._descriptors),
            metadata=self._metadata,
            warnings=list(self._warnings),
        )

    # ------------------------------------------------------------------ #
    #  Per-section steps
    # ------------------------------------------------------------------ #

    def _visit(self, index: int, offset: int, declared_size: int) -> None:
        self._seek(offset)
        section = self._read_section_header(offset)
        self._logger.debug(
            "Section %d at 0x%x: type=%s flags=0x%x size=%d",
            index, offset, section.type_label, section.flags, section.section_size,
        )

        mismatch = declared_size != section.section_size
        if mismatch:
            warning = SizeMismatch(
                index=index,
                declared_size=declared_size,
                header_size=section.section_size,
            )
            self._warnings.append(warning)
            self._logger.warning(
                "Section %d size mismatch: header %d, section header %d",
                index, declared_size, section.section_size,
                index=index,
                declared_size=declared_size,
                header_size=section.section_size,
            )

        captured = False
        if section.section_type == SectionType.METADATA and not self.metadata_captured:
            self._metadata = self._read_metadata(section.section_size) + b"\x00"
            captured = True

        self._descriptors.append(SectionDescriptor(
            index=index,
            offset=offset,
            section_type=section.section_type,
            flags=section.flags,
            declared_size=declared_size,
            header_size=section.section_size,
            size_mismatch=mismatch,
            payload_captured=captured,
        ))

    def _seek(self, offset: int) -> None:
        actual = self._source.seek(offset)
        if actual != offset:
            raise SeekFailedError(
                f"cannot seek to offset {offset} (landed at {actual})",
                requested=offset,
                actual=actual,
            )

    def _read_section_header(self, offset: int) -> SectionHeader:
        try:
            raw = self._source.read_exact(EIF_SECTION_HEADER_SIZE)
        except TruncatedInputError as exc:
            raise TruncatedSectionHeaderError(
                f"section header at offset {offset} is truncated "
                f"({exc.got} of {EIF_SECTION_HEADER_SIZE} bytes)",
                expected=EIF_SECTION_HEADER_SIZE,
                got=exc.got,
            ) from exc
        return decode_section_header(raw)

    def _read_metadata(self, size: int) -> bytes:
        try:
            return self._source.read_exact(size)
        except TruncatedInputError as exc:
            raise TruncatedMetadataError(
                f"metadata payload is truncated ({exc.got} of {size} bytes)",
                expected=size,
                got=exc.got,
            ) from exc


def walk_sections(
    header: FileHeader,
    source: ByteSource,
    logger: EifToolLogger | None = None,
) -> WalkResult:
    """Walk the sections of *header* over *source*; see :meth:`SectionWalker.walk`."""
    return SectionWalker(header, source, logger=logger).walk()
