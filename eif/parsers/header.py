"""
EIF File Header Decoder
========================

Decodes the fixed 548-byte EIF file header into a :class:`FileHeader`
and encodes it back.  Decoding is a pure function of the input bytes: it
records whatever was found, including a wrong magic or an impossible
section count, and leaves judgement to :func:`validate_header`.
"""

from __future__ import annotations

from eif.core.errors import BadMagicError, TruncatedInputError
from eif.core.models import (
    EIF_HEADER_SIZE,
    EIF_MAGIC,
    MAX_SECTIONS,
    FileHeader,
)
from eif.parsers.reader import (
    BigEndianReader,
    pack_u16,
    pack_u32,
    pack_u64,
    pack_u64_array,
)
from shared.logger import EifToolLogger
from shared.models import Finding, Severity

_logger: EifToolLogger | None = None


def _get_logger() -> EifToolLogger:
    global _logger
    if _logger is None:
        _logger = EifToolLogger("eif.header")
    return _logger


def decode_header(data: bytes) -> FileHeader:
    """Decode the EIF file header from the first 548 bytes of *data*.

    Args:
        data: Buffer holding at least :data:`EIF_HEADER_SIZE` bytes.
              Anything after the header is ignored.

    Returns:
        The decoded, immutable :class:`FileHeader`.

    Raises:
        TruncatedInputError: If *data* is shorter than 548 bytes.
    """
    if len(data) < EIF_HEADER_SIZE:
        raise TruncatedInputError(
            f"EIF header needs {EIF_HEADER_SIZE} bytes, got {len(data)}",
            expected=EIF_HEADER_SIZE,
            got=len(data),
        )

    reader = BigEndianReader(data)
    # Field order is the on-disk order; do not reorder.
    return FileHeader(
        magic=reader.raw(4),
        version=reader.u16(),
        flags=reader.u16(),
        default_memory=reader.u64(),
        default_cpus=reader.u64(),
        reserved=reader.u16(),
        section_count=reader.u16(),
        section_offsets=reader.u64_array(MAX_SECTIONS),
        section_sizes=reader.u64_array(MAX_SECTIONS),
        unused=reader.u32(),
        crc32=reader.u32(),
    )


def encode_header(header: FileHeader) -> bytes:
    """Serialise *header* to its exact 548-byte on-disk form."""
    return b"".join((
        header.magic,
        pack_u16(header.version),
        pack_u16(header.flags),
        pack_u64(header.default_memory),
        pack_u64(header.default_cpus),
        pack_u16(header.reserved),
        pack_u16(header.section_count),
        pack_u64_array(header.section_offsets),
        pack_u64_array(header.section_sizes),
        pack_u32(header.unused),
        pack_u32(header.crc32),
    ))


def validate_header(
    header: FileHeader,
    *,
    strict_magic: bool = False,
    logger: EifToolLogger | None = None,
) -> list[Finding]:
    """Check the caller-level facts :func:`decode_header` leaves alone.

    Args:
        header: A decoded header.
        strict_magic: Raise on a magic other than ``.eif`` instead of
            reporting it.
        logger: Logger for the lenient-mode warning.

    Returns:
        Findings for a wrong magic (lenient mode) and for a section count
        above :data:`MAX_SECTIONS`.

    Raises:
        BadMagicError: On a wrong magic when *strict_magic* is set.
    """
    log = logger or _get_logger()
    findings: list[Finding] = []

    if not header.has_valid_magic:
        message = f"magic is {header.magic!r}, expected {EIF_MAGIC!r}"
        if strict_magic:
            raise BadMagicError(message, magic=header.magic)
        log.warning("Unexpected EIF magic: %s", message, magic=header.magic.hex())
        findings.append(Finding(
            severity=Severity.HIGH,
            title="Unexpected magic",
            description=f"The file header {message}; the file may not be an EIF image.",
            evidence={"magic": header.magic.hex(), "expected": EIF_MAGIC.hex()},
        ))

    if header.section_count > MAX_SECTIONS:
        findings.append(Finding(
            severity=Severity.CRITICAL,
            title="Too many sections",
            description=(
                f"The header declares {header.section_count} sections; "
                f"the format holds at most {MAX_SECTIONS}."
            ),
            evidence={"section_count": header.section_count},
        ))

    return findings
