import random

import pytest
from pydantic import ValidationError

from eif.core.errors import BadMagicError, TruncatedInputError
from eif.core.models import EIF_HEADER_SIZE, MAX_SECTIONS
from eif.parsers.header import decode_header, encode_header, validate_header
from eif.parsers.reader import pack_u16, pack_u32, pack_u64
from shared.models import Severity

from conftest import make_header


def _layout_bytes() -> bytes:
    """A header written field by field, independently of encode_header."""
    offsets = [548 + i * 100 for i in range(MAX_SECTIONS)]
    sizes = [i * 3 for i in range(MAX_SECTIONS)]
    return b"".join([
        b".eif",
        pack_u16(4),                      # version
        pack_u16(0x8001),                 # flags
        pack_u64(0x0000_0001_0000_0000),  # default_memory
        pack_u64(8),                      # default_cpus
        pack_u16(0xABCD),                 # reserved
        pack_u16(3),                      # section_count
        b"".join(pack_u64(v) for v in offsets),
        b"".join(pack_u64(v) for v in sizes),
        pack_u32(0x11223344),             # unused
        pack_u32(0xCAFEBABE),             # crc32
    ])


def test_decode_fields_in_layout_order():
    data = _layout_bytes()
    assert len(data) == EIF_HEADER_SIZE

    header = decode_header(data)

    assert header.magic == b".eif"
    assert header.has_valid_magic
    assert header.version == 4
    assert header.flags == 0x8001
    assert header.default_memory == 1 << 32
    assert header.default_cpus == 8
    assert header.reserved == 0xABCD
    assert header.section_count == 3
    assert header.section_offsets[0] == 548
    assert header.section_offsets[31] == 548 + 31 * 100
    assert header.section_sizes[2] == 6
    assert header.unused == 0x11223344
    assert header.crc32 == 0xCAFEBABE


def test_sections_view_is_limited_to_section_count():
    header = decode_header(_layout_bytes())

    assert [(s.index, s.offset, s.size) for s in header.sections] == [
        (0, 548, 0),
        (1, 648, 3),
        (2, 748, 6),
    ]


def test_round_trip_reproduces_bytes():
    rng = random.Random(0xE1F)
    for _ in range(20):
        data = bytes(rng.getrandbits(8) for _ in range(EIF_HEADER_SIZE))
        assert encode_header(decode_header(data)) == data

    data = _layout_bytes()
    assert encode_header(decode_header(data)) == data


@pytest.mark.parametrize("length", [0, 1, 27, EIF_HEADER_SIZE - 1])
def test_short_buffer_is_truncated_input(length):
    with pytest.raises(TruncatedInputError) as excinfo:
        decode_header(b"\xff" * length)

    assert excinfo.value.expected == EIF_HEADER_SIZE
    assert excinfo.value.got == length


def test_trailing_bytes_are_ignored():
    data = _layout_bytes()

    assert decode_header(data + b"payload") == decode_header(data)


def test_bad_magic_and_large_count_still_decode():
    data = bytearray(_layout_bytes())
    data[0:4] = b"ELF\x7f"
    data[26:28] = pack_u16(40)

    header = decode_header(bytes(data))

    assert header.magic == b"ELF\x7f"
    assert not header.has_valid_magic
    assert header.section_count == 40
    assert len(header.sections) == MAX_SECTIONS


def test_header_is_immutable():
    header = decode_header(_layout_bytes())

    with pytest.raises(ValidationError):
        header.section_count = 1


def test_validate_accepts_well_formed_header(quiet_logger):
    assert validate_header(make_header([600], [10]), logger=quiet_logger) == []


def test_validate_reports_bad_magic(quiet_logger):
    findings = validate_header(make_header(magic=b"EIF."), logger=quiet_logger)

    assert len(findings) == 1
    assert findings[0].severity == Severity.HIGH
    assert "4549462e" in findings[0].evidence


def test_validate_strict_magic_raises(quiet_logger):
    with pytest.raises(BadMagicError) as excinfo:
        validate_header(make_header(magic=b"\x00\x00\x00\x00"), strict_magic=True, logger=quiet_logger)

    assert excinfo.value.magic == b"\x00\x00\x00\x00"


def test_validate_reports_too_many_sections(quiet_logger):
    findings = validate_header(make_header(section_count=33), logger=quiet_logger)

    assert [f.severity for f in findings] == [Severity.CRITICAL]
