import pytest

from eif.core.errors import (
    EifError,
    SeekFailedError,
    TooManySectionsError,
    TruncatedInputError,
    TruncatedMetadataError,
    TruncatedSectionHeaderError,
)
from eif.core.models import EIF_HEADER_SIZE, SectionType
from eif.parsers.header import decode_header
from eif.parsers.sections import SectionWalker, decode_section_header, walk_sections
from eif.parsers.source import ByteSource

from conftest import SectionSpec, make_header, make_image


def _walk(image: bytes, logger):
    source = ByteSource.from_bytes(image)
    header = decode_header(source.read_exact(EIF_HEADER_SIZE))
    return walk_sections(header, source, logger=logger)


class RecordingSource:
    """ByteSource stand-in that records every call."""

    def __init__(self):
        self.calls = []

    def seek(self, offset):
        self.calls.append(("seek", offset))
        return offset

    def read_exact(self, size):
        self.calls.append(("read", size))
        return b"\x00" * size


def test_decode_section_header():
    section = decode_section_header(b"\x00\x05\x00\x01\x00\x00\x00\x00\x00\x00\x01\x00")

    assert section.section_type == SectionType.METADATA
    assert section.is_metadata
    assert section.flags == 1
    assert section.section_size == 256


def test_decode_section_header_from_11_bytes_fails():
    with pytest.raises(TruncatedSectionHeaderError) as excinfo:
        decode_section_header(b"\x00" * 11)

    assert isinstance(excinfo.value, TruncatedInputError)
    assert excinfo.value.got == 11


def test_unknown_type_label():
    section = decode_section_header(b"\x00\x63" + b"\x00" * 10)

    assert section.type_label == "unknown"


def test_zero_sections_ignores_padding(quiet_logger):
    # Padding slots point far beyond the file; they must never be visited.
    header = make_header([2 ** 40] * 32, [7] * 32, section_count=0)
    source = RecordingSource()

    result = walk_sections(header, source, logger=quiet_logger)

    assert result.descriptors == []
    assert result.metadata is None
    assert result.warnings == []
    assert source.calls == []


def test_too_many_sections_fails_before_io(quiet_logger):
    header = make_header(section_count=33)
    source = RecordingSource()

    with pytest.raises(TooManySectionsError) as excinfo:
        walk_sections(header, source, logger=quiet_logger)

    assert excinfo.value.section_count == 33
    assert source.calls == []


def test_metadata_captured_from_third_section(quiet_logger):
    text = '{"ImageName": "enclave"}'.encode()
    image = make_image([
        SectionSpec(SectionType.KERNEL, b"K" * 32),
        SectionSpec(SectionType.CMDLINE, b"init=/bin/sh"),
        SectionSpec(SectionType.METADATA, text),
    ])

    result = _walk(image, quiet_logger)

    assert result.metadata == text + b"\x00"
    assert result.metadata_text() == text.decode()
    assert result.warnings == []
    assert [d.type_label for d in result.descriptors] == ["kernel", "cmdline", "metadata"]
    assert [d.payload_captured for d in result.descriptors] == [False, False, True]


def test_first_metadata_section_wins(quiet_logger):
    image = make_image([
        SectionSpec(SectionType.METADATA, b"first"),
        SectionSpec(SectionType.RAMDISK, b"R" * 8),
        SectionSpec(SectionType.METADATA, b"second one"),
    ])

    result = _walk(image, quiet_logger)

    assert result.metadata == b"first\x00"
    assert len(result.descriptors) == 3
    second = result.descriptors[2]
    assert second.section_type == SectionType.METADATA
    assert second.header_size == len(b"second one")
    assert not second.payload_captured


def test_size_mismatch_is_reported_and_on_disk_size_used(quiet_logger):
    payload = b"0123456789abcdefghij"
    image = make_image([
        SectionSpec(SectionType.METADATA, payload, declared_size=10, header_size=20),
    ])

    result = _walk(image, quiet_logger)

    assert [w.as_tuple() for w in result.warnings] == [(10, 20)]
    assert result.warnings[0].index == 0
    assert result.descriptors[0].size_mismatch
    assert result.descriptors[0].declared_size == 10
    assert result.descriptors[0].header_size == 20
    assert result.metadata == payload + b"\x00"


def test_mismatch_does_not_stop_the_walk(quiet_logger):
    image = make_image([
        SectionSpec(SectionType.KERNEL, b"k" * 4, declared_size=99),
        SectionSpec(SectionType.CMDLINE, b"quiet"),
    ])

    result = _walk(image, quiet_logger)

    assert len(result.descriptors) == 2
    assert [d.size_mismatch for d in result.descriptors] == [True, False]


def test_offsets_may_be_unordered_and_overlapping(quiet_logger):
    image = make_image([
        SectionSpec(SectionType.CMDLINE, b"abc", offset=700),
        SectionSpec(SectionType.KERNEL, b"kernel", offset=600),
        SectionSpec(SectionType.CMDLINE, b"abc", offset=700),
    ])

    result = _walk(image, quiet_logger)

    assert [d.offset for d in result.descriptors] == [700, 600, 700]
    assert [d.index for d in result.descriptors] == [0, 1, 2]


def test_unknown_types_are_not_errors(quiet_logger):
    image = make_image([
        SectionSpec(0x42, b"??"),
        SectionSpec(SectionType.INVALID, b""),
    ])

    result = _walk(image, quiet_logger)

    assert [d.type_label for d in result.descriptors] == ["unknown", "invalid"]


def test_empty_metadata_payload(quiet_logger):
    result = _walk(make_image([SectionSpec(SectionType.METADATA, b"")]), quiet_logger)

    assert result.metadata == b"\x00"
    assert result.metadata_text() == ""


def test_seek_past_end_fails_and_keeps_earlier_sections(quiet_logger):
    image = make_image([SectionSpec(SectionType.KERNEL, b"kk")])
    header = make_header([EIF_HEADER_SIZE, len(image) + 100], [2, 2])
    source = ByteSource.from_bytes(image)

    with pytest.raises(SeekFailedError) as excinfo:
        walk_sections(header, source, logger=quiet_logger)

    assert excinfo.value.requested == len(image) + 100
    assert excinfo.value.actual == len(image)
    assert [d.index for d in excinfo.value.descriptors] == [0]


def test_truncated_section_header_at_end_of_file(quiet_logger):
    image = make_image([SectionSpec(SectionType.KERNEL, b"kk")]) + b"\x00" * 11
    header = make_header([EIF_HEADER_SIZE, len(image) - 11], [2, 0])

    with pytest.raises(TruncatedSectionHeaderError) as excinfo:
        walk_sections(header, ByteSource.from_bytes(image), logger=quiet_logger)

    assert excinfo.value.got == 11
    assert len(excinfo.value.descriptors) == 1


def test_truncated_metadata(quiet_logger):
    image = make_image([SectionSpec(SectionType.METADATA, b"short", header_size=500)])

    with pytest.raises(TruncatedMetadataError) as excinfo:
        _walk(image, quiet_logger)

    assert excinfo.value.expected == 500
    assert excinfo.value.got == 5
    assert isinstance(excinfo.value, EifError)


def test_huge_metadata_size_does_not_read(quiet_logger):
    image = make_image([SectionSpec(SectionType.METADATA, b"x", header_size=2 ** 64 - 1)])

    with pytest.raises(TruncatedMetadataError):
        _walk(image, quiet_logger)


def test_walker_reports_capture_state(quiet_logger):
    image = make_image([SectionSpec(SectionType.METADATA, b"{}")])
    source = ByteSource.from_bytes(image)
    header = decode_header(source.read_exact(EIF_HEADER_SIZE))
    walker = SectionWalker(header, source, logger=quiet_logger)

    assert not walker.metadata_captured
    walker.walk()
    assert walker.metadata_captured


def test_walk_twice_gives_identical_results(quiet_logger):
    image = make_image([
        SectionSpec(SectionType.KERNEL, b"kk", declared_size=3),
        SectionSpec(SectionType.METADATA, b'{"a": 1}'),
    ])
    source = ByteSource.from_bytes(image)
    header = decode_header(source.read_exact(EIF_HEADER_SIZE))
    walker = SectionWalker(header, source, logger=quiet_logger)

    first = walker.walk()
    second = walker.walk()

    assert second == first
    assert len(second.descriptors) == 2
    assert [d.payload_captured for d in second.descriptors] == [False, True]
    assert second.metadata == b'{"a": 1}\x00'
    assert [w.as_tuple() for w in second.warnings] == [(3, 2)]


def test_walk_after_failure_starts_clean(quiet_logger):
    image = make_image([
        SectionSpec(SectionType.KERNEL, b"kk"),
        SectionSpec(SectionType.METADATA, b"x", header_size=50),
    ])
    source = ByteSource.from_bytes(image)
    header = decode_header(source.read_exact(EIF_HEADER_SIZE))
    walker = SectionWalker(header, source, logger=quiet_logger)

    for _ in range(2):
        with pytest.raises(TruncatedMetadataError) as excinfo:
            walker.walk()
        assert [d.index for d in excinfo.value.descriptors] == [0]


def test_walkers_without_logger_share_one_logger():
    image = make_image([SectionSpec(SectionType.KERNEL, b"k")])
    source = ByteSource.from_bytes(image)
    header = decode_header(source.read_exact(EIF_HEADER_SIZE))

    first = SectionWalker(header, source)
    handlers = list(first._logger.underlying.handlers)
    second = SectionWalker(header, source)

    assert second._logger is first._logger
    assert second._logger.underlying.handlers == handlers
