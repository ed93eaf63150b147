"""Shared fixtures: builders for synthetic EIF images."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

import pytest

from eif.core.models import (
    EIF_HEADER_SIZE,
    EIF_MAGIC,
    MAX_SECTIONS,
    FileHeader,
    SectionHeader,
    SectionType,
)
from eif.parsers.header import encode_header
from eif.parsers.sections import encode_section_header
from shared.logger import EifToolLogger


@dataclass
class SectionSpec:
    """One section to place in a synthetic image.

    ``declared_size`` overrides the size written in the file header and
    ``header_size`` the size written in the section's own header; both
    default to ``len(payload)``.
    """
    section_type: int
    payload: bytes = b""
    flags: int = 0
    declared_size: int | None = None
    header_size: int | None = None
    offset: int | None = None


def make_header(
    offsets: list[int] | None = None,
    sizes: list[int] | None = None,
    **fields,
) -> FileHeader:
    offsets = list(offsets or [])
    sizes = list(sizes or [])
    fields.setdefault("magic", EIF_MAGIC)
    fields.setdefault("section_count", len(offsets))
    return FileHeader(
        section_offsets=tuple(offsets + [0] * (MAX_SECTIONS - len(offsets))),
        section_sizes=tuple(sizes + [0] * (MAX_SECTIONS - len(sizes))),
        **fields,
    )


def make_image(sections: list[SectionSpec], trailer: bytes = b"", **header_fields) -> bytes:
    """Lay *sections* out after the file header and return the image bytes.

    Sections without an explicit ``offset`` are appended back to back;
    sections with one are written at that offset (the image is padded
    with zeros as needed).
    """
    body = bytearray(EIF_HEADER_SIZE)
    offsets: list[int] = []
    sizes: list[int] = []
    cursor = EIF_HEADER_SIZE

    for item in sections:
        header_size = len(item.payload) if item.header_size is None else item.header_size
        declared = len(item.payload) if item.declared_size is None else item.declared_size
        blob = encode_section_header(SectionHeader(
            section_type=item.section_type, flags=item.flags, section_size=header_size,
        )) + item.payload

        offset = cursor if item.offset is None else item.offset
        end = offset + len(blob)
        if end > len(body):
            body.extend(b"\x00" * (end - len(body)))
        body[offset:end] = blob
        if item.offset is None:
            cursor = end

        offsets.append(offset)
        sizes.append(declared)

    header = make_header(offsets, sizes, **header_fields)
    body[:EIF_HEADER_SIZE] = encode_header(header)
    return bytes(body) + trailer


@pytest.fixture
def quiet_logger() -> EifToolLogger:
    return EifToolLogger("tests", log_level="DEBUG", console_output=False)


@pytest.fixture
def image_builder() -> Callable[..., bytes]:
    return make_image


@pytest.fixture
def metadata_json() -> bytes:
    return b'{"ImageName": "hello", "ImageVersion": "1.0", "BuildMetadata": {"BuildTool": "nitro-cli"}}'


@pytest.fixture
def typical_image(metadata_json: bytes) -> bytes:
    """kernel, cmdline, ramdisk, signature, metadata -- all consistent."""
    return make_image([
        SectionSpec(SectionType.KERNEL, b"\x7fELF" + b"\x00" * 60),
        SectionSpec(SectionType.CMDLINE, b"console=ttyS0 reboot=k"),
        SectionSpec(SectionType.RAMDISK, b"070701" + b"\x00" * 26),
        SectionSpec(SectionType.SIGNATURE, b"\xa1" * 16),
        SectionSpec(SectionType.METADATA, metadata_json),
    ], version=4, default_memory=512 * 1024 * 1024, default_cpus=2, crc32=0xDEADBEEF)
