"""
eiftool EIF -- Enclave Image File Parser
=========================================

Decodes and validates EIF containers: the fixed 548-byte file header and
the typed sections it points to (kernel, cmdline, ramdisk, signature,
metadata).  Payloads are not interpreted, checksums and signatures are
surfaced but not verified, and files are never written.

Capabilities:
    - Big-endian, bounds-checked decoding of the file and section headers
    - Section walk in header order with size cross-checks
    - Capture of the first metadata payload
    - Findings for suspicious but non-fatal conditions
    - Rich console report and JSON report

Typical use::

    from eif import decode_header, walk_sections, ByteSource

    with open("image.eif", "rb") as fh:
        source = ByteSource(fh)
        header = decode_header(source.read_exact(548))
        result = walk_sections(header, source)
"""

__version__ = "1.0.0"

from eif.core.engine import EifEngine
from eif.core.models import EifParseResult, FileHeader, SectionDescriptor, WalkResult
from eif.parsers.header import decode_header, encode_header, validate_header
from eif.parsers.sections import decode_section_header, walk_sections
from eif.parsers.source import ByteSource

__all__ = [
    "ByteSource",
    "EifEngine",
    "EifParseResult",
    "FileHeader",
    "SectionDescriptor",
    "WalkResult",
    "decode_header",
    "decode_section_header",
    "encode_header",
    "validate_header",
    "walk_sections",
]
