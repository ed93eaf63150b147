"""
EIF Parse Engine
=================

Orchestrates one complete parse of an Enclave Image File:

    1. Open the file (or wrap a buffer) and check its size
    2. Decode the 548-byte file header
    3. Validate magic and section count
    4. Walk the declared sections and capture the metadata payload
    5. Turn warnings and section observations into findings
    6. Compute the SHA-256 digest of the image

Fatal decoding errors do not escape :meth:`EifEngine.parse`; they are
recorded on the returned :class:`EifParseResult` along with the
sections decoded before the failure.
"""

from __future__ import annotations

import hashlib
import io
from pathlib import Path
from typing import BinaryIO

from shared.config import EifToolConfig
from shared.logger import EifToolLogger
from shared.models import Finding, Severity

from eif.core.errors import EifError
from eif.core.models import (
    EIF_HEADER_SIZE,
    EifParseResult,
    SectionDescriptor,
    SectionType,
    SizeMismatch,
)
from eif.parsers.header import decode_header, validate_header
from eif.parsers.sections import walk_sections
from eif.parsers.source import ByteSource

_DIGEST_CHUNK: int = 1 << 20

_logger: EifToolLogger | None = None


def _get_logger() -> EifToolLogger:
    global _logger
    if _logger is None:
        _logger = EifToolLogger("eif.engine")
    return _logger


class EifEngine:
    """Runs the decode / validate / walk pipeline for one image at a time.

    Usage::

        engine = EifEngine()
        result = engine.parse("/path/to/image.eif")
        if result.ok:
            print(result.metadata_text())
    """

    def __init__(
        self,
        config: EifToolConfig | None = None,
        logger: EifToolLogger | None = None,
    ) -> None:
        self._config: EifToolConfig = config or EifToolConfig()
        self._logger: EifToolLogger = logger or _get_logger()

    # ------------------------------------------------------------------ #
    #  Entry points
    # ------------------------------------------------------------------ #

    def parse(self, file_path: str | Path) -> EifParseResult:
        """Parse the EIF image at *file_path*.

        Raises:
            OSError: If the file cannot be opened or read.
            ValueError: If the file exceeds ``eif.max_file_size``.
        """
        path = Path(file_path)
        file_size = path.stat().st_size
        max_size = self._config.eif.max_file_size
        if file_size > max_size:
            raise ValueError(
                f"File too large: {file_size:,} bytes (max: {max_size:,} bytes)"
            )

        self._logger.info("Parsing %s", path)
        with open(path, "rb") as fh:
            result = self._run(fh, target=str(path.resolve()))
        return result

    def parse_bytes(self, data: bytes, target: str = "<memory>") -> EifParseResult:
        """Parse an in-memory EIF image."""
        return self._run(io.BytesIO(data), target=target)

    # ------------------------------------------------------------------ #
    #  Pipeline
    # ------------------------------------------------------------------ #

    def _run(self, stream: BinaryIO, target: str) -> EifParseResult:
        settings = self._config.eif
        source = ByteSource(stream)
        result = EifParseResult(
            path=target,
            file_size=source.size,
            metadata_encoding=settings.metadata_encoding,
        )

        with self._logger.timed(f"parse {target}"):
            try:
                header = decode_header(source.read_exact(min(EIF_HEADER_SIZE, source.size)))
                result.header = header
                result.findings.extend(
                    validate_header(header, strict_magic=settings.strict_magic, logger=self._logger)
                )
                walk = walk_sections(header, source, logger=self._logger)
            except EifError as exc:
                result.error = str(exc)
                result.error_kind = exc.kind
                result.sections = exc.descriptors
                result.warnings = exc.warnings
                self._logger.error("Parse failed (%s): %s", exc.kind, exc)
            else:
                result.sections = walk.descriptors
                result.metadata = walk.metadata
                result.warnings = walk.warnings

        result.findings.extend(self._section_findings(result.sections, result.warnings))

        if settings.compute_digest:
            result.sha256 = self._digest(stream)

        self._logger.info(
            "Parsed %s: %d section(s), %d warning(s), metadata=%s%s",
            target,
            len(result.sections),
            len(result.warnings),
            "yes" if result.metadata is not None else "no",
            f", error={result.error_kind}" if result.error_kind else "",
        )
        return result

    # ------------------------------------------------------------------ #
    #  Findings
    # ------------------------------------------------------------------ #

    @staticmethod
    def _section_findings(
        sections: list[SectionDescriptor],
        warnings: list[SizeMismatch],
    ) -> list[Finding]:
        findings: list[Finding] = []

        for w in warnings:
            findings.append(Finding(
                severity=Severity.MEDIUM,
                title="Section size mismatch",
                description=(
                    f"Section {w.index}: file header declares {w.declared_size} bytes, "
                    f"section header declares {w.header_size} bytes."
                ),
                evidence={"declared_size": w.declared_size, "header_size": w.header_size},
                section_index=w.index,
            ))

        for desc in sections:
            if desc.section_type == SectionType.INVALID:
                findings.append(Finding(
                    severity=Severity.LOW,
                    title="Invalid section type",
                    description=f"Section {desc.index} is typed 'invalid' (0).",
                    section_index=desc.index,
                ))
            elif desc.type_label == "unknown":
                findings.append(Finding(
                    severity=Severity.INFO,
                    title="Unknown section type",
                    description=f"Section {desc.index} has unrecognised type {desc.section_type}.",
                    section_index=desc.index,
                ))
            elif desc.section_type == SectionType.METADATA and not desc.payload_captured:
                findings.append(Finding(
                    severity=Severity.INFO,
                    title="Additional metadata section",
                    description=(
                        f"Section {desc.index} is a further metadata section; "
                        "only the first metadata payload is kept."
                    ),
                    section_index=desc.index,
                ))

        return findings

    @staticmethod
    def _digest(stream: BinaryIO) -> str:
        sha256 = hashlib.sha256()
        stream.seek(0)
        for chunk in iter(lambda: stream.read(_DIGEST_CHUNK), b""):
            sha256.update(chunk)
        return sha256.hexdigest()
