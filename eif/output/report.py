"""
EIF Report Generator
=====================

Builds a structured JSON report from an :class:`EifParseResult` for
machine consumption, either as a dictionary or written to disk.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from eif import __version__
from eif.core.models import EifParseResult


class EifReportGenerator:
    """Generate JSON reports from EIF parse results.

    Usage::

        generator = EifReportGenerator()
        data = generator.build(result)
        generator.generate_json(result, "report.json")
    """

    def build(self, result: EifParseResult) -> dict[str, Any]:
        """Return the report as a JSON-compatible dictionary."""
        header = result.header.model_dump(mode="json") if result.header else None
        if header is not None:
            # Padding slots past section_count carry no meaning.
            count = len(result.header.sections)
            header["section_offsets"] = header["section_offsets"][:count]
            header["section_sizes"] = header["section_sizes"][:count]

        return {
            "report_type": "eif_parse",
            "version": __version__,
            "generated_at": datetime.now(timezone.utc).isoformat(),
            "file": {
                "path": result.path,
                "size": result.file_size,
                "sha256": result.sha256,
            },
            "header": header,
            "sections": [
                {**desc.model_dump(mode="json"), "type": desc.type_label}
                for desc in result.sections
            ],
            "warnings": [w.model_dump(mode="json") for w in result.warnings],
            "findings": [f.model_dump(mode="json") for f in result.findings],
            "metadata": result.metadata_text(),
            "error": (
                {"kind": result.error_kind, "message": result.error}
                if result.error else None
            ),
        }

    def to_json(self, result: EifParseResult, indent: int = 2) -> str:
        return json.dumps(self.build(result), indent=indent, ensure_ascii=False)

    def generate_json(self, result: EifParseResult, output_path: str | Path) -> str:
        """Write the JSON report to *output_path*.

        Returns:
            The absolute path of the generated report.
        """
        path = Path(output_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.to_json(result), encoding="utf-8")
        return str(path.resolve())
