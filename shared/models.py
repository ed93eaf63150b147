"""
eiftool Shared Models
======================

Pydantic v2 models for observations that are worth reporting but do not
stop a parse: a size disagreement between header and section, an
unexpected magic, an unknown section type.

References:
    - SARIF v2.1.0 Specification (OASIS, 2020).
    - Pydantic v2 documentation. https://docs.pydantic.dev/latest/
"""

from __future__ import annotations

import json as _json
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Severity(str, Enum):
    """Finding severity level, most severe first."""

    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"
    INFO = "INFO"

    @property
    def rank(self) -> int:
        """Position in severity order; ``0`` is the most severe."""
        return list(Severity).index(self)


class Finding(BaseModel):
    """A single reportable observation produced while parsing an image.

    Attributes:
        severity:       Qualitative severity rating.
        title:          Short, descriptive title.
        description:    Detailed explanation.
        evidence:       Raw values supporting the finding.
        section_index:  Index of the section concerned, if any.
    """

    model_config = ConfigDict(
        str_strip_whitespace=True,
        validate_assignment=True,
        extra="ignore",
    )

    severity: Severity = Field(..., description="Severity level of this finding")
    title: str = Field(..., min_length=1, max_length=256)
    description: str = Field(..., min_length=1)
    evidence: str = Field(default="")
    section_index: int | None = Field(default=None, ge=0)

    @field_validator("evidence", mode="before")
    @classmethod
    def _coerce_evidence(cls, v: Any) -> str:
        """Auto-convert non-string evidence (dict, list) to a JSON string."""
        if isinstance(v, str):
            return v
        if isinstance(v, (dict, list)):
            return _json.dumps(v, ensure_ascii=False, default=str)
        return str(v)


def highest_severity(findings: list[Finding]) -> Severity | None:
    """Return the most severe level present, or ``None`` for no findings."""
    if not findings:
        return None
    return min((f.severity for f in findings), key=lambda s: s.rank)
