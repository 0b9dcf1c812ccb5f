"""
Kernmap Shared Data Models
===========================

Pydantic v2 models shared across Kernmap entry points: the severity
scale, individual findings, and the top-level scan result envelope that
wraps every analysis run.

References:
    - SARIF v2.1.0 Specification (OASIS, 2020).
    - Pydantic v2 documentation. https://docs.pydantic.dev/latest/
"""

from __future__ import annotations

import datetime as _dt
import json as _json
from enum import Enum
from typing import Any, Optional

from pydantic import (
    BaseModel,
    Field,
    ConfigDict,
    field_validator,
)


def _utcnow() -> _dt.datetime:
    return _dt.datetime.now(_dt.timezone.utc)


# ========================== Enumerations ===================================


class Severity(str, Enum):
    """Finding severity level.

    Attributes:
        CRITICAL: The image could not be parsed at all.
        HIGH:     Structural inconsistency in a recovered layout.
        MEDIUM:   Suspicious but non-fatal condition.
        LOW:      Minor irregularity.
        INFO:     Informational observation (e.g. a section left unattached).
    """

    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"
    INFO = "INFO"


# ========================== Core Models ====================================


class Finding(BaseModel):
    """A single observation produced by an analysis run.

    Attributes:
        severity:       Qualitative severity rating.
        title:          Short, descriptive finding title.
        description:    Detailed explanation of the finding.
        evidence:       Raw data supporting the finding.
        recommendation: Suggested follow-up action.
    """

    model_config = ConfigDict(
        str_strip_whitespace=True,
        validate_assignment=True,
        use_enum_values=False,
        extra="ignore",
        json_schema_extra={
            "examples": [
                {
                    "severity": "INFO",
                    "title": "Section .rel.dyn not attached",
                    "description": "Dynamic tags DT_REL/DT_RELSZ are absent.",
                    "evidence": {"name": ".rel.dyn", "reason": "missing tag"},
                    "recommendation": "",
                }
            ]
        },
    )

    severity: Severity = Field(
        ...,
        description="Severity level of this finding",
    )
    title: str = Field(
        ...,
        min_length=1,
        max_length=256,
        description="Short descriptive title",
    )
    description: str = Field(
        ...,
        min_length=1,
        description="Detailed explanation",
    )
    evidence: str = Field(
        default="",
        description="Supporting evidence or raw data",
    )
    recommendation: str = Field(
        default="",
        description="Suggested follow-up",
    )

    @field_validator("evidence", mode="before")
    @classmethod
    def _coerce_evidence(cls, v: Any) -> str:
        """Auto-convert non-string evidence (dict, list) to JSON string."""
        if isinstance(v, str):
            return v
        if isinstance(v, (dict, list)):
            return _json.dumps(v, ensure_ascii=False, default=str)
        return str(v)


class ScanResult(BaseModel):
    """Aggregated result of a single analysis run.

    This is the top-level output envelope emitted by the engine.  It
    bundles metadata, findings and timing information into a single
    serialisable object suitable for report generation.

    Attributes:
        tool_name:  Name of the tool that produced the result.
        target:     Target that was analysed (usually a file path).
        start_time: UTC timestamp when the run started.
        end_time:   UTC timestamp when the run ended.
        success:    Whether the target was parsed successfully.
        findings:   List of individual findings.
        summary:    Human-readable summary text.
        metadata:   Arbitrary extra metadata dict.
    """

    model_config = ConfigDict(
        validate_assignment=True,
        use_enum_values=False,
        extra="ignore",
    )

    tool_name: str = Field(
        ...,
        min_length=1,
        description="Tool name",
    )
    target: str = Field(
        ...,
        min_length=1,
        description="Analysis target (file path)",
    )
    start_time: _dt.datetime = Field(
        default_factory=_utcnow,
        description="Run start timestamp (UTC)",
    )
    end_time: Optional[_dt.datetime] = Field(
        default=None,
        description="Run end timestamp (UTC)",
    )
    success: bool = Field(
        default=False,
        description="True when the target was parsed successfully",
    )
    findings: list[Finding] = Field(
        default_factory=list,
        description="List of findings",
    )
    summary: str = Field(
        default="",
        description="Human-readable result summary",
    )
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional metadata",
    )

    # ------------------------------------------------------------------ #
    #  Derived properties
    # ------------------------------------------------------------------ #

    @property
    def duration_seconds(self) -> float | None:
        """Elapsed time in seconds, or ``None`` if *end_time* is unset."""
        if self.end_time is None or self.start_time is None:
            return None
        return (self.end_time - self.start_time).total_seconds()

    @property
    def severity_counts(self) -> dict[str, int]:
        """Count of findings grouped by severity."""
        counts: dict[str, int] = {s.value: 0 for s in Severity}
        for finding in self.findings:
            counts[finding.severity.value] += 1
        return counts

    @property
    def finding_count(self) -> int:
        return len(self.findings)

    @property
    def critical_count(self) -> int:
        return sum(1 for f in self.findings if f.severity == Severity.CRITICAL)

    # ------------------------------------------------------------------ #
    #  Mutating helpers
    # ------------------------------------------------------------------ #

    def add_finding(self, finding: Finding) -> None:
        self.findings.append(finding)

    def finalize(self, summary: str | None = None) -> ScanResult:
        """Mark the run as complete by setting *end_time* and *summary*.

        If *summary* is ``None`` a default is generated from severity counts.

        Returns:
            ``self`` for fluent chaining.
        """
        self.end_time = _utcnow()
        if summary is not None:
            self.summary = summary
        else:
            counts = self.severity_counts
            parts = [f"{sev}: {cnt}" for sev, cnt in counts.items() if cnt > 0]
            self.summary = (
                f"Analysis complete. "
                f"Findings: {len(self.findings)} "
                f"({', '.join(parts) if parts else 'none'})"
            )
        return self
