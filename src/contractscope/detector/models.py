"""Detector data models — check results, findings, and scan results."""

from __future__ import annotations

import enum
import time
from dataclasses import dataclass, field


class Severity(enum.Enum):
    """Finding severity level."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class CheckResult:
    """Verdict of a single check against contract text."""

    found: bool
    details: str | None = None
    line: int = 0
    excerpt: str = ""


@dataclass(frozen=True)
class Finding:
    """A single detected vulnerability instance."""

    id: str
    check_id: str
    name: str
    severity: Severity
    description: str
    location: str
    risk_score: float
    code: str = ""

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "check_id": self.check_id,
            "name": self.name,
            "severity": self.severity.value,
            "description": self.description,
            "location": self.location,
            "risk_score": self.risk_score,
            "code": self.code,
        }


@dataclass
class ScanResult:
    """Aggregate result of scanning a directory of contracts."""

    directory: str
    findings: dict[str, list[Finding]] = field(default_factory=dict)
    files_scanned: int = 0
    files_skipped: int = 0
    duration: float = 0.0
    timestamp: float = field(default_factory=time.time)

    @property
    def total_findings(self) -> int:
        return sum(len(f) for f in self.findings.values())
