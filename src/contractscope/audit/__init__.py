"""Audit orchestration — lifecycle, progress reporting, and results."""

from contractscope.audit.models import (
    AuditRecord,
    AuditResult,
    AuditState,
    MarketAssessment,
    ProgressEvent,
    RecordStatus,
    TokenContext,
)
from contractscope.audit.orchestrator import AuditOrchestrator, AuditSink

__all__ = [
    "AuditOrchestrator",
    "AuditRecord",
    "AuditResult",
    "AuditSink",
    "AuditState",
    "MarketAssessment",
    "ProgressEvent",
    "RecordStatus",
    "TokenContext",
]
