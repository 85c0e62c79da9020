"""Repository classes for async CRUD operations on SQLite."""

from __future__ import annotations

import time
import uuid
from collections.abc import Sequence

import aiosqlite

from contractscope.audit.models import AuditRecord, RecordStatus
from contractscope.detector.models import Finding


class AuditRepo:
    """Stores finished audits and their findings.

    Satisfies the orchestrator's sink protocol, so it can be passed
    straight to ``AuditOrchestrator(sink=...)``.
    """

    def __init__(self, db: aiosqlite.Connection) -> None:
        self._db = db

    async def save(
        self,
        content_hash: str,
        findings: Sequence[Finding],
        security_score: int,
    ) -> AuditRecord:
        record = AuditRecord(
            id=uuid.uuid4().hex[:12],
            content_hash=content_hash,
            security_score=security_score,
            findings=tuple(findings),
            status=RecordStatus.VERIFIED,
            timestamp=time.time(),
        )
        await self._db.execute(
            "INSERT INTO audit_records "
            "(id, content_hash, security_score, status, "
            "block_reference, timestamp) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            (
                record.id,
                record.content_hash,
                record.security_score,
                record.status.value,
                record.block_reference,
                record.timestamp,
            ),
        )

        for finding in record.findings:
            await self._db.execute(
                "INSERT INTO audit_findings "
                "(record_id, finding_id, check_id, name, severity, "
                "description, location, risk_score, code) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    record.id,
                    finding.id,
                    finding.check_id,
                    finding.name,
                    finding.severity.value,
                    finding.description,
                    finding.location,
                    finding.risk_score,
                    finding.code,
                ),
            )

        await self._db.commit()
        return record

    async def get(self, record_id: str) -> dict | None:
        cursor = await self._db.execute(
            "SELECT * FROM audit_records WHERE id = ?", (record_id,)
        )
        row = await cursor.fetchone()
        if not row:
            return None

        result = dict(row)
        cursor = await self._db.execute(
            "SELECT * FROM audit_findings WHERE record_id = ? ORDER BY id",
            (record_id,),
        )
        result["findings"] = [dict(r) async for r in cursor]
        return result

    async def find_by_hash(self, content_hash: str) -> list[dict]:
        cursor = await self._db.execute(
            "SELECT * FROM audit_records WHERE content_hash = ? "
            "ORDER BY timestamp DESC",
            (content_hash,),
        )
        return [dict(row) async for row in cursor]

    async def list_all(self, limit: int = 50, offset: int = 0) -> list[dict]:
        cursor = await self._db.execute(
            "SELECT * FROM audit_records ORDER BY timestamp DESC LIMIT ? OFFSET ?",
            (limit, offset),
        )
        return [dict(row) async for row in cursor]
