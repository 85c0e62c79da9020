"""Tests for the SQLite storage layer."""

from __future__ import annotations

import asyncio
from pathlib import Path

import aiosqlite
import pytest

from contractscope.audit.models import AuditState, RecordStatus, content_hash
from contractscope.audit.orchestrator import AuditOrchestrator
from contractscope.detector.engine import Detector


def run_async(coro):
    """Helper to run async functions in sync tests."""
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
    return loop.run_until_complete(coro)


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "test.db"


@pytest.fixture
def db(db_path: Path):
    from contractscope.storage.db import get_db

    conn = run_async(get_db(db_path))
    yield conn
    run_async(conn.close())


class TestAuditRepo:
    def test_save_and_get(self, db, vault_source):
        from contractscope.storage.repos import AuditRepo

        repo = AuditRepo(db)
        findings = Detector().detect(vault_source)
        record = run_async(repo.save(content_hash(vault_source), findings, 85))

        assert record.status == RecordStatus.VERIFIED
        assert len(record.id) == 12

        stored = run_async(repo.get(record.id))
        assert stored is not None
        assert stored["security_score"] == 85
        assert stored["status"] == "verified"
        assert stored["content_hash"] == content_hash(vault_source)
        assert len(stored["findings"]) == 1
        assert stored["findings"][0]["check_id"] == "reentrancy"
        assert stored["findings"][0]["severity"] == "high"
        assert stored["findings"][0]["location"] == "line 14"

    def test_get_missing(self, db):
        from contractscope.storage.repos import AuditRepo

        assert run_async(AuditRepo(db).get("nope")) is None

    def test_list_all(self, db):
        from contractscope.storage.repos import AuditRepo

        repo = AuditRepo(db)
        for i in range(3):
            run_async(repo.save(f"hash{i}", [], 100))
        assert len(run_async(repo.list_all())) == 3
        assert len(run_async(repo.list_all(limit=2))) == 2

    def test_find_by_hash(self, db):
        from contractscope.storage.repos import AuditRepo

        repo = AuditRepo(db)
        run_async(repo.save("aaa", [], 100))
        run_async(repo.save("aaa", [], 90))
        run_async(repo.save("bbb", [], 80))
        assert len(run_async(repo.find_by_hash("aaa"))) == 2

    def test_as_orchestrator_sink(self, db, vault_source, static_source):
        from contractscope.storage.repos import AuditRepo

        repo = AuditRepo(db)
        orchestrator = AuditOrchestrator(source=static_source, sink=repo)
        result = run_async(orchestrator.run(vault_source))

        assert result.state == AuditState.COMPLETE
        stored = run_async(repo.get(result.record.id))
        assert stored["security_score"] == 85


class TestMigrations:
    def test_fresh_database_version(self, db):
        from contractscope.storage.db import SCHEMA_VERSION

        async def _version():
            cursor = await db.execute("SELECT version FROM schema_version")
            row = await cursor.fetchone()
            return row[0]

        assert run_async(_version()) == SCHEMA_VERSION

    def test_reopen_keeps_records(self, db_path: Path):
        from contractscope.storage.db import SCHEMA_VERSION, get_db
        from contractscope.storage.repos import AuditRepo

        async def _open_twice():
            conn = await get_db(db_path)
            await AuditRepo(conn).save("h", [], 70)
            await conn.close()

            conn = await get_db(db_path)
            try:
                cursor = await conn.execute("SELECT * FROM audit_records")
                rows = [dict(r) async for r in cursor]
                cursor = await conn.execute("SELECT version FROM schema_version")
                versions = [r[0] async for r in cursor]
            finally:
                await conn.close()
            return rows, versions

        rows, versions = run_async(_open_twice())
        assert versions == [SCHEMA_VERSION]
        assert rows[0]["security_score"] == 70
        assert rows[0]["block_reference"] == ""

    def test_newer_schema_refused(self, db_path: Path):
        from contractscope.storage.db import SCHEMA_VERSION, get_db

        async def _create_future():
            conn = await aiosqlite.connect(str(db_path))
            await conn.executescript(
                "CREATE TABLE schema_version (version INTEGER NOT NULL);"
                f"INSERT INTO schema_version (version) VALUES ({SCHEMA_VERSION + 1});"
            )
            await conn.commit()
            await conn.close()

        run_async(_create_future())
        with pytest.raises(RuntimeError, match="newer than supported"):
            run_async(get_db(db_path))
