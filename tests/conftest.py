"""
Shared pytest fixtures for journal-spine tests.

This module provides:
- SQLite file-backed connection factories in ``tmp_path``
- A ready ``TableJournal`` with an in-memory upgrade log
- Fake DB-API databases for failure-path tests
- structlog reset between tests
"""

from __future__ import annotations

from pathlib import Path

import pytest
import structlog

from journal_spine.connection import SQLiteConnectionFactory
from journal_spine.journal import TableJournal
from journal_spine.upgrade_log import MemoryUpgradeLog
from tests._support.fakes import FakeDatabase


@pytest.fixture(autouse=True)
def _reset_structlog():
    yield
    structlog.reset_defaults()


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "journal.db"


@pytest.fixture
def sqlite_factory(db_path: Path) -> SQLiteConnectionFactory:
    return SQLiteConnectionFactory(str(db_path))


@pytest.fixture
def upgrade_log() -> MemoryUpgradeLog:
    return MemoryUpgradeLog()


@pytest.fixture
def journal(sqlite_factory: SQLiteConnectionFactory, upgrade_log: MemoryUpgradeLog) -> TableJournal:
    """Journal on an empty SQLite file, default table, no schema."""
    return TableJournal(sqlite_factory, None, "SchemaVersions", upgrade_log)


@pytest.fixture
def fake_db() -> FakeDatabase:
    return FakeDatabase()


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Drop ``JOURNAL_*`` variables and run from an empty directory (no ``.env``)."""
    for key in (
        "JOURNAL_DATABASE_URL",
        "JOURNAL_DIALECT",
        "JOURNAL_SCHEMA_NAME",
        "JOURNAL_TABLE_NAME",
        "JOURNAL_STRICT_PROBE",
        "JOURNAL_LOG_LEVEL",
        "JOURNAL_LOG_FORMAT",
    ):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
