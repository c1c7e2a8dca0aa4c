"""Journal Spine -- persisted migration ledger for schema-migration tools.

Manifesto:
    A migration runner must know exactly which upgrade scripts have
    already been applied to a target database.  The journal is the only
    state-bearing, failure-sensitive part of such a tool: it probes for
    the ledger table, creates it on first use, reads back applied script
    names in lexical order and records each newly applied script.

    - **Connection per operation:** no shared mutable connection state
    - **Explicit probe outcomes:** "missing" is never confused with
      "unreachable"
    - **Bound values only:** identifiers are quoted, values are parameters
    - **Typed failures:** every driver error surfaces as a JournalError

Module Map
----------
    protocols.py     Connection / ConnectionFactory / UpgradeLog / Journal
    dialect.py       Identifier quoting and ledger SQL (4 backends)
    probe.py         TableState / ProbeResult
    journal.py       TableJournal
    errors.py        JournalError hierarchy
    connection.py    Connection factories from database URLs
    upgrade_log.py   UpgradeLog sinks (structlog, memory, no-op)
    logging.py       structlog configuration
    settings.py      JournalSettings (pydantic-settings)
    factory.py       create_journal()
"""

from journal_spine.connection import ConnectionInfo, SQLiteConnectionFactory, create_connection_factory
from journal_spine.dialect import Dialect, get_dialect, register_dialect
from journal_spine.errors import (
    ConfigError,
    DatabaseError,
    ErrorCategory,
    ErrorContext,
    InvalidConfigError,
    JournalError,
    JournalReadError,
    ScriptRecordError,
    TableCreationError,
    TableProbeError,
    ValidationError,
)
from journal_spine.factory import configure_logging_from_settings, create_journal
from journal_spine.journal import TableJournal
from journal_spine.probe import ProbeResult, TableState
from journal_spine.protocols import Connection, ConnectionFactory, Cursor, Journal, UpgradeLog
from journal_spine.settings import JournalSettings
from journal_spine.upgrade_log import MemoryUpgradeLog, NoOpUpgradeLog, StructlogUpgradeLog

__version__ = "0.1.0"

__all__ = [
    # Journal
    "TableJournal",
    "ProbeResult",
    "TableState",
    # Protocols
    "Connection",
    "ConnectionFactory",
    "Cursor",
    "Journal",
    "UpgradeLog",
    # Dialects
    "Dialect",
    "get_dialect",
    "register_dialect",
    # Connections
    "ConnectionInfo",
    "SQLiteConnectionFactory",
    "create_connection_factory",
    # Logging sinks
    "MemoryUpgradeLog",
    "NoOpUpgradeLog",
    "StructlogUpgradeLog",
    # Configuration
    "JournalSettings",
    "create_journal",
    "configure_logging_from_settings",
    # Errors
    "JournalError",
    "ErrorCategory",
    "ErrorContext",
    "ConfigError",
    "InvalidConfigError",
    "ValidationError",
    "DatabaseError",
    "TableProbeError",
    "TableCreationError",
    "JournalReadError",
    "ScriptRecordError",
]
