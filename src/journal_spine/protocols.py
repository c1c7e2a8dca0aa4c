"""
Canonical protocol definitions for journal-spine.

The journal never imports a database driver.  It depends on the *shape*
of a DB-API 2.0 connection, on a zero-argument factory that hands out
such connections, and on a log sink for operator-facing messages.

Architecture:
    ::

        protocols.py
        ├── Cursor             — DB-API cursor subset (execute/fetch/close)
        ├── Connection         — DB-API connection subset (cursor/commit/close)
        ├── ConnectionFactory  — () -> Connection, one per logical operation
        ├── UpgradeLog         — informational message sink
        └── Journal            — what a migration runner depends on

    Implementations:
        sqlite3, psycopg2, mysql.connector, pyodbc connections satisfy Connection.
        journal.TableJournal satisfies Journal.
        upgrade_log.* satisfy UpgradeLog.

Guardrails:
    ❌ DON'T: Import sqlite3 or psycopg2 in journal code
    ✅ DO: Accept a ConnectionFactory and let the caller choose the driver

    ❌ DON'T: Hold a connection across journal operations
    ✅ DO: Open, use and close within a single operation

Tags:
    protocol, connection, journal, dbapi, contracts
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any, Protocol, runtime_checkable

# ---------------------------------------------------------------------------
# Database Connection Protocols
# ---------------------------------------------------------------------------


@runtime_checkable
class Cursor(Protocol):
    """Minimal DB-API 2.0 cursor used by the journal."""

    def execute(self, sql: str, params: Sequence[Any] = ...) -> Any:
        """Execute a single statement with optional bound parameters."""
        ...

    def fetchone(self) -> Any:
        """Fetch one row from the last query."""
        ...

    def fetchall(self) -> list:
        """Fetch all remaining rows from the last query."""
        ...

    def close(self) -> None:
        """Release the cursor."""
        ...


@runtime_checkable
class Connection(Protocol):
    """
    Minimal DB-API 2.0 connection used by the journal.

    Connections are obtained from a :data:`ConnectionFactory`, used for
    exactly one logical step and closed by the journal.
    """

    def cursor(self) -> Cursor:
        """Open a cursor on this connection."""
        ...

    def commit(self) -> None:
        """Commit the current transaction."""
        ...

    def rollback(self) -> None:
        """Roll back the current transaction."""
        ...

    def close(self) -> None:
        """Close the connection."""
        ...


ConnectionFactory = Callable[[], Connection]
"""Zero-argument callable returning a new, ready-to-use connection."""


# ---------------------------------------------------------------------------
# Component Protocols
# ---------------------------------------------------------------------------


@runtime_checkable
class UpgradeLog(Protocol):
    """Sink for human-readable informational messages."""

    def write_information(self, message: str) -> None:
        """Record an informational message."""
        ...


@runtime_checkable
class Journal(Protocol):
    """
    Contract a migration runner depends on.

    ``get_executed_scripts`` is called before running anything;
    ``store_executed_script`` after each script executes successfully.
    """

    def get_executed_scripts(self) -> list[str]:
        """Names of scripts already applied, in lexical order."""
        ...

    def store_executed_script(self, script_name: str) -> None:
        """Record that ``script_name`` has been applied."""
        ...


__all__ = [
    "Cursor",
    "Connection",
    "ConnectionFactory",
    "UpgradeLog",
    "Journal",
]
