"""Connection providers: build connection factories from URL strings.

The journal opens a fresh connection for every logical step, so what it
needs from the caller is a *factory*, not a connection.
``create_connection_factory()`` is the single entry point that turns a
database URL into such a factory plus metadata about the backend.

Supported URL schemes
---------------------
==================  ==========================================  ============
Scheme              Example                                     Backend
==================  ==========================================  ============
``memory``          ``memory`` or ``:memory:`` or ``None``      SQLite RAM
``sqlite``          ``sqlite:///path/to/file.db``               SQLite file
``(file path)``     ``./data/journal.db``                       SQLite file
``postgresql``      ``postgresql://user:pw@host:port/db``       PostgreSQL
``postgres``        ``postgres://user:pw@host:port/db``         PostgreSQL
``mysql``           ``mysql://user:pw@host:port/db``            MySQL
``odbc``            ``odbc://DRIVER={...};SERVER=...;...``      SQL Server
==================  ==========================================  ============

Drivers other than ``sqlite3`` are imported lazily; a missing driver is
reported as a :class:`~journal_spine.errors.ConfigError`.

Usage
-----
::

    from journal_spine.connection import create_connection_factory

    factory, info = create_connection_factory("sqlite:///data/journal.db")
    print(info)
    # ConnectionInfo(backend='sqlite', persistent=True, path='/abs/data/journal.db')
"""

from __future__ import annotations

import re
import sqlite3
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Any
from urllib.parse import unquote, urlsplit

from .errors import ConfigError
from .logging import get_logger
from .protocols import ConnectionFactory

logger = get_logger(__name__)

MEMORY = ":memory:"


# ── ConnectionInfo ───────────────────────────────────────────────────────


@dataclass(frozen=True)
class ConnectionInfo:
    """Metadata about a connection provider."""

    backend: str
    """Dialect name: ``"sqlite"``, ``"postgresql"``, ``"mysql"``, ``"sqlserver"``."""

    persistent: bool
    """Whether data survives process exit."""

    url: str
    """The original URL or path used to create the provider."""

    resolved_path: str | None = None
    """For file-based SQLite, the resolved absolute path."""

    def __repr__(self) -> str:
        parts = [f"backend={self.backend!r}", f"persistent={self.persistent}"]
        if self.resolved_path:
            parts.append(f"path={self.resolved_path!r}")
        else:
            parts.append(f"url={_redact(self.url)!r}")
        return f"ConnectionInfo({', '.join(parts)})"

    @property
    def is_sqlite(self) -> bool:
        return self.backend == "sqlite"


# ODBC keyword values may be braced, with "}}" escaping a literal brace
_ODBC_SECRET = re.compile(r"(?i)\b(PWD|Password)(\s*=\s*)(\{(?:[^}]|\}\})*\}|[^;]*)")


def _redact(url: str) -> str:
    """Mask passwords in URLs (``user:pw@host``) and ODBC strings (``PWD=...``)."""
    masked = _ODBC_SECRET.sub(r"\1\2***", url)
    try:
        parts = urlsplit(masked)
        password = parts.password
    except ValueError:
        # Not a URL (e.g. an ODBC string with "[" in a value)
        return masked
    if password:
        return masked.replace(f":{password}@", ":***@", 1)
    return masked


# ── SQLite ───────────────────────────────────────────────────────────────


class SQLiteConnectionFactory:
    """Hand out new ``sqlite3`` connections to one database.

    For ``":memory:"`` every connection attaches to the same uniquely
    named shared-cache in-memory database.  An anchor connection keeps
    that database alive between calls until :meth:`close`.
    """

    def __init__(self, path: str = MEMORY, *, timeout: float = 5.0) -> None:
        self._timeout = timeout
        self._anchor: sqlite3.Connection | None = None
        if path == MEMORY:
            self._target = f"file:journal-{uuid.uuid4().hex}?mode=memory&cache=shared"
            self._uri = True
            self._anchor = self._connect()
        else:
            self._target = path
            self._uri = path.startswith("file:")

    @property
    def in_memory(self) -> bool:
        return self._anchor is not None

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self._target, timeout=self._timeout, uri=self._uri)

    def __call__(self) -> sqlite3.Connection:
        return self._connect()

    def close(self) -> None:
        """Release the in-memory anchor (the database is discarded)."""
        if self._anchor is not None:
            self._anchor.close()
            self._anchor = None

    def __repr__(self) -> str:
        return f"SQLiteConnectionFactory({self._target!r})"


def _create_sqlite_memory() -> tuple[ConnectionFactory, ConnectionInfo]:
    factory = SQLiteConnectionFactory(MEMORY)
    return factory, ConnectionInfo(backend="sqlite", persistent=False, url=MEMORY)


def _create_sqlite_file(path_str: str) -> tuple[ConnectionFactory, ConnectionInfo]:
    path = Path(path_str)
    path.parent.mkdir(parents=True, exist_ok=True)
    resolved = str(path.resolve())

    factory = SQLiteConnectionFactory(resolved)
    info = ConnectionInfo(
        backend="sqlite",
        persistent=True,
        url=path_str,
        resolved_path=resolved,
    )
    return factory, info


# ── Server backends ──────────────────────────────────────────────────────


def _create_postgresql(url: str) -> tuple[ConnectionFactory, ConnectionInfo]:
    try:
        import psycopg2
    except ImportError as exc:
        raise ConfigError(
            "psycopg2 is required for PostgreSQL. Install with: pip install journal-spine[postgresql]",
            cause=exc,
        ) from exc

    def factory() -> Any:
        return psycopg2.connect(url)

    return factory, ConnectionInfo(backend="postgresql", persistent=True, url=url)


def _create_mysql(url: str) -> tuple[ConnectionFactory, ConnectionInfo]:
    try:
        import mysql.connector
    except ImportError as exc:
        raise ConfigError(
            "mysql-connector-python is required for MySQL. Install with: pip install journal-spine[mysql]",
            cause=exc,
        ) from exc

    parts = urlsplit(url)
    params: dict[str, Any] = {
        "host": parts.hostname or "localhost",
        "port": parts.port or 3306,
        "user": unquote(parts.username) if parts.username else None,
        "password": unquote(parts.password) if parts.password else "",
        "database": parts.path.lstrip("/") or None,
        "charset": "utf8mb4",
        "autocommit": False,
    }

    def factory() -> Any:
        return mysql.connector.connect(**params)

    return factory, ConnectionInfo(backend="mysql", persistent=True, url=url)


def _create_odbc(odbc_string: str, url: str) -> tuple[ConnectionFactory, ConnectionInfo]:
    try:
        import pyodbc
    except ImportError as exc:
        raise ConfigError(
            "pyodbc is required for SQL Server. Install with: pip install journal-spine[sqlserver]",
            cause=exc,
        ) from exc

    def factory() -> Any:
        return pyodbc.connect(odbc_string)

    return factory, ConnectionInfo(backend="sqlserver", persistent=True, url=url)


# ── URL parsing ──────────────────────────────────────────────────────────


def _parse_url(db: str | None) -> tuple[str, str]:
    """Parse a database URL into ``(scheme, target)``.

    ``scheme`` is one of ``"memory"``, ``"sqlite"``, ``"postgresql"``,
    ``"mysql"``, ``"odbc"``, ``"file"``.
    """
    if db is None or db in ("", "memory", MEMORY):
        return "memory", MEMORY

    for prefix in ("sqlite:///", "sqlite://"):
        if db.startswith(prefix):
            path = db[len(prefix):]
            if not path or path == MEMORY:
                return "memory", MEMORY
            return "sqlite", path

    if db.startswith(("postgresql://", "postgres://")):
        return "postgresql", db

    if db.startswith(("postgresql+", "postgres+")):
        # postgresql+psycopg2://... -> postgresql://...
        scheme, _, rest = db.partition("://")
        return "postgresql", f"{scheme.split('+')[0]}://{rest}"

    if db.startswith(("mysql://", "mysql+")):
        return "mysql", db

    if db.startswith("odbc://"):
        return "odbc", db[len("odbc://"):]

    if "://" in db:
        return "unknown", db

    # Bare file path, treated as a SQLite file
    return "file", db


# ── Main factory ─────────────────────────────────────────────────────────


def create_connection_factory(
    db: str | None = None,
    *,
    data_dir: str | None = None,
) -> tuple[ConnectionFactory, ConnectionInfo]:
    """Create a connection factory from a URL, path, or keyword.

    Parameters
    ----------
    db:
        Database URL, file path, or keyword (see module docstring).
    data_dir:
        For SQLite paths, resolve relative paths within this directory.

    Returns
    -------
    tuple[ConnectionFactory, ConnectionInfo]

    Raises
    ------
    ConfigError
        Unknown URL scheme or missing driver.
    """
    scheme, target = _parse_url(db)

    match scheme:
        case "memory":
            factory, info = _create_sqlite_memory()
        case "sqlite" | "file":
            if data_dir and not Path(target).is_absolute():
                target = str(Path(data_dir) / target)
            factory, info = _create_sqlite_file(target)
        case "postgresql":
            factory, info = _create_postgresql(target)
        case "mysql":
            factory, info = _create_mysql(target)
        case "odbc":
            factory, info = _create_odbc(target, db or "")
        case _:
            raise ConfigError(f"Unsupported database URL scheme: {_redact(target)!r}")

    logger.debug("journal.connection_factory", info=repr(info))
    return factory, info


__all__ = [
    "ConnectionInfo",
    "SQLiteConnectionFactory",
    "create_connection_factory",
]
