"""SQL dialect abstraction for the journal's ledger table.

Every statement the journal issues is rendered here: the quoted and
schema-qualified table identifier, the existence probe, the read query,
the idempotent ``CREATE TABLE`` and the parameterized insert.  The
journal itself contains no backend-specific SQL.

Manifesto:
    Identifiers are the only thing ever interpolated into SQL text, and
    they are always quoted with the store's own syntax (embedded quote
    characters doubled).  Values such as the script name and the
    application timestamp are always bound parameters.

    Reads sort by code point on every store (sqlite's default BINARY
    collation, ``COLLATE "C"``, ``CAST(... AS BINARY)``,
    ``Latin1_General_BIN2``), so the order never depends on the server
    locale or a case-insensitive default collation.

Architecture::

    ┌──────────────┐ ┌──────────────┐ ┌──────────────┐ ┌──────────────┐
    │ SQLite       │ │ PostgreSQL   │ │ MySQL        │ │ SQL Server   │
    │ "name"  ?    │ │ "name"  %s   │ │ `name`  %s   │ │ [name]  ?    │
    │ IF NOT EXISTS│ │ IF NOT EXISTS│ │ IF NOT EXISTS│ │ OBJECT_ID()  │
    └──────────────┘ └──────────────┘ └──────────────┘ └──────────────┘

Examples:
    >>> from journal_spine.dialect import get_dialect
    >>> d = get_dialect("sqlserver")
    >>> d.quote_identifier("Schema]Versions")
    '[Schema]]Versions]'
    >>> d.qualify("dbo", "SchemaVersions")
    '[dbo].[SchemaVersions]'
    >>> get_dialect("sqlite").qualify(None, "SchemaVersions")
    '"SchemaVersions"'

Guardrails:
    ❌ DON'T: f"... values ('{script_name}')"
    ✅ DO: bind script name and timestamp via ``placeholder()``

Tags:
    dialect, sql, quoting, identifiers, ddl, journal

Doc-Types:
    - API Reference
    - Database Portability Guide
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Protocol, runtime_checkable

from .errors import ConfigError, InvalidConfigError

# Ledger table shape
ID_COLUMN = "Id"
SCRIPT_NAME_COLUMN = "ScriptName"
APPLIED_AT_COLUMN = "AppliedAt"
SCRIPT_NAME_MAX_LENGTH = 255


@runtime_checkable
class Dialect(Protocol):
    """SQL dialect contract for the ledger table.

    Methods taking ``table`` expect the already-qualified identifier
    returned by :meth:`qualify`.
    """

    @property
    def name(self) -> str:
        """Human-readable dialect name (e.g. ``'sqlite'``)."""
        ...

    # -- Identifiers -------------------------------------------------------

    def quote_identifier(self, name: str) -> str:
        """Wrap ``name`` in the store's quoting syntax, escaping embedded quotes."""
        ...

    def qualify(self, schema: str | None, table: str) -> str:
        """Schema-qualified quoted identifier, or the bare quoted table."""
        ...

    # -- Statements --------------------------------------------------------

    def placeholder(self, index: int) -> str:
        """Single positional placeholder (0-based index)."""
        ...

    def count_query(self, table: str) -> str:
        """Lightweight existence probe against ``table``."""
        ...

    def select_scripts_query(self, table: str) -> str:
        """Script names ordered ascending by code point, whatever the store's collation."""
        ...

    def create_table_ddl(self, table: str, table_name: str) -> str:
        """Idempotent ``CREATE TABLE`` for the ledger.

        ``table_name`` is the raw (unquoted) table name, used to derive
        constraint names where the store needs them.
        """
        ...

    def insert_script_statement(self, table: str) -> str:
        """Parameterized insert binding ``(ScriptName, AppliedAt)``."""
        ...

    # -- Values / errors ---------------------------------------------------

    def bind_timestamp(self, value: datetime) -> Any:
        """Convert a UTC timestamp into the value bound for ``AppliedAt``."""
        ...

    def is_missing_table_error(self, exc: BaseException) -> bool:
        """Whether a driver exception means "table (or view) does not exist"."""
        ...


# =========================================================================
# Concrete Dialect Implementations
# =========================================================================


class BaseDialect:
    """Shared rendering for all dialects.

    Subclasses set the quote characters and placeholder, and provide the
    DDL and missing-table classification.
    """

    dialect_name = "base"
    quote_open = '"'
    quote_close = '"'
    param = "?"
    # ORDER BY expression; binary so every store sorts by code point
    sort_key = "{column}"

    @property
    def name(self) -> str:
        return self.dialect_name

    # -- Identifiers -------------------------------------------------------

    def quote_identifier(self, name: str) -> str:
        escaped = name.replace(self.quote_close, self.quote_close * 2)
        return f"{self.quote_open}{escaped}{self.quote_close}"

    def qualify(self, schema: str | None, table: str) -> str:
        if not table:
            raise InvalidConfigError("table", table, "Ledger table name must not be empty")
        quoted_table = self.quote_identifier(table)
        if not schema:
            return quoted_table
        return f"{self.quote_identifier(schema)}.{quoted_table}"

    # -- Statements --------------------------------------------------------

    def placeholder(self, index: int) -> str:  # noqa: ARG002
        return self.param

    def count_query(self, table: str) -> str:
        return f"SELECT COUNT(*) FROM {table}"

    def select_scripts_query(self, table: str) -> str:
        column = self.quote_identifier(SCRIPT_NAME_COLUMN)
        return f"SELECT {column} FROM {table} ORDER BY {self.sort_key.format(column=column)}"

    def insert_script_statement(self, table: str) -> str:
        script = self.quote_identifier(SCRIPT_NAME_COLUMN)
        applied = self.quote_identifier(APPLIED_AT_COLUMN)
        return (
            f"INSERT INTO {table} ({script}, {applied}) "
            f"VALUES ({self.placeholder(0)}, {self.placeholder(1)})"
        )

    def create_table_ddl(self, table: str, table_name: str) -> str:
        raise NotImplementedError

    # -- Values / errors ---------------------------------------------------

    def bind_timestamp(self, value: datetime) -> Any:
        # DATETIME / TIMESTAMP columns carry no zone; values are UTC by convention
        return value.replace(tzinfo=None)

    def is_missing_table_error(self, exc: BaseException) -> bool:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class SQLiteDialect(BaseDialect):
    """SQLite dialect: ``"name"`` identifiers, ``?`` placeholders.

    ``schema`` maps to an attached database name (``main``, ``temp``, ...).
    """

    dialect_name = "sqlite"

    def create_table_ddl(self, table: str, table_name: str) -> str:  # noqa: ARG002
        q = self.quote_identifier
        return (
            f"CREATE TABLE IF NOT EXISTS {table} (\n"
            f"    {q(ID_COLUMN)} INTEGER PRIMARY KEY AUTOINCREMENT,\n"
            f"    {q(SCRIPT_NAME_COLUMN)} VARCHAR({SCRIPT_NAME_MAX_LENGTH}) NOT NULL,\n"
            f"    {q(APPLIED_AT_COLUMN)} DATETIME NOT NULL\n"
            f")"
        )

    def bind_timestamp(self, value: datetime) -> Any:
        # sqlite3's implicit datetime adapter is deprecated; bind the text form
        return value.strftime("%Y-%m-%d %H:%M:%S")

    def is_missing_table_error(self, exc: BaseException) -> bool:
        return "no such table" in str(exc).lower()


class PostgreSQLDialect(BaseDialect):
    """PostgreSQL dialect: ``"name"`` identifiers, ``%s`` placeholders (psycopg)."""

    dialect_name = "postgresql"
    param = "%s"
    sort_key = '{column} COLLATE "C"'

    def create_table_ddl(self, table: str, table_name: str) -> str:  # noqa: ARG002
        q = self.quote_identifier
        return (
            f"CREATE TABLE IF NOT EXISTS {table} (\n"
            f"    {q(ID_COLUMN)} SERIAL PRIMARY KEY,\n"
            f"    {q(SCRIPT_NAME_COLUMN)} VARCHAR({SCRIPT_NAME_MAX_LENGTH}) NOT NULL,\n"
            f"    {q(APPLIED_AT_COLUMN)} TIMESTAMP NOT NULL\n"
            f")"
        )

    def is_missing_table_error(self, exc: BaseException) -> bool:
        # undefined_table; psycopg2 exposes pgcode, psycopg 3 sqlstate
        sqlstate = getattr(exc, "pgcode", None) or getattr(exc, "sqlstate", None)
        return sqlstate == "42P01"


class MySQLDialect(BaseDialect):
    """MySQL dialect: backtick identifiers, ``%s`` placeholders (mysql.connector)."""

    dialect_name = "mysql"
    quote_open = "`"
    quote_close = "`"
    param = "%s"
    sort_key = "CAST({column} AS BINARY)"

    def create_table_ddl(self, table: str, table_name: str) -> str:  # noqa: ARG002
        q = self.quote_identifier
        return (
            f"CREATE TABLE IF NOT EXISTS {table} (\n"
            f"    {q(ID_COLUMN)} INTEGER NOT NULL AUTO_INCREMENT PRIMARY KEY,\n"
            f"    {q(SCRIPT_NAME_COLUMN)} VARCHAR({SCRIPT_NAME_MAX_LENGTH}) NOT NULL,\n"
            f"    {q(APPLIED_AT_COLUMN)} DATETIME NOT NULL\n"
            f")"
        )

    def is_missing_table_error(self, exc: BaseException) -> bool:
        # ER_NO_SUCH_TABLE; mysql.connector sets errno, others put it first in args
        if getattr(exc, "errno", None) == 1146:
            return True
        return bool(exc.args) and exc.args[0] == 1146


class SQLServerDialect(BaseDialect):
    """SQL Server dialect: ``[name]`` identifiers, ``?`` placeholders (pyodbc).

    SQL Server has no ``CREATE TABLE IF NOT EXISTS``; creation is guarded
    with ``OBJECT_ID``.
    """

    dialect_name = "sqlserver"
    quote_open = "["
    quote_close = "]"
    sort_key = "{column} COLLATE Latin1_General_BIN2"

    def create_table_ddl(self, table: str, table_name: str) -> str:
        q = self.quote_identifier
        literal = table.replace("'", "''")
        return (
            f"IF OBJECT_ID(N'{literal}', N'U') IS NULL\n"
            f"CREATE TABLE {table} (\n"
            f"    {q(ID_COLUMN)} INT IDENTITY(1,1) NOT NULL "
            f"CONSTRAINT {q(f'PK_{table_name}_Id')} PRIMARY KEY,\n"
            f"    {q(SCRIPT_NAME_COLUMN)} NVARCHAR({SCRIPT_NAME_MAX_LENGTH}) NOT NULL,\n"
            f"    {q(APPLIED_AT_COLUMN)} DATETIME NOT NULL\n"
            f")"
        )

    def is_missing_table_error(self, exc: BaseException) -> bool:
        # pyodbc reports SQLSTATE 42S02, pymssql error number 208
        code = exc.args[0] if exc.args else None
        if isinstance(code, tuple) and code:
            code = code[0]
        return code in ("42S02", 208) or "invalid object name" in str(exc).lower()


# =========================================================================
# Registry / Factory
# =========================================================================

# Pre-instantiated singletons (dialects are stateless)
_DIALECTS: dict[str, Dialect] = {
    "sqlite": SQLiteDialect(),
    "sqlite3": SQLiteDialect(),  # alias
    "postgresql": PostgreSQLDialect(),
    "postgres": PostgreSQLDialect(),  # alias
    "mysql": MySQLDialect(),
    "sqlserver": SQLServerDialect(),
    "mssql": SQLServerDialect(),  # alias
}

_ALIASES = {"sqlite3", "postgres", "mssql"}


def get_dialect(dialect: str | Dialect) -> Dialect:
    """Get a dialect by name (instances are returned unchanged).

    Args:
        dialect: One of ``'sqlite'``, ``'postgresql'``, ``'mysql'``,
                 ``'sqlserver'`` (or an alias), or a :class:`Dialect`.

    Raises:
        ConfigError: If the name is not recognised.
    """
    if not isinstance(dialect, str):
        return dialect
    key = dialect.lower()
    if key not in _DIALECTS:
        raise ConfigError(
            f"Unknown dialect '{dialect}'. "
            f"Supported: {sorted(set(_DIALECTS) - _ALIASES)}"
        )
    return _DIALECTS[key]


def register_dialect(name: str, dialect: Dialect) -> None:
    """Register a custom dialect implementation (lower-cased key)."""
    _DIALECTS[name.lower()] = dialect


__all__ = [
    "ID_COLUMN",
    "SCRIPT_NAME_COLUMN",
    "APPLIED_AT_COLUMN",
    "SCRIPT_NAME_MAX_LENGTH",
    "Dialect",
    "BaseDialect",
    "SQLiteDialect",
    "PostgreSQLDialect",
    "MySQLDialect",
    "SQLServerDialect",
    "get_dialect",
    "register_dialect",
]
