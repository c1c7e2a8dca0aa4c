"""Table-backed migration journal.

``TableJournal`` records which upgrade scripts have been applied to a
target database in a ledger table (``SchemaVersions`` by default) and
answers "what has run so far" for a migration runner.

Lifecycle of the ledger table, per call (nothing is cached)::

    Unknown ──probe──► Present | Absent | ProbeFailed
    Absent ──store_executed_script──► Present

Every logical step opens its own connection from the factory and closes
it (and its cursor) on every exit path.  No transaction spans probe,
create and insert: an existing but empty table is a valid state.

Example::

    import sqlite3
    from journal_spine import MemoryUpgradeLog, TableJournal

    journal = TableJournal(lambda: sqlite3.connect("app.db"), None, "SchemaVersions", MemoryUpgradeLog())
    journal.get_executed_scripts()          # []
    journal.store_executed_script("001_init")
    journal.get_executed_scripts()          # ["001_init"]
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import closing, contextmanager

from .dialect import SCRIPT_NAME_MAX_LENGTH, Dialect, get_dialect
from .errors import (
    ErrorContext,
    JournalReadError,
    ScriptRecordError,
    TableCreationError,
    TableProbeError,
    ValidationError,
)
from .logging import get_logger
from .probe import ProbeResult
from .protocols import Connection, ConnectionFactory, Cursor, UpgradeLog
from .timestamps import applied_at_now

logger = get_logger(__name__)


class TableJournal:
    """Tracks applied scripts in a ledger table.

    Parameters
    ----------
    connection_factory
        Zero-argument callable returning a new DB-API connection.
    schema
        Schema containing the table; ``None`` or ``""`` for none.
    table
        Ledger table name.
    log
        Sink for informational messages.
    dialect
        Dialect name or instance used to render SQL (default ``sqlite``).
    strict_probe
        When ``True`` (default) an existence probe that fails for any
        reason other than "table missing" raises :class:`TableProbeError`.
        When ``False`` such failures are treated as "table missing".
    """

    def __init__(
        self,
        connection_factory: ConnectionFactory,
        schema: str | None,
        table: str,
        log: UpgradeLog,
        *,
        dialect: str | Dialect = "sqlite",
        strict_probe: bool = True,
    ) -> None:
        self._connection_factory = connection_factory
        self._dialect = get_dialect(dialect)
        self._schema = schema or None
        self._table = table
        self._table_name = self._dialect.qualify(None, table)
        self._schema_table_name = self._dialect.qualify(self._schema, table)
        self._log = log
        self._strict_probe = strict_probe

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def table_name(self) -> str:
        """Quoted table identifier without schema."""
        return self._table_name

    @property
    def qualified_table_name(self) -> str:
        """Quoted, schema-qualified identifier used in every statement."""
        return self._schema_table_name

    @property
    def dialect(self) -> Dialect:
        return self._dialect

    def get_executed_scripts(self) -> list[str]:
        """Return names of already executed scripts, lexically ascending.

        Returns an empty list when the ledger table does not exist yet.

        Raises:
            TableProbeError: the probe failed and ``strict_probe`` is set
            JournalReadError: the table exists but could not be read
        """
        self._log.write_information("Fetching list of already executed scripts.")
        if not self._table_exists():
            self._log.write_information(
                f"The {self._schema_table_name} table could not be found. "
                "The database is assumed to be at version 0."
            )
            return []

        try:
            with self._cursor() as (_, cursor):
                cursor.execute(self._dialect.select_scripts_query(self._schema_table_name))
                return [str(row[0]) for row in cursor.fetchall()]
        except Exception as exc:
            raise JournalReadError(
                f"Failed to read executed scripts from {self._schema_table_name}: {exc}",
                context=self._error_context(),
                cause=exc,
            ) from exc

    def store_executed_script(self, script_name: str) -> None:
        """Record ``script_name`` as applied, creating the table if needed.

        Raises:
            ValidationError: empty or over-long script name
            TableProbeError: the probe failed and ``strict_probe`` is set
            TableCreationError: the table could not be created
            ScriptRecordError: the row could not be inserted
        """
        self._validate_script_name(script_name)

        if not self._table_exists():
            self._create_table()

        applied_at = applied_at_now()
        statement = self._dialect.insert_script_statement(self._schema_table_name)
        try:
            with self._cursor() as (conn, cursor):
                cursor.execute(statement, (script_name, self._dialect.bind_timestamp(applied_at)))
                conn.commit()
        except Exception as exc:
            raise ScriptRecordError(
                script_name,
                context=self._error_context(),
                cause=exc,
            ) from exc

        logger.info(
            "journal.script_recorded",
            table=self._schema_table_name,
            script=script_name,
            applied_at=applied_at.isoformat(),
        )

    def probe_table(self) -> ProbeResult:
        """Check whether the ledger table exists with a ``COUNT(*)`` probe."""
        try:
            with self._cursor() as (_, cursor):
                cursor.execute(self._dialect.count_query(self._schema_table_name))
                cursor.fetchone()
        except Exception as exc:
            if self._dialect.is_missing_table_error(exc):
                result = ProbeResult.absent(exc)
            else:
                result = ProbeResult.failed(exc)
        else:
            result = ProbeResult.present()

        logger.debug(
            "journal.probe",
            table=self._schema_table_name,
            state=result.state.value,
        )
        return result

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @contextmanager
    def _cursor(self) -> Iterator[tuple[Connection, Cursor]]:
        """Open a connection and cursor; both are closed on exit."""
        with closing(self._connection_factory()) as conn:
            with closing(conn.cursor()) as cursor:
                yield conn, cursor

    def _table_exists(self) -> bool:
        result = self.probe_table()
        if not result.failed_probe:
            return result.exists

        if self._strict_probe:
            raise TableProbeError(
                f"Could not determine whether {self._schema_table_name} exists: {result.cause}",
                context=self._error_context(),
                cause=result.cause,
            )

        logger.warning(
            "journal.probe_degraded",
            table=self._schema_table_name,
            error=str(result.cause),
        )
        return False

    def _create_table(self) -> None:
        self._log.write_information(f"Creating the {self._schema_table_name} table")

        ddl = self._dialect.create_table_ddl(self._schema_table_name, self._table)
        try:
            with self._cursor() as (conn, cursor):
                cursor.execute(ddl)
                conn.commit()
        except Exception as exc:
            # A concurrent runner may have created it between probe and create
            if self.probe_table().exists:
                logger.info(
                    "journal.create_race_lost",
                    table=self._schema_table_name,
                    error=str(exc),
                )
                return
            raise TableCreationError(
                f"Failed to create {self._schema_table_name}: {exc}",
                context=self._error_context(),
                cause=exc,
            ) from exc

        self._log.write_information(f"The {self._schema_table_name} table has been created")
        logger.info("journal.table_created", table=self._schema_table_name)

    def _validate_script_name(self, script_name: str) -> None:
        if not isinstance(script_name, str) or not script_name:
            raise ValidationError(
                f"Script name must be a non-empty string, got {script_name!r}",
                context=self._error_context(),
            )
        if len(script_name) > SCRIPT_NAME_MAX_LENGTH:
            raise ValidationError(
                f"Script name exceeds {SCRIPT_NAME_MAX_LENGTH} characters",
                context=self._error_context(script_name=script_name),
            )

    def _error_context(self, **kwargs: str) -> ErrorContext:
        return ErrorContext(
            table=self._table,
            schema=self._schema,
            dialect=self._dialect.name,
            **kwargs,
        )

    def __repr__(self) -> str:
        return f"TableJournal({self._schema_table_name!r}, dialect={self._dialect.name!r})"


__all__ = ["TableJournal"]
