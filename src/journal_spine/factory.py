"""
Factory that builds a ready-to-use journal from settings.

Manifesto:
    Runners should not hand-wire connection providers, dialects and log
    sinks.  ``create_journal()`` resolves each from
    :class:`~journal_spine.settings.JournalSettings`, while letting the
    caller inject any piece it already owns (a pooled connection
    factory, a custom log sink).

Examples:
    >>> from journal_spine.factory import create_journal
    >>> from journal_spine.settings import JournalSettings
    >>> journal = create_journal(JournalSettings(database_url="memory"))
    >>> journal.get_executed_scripts()
    []
"""

from __future__ import annotations

from .connection import create_connection_factory
from .dialect import get_dialect
from .journal import TableJournal
from .logging import configure_logging
from .protocols import ConnectionFactory, UpgradeLog
from .settings import JournalSettings
from .upgrade_log import StructlogUpgradeLog


def create_journal(
    settings: JournalSettings | None = None,
    *,
    connection_factory: ConnectionFactory | None = None,
    log: UpgradeLog | None = None,
) -> TableJournal:
    """Create a :class:`TableJournal` from settings.

    Args:
        settings: Journal settings (read from the environment when omitted)
        connection_factory: Use this provider instead of one built from
            ``settings.database_url``; ``settings.dialect`` is then required
            unless the default ``sqlite`` dialect applies
        log: Upgrade log sink (defaults to :class:`StructlogUpgradeLog`)

    For a ``memory`` URL the journal holds the only reference to the
    :class:`~journal_spine.connection.SQLiteConnectionFactory` and its
    anchor connection, so the in-memory database lives exactly as long as
    the journal.  To discard it earlier, build the factory yourself, pass
    it as ``connection_factory`` and call its ``close()``.

    Raises:
        ConfigError: Unknown dialect, URL scheme or missing driver.
    """
    settings = settings or JournalSettings()

    if connection_factory is None:
        connection_factory, info = create_connection_factory(settings.database_url)
        dialect_name = settings.dialect or info.backend
    else:
        dialect_name = settings.dialect or "sqlite"

    dialect = get_dialect(dialect_name)

    return TableJournal(
        connection_factory,
        settings.schema_name,
        settings.table_name,
        log if log is not None else StructlogUpgradeLog(),
        dialect=dialect,
        strict_probe=settings.strict_probe,
    )


def configure_logging_from_settings(settings: JournalSettings) -> None:
    """Apply ``log_level`` and ``log_format`` from settings."""
    configure_logging(
        level=settings.log_level,
        json_format=settings.log_format == "json",
    )


__all__ = ["create_journal", "configure_logging_from_settings"]
