"""
Settings for journal-spine.

Manifesto:
    The journal is embedded in migration runners that are configured
    from the environment (CI jobs, containers).  One validated settings
    object resolves the target database, the ledger table location and
    logging in a single place.

All fields can be set via ``JOURNAL_*`` environment variables (e.g.
``JOURNAL_DATABASE_URL=postgresql://...``) or a ``.env`` file.

Examples:
    >>> from journal_spine.settings import JournalSettings
    >>> s = JournalSettings(table_name="MigrationHistory", schema_name="ops")
    >>> s.table_name
    'MigrationHistory'

Tags:
    settings, configuration, pydantic, environment, journal
"""

from __future__ import annotations

import logging

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_LOG_FORMATS = ("json", "console")


class JournalSettings(BaseSettings):
    """Journal configuration read from ``JOURNAL_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="JOURNAL_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Database ─────────────────────────────────────────────────
    database_url: str = Field(default="sqlite:///data/journal.db")
    dialect: str | None = Field(
        default=None,
        description="Dialect override; derived from the database URL when unset",
    )

    # ── Ledger table ─────────────────────────────────────────────
    schema_name: str | None = Field(default=None)
    table_name: str = Field(default="SchemaVersions")
    strict_probe: bool = Field(
        default=True,
        description="Raise when the existence probe fails for reasons other than a missing table",
    )

    # ── Logging ──────────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="console")

    @field_validator("table_name")
    @classmethod
    def _table_name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("table_name must not be blank")
        return value

    @field_validator("schema_name", "dialect")
    @classmethod
    def _blank_to_none(cls, value: str | None) -> str | None:
        if value is not None and not value.strip():
            return None
        return value

    @field_validator("log_level")
    @classmethod
    def _known_log_level(cls, value: str) -> str:
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {value}")
        return level

    @field_validator("log_format")
    @classmethod
    def _known_log_format(cls, value: str) -> str:
        fmt = value.lower()
        if fmt not in _LOG_FORMATS:
            raise ValueError(f"log_format must be one of {_LOG_FORMATS}")
        return fmt
