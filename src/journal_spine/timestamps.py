"""
UTC clock helpers for the journal.

``applied_at_now()`` is the value recorded in the ledger's ``AppliedAt``
column: current UTC time truncated to whole seconds.

STDLIB ONLY.
"""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(UTC)


def truncate_to_seconds(dt: datetime) -> datetime:
    """Drop sub-second precision."""
    return dt.replace(microsecond=0)


def applied_at_now() -> datetime:
    """Timestamp recorded for a newly applied script."""
    return truncate_to_seconds(utc_now())
