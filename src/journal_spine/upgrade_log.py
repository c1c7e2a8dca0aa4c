"""Upgrade log sinks.

The journal reports operator-facing progress ("creating the table", "the
database is assumed to be at version 0") through an
:class:`~journal_spine.protocols.UpgradeLog`.  These are the stock
implementations.
"""

from __future__ import annotations

from typing import Any

from .logging import get_logger


class StructlogUpgradeLog:
    """Forward messages to a structlog logger at info level."""

    def __init__(self, logger: Any | None = None) -> None:
        self._logger = logger if logger is not None else get_logger("journal_spine.upgrade")

    def write_information(self, message: str) -> None:
        self._logger.info(message)


class NoOpUpgradeLog:
    """Discard every message."""

    def write_information(self, message: str) -> None:
        return None


class MemoryUpgradeLog:
    """Collect messages in memory, in arrival order."""

    def __init__(self) -> None:
        self.messages: list[str] = []

    def write_information(self, message: str) -> None:
        self.messages.append(message)

    def clear(self) -> None:
        self.messages.clear()


__all__ = ["StructlogUpgradeLog", "NoOpUpgradeLog", "MemoryUpgradeLog"]
