"""Existence-check result for the ledger table.

A probe distinguishes three outcomes instead of collapsing every store
error into "missing":

- ``PRESENT``      the count query succeeded
- ``ABSENT``       the store reported that the table does not exist
- ``PROBE_FAILED`` anything else (unreachable server, permission denied,
                   unknown schema); ``cause`` holds the driver exception

Only ``ABSENT`` may trigger table creation or the version-zero answer.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class TableState(str, Enum):
    """Outcome of a single existence probe."""

    PRESENT = "present"
    ABSENT = "absent"
    PROBE_FAILED = "probe_failed"


@dataclass(frozen=True)
class ProbeResult:
    """Result of probing the ledger table."""

    state: TableState
    cause: BaseException | None = None

    @classmethod
    def present(cls) -> ProbeResult:
        return cls(TableState.PRESENT)

    @classmethod
    def absent(cls, cause: BaseException | None = None) -> ProbeResult:
        return cls(TableState.ABSENT, cause)

    @classmethod
    def failed(cls, cause: BaseException) -> ProbeResult:
        return cls(TableState.PROBE_FAILED, cause)

    @property
    def exists(self) -> bool:
        return self.state is TableState.PRESENT

    @property
    def is_absent(self) -> bool:
        return self.state is TableState.ABSENT

    @property
    def failed_probe(self) -> bool:
        return self.state is TableState.PROBE_FAILED


__all__ = ["TableState", "ProbeResult"]
