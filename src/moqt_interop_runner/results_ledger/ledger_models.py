"""Results ledger entities."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from moqt_interop_runner.run_execution import RunStatus


@dataclass(frozen=True)
class LedgerTally:
    """Totals over every run recorded in a ledger."""

    total: int
    passed: int
    failed: int

    @property
    def exit_status(self) -> int:
        return 0 if self.failed == 0 else 1

    @staticmethod
    def from_statuses(statuses: Iterable[RunStatus]) -> LedgerTally:
        collected = list(statuses)
        passed = sum(1 for status in collected if status is RunStatus.PASS)
        return LedgerTally(total=len(collected), passed=passed, failed=len(collected) - passed)


@dataclass(frozen=True)
class LedgerEntry:  # pylint: disable=too-many-instance-attributes
    """One run as read back from a persisted ledger."""

    client: str
    relay: str
    version: str
    mode: str
    target: str
    status: RunStatus
    exit_code: int
    tls_disable_verify: bool
    log_file: str | None


@dataclass(frozen=True)
class LedgerDocument:
    """A persisted ledger, readable independently of the orchestrator."""

    target_version: str
    timestamp: str
    runs: tuple[LedgerEntry, ...]

    def tally(self) -> LedgerTally:
        return LedgerTally.from_statuses(entry.status for entry in self.runs)
