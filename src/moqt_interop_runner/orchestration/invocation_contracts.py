"""Orchestration entities."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from moqt_interop_runner.results_ledger import LedgerTally
from moqt_interop_runner.run_execution import InteropPair, Run
from moqt_interop_runner.target_enumeration import RunTarget


@dataclass(frozen=True)
class PlannedRun:
    """A run scheduled by the pair loop but not executed yet."""

    pair: InteropPair
    version: str
    target: RunTarget


@dataclass(frozen=True)
class InvocationOutcome:
    """Final state of one invocation."""

    results_dir: Path
    ledger_path: Path
    target_version: str
    tally: LedgerTally
    skipped_pairs: tuple[str, ...]
    cancelled: bool = False

    @property
    def exit_status(self) -> int:
        return self.tally.exit_status


class ProgressListener(Protocol):
    """Receives pair-loop events, e.g. to print progress on a terminal."""

    def pair_skipped(self, pair: InteropPair) -> None: ...

    def pair_selected(self, pair: InteropPair, version: str, target_count: int) -> None: ...

    def run_started(self, planned: PlannedRun) -> None: ...

    def run_finished(self, run: Run) -> None: ...


class SilentProgress:
    """Progress listener that ignores every event."""

    def pair_skipped(self, pair: InteropPair) -> None:
        return None

    def pair_selected(self, pair: InteropPair, version: str, target_count: int) -> None:
        return None

    def run_started(self, planned: PlannedRun) -> None:
        return None

    def run_finished(self, run: Run) -> None:
        return None
