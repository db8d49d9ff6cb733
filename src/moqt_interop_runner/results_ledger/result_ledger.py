"""Append-only, crash-consistent record of every run in an invocation."""

from __future__ import annotations

import json
from collections.abc import Mapping
from datetime import datetime
from pathlib import Path
from typing import Any

from moqt_interop_runner.run_execution import Run, RunStatus

from .atomic_write import atomic_write_text
from .ledger_models import LedgerDocument, LedgerEntry, LedgerTally

LEDGER_FILENAME = "summary.json"


class LedgerReadError(Exception):
    """Raised when a persisted ledger cannot be read back."""


class ResultLedger:
    """Ledger persisted as one JSON document, rewritten atomically per record.

    The ledger trusts its caller not to record the same run twice and must
    only be written from a single thread.
    """

    def __init__(self, path: Path, *, target_version: str, started_at: datetime) -> None:
        self.path = path
        self.target_version = target_version
        self.timestamp = started_at.strftime("%Y-%m-%dT%H:%M:%SZ")
        self._runs: list[Run] = []
        self._flush()

    @property
    def runs(self) -> tuple[Run, ...]:
        return tuple(self._runs)

    def record(self, run: Run) -> None:
        """Append ``run`` and durably persist the ledger before returning."""
        self._runs.append(run)
        try:
            self._flush()
        except BaseException:
            self._runs.pop()
            raise

    def tally(self) -> LedgerTally:
        return LedgerTally.from_statuses(run.status for run in self._runs)

    def _flush(self) -> None:
        document = {
            "runs": [_serialize_run(run) for run in self._runs],
            "target_version": self.target_version,
            "timestamp": self.timestamp,
        }
        atomic_write_text(self.path, json.dumps(document, indent=2) + "\n")


def load_ledger(path: Path | str) -> LedgerDocument:
    """Read a persisted ledger back from disk."""
    ledger_path = Path(path)
    try:
        parsed = json.loads(ledger_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise LedgerReadError(f"Failed to read ledger {ledger_path}: {exc}") from exc
    if not isinstance(parsed, Mapping) or not isinstance(parsed.get("runs"), list):
        raise LedgerReadError(f"Ledger {ledger_path} has no runs collection.")
    try:
        runs = tuple(_deserialize_entry(item) for item in parsed["runs"])
    except (KeyError, TypeError, ValueError) as exc:
        raise LedgerReadError(f"Ledger {ledger_path} contains a malformed run: {exc}") from exc
    return LedgerDocument(
        target_version=str(parsed.get("target_version", "")),
        timestamp=str(parsed.get("timestamp", "")),
        runs=runs,
    )


def _serialize_run(run: Run) -> dict[str, Any]:
    return {
        "client": run.client,
        "relay": run.relay,
        "version": run.version,
        "mode": run.mode,
        "target": run.target,
        "status": run.status.value,
        "exit_code": run.exit_code,
        "tls_disable_verify": run.tls_disable_verify,
        "log_file": run.log_path.name if run.log_path else None,
    }


def _deserialize_entry(item: Mapping[str, Any]) -> LedgerEntry:
    return LedgerEntry(
        client=str(item["client"]),
        relay=str(item["relay"]),
        version=str(item["version"]),
        mode=str(item["mode"]),
        target=str(item["target"]),
        status=RunStatus(item["status"]),
        exit_code=int(item["exit_code"]),
        tls_disable_verify=bool(item.get("tls_disable_verify", False)),
        log_file=item.get("log_file"),
    )
