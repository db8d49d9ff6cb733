"""Interop invocation use-case service."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable, Iterator, Sequence
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path

from moqt_interop_runner.configuration import (
    ConfigurationError,
    InvocationSettings,
    validate_invocation_settings,
)
from moqt_interop_runner.registry_model import (
    CLIENT_ROLE,
    RELAY_ROLE,
    Implementation,
    Registry,
    load_registry,
)
from moqt_interop_runner.results_ledger import LEDGER_FILENAME, LedgerWriteError, ResultLedger
from moqt_interop_runner.run_execution import CommandRunner, InteropPair, Run, RunExecutor
from moqt_interop_runner.target_enumeration import TargetFilters, enumerate_targets
from moqt_interop_runner.version_selection import (
    VersionFormatError,
    format_draft_version,
    parse_draft_version,
    select_version,
)

from .invocation_contracts import InvocationOutcome, PlannedRun, ProgressListener, SilentProgress

LOGGER = logging.getLogger(__name__)


@dataclass
class _InvocationState:
    """Mutable state scoped to a single invocation."""

    ledger: ResultLedger
    executor: RunExecutor
    seen_pairs: set[str] = field(default_factory=set)
    skipped_pairs: list[str] = field(default_factory=list)
    cancelled: bool = False

    def mark_visited(self, pair: InteropPair) -> bool:
        """Test-and-set on the seen set; False when the pair was already visited."""
        if pair.key in self.seen_pairs:
            return False
        self.seen_pairs.add(pair.key)
        return True


class InteropOrchestrator:
    """Drives the client x relay pair loop for one or more invocations."""

    def __init__(
        self,
        settings: InvocationSettings,
        *,
        run_command: CommandRunner | None = None,
        work_dir: Path | None = None,
        progress: ProgressListener | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._settings = settings
        self._run_command = run_command
        self._work_dir = work_dir
        self._progress = progress or SilentProgress()
        self._clock = clock or (lambda: datetime.now(UTC))
        self._progress_lock = threading.Lock()

    def run(self) -> InvocationOutcome:
        """Execute one invocation and return its tallied outcome."""
        validate_invocation_settings(self._settings)
        filters = TargetFilters.from_settings(self._settings)
        registry = load_registry(self._settings.registry_path)
        target = self._resolve_target_version(registry)
        clients = registry.with_role(CLIENT_ROLE)
        relays = self._resolve_relays(registry)

        started_at = self._clock()
        results_dir = create_results_dir(self._settings.results_root, started_at)
        target_label = format_draft_version(target)
        state = _InvocationState(
            ledger=ResultLedger(
                results_dir / LEDGER_FILENAME,
                target_version=target_label,
                started_at=started_at,
            ),
            executor=RunExecutor(
                results_dir=results_dir,
                timeout_seconds=self._settings.timeout_seconds,
                work_dir=self._work_dir,
                run_command=self._run_command,
                cancel_event=threading.Event(),
            ),
        )
        LOGGER.info(
            "Target version %s, %d client(s), %d relay(s), results in %s",
            target_label,
            len(clients),
            len(relays),
            results_dir,
        )

        planned = self._plan_runs(state, clients, relays, target, filters)
        if self._settings.parallelism > 1:
            self._execute_parallel(state, planned)
        else:
            self._execute_sequential(state, planned)

        tally = state.ledger.tally()
        LOGGER.info(
            "Finished: %d total, %d passed, %d failed", tally.total, tally.passed, tally.failed
        )
        return InvocationOutcome(
            results_dir=results_dir,
            ledger_path=state.ledger.path,
            target_version=target_label,
            tally=tally,
            skipped_pairs=tuple(state.skipped_pairs),
            cancelled=state.cancelled,
        )

    def _resolve_target_version(self, registry: Registry) -> int:
        if self._settings.target_version is None:
            return registry.current_target
        try:
            return parse_draft_version(self._settings.target_version)
        except VersionFormatError as exc:
            raise ConfigurationError(f"--target-version: {exc}") from exc

    def _resolve_relays(self, registry: Registry) -> tuple[Implementation, ...]:
        relay_filter = self._settings.relay_filter
        if relay_filter is None:
            return registry.with_role(RELAY_ROLE)
        relay = registry.get(relay_filter)
        if relay is None:
            raise ConfigurationError(f"Unknown relay implementation: {relay_filter}")
        if not relay.has_role(RELAY_ROLE):
            raise ConfigurationError(f"Implementation '{relay_filter}' has no relay role.")
        return (relay,)

    def _plan_runs(
        self,
        state: _InvocationState,
        clients: Sequence[Implementation],
        relays: Sequence[Implementation],
        target: int,
        filters: TargetFilters,
    ) -> Iterator[PlannedRun]:
        for client in clients:
            for relay in relays:
                pair = InteropPair(client=client, relay=relay)
                version = select_version(client.draft_versions, relay.draft_versions, target)
                if version is None:
                    LOGGER.info("Skipping %s (no shared version)", pair.label)
                    state.skipped_pairs.append(pair.key)
                    with self._progress_lock:
                        self._progress.pair_skipped(pair)
                    continue
                if not state.mark_visited(pair):
                    continue

                relay_targets = relay.role(RELAY_ROLE)
                if relay_targets is None:
                    continue
                version_label = format_draft_version(version)
                targets = enumerate_targets(relay_targets, filters)
                LOGGER.info(
                    "Testing %s at %s (%d target(s))", pair.label, version_label, len(targets)
                )
                with self._progress_lock:
                    self._progress.pair_selected(pair, version_label, len(targets))
                for run_target in targets:
                    yield PlannedRun(pair=pair, version=version_label, target=run_target)

    def _execute_sequential(self, state: _InvocationState, planned: Iterable[PlannedRun]) -> None:
        try:
            for item in planned:
                self._progress.run_started(item)
                run = state.executor.execute(item.pair, item.version, item.target)
                self._record(state, run)
                if run.cancelled:
                    break
        except KeyboardInterrupt:
            state.cancelled = True
            LOGGER.warning("Interrupted; ledger holds %d run(s)", len(state.ledger.runs))

    def _execute_parallel(self, state: _InvocationState, planned: Iterable[PlannedRun]) -> None:
        with ThreadPoolExecutor(max_workers=self._settings.parallelism) as pool:
            pending: set[Future[Run | None]] = set()
            try:
                for item in planned:
                    pending.add(pool.submit(self._execute_unless_cancelled, state, item))
            except KeyboardInterrupt:
                self._cancel(state, pending)
            while pending:
                try:
                    done, pending = wait(pending, return_when=FIRST_COMPLETED)
                    self._record_completed(state, done, pending)
                except KeyboardInterrupt:
                    self._cancel(state, pending)
                except LedgerWriteError:
                    self._cancel(state, pending)
                    raise

    def _execute_unless_cancelled(self, state: _InvocationState, item: PlannedRun) -> Run | None:
        # Runs still queued when the invocation is cancelled are dropped.
        if state.executor.cancel_event.is_set():
            return None
        with self._progress_lock:
            self._progress.run_started(item)
        return state.executor.execute(item.pair, item.version, item.target)

    def _record_completed(
        self,
        state: _InvocationState,
        done: set[Future[Run | None]],
        pending: set[Future[Run | None]],
    ) -> None:
        for future in done:
            if future.cancelled():
                continue
            run = future.result()
            if run is None:
                continue
            self._record(state, run)
            if run.cancelled:
                self._cancel(state, pending)

    def _cancel(self, state: _InvocationState, pending: set[Future[Run | None]]) -> None:
        if not state.cancelled:
            LOGGER.warning("Cancelling in-flight runs")
        state.cancelled = True
        state.executor.cancel_event.set()
        for future in pending:
            future.cancel()

    def _record(self, state: _InvocationState, run: Run) -> None:
        # Only the orchestrator thread writes the ledger.
        state.ledger.record(run)
        if run.cancelled:
            state.cancelled = True
        with self._progress_lock:
            self._progress.run_finished(run)


def create_results_dir(results_root: Path, started_at: datetime) -> Path:
    """Create a fresh ``<root>/<YYYY-MM-DD_HHMMSS>`` directory named from the UTC start."""
    stem = started_at.strftime("%Y-%m-%d_%H%M%S")
    candidate = results_root / stem
    suffix = 2
    while True:
        try:
            candidate.mkdir(parents=True, exist_ok=False)
            return candidate
        except FileExistsError:
            candidate = results_root / f"{stem}-{suffix}"
            suffix += 1
        except OSError as exc:
            raise LedgerWriteError(
                f"Failed to create results directory {candidate}: {exc}"
            ) from exc


def run_interop_invocation(
    settings: InvocationSettings,
    *,
    run_command: CommandRunner | None = None,
    progress: ProgressListener | None = None,
) -> InvocationOutcome:
    """Run one invocation with a fresh orchestrator."""
    return InteropOrchestrator(settings, run_command=run_command, progress=progress).run()
