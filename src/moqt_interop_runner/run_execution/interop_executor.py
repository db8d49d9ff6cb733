"""Subprocess-backed execution of one interop run."""

from __future__ import annotations

import logging
import os
import shlex
import signal
import subprocess
import threading
import time
from collections.abc import Callable
from pathlib import Path
from typing import Protocol

from moqt_interop_runner.registry_model import CLIENT_ROLE
from moqt_interop_runner.target_enumeration import RunTarget, TargetKind

from .run_contracts import (
    EXIT_CANCELLED,
    EXIT_COULD_NOT_START,
    EXIT_TIMED_OUT,
    InteropPair,
    Run,
    RunStatus,
)

LOGGER = logging.getLogger(__name__)

DEFAULT_MAKE_PROGRAM = "make"
_POLL_INTERVAL_SECONDS = 0.2
_TERMINATE_GRACE_SECONDS = 5


class RunCancelledError(Exception):
    """Raised by a command runner when the invocation is being cancelled."""


class CommandRunner(Protocol):  # pylint: disable=too-few-public-methods
    """Launches one command with output captured to ``log_path``; returns its exit code."""

    def __call__(
        self,
        command: tuple[str, ...],
        log_path: Path,
        *,
        cwd: Path,
        timeout_seconds: int,
        cancel_event: threading.Event,
    ) -> int: ...


def build_test_command(
    pair: InteropPair,
    version: str,
    target: RunTarget,
    *,
    make_program: str = DEFAULT_MAKE_PROGRAM,
) -> tuple[str, ...]:
    """Build the interop make invocation for one run."""
    if target.kind is TargetKind.DOCKER:
        command = [make_program, "test", f"RELAY_IMAGE={target.reference}"]
    else:
        command = [make_program, "test-external", f"RELAY_URL={target.reference}"]
        if target.tls_disable_verify:
            command.append("TLS_DISABLE_VERIFY=1")

    command.append(f"CLIENT={pair.client.key}")
    client_targets = pair.client.role(CLIENT_ROLE)
    if client_targets is not None and client_targets.docker_image:
        command.append(f"CLIENT_IMAGE={client_targets.docker_image}")
    command.append(f"MOQT_VERSION={version}")
    return tuple(command)


class RunExecutor:
    """Executes runs and maps every outcome, including crashes, to a Run record."""

    def __init__(
        self,
        *,
        results_dir: Path,
        timeout_seconds: int,
        work_dir: Path | None = None,
        run_command: CommandRunner | None = None,
        cancel_event: threading.Event | None = None,
        command_builder: Callable[[InteropPair, str, RunTarget], tuple[str, ...]] | None = None,
    ) -> None:
        self._results_dir = results_dir
        self._timeout_seconds = timeout_seconds
        self._work_dir = work_dir or Path.cwd()
        self._run_command = run_command or run_logged_command
        self._command_builder = command_builder or build_test_command
        self.cancel_event = cancel_event or threading.Event()
        self._reserved_logs: set[str] = set()
        self._lock = threading.Lock()

    def execute(self, pair: InteropPair, version: str, target: RunTarget) -> Run:
        log_path = self._reserve_log_path(pair, target)
        command = self._command_builder(pair, version, target)
        LOGGER.debug("Launching %s", shlex.join(command))
        try:
            exit_code = self._run_command(
                command,
                log_path,
                cwd=self._work_dir,
                timeout_seconds=self._timeout_seconds,
                cancel_event=self.cancel_event,
            )
        except subprocess.TimeoutExpired:
            LOGGER.warning(
                "%s timed out after %ss (%s)", pair.label, self._timeout_seconds, target.mode
            )
            exit_code = EXIT_TIMED_OUT
        except (RunCancelledError, KeyboardInterrupt):
            self.cancel_event.set()
            exit_code = EXIT_CANCELLED
        except Exception as exc:  # pylint: disable=broad-exception-caught
            LOGGER.error("Could not start %s: %s", shlex.join(command), exc)
            _append_log_line(log_path, f"could not start: {exc}")
            exit_code = EXIT_COULD_NOT_START

        return Run(
            client=pair.client.key,
            relay=pair.relay.key,
            version=version,
            mode=target.mode,
            target=target.reference,
            tls_disable_verify=target.tls_disable_verify,
            status=RunStatus.PASS if exit_code == 0 else RunStatus.FAIL,
            exit_code=exit_code,
            log_path=log_path,
        )

    def _reserve_log_path(self, pair: InteropPair, target: RunTarget) -> Path:
        stem = f"{pair.client.key}_to_{pair.relay.key}_{target.mode}"
        with self._lock:
            candidate = stem
            suffix = 2
            while candidate in self._reserved_logs:
                candidate = f"{stem}-{suffix}"
                suffix += 1
            self._reserved_logs.add(candidate)
        return self._results_dir / f"{candidate}.log"


def run_logged_command(
    command: tuple[str, ...],
    log_path: Path,
    *,
    cwd: Path,
    timeout_seconds: int,
    cancel_event: threading.Event,
) -> int:
    """Run ``command`` with stdout/stderr captured to ``log_path``.

    Raises:
      OSError: If the process cannot be started.
      subprocess.TimeoutExpired: If the process outlives ``timeout_seconds``.
      RunCancelledError: If ``cancel_event`` is set while the process runs.
    """
    log_path.parent.mkdir(parents=True, exist_ok=True)
    with log_path.open("w", encoding="utf-8") as log_file:
        log_file.write(f"$ {shlex.join(command)}\n")
        log_file.flush()
        process = subprocess.Popen(  # pylint: disable=consider-using-with
            list(command),
            cwd=cwd,
            stdin=subprocess.DEVNULL,
            stdout=log_file,
            stderr=subprocess.STDOUT,
            start_new_session=True,
        )
        deadline = time.monotonic() + timeout_seconds
        try:
            while True:
                try:
                    return process.wait(timeout=_POLL_INTERVAL_SECONDS)
                except subprocess.TimeoutExpired:
                    if cancel_event.is_set():
                        raise RunCancelledError(shlex.join(command)) from None
                    if time.monotonic() >= deadline:
                        raise subprocess.TimeoutExpired(list(command), timeout_seconds) from None
        except BaseException:
            _stop_process(process)
            raise


def _stop_process(process: subprocess.Popen) -> None:
    """Terminate the command together with every process it started."""
    if process.poll() is not None:
        return
    _signal_process_group(process, signal.SIGTERM)
    try:
        process.wait(timeout=_TERMINATE_GRACE_SECONDS)
    except subprocess.TimeoutExpired:
        _signal_process_group(process, getattr(signal, "SIGKILL", signal.SIGTERM))
        process.wait()


def _signal_process_group(process: subprocess.Popen, signum: int) -> None:
    # The command leads its own session, so its pid is also the group id.
    if not hasattr(os, "killpg"):
        process.send_signal(signum)
        return
    try:
        os.killpg(process.pid, signum)
    except ProcessLookupError:
        pass


def _append_log_line(log_path: Path, line: str) -> None:
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        with log_path.open("a", encoding="utf-8") as log_file:
            log_file.write(f"{line}\n")
    except OSError as exc:
        LOGGER.warning("Could not write run log %s: %s", log_path, exc)
