"""Run execution entities."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from moqt_interop_runner.registry_model import Implementation

EXIT_TIMED_OUT = 124
EXIT_COULD_NOT_START = 127
EXIT_CANCELLED = 130


class RunStatus(str, Enum):
    """Outcome of one executed run."""

    PASS = "pass"
    FAIL = "fail"


@dataclass(frozen=True)
class InteropPair:
    """A (client, relay) combination evaluated at most once per invocation."""

    client: Implementation
    relay: Implementation

    @property
    def key(self) -> str:
        return f"{self.client.key}:{self.relay.key}"

    @property
    def label(self) -> str:
        return f"{self.client.key} → {self.relay.key}"


@dataclass(frozen=True)
class Run:  # pylint: disable=too-many-instance-attributes
    """One recorded execution of a pair against one relay target."""

    client: str
    relay: str
    version: str
    mode: str
    target: str
    tls_disable_verify: bool
    status: RunStatus
    exit_code: int
    log_path: Path | None

    @property
    def passed(self) -> bool:
        return self.status is RunStatus.PASS

    @property
    def cancelled(self) -> bool:
        return self.status is RunStatus.FAIL and self.exit_code == EXIT_CANCELLED
