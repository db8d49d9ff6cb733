"""Configuration domain entities."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

DEFAULT_REGISTRY_FILENAME = "implementations.json"
DEFAULT_REGISTRY_SCAFFOLD_FILENAME = "implementations.yaml"
DEFAULT_RESULTS_DIRNAME = "results"
DEFAULT_TIMEOUT_SECONDS = 600
SUPPORTED_TRANSPORT_FILTERS: tuple[str, ...] = ("quic", "webtransport")


@dataclass(frozen=True)
class InvocationSettings:  # pylint: disable=too-many-instance-attributes
    """Resolved, CLI-agnostic settings for one interop invocation."""

    registry_path: Path
    results_root: Path
    docker_only: bool = False
    remote_only: bool = False
    transport: str | None = None
    target_version: str | None = None
    relay_filter: str | None = None
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS
    parallelism: int = 1
