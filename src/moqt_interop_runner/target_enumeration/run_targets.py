"""Expansion of a relay's declared deployments into runnable targets."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from moqt_interop_runner.configuration.loader import ConfigurationError
from moqt_interop_runner.configuration.runtime_settings import InvocationSettings
from moqt_interop_runner.registry_model import RoleTargets, TransportKind


class TargetKind(str, Enum):
    """How the relay under test is reached."""

    DOCKER = "docker"
    REMOTE = "remote"


@dataclass(frozen=True)
class TargetFilters:
    """Docker/remote/transport narrowing applied to every relay."""

    transport: str | None = None
    docker_only: bool = False
    remote_only: bool = False

    def __post_init__(self) -> None:
        if self.docker_only and self.remote_only:
            raise ConfigurationError("--docker-only and --remote-only are mutually exclusive.")

    @classmethod
    def from_settings(cls, settings: InvocationSettings) -> TargetFilters:
        return cls(
            transport=settings.transport,
            docker_only=settings.docker_only,
            remote_only=settings.remote_only,
        )


@dataclass(frozen=True)
class RunTarget:
    """One concrete relay deployment a pair is executed against."""

    kind: TargetKind
    reference: str
    transport: TransportKind | None = None
    tls_disable_verify: bool = False

    @property
    def mode(self) -> str:
        """Ledger label: ``docker`` or ``remote-<transport>``."""
        if self.kind is TargetKind.DOCKER or self.transport is None:
            return self.kind.value
        return f"{self.kind.value}-{self.transport.value}"


def enumerate_targets(relay: RoleTargets, filters: TargetFilters) -> tuple[RunTarget, ...]:
    """Return the relay's runnable targets in registry declaration order."""
    targets: list[RunTarget] = []
    if not filters.remote_only and relay.docker_image:
        targets.append(RunTarget(kind=TargetKind.DOCKER, reference=relay.docker_image))

    if filters.docker_only:
        return tuple(targets)

    for endpoint in relay.remote:
        if not endpoint.is_active:
            continue
        if filters.transport is not None and endpoint.transport.value != filters.transport:
            continue
        targets.append(
            RunTarget(
                kind=TargetKind.REMOTE,
                reference=endpoint.url,
                transport=endpoint.transport,
                tls_disable_verify=endpoint.tls_disable_verify,
            )
        )
    return tuple(targets)
