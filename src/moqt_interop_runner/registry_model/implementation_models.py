"""Registry domain entities."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from moqt_interop_runner.version_selection import format_draft_version

CLIENT_ROLE = "client"
RELAY_ROLE = "relay"
KNOWN_ROLES: tuple[str, ...] = (CLIENT_ROLE, RELAY_ROLE)


class TransportKind(str, Enum):
    """Transport a remote relay endpoint is reachable over."""

    QUIC = "quic"
    WEBTRANSPORT = "webtransport"
    OTHER = "other"


class EndpointStatus(str, Enum):
    """Activation state of a remote relay endpoint."""

    ACTIVE = "active"
    INACTIVE = "inactive"


@dataclass(frozen=True)
class RemoteEndpoint:
    """Publicly reachable deployment of a relay."""

    url: str
    transport: TransportKind
    status: EndpointStatus = EndpointStatus.ACTIVE
    tls_disable_verify: bool = False

    @property
    def is_active(self) -> bool:
        return self.status is EndpointStatus.ACTIVE


@dataclass(frozen=True)
class RoleTargets:
    """Deployment targets declared for one role of an implementation."""

    docker_image: str | None = None
    remote: tuple[RemoteEndpoint, ...] = ()

    @property
    def is_empty(self) -> bool:
        return self.docker_image is None and not self.remote


@dataclass(frozen=True)
class Implementation:
    """One MoQT implementation and the roles it can be tested in."""

    key: str
    name: str
    draft_versions: frozenset[int]
    roles: Mapping[str, RoleTargets] = field(default_factory=dict)

    def role(self, role_name: str) -> RoleTargets | None:
        return self.roles.get(role_name)

    def has_role(self, role_name: str) -> bool:
        return role_name in self.roles

    def version_labels(self) -> tuple[str, ...]:
        return tuple(format_draft_version(version) for version in sorted(self.draft_versions))


@dataclass(frozen=True)
class Registry:
    """Read-only view of every implementation declared in the registry document."""

    path: Path
    current_target: int
    implementations: tuple[Implementation, ...]

    def get(self, key: str) -> Implementation | None:
        for implementation in self.implementations:
            if implementation.key == key:
                return implementation
        return None

    def with_role(self, role_name: str) -> tuple[Implementation, ...]:
        """Return implementations declaring ``role_name`` in declaration order."""
        return tuple(
            implementation
            for implementation in self.implementations
            if implementation.has_role(role_name)
        )
