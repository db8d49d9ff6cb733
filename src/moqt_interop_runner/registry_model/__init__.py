"""Registry model exports."""

from .implementation_models import (
    CLIENT_ROLE,
    KNOWN_ROLES,
    RELAY_ROLE,
    EndpointStatus,
    Implementation,
    Registry,
    RemoteEndpoint,
    RoleTargets,
    TransportKind,
)
from .registry_loader import DEFAULT_TARGET_VERSION, describe_implementations, load_registry

__all__ = [
    "CLIENT_ROLE",
    "RELAY_ROLE",
    "KNOWN_ROLES",
    "DEFAULT_TARGET_VERSION",
    "EndpointStatus",
    "Implementation",
    "Registry",
    "RemoteEndpoint",
    "RoleTargets",
    "TransportKind",
    "describe_implementations",
    "load_registry",
]
