"""Implementation registry loader service."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

import yaml

from moqt_interop_runner.configuration.loader import ConfigurationError
from moqt_interop_runner.version_selection import (
    VersionFormatError,
    format_draft_version,
    parse_draft_version,
)

from .implementation_models import (
    KNOWN_ROLES,
    EndpointStatus,
    Implementation,
    Registry,
    RemoteEndpoint,
    RoleTargets,
    TransportKind,
)

LOGGER = logging.getLogger(__name__)

DEFAULT_TARGET_VERSION = "draft-14"

_SCHEME_TRANSPORTS: tuple[tuple[str, TransportKind], ...] = (
    ("moqt://", TransportKind.QUIC),
    ("https://", TransportKind.WEBTRANSPORT),
)


def load_registry(registry_path: Path | str) -> Registry:
    """Load and validate the implementation registry document."""
    path = Path(registry_path)
    if not path.exists():
        raise ConfigurationError(f"Registry file not found: {path}")

    text = path.read_text(encoding="utf-8")
    try:
        parsed = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Failed to parse registry file: {exc}") from exc

    if not isinstance(parsed, Mapping):
        raise ConfigurationError("Registry root must be a mapping.")

    current_target = _parse_version(
        parsed.get("current_target", DEFAULT_TARGET_VERSION), "current_target"
    )
    section = parsed.get("implementations")
    if not isinstance(section, Mapping) or not section:
        raise ConfigurationError("Registry section 'implementations' must be a non-empty mapping.")

    implementations = tuple(
        _parse_implementation(str(key), value) for key, value in section.items()
    )
    return Registry(path=path, current_target=current_target, implementations=implementations)


def describe_implementations(registry: Registry) -> list[str]:
    """Render the list-only view of the registry, one line per attribute."""
    lines = [f"Available MoQT implementations ({registry.path}):", ""]
    for implementation in registry.implementations:
        roles = ", ".join(implementation.roles) or "none"
        lines.extend(
            [
                f"  {implementation.key}:",
                f"    Name: {implementation.name}",
                f"    Versions: {', '.join(implementation.version_labels())}",
                f"    Roles: {roles}",
                "",
            ]
        )
    lines.append(f"Current target: {format_draft_version(registry.current_target)}")
    return lines


def _parse_implementation(key: str, value: Any) -> Implementation:
    label = f"implementations.{key}"
    section = _require_mapping(value, label)
    name = _optional_string(section.get("name"), f"{label}.name") or key
    roles = _parse_roles(section.get("roles"), label)
    versions = _parse_versions(section.get("draft_versions"), f"{label}.draft_versions")
    if roles and not versions:
        raise ConfigurationError(f"{label}.draft_versions must not be empty.")
    return Implementation(key=key, name=name, draft_versions=versions, roles=roles)


def _parse_versions(value: Any, field_name: str) -> frozenset[int]:
    if value is None:
        return frozenset()
    if isinstance(value, str) or not isinstance(value, Sequence):
        raise ConfigurationError(f"{field_name} must be a list of draft versions.")
    return frozenset(_parse_version(item, field_name) for item in value)


def _parse_version(value: Any, field_name: str) -> int:
    try:
        return parse_draft_version(value)
    except VersionFormatError as exc:
        raise ConfigurationError(f"{field_name}: {exc}") from exc


def _parse_roles(value: Any, label: str) -> dict[str, RoleTargets]:
    if value is None:
        return {}
    section = _require_mapping(value, f"{label}.roles")
    roles: dict[str, RoleTargets] = {}
    for role_name, role_value in section.items():
        if role_name not in KNOWN_ROLES:
            LOGGER.debug("Ignoring unknown role %s.roles.%s", label, role_name)
            continue
        if role_value is None:
            continue
        targets = _parse_role_targets(role_value, f"{label}.roles.{role_name}")
        # An empty role means the implementation does not offer it.
        if not targets.is_empty:
            roles[role_name] = targets
    return roles


def _parse_role_targets(value: Any, label: str) -> RoleTargets:
    section = _require_mapping(value, label)
    docker_image = None
    docker = section.get("docker")
    if docker is not None:
        docker_section = _require_mapping(docker, f"{label}.docker")
        docker_image = _optional_string(docker_section.get("image"), f"{label}.docker.image")

    remote_value = section.get("remote") or []
    if isinstance(remote_value, str) or not isinstance(remote_value, Sequence):
        raise ConfigurationError(f"{label}.remote must be a list of endpoints.")
    remote = tuple(
        _parse_endpoint(item, f"{label}.remote[{index}]")
        for index, item in enumerate(remote_value)
    )
    return RoleTargets(docker_image=docker_image, remote=remote)


def _parse_endpoint(value: Any, label: str) -> RemoteEndpoint:
    section = _require_mapping(value, label)
    url = _require_non_empty_string(section.get("url"), f"{label}.url")
    transport = _parse_transport(section.get("transport"), url, f"{label}.transport")

    status_raw = _optional_string(section.get("status"), f"{label}.status") or "active"
    try:
        status = EndpointStatus(status_raw.lower())
    except ValueError as exc:
        raise ConfigurationError(
            f"{label}.status must be 'active' or 'inactive', got '{status_raw}'."
        ) from exc

    tls_disable_verify = section.get("tls_disable_verify", False)
    if not isinstance(tls_disable_verify, bool):
        raise ConfigurationError(f"{label}.tls_disable_verify must be a boolean.")
    return RemoteEndpoint(
        url=url,
        transport=transport,
        status=status,
        tls_disable_verify=tls_disable_verify,
    )


def _parse_transport(value: Any, url: str, field_name: str) -> TransportKind:
    raw = _optional_string(value, field_name)
    if raw is None:
        return _infer_transport(url)
    try:
        return TransportKind(raw.lower())
    except ValueError:
        return TransportKind.OTHER


def _infer_transport(url: str) -> TransportKind:
    lowered = url.lower()
    for scheme, transport in _SCHEME_TRANSPORTS:
        if lowered.startswith(scheme):
            return transport
    return TransportKind.OTHER


def _require_mapping(value: Any, section_name: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ConfigurationError(f"Registry section '{section_name}' must be a mapping.")
    return value


def _require_non_empty_string(value: Any, field_name: str) -> str:
    if not isinstance(value, str):
        raise ConfigurationError(f"{field_name} must be a string.")
    stripped = value.strip()
    if not stripped:
        raise ConfigurationError(f"{field_name} must not be empty.")
    return stripped


def _optional_string(value: Any, field_name: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigurationError(f"{field_name} must be a string.")
    stripped = value.strip()
    return stripped or None
