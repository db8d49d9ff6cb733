"""Invocation settings resolution and validation."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from .runtime_settings import (
    DEFAULT_TIMEOUT_SECONDS,
    SUPPORTED_TRANSPORT_FILTERS,
    InvocationSettings,
)


class ConfigurationError(Exception):
    """Raised when the invocation settings or the registry are invalid."""


# pylint: disable=too-many-arguments
def resolve_invocation_settings(
    *,
    registry_path: Path | str,
    results_root: Path | str,
    docker_only: bool = False,
    remote_only: bool = False,
    transport: str | None = None,
    target_version: str | None = None,
    relay_filter: str | None = None,
    timeout_seconds: Any = DEFAULT_TIMEOUT_SECONDS,
    parallelism: Any = 1,
) -> InvocationSettings:
    """Normalize raw option values into validated invocation settings."""
    settings = InvocationSettings(
        registry_path=Path(registry_path),
        results_root=Path(results_root),
        docker_only=bool(docker_only),
        remote_only=bool(remote_only),
        transport=_optional_string(transport, "transport"),
        target_version=_optional_string(target_version, "target_version"),
        relay_filter=_optional_string(relay_filter, "relay"),
        timeout_seconds=timeout_seconds,
        parallelism=parallelism,
    )
    validate_invocation_settings(settings)
    return settings


# pylint: enable=too-many-arguments


def validate_invocation_settings(settings: InvocationSettings) -> None:
    """Fail before any run executes when settings are contradictory."""
    if settings.docker_only and settings.remote_only:
        raise ConfigurationError("--docker-only and --remote-only are mutually exclusive.")
    if settings.transport is not None and settings.transport not in SUPPORTED_TRANSPORT_FILTERS:
        supported = ", ".join(SUPPORTED_TRANSPORT_FILTERS)
        raise ConfigurationError(
            f"Unsupported transport filter '{settings.transport}' (expected one of: {supported})."
        )
    _require_positive_int(settings.timeout_seconds, "timeout_seconds")
    _require_positive_int(settings.parallelism, "parallelism")


def _optional_string(value: Any, field_name: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigurationError(f"{field_name} must be a string.")
    stripped = value.strip()
    return stripped or None


def _require_positive_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"{field_name} must be an integer.")
    if value <= 0:
        raise ConfigurationError(f"{field_name} must be greater than zero.")
    return value
