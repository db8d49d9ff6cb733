"""Configuration domain exports."""

from .loader import (
    ConfigurationError,
    resolve_invocation_settings,
    validate_invocation_settings,
)
from .registry_scaffold_builder import build_placeholder_registry, write_placeholder_registry
from .runtime_settings import (
    DEFAULT_REGISTRY_FILENAME,
    DEFAULT_REGISTRY_SCAFFOLD_FILENAME,
    DEFAULT_RESULTS_DIRNAME,
    DEFAULT_TIMEOUT_SECONDS,
    SUPPORTED_TRANSPORT_FILTERS,
    InvocationSettings,
)

__all__ = [
    "ConfigurationError",
    "InvocationSettings",
    "resolve_invocation_settings",
    "validate_invocation_settings",
    "build_placeholder_registry",
    "write_placeholder_registry",
    "DEFAULT_REGISTRY_FILENAME",
    "DEFAULT_REGISTRY_SCAFFOLD_FILENAME",
    "DEFAULT_RESULTS_DIRNAME",
    "DEFAULT_TIMEOUT_SECONDS",
    "SUPPORTED_TRANSPORT_FILTERS",
]
