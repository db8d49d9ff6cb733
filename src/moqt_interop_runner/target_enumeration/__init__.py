"""Target enumeration exports."""

from .run_targets import RunTarget, TargetFilters, TargetKind, enumerate_targets

__all__ = [
    "RunTarget",
    "TargetFilters",
    "TargetKind",
    "enumerate_targets",
]
