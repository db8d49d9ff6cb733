"""Orchestration domain exports."""

from .interop_orchestrator import (
    InteropOrchestrator,
    create_results_dir,
    run_interop_invocation,
)
from .invocation_contracts import InvocationOutcome, PlannedRun, ProgressListener, SilentProgress

__all__ = [
    "InteropOrchestrator",
    "InvocationOutcome",
    "PlannedRun",
    "ProgressListener",
    "SilentProgress",
    "create_results_dir",
    "run_interop_invocation",
]
