"""Run execution domain exports."""

from .interop_executor import (
    CommandRunner,
    RunCancelledError,
    RunExecutor,
    build_test_command,
    run_logged_command,
)
from .run_contracts import (
    EXIT_CANCELLED,
    EXIT_COULD_NOT_START,
    EXIT_TIMED_OUT,
    InteropPair,
    Run,
    RunStatus,
)

__all__ = [
    "EXIT_CANCELLED",
    "EXIT_COULD_NOT_START",
    "EXIT_TIMED_OUT",
    "CommandRunner",
    "InteropPair",
    "Run",
    "RunCancelledError",
    "RunExecutor",
    "RunStatus",
    "build_test_command",
    "run_logged_command",
]
