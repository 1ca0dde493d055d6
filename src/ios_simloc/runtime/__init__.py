"""Runtime helpers: subprocesses, tunneld readiness, reset fallback, orchestration."""

from __future__ import annotations

from ios_simloc.runtime.cancel import CancelToken, install_signal_handlers
from ios_simloc.runtime.orchestrator import (
    EXIT_FAILURE,
    EXIT_OK,
    EXIT_RESET_FAILURE,
    run,
)
from ios_simloc.runtime.pmd3 import Pymobiledevice3
from ios_simloc.runtime.process import (
    CommandExitError,
    CommandResult,
    CommandStartError,
    ManagedProcess,
    managed_process,
    run_command,
)
from ios_simloc.runtime.readiness import ReadinessTimeoutError, wait_for_port
from ios_simloc.runtime.reset import (
    RESET_CANDIDATES,
    ResetExhaustedError,
    ResetPolicy,
    reset_location,
)

__all__ = [
    "CancelToken",
    "CommandExitError",
    "CommandResult",
    "CommandStartError",
    "EXIT_FAILURE",
    "EXIT_OK",
    "EXIT_RESET_FAILURE",
    "ManagedProcess",
    "Pymobiledevice3",
    "RESET_CANDIDATES",
    "ReadinessTimeoutError",
    "ResetExhaustedError",
    "ResetPolicy",
    "install_signal_handlers",
    "managed_process",
    "reset_location",
    "run",
    "run_command",
    "wait_for_port",
]
