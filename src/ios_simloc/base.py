from __future__ import annotations


class SimlocError(RuntimeError):
    """Base class for every error raised by ios-simloc."""


class UsageError(SimlocError):
    """Raised when the command line cannot produce a runnable set of options."""
