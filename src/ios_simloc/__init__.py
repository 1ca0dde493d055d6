"""ios-simloc: simulated iOS device location via pymobiledevice3.

Provides:
- option/config resolution for the `ios-simloc` CLI
- a tunneld launcher with TCP readiness polling
- set/reset of the simulated location (reset falls back across tool versions)

All device communication is delegated to the external `pymobiledevice3` tool.
"""

__all__ = [
    "cli",
    "config",
    "runtime",
]

__version__ = "0.1.0"
