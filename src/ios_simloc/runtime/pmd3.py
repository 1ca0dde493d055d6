"""Argument vectors for the pymobiledevice3 commands we drive."""

from __future__ import annotations

from dataclasses import dataclass, field

from ios_simloc.config.environment import ToolPaths, resolve_tool_paths

SIMULATE_LOCATION = ("developer", "dvt", "simulate-location")


@dataclass(frozen=True)
class Pymobiledevice3:
    tools: ToolPaths = field(default_factory=resolve_tool_paths)

    def tunneld(self, host: str, port: int) -> list[str]:
        prefix = [self.tools.sudo] if self.tools.sudo else []
        return prefix + [
            self.tools.python,
            "-m",
            "pymobiledevice3",
            "remote",
            "tunneld",
            "--host",
            str(host),
            "--port",
            str(port),
        ]

    def simulate_location_set(self, lat: str, lon: str) -> list[str]:
        # "--" keeps negative coordinates from being parsed as options.
        return [self.tools.pmd3, *SIMULATE_LOCATION, "set", "--", str(lat), str(lon)]

    def simulate_location(self, subcommand: str) -> list[str]:
        return [self.tools.pmd3, *SIMULATE_LOCATION, str(subcommand)]
