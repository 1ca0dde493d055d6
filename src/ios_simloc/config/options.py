from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

from ios_simloc.base import UsageError
from ios_simloc.config.config_file import find_config

logger = logging.getLogger(__name__)

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 49151

USAGE = """
Usage:
  ios-simloc [--lat <value>] [--lon <value>] [--host 127.0.0.1] [--port 49151]
  ios-simloc <lat> <lon>
  ios-simloc --reset
  ios-simloc --no-tunnel --lat <value> --lon <value>
  ios-simloc --config <path>

Options:
  --lat/--lon <value>   coordinates in decimal degrees (negative values need the flags)
  --host <h>            tunneld host (default: 127.0.0.1)
  --port <p>            tunneld port (default: 49151)
  --reset               clear the simulated location instead of setting one
  --no-tunnel           do not launch tunneld; assume it is already running
  --config <path>       JSON config file (lat, lon, host, port)
  -v, --verbose         debug logging
  -h, --help            show this text

Examples:
  ios-simloc 37.56478 126.9912
  ios-simloc --lat 37.56478 --lon 126.9912
  ios-simloc --reset
  ios-simloc --no-tunnel --lat -27.32112 --lon 153.06814
"""


@dataclass(frozen=True)
class Options:
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    lat: Optional[str] = None
    lon: Optional[str] = None
    reset: bool = False
    no_tunnel: bool = False
    config_path: Optional[Path] = None
    verbose: bool = False

    def coordinates(self) -> tuple[str, str]:
        if self.lat is None or self.lon is None:
            raise UsageError("latitude and longitude are required unless --reset is given")
        return self.lat, self.lon

    def validate(self) -> None:
        if not self.reset:
            self.coordinates()


class _OptionParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:  # type: ignore[override]
        raise UsageError(message)


def _build_parser() -> argparse.ArgumentParser:
    parser = _OptionParser(prog="ios-simloc", add_help=False, allow_abbrev=False)
    parser.add_argument("-h", "--help", action="store_true")
    parser.add_argument("--host", type=str, default=None)
    parser.add_argument("--port", type=int, default=None)
    parser.add_argument("--lat", type=str, default=None)
    parser.add_argument("--lon", type=str, default=None)
    parser.add_argument("--reset", action="store_true")
    parser.add_argument("--no-tunnel", dest="no_tunnel", action="store_true")
    parser.add_argument("--config", type=Path, default=None)
    parser.add_argument("-v", "--verbose", action="store_true")
    parser.add_argument("coords", nargs="*")
    return parser


def wants_help(argv: Sequence[str]) -> bool:
    return any(a in ("-h", "--help") for a in argv)


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def parse_options(
    argv: Sequence[str],
    *,
    config_candidates: Optional[Sequence[Path]] = None,
) -> Options:
    """Resolve command-line tokens (and, if needed, a config file) into Options.

    Flags win over positionals, positionals win over the config file. The
    config file is only consulted when a coordinate is still missing and
    ``--reset`` was not requested.
    """

    args = _build_parser().parse_intermixed_args(list(argv))

    host = _clean(args.host)
    port: Optional[int] = args.port
    lat = _clean(args.lat)
    lon = _clean(args.lon)

    for token in args.coords:
        if token.startswith("-"):
            raise UsageError(f"unrecognized argument: {token}")
        if lat is None:
            lat = token
        elif lon is None:
            lon = token

    if not args.reset and (lat is None or lon is None):
        found = find_config(args.config, candidates=config_candidates)
        if found is not None:
            path, data = found
            filled: Dict[str, Any] = {}
            if lat is None and "lat" in data:
                lat = filled["lat"] = data["lat"]
            if lon is None and "lon" in data:
                lon = filled["lon"] = data["lon"]
            if host is None and "host" in data:
                host = filled["host"] = data["host"]
            if port is None and "port" in data:
                port = filled["port"] = data["port"]
            logger.info("[config] using %s (%s)", path, ", ".join(sorted(filled)) or "nothing new")

    if port is not None and not 0 < port <= 65535:
        raise UsageError(f"port out of range: {port}")

    opts = Options(
        host=host or DEFAULT_HOST,
        port=DEFAULT_PORT if port is None else int(port),
        lat=lat,
        lon=lon,
        reset=bool(args.reset),
        no_tunnel=bool(args.no_tunnel),
        config_path=args.config,
        verbose=bool(args.verbose),
    )
    opts.validate()
    return opts
