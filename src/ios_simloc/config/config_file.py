"""Optional JSON config file.

The config file is the lowest-precedence option source: it only fills fields
the command line left unset. Lookup order is

  1. the explicit ``--config`` path (when given, nothing else is consulted)
  2. ``./ios-simloc.config.json``
  3. ``./config.json``
  4. ``$XDG_CONFIG_HOME/ios-simloc/config.json`` (``~/.config/...`` by default)

The first file that exists, parses and validates wins.
"""

from __future__ import annotations

import json
import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

import jsonschema

from ios_simloc.base import SimlocError

logger = logging.getLogger(__name__)

PROJECT_CONFIG_NAME = "ios-simloc.config.json"
GENERIC_CONFIG_NAME = "config.json"
USER_CONFIG_DIR = "ios-simloc"


class ConfigFileError(SimlocError):
    pass


def _schema_path() -> Path:
    # ios_simloc/config/* → ios_simloc/schemas/config.schema.json
    return Path(__file__).resolve().parents[1] / "schemas" / "config.schema.json"


@lru_cache(maxsize=1)
def _validator() -> jsonschema.Draft202012Validator:
    schema = json.loads(_schema_path().read_text(encoding="utf-8"))
    jsonschema.Draft202012Validator.check_schema(schema)
    return jsonschema.Draft202012Validator(schema)


def load_config_file(path: Path) -> Dict[str, Any]:
    """Read, parse and validate one config file.

    Decimal literals are kept as their source text (``parse_float=str``) so a
    latitude such as ``37.564780`` reaches pymobiledevice3 unchanged.
    """

    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigFileError(f"cannot read {path}: {e}") from e

    try:
        data = json.loads(text, parse_float=str)
    except json.JSONDecodeError as e:
        raise ConfigFileError(f"invalid JSON in {path}: {e}") from e

    # One line per violation, e.g. "$.port: 0 is less than the minimum of 1".
    problems = sorted(f"{err.json_path}: {err.message}" for err in _validator().iter_errors(data))
    if problems:
        raise ConfigFileError(f"{path}: schema validation failed: " + "; ".join(problems))

    out: Dict[str, Any] = {}
    for key in ("lat", "lon"):
        if key in data:
            out[key] = str(data[key])
    if "host" in data:
        out["host"] = data["host"].strip()
    if "port" in data:
        out["port"] = int(data["port"])
    return out


def user_config_path(env: Optional[Mapping[str, str]] = None) -> Path:
    env = os.environ if env is None else env
    base = str(env.get("XDG_CONFIG_HOME") or "").strip()
    root = Path(base) if base else Path("~/.config").expanduser()
    return root / USER_CONFIG_DIR / GENERIC_CONFIG_NAME


def default_config_candidates(
    *,
    cwd: Optional[Path] = None,
    env: Optional[Mapping[str, str]] = None,
) -> list[Path]:
    cwd = Path.cwd() if cwd is None else cwd
    return [
        cwd / PROJECT_CONFIG_NAME,
        cwd / GENERIC_CONFIG_NAME,
        user_config_path(env),
    ]


def find_config(
    explicit: Optional[Path] = None,
    *,
    candidates: Optional[Sequence[Path]] = None,
) -> Optional[Tuple[Path, Dict[str, Any]]]:
    if explicit is not None:
        paths: Sequence[Path] = [explicit.expanduser()]
    elif candidates is not None:
        paths = candidates
    else:
        paths = default_config_candidates()

    for path in paths:
        if not path.is_file():
            if explicit is not None:
                logger.warning("[config] %s not found", path)
            continue
        try:
            data = load_config_file(path)
        except ConfigFileError as e:
            logger.warning("[config] skipping %s: %s", path, e)
            continue
        logger.debug("[config] loaded %s", path)
        return path, data
    return None
