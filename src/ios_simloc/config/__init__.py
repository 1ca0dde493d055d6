"""Option resolution: CLI flags, positional coordinates, config file, environment."""

from __future__ import annotations

from ios_simloc.config.config_file import (
    ConfigFileError,
    default_config_candidates,
    find_config,
    load_config_file,
)
from ios_simloc.config.environment import ToolPaths, resolve_tool_paths
from ios_simloc.config.options import (
    DEFAULT_HOST,
    DEFAULT_PORT,
    USAGE,
    Options,
    parse_options,
)

__all__ = [
    "ConfigFileError",
    "DEFAULT_HOST",
    "DEFAULT_PORT",
    "Options",
    "ToolPaths",
    "USAGE",
    "default_config_candidates",
    "find_config",
    "load_config_file",
    "parse_options",
    "resolve_tool_paths",
]
