from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

DEFAULT_PMD3 = "pymobiledevice3"
DEFAULT_PYTHON = "python3"
DEFAULT_SUDO = "sudo"


@dataclass(frozen=True)
class ToolPaths:
    """Executables used to reach pymobiledevice3.

    `sudo` may be empty, in which case tunneld is launched without a
    privilege-escalation prefix.
    """

    pmd3: str = DEFAULT_PMD3
    python: str = DEFAULT_PYTHON
    sudo: str = DEFAULT_SUDO


def _env_str(env: Mapping[str, str], key: str) -> Optional[str]:
    raw = env.get(key)
    if raw is None:
        return None
    return str(raw).strip()


def resolve_tool_paths(env: Optional[Mapping[str, str]] = None) -> ToolPaths:
    env = os.environ if env is None else env

    pmd3 = _env_str(env, "IOS_SIMLOC_PMD3") or DEFAULT_PMD3
    python = _env_str(env, "IOS_SIMLOC_PYTHON") or DEFAULT_PYTHON
    sudo = _env_str(env, "IOS_SIMLOC_SUDO")
    if sudo is None:
        sudo = DEFAULT_SUDO
    return ToolPaths(pmd3=pmd3, python=python, sudo=sudo)
