from __future__ import annotations

import logging
import os
import stat
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import pytest


def _ensure_src_on_path() -> None:
    repo_root = Path(__file__).resolve().parents[1]
    src_str = str(repo_root / "src")
    if src_str not in sys.path:
        sys.path.insert(0, src_str)


_ensure_src_on_path()


# Mimics `pymobiledevice3 developer dvt simulate-location <sub> ...`: every call
# is appended to $IOS_SIMLOC_STUB_LOG, subcommands listed in
# $IOS_SIMLOC_STUB_FAIL exit 2 with a message on stderr, and the subcommand in
# $IOS_SIMLOC_STUB_HANG writes its pid to $IOS_SIMLOC_STUB_PIDFILE and sleeps.
_STUB_SCRIPT = """#!/bin/sh
echo "$@" >> "$IOS_SIMLOC_STUB_LOG"
sub="$4"
if [ -n "$IOS_SIMLOC_STUB_HANG" ] && [ "$sub" = "$IOS_SIMLOC_STUB_HANG" ]; then
  echo $$ > "$IOS_SIMLOC_STUB_PIDFILE.tmp"
  mv "$IOS_SIMLOC_STUB_PIDFILE.tmp" "$IOS_SIMLOC_STUB_PIDFILE"
  exec sleep 30
fi
for f in $IOS_SIMLOC_STUB_FAIL; do
  if [ "$f" = "$sub" ]; then
    echo "Error: No such command '$sub'." >&2
    exit 2
  fi
done
exit 0
"""


@dataclass
class StubPmd3:
    path: Path
    log: Path
    pid_file: Path

    def calls(self) -> list[list[str]]:
        if not self.log.exists():
            return []
        return [line.split() for line in self.log.read_text(encoding="utf-8").splitlines()]

    def subcommands(self) -> list[str]:
        return [c[3] for c in self.calls() if len(c) > 3]

    def hang_pid(self) -> Optional[int]:
        """Pid of the hanging subcommand, once it has started."""
        if not self.pid_file.exists():
            return None
        return int(self.pid_file.read_text(encoding="utf-8").strip())


@pytest.fixture(autouse=True)
def _reset_package_logger():
    yield
    pkg_logger = logging.getLogger("ios_simloc")
    for handler in list(pkg_logger.handlers):
        pkg_logger.removeHandler(handler)
    pkg_logger.setLevel(logging.NOTSET)


@pytest.fixture(autouse=True)
def _isolated_config_search(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    workdir = tmp_path / "cwd"
    workdir.mkdir()
    monkeypatch.chdir(workdir)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))


@pytest.fixture
def stub_pmd3(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> StubPmd3:
    if os.name == "nt":
        pytest.skip("stub pymobiledevice3 is a POSIX shell script")

    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    script = bin_dir / "pymobiledevice3"
    script.write_text(_STUB_SCRIPT, encoding="utf-8")
    script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)

    log = tmp_path / "pmd3_calls.log"
    pid_file = tmp_path / "pmd3_hang.pid"
    monkeypatch.setenv("PATH", f"{bin_dir}{os.pathsep}{os.environ.get('PATH', '')}")
    monkeypatch.setenv("IOS_SIMLOC_STUB_LOG", str(log))
    monkeypatch.setenv("IOS_SIMLOC_STUB_FAIL", "")
    monkeypatch.setenv("IOS_SIMLOC_STUB_HANG", "")
    monkeypatch.setenv("IOS_SIMLOC_STUB_PIDFILE", str(pid_file))
    monkeypatch.delenv("IOS_SIMLOC_PMD3", raising=False)
    return StubPmd3(path=script, log=log, pid_file=pid_file)
