"""Subprocess runner and background-process handle.

Two stdio modes are used by the callers:
  * inherit: the child shares the parent's terminal (tunneld may prompt for a
    sudo password)
  * captured: stdout/stderr are buffered and only surfaced on failure
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import shlex
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, Optional, Sequence

from ios_simloc.base import SimlocError

logger = logging.getLogger(__name__)

STOP_TIMEOUT_S = 5.0


class CommandStartError(SimlocError):
    """Raised when the executable cannot be launched at all."""


class CommandExitError(SimlocError):
    def __init__(self, message: str, *, argv: Sequence[str], returncode: int, stderr: str = ""):
        super().__init__(message)
        self.argv = list(argv)
        self.returncode = returncode
        self.stderr = stderr


@dataclass(frozen=True)
class CommandResult:
    args: list[str]
    stdout: str
    stderr: str
    returncode: int

    def ok(self) -> bool:
        return self.returncode == 0


def format_command(argv: Sequence[str]) -> str:
    return " ".join(shlex.quote(str(a)) for a in argv)


def _decode(data: Optional[bytes]) -> str:
    if not data:
        return ""
    return data.decode("utf-8", errors="replace")


async def _spawn(argv: Sequence[str], *, capture: bool) -> asyncio.subprocess.Process:
    stdio = asyncio.subprocess.PIPE if capture else None
    try:
        return await asyncio.create_subprocess_exec(*argv, stdout=stdio, stderr=stdio)
    except OSError as e:
        raise CommandStartError(f"failed to start {argv[0]}: {e}") from e


async def _terminate(proc: asyncio.subprocess.Process, *, timeout_s: float) -> None:
    if proc.returncode is not None:
        return
    with contextlib.suppress(ProcessLookupError):
        proc.terminate()
    try:
        await asyncio.wait_for(proc.wait(), timeout=timeout_s)
    except asyncio.TimeoutError:
        with contextlib.suppress(ProcessLookupError):
            proc.kill()
        await proc.wait()


async def run_command(
    argv: Sequence[str],
    *,
    capture: bool = True,
    name: Optional[str] = None,
) -> CommandResult:
    """Run ``argv`` to completion.

    Returns the result on exit code 0. A non-zero exit raises
    CommandExitError carrying the captured stderr (when there is any); a
    launch failure raises CommandStartError.
    """

    argv = [str(a) for a in argv]
    if not argv:
        raise CommandStartError("failed to start: empty command")
    label = name or argv[0]

    proc = await _spawn(argv, capture=capture)
    try:
        stdout_b, stderr_b = await proc.communicate()
    except asyncio.CancelledError:
        await _terminate(proc, timeout_s=STOP_TIMEOUT_S)
        raise

    res = CommandResult(
        args=argv,
        stdout=_decode(stdout_b),
        stderr=_decode(stderr_b),
        returncode=int(proc.returncode if proc.returncode is not None else -1),
    )
    if res.stdout.strip():
        logger.debug("%s stdout:\n%s", label, res.stdout.rstrip())
    if res.ok():
        return res

    stderr = res.stderr.strip()
    raise CommandExitError(
        stderr or f"{label} exited with code {res.returncode}",
        argv=argv,
        returncode=res.returncode,
        stderr=stderr,
    )


@dataclass
class ManagedProcess:
    """Handle for a long-running child (inherit mode).

    Owned by whoever called ``start()``; ``stop()`` is idempotent and safe to
    call on every exit path.
    """

    name: str
    cmd: list[str]
    proc: Optional[asyncio.subprocess.Process] = None
    stopped: bool = field(default=False, init=False)

    @property
    def pid(self) -> Optional[int]:
        return self.proc.pid if self.proc is not None else None

    @property
    def running(self) -> bool:
        return self.proc is not None and self.proc.returncode is None

    async def start(self) -> None:
        if self.proc is not None:
            raise SimlocError(f"{self.name} already started (pid={self.pid})")
        self.proc = await _spawn(self.cmd, capture=False)

    async def wait(self) -> int:
        if self.proc is None:
            raise SimlocError(f"{self.name} was never started")
        return await self.proc.wait()

    async def stop(self, *, timeout_s: float = STOP_TIMEOUT_S) -> None:
        proc = self.proc
        if proc is None or proc.returncode is not None:
            return
        logger.debug("[%s] terminating pid=%s", self.name, proc.pid)
        await _terminate(proc, timeout_s=timeout_s)
        self.stopped = True


@asynccontextmanager
async def managed_process(name: str, cmd: Sequence[str]) -> AsyncIterator[ManagedProcess]:
    mp = ManagedProcess(name=name, cmd=[str(c) for c in cmd])
    await mp.start()
    try:
        yield mp
    finally:
        await mp.stop()
