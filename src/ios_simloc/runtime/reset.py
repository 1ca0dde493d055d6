"""Resetting the simulated location across pymobiledevice3 versions.

The verb that clears a simulated location has changed between tool releases,
so the candidates are tried in a fixed order until one exits 0:

    Trying(reset) -> Succeeded(reset)
                  -> Trying(clear) -> ... -> Exhausted(failures)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Sequence, Tuple, Union

from ios_simloc.base import SimlocError
from ios_simloc.runtime.pmd3 import Pymobiledevice3
from ios_simloc.runtime.process import CommandResult, format_command, run_command

logger = logging.getLogger(__name__)

RESET_CANDIDATES: Tuple[str, ...] = ("reset", "clear", "unset", "stop")

Runner = Callable[..., Awaitable[CommandResult]]


class ResetExhaustedError(SimlocError):
    def __init__(self, failures: Sequence[Tuple[str, str]]):
        super().__init__(
            "simulate-location reset/clear failed. Check "
            "'pymobiledevice3 developer dvt simulate-location -h' for supported subcommands."
        )
        self.failures = list(failures)


@dataclass(frozen=True)
class Trying:
    name: str
    index: int
    failures: Tuple[Tuple[str, str], ...] = ()


@dataclass(frozen=True)
class Succeeded:
    name: str
    failures: Tuple[Tuple[str, str], ...] = ()


@dataclass(frozen=True)
class Exhausted:
    failures: Tuple[Tuple[str, str], ...]


ResetState = Union[Trying, Succeeded, Exhausted]


@dataclass(frozen=True)
class ResetPolicy:
    candidates: Tuple[str, ...] = RESET_CANDIDATES

    def start(self) -> ResetState:
        if not self.candidates:
            return Exhausted(failures=())
        return Trying(name=self.candidates[0], index=0)

    def advance(self, state: Trying, *, ok: bool, error: Optional[str] = None) -> ResetState:
        if ok:
            return Succeeded(name=state.name, failures=state.failures)
        failures = state.failures + ((state.name, error or "failed"),)
        nxt = state.index + 1
        if nxt >= len(self.candidates):
            return Exhausted(failures=failures)
        return Trying(name=self.candidates[nxt], index=nxt, failures=failures)


async def reset_location(
    pmd3: Pymobiledevice3,
    *,
    policy: Optional[ResetPolicy] = None,
    runner: Runner = run_command,
) -> Succeeded:
    policy = policy or ResetPolicy()
    state = policy.start()
    while isinstance(state, Trying):
        argv = pmd3.simulate_location(state.name)
        logger.info("[reset] running: %s", format_command(argv))
        try:
            await runner(argv, capture=True, name=f"simulate-location {state.name}")
        except SimlocError as e:
            logger.debug("[reset] '%s': %s", state.name, e)
            logger.info("[reset] '%s' failed, trying next if available...", state.name)
            state = policy.advance(state, ok=False, error=str(e))
            continue
        state = policy.advance(state, ok=True)

    if isinstance(state, Exhausted):
        raise ResetExhaustedError(state.failures)
    return state
