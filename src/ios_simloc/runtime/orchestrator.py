"""Top-level sequence: tunneld -> readiness -> set/reset -> cleanup.

The tunnel process is a scoped resource: it is acquired when spawned and
released on every exit path, including cancellation by SIGINT/SIGTERM.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal
from typing import Any, Awaitable, Optional, TypeVar

from ios_simloc.base import SimlocError
from ios_simloc.config.options import Options
from ios_simloc.runtime.cancel import CancelToken
from ios_simloc.runtime.pmd3 import Pymobiledevice3
from ios_simloc.runtime.process import ManagedProcess, format_command, managed_process, run_command
from ios_simloc.runtime.readiness import wait_for_port
from ios_simloc.runtime.reset import reset_location

logger = logging.getLogger(__name__)

T = TypeVar("T")

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_RESET_FAILURE = 2

TUNNEL_READY_TIMEOUT_S = 20.0
TUNNEL_READY_INTERVAL_S = 0.3


class Cancelled(SimlocError):
    def __init__(self, signum: int):
        super().__init__(f"cancelled by signal {signum}")
        self.signum = signum


class TunnelExitedError(SimlocError):
    pass


def _signal_name(signum: int) -> str:
    try:
        return signal.Signals(signum).name
    except ValueError:
        return str(signum)


async def _cancel_all(tasks: list[asyncio.Future[Any]]) -> None:
    pending = [t for t in tasks if not t.done()]
    for t in pending:
        t.cancel()
    if pending:
        await asyncio.gather(*pending, return_exceptions=True)


async def _guarded(aw: Awaitable[T], cancel: Optional[CancelToken]) -> T:
    """Await ``aw`` unless ``cancel`` fires first (then raise Cancelled)."""

    if cancel is None:
        return await aw
    if cancel.cancelled:
        if asyncio.iscoroutine(aw):
            aw.close()
        raise Cancelled(cancel.signum or signal.SIGINT)

    work = asyncio.ensure_future(aw)
    waiter = asyncio.ensure_future(cancel.wait())
    try:
        done, _ = await asyncio.wait({work, waiter}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        await _cancel_all([work, waiter])

    if work in done:
        return work.result()
    raise Cancelled(cancel.signum or signal.SIGINT)


async def _wait_for_tunnel(
    tunnel: ManagedProcess,
    host: str,
    port: int,
    *,
    timeout_s: float,
    interval_s: float,
) -> None:
    ready = asyncio.ensure_future(
        wait_for_port(host, port, timeout_s=timeout_s, interval_s=interval_s)
    )
    exited = asyncio.ensure_future(tunnel.wait())
    try:
        await asyncio.wait({ready, exited}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        await _cancel_all([ready, exited])

    if ready.done() and not ready.cancelled():
        ready.result()
        return
    raise TunnelExitedError(
        f"tunneld exited with code {exited.result()} before {host}:{port} was ready"
    )


async def run(
    options: Options,
    *,
    cancel: Optional[CancelToken] = None,
    pmd3: Optional[Pymobiledevice3] = None,
    ready_timeout_s: float = TUNNEL_READY_TIMEOUT_S,
    ready_interval_s: float = TUNNEL_READY_INTERVAL_S,
) -> int:
    """Run one set/reset invocation and return the process exit code."""

    options.validate()
    pmd3 = pmd3 or Pymobiledevice3()

    try:
        async with contextlib.AsyncExitStack() as stack:
            if not options.no_tunnel:
                cmd = pmd3.tunneld(options.host, options.port)
                logger.info("[tunneld] launching: %s", format_command(cmd))
                tunnel = await stack.enter_async_context(managed_process("tunneld", cmd))

                logger.info("[tunneld] waiting for %s:%s ...", options.host, options.port)
                await _guarded(
                    _wait_for_tunnel(
                        tunnel,
                        options.host,
                        options.port,
                        timeout_s=ready_timeout_s,
                        interval_s=ready_interval_s,
                    ),
                    cancel,
                )
                logger.info("[tunneld] ready.")
            else:
                logger.info(
                    "[tunneld] skipped (--no-tunnel). Make sure tunneld is already running."
                )

            if options.reset:
                await _guarded(reset_location(pmd3), cancel)
                logger.info("[reset] done.")
            else:
                argv = pmd3.simulate_location_set(*options.coordinates())
                logger.info("[simulate] running: %s", format_command(argv))
                await _guarded(run_command(argv, capture=True, name="simulate-location"), cancel)
                logger.info("[simulate] done.")
        return EXIT_OK
    except Cancelled as e:
        logger.info("[signal] %s received, exiting.", _signal_name(e.signum))
        return 128 + int(e.signum)
    except SimlocError as e:
        if options.reset:
            logger.error("[reset] failed: %s", e)
            return EXIT_RESET_FAILURE
        logger.error("[error] %s", e)
        return EXIT_FAILURE
