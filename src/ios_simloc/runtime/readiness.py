from __future__ import annotations

import asyncio
import contextlib
import logging

from ios_simloc.base import SimlocError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 15.0
DEFAULT_INTERVAL_S = 0.25
ATTEMPT_TIMEOUT_S = 2.0


class ReadinessTimeoutError(SimlocError, TimeoutError):
    def __init__(self, host: str, port: int, timeout_s: float):
        super().__init__(f"Timeout: {host}:{port} not ready within {int(timeout_s * 1000)}ms")
        self.host = host
        self.port = port
        self.timeout_s = timeout_s


async def _try_connect(host: str, port: int, *, attempt_timeout_s: float) -> bool:
    try:
        _reader, writer = await asyncio.wait_for(
            asyncio.open_connection(host, port), timeout=attempt_timeout_s
        )
    except (OSError, asyncio.TimeoutError):
        return False
    writer.close()
    with contextlib.suppress(OSError):
        await writer.wait_closed()
    return True


async def wait_for_port(
    host: str,
    port: int,
    *,
    timeout_s: float = DEFAULT_TIMEOUT_S,
    interval_s: float = DEFAULT_INTERVAL_S,
    attempt_timeout_s: float = ATTEMPT_TIMEOUT_S,
) -> None:
    """Block until ``host:port`` accepts a TCP connection.

    A refused or timed-out attempt is "not ready yet": the next attempt starts
    after ``interval_s``, never immediately. Raises ReadinessTimeoutError once
    more than ``timeout_s`` has elapsed, so failure happens no earlier than
    ``timeout_s`` and no later than ``timeout_s + interval_s + attempt_timeout_s``.
    """

    loop = asyncio.get_running_loop()
    start = loop.time()
    attempts = 0
    while True:
        attempts += 1
        if await _try_connect(host, port, attempt_timeout_s=attempt_timeout_s):
            logger.debug("%s:%s accepted a connection after %d attempt(s)", host, port, attempts)
            return
        if loop.time() - start > timeout_s:
            raise ReadinessTimeoutError(host, port, timeout_s)
        await asyncio.sleep(interval_s)
