from __future__ import annotations

import asyncio
import contextlib
import signal
from typing import Callable, Iterable, Optional

HANDLED_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class CancelToken:
    """Cancellation request shared between the signal handlers and the orchestrator."""

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self.signum: Optional[int] = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, signum: int = signal.SIGINT) -> None:
        if self._event.is_set():
            return
        self.signum = int(signum)
        self._event.set()

    async def wait(self) -> int:
        await self._event.wait()
        return int(self.signum or signal.SIGINT)

    @property
    def exit_code(self) -> int:
        return 128 + int(self.signum or signal.SIGINT)


def install_signal_handlers(
    token: CancelToken,
    *,
    loop: Optional[asyncio.AbstractEventLoop] = None,
    signals: Iterable[int] = HANDLED_SIGNALS,
) -> Callable[[], None]:
    """Route SIGINT/SIGTERM into ``token``; returns a callable that undoes it."""

    loop = loop or asyncio.get_running_loop()
    undo: list[Callable[[], None]] = []

    for sig in signals:
        try:
            loop.add_signal_handler(sig, token.cancel, sig)
            undo.append(lambda s=sig: loop.remove_signal_handler(s))
        except (NotImplementedError, RuntimeError):
            # Windows event loops have no add_signal_handler.
            def _handler(signum, _frame):
                loop.call_soon_threadsafe(token.cancel, signum)

            previous = signal.signal(sig, _handler)
            undo.append(lambda s=sig, p=previous: signal.signal(s, p))

    def _restore() -> None:
        for fn in reversed(undo):
            with contextlib.suppress(Exception):
                fn()

    return _restore
