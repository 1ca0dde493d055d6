from __future__ import annotations

import asyncio
import logging
import sys
from typing import Optional, Sequence

from ios_simloc.base import UsageError
from ios_simloc.config.options import USAGE, Options, parse_options, wants_help
from ios_simloc.runtime.cancel import CancelToken, install_signal_handlers
from ios_simloc.runtime.orchestrator import EXIT_FAILURE, EXIT_OK, run


class _ConsoleHandler(logging.StreamHandler):
    pass


def _below_warning(record: logging.LogRecord) -> bool:
    return record.levelno < logging.WARNING


def _configure_logging(*, verbose: bool) -> None:
    """Progress lines go to stdout; warnings and failures go to stderr."""

    pkg_logger = logging.getLogger("ios_simloc")
    for handler in list(pkg_logger.handlers):
        if isinstance(handler, _ConsoleHandler):
            pkg_logger.removeHandler(handler)

    progress = _ConsoleHandler(sys.stdout)
    progress.addFilter(_below_warning)
    problems = _ConsoleHandler(sys.stderr)
    problems.setLevel(logging.WARNING)
    for handler in (progress, problems):
        handler.setFormatter(logging.Formatter("%(message)s"))
        pkg_logger.addHandler(handler)
    pkg_logger.setLevel(logging.DEBUG if verbose else logging.INFO)


async def _run_with_signals(options: Options) -> int:
    token = CancelToken()
    restore = install_signal_handlers(token)
    try:
        return await run(options, cancel=token)
    finally:
        restore()


def main(argv: Optional[Sequence[str]] = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)

    if wants_help(argv):
        print(USAGE)
        return EXIT_OK

    _configure_logging(verbose=any(a in ("-v", "--verbose") for a in argv))

    try:
        options = parse_options(argv)
    except UsageError as e:
        if argv:
            print(f"ios-simloc: {e}", file=sys.stderr)
        print(USAGE)
        return EXIT_FAILURE

    return asyncio.run(_run_with_signals(options))


def entrypoint() -> None:
    raise SystemExit(main())


if __name__ == "__main__":
    entrypoint()
