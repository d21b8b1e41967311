"""Entry point for the lnsync process host."""

import argparse
import asyncio
import contextlib
import signal
import sys

import structlog
from pydantic import ValidationError

from lnsync.cli import args_to_overrides, build_parser
from lnsync.config import Settings
from lnsync.errors import FatalError
from lnsync.logging import configure_logging
from lnsync.pidfile import PidFileError, remove_pid_file, send_signal, write_pid_file
from lnsync.service import initialize

logger = structlog.get_logger()

SHUTDOWN_SIGNALS = (signal.SIGTERM, signal.SIGINT, signal.SIGHUP)


async def serve(settings: Settings) -> bool:
    """Run the synchronizer until a termination signal arrives.

    SIGTERM, SIGINT and SIGHUP all request shutdown.

    Args:
        settings: Runtime configuration.

    Returns:
        True if every watch session stopped within the shutdown timeout.
    """
    sync = await initialize(
        settings.source_paths,
        settings.destination,
        shutdown_timeout=settings.shutdown_timeout,
    )

    loop = asyncio.get_running_loop()
    for sig in SHUTDOWN_SIGNALS:
        loop.add_signal_handler(sig, sync.request_shutdown)

    try:
        return await sync.wait_closed()
    finally:
        for sig in SHUTDOWN_SIGNALS:
            loop.remove_signal_handler(sig)


def run(argv: list[str] | None = None) -> int:
    """Parse configuration, then either signal an instance or serve.

    Args:
        argv: Command-line arguments, defaults to sys.argv.

    Returns:
        Process exit status.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = Settings(**args_to_overrides(args))
    except ValidationError as e:
        print(f"lnsync: invalid configuration: {e}", file=sys.stderr)
        return 1

    log_stream = configure_logging(
        debug=settings.debug,
        log_file=settings.log_file,
        log_format=settings.log_format,
    )
    try:
        return dispatch(parser, args, settings)
    finally:
        if log_stream is not None:
            log_stream.close()


def dispatch(
    parser: argparse.ArgumentParser,
    args: argparse.Namespace,
    settings: Settings,
) -> int:
    """Signal a running instance or serve until shutdown.

    Args:
        parser: Parser used for usage errors.
        args: Parsed command line.
        settings: Runtime configuration.

    Returns:
        Process exit status.
    """
    if args.signal is not None:
        if not settings.pid_file:
            parser.error("--signal requires --pid")
        try:
            send_signal(settings.pid_file, args.signal)
        except PidFileError as e:
            logger.error("signal_failed", path=e.path, error=str(e))
            return 1
        return 0

    if not settings.source_paths or not settings.destination:
        parser.print_help(sys.stderr)
        return 1

    if settings.pid_file:
        try:
            write_pid_file(settings.pid_file)
        except PidFileError as e:
            logger.error("pid_file_failed", path=e.path, error=str(e))
            return 1

    try:
        with contextlib.suppress(KeyboardInterrupt):
            clean = asyncio.run(serve(settings))
            if not clean:
                return 1
    except FatalError as e:
        logger.error("startup_failed", path=e.path, error=str(e))
        return 1
    finally:
        if settings.pid_file:
            remove_pid_file(settings.pid_file)

    return 0


def main() -> None:
    """Entry point for python -m lnsync."""
    sys.exit(run())


if __name__ == "__main__":
    main()
