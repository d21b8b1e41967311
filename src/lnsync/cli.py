"""Command-line arguments for the process host."""

import argparse
from typing import Any

from lnsync.pidfile import SIGNALS


def build_parser() -> argparse.ArgumentParser:
    """Construct the argument parser for the lnsync command.

    Returns:
        Configured parser instance.
    """
    p = argparse.ArgumentParser(
        prog="lnsync",
        description="Mirror files of source directories as symlinks in a destination.",
    )
    p.add_argument(
        "-s", "--source",
        dest="sources_raw",
        default=None,
        help="Comma-separated source directories.",
    )
    p.add_argument(
        "-d", "--destination",
        dest="destination",
        default=None,
        help="Destination directory for symlinks.",
    )
    p.add_argument(
        "--pid",
        dest="pid_file",
        default=None,
        help="Pid file path.",
    )
    p.add_argument(
        "--log",
        dest="log_file",
        default=None,
        help="Log file path (default: stdout).",
    )
    p.add_argument(
        "--log-format",
        dest="log_format",
        choices=("console", "json"),
        default=None,
        help="Log line format.",
    )
    p.add_argument(
        "--signal",
        dest="signal",
        choices=sorted(SIGNALS),
        default=None,
        help="Send a command to the running instance named by --pid.",
    )
    p.add_argument(
        "--debug",
        action="store_true",
        default=None,
        help="Enable debug logging.",
    )
    return p


def args_to_overrides(args: argparse.Namespace) -> dict[str, Any]:
    """Map parsed arguments to Settings overrides.

    Options left unset on the command line are omitted so environment
    values still apply.

    Args:
        args: Parsed namespace.

    Returns:
        Keyword arguments for Settings.
    """
    keys = ("sources_raw", "destination", "pid_file", "log_file", "log_format", "debug")
    return {key: getattr(args, key) for key in keys if getattr(args, key) is not None}
