"""Structured logging configuration using structlog."""

import logging
import sys
from typing import TextIO

import structlog


def configure_logging(
    debug: bool = False,
    log_file: str | None = None,
    log_format: str = "console",
) -> TextIO | None:
    """Configure structlog for one line per event.

    The log file stays open for as long as logging writes to it; the caller
    owns the returned handle and closes it on exit.

    Args:
        debug: Enable debug-level logging when True.
        log_file: Append to this file instead of writing to stdout.
        log_format: "console" for key=value lines, "json" for JSON lines.

    Returns:
        The opened log file, or None when logging to stdout.
    """
    level = logging.DEBUG if debug else logging.INFO

    log_stream: TextIO | None = None
    stream: TextIO = sys.stdout
    if log_file:
        log_stream = open(log_file, "a", encoding="utf-8", buffering=1)
        stream = log_stream

    renderer: structlog.typing.Processor
    if log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        level=level,
        handlers=[logging.StreamHandler(stream)],
    )

    logging.getLogger("watchdog").setLevel(logging.WARNING)
    return log_stream
