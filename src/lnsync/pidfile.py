"""Pid file handling and signalling of a running instance."""
import os
import signal
from pathlib import Path

import structlog

logger = structlog.get_logger()

SIGNALS: dict[str, signal.Signals] = {
    "term": signal.SIGTERM,
    "reload": signal.SIGHUP,
}


class PidFileError(Exception):
    """Raised when a pid file is missing, unreadable or stale."""

    def __init__(self, message: str, path: str) -> None:
        """Initialize pid file error.

        Args:
            message: Error description.
            path: The pid file path.
        """
        super().__init__(message)
        self.path = path


def write_pid_file(path: str, pid: int | None = None) -> None:
    """Record the process id.

    Args:
        path: Pid file location.
        pid: Process id, defaults to the current process.

    Raises:
        PidFileError: If the file cannot be written.
    """
    pid_path = Path(path)
    try:
        pid_path.parent.mkdir(parents=True, exist_ok=True)
        pid_path.write_text(f"{pid if pid is not None else os.getpid()}\n")
        os.chmod(pid_path, 0o644)
    except OSError as e:
        raise PidFileError(f"Unable to write pid file: {e}", path) from e
    logger.debug("pid_file_written", path=path)


def remove_pid_file(path: str) -> None:
    """Remove the pid file if it still exists."""
    try:
        os.remove(path)
    except FileNotFoundError:
        return
    logger.debug("pid_file_removed", path=path)


def read_pid(path: str) -> int:
    """Read a process id from a pid file.

    Args:
        path: Pid file location.

    Returns:
        The recorded process id.

    Raises:
        PidFileError: If the file cannot be read or holds no valid pid.
    """
    try:
        content = Path(path).read_text().strip()
    except OSError as e:
        raise PidFileError(f"Unable to read pid file: {e}", path) from e

    if not content.isdigit() or int(content) <= 0:
        raise PidFileError(f"Invalid pid file content: {content!r}", path)
    return int(content)


def send_signal(path: str, command: str) -> int:
    """Send a named command to the process recorded in a pid file.

    Args:
        path: Pid file of the running instance.
        command: "term" or "reload".

    Returns:
        The signalled process id.

    Raises:
        PidFileError: If the pid file is invalid, the process is gone or
            cannot be signalled.
        KeyError: If the command is unknown.
    """
    sig = SIGNALS[command]
    pid = read_pid(path)
    try:
        os.kill(pid, sig)
    except ProcessLookupError as e:
        raise PidFileError(f"No process with pid {pid}", path) from e
    except OSError as e:
        raise PidFileError(f"Unable to signal pid {pid}: {e}", path) from e
    logger.info("signal_sent", pid=pid, signal=sig.name)
    return pid
