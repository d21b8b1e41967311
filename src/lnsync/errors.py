"""Fatal error types raised during startup."""


class FatalError(Exception):
    """Raised when lnsync cannot start and the process must exit.

    Attributes:
        path: Directory the failure is attributed to, if any.
    """

    def __init__(self, message: str, path: str | None = None) -> None:
        """Initialize fatal error.

        Args:
            message: Error description.
            path: The offending directory path.
        """
        super().__init__(message)
        self.path = path


class ReconcileError(FatalError):
    """Raised when a source or destination directory cannot be scanned."""


class WatchInitError(FatalError):
    """Raised when the filesystem notification backend cannot be created."""
