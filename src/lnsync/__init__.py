"""Mirror source directory entries into a destination as symlinks."""
from lnsync.errors import FatalError, ReconcileError, WatchInitError
from lnsync.service import LinkSync, initialize

__all__ = [
    "FatalError",
    "LinkSync",
    "ReconcileError",
    "WatchInitError",
    "initialize",
]
