"""Events subsystem for directory watching and link routing."""
from lnsync.events.linker import LinkSynchronizer
from lnsync.events.router import EventRouter
from lnsync.events.types import (
    EventKind,
    FilesystemNotification,
    SessionState,
    SourceDirectory,
)
from lnsync.events.watcher import WatchSession

__all__ = [
    "EventKind",
    "EventRouter",
    "FilesystemNotification",
    "LinkSynchronizer",
    "SessionState",
    "SourceDirectory",
    "WatchSession",
]
