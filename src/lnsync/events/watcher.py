"""Per-directory watchdog sessions feeding the event router."""

import asyncio
import contextlib
import errno
import os
from collections.abc import Callable, Coroutine
from typing import Any

import structlog
from watchdog.events import (
    DirCreatedEvent,
    DirDeletedEvent,
    FileCreatedEvent,
    FileDeletedEvent,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from lnsync.errors import WatchInitError
from lnsync.events.types import (
    EventKind,
    FilesystemNotification,
    SessionState,
    SourceDirectory,
)

logger = structlog.get_logger()

EVENT_KINDS: dict[type[FileSystemEvent], EventKind] = {
    FileCreatedEvent: EventKind.CREATED,
    DirCreatedEvent: EventKind.CREATED,
    FileDeletedEvent: EventKind.DELETED,
    DirDeletedEvent: EventKind.DELETED,
}

# inotify_init failures; anything else is specific to the watched path.
BACKEND_ERRNOS: frozenset[int] = frozenset({errno.EMFILE, errno.ENFILE, errno.ENOSYS})


class WatchStreamError(Exception):
    """Raised into a forwarding loop when its event stream has ended."""


def decode_path(src_path: str | bytes) -> str:
    """Return a watchdog event path as text."""
    if isinstance(src_path, str):
        return src_path
    return bytes(src_path).decode("utf-8", errors="replace")


class ForwardingHandler(FileSystemEventHandler):
    """Watchdog handler passing direct-child events to the event loop.

    Runs on the observer thread. Each event is handed to ``callback`` on the
    loop and the thread waits for the hand-off, so events reach the loop in
    the order watchdog reports them.
    """

    def __init__(
        self,
        root: str,
        loop: asyncio.AbstractEventLoop,
        callback: Callable[[FileSystemEvent | WatchStreamError], Coroutine[Any, Any, None]],
    ) -> None:
        """Initialize forwarding handler.

        Args:
            root: Watched directory.
            loop: Event loop for scheduling async callbacks.
            callback: Async function receiving events or stream errors.
        """
        super().__init__()
        self._root = root
        self._loop = loop
        self._callback = callback

    def _hand_off(self, item: FileSystemEvent | WatchStreamError) -> None:
        try:
            future = asyncio.run_coroutine_threadsafe(self._callback(item), self._loop)
            future.result(timeout=5.0)
        except Exception as e:
            logger.error("watcher_callback_error", error=str(e), path=self._root)

    def on_any_event(self, event: FileSystemEvent) -> None:
        """Forward create and delete events for direct children.

        Args:
            event: Raw watchdog filesystem event.
        """
        path = decode_path(event.src_path)

        if path == self._root:
            if isinstance(event, (DirDeletedEvent, FileDeletedEvent)):
                self._hand_off(WatchStreamError(f"Watched directory removed: {path}"))
            return

        if os.path.dirname(path) != self._root:
            return

        if type(event) in EVENT_KINDS:
            self._hand_off(event)


class WatchSession:
    """Watches one source directory and forwards its notifications.

    State moves ``IDLE -> WATCHING -> DRAINING -> STOPPED``. A directory
    whose watch cannot be registered stays unmonitored but still follows
    ``IDLE -> DRAINING -> STOPPED`` when told to quit.

    Attributes:
        source: The watched source directory.
    """

    def __init__(self, source: SourceDirectory) -> None:
        """Initialize watch session.

        Args:
            source: Source directory with its router channels.
        """
        self._source = source
        self._observer: Observer | None = None  # pyright: ignore[reportInvalidTypeForm]
        self._events: asyncio.Queue[FileSystemEvent | WatchStreamError] = asyncio.Queue()
        self._forwarder: asyncio.Task[None] | None = None

    @property
    def source(self) -> SourceDirectory:
        """The watched source directory."""
        return self._source

    @property
    def state(self) -> SessionState:
        """Current session state."""
        return self._source.state

    async def _receive(self, item: FileSystemEvent | WatchStreamError) -> None:
        await self._events.put(item)

    def start(self) -> None:
        """Register a non-recursive watch on the source directory.

        Raises:
            WatchInitError: If the watchdog observer cannot be created
                or the notification backend cannot be initialized. Errors
                specific to the path only leave it unmonitored.
        """
        path = self._source.path
        loop = asyncio.get_running_loop()
        try:
            observer = Observer()
        except Exception as e:
            raise WatchInitError(
                f"Failed to initialize filesystem watcher: {e}", path=path
            ) from e

        handler = ForwardingHandler(path, loop, self._receive)
        try:
            observer.schedule(handler, path, recursive=False)
            observer.start()
        except OSError as e:
            if e.errno in BACKEND_ERRNOS:
                with contextlib.suppress(RuntimeError):
                    observer.stop()
                raise WatchInitError(
                    f"Failed to initialize filesystem watcher: {e}", path=path
                ) from e
            logger.error("watch_add_failed", path=path, error=str(e))
            return

        self._observer = observer
        self._source.state = SessionState.WATCHING
        logger.info("watch_added", path=path)

    async def run(self) -> None:
        """Forward events until quit, then acknowledge exit and release."""
        if self._source.state is SessionState.WATCHING:
            self._forwarder = asyncio.create_task(self._forward())

        await self._source.quit.wait()
        self._source.state = SessionState.DRAINING

        if self._forwarder is not None:
            self._forwarder.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._forwarder

        await self._source.exits.put(self._source)
        await self.release()
        self._source.state = SessionState.STOPPED
        logger.debug("watch_session_stopped", path=self._source.path)

    async def _forward(self) -> None:
        """Turn raw events into notifications on the shared channel."""
        while True:
            item = await self._events.get()
            if isinstance(item, WatchStreamError):
                logger.error(
                    "watch_stream_failed",
                    path=self._source.path,
                    error=str(item),
                )
                self._source.quit.set()
                return

            notification = FilesystemNotification(
                kind=EVENT_KINDS[type(item)],
                path=decode_path(item.src_path),
                source=self._source,
            )
            await self._source.updates.put(notification)

    async def release(self) -> None:
        """Stop the observer and free its watch handle."""
        observer = self._observer
        if observer is None:
            return
        self._observer = None

        def stop_observer() -> None:
            observer.stop()
            observer.join(timeout=5.0)

        await asyncio.to_thread(stop_observer)
        logger.info("watch_removed", path=self._source.path)
