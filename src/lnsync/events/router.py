"""Single control loop routing notifications and lifecycle signals."""

import asyncio
import contextlib

import structlog

from lnsync.events.linker import LinkSynchronizer
from lnsync.events.types import FilesystemNotification, SessionState, SourceDirectory

logger = structlog.get_logger()


class EventRouter:
    """Coordination point between watch sessions and the link synchronizer.

    Owns the shared notification channel, the quit channel and the exit
    acknowledgment channel. Each notification is dispatched to the
    synchronizer as its own task without waiting for it to finish; a quit
    is forwarded to every source directory; each exit acknowledgment
    decrements the outstanding count and the loop ends when it hits zero.

    Attributes:
        sources: Source directories routed through this instance.
        outstanding: Number of sessions that have not acknowledged exit.
    """

    def __init__(self, synchronizer: LinkSynchronizer) -> None:
        """Initialize event router.

        Args:
            synchronizer: Applies notifications to the destination.
        """
        self._synchronizer = synchronizer
        self._updates: asyncio.Queue[FilesystemNotification] = asyncio.Queue(maxsize=1)
        self._exits: asyncio.Queue[SourceDirectory] = asyncio.Queue()
        self._quit: asyncio.Queue[None] = asyncio.Queue()
        self._sources: list[SourceDirectory] = []
        self._outstanding = 0
        self._inflight: set[asyncio.Task[bool]] = set()
        self._closed = asyncio.Event()

    @property
    def sources(self) -> list[SourceDirectory]:
        """Source directories routed through this instance."""
        return self._sources.copy()

    @property
    def outstanding(self) -> int:
        """Number of sessions that have not acknowledged exit."""
        return self._outstanding

    @property
    def closed(self) -> bool:
        """Whether the control loop has finished."""
        return self._closed.is_set()

    def add_source(self, path: str) -> SourceDirectory:
        """Create a source directory wired to this router's channels.

        Args:
            path: Directory to watch.

        Returns:
            The new source directory.
        """
        source = SourceDirectory(path, updates=self._updates, exits=self._exits)
        self._sources.append(source)
        self._outstanding += 1
        return source

    def request_quit(self) -> None:
        """Send a global quit into the control loop."""
        self._quit.put_nowait(None)

    async def wait_closed(self) -> None:
        """Block until the control loop has finished."""
        await self._closed.wait()

    def _dispatch(self, notification: FilesystemNotification) -> None:
        if notification.source.state is SessionState.STOPPED:
            logger.warning(
                "notification_dropped",
                kind=notification.kind.value,
                path=notification.path,
                reason="session_stopped",
            )
            return

        async def apply() -> bool:
            return self._synchronizer.apply(notification)

        task = asyncio.create_task(apply())
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)

    def _broadcast_quit(self) -> None:
        logger.info("quit_broadcast", sessions=len(self._sources))
        for source in self._sources:
            source.quit.set()

    def _on_exit(self, source: SourceDirectory) -> None:
        self._outstanding -= 1
        logger.debug(
            "session_exit_acknowledged",
            path=source.path,
            outstanding=self._outstanding,
        )

    async def run(self) -> None:
        """Route channel input until every session has acknowledged exit."""
        logger.info("router_started", sessions=self._outstanding)
        notify = asyncio.ensure_future(self._updates.get())
        quit_ = asyncio.ensure_future(self._quit.get())
        exited = asyncio.ensure_future(self._exits.get())

        try:
            while self._outstanding > 0:
                done, _ = await asyncio.wait(
                    {notify, quit_, exited},
                    return_when=asyncio.FIRST_COMPLETED,
                )
                if notify in done:
                    self._dispatch(notify.result())
                    notify = asyncio.ensure_future(self._updates.get())
                if quit_ in done:
                    self._broadcast_quit()
                    quit_ = asyncio.ensure_future(self._quit.get())
                if exited in done:
                    self._on_exit(exited.result())
                    exited = asyncio.ensure_future(self._exits.get())
        finally:
            getters = (notify, quit_, exited)
            for getter in getters:
                getter.cancel()
            for getter in getters:
                with contextlib.suppress(asyncio.CancelledError):
                    await getter

            if self._inflight:
                await asyncio.gather(*self._inflight, return_exceptions=True)

            self._closed.set()
            logger.info("router_stopped")
