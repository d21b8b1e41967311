"""Core entry points used by the process host."""

import asyncio

import structlog

from lnsync.errors import WatchInitError
from lnsync.events import EventRouter, LinkSynchronizer, WatchSession
from lnsync.lifecycle import ShutdownCoordinator
from lnsync.reconcile import Reconciler, ReconcileReport

logger = structlog.get_logger()


class LinkSync:
    """Running symlink farm synchronizer.

    Ties together reconciliation, one watch session per source directory,
    the event router and the shutdown coordinator.

    Attributes:
        source_paths: Watched source directories.
        destination: Directory holding the symlinks.
        sessions: Watch sessions, one per source directory.
        report: Result of the startup reconciliation.
    """

    def __init__(
        self,
        source_paths: list[str],
        destination: str,
        shutdown_timeout: float | None = None,
    ) -> None:
        """Initialize synchronizer.

        Args:
            source_paths: Source directories to mirror.
            destination: Destination directory for symlinks.
            shutdown_timeout: Default seconds wait_closed waits, None for
                no limit.
        """
        self._source_paths = list(source_paths)
        self._destination = destination
        self._router = EventRouter(LinkSynchronizer(destination))
        self._shutdown = ShutdownCoordinator(self._router, timeout=shutdown_timeout)
        self._sessions: list[WatchSession] = []
        self._tasks: list[asyncio.Task[None]] = []
        self._report: ReconcileReport | None = None

    @property
    def source_paths(self) -> list[str]:
        """Watched source directories."""
        return self._source_paths.copy()

    @property
    def destination(self) -> str:
        """Directory holding the symlinks."""
        return self._destination

    @property
    def sessions(self) -> list[WatchSession]:
        """Watch sessions, one per source directory."""
        return self._sessions.copy()

    @property
    def report(self) -> ReconcileReport | None:
        """Result of the startup reconciliation."""
        return self._report

    async def initialize(self) -> None:
        """Reconcile the destination, then start watching and routing.

        Raises:
            ReconcileError: If a source or destination directory cannot
                be read.
            WatchInitError: If the watch backend cannot be created.
        """
        logger.info("pre_clean_started")
        self._report = Reconciler(self._source_paths, self._destination).run()

        try:
            for path in self._source_paths:
                session = WatchSession(self._router.add_source(path))
                session.start()
                self._sessions.append(session)
        except WatchInitError:
            for session in self._sessions:
                await session.release()
            raise

        for session in self._sessions:
            self._tasks.append(asyncio.create_task(session.run()))
        self._tasks.append(asyncio.create_task(self._router.run()))

        logger.info(
            "lnsync_ready",
            sources=self._source_paths,
            destination=self._destination,
        )

    def request_shutdown(self) -> None:
        """Begin graceful termination of every watch session."""
        self._shutdown.trigger()

    async def wait_closed(self, timeout: float | None = None) -> bool:
        """Wait until every session has stopped and the router finished.

        Args:
            timeout: Seconds to wait, uses the configured default if None.

        Returns:
            True if shutdown completed within the timeout.
        """
        if not await self._shutdown.wait(timeout):
            return False
        await asyncio.gather(*self._tasks, return_exceptions=True)
        logger.info("lnsync_stopped")
        return True


async def initialize(
    source_paths: list[str],
    destination: str,
    shutdown_timeout: float | None = None,
) -> LinkSync:
    """Create and start a synchronizer.

    Args:
        source_paths: Source directories to mirror.
        destination: Destination directory for symlinks.
        shutdown_timeout: Default seconds wait_closed waits.

    Returns:
        The running synchronizer.

    Raises:
        FatalError: If startup cannot complete.
    """
    sync = LinkSync(source_paths, destination, shutdown_timeout=shutdown_timeout)
    await sync.initialize()
    return sync
