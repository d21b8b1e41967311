"""Graceful shutdown coordinator for watch sessions."""
import asyncio

import structlog

from lnsync.events.router import EventRouter

logger = structlog.get_logger()


class ShutdownCoordinator:
    """Coordinates graceful shutdown of every watch session.

    Triggering sends a single quit into the event router, which forwards it
    to each session. Completion is reported by the router once every session
    has acknowledged exit and in-flight link actions have finished.

    Attributes:
        is_triggered: Whether shutdown has been triggered.
    """

    def __init__(self, router: EventRouter, timeout: float | None = None) -> None:
        """Initialize shutdown coordinator.

        Args:
            router: Event router owning the quit channel.
            timeout: Default seconds to wait for shutdown completion,
                None waits indefinitely.
        """
        self._router = router
        self._triggered = False
        self._event = asyncio.Event()
        self._timeout = timeout

    @property
    def is_triggered(self) -> bool:
        """Check if shutdown has been triggered.

        Returns:
            True if a termination request was received.
        """
        return self._triggered

    def trigger(self) -> None:
        """Send the global quit signal to the event router.

        Idempotent - calling multiple times has no additional effect.
        """
        if self._triggered:
            return
        logger.info("shutdown_triggered", outstanding=self._router.outstanding)
        self._triggered = True
        self._event.set()
        self._router.request_quit()

    async def wait_for_trigger(self) -> None:
        """Wait indefinitely for a termination request."""
        await self._event.wait()

    async def wait(self, timeout: float | None = None) -> bool:
        """Wait until every watch session has stopped.

        The router may also finish on its own when every session's event
        stream has failed. The timeout only starts counting once shutdown
        has been triggered.

        Args:
            timeout: Seconds to wait after the trigger, uses default if None.

        Returns:
            True if completed within timeout, False if timeout exceeded.
        """
        closed = asyncio.ensure_future(self._router.wait_closed())
        triggered = asyncio.ensure_future(self.wait_for_trigger())
        await asyncio.wait({closed, triggered}, return_when=asyncio.FIRST_COMPLETED)
        triggered.cancel()
        if closed.done():
            return True

        t = timeout if timeout is not None else self._timeout
        try:
            await asyncio.wait_for(closed, timeout=t)
            return True
        except asyncio.TimeoutError:
            logger.warning("shutdown_timeout", timeout_seconds=t)
            return False
