"""Shutdown coordinator tests."""

import asyncio
from pathlib import Path

import pytest

from lnsync.events import EventRouter, LinkSynchronizer
from lnsync.lifecycle import ShutdownCoordinator


@pytest.mark.asyncio
async def test_trigger_is_idempotent(source_a: Path, destination: Path) -> None:
    """Only the first trigger sends a quit to the router."""
    router = EventRouter(LinkSynchronizer(str(destination)))
    source = router.add_source(str(source_a))
    shutdown = ShutdownCoordinator(router)
    task = asyncio.create_task(router.run())

    shutdown.trigger()
    shutdown.trigger()
    assert shutdown.is_triggered

    await asyncio.wait_for(source.quit.wait(), timeout=5.0)
    await source.exits.put(source)

    assert await shutdown.wait(timeout=5.0)
    await task


@pytest.mark.asyncio
async def test_wait_times_out_without_exit_ack(source_a: Path, destination: Path) -> None:
    """Shutdown does not complete while a session has not acknowledged."""
    router = EventRouter(LinkSynchronizer(str(destination)))
    source = router.add_source(str(source_a))
    shutdown = ShutdownCoordinator(router, timeout=0.1)
    task = asyncio.create_task(router.run())

    shutdown.trigger()

    assert await shutdown.wait() is False
    assert not router.closed

    await source.exits.put(source)
    await asyncio.wait_for(task, timeout=5.0)
    assert await shutdown.wait()
