"""Event router tests."""

import asyncio
import os
from pathlib import Path

import pytest
from structlog.testing import capture_logs

from lnsync.events import (
    EventKind,
    EventRouter,
    FilesystemNotification,
    LinkSynchronizer,
    SessionState,
)


@pytest.mark.asyncio
async def test_dispatches_notifications(source_a: Path, destination: Path, eventually) -> None:
    """Notifications on the shared channel become destination links."""
    router = EventRouter(LinkSynchronizer(str(destination)))
    source = router.add_source(str(source_a))
    task = asyncio.create_task(router.run())
    target = source_a / "x.txt"
    target.write_text("x")

    await source.updates.put(
        FilesystemNotification(kind=EventKind.CREATED, path=str(target), source=source)
    )
    await eventually(lambda: (destination / "x.txt").is_symlink())

    await source.updates.put(
        FilesystemNotification(kind=EventKind.DELETED, path=str(target), source=source)
    )
    await eventually(lambda: not (destination / "x.txt").is_symlink())

    await source.exits.put(source)
    await asyncio.wait_for(task, timeout=5.0)
    assert router.closed


@pytest.mark.asyncio
async def test_quit_is_forwarded_to_every_source(
    source_a: Path, source_b: Path, destination: Path
) -> None:
    """A global quit sets each source's quit signal; exits end the loop."""
    router = EventRouter(LinkSynchronizer(str(destination)))
    first = router.add_source(str(source_a))
    second = router.add_source(str(source_b))
    task = asyncio.create_task(router.run())

    router.request_quit()
    await asyncio.wait_for(first.quit.wait(), timeout=5.0)
    await asyncio.wait_for(second.quit.wait(), timeout=5.0)
    assert router.outstanding == 2

    await first.exits.put(first)
    await asyncio.sleep(0.05)
    assert not task.done()
    assert router.outstanding == 1

    await second.exits.put(second)
    await asyncio.wait_for(task, timeout=5.0)
    assert router.outstanding == 0
    assert router.closed


@pytest.mark.asyncio
async def test_same_name_race_keeps_one_link(
    source_a: Path, source_b: Path, destination: Path, eventually
) -> None:
    """Two creates for one base name leave one link and log a conflict."""
    router = EventRouter(LinkSynchronizer(str(destination)))
    first = router.add_source(str(source_a))
    second = router.add_source(str(source_b))
    (source_a / "dup.txt").write_text("a")
    (source_b / "dup.txt").write_text("b")
    task = asyncio.create_task(router.run())

    with capture_logs() as logs:
        await first.updates.put(
            FilesystemNotification(
                kind=EventKind.CREATED, path=str(source_a / "dup.txt"), source=first
            )
        )
        await second.updates.put(
            FilesystemNotification(
                kind=EventKind.CREATED, path=str(source_b / "dup.txt"), source=second
            )
        )
        await first.exits.put(first)
        await second.exits.put(second)
        await asyncio.wait_for(task, timeout=5.0)

    assert os.listdir(destination) == ["dup.txt"]
    assert os.readlink(destination / "dup.txt") in {
        str(source_a / "dup.txt"),
        str(source_b / "dup.txt"),
    }
    assert [entry["event"] for entry in logs].count("link_conflict") == 1


@pytest.mark.asyncio
async def test_drops_notifications_from_stopped_sessions(
    source_a: Path, destination: Path
) -> None:
    """No link changes happen for a directory whose session has stopped."""
    router = EventRouter(LinkSynchronizer(str(destination)))
    source = router.add_source(str(source_a))
    source.state = SessionState.STOPPED
    task = asyncio.create_task(router.run())

    with capture_logs() as logs:
        await source.updates.put(
            FilesystemNotification(
                kind=EventKind.CREATED, path=str(source_a / "late.txt"), source=source
            )
        )
        await source.exits.put(source)
        await asyncio.wait_for(task, timeout=5.0)

    assert os.listdir(destination) == []
    assert "notification_dropped" in [entry["event"] for entry in logs]


@pytest.mark.asyncio
async def test_no_sources_finishes_immediately(destination: Path) -> None:
    """A router with nothing to wait for closes right away."""
    router = EventRouter(LinkSynchronizer(str(destination)))

    await asyncio.wait_for(router.run(), timeout=5.0)

    assert router.closed
