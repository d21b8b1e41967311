"""Pytest configuration and fixtures."""

import asyncio
import sys
from collections.abc import Awaitable, Callable
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest

from lnsync.events import EventKind, FilesystemNotification, SourceDirectory


@pytest.fixture
def source_a(tmp_path: Path) -> Path:
    """Create first source directory."""
    path = tmp_path / "a"
    path.mkdir()
    return path


@pytest.fixture
def source_b(tmp_path: Path) -> Path:
    """Create second source directory."""
    path = tmp_path / "b"
    path.mkdir()
    return path


@pytest.fixture
def destination(tmp_path: Path) -> Path:
    """Create destination directory."""
    path = tmp_path / "dest"
    path.mkdir()
    return path


@pytest.fixture
def make_notification() -> Callable[[EventKind, Path], FilesystemNotification]:
    """Build notifications tagged with a detached source directory."""

    def factory(kind: EventKind, path: Path) -> FilesystemNotification:
        source = SourceDirectory(
            str(path.parent),
            updates=asyncio.Queue(),
            exits=asyncio.Queue(),
        )
        return FilesystemNotification(kind=kind, path=str(path), source=source)

    return factory


@pytest.fixture
def eventually() -> Callable[[Callable[[], bool], float], Awaitable[None]]:
    """Poll a condition until it holds or fail after a timeout."""

    async def poll(condition: Callable[[], bool], timeout: float = 5.0) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while not condition():
            if loop.time() > deadline:
                pytest.fail("condition not met before timeout")
            await asyncio.sleep(0.02)

    return poll
