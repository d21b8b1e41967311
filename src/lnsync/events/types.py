"""Source directory and notification types."""
import asyncio
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, computed_field


class EventKind(str, Enum):
    """Filesystem change kinds that map to a destination link action."""

    CREATED = "created"
    DELETED = "deleted"


class SessionState(str, Enum):
    """Lifecycle states of a watch session."""

    IDLE = "idle"
    WATCHING = "watching"
    DRAINING = "draining"
    STOPPED = "stopped"


class SourceDirectory:
    """One watched source directory and its control channels.

    The notification and exit channels are owned by the event router and
    shared by every source directory; the quit signal belongs to this
    directory alone.

    Attributes:
        path: Absolute directory path.
        updates: Shared channel for filesystem notifications.
        exits: Shared channel for exit acknowledgments.
        quit: Per-directory quit signal.
        state: Current watch session state.
    """

    def __init__(
        self,
        path: str,
        updates: "asyncio.Queue[FilesystemNotification]",
        exits: "asyncio.Queue[SourceDirectory]",
    ) -> None:
        """Initialize source directory.

        Args:
            path: Directory path, made absolute.
            updates: Router-owned notification channel.
            exits: Router-owned exit acknowledgment channel.
        """
        self.path = str(Path(path).absolute())
        self.updates = updates
        self.exits = exits
        self.quit = asyncio.Event()
        self.state = SessionState.IDLE

    def __repr__(self) -> str:
        return f"SourceDirectory(path={self.path!r}, state={self.state.value})"


class FilesystemNotification(BaseModel):
    """One observed create or delete of a direct child of a source directory.

    Attributes:
        kind: Whether the entry appeared or disappeared.
        path: Absolute path of the affected source entry.
        source: Directory the change was observed in.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    kind: EventKind = Field(description="Change kind")
    path: str = Field(description="Absolute path of the source entry")
    source: SourceDirectory = Field(description="Originating source directory")

    @computed_field
    @property
    def name(self) -> str:
        """Base name used as the destination link name."""
        return Path(self.path).name
