"""Translate filesystem notifications into destination symlink actions."""
import os
from pathlib import Path

import structlog

from lnsync.events.types import EventKind, FilesystemNotification

logger = structlog.get_logger()


class LinkSynchronizer:
    """Applies one notification to the destination directory.

    Creation links ``destination/<name>`` to the source entry; deletion
    removes ``destination/<name>``. Failures are logged and the
    notification is dropped. Nothing is retried or overwritten.

    Attributes:
        destination: Absolute destination directory path.
    """

    def __init__(self, destination: str) -> None:
        """Initialize link synchronizer.

        Args:
            destination: Directory holding the symlink farm.
        """
        self._destination = Path(destination).absolute()

    @property
    def destination(self) -> str:
        """Destination directory path."""
        return str(self._destination)

    def link_path(self, notification: FilesystemNotification) -> Path:
        """Destination path for the entry named in a notification."""
        return self._destination / notification.name

    def apply(self, notification: FilesystemNotification) -> bool:
        """Apply a notification to the destination directory.

        Args:
            notification: Create or delete notification.

        Returns:
            True if the destination was changed.
        """
        if notification.kind is EventKind.CREATED:
            return self.create_link(notification)
        if notification.kind is EventKind.DELETED:
            return self.remove_link(notification)
        return False

    def create_link(self, notification: FilesystemNotification) -> bool:
        """Create ``destination/<name>`` pointing at the source entry.

        Args:
            notification: Creation notification.

        Returns:
            True if the link was created.
        """
        link = self.link_path(notification)
        try:
            os.symlink(notification.path, link)
        except FileExistsError:
            logger.warning("link_conflict", link=str(link), target=notification.path)
            return False
        except OSError as e:
            logger.error(
                "link_failed",
                action="create",
                link=str(link),
                target=notification.path,
                error=str(e),
            )
            return False

        logger.info("link_created", link=str(link), target=notification.path)
        return True

    def remove_link(self, notification: FilesystemNotification) -> bool:
        """Remove ``destination/<name>``.

        The entry is removed whatever it points at, so deleting a
        same-named entry from another source also drops the link.

        Args:
            notification: Deletion notification.

        Returns:
            True if the entry was removed.
        """
        link = self.link_path(notification)
        try:
            os.remove(link)
        except FileNotFoundError:
            logger.warning("link_missing", link=str(link), source=notification.path)
            return False
        except OSError as e:
            logger.error(
                "link_failed",
                action="remove",
                link=str(link),
                source=notification.path,
                error=str(e),
            )
            return False

        logger.info("link_removed", link=str(link), source=notification.path)
        return True
