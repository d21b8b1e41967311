"""Startup reconciliation of the destination directory."""
import os
from pathlib import Path

import structlog
from pydantic import BaseModel, Field

from lnsync.errors import ReconcileError

logger = structlog.get_logger()


class ReconcileReport(BaseModel):
    """Outcome of a reconciliation pass.

    Attributes:
        index: Entry name to the source directory that holds it. When a name
            exists in several sources, the source scanned last wins.
        pruned: Destination links removed because their target is gone.
    """

    index: dict[str, str] = Field(default_factory=dict)
    pruned: list[str] = Field(default_factory=list)


def list_names(directory: str) -> list[str]:
    """List direct children of a directory, sorted by name.

    Args:
        directory: Directory to list.

    Returns:
        Entry names.

    Raises:
        ReconcileError: If the directory cannot be listed.
    """
    try:
        with os.scandir(directory) as it:
            return sorted(entry.name for entry in it)
    except OSError as e:
        raise ReconcileError(f"Unable to list directory: {e}", path=directory) from e


def is_broken_link(path: Path) -> bool:
    """Check if path is a symbolic link whose target does not resolve.

    Args:
        path: Destination entry.

    Returns:
        True for a dangling symlink.

    Raises:
        ReconcileError: If the entry cannot be inspected.
    """
    try:
        if not path.is_symlink():
            return False
        path.resolve(strict=True)
    except (OSError, RuntimeError) as e:
        if path.is_symlink() and not os.path.exists(path):
            return True
        raise ReconcileError(f"Unable to inspect entry: {e}", path=str(path)) from e
    return False


class Reconciler:
    """Prunes dangling links from the destination before watching starts.

    Only broken symlinks are removed. Regular files, directories and links
    that still resolve are left alone, and missing links are never created;
    the destination is populated by live events only.
    """

    def __init__(self, source_paths: list[str], destination: str) -> None:
        """Initialize reconciler.

        Args:
            source_paths: Source directories to index.
            destination: Destination directory to prune.
        """
        self._sources = [str(Path(p).absolute()) for p in source_paths]
        self._destination = Path(destination).absolute()

    def build_index(self) -> dict[str, str]:
        """Map each entry name across all sources to its owning source.

        Returns:
            Name to source directory mapping.

        Raises:
            ReconcileError: If any source directory cannot be listed.
        """
        index: dict[str, str] = {}
        for source in self._sources:
            for name in list_names(source):
                index[name] = source
        return index

    def run(self) -> ReconcileReport:
        """Scan sources and prune broken links in the destination.

        Returns:
            Report with the name index and the pruned links.

        Raises:
            ReconcileError: If a directory cannot be listed, or a broken
                link cannot be removed.
        """
        logger.info(
            "reconcile_started",
            sources=self._sources,
            destination=str(self._destination),
        )
        report = ReconcileReport(index=self.build_index())

        for name in list_names(str(self._destination)):
            entry = self._destination / name
            if not is_broken_link(entry):
                continue
            try:
                os.remove(entry)
            except OSError as e:
                raise ReconcileError(
                    f"Unable to remove broken link: {e}", path=str(entry)
                ) from e
            report.pruned.append(str(entry))
            logger.info("broken_link_pruned", link=str(entry))

        logger.info(
            "reconcile_finished",
            indexed=len(report.index),
            pruned=len(report.pruned),
        )
        return report
