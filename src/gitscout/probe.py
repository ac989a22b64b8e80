"""Synchronous filesystem primitives used by the scanner.

Every method here is read-only.  Methods that may fail on a single node
either return a soft value (``False``, ``EPOCH_FLOOR``) or raise
``OSError`` where documented, so callers never have to guess.
"""

from __future__ import annotations

import logging
import os
import stat
import threading
from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timezone

from .models import EPOCH_FLOOR

logger = logging.getLogger(__name__)

DEFAULT_MARKER = ".git"


@dataclass(frozen=True)
class ChildEntry:
    """One entry of a directory listing."""

    path: str
    name: str
    is_directory: bool
    is_hidden: bool
    is_symlink: bool = False


class FilesystemProbe:
    """Read-only filesystem queries.

    Parameters
    ----------
    marker:
        Name of the subdirectory that marks a directory as
        version-controlled.
    follow_symlinks:
        Report symlinked directories as directories.
    """

    def __init__(
        self, marker: str = DEFAULT_MARKER, *, follow_symlinks: bool = False
    ) -> None:
        self.marker = marker
        self.follow_symlinks = follow_symlinks
        self.calls: Counter[str] = Counter()
        self._lock = threading.Lock()

    def _count(self, op: str) -> None:
        with self._lock:
            self.calls[op] += 1

    def list_children(self, directory: str) -> list[ChildEntry]:
        """List the immediate children of *directory*.

        Raises ``OSError`` if the directory cannot be listed.
        """
        self._count("list_children")
        children: list[ChildEntry] = []
        with os.scandir(directory) as it:
            for entry in it:
                try:
                    is_symlink = entry.is_symlink()
                    is_dir = entry.is_dir(follow_symlinks=self.follow_symlinks)
                    hidden = _is_hidden(entry)
                except OSError:
                    # vanished between listing and stat
                    continue
                children.append(
                    ChildEntry(
                        path=entry.path,
                        name=entry.name,
                        is_directory=is_dir,
                        is_hidden=hidden,
                        is_symlink=is_symlink,
                    )
                )
        return children

    def exists(self, path: str) -> bool:
        self._count("exists")
        return os.path.exists(path)

    def is_directory(self, path: str) -> bool:
        self._count("is_directory")
        return os.path.isdir(path)

    def is_readable(self, path: str) -> bool:
        self._count("is_readable")
        return os.access(path, os.R_OK | os.X_OK)

    def is_version_controlled(self, path: str) -> bool:
        """True iff the marker directory exists directly under *path*.

        A marker that is a plain file, as in git worktrees and
        submodules, does not count.
        """
        self._count("is_version_controlled")
        return os.path.isdir(os.path.join(path, self.marker))

    def modification_time(self, path: str) -> datetime:
        self._count("modification_time")
        try:
            mtime = os.stat(path).st_mtime
        except OSError as exc:
            logger.debug("No modification time for %s: %s", path, exc)
            return EPOCH_FLOOR
        return datetime.fromtimestamp(mtime, tz=timezone.utc)

    def real_path(self, path: str) -> str:
        self._count("real_path")
        return os.path.realpath(path)

    @property
    def total_calls(self) -> int:
        with self._lock:
            return sum(self.calls.values())


_HAS_ST_FLAGS = hasattr(os.stat_result, "st_flags")


def _is_hidden(entry: os.DirEntry) -> bool:
    if entry.name.startswith("."):
        return True
    if not _HAS_ST_FLAGS:
        return False
    # BSD / macOS hidden flag
    return bool(entry.stat(follow_symlinks=False).st_flags & stat.UF_HIDDEN)
