"""In-memory discovery cache.

Caches sorted scan results keyed by the normalized root path, so
``~/code`` and ``/home/me/code`` share an entry.  Entries live until
:meth:`DiscoveryCache.clear` is called or the process exits.
"""

from __future__ import annotations

import os
from pathlib import Path

from .models import DiscoveredEntry


def normalize_root(path: str | Path) -> str:
    """Expand ``~`` and make *path* absolute, without resolving symlinks."""
    return os.path.abspath(os.path.expanduser(str(path)))


class DiscoveryCache:
    """Result cache for the lifetime of a discovery service."""

    def __init__(self) -> None:
        self._entries: dict[str, tuple[DiscoveredEntry, ...]] = {}

    def get(self, root: str | Path) -> tuple[DiscoveredEntry, ...] | None:
        """Return cached results or ``None``."""
        return self._entries.get(normalize_root(root))

    def put(self, root: str | Path, entries: list[DiscoveredEntry] | tuple[DiscoveredEntry, ...]) -> None:
        """Store results, replacing any earlier scan of the same root."""
        self._entries[normalize_root(root)] = tuple(entries)

    def clear(self, *, root: str | Path | None = None) -> int:
        """Drop cached results. If *root* is given, only drop that root."""
        if root is not None:
            return 1 if self._entries.pop(normalize_root(root), None) is not None else 0
        count = len(self._entries)
        self._entries.clear()
        return count

    def roots(self) -> list[str]:
        return sorted(self._entries)

    def __contains__(self, root: object) -> bool:
        if not isinstance(root, (str, Path)):
            return False
        return normalize_root(root) in self._entries

    def __len__(self) -> int:
        return len(self._entries)
