"""Result records produced by a discovery scan."""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any

#: Stand-in for an unreadable modification time.
EPOCH_FLOOR = datetime.min.replace(tzinfo=timezone.utc)


@dataclass(frozen=True)
class DiscoveredEntry:
    """A version-controlled directory found during a scan."""

    path: str
    folder_name: str
    last_modified: datetime = EPOCH_FLOOR
    remote_url: str | None = None

    @property
    def display_name(self) -> str:
        return self.folder_name

    @property
    def relative_path(self) -> str:
        """Path with the home directory collapsed to ``~``."""
        home = os.path.expanduser("~")
        if self.path == home:
            return "~"
        if self.path.startswith(home.rstrip(os.sep) + os.sep):
            return "~" + self.path[len(home.rstrip(os.sep)):]
        return self.path

    @property
    def formatted_last_modified(self) -> str:
        if self.last_modified == EPOCH_FLOOR:
            return ""
        return self.last_modified.strftime("%Y-%m-%d")

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["last_modified"] = (
            None if self.last_modified == EPOCH_FLOOR else self.last_modified.isoformat()
        )
        return data


@dataclass
class ScanState:
    """Observable state of a discovery service."""

    in_progress: bool = False
    results: tuple[DiscoveredEntry, ...] = field(default_factory=tuple)
    last_error: str | None = None
