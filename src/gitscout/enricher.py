"""Build a ``DiscoveredEntry`` for a matched directory."""

from __future__ import annotations

import asyncio
import logging
import os
from concurrent.futures import Executor
from datetime import datetime
from functools import partial

from .models import EPOCH_FLOOR, DiscoveredEntry
from .probe import FilesystemProbe
from .remote import RemoteResolver

logger = logging.getLogger(__name__)


class MetadataEnricher:
    """Join the local mtime lookup and the remote-URL lookup for a path.

    Both lookups run as independent tasks: the mtime on *executor*, the
    remote lookup on *remote_executor* (the loop's default executor when
    either is ``None``).  A failing or slow remote lookup leaves
    ``remote_url`` empty and never affects the mtime.
    """

    def __init__(
        self,
        probe: FilesystemProbe,
        resolver: RemoteResolver | None = None,
        *,
        executor: Executor | None = None,
        remote_executor: Executor | None = None,
        remote_timeout: float | None = 5.0,
    ) -> None:
        self._probe = probe
        self._resolver = resolver
        self._executor = executor
        self._remote_executor = remote_executor
        self._remote_timeout = remote_timeout

    async def enrich(self, path: str) -> DiscoveredEntry:
        loop = asyncio.get_running_loop()
        mtime_task = asyncio.ensure_future(
            loop.run_in_executor(
                self._executor, partial(self._probe.modification_time, path)
            )
        )
        remote_task = asyncio.ensure_future(self._resolve_remote(path))
        last_modified, remote_url = await asyncio.gather(
            self._guarded_mtime(mtime_task, path), remote_task
        )
        return DiscoveredEntry(
            path=path,
            folder_name=os.path.basename(os.path.normpath(path)),
            last_modified=last_modified,
            remote_url=remote_url,
        )

    async def _guarded_mtime(self, task: asyncio.Future, path: str) -> datetime:
        try:
            return await task
        except OSError as exc:
            logger.debug("mtime lookup failed for %s: %s", path, exc)
            return EPOCH_FLOOR

    async def _resolve_remote(self, path: str) -> str | None:
        if self._resolver is None:
            return None
        loop = asyncio.get_running_loop()
        lookup = loop.run_in_executor(
            self._remote_executor, partial(self._resolver.resolve, path)
        )
        try:
            return await asyncio.wait_for(lookup, timeout=self._remote_timeout)
        except asyncio.TimeoutError:
            logger.debug("Remote lookup timed out for %s", path)
        except Exception as exc:
            logger.debug("Remote lookup failed for %s: %s", path, exc)
        return None
