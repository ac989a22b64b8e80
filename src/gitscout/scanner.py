"""Depth-bounded traversal that finds version-controlled directories."""

from __future__ import annotations

import asyncio
import logging
import threading
from concurrent.futures import Executor
from dataclasses import dataclass, field
from functools import partial
from typing import Any, Callable, Iterable

from .cache import normalize_root
from .enricher import MetadataEnricher
from .models import DiscoveredEntry
from .probe import DEFAULT_MARKER, FilesystemProbe
from .remote import RemoteResolver

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 3


@dataclass
class _ScanContext:
    max_depth: int
    cancel: threading.Event | None
    # real path -> shallowest depth it was walked at
    visited: dict[str, int] = field(default_factory=dict)
    # real path (or path) -> (depth, enrichment)
    matches: dict[str, tuple[int, asyncio.Future]] = field(default_factory=dict)
    directories: int = 0

    @property
    def cancelled(self) -> bool:
        return self.cancel is not None and self.cancel.is_set()


class TreeScanner:
    """Walk a directory tree and enrich every repository it finds.

    Directory listing is sequential within a scan and children are
    visited in name order; enrichment of the matches fans out
    concurrently and is joined before :meth:`scan` returns.  Blocking
    probe calls run on *executor*.

    When symlinks are followed, a directory reachable by several routes
    is walked at the shallowest depth it is reached at, and a repository
    reached twice is reported once, under its shallowest route.
    """

    def __init__(
        self,
        probe: FilesystemProbe,
        enricher: MetadataEnricher,
        *,
        executor: Executor | None = None,
    ) -> None:
        self._probe = probe
        self._enricher = enricher
        self._executor = executor

    async def _run(self, fn: Callable[..., Any], *args: Any) -> Any:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, partial(fn, *args))

    async def scan(
        self,
        root: str,
        max_depth: int = DEFAULT_MAX_DEPTH,
        cancel: threading.Event | None = None,
    ) -> list[DiscoveredEntry]:
        """Return every repository under *root*, in no particular order.

        Raises ``FileNotFoundError`` or ``NotADirectoryError`` when *root*
        itself is unusable.  If *cancel* is set mid-scan, the entries
        found so far are returned.
        """
        if not await self._run(self._probe.exists, root):
            raise FileNotFoundError(f"No such directory: {root}")
        if not await self._run(self._probe.is_directory, root):
            raise NotADirectoryError(f"Not a directory: {root}")

        ctx = _ScanContext(max_depth=max_depth, cancel=cancel)
        if self._probe.follow_symlinks:
            ctx.visited[await self._run(self._probe.real_path, root)] = -1

        try:
            await self._walk(root, 0, ctx)
            entries = await asyncio.gather(*(fut for _, fut in ctx.matches.values()))
        except BaseException:
            for _, fut in ctx.matches.values():
                fut.cancel()
            raise

        logger.debug(
            "Visited %d directories under %s%s",
            ctx.directories,
            root,
            " (cancelled)" if ctx.cancelled else "",
        )
        return list(entries)

    async def _walk(self, path: str, depth: int, ctx: _ScanContext) -> None:
        if depth >= ctx.max_depth:
            logger.debug("Max depth reached at %s", path)
            return
        if ctx.cancelled:
            return
        if not await self._run(self._probe.is_readable, path):
            logger.debug("Directory not readable: %s", path)
            return

        try:
            children = await self._run(self._probe.list_children, path)
        except OSError as exc:
            logger.debug("Cannot list %s: %s", path, exc)
            return
        ctx.directories += 1

        for child in sorted(children, key=lambda c: c.name):
            if not child.is_directory:
                continue
            # the marker belongs to its parent and is never a candidate
            if child.name == self._probe.marker or child.is_hidden:
                continue
            key = child.path
            if self._probe.follow_symlinks:
                key = await self._run(self._probe.real_path, child.path)
                if ctx.visited.get(key, depth + 1) <= depth:
                    logger.debug("Already visited %s via %s", key, child.path)
                    continue
                ctx.visited[key] = depth

            if await self._run(self._probe.is_version_controlled, child.path):
                self._add_match(key, child.path, depth, ctx)
            else:
                await self._walk(child.path, depth + 1, ctx)

    def _add_match(self, key: str, path: str, depth: int, ctx: _ScanContext) -> None:
        previous = ctx.matches.get(key)
        if previous is not None:
            if previous[0] <= depth:
                return
            previous[1].cancel()
        logger.debug("Found repository %s", path)
        ctx.matches[key] = (depth, asyncio.ensure_future(self._enricher.enrich(path)))


def sort_entries(entries: Iterable[DiscoveredEntry]) -> list[DiscoveredEntry]:
    """Stable, case-sensitive ascending sort by folder name."""
    return sorted(entries, key=lambda e: e.folder_name)


async def scan_tree(
    root: str,
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
    marker: str = DEFAULT_MARKER,
    resolver: RemoteResolver | None = None,
    follow_symlinks: bool = False,
    cancel: threading.Event | None = None,
) -> list[DiscoveredEntry]:
    """Scan *root* with a throwaway scanner and return sorted entries."""
    probe = FilesystemProbe(marker, follow_symlinks=follow_symlinks)
    scanner = TreeScanner(probe, MetadataEnricher(probe, resolver))
    entries = await scanner.scan(normalize_root(root), max_depth, cancel)
    return sort_entries(entries)
