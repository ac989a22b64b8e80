"""DiscoveryService — the stateful front of the scanner."""

from __future__ import annotations

import asyncio
import dataclasses
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from .cache import DiscoveryCache, normalize_root
from .enricher import MetadataEnricher
from .models import DiscoveredEntry, ScanState
from .probe import DEFAULT_MARKER, FilesystemProbe
from .remote import GitRemoteResolver, RemoteResolver
from .scanner import DEFAULT_MAX_DEPTH, TreeScanner, sort_entries

logger = logging.getLogger(__name__)


class DiscoveryService:
    """Find repositories under a root path and keep the latest results.

    One scan runs at a time per instance.  Results are cached per
    normalized root until :meth:`clear_cache` is called.

    Parameters
    ----------
    probe:
        Filesystem probe to use.  Built from *marker* and
        *follow_symlinks* when omitted.
    resolver:
        Remote-URL resolver.  Defaults to :class:`GitRemoteResolver`.
    resolve_remotes:
        Set to ``False`` to skip remote-URL lookups entirely.
    max_depth:
        Directory levels below the root to descend into.
    marker:
        Subdirectory name that marks a repository.
    follow_symlinks:
        Descend into symlinked directories (each real path once).
    max_workers:
        Size of the thread pool that runs blocking filesystem calls.
    remote_workers:
        Size of the separate pool for remote-URL lookups, so slow
        lookups never hold up filesystem calls.
    remote_timeout:
        Seconds to wait for a single remote-URL lookup.
    remote_name:
        Remote looked up by the default resolver.
    """

    def __init__(
        self,
        *,
        probe: FilesystemProbe | None = None,
        resolver: RemoteResolver | None = None,
        resolve_remotes: bool = True,
        max_depth: int = DEFAULT_MAX_DEPTH,
        marker: str = DEFAULT_MARKER,
        follow_symlinks: bool = False,
        max_workers: int = 4,
        remote_workers: int = 32,
        remote_timeout: float | None = 5.0,
        remote_name: str = "origin",
    ) -> None:
        self._probe = probe or FilesystemProbe(marker, follow_symlinks=follow_symlinks)
        if resolve_remotes and resolver is None:
            resolver = GitRemoteResolver(remote_name)
        elif not resolve_remotes:
            resolver = None
        self._max_depth = max_depth
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="gitscout"
        )
        self._remote_executor = ThreadPoolExecutor(
            max_workers=remote_workers, thread_name_prefix="gitscout-remote"
        )
        enricher = MetadataEnricher(
            self._probe,
            resolver,
            executor=self._executor,
            remote_executor=self._remote_executor,
            remote_timeout=remote_timeout,
        )
        self._scanner = TreeScanner(self._probe, enricher, executor=self._executor)
        self._cache = DiscoveryCache()
        self._state = ScanState()
        self._cancel: threading.Event | None = None

    # ------------------------------------------------------------------
    # Discovery
    # ------------------------------------------------------------------

    async def discover(self, base_path: str | Path) -> tuple[DiscoveredEntry, ...]:
        """Scan *base_path* (``~`` allowed) and publish sorted results.

        Returns the published results.  A call made while another scan
        is running does nothing and returns the current results; the
        caller has to retry later.  Root-level failures never raise:
        they set :attr:`last_error` and publish an empty result set.
        """
        if self._state.in_progress:
            logger.debug("Discovery already in progress, skipping %s", base_path)
            return self._state.results

        root = normalize_root(base_path)
        self._state.last_error = None

        cached = self._cache.get(root)
        if cached is not None:
            logger.debug("Using cached repositories for %s", root)
            self._state.results = cached
            return cached

        self._state.in_progress = True
        cancel = self._cancel = threading.Event()
        logger.info("Starting repository discovery in %s", root)
        try:
            entries = await asyncio.ensure_future(
                self._scanner.scan(root, self._max_depth, cancel)
            )
        except OSError as exc:
            logger.warning("Discovery failed for %s: %s", root, exc)
            self._state.last_error = str(exc)
            self._state.results = ()
        except Exception as exc:
            logger.exception("Unexpected error while scanning %s", root)
            self._state.last_error = str(exc) or type(exc).__name__
            self._state.results = ()
        else:
            results = tuple(sort_entries(entries))
            if cancel.is_set():
                logger.info("Discovery in %s cancelled after %d repositories", root, len(results))
            else:
                self._cache.put(root, results)
                logger.info("Discovered %d repositories in %s", len(results), root)
            self._state.results = results
        finally:
            self._state.in_progress = False
            self._cancel = None
        return self._state.results

    discover_repositories = discover

    def cancel(self) -> bool:
        """Ask the running scan to stop.  Returns ``False`` if none is running."""
        if self._cancel is None:
            return False
        self._cancel.set()
        return True

    def clear_cache(self) -> int:
        """Forget all cached results.  Returns the number of roots dropped."""
        count = self._cache.clear()
        logger.debug("Repository cache cleared (%d roots)", count)
        return count

    # ------------------------------------------------------------------
    # Observable state
    # ------------------------------------------------------------------

    @property
    def results(self) -> tuple[DiscoveredEntry, ...]:
        return self._state.results

    @property
    def in_progress(self) -> bool:
        return self._state.in_progress

    @property
    def last_error(self) -> str | None:
        return self._state.last_error

    @property
    def state(self) -> ScanState:
        """A snapshot of the current state."""
        return dataclasses.replace(self._state)

    @property
    def cache(self) -> DiscoveryCache:
        return self._cache

    @property
    def probe(self) -> FilesystemProbe:
        return self._probe

    # ------------------------------------------------------------------
    # Utilities
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Release the worker pools.

        Remote lookups still running are abandoned rather than awaited.
        """
        if self._cancel is not None:
            self._cancel.set()
        self._executor.shutdown(wait=True)
        self._remote_executor.shutdown(wait=False, cancel_futures=True)

    def __enter__(self) -> DiscoveryService:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()
