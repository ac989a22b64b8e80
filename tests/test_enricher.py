"""Tests for the metadata enricher."""

import os
import threading
import time
from pathlib import Path

import pytest

from gitscout.enricher import MetadataEnricher
from gitscout.models import EPOCH_FLOOR
from gitscout.probe import FilesystemProbe


class StaticResolver:
    def __init__(self, url):
        self.url = url
        self.calls = []

    def resolve(self, path):
        self.calls.append(path)
        return self.url


class FailingResolver:
    def resolve(self, path):
        raise RuntimeError("boom")


class SlowResolver:
    def resolve(self, path):
        time.sleep(1.0)
        return "https://example.org/too/late"


@pytest.mark.asyncio
async def test_enrich_builds_entry(tmp_path: Path, make_repo):
    repo = make_repo(tmp_path / "project")
    os.utime(repo, (1_700_000_000, 1_700_000_000))
    resolver = StaticResolver("https://github.com/owner/project")

    entry = await MetadataEnricher(FilesystemProbe(), resolver).enrich(str(repo))
    assert entry.path == str(repo)
    assert entry.folder_name == "project"
    assert entry.last_modified.timestamp() == 1_700_000_000
    assert entry.remote_url == "https://github.com/owner/project"
    assert resolver.calls == [str(repo)]


@pytest.mark.asyncio
async def test_resolver_failure_keeps_entry(tmp_path: Path, make_repo):
    repo = make_repo(tmp_path / "project")
    entry = await MetadataEnricher(FilesystemProbe(), FailingResolver()).enrich(str(repo))
    assert entry.remote_url is None
    assert entry.last_modified != EPOCH_FLOOR


@pytest.mark.asyncio
async def test_resolver_timeout(tmp_path: Path, make_repo):
    repo = make_repo(tmp_path / "project")
    enricher = MetadataEnricher(FilesystemProbe(), SlowResolver(), remote_timeout=0.05)
    entry = await enricher.enrich(str(repo))
    assert entry.remote_url is None
    assert entry.last_modified != EPOCH_FLOOR


@pytest.mark.asyncio
async def test_no_resolver(tmp_path: Path, make_repo):
    repo = make_repo(tmp_path / "project")
    entry = await MetadataEnricher(FilesystemProbe(), None).enrich(str(repo))
    assert entry.remote_url is None


@pytest.mark.asyncio
async def test_lookups_run_concurrently(tmp_path: Path, make_repo):
    """Each lookup waits for the other; run sequentially both would fail."""
    repo = make_repo(tmp_path / "project")
    barrier = threading.Barrier(2, timeout=2)

    class BarrierProbe(FilesystemProbe):
        def modification_time(self, path):
            try:
                barrier.wait()
            except threading.BrokenBarrierError:
                return EPOCH_FLOOR
            return super().modification_time(path)

    class BarrierResolver:
        def resolve(self, path):
            barrier.wait()
            return "https://example.org/owner/project"

    entry = await MetadataEnricher(BarrierProbe(), BarrierResolver()).enrich(str(repo))
    assert entry.last_modified != EPOCH_FLOOR
    assert entry.remote_url == "https://example.org/owner/project"
