from pathlib import Path

import pytest


@pytest.fixture
def make_repo():
    """Create ``<path>/.git`` (and parents) and return *path*."""

    def _make(path: Path) -> Path:
        (path / ".git").mkdir(parents=True)
        return path

    return _make
