"""Remote-URL resolution for discovered repositories.

The default resolver shells out to ``git`` and may be slow, so callers
run it on a worker thread.  Any object with a ``resolve(path)`` method
can be passed in its place.
"""

from __future__ import annotations

import logging
import re
import subprocess
from typing import Protocol
from urllib.parse import urlsplit

logger = logging.getLogger(__name__)

# user@host:owner/repo(.git)
_SCP_LIKE = re.compile(r"^(?:[\w.\-]+@)?(?P<host>[\w.\-]+):(?P<path>(?!/).+)$")


class RemoteResolver(Protocol):
    """Anything that maps a repository path to an optional web URL."""

    def resolve(self, path: str) -> str | None: ...


class GitRemoteResolver:
    """Resolve the web URL of a repository's configured remote.

    Parameters
    ----------
    remote:
        Name of the remote to look up.
    timeout:
        Seconds to wait for ``git`` before giving up.
    git:
        Path or name of the ``git`` executable.
    """

    def __init__(
        self, remote: str = "origin", *, timeout: float = 5.0, git: str = "git"
    ) -> None:
        self._remote = remote
        self._timeout = timeout
        self._git = git

    def resolve(self, path: str) -> str | None:
        try:
            proc = subprocess.run(
                [self._git, "-C", path, "config", "--get", f"remote.{self._remote}.url"],
                capture_output=True,
                text=True,
                timeout=self._timeout,
                check=False,
            )
        except (OSError, subprocess.TimeoutExpired) as exc:
            logger.debug("git remote lookup failed for %s: %s", path, exc)
            return None
        # exit status 1 means the key is not set
        if proc.returncode != 0:
            return None
        return to_web_url(proc.stdout.strip())


def to_web_url(remote_url: str) -> str | None:
    """Turn a git remote URL into a browsable ``https://`` URL.

    Handles ``https://``, ``ssh://``, ``git://`` and scp-style
    (``git@host:owner/repo.git``) remotes.  Credentials, ports and a
    trailing ``.git`` are dropped.  Local paths and ``file://`` remotes
    return ``None``.
    """
    remote_url = remote_url.strip()
    if not remote_url:
        return None

    if "://" in remote_url:
        parts = urlsplit(remote_url)
        if parts.scheme not in ("http", "https", "ssh", "git", "git+ssh"):
            return None
        host = parts.hostname
        path = parts.path
    else:
        m = _SCP_LIKE.match(remote_url)
        if m is None:
            return None
        host = m.group("host")
        path = m.group("path")

    if not host:
        return None
    path = path.strip("/")
    if path.endswith(".git"):
        path = path[: -len(".git")]
    if not path:
        return None
    return f"https://{host}/{path}"
