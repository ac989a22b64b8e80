"""gitscout — find version-controlled project directories under a path."""

from .cache import DiscoveryCache, normalize_root
from .core import DiscoveryService
from .models import DiscoveredEntry, ScanState
from .probe import FilesystemProbe
from .remote import GitRemoteResolver, to_web_url
from .scanner import TreeScanner, scan_tree

__all__ = [
    "DiscoveredEntry",
    "DiscoveryCache",
    "DiscoveryService",
    "FilesystemProbe",
    "GitRemoteResolver",
    "ScanState",
    "TreeScanner",
    "normalize_root",
    "scan_tree",
    "to_web_url",
]
