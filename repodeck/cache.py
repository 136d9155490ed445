"""Discovery cache — remember which repos each root held, for a short while.

Walking a large tree is the slow part of a scan, so the list of repo paths
found under each root is kept on disk and reused while it is fresh. Git
status is never cached.
"""

from __future__ import annotations

import json
import logging
import os
import time
from pathlib import Path
from typing import Callable, Optional

from repodeck.config import DEFAULT_CACHE_TTL

logger = logging.getLogger(__name__)

CacheData = dict[str, dict]


def resolve_ttl(seconds: Optional[int]) -> int:
    """Non-positive or missing TTLs fall back to the default."""
    if not seconds or seconds <= 0:
        return DEFAULT_CACHE_TTL
    return seconds


def cache_path() -> Path:
    base = os.environ.get("XDG_STATE_HOME") or os.path.join(Path.home(), ".local", "state")
    return Path(base) / "repodeck" / "cache.json"


def _valid_entry(entry: object) -> bool:
    if not isinstance(entry, dict):
        return False
    scanned_at = entry.get("scanned_at")
    repos = entry.get("repos")
    return (
        isinstance(scanned_at, int)
        and not isinstance(scanned_at, bool)
        and isinstance(repos, list)
        and all(isinstance(p, str) for p in repos)
    )


class DiscoveryCache:
    """Per-root list of discovered repo paths with a scan timestamp.

    The on-disk document maps an absolute root path to
    ``{"scanned_at": <unix seconds>, "repos": [<path>, ...]}``.
    """

    def __init__(
        self,
        path: Optional[Path] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.path = path or cache_path()
        self.clock = clock
        self.data: CacheData = {}

    def load(self) -> CacheData:
        """Read the cache file. Missing or malformed files give an empty cache."""
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            raw = {}
        except (OSError, ValueError) as exc:
            logger.debug("ignoring unreadable cache %s: %s", self.path, exc)
            raw = {}
        if not isinstance(raw, dict):
            raw = {}
        self.data = {root: entry for root, entry in raw.items() if _valid_entry(entry)}
        return self.data

    def get(self, root: str, ttl: int) -> Optional[list[str]]:
        """Return the cached paths for root if still fresh, else None."""
        entry = self.data.get(root)
        if entry is None or not entry["repos"]:
            return None
        if self.clock() - entry["scanned_at"] > ttl:
            return None
        return list(entry["repos"])

    def put(self, root: str, paths: list[str]) -> None:
        self.data[root] = {"scanned_at": int(self.clock()), "repos": list(paths)}

    def save(self) -> None:
        """Write the cache to disk. Failures are logged and ignored."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(json.dumps(self.data, indent=2) + "\n")
        except (OSError, TypeError, ValueError) as exc:
            logger.debug("could not save cache %s: %s", self.path, exc)
