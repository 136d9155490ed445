"""Scan pipeline — roots to a flat, deduplicated list of repo records."""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional

from repodeck.cache import DiscoveryCache, resolve_ttl
from repodeck.config import Config, expand_user
from repodeck.git import RepoRecord, collect_all, pool_size
from repodeck.scanner import find_repos
from repodeck.workspaces import WorkspaceMember, discover_workspaces

logger = logging.getLogger(__name__)


@dataclass
class ScanResult:
    records: list[RepoRecord] = field(default_factory=list)
    roots_scanned: int = 0
    repos_found: int = 0
    cache_hits: int = 0
    elapsed: float = 0.0


def combine(
    top_level: list[RepoRecord],
    workspaces: dict[str, list[WorkspaceMember]],
    collect: Callable[[list[str]], list[RepoRecord]] = collect_all,
) -> list[RepoRecord]:
    """Merge top-level repos with their workspace members.

    Parents with members are flagged monorepo. Each member gets its own
    status record pointing back at its parent. Members of unknown parents
    are dropped, and the output keeps the first record for each path.
    """
    parents = {r.path: r for r in top_level}
    children: list[RepoRecord] = []

    for parent_path, members in workspaces.items():
        parent = parents.get(parent_path)
        members = [m for m in members if m.path != parent_path]
        if parent is None or not members:
            continue
        parent.monorepo = True
        records = collect([m.path for m in members])
        for member, child in zip(members, records):
            child.name = member.package_name or Path(member.path).name
            child.package_name = member.package_name
            child.workspace_pkg = True
            child.parent_path = parent_path
            children.append(child)

    seen: set[str] = set()
    combined: list[RepoRecord] = []
    for record in top_level + children:
        if record.path in seen:
            continue
        seen.add(record.path)
        combined.append(record)
    return combined


def discover_paths(
    roots: list[str],
    depth: int,
    cache: Optional[DiscoveryCache] = None,
    ttl: int = 0,
    workers: Optional[int] = None,
) -> tuple[list[str], int]:
    """Repo paths under every root, deduplicated, plus the number of cache hits.

    Fresh roots come from the cache; the rest are walked in parallel and
    written back to it before it is saved.
    """
    ttl = resolve_ttl(ttl)
    if cache is not None:
        cache.load()

    per_root: dict[str, list[str]] = {}
    misses: list[str] = []
    for root in roots:
        cached = cache.get(root, ttl) if cache is not None else None
        if cached is not None:
            per_root[root] = cached
        else:
            misses.append(root)

    if misses:
        with ThreadPoolExecutor(max_workers=workers or pool_size()) as executor:
            walked = list(executor.map(lambda r: find_repos(r, depth), misses))
        for root, paths in zip(misses, walked):
            logger.debug("walked %s: %d repos", root, len(paths))
            per_root[root] = paths
            if cache is not None:
                cache.put(root, paths)

    if cache is not None:
        cache.save()

    seen: set[str] = set()
    repos: list[str] = []
    for root in roots:
        for path in per_root.get(root, []):
            path = expand_user(path)
            if path not in seen:
                seen.add(path)
                repos.append(path)
    return repos, len(roots) - len(misses)


def scan(
    config: Config,
    cache: Optional[DiscoveryCache] = None,
    workers: Optional[int] = None,
) -> ScanResult:
    """Discover, collect and merge every repo under the configured roots."""
    start = time.monotonic()
    roots: list[str] = []
    for root in config.roots:
        root = expand_user(root)
        if root and root not in roots:
            roots.append(root)

    paths, cache_hits = discover_paths(
        roots, config.depth, cache=cache, ttl=config.cache_ttl_seconds, workers=workers,
    )
    top_level = collect_all(paths, workers=workers)

    with ThreadPoolExecutor(max_workers=workers or pool_size()) as executor:
        found = list(executor.map(discover_workspaces, paths))
    workspaces = {path: members for path, members in zip(paths, found) if members}

    records = combine(top_level, workspaces, collect=lambda p: collect_all(p, workers=workers))
    return ScanResult(
        records=records,
        roots_scanned=len(roots),
        repos_found=len(records),
        cache_hits=cache_hits,
        elapsed=time.monotonic() - start,
    )
