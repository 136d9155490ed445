"""Repo discovery — find git repositories under a root, depth-limited."""

from __future__ import annotations

import logging
import os

from repodeck.config import expand_user

logger = logging.getLogger(__name__)

SKIP_DIRS = frozenset({
    ".git", "node_modules", ".turbo", ".next", ".nuxt", "dist", "build",
    "coverage", ".pnpm-store", "pnpm-store", "bin", "obj", "target",
    ".venv", "venv", "__pycache__", ".mypy_cache", ".pytest_cache",
    ".ruff_cache", ".tox", ".gradle", ".dart_tool", "site-packages",
})


def is_git_repo(path: str) -> bool:
    """True if path holds a .git directory, or a .git file (worktrees, submodules)."""
    marker = os.path.join(path, ".git")
    try:
        return os.path.isdir(marker) or os.path.isfile(marker)
    except OSError:
        return False


def find_repos(root: str, max_depth: int = 2) -> list[str]:
    """Find all git repository paths under root.

    Depth counts directory levels below root: a direct child is at depth 1.
    The root itself is listed when it is a repo, and its children are still
    walked. Any other repo is listed without descending into it. Returns a
    sorted list of absolute paths.
    """
    root = expand_user(root)
    if not os.path.isdir(root):
        return []

    repos: list[str] = []
    if is_git_repo(root):
        repos.append(root)

    def _walk(path: str, depth: int) -> None:
        try:
            entries = sorted(os.scandir(path), key=lambda e: e.name)
        except OSError as exc:
            logger.debug("skipping %s: %s", path, exc)
            return

        for entry in entries:
            try:
                if not entry.is_dir(follow_symlinks=False):
                    continue
            except OSError:
                continue
            if entry.name in SKIP_DIRS:
                continue
            if is_git_repo(entry.path):
                repos.append(entry.path)
                # Don't recurse into a found repo; workspaces are found separately
                continue
            if depth < max_depth:
                _walk(entry.path, depth + 1)

    if max_depth >= 1:
        _walk(root, 1)
    repos.sort()
    return repos
