"""Git status collection — subprocess-based, one record per repository."""

from __future__ import annotations

import logging
import os
import subprocess
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

DETACHED = "(detached)"
UNKNOWN_AGE = "—"

HOUR = 3600
DAY = 24 * HOUR
MONTH = 30 * DAY


@dataclass
class RepoRecord:
    name: str
    path: str
    branch: str = ""
    ahead: int = 0
    behind: int = 0
    dirty: bool = False
    conflicts: int = 0
    last_age: str = UNKNOWN_AGE     # e.g. "now", "5h", "3d", "2mo"
    detached: bool = False
    monorepo: bool = False          # has discovered workspace members
    workspace_pkg: bool = False     # is itself a workspace member
    package_name: str = ""
    parent_path: str = ""           # owning repo, set iff workspace_pkg

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class StatusSummary:
    branch: str = ""
    ahead: int = 0
    behind: int = 0
    dirty: bool = False
    conflicts: int = 0

    @property
    def detached(self) -> bool:
        return self.branch == DETACHED


def run_git(repo_path: str, args: list[str], timeout: Optional[int] = None) -> str:
    """Run a git command and return stdout, or "" on any failure."""
    try:
        result = subprocess.run(
            ["git", "-C", repo_path] + args,
            capture_output=True,
            text=True,
            timeout=timeout,
            errors="replace",
        )
    except (subprocess.TimeoutExpired, FileNotFoundError, OSError) as exc:
        logger.debug("git %s failed in %s: %s", " ".join(args), repo_path, exc)
        return ""
    if result.returncode != 0:
        logger.debug("git %s exited %d in %s", " ".join(args), result.returncode, repo_path)
        return ""
    return result.stdout


def _count(token: str, sign: str) -> int:
    if not token.startswith(sign):
        return 0
    try:
        return max(0, int(token[1:]))
    except ValueError:
        return 0


def parse_status(output: str) -> StatusSummary:
    """Parse `git status --porcelain=v2 --branch` output."""
    st = StatusSummary()
    for line in output.splitlines():
        if line.startswith("# branch.head "):
            st.branch = line[len("# branch.head "):].strip()
        elif line.startswith("# branch.ab "):
            # format: # branch.ab +A -B
            parts = line.split()
            if len(parts) >= 4:
                st.ahead = _count(parts[2], "+")
                st.behind = _count(parts[3], "-")
        elif line:
            code = line[0]
            if code in ("1", "2", "?"):
                st.dirty = True
            elif code == "u":
                st.conflicts += 1
                st.dirty = True
    return st


def age_bucket(timestamp: float, now: Optional[float] = None) -> str:
    """Coarse age of a unix timestamp: now, <N>h, <N>d or <N>mo (30-day months)."""
    if now is None:
        now = time.time()
    elapsed = int(now - timestamp)
    if elapsed < HOUR:
        return "now"
    if elapsed < DAY:
        return f"{elapsed // HOUR}h"
    if elapsed < MONTH:
        return f"{elapsed // DAY}d"
    return f"{elapsed // MONTH}mo"


def last_commit_age(repo_path: str) -> str:
    out = run_git(repo_path, ["log", "-1", "--format=%ct"]).strip()
    try:
        return age_bucket(int(out))
    except ValueError:
        return UNKNOWN_AGE


def collect_repo(repo_path: str) -> RepoRecord:
    """Read branch, sync and dirty state for one repo. Never raises."""
    record = RepoRecord(name=Path(repo_path).name, path=repo_path)

    st = parse_status(run_git(repo_path, ["status", "--porcelain=v2", "--branch"]))
    record.branch = st.branch
    record.ahead = st.ahead
    record.behind = st.behind
    record.dirty = st.dirty
    record.conflicts = st.conflicts
    record.detached = st.detached

    record.last_age = last_commit_age(repo_path)
    return record


def pool_size() -> int:
    return max(8, 2 * (os.cpu_count() or 1))


def collect_all(paths: list[str], workers: Optional[int] = None) -> list[RepoRecord]:
    """Collect status for every path with a bounded worker pool.

    Results come back in input order: each worker fills its own slot.
    """
    out: list[Optional[RepoRecord]] = [None] * len(paths)
    if not paths:
        return []

    def _fill(index: int) -> None:
        out[index] = collect_repo(paths[index])

    with ThreadPoolExecutor(max_workers=workers or pool_size()) as executor:
        # list() joins on every unit and re-raises worker errors
        list(executor.map(_fill, range(len(paths))))

    return [r for r in out if r is not None]


def normalize_remote_url(url: str) -> str:
    """Turn a git remote into a browsable https URL."""
    url = url.strip()
    if url.startswith("git@"):
        # git@github.com:user/repo.git -> https://github.com/user/repo
        host, sep, path = url[len("git@"):].partition(":")
        if sep:
            return f"https://{host}/{path.removesuffix('.git')}"
    if url.startswith("ssh://"):
        # ssh://git@host/user/repo.git -> https://host/user/repo
        rest = url[len("ssh://"):]
        rest = rest.split("@", 1)[-1]
        return f"https://{rest.removesuffix('.git')}"
    return url.removesuffix(".git")


def remote_url(repo_path: str) -> str:
    out = run_git(repo_path, ["remote", "get-url", "origin"]).strip()
    return normalize_remote_url(out) if out else ""
