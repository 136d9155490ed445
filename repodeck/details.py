"""Per-repo details — recent commits and README text for the details view."""

from __future__ import annotations

import os

from repodeck.git import run_git


def recent_commits(repo_path: str, n: int = 10) -> list[str]:
    """Last n commits as "<short hash> <subject> • <relative date>"."""
    if n <= 0:
        return []
    output = run_git(repo_path, [
        "--no-pager", "log", "--pretty=format:%h %s • %cr", "-n", str(n),
    ])
    return [ln.rstrip("\r") for ln in output.split("\n") if ln.rstrip("\r")]


def _list_files(path: str) -> list[str]:
    try:
        return [e.name for e in os.scandir(path) if e.is_file()]
    except OSError:
        return []


def find_readme(repo_path: str) -> str:
    """Filename of the first README in the directory (sorted), or ""."""
    candidates = sorted(n for n in _list_files(repo_path) if n.lower().startswith("readme"))
    return candidates[0] if candidates else ""


def find_markdown_files(repo_path: str) -> list[str]:
    return sorted(n for n in _list_files(repo_path) if n.lower().endswith(".md"))


def readme_snippet(repo_path: str, max_lines: int = 20) -> list[str]:
    if max_lines <= 0:
        return []
    name = find_readme(repo_path)
    if not name:
        return []
    lines: list[str] = []
    try:
        with open(os.path.join(repo_path, name), encoding="utf-8", errors="replace") as f:
            for line in f:
                lines.append(line.rstrip("\n"))
                if len(lines) >= max_lines:
                    break
    except OSError:
        return []
    return lines


def readme_content(repo_path: str, max_bytes: int = 0) -> str:
    """Full README text, truncated to max_bytes when positive."""
    name = find_readme(repo_path)
    if not name:
        return ""
    try:
        with open(os.path.join(repo_path, name), "rb") as f:
            data = f.read(max_bytes) if max_bytes > 0 else f.read()
    except OSError:
        return ""
    return data.decode("utf-8", errors="replace")
