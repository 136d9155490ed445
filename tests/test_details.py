"""Tests for repo detail helpers and status badges."""

import os
import subprocess
import tempfile

from repodeck.details import (
    find_markdown_files,
    find_readme,
    readme_content,
    readme_snippet,
    recent_commits,
)
from repodeck.git import RepoRecord
from repodeck.theme import age_color, render_badges, GREEN, MUTED


def _create_repo_with_commits(path: str, n: int) -> str:
    subprocess.run(["git", "init", path], capture_output=True)
    subprocess.run(["git", "-C", path, "config", "user.email", "test@test.com"], capture_output=True)
    subprocess.run(["git", "-C", path, "config", "user.name", "Test User"], capture_output=True)
    subprocess.run(["git", "-C", path, "config", "commit.gpgsign", "false"], capture_output=True)
    for i in range(n):
        with open(os.path.join(path, f"f{i}.txt"), "w") as f:
            f.write(f"{i}\n")
        subprocess.run(["git", "-C", path, "add", "."], capture_output=True)
        subprocess.run(["git", "-C", path, "commit", "-m", f"commit {i}"], capture_output=True)
    return path


def test_recent_commits():
    with tempfile.TemporaryDirectory() as tmp:
        repo = _create_repo_with_commits(os.path.join(tmp, "r"), 3)
        lines = recent_commits(repo, 2)
        assert len(lines) == 2
        assert "commit 2" in lines[0]
        assert "•" in lines[0]


def test_recent_commits_failure():
    assert recent_commits("/nonexistent/path", 5) == []
    assert recent_commits("/nonexistent/path", 0) == []


def test_readme_helpers():
    with tempfile.TemporaryDirectory() as tmp:
        assert find_readme(tmp) == ""
        assert readme_snippet(tmp) == []
        assert readme_content(tmp) == ""

        with open(os.path.join(tmp, "README.md"), "w") as f:
            f.write("# Title\n\nline two\nline three\n")
        with open(os.path.join(tmp, "CHANGELOG.md"), "w") as f:
            f.write("changes\n")
        os.makedirs(os.path.join(tmp, "readme-dir"))

        assert find_readme(tmp) == "README.md"
        assert readme_snippet(tmp, 2) == ["# Title", ""]
        assert readme_content(tmp, 7) == "# Title"
        assert readme_content(tmp).endswith("line three\n")
        assert find_markdown_files(tmp) == ["CHANGELOG.md", "README.md"]


def test_render_badges():
    record = RepoRecord(name="x", path="/x", dirty=True, ahead=3, behind=1, conflicts=2, monorepo=True)
    assert render_badges(record).plain == "✖2 ● ↑3 ↓1 mono"
    assert render_badges(RepoRecord(name="y", path="/y")).plain == ""
    assert render_badges(RepoRecord(name="z", path="/z", workspace_pkg=True, detached=True)).plain == "detached pkg"


def test_age_color():
    assert age_color("now") == GREEN
    assert age_color("5h") == GREEN
    assert age_color("3mo") == MUTED
