"""Workspace discovery — find the packages nested inside a monorepo.

Each ecosystem gets one discoverer returning the same WorkspaceMember shape:
pnpm and npm/yarn workspaces, Cargo workspaces, nested Go modules and git
submodules. A missing or broken manifest simply yields no members.
"""

from __future__ import annotations

import glob
import json
import logging
import os
import re
import sys
from dataclasses import dataclass
from typing import Callable, Optional

import yaml

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from repodeck.scanner import SKIP_DIRS, is_git_repo

logger = logging.getLogger(__name__)

GO_MODULE_DEPTH = 2
_SUBMODULE_PATH_RE = re.compile(r"^path\s*=\s*(.+)$")

# `*` matches dot-directories too, like the workspace tools themselves
_GLOB_OPTIONS = {"include_hidden": True} if sys.version_info >= (3, 11) else {}


@dataclass
class WorkspaceMember:
    path: str
    package_name: str = ""


# ── Manifest readers ────────────────────────────────────────────────────

def _read_text(path: str) -> Optional[str]:
    try:
        with open(path, encoding="utf-8") as f:
            return f.read()
    except (OSError, UnicodeDecodeError):
        return None


def _load_json(path: str) -> Optional[dict]:
    text = _read_text(path)
    if text is None:
        return None
    try:
        data = json.loads(text)
    except (ValueError, RecursionError):
        logger.debug("unparsable JSON manifest %s", path)
        return None
    return data if isinstance(data, dict) else None


def _load_toml(path: str) -> Optional[dict]:
    text = _read_text(path)
    if text is None:
        return None
    try:
        return tomllib.loads(text)
    except (tomllib.TOMLDecodeError, RecursionError):
        logger.debug("unparsable TOML manifest %s", path)
        return None


def _is_inside(root: str, path: str) -> bool:
    """True if path is root itself or lies beneath it."""
    root = os.path.normpath(os.path.abspath(root))
    path = os.path.normpath(os.path.abspath(path))
    return path == root or path.startswith(root.rstrip(os.sep) + os.sep)


def _string_list(value: object) -> list[str]:
    if not isinstance(value, list):
        return []
    return [v for v in value if isinstance(v, str)]


def node_package_name(directory: str) -> str:
    data = _load_json(os.path.join(directory, "package.json")) or {}
    name = data.get("name")
    return name if isinstance(name, str) else ""


def cargo_package_name(directory: str) -> str:
    data = _load_toml(os.path.join(directory, "Cargo.toml")) or {}
    package = data.get("package")
    if isinstance(package, dict) and isinstance(package.get("name"), str):
        return package["name"]
    return ""


def go_module_name(directory: str) -> str:
    """Last path segment of the `module` line in go.mod."""
    text = _read_text(os.path.join(directory, "go.mod"))
    if text is None:
        return ""
    for line in text.splitlines():
        line = line.strip()
        if line.startswith("module "):
            module = line[len("module "):].strip().strip('"')
            return module.rsplit("/", 1)[-1]
    return ""


def expand_member_globs(
    root: str,
    patterns: list[str],
    manifest: str,
    name_of: Callable[[str], str],
) -> list[WorkspaceMember]:
    """Expand workspace globs under root into members.

    Negated globs are skipped. Patterns are always relative to root, and
    matches that escape it are dropped. Only directories holding `manifest`
    count, so placeholder directories without one are filtered out.
    """
    members: list[WorkspaceMember] = []
    for pattern in patterns:
        if pattern.startswith("!"):
            continue
        pattern = pattern.lstrip("/" + os.sep)
        if not pattern:
            continue
        for match in sorted(glob.glob(os.path.join(root, pattern), **_GLOB_OPTIONS)):
            match = os.path.normpath(match)
            if not _is_inside(root, match):
                continue
            if not os.path.isdir(match):
                continue
            if not os.path.isfile(os.path.join(match, manifest)):
                continue
            members.append(WorkspaceMember(path=match, package_name=name_of(match)))
    return members


# ── Discoverers ─────────────────────────────────────────────────────────

def discover_pnpm(root: str) -> list[WorkspaceMember]:
    """pnpm-workspace.yaml `packages:` globs."""
    for filename in ("pnpm-workspace.yaml", "pnpm-workspace.yml"):
        text = _read_text(os.path.join(root, filename))
        if text is None:
            continue
        try:
            data = yaml.safe_load(text)
        except (yaml.YAMLError, RecursionError):
            logger.debug("unparsable %s in %s", filename, root)
            continue
        if not isinstance(data, dict):
            continue
        globs = _string_list(data.get("packages"))
        return expand_member_globs(root, globs, "package.json", node_package_name)
    return []


def discover_node_workspaces(root: str) -> list[WorkspaceMember]:
    """npm/yarn `workspaces` in package.json, as a list or {packages: [...]}."""
    data = _load_json(os.path.join(root, "package.json"))
    if data is None:
        return []
    workspaces = data.get("workspaces")
    if isinstance(workspaces, dict):
        workspaces = workspaces.get("packages")
    return expand_member_globs(root, _string_list(workspaces), "package.json", node_package_name)


def discover_cargo(root: str) -> list[WorkspaceMember]:
    """Cargo.toml `[workspace] members`."""
    data = _load_toml(os.path.join(root, "Cargo.toml"))
    if data is None:
        return []
    workspace = data.get("workspace")
    if not isinstance(workspace, dict):
        return []
    members = _string_list(workspace.get("members"))
    return expand_member_globs(root, members, "Cargo.toml", cargo_package_name)


def discover_go_modules(root: str) -> list[WorkspaceMember]:
    """Nested go.mod files up to two levels below root.

    The first go.mod on a branch wins; its subdirectories are not searched.
    """
    members: list[WorkspaceMember] = []

    def _walk(path: str, depth: int) -> None:
        try:
            entries = sorted(os.scandir(path), key=lambda e: e.name)
        except OSError:
            return
        for entry in entries:
            try:
                if not entry.is_dir(follow_symlinks=False):
                    continue
            except OSError:
                continue
            if entry.name in SKIP_DIRS:
                continue
            if os.path.isfile(os.path.join(entry.path, "go.mod")):
                members.append(WorkspaceMember(path=entry.path, package_name=go_module_name(entry.path)))
                continue
            if depth < GO_MODULE_DEPTH:
                _walk(entry.path, depth + 1)

    _walk(root, 1)
    return members


def discover_git_submodules(root: str) -> list[WorkspaceMember]:
    """`path = ...` entries in .gitmodules that are checked out."""
    text = _read_text(os.path.join(root, ".gitmodules"))
    if text is None:
        return []
    members: list[WorkspaceMember] = []
    for line in text.splitlines():
        m = _SUBMODULE_PATH_RE.match(line.strip())
        if not m:
            continue
        full = os.path.normpath(os.path.join(root, m.group(1).strip().lstrip("/" + os.sep)))
        if _is_inside(root, full) and os.path.isdir(full) and is_git_repo(full):
            members.append(WorkspaceMember(path=full))
    return members


DISCOVERERS: tuple[Callable[[str], list[WorkspaceMember]], ...] = (
    discover_pnpm,
    discover_node_workspaces,
    discover_cargo,
    discover_go_modules,
    discover_git_submodules,
)


def discover_workspaces(root: str) -> list[WorkspaceMember]:
    """Union of every discoverer, deduplicated by absolute path.

    The first discoverer to report a path decides its package name. The
    root itself is never its own member.
    """
    root_abs = os.path.abspath(root)
    seen: set[str] = {root_abs}
    members: list[WorkspaceMember] = []
    for discover in DISCOVERERS:
        try:
            found = discover(root)
        except (OSError, ValueError, RecursionError) as exc:
            logger.debug("%s failed for %s: %s", discover.__name__, root, exc)
            continue
        for member in found:
            path = os.path.abspath(member.path)
            if path in seen:
                continue
            seen.add(path)
            members.append(WorkspaceMember(path=path, package_name=member.package_name))
    return members
