"""Shared visual constants and helpers for repodeck."""

from __future__ import annotations

from rich.style import Style
from rich.text import Text

from repodeck.git import UNKNOWN_AGE, RepoRecord

# ── Color Palette (GitHub Dark + Neon Accents) ──────────────────────────

SURFACE = "#161b22"
BORDER = "#30363d"
MUTED = "#8b949e"
FG = "#e6edf3"

CYAN = "#58a6ff"
GREEN = "#39d353"
PURPLE = "#bc8cff"
YELLOW = "#e3b341"
RED = "#f85149"
ORANGE = "#f0883e"

# Badge name -> color
BADGE_COLORS: dict[str, str] = {
    "dirty": YELLOW,
    "conflicts": RED,
    "ahead": GREEN,
    "behind": ORANGE,
    "detached": PURPLE,
    "mono": CYAN,
    "pkg": MUTED,
}


def render_badges(record: RepoRecord) -> Text:
    """Compact status badges for one repo, e.g. `● ✖2 ↑3 ↓1 mono`."""
    badges: list[tuple[str, str]] = []
    if record.conflicts:
        badges.append((f"✖{record.conflicts}", "conflicts"))
    if record.dirty:
        badges.append(("●", "dirty"))
    if record.ahead:
        badges.append((f"↑{record.ahead}", "ahead"))
    if record.behind:
        badges.append((f"↓{record.behind}", "behind"))
    if record.detached:
        badges.append(("detached", "detached"))
    if record.monorepo:
        badges.append(("mono", "mono"))
    if record.workspace_pkg:
        badges.append(("pkg", "pkg"))

    text = Text()
    for i, (label, kind) in enumerate(badges):
        if i:
            text.append(" ")
        text.append(label, style=Style(color=BADGE_COLORS[kind], bold=kind != "pkg"))
    return text


def age_color(age: str) -> str:
    """Fresh repos glow green, stale ones fade out."""
    if age == UNKNOWN_AGE:
        return BORDER
    if age == "now" or age.endswith("h"):
        return GREEN
    if age.endswith("mo"):
        return MUTED
    return FG
