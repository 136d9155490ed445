"""CLI entry point for repodeck."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from repodeck import __version__
from repodeck.cache import DiscoveryCache
from repodeck.config import Config, ConfigError, expand_user, load_config
from repodeck.details import readme_snippet, recent_commits
from repodeck.git import DETACHED, RepoRecord, collect_repo, remote_url
from repodeck.scan import ScanResult, scan


def _setup_logging(verbose: bool) -> None:
    from rich.console import Console
    from rich.logging import RichHandler

    handler = RichHandler(console=Console(stderr=True), show_path=False)
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[handler],
    )


def _order_for_display(records: list[RepoRecord]) -> list[RepoRecord]:
    """Top-level repos by name, each followed by its workspace packages."""
    children: dict[str, list[RepoRecord]] = {}
    for r in records:
        if r.workspace_pkg:
            children.setdefault(r.parent_path, []).append(r)
    ordered: list[RepoRecord] = []
    for r in sorted((r for r in records if not r.workspace_pkg), key=lambda r: r.name.lower()):
        ordered.append(r)
        ordered.extend(sorted(children.get(r.path, []), key=lambda c: c.name.lower()))
    return ordered


def print_summary(result: ScanResult) -> None:
    """Print the repo table with Rich."""
    from rich.console import Console
    from rich.table import Table
    from rich.text import Text

    from repodeck.theme import CYAN, GREEN, MUTED, PURPLE, RED, SURFACE, age_color, render_badges

    console = Console()
    if not result.records:
        console.print(f"[{RED}]No git repos found.[/{RED}] Try: repodeck ~/code")
        return

    table = Table(border_style=SURFACE, show_edge=True, pad_edge=True)
    table.add_column("Repo", style=f"bold {CYAN}", no_wrap=True)
    table.add_column("Branch", style=PURPLE)
    table.add_column("Status", no_wrap=True)
    table.add_column("Age", justify="right")

    for r in _order_for_display(result.records):
        name = f"  └ {r.name}" if r.workspace_pkg else r.name
        branch = "HEAD" if r.branch == DETACHED else r.branch
        table.add_row(name, branch, render_badges(r), Text(r.last_age, style=age_color(r.last_age)))

    console.print(table)
    footer = Text()
    footer.append(f"  {result.roots_scanned}", style=f"bold {GREEN}")
    footer.append(" roots", style=MUTED)
    footer.append(f"    {result.repos_found}", style=f"bold {GREEN}")
    footer.append(" repos", style=MUTED)
    footer.append(f"    {result.elapsed:.2f}s", style=f"bold {GREEN}")
    if result.cache_hits:
        footer.append(f"    ({result.cache_hits} cached)", style=MUTED)
    console.print(footer)


def print_json(result: ScanResult) -> None:
    data = {
        "roots_scanned": result.roots_scanned,
        "repos_found": result.repos_found,
        "elapsed": round(result.elapsed, 3),
        "repos": [r.to_dict() for r in result.records],
    }
    print(json.dumps(data, indent=2))


def print_details(path: str) -> None:
    """Show remote, recent commits and README head for one repo."""
    from rich.console import Console
    from rich.panel import Panel
    from rich.text import Text

    from repodeck.theme import CYAN, GREEN, MUTED, render_badges

    console = Console()
    path = expand_user(path)
    record = collect_repo(path)

    text = Text()
    text.append(f"  {record.branch or '—'}", style=f"bold {CYAN}")
    text.append("  ")
    text.append_text(render_badges(record))
    url = remote_url(path)
    if url:
        text.append(f"\n  {url}", style=MUTED)
    commits = recent_commits(path, 10)
    if commits:
        text.append("\n\n")
        for line in commits:
            text.append(f"  {line}\n", style=GREEN)
    snippet = readme_snippet(path, 15)
    if snippet:
        text.append("\n")
        for line in snippet:
            text.append(f"  {line}\n", style=MUTED)

    console.print(Panel(text, title=f"[bold {CYAN}]{record.name}[/bold {CYAN}]", border_style=CYAN))


def main() -> None:
    """Entry point for the repodeck CLI."""
    parser = argparse.ArgumentParser(
        prog="repodeck",
        description="Every git repo on your machine, at a glance.",
    )
    parser.add_argument(
        "roots",
        nargs="*",
        help="Directories to scan (default: roots from the config file)",
    )
    parser.add_argument("--depth", type=int, metavar="N", help="Max directory depth below each root")
    parser.add_argument("--ttl", type=int, metavar="SECONDS", help="Discovery cache freshness window")
    parser.add_argument("--no-cache", action="store_true", help="Always walk the filesystem")
    parser.add_argument("--json", action="store_true", dest="json_output", help="Output repos as JSON")
    parser.add_argument("--details", metavar="PATH", help="Show details for one repo and exit")
    parser.add_argument("--config", metavar="FILE", help="Config file (default: ~/.config/repodeck/config.yml)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging on stderr")
    parser.add_argument("--version", action="version", version=f"repodeck {__version__}")

    args = parser.parse_args()
    _setup_logging(args.verbose)

    if args.details:
        print_details(args.details)
        return

    try:
        cfg: Config = load_config(Path(args.config) if args.config else None)
    except ConfigError as exc:
        from rich.console import Console
        Console(stderr=True).print(f"[bold red]config error:[/bold red] {exc}")
        sys.exit(1)

    if args.roots:
        cfg.roots = args.roots
    if args.depth is not None:
        cfg.depth = args.depth
    if args.ttl is not None:
        cfg.cache_ttl_seconds = args.ttl

    cache = None if args.no_cache else DiscoveryCache()
    if not args.json_output:
        print(f"  Scanning {len(cfg.roots)} roots...", file=sys.stderr)
    result = scan(cfg, cache=cache)

    if args.json_output:
        print_json(result)
    else:
        print_summary(result)


if __name__ == "__main__":
    main()
