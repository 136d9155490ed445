"""User configuration — scan roots, walk depth, and discovery cache TTL."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

DEFAULT_ROOTS = ["~/projects", "~/tools"]
DEFAULT_DEPTH = 2
DEFAULT_CACHE_TTL = 120


class ConfigError(Exception):
    """Raised when the config file exists but cannot be used."""


@dataclass
class Config:
    roots: list[str] = field(default_factory=lambda: list(DEFAULT_ROOTS))
    depth: int = DEFAULT_DEPTH
    cache_ttl_seconds: int = DEFAULT_CACHE_TTL


def expand_user(path: str) -> str:
    """Expand a leading ~ and return an absolute, normalised path."""
    if not path:
        return path
    return os.path.normpath(os.path.abspath(os.path.expanduser(path)))


def config_path() -> Path:
    base = os.environ.get("XDG_CONFIG_HOME") or os.path.join(Path.home(), ".config")
    return Path(base) / "repodeck" / "config.yml"


def load_config(path: Optional[Path] = None) -> Config:
    """Load the YAML config and overlay it on the defaults.

    A missing file yields the defaults. Unset, empty or zero values keep
    their default. Malformed YAML or values of the wrong type raise
    ConfigError.
    """
    cfg = Config()
    path = path or config_path()
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return cfg
    except OSError as exc:
        raise ConfigError(f"cannot read {path}: {exc}") from exc

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid YAML in {path}: {exc}") from exc
    if data is None:
        return cfg
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: expected a mapping at the top level")

    roots = data.get("roots")
    if roots:
        if not isinstance(roots, list) or not all(isinstance(r, str) for r in roots):
            raise ConfigError(f"{path}: 'roots' must be a list of paths")
        cfg.roots = list(roots)

    for key in ("depth", "cache_ttl_seconds"):
        value = data.get(key)
        if value is None:
            continue
        if not isinstance(value, int) or isinstance(value, bool):
            raise ConfigError(f"{path}: '{key}' must be an integer")
        if key == "depth" and value < 0:
            raise ConfigError(f"{path}: 'depth' must not be negative")
        if value == 0:
            continue
        setattr(cfg, key, value)

    return cfg
