"""Tests for config loading."""

import os
import tempfile
from pathlib import Path

import pytest

from repodeck.config import Config, ConfigError, config_path, expand_user, load_config


def test_defaults_when_missing():
    with tempfile.TemporaryDirectory() as tmp:
        cfg = load_config(Path(tmp) / "nope.yml")
        assert cfg == Config()
        assert cfg.depth == 2
        assert cfg.cache_ttl_seconds == 120


def test_overlay_on_defaults():
    with tempfile.TemporaryDirectory() as tmp:
        path = Path(tmp) / "config.yml"
        path.write_text("roots:\n  - ~/code\ndepth: 4\n")
        cfg = load_config(path)
        assert cfg.roots == ["~/code"]
        assert cfg.depth == 4
        assert cfg.cache_ttl_seconds == 120


def test_zero_and_empty_keep_defaults():
    with tempfile.TemporaryDirectory() as tmp:
        path = Path(tmp) / "config.yml"
        path.write_text("roots: []\ndepth: 0\ncache_ttl_seconds: 0\n")
        assert load_config(path) == Config()


def test_empty_file():
    with tempfile.TemporaryDirectory() as tmp:
        path = Path(tmp) / "config.yml"
        path.write_text("")
        assert load_config(path) == Config()


def test_malformed_yaml_raises():
    with tempfile.TemporaryDirectory() as tmp:
        path = Path(tmp) / "config.yml"
        path.write_text("roots: [oops\n")
        with pytest.raises(ConfigError):
            load_config(path)


def test_wrong_types_raise():
    with tempfile.TemporaryDirectory() as tmp:
        path = Path(tmp) / "config.yml"
        path.write_text("depth: deep\n")
        with pytest.raises(ConfigError):
            load_config(path)
        path.write_text("roots: ~/single\n")
        with pytest.raises(ConfigError):
            load_config(path)


def test_boolean_depth_raises():
    with tempfile.TemporaryDirectory() as tmp:
        path = Path(tmp) / "config.yml"
        path.write_text("depth: false\n")
        with pytest.raises(ConfigError):
            load_config(path)
        path.write_text("cache_ttl_seconds: true\n")
        with pytest.raises(ConfigError):
            load_config(path)


def test_negative_depth_raises():
    with tempfile.TemporaryDirectory() as tmp:
        path = Path(tmp) / "config.yml"
        path.write_text("depth: -1\n")
        with pytest.raises(ConfigError):
            load_config(path)


def test_expand_user():
    home = os.path.expanduser("~")
    assert expand_user("~") == home
    assert expand_user("~/projects") == os.path.join(home, "projects")
    assert expand_user("/a/b/../c/") == "/a/c"
    assert expand_user("") == ""


def test_config_path_honors_xdg(monkeypatch):
    monkeypatch.setenv("XDG_CONFIG_HOME", "/tmp/xdg-config")
    assert config_path() == Path("/tmp/xdg-config/repodeck/config.yml")
