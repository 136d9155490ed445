"""Tests for the discovery cache."""

import json
import os
import stat
import tempfile
from pathlib import Path

from repodeck.cache import DiscoveryCache, cache_path, resolve_ttl


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def test_load_missing_file():
    with tempfile.TemporaryDirectory() as tmp:
        cache = DiscoveryCache(Path(tmp) / "cache.json")
        assert cache.load() == {}


def test_load_malformed_file():
    with tempfile.TemporaryDirectory() as tmp:
        path = Path(tmp) / "cache.json"
        path.write_text("{not json")
        cache = DiscoveryCache(path)
        assert cache.load() == {}


def test_load_non_mapping_document():
    with tempfile.TemporaryDirectory() as tmp:
        path = Path(tmp) / "cache.json"
        path.write_text("[1, 2, 3]")
        assert DiscoveryCache(path).load() == {}


def test_load_drops_bad_entries():
    with tempfile.TemporaryDirectory() as tmp:
        path = Path(tmp) / "cache.json"
        path.write_text(json.dumps({
            "/good": {"scanned_at": 10, "repos": ["/good/a"]},
            "/bad": {"scanned_at": "yesterday", "repos": ["/bad/a"]},
            "/worse": "nope",
        }))
        data = DiscoveryCache(path).load()
        assert list(data) == ["/good"]


def test_get_fresh_and_stale():
    clock = FakeClock()
    with tempfile.TemporaryDirectory() as tmp:
        cache = DiscoveryCache(Path(tmp) / "cache.json", clock=clock)
        cache.put("/root", ["/root/a", "/root/b"])

        clock.now += 119.5
        assert cache.get("/root", 120) == ["/root/a", "/root/b"]

        clock.now += 1
        assert cache.get("/root", 120) is None


def test_get_missing_root():
    cache = DiscoveryCache(Path("/unused"))
    assert cache.get("/nowhere", 120) is None


def test_get_empty_entry_is_miss():
    clock = FakeClock()
    cache = DiscoveryCache(Path("/unused"), clock=clock)
    cache.put("/root", [])
    assert cache.get("/root", 120) is None


def test_get_returns_copy():
    cache = DiscoveryCache(Path("/unused"), clock=FakeClock())
    cache.put("/root", ["/root/a"])
    paths = cache.get("/root", 120)
    paths.append("/root/zzz")
    assert cache.get("/root", 120) == ["/root/a"]


def test_put_overwrites():
    clock = FakeClock()
    cache = DiscoveryCache(Path("/unused"), clock=clock)
    cache.put("/root", ["/root/a"])
    clock.now += 50
    cache.put("/root", ["/root/b"])
    assert cache.data["/root"] == {"scanned_at": int(clock.now), "repos": ["/root/b"]}


def test_save_and_reload_roundtrip():
    with tempfile.TemporaryDirectory() as tmp:
        path = Path(tmp) / "state" / "repodeck" / "cache.json"
        clock = FakeClock()
        cache = DiscoveryCache(path, clock=clock)
        cache.put("/root", ["/root/a"])
        cache.save()

        assert path.exists()
        assert stat.S_IMODE(os.stat(path).st_mode) == 0o600
        on_disk = json.loads(path.read_text())
        assert on_disk == {"/root": {"scanned_at": 1_700_000_000, "repos": ["/root/a"]}}

        fresh = DiscoveryCache(path, clock=clock)
        fresh.load()
        assert fresh.get("/root", 120) == ["/root/a"]


def test_save_failure_is_silent():
    with tempfile.TemporaryDirectory() as tmp:
        blocker = Path(tmp) / "file"
        blocker.write_text("x")
        cache = DiscoveryCache(blocker / "sub" / "cache.json")
        cache.put("/root", ["/root/a"])
        cache.save()  # parent is a file: must not raise


def test_resolve_ttl():
    assert resolve_ttl(None) == 120
    assert resolve_ttl(0) == 120
    assert resolve_ttl(-5) == 120
    assert resolve_ttl(30) == 30


def test_cache_path_honors_xdg_state_home(monkeypatch):
    monkeypatch.setenv("XDG_STATE_HOME", "/tmp/xdg-state")
    assert cache_path() == Path("/tmp/xdg-state/repodeck/cache.json")
