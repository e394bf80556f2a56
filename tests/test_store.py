"""Tests for the key-value store backends."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest

from tripcast.errors import CacheFault, StoreFullError
from tripcast.store import DirectoryStore, MemoryStore

if TYPE_CHECKING:
    from pathlib import Path


class TestMemoryStore:
    """Test the in-memory backend."""

    def test_set_then_get(self) -> None:
        store = MemoryStore()
        store.set("weather:forecast:45.52:-122.68:2026-10-20", "{}")
        assert store.get("weather:forecast:45.52:-122.68:2026-10-20") == "{}"

    def test_get_missing(self) -> None:
        assert MemoryStore().get("nope") is None

    def test_delete(self) -> None:
        store = MemoryStore()
        store.set("a", "1")
        store.delete("a")
        assert store.get("a") is None

    def test_delete_missing_is_noop(self) -> None:
        MemoryStore().delete("never-written")

    def test_keys_with_prefix(self) -> None:
        store = MemoryStore()
        store.set("weather:forecast:1", "x")
        store.set("weather:historical:1", "y")
        store.set("other:1", "z")
        assert sorted(store.keys_with_prefix("weather:")) == [
            "weather:forecast:1",
            "weather:historical:1",
        ]
        assert store.keys_with_prefix("weather:forecast:") == ["weather:forecast:1"]

    def test_full_raises_for_new_key(self) -> None:
        store = MemoryStore(max_entries=2)
        store.set("a", "1")
        store.set("b", "2")
        with pytest.raises(StoreFullError):
            store.set("c", "3")
        assert len(store) == 2

    def test_full_allows_overwrite(self) -> None:
        store = MemoryStore(max_entries=1)
        store.set("a", "1")
        store.set("a", "2")
        assert store.get("a") == "2"

    def test_unbounded_by_default(self) -> None:
        store = MemoryStore()
        for i in range(100):
            store.set(str(i), "v")
        assert len(store) == 100


class TestDirectoryStore:
    """Test the one-file-per-key backend."""

    def test_set_then_get(self, tmp_path: Path) -> None:
        store = DirectoryStore(tmp_path)
        store.set("weather:forecast:45.52:-122.68:2026-10-20", '{"a": 1}')
        assert store.get("weather:forecast:45.52:-122.68:2026-10-20") == '{"a": 1}'

    def test_creates_base_dir(self, tmp_path: Path) -> None:
        base = tmp_path / "nested" / "cache"
        DirectoryStore(base).set("k", "v")
        assert base.is_dir()

    def test_key_is_percent_encoded(self, tmp_path: Path) -> None:
        store = DirectoryStore(tmp_path)
        store.set("weather:forecast:1:2:2026-10-20", "v")
        assert (tmp_path / "weather%3Aforecast%3A1%3A2%3A2026-10-20.json").exists()

    def test_slash_in_key_stays_inside_base(self, tmp_path: Path) -> None:
        store = DirectoryStore(tmp_path / "cache")
        store.set("../escape", "v")
        assert store.get("../escape") == "v"
        assert not (tmp_path / "escape.json").exists()

    def test_get_missing(self, tmp_path: Path) -> None:
        assert DirectoryStore(tmp_path).get("missing") is None

    def test_no_temp_files_left(self, tmp_path: Path) -> None:
        store = DirectoryStore(tmp_path)
        store.set("a", "1")
        store.set("a", "2")
        assert [p.name for p in tmp_path.iterdir()] == ["a.json"]

    def test_delete(self, tmp_path: Path) -> None:
        store = DirectoryStore(tmp_path)
        store.set("a", "1")
        store.delete("a")
        store.delete("a")
        assert store.get("a") is None

    def test_keys_with_prefix_round_trips_names(self, tmp_path: Path) -> None:
        store = DirectoryStore(tmp_path)
        store.set("weather:forecast:45.52:-122.68:2026-10-20", "x")
        store.set("weather:historical:45.52:-122.68:2020-10-20", "y")
        assert store.keys_with_prefix("weather:forecast:") == [
            "weather:forecast:45.52:-122.68:2026-10-20"
        ]

    def test_keys_with_prefix_missing_dir(self, tmp_path: Path) -> None:
        assert DirectoryStore(tmp_path / "absent").keys_with_prefix("weather:") == []

    def test_full_raises_for_new_key(self, tmp_path: Path) -> None:
        store = DirectoryStore(tmp_path, max_entries=1)
        store.set("a", "1")
        store.set("a", "2")
        with pytest.raises(StoreFullError):
            store.set("b", "1")

    def test_count_includes_existing_files(self, tmp_path: Path) -> None:
        DirectoryStore(tmp_path).set("a", "1")
        reopened = DirectoryStore(tmp_path, max_entries=1)
        with pytest.raises(StoreFullError):
            reopened.set("b", "1")

    def test_delete_frees_a_slot(self, tmp_path: Path) -> None:
        store = DirectoryStore(tmp_path, max_entries=1)
        store.set("a", "1")
        store.delete("a")
        store.set("b", "1")
        assert store.get("b") == "1"

    @pytest.mark.skipif(
        hasattr(os, "geteuid") and os.geteuid() == 0, reason="root ignores permissions"
    )
    def test_unreadable_file_raises_cache_fault(self, tmp_path: Path) -> None:
        store = DirectoryStore(tmp_path)
        store.set("a", "1")
        (tmp_path / "a.json").chmod(0)
        try:
            with pytest.raises(CacheFault):
                store.get("a")
        finally:
            (tmp_path / "a.json").chmod(0o644)
