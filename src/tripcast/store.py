"""Key-value backends for the weather cache.

The cache only needs four operations from its backing store, so any facility
that offers them can be plugged in::

    get(key) -> str | None
    set(key, value)          # may raise StoreFullError
    delete(key)
    keys_with_prefix(prefix) -> list[str]

Two backends ship here:
  - MemoryStore:    locked dict, for tests and short-lived processes
  - DirectoryStore: one JSON file per key under a base directory, survives restarts

Both accept ``max_entries``; a write that would exceed it raises
``StoreFullError`` so the cache can evict and retry.
"""

from __future__ import annotations

import os
import tempfile
import threading
from pathlib import Path  # noqa: TC003 - used at runtime, not just annotations
from typing import Protocol
from urllib.parse import quote, unquote

from tripcast.errors import CacheFault, StoreFullError


class KeyValueStore(Protocol):
    """Minimal string-keyed store the cache is written against."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...

    def keys_with_prefix(self, prefix: str) -> list[str]: ...


class MemoryStore:
    """Thread-safe in-memory store."""

    def __init__(self, max_entries: int = 0) -> None:
        self.max_entries = max_entries
        self._data: dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            if self.max_entries and key not in self._data and len(self._data) >= self.max_entries:
                msg = f"MemoryStore full ({self.max_entries} entries)"
                raise StoreFullError(msg)
            self._data[key] = value

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def keys_with_prefix(self, prefix: str) -> list[str]:
        with self._lock:
            return [k for k in self._data if k.startswith(prefix)]

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)


class DirectoryStore:
    """Stores each key as a file under ``base_dir``.

    Keys are percent-encoded into file names, so ``weather:forecast:45.5:...``
    becomes ``weather%3Aforecast%3A45.5%3A....json``. Writes go to a temp file
    and are renamed into place, so readers never see a half-written value.

    The entry count used for ``max_entries`` is tracked in-process; a directory
    shared by several processes may overshoot the limit slightly.
    """

    SUFFIX = ".json"

    def __init__(self, base_dir: Path, max_entries: int = 0) -> None:
        self.base = base_dir
        self.max_entries = max_entries
        self._lock = threading.Lock()
        self._count: int | None = None

    def get(self, key: str) -> str | None:
        full = self._resolve(key)
        try:
            return full.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as err:
            msg = f"Cannot read cache file {full}: {err}"
            raise CacheFault(msg) from err

    def set(self, key: str, value: str) -> None:
        full = self._resolve(key)
        with self._lock:
            exists = full.exists()
            if self.max_entries and not exists and self._entry_count() >= self.max_entries:
                msg = f"DirectoryStore full ({self.max_entries} entries in {self.base})"
                raise StoreFullError(msg)
            try:
                self.base.mkdir(parents=True, exist_ok=True)
                fd, tmp_name = tempfile.mkstemp(dir=self.base, suffix=".tmp")
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(value)
                os.replace(tmp_name, full)
            except OSError as err:
                msg = f"Cannot write cache file {full}: {err}"
                raise CacheFault(msg) from err
            if not exists and self._count is not None:
                self._count += 1

    def delete(self, key: str) -> None:
        full = self._resolve(key)
        with self._lock:
            try:
                full.unlink()
            except FileNotFoundError:
                return
            except OSError as err:
                msg = f"Cannot delete cache file {full}: {err}"
                raise CacheFault(msg) from err
            if self._count is not None:
                self._count -= 1

    def keys_with_prefix(self, prefix: str) -> list[str]:
        if not self.base.exists():
            return []
        keys = (unquote(p.name[: -len(self.SUFFIX)]) for p in self.base.glob(f"*{self.SUFFIX}"))
        return [k for k in keys if k.startswith(prefix)]

    def _entry_count(self) -> int:
        if self._count is None:
            self._count = (
                sum(1 for _ in self.base.glob(f"*{self.SUFFIX}")) if self.base.exists() else 0
            )
        return self._count

    def _resolve(self, key: str) -> Path:
        full = self.base / f"{quote(key, safe='')}{self.SUFFIX}"
        try:
            full.resolve().relative_to(self.base.resolve())
        except ValueError:
            msg = f"Key escapes store base directory: {key}"
            raise ValueError(msg) from None
        return full
