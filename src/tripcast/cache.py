"""Tiered weather cache with freshness-aware reads.

Entries are organized into tiers by how quickly they go stale:
  - forecast:   3h TTL  (provider updates drift the numbers)
  - prediction: 3h TTL  (derived from forecasts, re-derivable)
  - historical: 30d TTL (past weather does not change; reused as blend input)

Keys are ``weather:{tier}:{round(lat, 2)}:{round(lon, 2)}:{date}``. Rounding to
two decimals (~1.1 km) matches the provider's grid, so nearby points share an
entry.

Reads expire lazily: a stale or unparseable entry is deleted when it is read.
Caching is a performance optimization only; every backend fault is logged and
swallowed here and never reaches the pipeline.
"""

from __future__ import annotations

import logging
import threading
import time
from datetime import timedelta
from typing import TYPE_CHECKING

from pydantic import ValidationError

from tripcast.errors import CacheFault, ConfigurationError, StoreFullError
from tripcast.schemas import CacheEntry, CacheTier, WeatherCondition
from tripcast.units import round_coord

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping

    from tripcast.store import KeyValueStore

logger = logging.getLogger(__name__)

CACHE_PREFIX = "weather"

DEFAULT_TTLS: dict[CacheTier, timedelta] = {
    CacheTier.FORECAST: timedelta(hours=3),
    CacheTier.PREDICTION: timedelta(hours=3),
    CacheTier.HISTORICAL: timedelta(days=30),
}

DEFAULT_EVICT_COUNT = 10


def cache_key(tier: CacheTier, lat: float, lon: float, date: str) -> str:
    """Build the cache key for one date at one (rounded) location."""
    return f"{CACHE_PREFIX}:{tier}:{round_coord(lat)}:{round_coord(lon)}:{date}"


class WeatherCache:
    """Cache-aside store for WeatherCondition values."""

    def __init__(
        self,
        store: KeyValueStore,
        ttls: Mapping[CacheTier, timedelta] | None = None,
        *,
        evict_count: int = DEFAULT_EVICT_COUNT,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store
        self.ttls = {**DEFAULT_TTLS, **(ttls or {})}
        volatile = max(self.ttls[CacheTier.FORECAST], self.ttls[CacheTier.PREDICTION])
        if self.ttls[CacheTier.HISTORICAL] < volatile:
            msg = "historical TTL must be at least the forecast and prediction TTLs"
            raise ConfigurationError(msg)
        self.evict_count = evict_count
        self._clock = clock

    # -- single entries -------------------------------------------------------

    def get(self, key: str) -> WeatherCondition | None:
        """Return the cached condition, or None if absent, stale or corrupt."""
        try:
            raw = self.store.get(key)
        except CacheFault as err:
            logger.warning("Cache read failed for %s: %s", key, err)
            return None
        if raw is None:
            logger.debug("Cache miss %s", key)
            return None

        entry = self._parse(key, raw)
        if entry is None:
            self._discard(key, raw)
            return None
        if self._is_expired(entry):
            logger.debug("Cache entry expired %s", key)
            self._discard(key, raw)
            return None
        logger.debug("Cache hit %s", key)
        return entry.data

    def set(self, key: str, value: WeatherCondition, tier: CacheTier) -> None:
        """Store a condition under ``tier``; failures are logged, never raised."""
        payload = CacheEntry(data=value, cached_at=self._clock(), tier=tier).model_dump_json()
        try:
            self.store.set(key, payload)
            return
        except StoreFullError:
            logger.debug("Cache store full; evicting %d oldest entries", self.evict_count)
        except CacheFault as err:
            logger.warning("Unable to cache %s: %s", key, err)
            return

        self._evict_oldest(self.evict_count)
        try:
            self.store.set(key, payload)
        except CacheFault as err:
            logger.warning("Unable to cache %s after eviction: %s", key, err)

    # -- batches --------------------------------------------------------------

    def get_many(self, keys: Iterable[str]) -> dict[str, WeatherCondition]:
        """Look up several keys; only fresh hits appear in the result."""
        found: dict[str, WeatherCondition] = {}
        for key in keys:
            value = self.get(key)
            if value is not None:
                found[key] = value
        return found

    def set_many(self, entries: Mapping[str, WeatherCondition], tier: CacheTier) -> None:
        """Store several conditions under the same tier."""
        for key, value in entries.items():
            self.set(key, value, tier)

    # -- location/date helpers used by the pipeline ---------------------------

    def get_for_dates(
        self, lat: float, lon: float, dates: Iterable[str], tier: CacheTier
    ) -> dict[str, WeatherCondition]:
        """Fresh hits for ``dates`` at a location, keyed by date."""
        keys = {cache_key(tier, lat, lon, d): d for d in dates}
        return {keys[k]: v for k, v in self.get_many(keys).items()}

    def set_conditions(
        self, lat: float, lon: float, conditions: Iterable[WeatherCondition], tier: CacheTier
    ) -> None:
        """Cache each condition under its own date."""
        self.set_many({cache_key(tier, lat, lon, c.date): c for c in conditions}, tier)

    # -- maintenance ----------------------------------------------------------

    def cleanup_expired(self) -> int:
        """Delete every expired or corrupt entry; return how many were removed."""
        removed = 0
        for key in self._keys():
            try:
                raw = self.store.get(key)
            except CacheFault as err:
                logger.warning("Cache sweep skipped %s: %s", key, err)
                continue
            if raw is None:
                continue
            entry = self._parse(key, raw)
            if (entry is None or self._is_expired(entry)) and self._discard(key, raw):
                removed += 1
        if removed:
            logger.debug("Weather cache cleanup: removed %d expired entries", removed)
        return removed

    def clear(self) -> None:
        """Remove every weather entry."""
        for key in self._keys():
            self._delete(key)

    def clear_tier(self, tier: CacheTier) -> None:
        """Remove every entry of one tier."""
        for key in self._keys(f"{CACHE_PREFIX}:{tier}:"):
            self._delete(key)

    def stats(self) -> dict[str, int]:
        """Entry counts, total and per tier (expired entries not yet swept included)."""
        counts = {"total": 0, **{str(tier): 0 for tier in CacheTier}}
        for key in self._keys():
            counts["total"] += 1
            tier = key.split(":", 2)[1]
            if tier in counts:
                counts[tier] += 1
        return counts

    # -- internals ------------------------------------------------------------

    def _keys(self, prefix: str = f"{CACHE_PREFIX}:") -> list[str]:
        try:
            return self.store.keys_with_prefix(prefix)
        except CacheFault as err:
            logger.warning("Cannot enumerate cache keys: %s", err)
            return []

    def _parse(self, key: str, raw: str) -> CacheEntry | None:
        try:
            return CacheEntry.model_validate_json(raw)
        except ValidationError:
            logger.debug("Dropping corrupt cache entry %s", key)
            return None

    def _is_expired(self, entry: CacheEntry) -> bool:
        ttl = self.ttls[entry.tier].total_seconds()
        return self._clock() - entry.cached_at > ttl

    def _delete(self, key: str) -> None:
        try:
            self.store.delete(key)
        except CacheFault as err:
            logger.warning("Cache delete failed for %s: %s", key, err)

    def _discard(self, key: str, raw: str) -> bool:
        """Delete ``key`` only if it still holds ``raw``; a concurrent rewrite survives."""
        try:
            current = self.store.get(key)
        except CacheFault as err:
            logger.warning("Cache read failed for %s: %s", key, err)
            return False
        if current != raw:
            return False
        self._delete(key)
        return True

    def _evict_oldest(self, count: int) -> None:
        """Remove the ``count`` oldest entries (corrupt entries count as oldest)."""
        aged: list[tuple[float, str]] = []
        for key in self._keys():
            try:
                raw = self.store.get(key)
            except CacheFault:
                raw = None
            entry = self._parse(key, raw) if raw is not None else None
            aged.append((entry.cached_at if entry else 0.0, key))
        aged.sort()
        for _, key in aged[:count]:
            self._delete(key)
        logger.debug("Weather cache: removed %d oldest entries", min(count, len(aged)))


class CacheSweeper:
    """Background thread that calls ``cleanup_expired`` every ``interval``.

    Best-effort space reclamation only; reads already expire lazily.
    """

    def __init__(self, cache: WeatherCache, interval: timedelta) -> None:
        self.cache = cache
        self.interval = interval
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="weather-cache-sweeper", daemon=True)
        self._thread.start()

    def stop(self, timeout: float | None = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def _run(self) -> None:
        while not self._stop.wait(self.interval.total_seconds()):
            try:
                self.cache.cleanup_expired()
            except Exception:  # keep sweeping on any unexpected failure
                logger.exception("Weather cache sweep failed")
