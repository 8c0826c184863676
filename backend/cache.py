"""Clearly Politics Backend — In-memory response cache

Entries past their TTL are not returned by ``get`` but stay stored for a
grace period, so a fetcher whose refresh fails can fall back to the last
good response with ``get_stale``.
"""

import time
import logging
from typing import Any, Optional

logger = logging.getLogger("clearly.cache")

# Minimum seconds between sweeps of entries past their grace period
SWEEP_INTERVAL = 60


class TTLCache:
    def __init__(self, default_ttl: int = 3600, max_size: int = 500, stale_grace: int = 86400):
        self._entries: dict[str, tuple[Any, float]] = {}
        self.default_ttl = default_ttl
        self.max_size = max_size
        self.stale_grace = stale_grace
        self._last_sweep = 0.0

    def _sweep(self, force: bool = False):
        now = time.time()
        if not force and now - self._last_sweep < SWEEP_INTERVAL:
            return
        self._last_sweep = now
        self.evict_expired(now - self.stale_grace)

    def get(self, key: str) -> Optional[Any]:
        self._sweep()
        entry = self._entries.get(key)
        if entry is None or time.time() > entry[1]:
            return None
        return entry[0]

    def get_stale(self, key: str) -> Optional[Any]:
        """Last stored value for ``key``, fresh or not."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if time.time() > entry[1]:
            logger.warning(f"Serving expired cache entry for {key}")
        return entry[0]

    def set(self, key: str, value: Any, ttl: Optional[int] = None):
        if key not in self._entries and len(self._entries) >= self.max_size:
            self._sweep(force=True)
            # still full: drop whatever expires soonest
            while len(self._entries) >= self.max_size:
                del self._entries[min(self._entries, key=lambda k: self._entries[k][1])]
        self._entries[key] = (value, time.time() + (ttl or self.default_ttl))

    def evict_expired(self, cutoff: Optional[float] = None):
        """Drop entries that expired before ``cutoff`` (default: now)."""
        cutoff = time.time() if cutoff is None else cutoff
        for key in [k for k, (_, expires_at) in self._entries.items() if expires_at < cutoff]:
            del self._entries[key]

    def clear(self):
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


news_cache = TTLCache(default_ttl=3600)  # news search results, 1 hour
scrape_cache = TTLCache(default_ttl=1800)  # GVA report pages, 30 minutes
census_cache = TTLCache(default_ttl=604800)  # census populations, 7 days
