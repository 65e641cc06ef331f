"""
In-memory cache for venue size estimates.

One instance per heuristics service, so independent sessions and tests do not
share entries. Entries optionally expire after a TTL and the least recently
used entries are evicted beyond ``max_entries``.
"""
import logging
import threading
from collections import OrderedDict
from datetime import datetime, timedelta
from typing import Generic, Optional, Tuple, TypeVar

logger = logging.getLogger(__name__)

V = TypeVar("V")


class VenueSizeCache(Generic[V]):
    def __init__(self, ttl_seconds: Optional[int] = None, max_entries: Optional[int] = None):
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._store: "OrderedDict[str, Tuple[V, Optional[datetime]]]" = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._store)

    def __contains__(self, key: str) -> bool:
        return self.get(key, count=False) is not None

    def get(self, key: str, count: bool = True) -> Optional[V]:
        """Return the cached value if present and not expired"""
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                if count:
                    self.misses += 1
                return None
            value, expiry = entry
            if expiry is not None and datetime.utcnow() >= expiry:
                del self._store[key]
                if count:
                    self.misses += 1
                logger.debug(f"Venue cache entry expired: {key}")
                return None
            self._store.move_to_end(key)
            if count:
                self.hits += 1
            return value

    def set(self, key: str, value: V, ttl_seconds: Optional[int] = None):
        ttl = ttl_seconds if ttl_seconds is not None else self.ttl_seconds
        expiry = datetime.utcnow() + timedelta(seconds=ttl) if ttl is not None else None
        with self._lock:
            self._store[key] = (value, expiry)
            self._store.move_to_end(key)
            if self.max_entries is not None:
                while len(self._store) > self.max_entries:
                    evicted, _ = self._store.popitem(last=False)
                    logger.debug(f"Evicted venue cache entry: {evicted}")

    def clear(self):
        """Drop every entry and reset the hit counters"""
        with self._lock:
            self._store.clear()
            self.hits = 0
            self.misses = 0
        logger.info("Venue cache cleared")

    def cleanup_expired(self) -> int:
        """Remove expired entries; returns how many were removed"""
        now = datetime.utcnow()
        with self._lock:
            expired_keys = [k for k, (_, expiry) in self._store.items() if expiry is not None and now >= expiry]
            for k in expired_keys:
                del self._store[k]
        if expired_keys:
            logger.debug(f"Cleaned up {len(expired_keys)} expired venue cache entries")
        return len(expired_keys)

    def stats(self) -> dict:
        return {
            "entries": len(self._store),
            "hits": self.hits,
            "misses": self.misses,
            "ttl_seconds": self.ttl_seconds,
            "max_entries": self.max_entries,
        }
