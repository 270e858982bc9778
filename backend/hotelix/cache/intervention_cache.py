"""
In-process TTL cache for intervention statistics.

- Two maps: hotel-wide (global) stats and per-technician stats
- Keys are ``prefix:name:value|name:value`` with names sorted
- Uses monotonic() for TTL comparison (immune to system clock changes)
- Mutating views invalidate through ``hotelix.decorators.stats_cache``
"""
from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T')

DEFAULT_TTL_SECONDS = 60
DEFAULT_MAX_SIZE = 100
# Extra entries dropped past max_size so every set() does not trigger a sweep
EVICTION_SLACK = 10

GLOBAL_PREFIX = 'global'
TECHNICIAN_PREFIX = 'technician'


@dataclass
class CacheEntry(Generic[T]):
    data: T
    timestamp: float
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now > self.expires_at


def generate_key(prefix: str, params: Dict[str, Any]) -> str:
    parts = '|'.join(f"{name}:{params[name]}" for name in sorted(params))
    return f"{prefix}:{parts}"


def _key_has(key: str, name: str, value: Any) -> bool:
    """Exact segment match: ``hotel_id:1`` must not match ``hotel_id:10``."""
    _, _, body = key.partition(':')
    return f"{name}:{value}" in body.split('|')


class InterventionCache:
    def __init__(self, ttl_seconds: float = DEFAULT_TTL_SECONDS, max_size: int = DEFAULT_MAX_SIZE,
                 clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self.max_size = max_size
        self._clock = clock
        self._lock = threading.RLock()
        self._global: Dict[str, CacheEntry] = {}
        self._technician: Dict[str, CacheEntry] = {}
        self.hits = 0
        self.misses = 0

    def init_app(self, app):
        self.configure(
            ttl_seconds=app.config.get('STATS_CACHE_TTL_SECONDS', DEFAULT_TTL_SECONDS),
            max_size=app.config.get('STATS_CACHE_MAX_SIZE', DEFAULT_MAX_SIZE),
        )
        app.extensions['intervention_cache'] = self

    def configure(self, ttl_seconds: Optional[float] = None, max_size: Optional[int] = None):
        with self._lock:
            if ttl_seconds is not None:
                self.ttl_seconds = ttl_seconds
            if max_size is not None:
                self.max_size = max_size

    # --- internals ---
    def _get(self, store: Dict[str, CacheEntry], key: str):
        with self._lock:
            entry = store.get(key)
            if entry is not None and not entry.is_expired(self._clock()):
                self.hits += 1
                return entry.data
            if entry is not None:
                del store[key]
            self.misses += 1
            return None

    def _set(self, store: Dict[str, CacheEntry], key: str, data):
        with self._lock:
            now = self._clock()
            store[key] = CacheEntry(data=data, timestamp=now, expires_at=now + self.ttl_seconds)
            self._cleanup(store)

    def _cleanup(self, store: Dict[str, CacheEntry]):
        if len(store) <= self.max_size:
            return
        oldest = sorted(store.items(), key=lambda item: item[1].timestamp)
        drop = len(store) - self.max_size + EVICTION_SLACK
        for key, _ in oldest[:drop]:
            del store[key]

    def _invalidate(self, store: Dict[str, CacheEntry], name: str, value: Any) -> int:
        with self._lock:
            doomed = [k for k in store if _key_has(k, name, value)]
            for k in doomed:
                del store[k]
        return len(doomed)

    # --- global (hotel) stats ---
    def get_global_stats(self, hotel_id: int, period_days: Optional[int] = None):
        return self._get(self._global, generate_key(GLOBAL_PREFIX, {'hotel_id': hotel_id, 'period_days': period_days}))

    def set_global_stats(self, hotel_id: int, period_days: Optional[int], data):
        self._set(self._global, generate_key(GLOBAL_PREFIX, {'hotel_id': hotel_id, 'period_days': period_days}), data)

    # --- technician stats ---
    def get_technician_stats(self, technicien_id: int, period_days: int):
        return self._get(self._technician, generate_key(TECHNICIAN_PREFIX, {'technicien_id': technicien_id, 'period_days': period_days}))

    def set_technician_stats(self, technicien_id: int, period_days: int, data):
        self._set(self._technician, generate_key(TECHNICIAN_PREFIX, {'technicien_id': technicien_id, 'period_days': period_days}), data)

    # --- invalidation ---
    def invalidate_hotel_stats(self, hotel_id: int) -> int:
        removed = self._invalidate(self._global, 'hotel_id', hotel_id)
        logger.debug('Invalidated %d global stats entries for hotel %s', removed, hotel_id)
        return removed

    def invalidate_technician_stats(self, technicien_id: int) -> int:
        removed = self._invalidate(self._technician, 'technicien_id', technicien_id)
        logger.debug('Invalidated %d technician stats entries for technician %s', removed, technicien_id)
        return removed

    def invalidate_all(self):
        with self._lock:
            self._global.clear()
            self._technician.clear()
        logger.info('Stats cache cleared')

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            lookups = self.hits + self.misses
            return {
                'global_entries': len(self._global),
                'technician_entries': len(self._technician),
                'hits': self.hits,
                'misses': self.misses,
                'hit_rate': round(self.hits / lookups, 4) if lookups else 0.0,
                'ttl_seconds': self.ttl_seconds,
                'max_size': self.max_size,
            }

    def reset_counters(self):
        with self._lock:
            self.hits = 0
            self.misses = 0


# Process-wide instance, configured by create_app()
intervention_cache = InterventionCache()

__all__ = ['InterventionCache', 'CacheEntry', 'generate_key', 'intervention_cache']
