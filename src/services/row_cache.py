"""
Time-bounded cache of the parsed colors rows.

Rows are stored serialized, so every get() hands out fresh objects and
callers can never mutate the cached snapshot.
"""

import json
import threading
import time
from dataclasses import asdict
from typing import Callable

from cachetools import TLRUCache

from core.config import CACHE_COLORS_KEY
from models.colors import ColorSlot


def _expires_at(_key, value, now):
    _payload, ttl = value
    return now + ttl


class RowCache:
    """In-process TTL cache holding one snapshot of the colors rows."""

    def __init__(self, key: str = CACHE_COLORS_KEY, clock: Callable[[], float] = time.monotonic):
        self.key = key
        # Entries are (json, ttl); the ttl is chosen per put()
        self._cache = TLRUCache(maxsize=1, ttu=_expires_at, timer=clock)
        self._lock = threading.Lock()

    def get(self) -> list[ColorSlot] | None:
        """Return the cached rows, or None on a miss or after expiry."""
        with self._lock:
            entry = self._cache.get(self.key)
        if entry is None:
            return None
        payload, _ttl = entry
        return [ColorSlot(**row) for row in json.loads(payload)]

    def put(self, rows: list[ColorSlot], ttl: float) -> None:
        payload = json.dumps([asdict(row) for row in rows])
        with self._lock:
            # A non-positive ttl is never stored, so drop the old snapshot first
            self._cache.pop(self.key, None)
            self._cache[self.key] = (payload, ttl)

    def invalidate(self) -> None:
        with self._lock:
            self._cache.pop(self.key, None)
