"""Read-through TTL cache with single-flight fetches."""

import logging
import threading
import time
from typing import Any, Callable

logger = logging.getLogger(__name__)


class TTLCache:
    """Key/value cache where each entry expires ttl seconds after it was fetched.

    get_or_fetch() holds a per-key lock while fetching, so callers that miss
    at the same time wait for the one in-flight fetch and then share its
    result: at most one upstream fetch per key per TTL window.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries = {}  # key -> (stored_at, value)
        self._lock = threading.Lock()
        self._key_locks = {}

    def _key_lock(self, key: str) -> threading.Lock:
        with self._lock:
            lock = self._key_locks.get(key)
            if lock is None:
                lock = self._key_locks[key] = threading.Lock()
            return lock

    def get(self, key: str, ttl: float) -> Any | None:
        """Cached value if younger than ttl seconds, else None."""
        with self._lock:
            hit = self._entries.get(key)
        if hit and self._clock() - hit[0] < ttl:
            return hit[1]
        return None

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._entries[key] = (self._clock(), value)

    def get_or_fetch(self, key: str, ttl: float, fetcher: Callable[[], Any]) -> Any:
        value = self.get(key, ttl)
        if value is not None:
            return value
        with self._key_lock(key):
            # another caller may have fetched while we waited
            value = self.get(key, ttl)
            if value is not None:
                return value
            logger.debug("cache miss for %s, fetching", key)
            value = fetcher()
            self.set(key, value)
            return value

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
