from __future__ import annotations

import json
import threading
import time
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional

from loguru import logger


def cache_key(endpoint: str, filters: Optional[Mapping[str, Any]] = None) -> str:
    """Canonical key for (endpoint, filters): same filters in any order map to the same key."""
    return json.dumps([endpoint, dict(filters or {})], sort_keys=True, separators=(",", ":"), default=str)


@dataclass
class _Entry:
    endpoint: str
    value: Any = None
    fetched_at: Optional[float] = None
    inflight: Optional[Future] = None
    ttl: float = 0.0

    def expired(self, now: float) -> bool:
        if self.inflight is not None:
            return False
        return self.fetched_at is None or now - self.fetched_at >= self.ttl


class QueryCache:
    """
    Per-key response cache with request deduplication.

    - Concurrent fetches of one key share a single in-flight call.
    - A successful result is reused for `dedup_interval` seconds.
    - Failed fetches are not cached; the next call tries again.
    - invalidate(endpoint) drops every key of that endpoint; a fetch that was
      in flight at that moment still answers its callers but is not stored.
    - Entries past their window are evicted whenever a new key is added, so
      the cache only holds keys that could still be served.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._entries: Dict[str, _Entry] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def fetch(
        self,
        endpoint: str,
        filters: Optional[Mapping[str, Any]],
        fetcher: Callable[[], Any],
        dedup_interval: float,
        force: bool = False,
    ) -> Any:
        key = cache_key(endpoint, filters)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                entry = self._add(key, endpoint)
            if entry.inflight is not None:
                logger.debug("cache join in-flight {}", key)
                future, owner = entry.inflight, False
            elif (
                not force
                and entry.fetched_at is not None
                and self._clock() - entry.fetched_at < dedup_interval
            ):
                logger.debug("cache hit {}", key)
                return entry.value
            else:
                future, owner = Future(), True
                entry.inflight = future

        if not owner:
            return future.result()

        try:
            value = fetcher()
        except BaseException as e:
            with self._lock:
                entry.inflight = None
            future.set_exception(e)
            raise

        with self._lock:
            entry.inflight = None
            if self._entries.get(key) is entry:
                entry.value = value
                entry.fetched_at = self._clock()
                entry.ttl = dedup_interval
        future.set_result(value)
        return value

    def peek(self, endpoint: str, filters: Optional[Mapping[str, Any]] = None) -> Any:
        with self._lock:
            entry = self._entries.get(cache_key(endpoint, filters))
            return entry.value if entry is not None else None

    def set(self, endpoint: str, filters: Optional[Mapping[str, Any]], value: Any) -> None:
        key = cache_key(endpoint, filters)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                entry = self._add(key, endpoint)
            entry.value = value
            entry.fetched_at = self._clock()

    def _add(self, key: str, endpoint: str) -> _Entry:
        # caller holds the lock
        now = self._clock()
        stale = [k for k, e in self._entries.items() if e.expired(now)]
        for k in stale:
            del self._entries[k]
        if stale:
            logger.debug("cache evicted {} expired key(s)", len(stale))
        entry = self._entries[key] = _Entry(endpoint=endpoint)
        return entry

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def invalidate(self, endpoint: str) -> int:
        with self._lock:
            keys = [k for k, e in self._entries.items() if e.endpoint == endpoint]
            for k in keys:
                del self._entries[k]
        if keys:
            logger.info("cache invalidated {} key(s) for {}", len(keys), endpoint)
        return len(keys)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
