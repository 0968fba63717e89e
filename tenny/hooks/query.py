from __future__ import annotations

import threading
from typing import Any, Callable, Dict, Generic, Mapping, Optional, TypeVar

from loguru import logger

from tenny.errors import UNEXPECTED_RESPONSE_MSG, ApiError
from tenny.services.query_cache import QueryCache, cache_key

T = TypeVar("T")


class Query(Generic[T]):
    """
    Cached view of one backend resource, the unit every page renders from.

    data        last good value (kept while a refetch fails)
    is_loading  True until the first fetch has either succeeded or failed
    error       last failure, cleared by the next success
    mutate()    optimistic local update, optionally followed by a refetch

    A response that arrives after unmount() or after the filters changed is
    dropped instead of overwriting newer state.
    """

    def __init__(
        self,
        cache: QueryCache,
        endpoint: str,
        filters: Optional[Mapping[str, Any]],
        fetcher: Callable[[Dict[str, Any]], T],
        dedup_interval: float,
        enabled: bool = True,
    ) -> None:
        self.cache = cache
        self.endpoint = endpoint
        self.filters: Dict[str, Any] = dict(filters or {})
        self.dedup_interval = dedup_interval
        self.enabled = enabled
        self.data: Optional[T] = None
        self.error: Optional[Exception] = None
        self._fetcher = fetcher
        self._settled = False
        self._mounted = True
        self._generation = 0
        self._lock = threading.Lock()

    @property
    def key(self) -> str:
        return cache_key(self.endpoint, self.filters)

    @property
    def is_loading(self) -> bool:
        return self.enabled and not self._settled

    @property
    def error_message(self) -> Optional[str]:
        if self.error is None:
            return None
        if isinstance(self.error, ApiError):
            return self.error.message
        return UNEXPECTED_RESPONSE_MSG

    def refresh(self, force: bool = False) -> "Query[T]":
        if not self.enabled:
            return self
        with self._lock:
            generation = self._generation
            filters = dict(self.filters)
        try:
            value = self.cache.fetch(
                self.endpoint,
                filters,
                lambda: self._fetcher(filters),
                self.dedup_interval,
                force=force,
            )
        except (ApiError, ValueError) as e:
            logger.error("Error fetching {} {}: {}", self.endpoint, filters, e)
            self._commit(generation, error=e)
            return self
        self._commit(generation, data=value)
        return self

    def _commit(self, generation: int, data: Optional[T] = None, error: Optional[Exception] = None) -> None:
        with self._lock:
            if not self._mounted or generation != self._generation:
                logger.debug("Dropping stale response for {}", self.endpoint)
                return
            if error is None:
                self.data = data
            self.error = error
            self._settled = True

    def set_filters(self, filters: Optional[Mapping[str, Any]]) -> "Query[T]":
        new = dict(filters or {})
        with self._lock:
            if new == self.filters:
                return self
            self._generation += 1
            self.filters = new
            self.data = None
            self.error = None
            self._settled = False
        return self.refresh()

    def mutate(self, data: Optional[T] = None, revalidate: bool = True) -> Optional[T]:
        if data is not None:
            with self._lock:
                self.data = data
                self.error = None
                self._settled = True
                filters = dict(self.filters)
            self.cache.set(self.endpoint, filters, data)
        if revalidate:
            self.refresh(force=True)
        return self.data

    def unmount(self) -> None:
        with self._lock:
            self._mounted = False
            self._generation += 1
