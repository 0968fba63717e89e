"""
QueryCache: dedup window, shared in-flight calls, invalidation.
"""

import threading
from unittest.mock import Mock

import pytest

from tenny.errors import TransportError
from tenny.services.query_cache import cache_key


class TestCacheKey:
    def test_filter_order_does_not_matter(self):
        assert cache_key("transactions", {"a": 1, "b": 2}) == cache_key("transactions", {"b": 2, "a": 1})

    def test_endpoint_and_filters_both_count(self):
        assert cache_key("transactions", {"page": 1}) != cache_key("transactions", {"page": 2})
        assert cache_key("transactions", None) != cache_key("categories", None)
        assert cache_key("transactions", None) == cache_key("transactions", {})


class TestDedup:
    def test_second_fetch_inside_window_is_served_from_cache(self, cache, clock):
        fetcher = Mock(return_value=["a"])

        first = cache.fetch("categories", None, fetcher, 30)
        clock.advance(29)
        second = cache.fetch("categories", None, fetcher, 30)

        assert first == second == ["a"]
        assert fetcher.call_count == 1

    def test_fetch_after_window_hits_network(self, cache, clock):
        fetcher = Mock(side_effect=[["a"], ["b"]])

        cache.fetch("categories", None, fetcher, 30)
        clock.advance(30)
        result = cache.fetch("categories", None, fetcher, 30)

        assert result == ["b"]
        assert fetcher.call_count == 2

    def test_force_bypasses_window(self, cache):
        fetcher = Mock(side_effect=[1, 2])

        cache.fetch("transactions", {"page": 1}, fetcher, 10)

        assert cache.fetch("transactions", {"page": 1}, fetcher, 10, force=True) == 2

    def test_distinct_filters_are_separate_entries(self, cache):
        fetcher = Mock(side_effect=["p1", "p2"])

        assert cache.fetch("transactions", {"page": 1}, fetcher, 10) == "p1"
        assert cache.fetch("transactions", {"page": 2}, fetcher, 10) == "p2"
        assert fetcher.call_count == 2

    def test_failures_are_not_cached(self, cache):
        fetcher = Mock(side_effect=[TransportError("down"), ["ok"]])

        with pytest.raises(TransportError):
            cache.fetch("categories", None, fetcher, 30)

        assert cache.fetch("categories", None, fetcher, 30) == ["ok"]
        assert fetcher.call_count == 2


class TestInflight:
    def test_concurrent_callers_share_one_call(self, cache):
        started = threading.Event()
        release = threading.Event()
        calls = []

        def slow_fetch():
            calls.append(1)
            started.set()
            release.wait(5)
            return "value"

        results = []
        owner = threading.Thread(target=lambda: results.append(cache.fetch("categories", None, slow_fetch, 30)))
        owner.start()
        assert started.wait(5)

        joiners = [
            threading.Thread(target=lambda: results.append(cache.fetch("categories", None, slow_fetch, 30)))
            for _ in range(3)
        ]
        for t in joiners:
            t.start()
        release.set()
        for t in [owner] + joiners:
            t.join(5)

        assert results == ["value"] * 4
        assert len(calls) == 1

    def test_joiners_see_the_owner_error(self, cache):
        started = threading.Event()
        release = threading.Event()

        def failing_fetch():
            started.set()
            release.wait(5)
            raise TransportError("boom")

        errors = []

        def call():
            try:
                cache.fetch("categories", None, failing_fetch, 30)
            except TransportError as e:
                errors.append(e)

        owner = threading.Thread(target=call)
        owner.start()
        assert started.wait(5)
        joiner = threading.Thread(target=call)
        joiner.start()
        release.set()
        owner.join(5)
        joiner.join(5)

        assert len(errors) == 2


class TestInvalidate:
    def test_invalidate_drops_every_key_of_the_endpoint(self, cache):
        cache.fetch("transactions", {"page": 1}, lambda: 1, 10)
        cache.fetch("transactions", {"page": 2}, lambda: 2, 10)
        cache.fetch("categories", None, lambda: "c", 30)

        assert cache.invalidate("transactions") == 2
        assert cache.peek("transactions", {"page": 1}) is None
        assert cache.peek("categories") == "c"

    def test_refetch_after_invalidate(self, cache):
        fetcher = Mock(side_effect=["old", "new"])
        cache.fetch("categories", None, fetcher, 30)

        cache.invalidate("categories")

        assert cache.fetch("categories", None, fetcher, 30) == "new"

    def test_result_of_call_invalidated_midflight_is_not_stored(self, cache):
        def fetch_then_invalidate():
            cache.invalidate("categories")
            return "stale"

        assert cache.fetch("categories", None, fetch_then_invalidate, 30) == "stale"
        assert cache.peek("categories") is None

    def test_set_and_clear(self, cache):
        cache.set("categories", None, ["x"])
        assert cache.peek("categories") == ["x"]

        cache.clear()

        assert cache.peek("categories") is None


class TestEviction:
    def test_expired_entry_is_dropped_when_a_new_key_arrives(self, cache, clock):
        cache.fetch("transactions", {"search": "a"}, lambda: 1, 10)
        clock.advance(11)

        cache.fetch("transactions", {"search": "ab"}, lambda: 2, 10)

        assert len(cache) == 1
        assert cache.peek("transactions", {"search": "a"}) is None
        assert cache.peek("transactions", {"search": "ab"}) == 2

    def test_fresh_entries_are_kept(self, cache, clock):
        cache.fetch("categories", None, lambda: "c", 30)
        cache.fetch("transactions", {"page": 1}, lambda: 1, 10)
        clock.advance(11)

        cache.fetch("transactions", {"page": 2}, lambda: 2, 10)

        assert len(cache) == 2
        assert cache.peek("categories") == "c"
        assert cache.peek("transactions", {"page": 1}) is None

    def test_failed_key_does_not_linger(self, cache):
        with pytest.raises(TransportError):
            cache.fetch("categories", None, Mock(side_effect=TransportError("down")), 30)

        cache.fetch("transactions", None, lambda: 1, 10)

        assert len(cache) == 1

    def test_inflight_entry_survives_eviction(self, cache, clock):
        started = threading.Event()
        release = threading.Event()

        def slow():
            started.set()
            release.wait(5)
            return "slow"

        owner = threading.Thread(target=cache.fetch, args=("categories", None, slow, 30))
        owner.start()
        started.wait(5)
        clock.advance(100)

        cache.fetch("transactions", None, lambda: 1, 10)
        release.set()
        owner.join(5)

        assert cache.peek("categories") == "slow"
