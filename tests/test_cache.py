"""Tests for cache module."""

import threading
import time
from unittest.mock import patch

import pytest

from cache import CacheKeyError, CacheStats, TTLCache, _RWLock, make_key


@pytest.fixture
def cache():
    c = TTLCache(max_entries=10, default_ttl=60)
    yield c
    c.close()


class TestConstruction:

    def test_defaults(self) -> None:
        with TTLCache() as c:
            assert c.max_entries == 1000
            assert c.default_ttl == 300.0

    @pytest.mark.parametrize("max_entries", [0, -1])
    def test_rejects_non_positive_max_entries(self, max_entries) -> None:
        with pytest.raises(ValueError, match="max_entries"):
            TTLCache(max_entries=max_entries)

    @pytest.mark.parametrize("ttl", [0, -5])
    def test_rejects_non_positive_ttl(self, ttl) -> None:
        with pytest.raises(ValueError, match="default_ttl"):
            TTLCache(default_ttl=ttl)

    def test_rejects_non_positive_sweep_interval(self) -> None:
        with pytest.raises(ValueError, match="sweep_interval"):
            TTLCache(sweep_interval=0)


class TestTTLCache:
    """Test TTL cache get/set/expiry behavior."""

    def test_set_and_get(self, cache) -> None:
        cache.set("key1", "value1")
        assert cache.get("key1") == ("value1", True)

    def test_get_missing_key(self, cache) -> None:
        assert cache.get("nonexistent") == (None, False)

    def test_stored_none_is_found(self, cache) -> None:
        cache.set("key", None)
        assert cache.get("key") == (None, True)

    def test_expired_entry_is_absent(self) -> None:
        with TTLCache(default_ttl=5) as cache:
            with patch("cache.time.monotonic", return_value=1000.0):
                cache.set("key1", "value1")
            with patch("cache.time.monotonic", return_value=1005.0):
                assert cache.get("key1") == (None, False)

    def test_entry_within_ttl_returns_value(self) -> None:
        with TTLCache(default_ttl=10) as cache:
            with patch("cache.time.monotonic", return_value=1000.0):
                cache.set("key1", "value1")
            with patch("cache.time.monotonic", return_value=1009.9):
                assert cache.get("key1") == ("value1", True)

    def test_expired_entry_still_counted_until_swept(self) -> None:
        with TTLCache(default_ttl=5) as cache:
            with patch("cache.time.monotonic", return_value=1000.0):
                cache.set("a", 1)
                cache.set("b", 2)
            with patch("cache.time.monotonic", return_value=1006.0):
                assert len(cache) == 2
                assert cache.purge_expired() == 2
                assert len(cache) == 0

    def test_purge_removes_only_expired(self) -> None:
        with TTLCache(default_ttl=10) as cache:
            with patch("cache.time.monotonic", return_value=1000.0):
                cache.set("old", "old_val")
            with patch("cache.time.monotonic", return_value=1008.0):
                cache.set("new", "new_val")
            with patch("cache.time.monotonic", return_value=1011.0):
                assert cache.purge_expired() == 1
                assert cache.get("old") == (None, False)
                assert cache.get("new") == ("new_val", True)

    def test_overwrite_resets_ttl(self) -> None:
        with TTLCache(default_ttl=10) as cache:
            with patch("cache.time.monotonic", return_value=1000.0):
                cache.set("key", "v1")
            with patch("cache.time.monotonic", return_value=1008.0):
                cache.set("key", "v2")
            with patch("cache.time.monotonic", return_value=1015.0):
                assert cache.get("key") == ("v2", True)
            assert len(cache) == 1

    def test_set_with_custom_ttl(self, cache) -> None:
        with patch("cache.time.monotonic", return_value=1000.0):
            cache.set_with_ttl("short", 1, 2)
            cache.set("long", 2)
        with patch("cache.time.monotonic", return_value=1003.0):
            assert cache.get("short") == (None, False)
            assert cache.get("long") == (2, True)

    @pytest.mark.parametrize("ttl", [0, -1])
    def test_non_positive_ttl_is_immediately_expired(self, cache, ttl) -> None:
        cache.set_with_ttl("key", "value", ttl)
        assert cache.get("key") == (None, False)

    def test_delete(self, cache) -> None:
        cache.set("key", "value")
        cache.delete("key")
        assert cache.get("key") == (None, False)
        assert len(cache) == 0

    def test_delete_missing_is_noop(self, cache) -> None:
        cache.delete("missing")
        assert len(cache) == 0

    def test_clear(self, cache) -> None:
        for i in range(5):
            cache.set(f"k{i}", i)
        cache.clear()
        assert len(cache) == 0
        assert cache.get("k0") == (None, False)

    def test_stores_complex_objects(self, cache) -> None:
        obj = {"nested": [1, 2, 3], "flag": True}
        cache.set("complex", obj)
        assert cache.get("complex") == (obj, True)


class TestEviction:

    def test_oldest_inserted_is_evicted(self) -> None:
        with TTLCache(max_entries=2, default_ttl=300) as cache:
            for t, (k, v) in enumerate([("a", 1), ("b", 2), ("c", 3)]):
                with patch("cache.time.monotonic", return_value=1000.0 + t):
                    cache.set(k, v)
            with patch("cache.time.monotonic", return_value=1003.0):
                assert len(cache) == 2
                assert cache.get("a") == (None, False)
                assert cache.get("b") == (2, True)
                assert cache.get("c") == (3, True)

    def test_reads_do_not_protect_from_eviction(self) -> None:
        with TTLCache(max_entries=2) as cache:
            cache.set("a", 1)
            cache.set("b", 2)
            cache.get("a")
            cache.set("c", 3)
            assert cache.get("a") == (None, False)
            assert cache.get("b") == (2, True)

    def test_replacing_existing_key_does_not_evict(self) -> None:
        with TTLCache(max_entries=2) as cache:
            cache.set("a", 1)
            cache.set("b", 2)
            cache.set("a", 10)
            assert len(cache) == 2
            assert cache.get("a") == (10, True)
            assert cache.get("b") == (2, True)

    def test_replaced_key_becomes_newest(self) -> None:
        with TTLCache(max_entries=2) as cache:
            with patch("cache.time.monotonic", return_value=1000.0):
                cache.set("a", 1)
            with patch("cache.time.monotonic", return_value=1001.0):
                cache.set("b", 2)
            with patch("cache.time.monotonic", return_value=1002.0):
                cache.set("a", 10)
            with patch("cache.time.monotonic", return_value=1003.0):
                cache.set("c", 3)
                assert cache.get("b") == (None, False)
                assert cache.get("a") == (10, True)

    def test_len_never_exceeds_capacity(self) -> None:
        with TTLCache(max_entries=3) as cache:
            for i in range(20):
                cache.set(f"k{i}", i)
                assert len(cache) <= 3
            assert [cache.get(f"k{i}")[1] for i in range(17, 20)] == [True, True, True]

    def test_equal_timestamps_evict_first_inserted(self) -> None:
        with TTLCache(max_entries=2) as cache:
            with patch("cache.time.monotonic", return_value=1000.0):
                cache.set("a", 1)
                cache.set("b", 2)
                cache.set("c", 3)
                assert cache.get("a") == (None, False)
                assert cache.get("b") == (2, True)


class TestStats:

    def test_empty_stats(self, cache) -> None:
        assert cache.get_stats() == CacheStats(
            total_items=0, max_entries=10, default_ttl=60.0,
            oldest_item_age=0.0, newest_item_age=0.0,
        )

    def test_ages(self, cache) -> None:
        with patch("cache.time.monotonic", return_value=1000.0):
            cache.set("a", 1)
        with patch("cache.time.monotonic", return_value=1004.0):
            cache.set("b", 2)
        with patch("cache.time.monotonic", return_value=1010.0):
            stats = cache.get_stats()
        assert stats.total_items == 2
        assert stats.oldest_item_age == 10.0
        assert stats.newest_item_age == 6.0

    def test_to_dict(self, cache) -> None:
        data = cache.get_stats().to_dict()
        assert set(data) == {
            "total_items", "max_entries", "default_ttl", "oldest_item_age", "newest_item_age",
        }


class TestSweeper:

    def test_sweeper_removes_expired_entries(self) -> None:
        with TTLCache(default_ttl=60, sweep_interval=0.02) as cache:
            cache.set_with_ttl("gone", 1, 0.01)
            cache.set("kept", 2)
            deadline = time.monotonic() + 2.0
            while len(cache) > 1 and time.monotonic() < deadline:
                time.sleep(0.01)
            assert len(cache) == 1
            assert cache.get("kept") == (2, True)

    def test_close_stops_sweeper(self) -> None:
        cache = TTLCache(sweep_interval=0.01)
        cache.close()
        assert cache.closed
        assert not cache._sweeper.is_alive()
        cache.close()

    def test_cache_usable_after_close(self) -> None:
        cache = TTLCache()
        cache.close()
        cache.set("key", "value")
        assert cache.get("key") == ("value", True)


class TestRWLock:

    def _wait_for(self, predicate, timeout=2.0) -> bool:
        deadline = time.monotonic() + timeout
        while not predicate():
            if time.monotonic() > deadline:
                return False
            time.sleep(0.005)
        return True

    def test_readers_share_the_lock(self) -> None:
        lock = _RWLock()
        lock.acquire_read()
        acquired = threading.Event()

        def reader() -> None:
            lock.acquire_read()
            acquired.set()
            lock.release_read()

        t = threading.Thread(target=reader)
        t.start()
        assert acquired.wait(2.0)
        t.join()
        lock.release_read()

    def test_new_readers_wait_behind_queued_writer(self) -> None:
        lock = _RWLock()
        order = []
        lock.acquire_read()

        def writer() -> None:
            lock.acquire_write()
            order.append("write")
            lock.release_write()

        def reader() -> None:
            lock.acquire_read()
            order.append("read")
            lock.release_read()

        w = threading.Thread(target=writer)
        w.start()
        assert self._wait_for(lambda: lock._writers_waiting == 1)

        r = threading.Thread(target=reader)
        r.start()
        time.sleep(0.05)
        assert order == []

        lock.release_read()
        w.join(2.0)
        r.join(2.0)
        assert order == ["write", "read"]
        assert lock._writers_waiting == 0

    def test_steady_reads_do_not_starve_set(self) -> None:
        with TTLCache(max_entries=10) as cache:
            stop = threading.Event()

            def reader() -> None:
                while not stop.is_set():
                    cache.get("k")
                    len(cache)

            readers = [threading.Thread(target=reader) for _ in range(4)]
            for t in readers:
                t.start()
            try:
                done = threading.Event()

                def writer() -> None:
                    for i in range(50):
                        cache.set("k", i)
                    done.set()

                w = threading.Thread(target=writer)
                w.start()
                assert done.wait(5.0)
                w.join()
            finally:
                stop.set()
                for t in readers:
                    t.join()
            assert cache.get("k") == (49, True)


class TestConcurrency:

    def test_concurrent_writers_respect_capacity(self) -> None:
        with TTLCache(max_entries=50) as cache:
            errors = []

            def worker(n: int) -> None:
                try:
                    for i in range(200):
                        cache.set(f"{n}-{i}", i)
                        cache.get(f"{n}-{i // 2}")
                        if i % 10 == 0:
                            cache.delete(f"{n}-{i - 5}")
                except Exception as exc:  # pragma: no cover
                    errors.append(exc)

            threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
            for t in threads:
                t.start()
            for t in threads:
                t.join()

            assert errors == []
            assert len(cache) <= 50


class TestMakeKey:

    def test_deterministic(self) -> None:
        assert make_key("search", "golang", 10) == make_key("search", "golang", 10)

    def test_known_digest_is_stable(self) -> None:
        # sha256("6:search" "6:golang" "2:10")
        import hashlib
        expected = hashlib.sha256(b"6:search6:golang2:10").hexdigest()
        assert make_key("search", "golang", 10) == expected

    def test_fixed_length_hex(self) -> None:
        key = make_key("search", "a much longer query " * 20, 5)
        assert len(key) == 64
        assert all(c in "0123456789abcdef" for c in key)

    def test_numeric_part_distinguishes_keys(self) -> None:
        assert make_key("search", "golang", 10) != make_key("search", "golang", 25)

    def test_integer_encoded_as_decimal_text(self) -> None:
        assert make_key("search", "golang", 10) == make_key("search", "golang", "10")

    def test_part_boundaries_matter(self) -> None:
        assert make_key("ab", "c") != make_key("a", "bc")

    def test_query_distinguishes_keys(self) -> None:
        assert make_key("search", "golang", 10) != make_key("search", "python", 10)

    @pytest.mark.parametrize("bad", [None, 1.5, True, b"bytes", ["list"]])
    def test_unsupported_part_raises(self, bad) -> None:
        with pytest.raises(CacheKeyError):
            make_key("search", bad)

    def test_no_parts_raises(self) -> None:
        with pytest.raises(CacheKeyError):
            make_key()

    def test_key_error_is_type_error(self) -> None:
        assert issubclass(CacheKeyError, TypeError)
