"""Tests for the LRU + TTL cache and cache keys."""

import threading

import pytest

from stickercut.engine.cache import LruTtlCache, content_hash, preview_key


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


class TestLru:
    def test_evicts_least_recently_used(self):
        c = LruTtlCache(2)
        c.put("a", 1)
        c.put("b", 2)
        assert c.get("a") == 1  # a is now most recent
        c.put("c", 3)
        assert "b" not in c
        assert c.keys() == ["a", "c"]

    def test_overwrite_refreshes(self):
        c = LruTtlCache(2)
        c.put("a", 1)
        c.put("b", 2)
        c.put("a", 10)
        c.put("c", 3)
        assert c.get("a") == 10
        assert c.get("b") is None

    def test_never_exceeds_capacity(self):
        c = LruTtlCache(5)
        for i in range(100):
            c.put(i, i)
            assert len(c) <= 5
        assert c.keys() == [95, 96, 97, 98, 99]

    def test_invalid_capacity(self):
        with pytest.raises(ValueError):
            LruTtlCache(0)


class TestTtl:
    def test_expires_on_access(self):
        clock = FakeClock()
        c = LruTtlCache(4, ttl_s=10, clock=clock)
        c.put("k", "v")
        clock.now = 10
        assert c.get("k") == "v"
        clock.now = 10.5
        assert c.get("k") is None
        assert len(c) == 0

    def test_contains_respects_ttl(self):
        clock = FakeClock()
        c = LruTtlCache(4, ttl_s=1, clock=clock)
        c.put("k", 1)
        assert "k" in c
        clock.now = 5
        assert "k" not in c

    def test_no_ttl_keeps_forever(self):
        clock = FakeClock()
        c = LruTtlCache(4, clock=clock)
        c.put("k", 1)
        clock.now = 1e9
        assert c.get("k") == 1


class TestGetOrCompute:
    def test_computes_once(self):
        c = LruTtlCache(4)
        calls = []

        def compute():
            calls.append(1)
            return "value"

        assert c.get_or_compute("k", compute) == "value"
        assert c.get_or_compute("k", compute) == "value"
        assert len(calls) == 1
        assert (c.hits, c.misses) == (1, 1)

    def test_clear(self):
        c = LruTtlCache(4)
        c.put("a", 1)
        c.clear()
        assert len(c) == 0
        assert c.get("a") is None

    def test_concurrent_puts_stay_bounded(self):
        c = LruTtlCache(8)

        def worker(offset):
            for i in range(200):
                c.get_or_compute((offset, i % 20), lambda: i)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert len(c) == 8


class TestKeys:
    def test_content_hash(self):
        assert content_hash(b"abc") == content_hash(b"abc")
        assert content_hash(b"abc") != content_hash(b"abd")
        assert len(content_hash(b"")) == 64

    def test_preview_key_is_order_independent(self):
        a = preview_key(image="x", width_cm=4, border_mm=3)
        b = preview_key(border_mm=3, image="x", width_cm=4)
        assert a == b
        assert preview_key(image="x", width_cm=5, border_mm=3) != a
        assert len(a) == 40
