from __future__ import annotations

import threading
import time
import unittest

from leaderboard_node.feeds.ttl_cache import CoalescingTTLCache


class _Clock:
    def __init__(self):
        self.now = 0

    def __call__(self) -> int:
        return self.now


class TestCoalescingTTLCache(unittest.TestCase):
    def test_hit_until_ttl_elapses(self):
        clock = _Clock()
        cache = CoalescingTTLCache(ttl_ms=100, clock=clock)
        calls = []

        def loader():
            calls.append(clock.now)
            return f"v{len(calls)}"

        self.assertEqual(cache.get_or_load("k", loader), "v1")
        clock.now = 99
        self.assertEqual(cache.get_or_load("k", loader), "v1")
        clock.now = 100
        self.assertEqual(cache.get_or_load("k", loader), "v2")
        self.assertEqual(calls, [0, 100])

    def test_keys_are_independent(self):
        cache = CoalescingTTLCache(ttl_ms=1000, clock=_Clock())
        self.assertEqual(cache.get_or_load("a", lambda: 1), 1)
        self.assertEqual(cache.get_or_load("b", lambda: 2), 2)
        self.assertEqual(cache.get_or_load("a", lambda: 3), 1)

    def test_should_cache_false_skips_store(self):
        cache = CoalescingTTLCache(ttl_ms=1000, clock=_Clock())
        calls = []

        def loader():
            calls.append(1)
            return "bad"

        cache.get_or_load("k", loader, should_cache=lambda v: v != "bad")
        cache.get_or_load("k", loader, should_cache=lambda v: v != "bad")

        self.assertEqual(len(calls), 2)

    def test_concurrent_misses_are_coalesced(self):
        cache = CoalescingTTLCache(ttl_ms=1000, clock=_Clock())
        started = threading.Event()
        release = threading.Event()
        calls: list[int] = []
        results: list[str] = []

        def loader():
            calls.append(1)
            started.set()
            release.wait(timeout=5)
            return "value"

        def worker():
            results.append(cache.get_or_load("k", loader))

        first = threading.Thread(target=worker)
        first.start()
        self.assertTrue(started.wait(timeout=5))

        others = [threading.Thread(target=worker) for _ in range(4)]
        for thread in others:
            thread.start()
        time.sleep(0.05)
        release.set()

        for thread in [first, *others]:
            thread.join(timeout=5)

        self.assertEqual(len(calls), 1)
        self.assertEqual(results, ["value"] * 5)

    def test_loader_exception_reaches_caller_and_is_not_cached(self):
        cache = CoalescingTTLCache(ttl_ms=1000, clock=_Clock())

        def boom():
            raise RuntimeError("loader failed")

        with self.assertRaises(RuntimeError):
            cache.get_or_load("k", boom)
        self.assertEqual(cache.get_or_load("k", lambda: "ok"), "ok")


if __name__ == "__main__":
    unittest.main()
