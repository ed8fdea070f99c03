"""TTL cache that coalesces concurrent misses for the same key."""
from __future__ import annotations

import threading
from concurrent.futures import Future
from typing import Callable, TypeVar

from cachetools import TTLCache

from leaderboard_node.utils.timestamps import now_ms

T = TypeVar("T")


class CoalescingTTLCache:
    """`cachetools.TTLCache` timed in epoch-ms, with single-flight loading.

    cachetools caches are not thread safe, so every access goes through `_lock`.
    """

    def __init__(self, ttl_ms: int, maxsize: int = 64, clock: Callable[[], int] = now_ms):
        self._entries: TTLCache = TTLCache(maxsize=maxsize, ttl=ttl_ms, timer=clock)
        self._inflight: dict[str, Future] = {}
        self._lock = threading.Lock()

    def get_or_load(
        self,
        key: str,
        loader: Callable[[], T],
        should_cache: Callable[[T], bool] = lambda _: True,
    ) -> T:
        """Return the cached value for `key`, or run `loader` exactly once.

        Callers that miss while another thread is already loading the same key
        wait for that load instead of issuing their own.
        """
        with self._lock:
            try:
                return self._entries[key]
            except KeyError:
                pass
            future = self._inflight.get(key)
            owner = future is None
            if owner:
                future = Future()
                self._inflight[key] = future

        if not owner:
            return future.result()

        try:
            value = loader()
        except BaseException as exc:
            with self._lock:
                self._inflight.pop(key, None)
            future.set_exception(exc)
            raise

        with self._lock:
            if should_cache(value):
                self._entries[key] = value
            self._inflight.pop(key, None)
        future.set_result(value)
        return value
