"""Bounded in-memory caches for master contexts, backing variants and previews.

Concurrent callers asking for the same missing key may both compute it;
the later ``put`` overwrites the earlier one.
"""

from __future__ import annotations

import hashlib
import json
import logging
import threading
import time
from collections import OrderedDict
from collections.abc import Callable, Hashable
from typing import Any, Generic, TypeVar

logger = logging.getLogger(__name__)

V = TypeVar("V")

# Bumped whenever the preview rendering changes so stale keys miss
PREVIEW_KEY_VERSION = 7


class LruTtlCache(Generic[V]):
    """Thread-safe LRU cache with an optional per-entry time-to-live.

    ``capacity`` bounds the entry count; inserting beyond it evicts the
    least recently used entry. Entries older than ``ttl_s`` are dropped on
    access. ``clock`` is injectable for deterministic tests.
    """

    def __init__(
        self,
        capacity: int,
        ttl_s: float | None = None,
        clock: Callable[[], float] = time.monotonic,
        name: str = "cache",
    ) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self.capacity = capacity
        self.ttl_s = ttl_s
        self.name = name
        self._clock = clock
        self._entries: OrderedDict[Hashable, tuple[float, V]] = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def _expired(self, stamp: float, now: float) -> bool:
        return self.ttl_s is not None and now - stamp > self.ttl_s

    def get(self, key: Hashable) -> V | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self.misses += 1
                return None
            stamp, value = entry
            if self._expired(stamp, self._clock()):
                del self._entries[key]
                self.misses += 1
                logger.debug("%s: expired %r", self.name, key)
                return None
            self._entries.move_to_end(key)
            self.hits += 1
            return value

    def put(self, key: Hashable, value: V) -> None:
        with self._lock:
            self._entries[key] = (self._clock(), value)
            self._entries.move_to_end(key)
            while len(self._entries) > self.capacity:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug("%s: evicted %r", self.name, evicted)

    def get_or_compute(self, key: Hashable, compute: Callable[[], V]) -> V:
        value = self.get(key)
        if value is None:
            value = compute()
            self.put(key, value)
        return value

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def keys(self) -> list[Hashable]:
        with self._lock:
            return list(self._entries.keys())

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            entry = self._entries.get(key)
            return entry is not None and not self._expired(entry[0], self._clock())

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


def content_hash(data: bytes) -> str:
    """Identity of an uploaded image: sha256 of its bytes."""
    return hashlib.sha256(data).hexdigest()


def preview_key(**params: Any) -> str:
    """Stable key for a rendered preview from its request parameters."""
    payload = json.dumps(
        {"v": PREVIEW_KEY_VERSION, **params},
        sort_keys=True,
        default=str,
    )
    return hashlib.sha1(payload.encode("utf-8")).hexdigest()
