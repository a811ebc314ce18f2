"""Time-boxed, size-bounded result caches.

Two instances back the maps service: one for link resolutions and one for
route results. Eviction keeps the most recent ``capacity`` writes once the
cache overflows (oldest write goes first); reads do not refresh an entry, so
this is deliberately not an LRU.
"""

from __future__ import annotations

import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Generic, Hashable, Optional, Protocol, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class ResultCache(Protocol[K, V]):
    def get(self, key: K) -> Optional[V]: ...

    def put(self, key: K, value: V) -> None: ...


@dataclass(frozen=True, slots=True)
class _Entry(Generic[V]):
    value: V
    written_at: float


class TTLCache(Generic[K, V]):
    def __init__(
        self,
        ttl_seconds: float,
        capacity: int,
        clock: Callable[[], float] = time.monotonic,
        name: str = "cache",
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("Cache TTL must be positive.")
        if capacity < 1:
            raise ValueError("Cache capacity must be at least 1.")
        self.ttl_seconds = ttl_seconds
        self.capacity = capacity
        self.name = name
        self._clock = clock
        self._entries: OrderedDict[K, _Entry[V]] = OrderedDict()
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def get(self, key: K) -> Optional[V]:
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None
            if now - entry.written_at >= self.ttl_seconds:
                del self._entries[key]
                self._misses += 1
                return None
            self._hits += 1
            return entry.value

    def put(self, key: K, value: V) -> None:
        entry = _Entry(value=value, written_at=self._clock())
        with self._lock:
            # Replace rather than update so the key moves to the newest position.
            self._entries.pop(key, None)
            self._entries[key] = entry
            while len(self._entries) > self.capacity:
                self._entries.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def stats(self) -> dict:
        with self._lock:
            return {
                "name": self.name,
                "entries": len(self._entries),
                "capacity": self.capacity,
                "ttl_seconds": self.ttl_seconds,
                "hits": self._hits,
                "misses": self._misses,
            }
