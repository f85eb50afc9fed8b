"""Bounded in-process cache of normalized bar sequences."""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from collections.abc import Iterable

from candle_feed.prices.models import Bar

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 100


def make_cache_key(symbol: str, range_: str, interval: str) -> str:
    """Build the cache key for one request shape.

    ``|`` never appears in tickers or Yahoo range/interval tokens, so
    distinct request shapes cannot collide.
    """
    return f"{symbol}|{range_}|{interval}"


class BarCache:
    """Insertion-ordered key → bar sequence store with a fixed capacity.

    When an insert pushes the entry count past ``capacity`` the
    oldest-inserted key is evicted. Reads do not refresh an entry (this is
    FIFO, not LRU), and entries never expire by time.

    Values are stored as tuples of frozen Bars, so nothing a caller does
    with a returned value can alter the cached copy. A single lock guards
    every operation. Concurrent misses for the same key are not coalesced;
    both callers fetch and the later ``put`` wins.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self._capacity = capacity
        self._entries: OrderedDict[str, tuple[Bar, ...]] = OrderedDict()
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    def get(self, key: str) -> tuple[Bar, ...] | None:
        """Return the stored sequence for ``key``, or None on a miss."""
        with self._lock:
            return self._entries.get(key)

    def put(self, key: str, bars: Iterable[Bar]) -> None:
        """Insert or overwrite ``key``, then evict down to capacity.

        An overwrite counts as a fresh insertion and moves the key to the
        newest position.
        """
        value = tuple(bars)
        with self._lock:
            self._entries.pop(key, None)
            self._entries[key] = value
            while len(self._entries) > self._capacity:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug("Evicted cache entry %s", evicted)

    def keys(self) -> list[str]:
        """Keys ordered oldest-inserted first."""
        with self._lock:
            return list(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
