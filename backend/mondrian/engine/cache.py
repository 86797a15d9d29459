"""Bounded result cache for reconstructed squares.

The cache is an LRU mapping owned by whoever hosts the pipeline (the FastAPI
app keeps one on ``app.state``) rather than module-level state. Keys are
``(dataset_id, item_count)``; two datasets of equal length collide unless the
caller gives them distinct ids.

``get_or_compute`` runs at most one computation per key at a time: callers
that arrive while a key is being computed block until it finishes and share
its value (or its exception). Failed computations are never stored.
"""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from collections.abc import Callable
from typing import Any, NamedTuple

logger = logging.getLogger(__name__)


class CacheKey(NamedTuple):
    dataset_id: str
    item_count: int


class _InFlight:
    """A computation other threads can wait on."""

    def __init__(self) -> None:
        self.done = threading.Event()
        self.value: Any = None
        self.error: BaseException | None = None


class SquareCache:
    """Thread-safe LRU cache with single-flight computation per key."""

    def __init__(self, max_entries: int = 256) -> None:
        if max_entries < 1:
            raise ValueError(f"max_entries must be >= 1, got {max_entries}")
        self.max_entries = max_entries
        self._entries: OrderedDict[CacheKey, Any] = OrderedDict()
        self._in_flight: dict[CacheKey, _InFlight] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0
        self.evictions = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def get(self, key: CacheKey) -> Any | None:
        with self._lock:
            if key not in self._entries:
                return None
            self._entries.move_to_end(key)
            self.hits += 1
            return self._entries[key]

    def get_or_compute(self, key: CacheKey, compute: Callable[[], Any]) -> Any:
        """Return the cached value for ``key``, computing it once if absent."""
        return self.fetch(key, compute)[0]

    def fetch(self, key: CacheKey, compute: Callable[[], Any]) -> tuple[Any, bool]:
        """Like ``get_or_compute`` but also reports whether this call computed.

        The flag is False only for the caller that ran ``compute``; hits and
        callers that waited on another thread's computation get True.
        """
        with self._lock:
            if key in self._entries:
                self._entries.move_to_end(key)
                self.hits += 1
                logger.debug("Cache hit for %s", key)
                return self._entries[key], True
            pending = self._in_flight.get(key)
            owner = pending is None
            if owner:
                pending = self._in_flight[key] = _InFlight()
                self.misses += 1

        if not owner:
            logger.debug("Waiting on in-flight computation for %s", key)
            pending.done.wait()
            if pending.error is not None:
                raise pending.error
            return pending.value, True

        logger.debug("Cache miss for %s, computing", key)
        try:
            value = compute()
        except BaseException as e:
            with self._lock:
                del self._in_flight[key]
            pending.error = e
            pending.done.set()
            raise

        with self._lock:
            self._entries[key] = value
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                self.evictions += 1
                logger.debug("Evicted %s", evicted)
            del self._in_flight[key]
        pending.value = value
        pending.done.set()
        return value, False

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def stats(self) -> dict[str, int]:
        with self._lock:
            return {
                "entries": len(self._entries),
                "max_entries": self.max_entries,
                "hits": self.hits,
                "misses": self.misses,
                "evictions": self.evictions,
            }
