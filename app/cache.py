"""Process-wide cache for upstream responses with per-entry expiry."""

from __future__ import annotations

import threading
import time
from typing import Any, Callable, Hashable

from cachetools import TLRUCache


def _expires_at(_key: Hashable, entry: tuple[Any, float], now: float) -> float:
    return now + entry[1]


class TTLCache:
    """Key/value store where every entry carries its own time-to-live.

    Expiry is checked lazily: a ``get`` drops stale entries before looking
    the key up, there is no background sweeper. The number of live entries
    is capped and the least recently used entry is evicted first once the
    cap is reached.
    """

    def __init__(
        self,
        max_entries: int = 1_024,
        *,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self._entries: TLRUCache = TLRUCache(
            maxsize=max_entries, ttu=_expires_at, timer=timer
        )
        self._lock = threading.Lock()

    def get(self, key: Hashable) -> Any | None:
        """Return the cached value, or ``None`` when missing or expired."""

        with self._lock:
            self._entries.expire()
            entry = self._entries.get(key)
        if entry is None:
            return None
        return entry[0]

    def put(self, key: Hashable, value: Any, ttl: float) -> None:
        """Store ``value`` under ``key`` for ``ttl`` seconds."""

        with self._lock:
            self._entries[key] = (value, float(ttl))

    def __len__(self) -> int:
        with self._lock:
            self._entries.expire()
            return len(self._entries)
