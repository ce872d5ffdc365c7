"""
cache.py
~~~~~~~~
In-memory TTL cache for normalized upstream responses.

* Expiry is lazy: an entry is dropped the first time it is read after
  ``expires_at``; there is no sweeper task.
* Size is bounded: once ``max_entries`` is exceeded the least-recently-used
  entries are evicted, so a stream of free-text queries cannot grow memory
  without limit.
* Writers to the same key race harmlessly (last writer wins); a lost race
  only costs a duplicate upstream call.

Keys come from :func:`make_key`, e.g. ``weather:q=tagbilaran city`` or
``historical:9.65,123.85:2025-03-09``.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from typing import Any, Callable

from .constants import CACHE_MAX_ENTRIES, CACHE_TTL_S

LOG = logging.getLogger("cache")


def make_key(endpoint: str, *parts: Any) -> str:
    """
    Build a deterministic cache key.

    Strings are trimmed and case-folded so ``"Manila"`` and ``" manila "``
    share an entry; ``None`` parts are skipped.
    """
    cleaned: list[str] = []
    for part in parts:
        if part is None:
            continue
        if isinstance(part, str):
            cleaned.append(part.strip().casefold())
        else:
            cleaned.append(str(part))
    return ":".join([endpoint, *cleaned])


class TTLCache:
    """Key/value store with per-entry TTL and an LRU size bound."""

    def __init__(
        self,
        default_ttl: float = CACHE_TTL_S,
        max_entries: int = CACHE_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        self.default_ttl = default_ttl
        self.max_entries = max_entries
        self._clock = clock
        self._data: OrderedDict[str, tuple[float, Any]] = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: str) -> Any | None:
        """Return the cached value, or ``None`` if absent or expired."""
        with self._lock:
            item = self._data.get(key)
            if item is None:
                LOG.debug("miss %s", key)
                return None
            expires_at, value = item
            if self._clock() >= expires_at:
                del self._data[key]
                LOG.debug("expired %s", key)
                return None
            self._data.move_to_end(key)
            LOG.debug("hit %s", key)
            return value

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        """Store *value* for *ttl* seconds (``default_ttl`` when omitted)."""
        ttl = self.default_ttl if ttl is None else ttl
        with self._lock:
            self._data[key] = (self._clock() + ttl, value)
            self._data.move_to_end(key)
            while len(self._data) > self.max_entries:
                evicted, _ = self._data.popitem(last=False)
                LOG.debug("evict %s", evicted)

    def clear(self) -> None:
        with self._lock:
            self._data.clear()

    def __contains__(self, key: object) -> bool:
        with self._lock:
            item = self._data.get(key)  # type: ignore[arg-type]
            return item is not None and self._clock() < item[0]

    def __len__(self) -> int:
        return len(self._data)


__all__ = ["TTLCache", "make_key"]
