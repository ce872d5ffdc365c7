"""
location_store.py
~~~~~~~~~~~~~~~~~
Recently searched / selected locations, kept **in memory only**.

Nothing survives a restart; there is no database table behind this.
Entries are deduplicated by the exact ``(lat, lon)`` pair as stored strings
(no distance threshold), so ``"9.65"`` and ``"9.650"`` are two different
places.

Public helpers
--------------
    RecentLocationStore.add(location)       -> StoredLocation
    RecentLocationStore.list(limit=5)       -> list[StoredLocation]  (newest first)
    RecentLocationStore.get_by_coordinates(lat, lon) -> StoredLocation | None
"""

from __future__ import annotations

import datetime as dt
import itertools
import logging
import threading
from typing import Any, Callable, Final

from .constants import RECENT_LOCATIONS_LIMIT
from .models import StoredLocation

UTC: Final = dt.timezone.utc
LOG = logging.getLogger("location_store")


def _utcnow() -> dt.datetime:
    return dt.datetime.now(UTC)


def _coord(value: Any) -> str:
    """Coordinates are stored as the caller sent them, in string form."""
    return value.strip() if isinstance(value, str) else str(value)


class RecentLocationStore:
    def __init__(self, clock: Callable[[], dt.datetime] = _utcnow) -> None:
        self._clock = clock
        self._ids = itertools.count(1)
        self._by_id: dict[int, StoredLocation] = {}
        self._last_ts: dt.datetime | None = None
        self._lock = threading.Lock()

    def _stamp(self) -> dt.datetime:
        # Successive writes must sort in write order even on a coarse clock.
        now = self._clock()
        if self._last_ts is not None and now <= self._last_ts:
            now = self._last_ts + dt.timedelta(microseconds=1)
        self._last_ts = now
        return now

    def _find(self, lat: str, lon: str) -> StoredLocation | None:
        for loc in self._by_id.values():
            if loc["lat"] == lat and loc["lon"] == lon:
                return loc
        return None

    def get_by_coordinates(self, lat: Any, lon: Any) -> StoredLocation | None:
        with self._lock:
            found = self._find(_coord(lat), _coord(lon))
            return dict(found) if found else None  # type: ignore[return-value]

    def add(self, location: dict[str, Any]) -> StoredLocation:
        """
        Insert *location* or bump ``last_updated`` of its existing twin.

        Args:
            location: ``{"name", "lat", "lon", "country"?}``.

        Returns:
            A copy of the stored entry.
        """
        lat, lon = _coord(location["lat"]), _coord(location["lon"])
        with self._lock:
            existing = self._find(lat, lon)
            if existing is not None:
                existing["last_updated"] = self._stamp().isoformat()
                LOG.info("[recent] bumped #%d %s", existing["id"], existing["name"])
                return dict(existing)  # type: ignore[return-value]

            entry: StoredLocation = {
                "id": next(self._ids),
                "name": str(location["name"]).strip(),
                "lat": lat,
                "lon": lon,
                "country": location.get("country") or "",
                "last_updated": self._stamp().isoformat(),
            }
            self._by_id[entry["id"]] = entry
            LOG.info("[recent] added #%d %s (%s, %s)", entry["id"], entry["name"], lat, lon)
            return dict(entry)  # type: ignore[return-value]

    def list(self, limit: int = RECENT_LOCATIONS_LIMIT) -> list[StoredLocation]:
        """Most recently used first, truncated to *limit*."""
        with self._lock:
            entries = sorted(
                self._by_id.values(),
                key=lambda loc: dt.datetime.fromisoformat(loc["last_updated"]),
                reverse=True,
            )
            return [dict(loc) for loc in entries[:limit]]  # type: ignore[misc]

    def __len__(self) -> int:
        return len(self._by_id)


__all__ = ["RecentLocationStore"]
