"""
weather_service.py
~~~~~~~~~~~~~~~~~~
Cache-first orchestration between the HTTP layer and a provider adapter.

Every public coroutine follows the same path:

    make_key → cache.get → (miss) provider call → derive hazards → cache.set

Only successful results are cached; provider errors propagate unchanged so
the HTTP layer can map them to a status code.

Public helper
-------------
    WeatherService(provider, cache).get_current(place) -> CurrentBundle
        (plus get_forecast / get_onecall / get_alerts / get_historical /
         geocode / reverse_geocode / get_news)
"""

from __future__ import annotations

import datetime as dt
import logging
from typing import Any, Awaitable, Callable, TypeVar

from .cache import TTLCache, make_key
from .hazards import derive_hazards
from .models import (
    CurrentBundle,
    ForecastBundle,
    HistoricalBundle,
    Location,
    NewsItem,
    OneCallBundle,
    WeatherAlert,
)
from .news_service import fetch_news
from .providers.base import Place, ProviderAdapter

T = TypeVar("T")

LOG = logging.getLogger("weather_service")

NEWS_CACHE_KEY = "philippines_news"


def place_key(place: Place) -> str:
    """``"Manila"`` → ``"q=manila"``; ``(9.65, 123.85)`` → ``"9.65,123.85"``."""
    if isinstance(place, tuple):
        lat, lon = place
        return f"{lat},{lon}"
    return f"q={place.strip().casefold()}"


class WeatherService:
    def __init__(
        self,
        provider: ProviderAdapter,
        cache: TTLCache | None = None,
        *,
        ttl: float | None = None,
        news_fetcher: Callable[[], Awaitable[dict[str, list[NewsItem]]]] = fetch_news,
    ) -> None:
        self.provider = provider
        self.cache = cache if cache is not None else TTLCache()
        self.ttl = ttl
        self._fetch_news = news_fetcher

    async def _cached(self, key: str, produce: Callable[[], Awaitable[T]]) -> T:
        hit = self.cache.get(key)
        if hit is not None:
            return hit
        LOG.info("[%s] cache miss %s", self.provider.name, key)
        value = await produce()
        self.cache.set(key, value, self.ttl)
        return value

    # ── Weather ──────────────────────────────────────────────────────────
    async def get_current(self, place: Place) -> CurrentBundle:
        async def produce() -> CurrentBundle:
            bundle = await self.provider.fetch_current(place)
            bundle["hazards"] = derive_hazards(bundle["current"], bundle["hourly"])
            return bundle

        return await self._cached(make_key("weather", place_key(place)), produce)

    async def get_forecast(self, place: Place, days: int = 5) -> ForecastBundle:
        return await self._cached(
            make_key("forecast", place_key(place), f"days={days}"),
            lambda: self.provider.fetch_forecast(place, days),
        )

    async def get_onecall(self, place: Place) -> OneCallBundle:
        async def produce() -> OneCallBundle:
            bundle = await self.provider.fetch_onecall(place)
            bundle["hazards"] = derive_hazards(bundle["current"], bundle["hourly"])
            return bundle

        return await self._cached(make_key("onecall", place_key(place)), produce)

    async def get_alerts(self, lat: float, lon: float) -> list[WeatherAlert]:
        return await self._cached(
            make_key("alerts", place_key((lat, lon))),
            lambda: self.provider.fetch_alerts(lat, lon),
        )

    async def get_historical(
        self, lat: float, lon: float, when: dt.datetime
    ) -> HistoricalBundle:
        day = when.replace(hour=0, minute=0, second=0, microsecond=0)
        return await self._cached(
            make_key("historical", place_key((lat, lon)), when.date().isoformat()),
            lambda: self.provider.fetch_historical(lat, lon, day),
        )

    # ── Geocoding ────────────────────────────────────────────────────────
    async def geocode(self, text: str, limit: int = 5) -> list[Location]:
        return await self._cached(
            make_key("geocode", text, f"limit={limit}"),
            lambda: self.provider.geocode(text, limit),
        )

    async def reverse_geocode(self, lat: float, lon: float, limit: int = 1) -> list[Location]:
        return await self._cached(
            make_key("reverse_geocode", place_key((lat, lon)), f"limit={limit}"),
            lambda: self.provider.reverse_geocode(lat, lon, limit),
        )

    # ── News ─────────────────────────────────────────────────────────────
    async def get_news(self) -> dict[str, Any]:
        return await self._cached(NEWS_CACHE_KEY, self._fetch_news)


__all__ = ["WeatherService", "place_key"]
