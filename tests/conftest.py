"""
tests/conftest.py
~~~~~~~~~~~~~~~~~
Global pytest fixtures.

* ``StubProvider`` – an in-process :class:`ProviderAdapter` that returns
  canned canonical bundles and counts calls per capability, so cache
  behaviour can be asserted without any network.
* ``FakeClock`` – manually advanced monotonic clock for TTL tests.
* ``make_client`` – builds an isolated FastAPI app (own cache, own store)
  around any provider.
"""

from __future__ import annotations

import copy
import datetime as dt
from collections import Counter
from typing import Any, Callable

import pytest
from fastapi.testclient import TestClient

from skywatch.cache import TTLCache
from skywatch.config import Settings
from skywatch.errors import NotFoundError
from skywatch.location_store import RecentLocationStore
from skywatch.main import create_app
from skywatch.providers.base import ProviderAdapter
from skywatch.weather_service import WeatherService

pytest_plugins = ["pytest_asyncio"]


class FakeClock:
    """Callable clock; advance with ``clock.advance(seconds)``."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


CURRENT: dict[str, Any] = {
    "temperature": 84,
    "temperature_raw": 84.2,
    "feels_like": 90,
    "temp_min": 79,
    "temp_max": 89,
    "humidity": 70,
    "pressure": 1009.0,
    "wind_speed": 8.0,
    "wind_deg": 90,
    "uv_index": 9.0,
    "precipitation": 0.0,
    "condition": "Partly cloudy",
    "description": "partly cloudy",
    "icon": "https://cdn.weatherapi.com/weather/64x64/day/116.png",
    "weather_code": 1003,
    "thunderstorm": False,
    "sunrise": "2025-03-09T06:02",
    "sunset": "2025-03-09T18:01",
    "timestamp": "2025-03-09T14:15",
}

LOCATION: dict[str, Any] = {
    "name": "Tagbilaran City",
    "lat": 9.65,
    "lon": 123.85,
    "country": "Philippines",
}


class StubProvider(ProviderAdapter):
    """Canned canonical data; ``calls`` counts invocations per method."""

    name = "stub"

    def __init__(self, current: dict[str, Any] | None = None) -> None:
        super().__init__(api_key="stub")
        self.current = current or CURRENT
        self.calls: Counter[str] = Counter()
        self.geocode_results: list[dict[str, Any]] = [LOCATION]
        self.alerts: list[dict[str, Any]] = []
        self.historical_days: list[dt.datetime] = []

    async def fetch_current(self, place):
        self.calls["current"] += 1
        return {
            "provider": self.name,
            "units": "imperial",
            "location": dict(LOCATION),
            "current": copy.deepcopy(self.current),
            "hourly": [],
            "hazards": [],
            "approximated": [],
        }

    async def fetch_forecast(self, place, days=5):
        self.calls["forecast"] += 1
        return {
            "provider": self.name,
            "units": "imperial",
            "location": dict(LOCATION),
            "hourly": [],
            "daily": [
                {
                    "date": "2025-03-09",
                    "label": "Today",
                    "temp_min": 79,
                    "temp_max": 89,
                    "condition": "Sunny",
                    "icon": "https://example.test/113.png",
                }
            ][:days],
            "approximated": [],
        }

    async def fetch_onecall(self, place):
        self.calls["onecall"] += 1
        bundle = await self.fetch_current(place)
        self.calls["current"] -= 1
        bundle["daily"] = []
        bundle["alerts"] = list(self.alerts)
        return bundle

    async def fetch_alerts(self, lat, lon):
        self.calls["alerts"] += 1
        return list(self.alerts)

    async def fetch_historical(self, lat, lon, when):
        self.calls["historical"] += 1
        self.historical_days.append(when)
        return {
            "provider": self.name,
            "units": "imperial",
            "location": {"name": "(9.65,123.85)", "lat": lat, "lon": lon},
            "date": when.date().isoformat(),
            "temp_min": 78,
            "temp_max": 88,
            "total_precipitation": 1.2,
            "hours": [],
        }

    async def geocode(self, text, limit=5):
        self.calls["geocode"] += 1
        if not self.geocode_results:
            raise NotFoundError(f"No location found for {text!r}")
        return self.geocode_results[:limit]

    async def reverse_geocode(self, lat, lon, limit=1):
        self.calls["reverse_geocode"] += 1
        return [dict(LOCATION, lat=lat, lon=lon)][:limit]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def stub_provider() -> StubProvider:
    return StubProvider()


@pytest.fixture
def news_calls() -> list[int]:
    return []


@pytest.fixture
def service(stub_provider: StubProvider, clock: FakeClock, news_calls: list[int]) -> WeatherService:
    async def fake_news() -> dict[str, list[dict[str, Any]]]:
        news_calls.append(1)
        return {"GMA News": [], "ABS-CBN": []}

    return WeatherService(stub_provider, TTLCache(clock=clock), news_fetcher=fake_news)


@pytest.fixture
def make_client() -> Callable[..., TestClient]:
    def _make(
        service: WeatherService,
        store: RecentLocationStore | None = None,
        **client_kwargs: Any,
    ) -> TestClient:
        app = create_app(settings=Settings(), service=service, store=store)
        return TestClient(app, **client_kwargs)

    return _make


@pytest.fixture
def client(make_client, service: WeatherService) -> TestClient:
    return make_client(service)


# ------------------------------------------------------------------ #
# Upstream payloads
# ------------------------------------------------------------------ #
def _wa_hour(day: dt.date, hour: int, **overrides: Any) -> dict[str, Any]:
    item = {
        "time": f"{day.isoformat()} {hour:02d}:00",
        "temp_f": 80.0 + hour % 5,
        "humidity": 75,
        "precip_mm": 0.0,
        "chance_of_rain": 10,
        "condition": {
            "text": "Partly cloudy",
            "icon": "//cdn.weatherapi.com/weather/64x64/day/116.png",
            "code": 1003,
        },
    }
    item.update(overrides)
    return item


def _wa_day(day: dt.date) -> dict[str, Any]:
    return {
        "date": day.isoformat(),
        "day": {
            "mintemp_f": 78.1,
            "maxtemp_f": 89.6,
            "totalprecip_mm": 3.4,
            "condition": {
                "text": "Patchy rain nearby",
                "icon": "//cdn.weatherapi.com/weather/64x64/day/176.png",
                "code": 1063,
            },
        },
        "astro": {"sunrise": "06:02 AM", "sunset": "06:01 PM"},
        "hour": [_wa_hour(day, h) for h in range(24)],
    }


@pytest.fixture
def weatherapi_payload() -> dict[str, Any]:
    """A ``forecast.json`` body for Tagbilaran at 14:30 local, two days."""
    today = dt.date(2025, 3, 9)
    return {
        "location": {
            "name": "Tagbilaran City",
            "region": "Bohol",
            "country": "Philippines",
            "lat": 9.65,
            "lon": 123.85,
            "localtime": "2025-03-09 14:30",
        },
        "current": {
            "last_updated": "2025-03-09 14:15",
            "temp_f": 84.2,
            "feelslike_f": 91.0,
            "humidity": 70,
            "pressure_mb": 1009.0,
            "wind_mph": 8.1,
            "wind_degree": 90,
            "precip_mm": 0.0,
            "uv": 9.0,
            "condition": {
                "text": "Partly cloudy",
                "icon": "//cdn.weatherapi.com/weather/64x64/day/116.png",
                "code": 1003,
            },
        },
        "forecast": {
            "forecastday": [_wa_day(today), _wa_day(today + dt.timedelta(days=1))]
        },
        "alerts": {"alert": []},
    }
