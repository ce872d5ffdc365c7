"""
providers/weatherapi.py
~~~~~~~~~~~~~~~~~~~~~~~
WeatherAPI.com adapter.

Every weather capability is served from ``/v1/forecast.json`` (current +
hourly + daily + alerts in one payload), history from ``/v1/history.json``,
and both geocoding directions from ``/v1/search.json`` (reverse lookups pass
``q="lat,lon"``).

Payload → canonical mapping lives in the module-level ``normalize_*``
functions so it can be tested without any HTTP.
"""

from __future__ import annotations

import datetime as dt
from typing import Any

from dateutil import parser as dtparse

from ..errors import NotFoundError
from ..models import (
    UNITS,
    CurrentBundle,
    CurrentWeather,
    DailyForecast,
    ForecastBundle,
    HistoricalBundle,
    HistoricalHour,
    HourlyForecast,
    Location,
    OneCallBundle,
    WeatherAlert,
)
from .base import (
    Place,
    ProviderAdapter,
    approx_sun_times,
    approx_temp_range,
    day_label,
    normalizing,
)

BASE_URL = "https://api.weatherapi.com/v1"
PROVIDER = "weatherapi"

# "Thundery outbreaks possible" + the four "... with thunder" codes.
THUNDER_CODES: frozenset[int] = frozenset({1087, 1273, 1276, 1279, 1282})

HOURS_AHEAD = 24
MAX_FORECAST_DAYS = 14


# ── Helpers ──────────────────────────────────────────────────────────────
def _local(stamp: str) -> dt.datetime:
    """``"2025-03-09 14:30"`` → naive local datetime."""
    return dt.datetime.strptime(stamp, "%Y-%m-%d %H:%M")


def _icon(url: str) -> str:
    return f"https:{url}" if url.startswith("//") else url


def _astro_time(day: dt.date, clock: str | None) -> str | None:
    """``"06:02 AM"`` on *day* → ``"2025-03-09T06:02"``; ``None`` if unusable."""
    if not clock:
        return None
    try:
        t = dt.datetime.strptime(clock.strip(), "%I:%M %p").time()
    except ValueError:
        return None
    return dt.datetime.combine(day, t).isoformat(timespec="minutes")


def normalize_location(loc: dict[str, Any]) -> Location:
    out: Location = {
        "name": loc["name"],
        "lat": float(loc["lat"]),
        "lon": float(loc["lon"]),
    }
    if loc.get("country"):
        out["country"] = loc["country"]
    if loc.get("region"):
        out["state"] = loc["region"]
    return out


def _forecast_days(payload: dict[str, Any]) -> list[dict[str, Any]]:
    return (payload.get("forecast") or {}).get("forecastday") or []


# ── Normalizers ──────────────────────────────────────────────────────────
def normalize_current(
    payload: dict[str, Any], approximated: list[str]
) -> CurrentWeather:
    """
    Map ``payload["current"]`` (+ today's forecast day, if present).

    Fields the payload cannot supply are filled by shims and their paths
    appended to *approximated*.
    """
    cur = payload["current"]
    local_now = _local(payload["location"]["localtime"])
    days = _forecast_days(payload)
    today = days[0] if days else {}

    temp = float(cur["temp_f"])
    day_stats = today.get("day") or {}
    if "mintemp_f" in day_stats and "maxtemp_f" in day_stats:
        temp_min, temp_max = float(day_stats["mintemp_f"]), float(day_stats["maxtemp_f"])
    else:
        temp_min, temp_max = approx_temp_range(temp)
        approximated += ["current.temp_min", "current.temp_max"]

    astro = today.get("astro") or {}
    sunrise = _astro_time(local_now.date(), astro.get("sunrise"))
    sunset = _astro_time(local_now.date(), astro.get("sunset"))
    if sunrise is None or sunset is None:
        fallback_rise, fallback_set = approx_sun_times(local_now.date())
        if sunrise is None:
            sunrise = fallback_rise
            approximated.append("current.sunrise")
        if sunset is None:
            sunset = fallback_set
            approximated.append("current.sunset")

    code = int(cur["condition"]["code"])
    uv = cur.get("uv")
    stamp = cur.get("last_updated") or payload["location"]["localtime"]
    return {
        "temperature": round(temp),
        "temperature_raw": temp,
        "feels_like": round(float(cur.get("feelslike_f", temp))),
        "temp_min": round(temp_min),
        "temp_max": round(temp_max),
        "humidity": int(cur["humidity"]),
        "pressure": cur.get("pressure_mb"),
        "wind_speed": float(cur["wind_mph"]),
        "wind_deg": cur.get("wind_degree"),
        "uv_index": float(uv) if uv is not None else None,
        "precipitation": float(cur.get("precip_mm", 0.0)),
        "condition": cur["condition"]["text"],
        "description": cur["condition"]["text"].lower(),
        "icon": _icon(cur["condition"]["icon"]),
        "weather_code": code,
        "thunderstorm": code in THUNDER_CODES,
        "sunrise": sunrise,
        "sunset": sunset,
        "timestamp": _local(stamp).isoformat(timespec="minutes"),
    }


def normalize_hour(hour: dict[str, Any]) -> HourlyForecast:
    code = int(hour["condition"]["code"])
    chance = hour.get("chance_of_rain")
    return {
        "time": _local(hour["time"]).isoformat(timespec="minutes"),
        "temperature": round(float(hour["temp_f"])),
        "condition": hour["condition"]["text"],
        "icon": _icon(hour["condition"]["icon"]),
        "weather_code": code,
        "precipitation": float(hour.get("precip_mm", 0.0)),
        "chance_of_rain": int(chance) if chance is not None else None,
        "thunderstorm": code in THUNDER_CODES,
    }


def normalize_hourly(payload: dict[str, Any], limit: int | None = HOURS_AHEAD) -> list[HourlyForecast]:
    """Hourly points from the current local hour onward."""
    hour_start = _local(payload["location"]["localtime"]).replace(minute=0)
    upcoming = [
        normalize_hour(h)
        for day in _forecast_days(payload)
        for h in day.get("hour") or []
        if _local(h["time"]) >= hour_start
    ]
    return upcoming if limit is None else upcoming[:limit]


def normalize_daily(payload: dict[str, Any]) -> list[DailyForecast]:
    today = _local(payload["location"]["localtime"]).date()
    out: list[DailyForecast] = []
    for fd in _forecast_days(payload):
        day = dt.date.fromisoformat(fd["date"])
        stats = fd["day"]
        out.append(
            {
                "date": fd["date"],
                "label": day_label(day, today),
                "temp_min": round(float(stats["mintemp_f"])),
                "temp_max": round(float(stats["maxtemp_f"])),
                "condition": stats["condition"]["text"],
                "icon": _icon(stats["condition"]["icon"]),
            }
        )
    return out


def _iso_or_none(value: str | None) -> str | None:
    if not value:
        return None
    try:
        return dtparse.isoparse(value).isoformat()
    except ValueError:
        return value


def normalize_alerts(payload: dict[str, Any]) -> list[WeatherAlert]:
    """``alerts.alert`` → canonical alerts; null / absent → ``[]``."""
    raw = (payload.get("alerts") or {}).get("alert") or []
    alerts: list[WeatherAlert] = []
    for a in raw:
        fields = ("severity", "urgency", "category", "areas")
        tags = [a[f] for f in fields if a.get(f)]
        alerts.append(
            {
                "sender": "WeatherAPI.com",
                "event": a.get("event") or a.get("headline") or "Weather alert",
                "start": _iso_or_none(a.get("effective")),
                "end": _iso_or_none(a.get("expires")),
                "description": a.get("desc") or a.get("headline") or "",
                "tags": tags,
            }
        )
    return alerts


def normalize_history(payload: dict[str, Any]) -> HistoricalBundle:
    fd = _forecast_days(payload)[0]
    hours: list[HistoricalHour] = [
        {
            "time": _local(h["time"]).isoformat(timespec="minutes"),
            "temperature": round(float(h["temp_f"])),
            "humidity": int(h["humidity"]),
            "precipitation": float(h.get("precip_mm", 0.0)),
            "condition": h["condition"]["text"],
            "icon": _icon(h["condition"]["icon"]),
        }
        for h in fd.get("hour") or []
    ]
    stats = fd.get("day") or {}
    return {
        "provider": PROVIDER,
        "units": UNITS,
        "location": normalize_location(payload["location"]),
        "date": fd["date"],
        "temp_min": round(float(stats["mintemp_f"])) if "mintemp_f" in stats else None,
        "temp_max": round(float(stats["maxtemp_f"])) if "maxtemp_f" in stats else None,
        "total_precipitation": float(stats.get("totalprecip_mm", 0.0)),
        "hours": hours,
    }


# ── Adapter ──────────────────────────────────────────────────────────────
class WeatherApiAdapter(ProviderAdapter):
    name = PROVIDER

    @staticmethod
    def _q(place: Place) -> str:
        if isinstance(place, tuple):
            lat, lon = place
            return f"{lat},{lon}"
        return place

    async def _forecast(self, place: Place, days: int, alerts: bool) -> dict[str, Any]:
        params = {
            "key": self.api_key,
            "q": self._q(place),
            "days": max(1, min(days, MAX_FORECAST_DAYS)),
            "alerts": "yes" if alerts else "no",
            "aqi": "no",
        }
        return await self._get_json(f"{BASE_URL}/forecast.json", params)

    async def fetch_current(self, place: Place) -> CurrentBundle:
        # Two days so "next 24 hours" still works late in the evening.
        payload = await self._forecast(place, days=2, alerts=False)
        approximated: list[str] = []
        with normalizing(self.name, "current"):
            return {
                "provider": self.name,
                "units": UNITS,
                "location": normalize_location(payload["location"]),
                "current": normalize_current(payload, approximated),
                "hourly": normalize_hourly(payload),
                "hazards": [],
                "approximated": approximated,
            }

    async def fetch_forecast(self, place: Place, days: int = 5) -> ForecastBundle:
        payload = await self._forecast(place, days=days, alerts=False)
        with normalizing(self.name, "forecast"):
            return {
                "provider": self.name,
                "units": UNITS,
                "location": normalize_location(payload["location"]),
                "hourly": normalize_hourly(payload, limit=None),
                "daily": normalize_daily(payload),
                "approximated": [],
            }

    async def fetch_onecall(self, place: Place) -> OneCallBundle:
        payload = await self._forecast(place, days=3, alerts=True)
        approximated: list[str] = []
        with normalizing(self.name, "onecall"):
            return {
                "provider": self.name,
                "units": UNITS,
                "location": normalize_location(payload["location"]),
                "current": normalize_current(payload, approximated),
                "hourly": normalize_hourly(payload, limit=48),
                "daily": normalize_daily(payload),
                "alerts": normalize_alerts(payload),
                "hazards": [],
                "approximated": approximated,
            }

    async def fetch_alerts(self, lat: float, lon: float) -> list[WeatherAlert]:
        payload = await self._forecast((lat, lon), days=1, alerts=True)
        with normalizing(self.name, "alerts"):
            return normalize_alerts(payload)

    async def fetch_historical(
        self, lat: float, lon: float, when: dt.datetime
    ) -> HistoricalBundle:
        params = {"key": self.api_key, "q": f"{lat},{lon}", "dt": when.date().isoformat()}
        payload = await self._get_json(f"{BASE_URL}/history.json", params)
        with normalizing(self.name, "history"):
            return normalize_history(payload)

    async def _search(self, q: str, limit: int) -> list[Location]:
        payload = await self._get_json(f"{BASE_URL}/search.json", {"key": self.api_key, "q": q})
        with normalizing(self.name, "search"):
            found = [normalize_location(item) for item in payload or []]
        if not found:
            raise NotFoundError(f"No location found for {q!r}")
        return found[:limit]

    async def geocode(self, text: str, limit: int = 5) -> list[Location]:
        return await self._search(text, limit)

    async def reverse_geocode(self, lat: float, lon: float, limit: int = 1) -> list[Location]:
        return await self._search(f"{lat},{lon}", limit)


__all__ = [
    "THUNDER_CODES",
    "WeatherApiAdapter",
    "normalize_alerts",
    "normalize_current",
    "normalize_daily",
    "normalize_history",
    "normalize_hourly",
]
