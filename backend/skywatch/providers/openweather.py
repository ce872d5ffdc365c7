"""
providers/openweather.py
~~~~~~~~~~~~~~~~~~~~~~~~
OpenWeatherMap adapter (``units=imperial``).

Endpoints
---------
    /data/2.5/weather               current conditions (no UV, no hourly;
                                    topped up from onecall)
    /data/2.5/forecast              5 days, 3-hour steps → hourly + daily
    /data/3.0/onecall               current / hourly / daily / alerts
    /data/3.0/onecall/timemachine   one observed hour for a past timestamp
    /geo/1.0/direct, /geo/1.0/reverse

OpenWeather sends unix timestamps plus a UTC offset in seconds; canonical
timestamps are rendered in the location's local time.
"""

from __future__ import annotations

import datetime as dt
from collections import defaultdict
from typing import Any

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

DATA_URL = "https://api.openweathermap.org/data/2.5"
ONECALL_URL = "https://api.openweathermap.org/data/3.0/onecall"
GEO_URL = "https://api.openweathermap.org/geo/1.0"
ICON_URL = "https://openweathermap.org/img/wn/{icon}@2x.png"
PROVIDER = "openweather"

FORECAST_MAX_POINTS = 40  # 5 days × 8 three-hour steps
CURRENT_HOURLY_POINTS = 24


def is_thunderstorm(weather_id: int) -> bool:
    """Group 2xx of the OpenWeather condition codes."""
    return 200 <= weather_id < 300


def _tz(offset_s: int) -> dt.timezone:
    return dt.timezone(dt.timedelta(seconds=offset_s))


def _local(ts: int, offset_s: int) -> dt.datetime:
    return dt.datetime.fromtimestamp(ts, tz=_tz(offset_s))


def _iso(ts: int | None, offset_s: int) -> str | None:
    if ts is None:
        return None
    return _local(ts, offset_s).isoformat()


def _rain_mm_h(block: dict[str, Any]) -> float:
    """``rain.1h`` or ``rain.3h`` / 3, whichever the payload carries."""
    rain = block.get("rain") or {}
    if "1h" in rain:
        return float(rain["1h"])
    if "3h" in rain:
        return float(rain["3h"]) / 3.0
    return 0.0


def _coords_name(lat: float, lon: float) -> str:
    return f"({lat:.2f},{lon:.2f})"


# ── Normalizers ──────────────────────────────────────────────────────────
def normalize_weather(payload: dict[str, Any], approximated: list[str]) -> CurrentWeather:
    """``/data/2.5/weather`` → CurrentWeather."""
    offset = int(payload.get("timezone", 0))
    main = payload["main"]
    cond = payload["weather"][0]
    sys = payload.get("sys") or {}
    temp = float(main["temp"])

    if "temp_min" in main and "temp_max" in main:
        temp_min, temp_max = float(main["temp_min"]), float(main["temp_max"])
    else:
        temp_min, temp_max = approx_temp_range(temp)
        approximated += ["current.temp_min", "current.temp_max"]

    sunrise = _iso(sys.get("sunrise"), offset)
    sunset = _iso(sys.get("sunset"), offset)
    if sunrise is None or sunset is None:
        rise, set_ = approx_sun_times(_local(int(payload["dt"]), offset).date())
        if sunrise is None:
            sunrise = rise
            approximated.append("current.sunrise")
        if sunset is None:
            sunset = set_
            approximated.append("current.sunset")

    wind = payload.get("wind") or {}
    return {
        "temperature": round(temp),
        "temperature_raw": temp,
        "feels_like": round(float(main.get("feels_like", temp))),
        "temp_min": round(temp_min),
        "temp_max": round(temp_max),
        "humidity": int(main["humidity"]),
        "pressure": main.get("pressure"),
        "wind_speed": float(wind.get("speed", 0.0)),
        "wind_deg": wind.get("deg"),
        "uv_index": None,  # filled from onecall by the adapter
        "precipitation": _rain_mm_h(payload),
        "condition": cond["main"],
        "description": cond["description"],
        "icon": ICON_URL.format(icon=cond["icon"]),
        "weather_code": int(cond["id"]),
        "thunderstorm": is_thunderstorm(int(cond["id"])),
        "sunrise": sunrise,
        "sunset": sunset,
        "timestamp": _local(int(payload["dt"]), offset).isoformat(),
    }


def normalize_weather_location(payload: dict[str, Any]) -> Location:
    loc: Location = {
        "name": payload["name"],
        "lat": float(payload["coord"]["lat"]),
        "lon": float(payload["coord"]["lon"]),
    }
    country = (payload.get("sys") or {}).get("country")
    if country:
        loc["country"] = country
    return loc


def _hour_point(item: dict[str, Any], offset: int) -> HourlyForecast:
    cond = item["weather"][0]
    temp = item["main"]["temp"] if "main" in item else item["temp"]
    pop = item.get("pop")
    return {
        "time": _local(int(item["dt"]), offset).isoformat(),
        "temperature": round(float(temp)),
        "condition": cond["main"],
        "icon": ICON_URL.format(icon=cond["icon"]),
        "weather_code": int(cond["id"]),
        "precipitation": _rain_mm_h(item),
        "chance_of_rain": round(float(pop) * 100) if pop is not None else None,
        "thunderstorm": is_thunderstorm(int(cond["id"])),
    }


def normalize_forecast(payload: dict[str, Any]) -> tuple[Location, list[HourlyForecast], list[DailyForecast]]:
    """``/data/2.5/forecast`` → (location, 3-hourly points, per-day summary)."""
    city = payload["city"]
    offset = int(city.get("timezone", 0))
    location: Location = {
        "name": city["name"],
        "lat": float(city["coord"]["lat"]),
        "lon": float(city["coord"]["lon"]),
    }
    if city.get("country"):
        location["country"] = city["country"]

    hourly = [_hour_point(item, offset) for item in payload["list"]]

    # Group by local date: min / max over the day, condition of the midday-most step.
    by_day: dict[dt.date, list[dict[str, Any]]] = defaultdict(list)
    for item in payload["list"]:
        by_day[_local(int(item["dt"]), offset).date()].append(item)

    if not by_day:
        return location, hourly, []

    today = min(by_day)
    daily: list[DailyForecast] = []
    for day in sorted(by_day):
        items = by_day[day]
        rep = min(items, key=lambda i: abs(_local(int(i["dt"]), offset).hour - 12))
        cond = rep["weather"][0]
        daily.append(
            {
                "date": day.isoformat(),
                "label": day_label(day, today),
                "temp_min": round(min(float(i["main"].get("temp_min", i["main"]["temp"])) for i in items)),
                "temp_max": round(max(float(i["main"].get("temp_max", i["main"]["temp"])) for i in items)),
                "condition": cond["main"],
                "icon": ICON_URL.format(icon=cond["icon"]),
            }
        )
    return location, hourly, daily


def normalize_onecall_current(payload: dict[str, Any], approximated: list[str]) -> CurrentWeather:
    """``/data/3.0/onecall`` ``current`` block (+ today's daily min/max)."""
    offset = int(payload.get("timezone_offset", 0))
    cur = payload["current"]
    cond = cur["weather"][0]
    temp = float(cur["temp"])
    daily = payload.get("daily") or []

    if daily and "temp" in daily[0]:
        temp_min, temp_max = float(daily[0]["temp"]["min"]), float(daily[0]["temp"]["max"])
    else:
        temp_min, temp_max = approx_temp_range(temp)
        approximated += ["current.temp_min", "current.temp_max"]

    sunrise = _iso(cur.get("sunrise"), offset)
    sunset = _iso(cur.get("sunset"), offset)
    if sunrise is None or sunset is None:
        rise, set_ = approx_sun_times(_local(int(cur["dt"]), offset).date())
        if sunrise is None:
            sunrise = rise
            approximated.append("current.sunrise")
        if sunset is None:
            sunset = set_
            approximated.append("current.sunset")

    uvi = cur.get("uvi")
    return {
        "temperature": round(temp),
        "temperature_raw": temp,
        "feels_like": round(float(cur.get("feels_like", temp))),
        "temp_min": round(temp_min),
        "temp_max": round(temp_max),
        "humidity": int(cur["humidity"]),
        "pressure": cur.get("pressure"),
        "wind_speed": float(cur.get("wind_speed", 0.0)),
        "wind_deg": cur.get("wind_deg"),
        "uv_index": float(uvi) if uvi is not None else None,
        "precipitation": _rain_mm_h(cur),
        "condition": cond["main"],
        "description": cond["description"],
        "icon": ICON_URL.format(icon=cond["icon"]),
        "weather_code": int(cond["id"]),
        "thunderstorm": is_thunderstorm(int(cond["id"])),
        "sunrise": sunrise,
        "sunset": sunset,
        "timestamp": _local(int(cur["dt"]), offset).isoformat(),
    }


def normalize_onecall_daily(payload: dict[str, Any]) -> list[DailyForecast]:
    offset = int(payload.get("timezone_offset", 0))
    days = payload.get("daily") or []
    if not days:
        return []
    today = _local(int(days[0]["dt"]), offset).date()
    out: list[DailyForecast] = []
    for d in days:
        day = _local(int(d["dt"]), offset).date()
        cond = d["weather"][0]
        out.append(
            {
                "date": day.isoformat(),
                "label": day_label(day, today),
                "temp_min": round(float(d["temp"]["min"])),
                "temp_max": round(float(d["temp"]["max"])),
                "condition": cond["main"],
                "icon": ICON_URL.format(icon=cond["icon"]),
            }
        )
    return out


def normalize_alerts(payload: dict[str, Any]) -> list[WeatherAlert]:
    """``alerts`` → canonical alerts; null / absent → ``[]``."""
    offset = int(payload.get("timezone_offset", 0))
    return [
        {
            "sender": a.get("sender_name") or "",
            "event": a["event"],
            "start": _iso(a.get("start"), offset),
            "end": _iso(a.get("end"), offset),
            "description": a.get("description") or "",
            "tags": list(a.get("tags") or []),
        }
        for a in payload.get("alerts") or []
    ]


def normalize_geo(items: list[dict[str, Any]]) -> list[Location]:
    out: list[Location] = []
    for item in items:
        loc: Location = {
            "name": item["name"],
            "lat": float(item["lat"]),
            "lon": float(item["lon"]),
        }
        if item.get("country"):
            loc["country"] = item["country"]
        if item.get("state"):
            loc["state"] = item["state"]
        out.append(loc)
    return out


# ── Adapter ──────────────────────────────────────────────────────────────
class OpenWeatherAdapter(ProviderAdapter):
    name = PROVIDER

    def _params(self, place: Place, **extra: Any) -> dict[str, Any]:
        params: dict[str, Any] = {"appid": self.api_key, "units": "imperial", **extra}
        if isinstance(place, tuple):
            params["lat"], params["lon"] = place
        else:
            params["q"] = place
        return params

    async def _resolve(self, place: Place) -> Location:
        """One-call endpoints only take coordinates; geocode names first."""
        if isinstance(place, tuple):
            lat, lon = place
            return {"name": _coords_name(lat, lon), "lat": lat, "lon": lon}
        return (await self.geocode(place, limit=1))[0]

    async def fetch_current(self, place: Place) -> CurrentBundle:
        payload = await self._get_json(f"{DATA_URL}/weather", self._params(place))
        approximated: list[str] = []
        with normalizing(self.name, "weather"):
            location = normalize_weather_location(payload)
            current = normalize_weather(payload, approximated)

        # /weather has neither UV nor hourly points; the hazard rules need both.
        extra = await self._onecall(
            location["lat"], location["lon"], exclude="minutely,daily,alerts"
        )
        with normalizing(self.name, "onecall"):
            offset = int(extra.get("timezone_offset", 0))
            uvi = (extra.get("current") or {}).get("uvi")
            if uvi is not None:
                current["uv_index"] = float(uvi)
            hourly = [_hour_point(h, offset) for h in extra.get("hourly") or []]
        return {
            "provider": self.name,
            "units": UNITS,
            "location": location,
            "current": current,
            "hourly": hourly[:CURRENT_HOURLY_POINTS],
            "hazards": [],
            "approximated": approximated,
        }

    async def fetch_forecast(self, place: Place, days: int = 5) -> ForecastBundle:
        cnt = max(1, min(days * 8, FORECAST_MAX_POINTS))
        payload = await self._get_json(f"{DATA_URL}/forecast", self._params(place, cnt=cnt))
        with normalizing(self.name, "forecast"):
            location, hourly, daily = normalize_forecast(payload)
        return {
            "provider": self.name,
            "units": UNITS,
            "location": location,
            "hourly": hourly,
            "daily": daily,
            "approximated": [],
        }

    async def _onecall(self, lat: float, lon: float, exclude: str) -> dict[str, Any]:
        params = {
            "lat": lat,
            "lon": lon,
            "appid": self.api_key,
            "units": "imperial",
            "exclude": exclude,
        }
        return await self._get_json(ONECALL_URL, params)

    async def fetch_onecall(self, place: Place) -> OneCallBundle:
        location = await self._resolve(place)
        payload = await self._onecall(location["lat"], location["lon"], exclude="minutely")
        approximated: list[str] = []
        with normalizing(self.name, "onecall"):
            offset = int(payload.get("timezone_offset", 0))
            return {
                "provider": self.name,
                "units": UNITS,
                "location": location,
                "current": normalize_onecall_current(payload, approximated),
                "hourly": [_hour_point(h, offset) for h in payload.get("hourly") or []],
                "daily": normalize_onecall_daily(payload),
                "alerts": normalize_alerts(payload),
                "hazards": [],
                "approximated": approximated,
            }

    async def fetch_alerts(self, lat: float, lon: float) -> list[WeatherAlert]:
        payload = await self._onecall(lat, lon, exclude="current,minutely,hourly,daily")
        with normalizing(self.name, "alerts"):
            return normalize_alerts(payload)

    async def fetch_historical(
        self, lat: float, lon: float, when: dt.datetime
    ) -> HistoricalBundle:
        params = {
            "lat": lat,
            "lon": lon,
            "dt": int(when.timestamp()),
            "appid": self.api_key,
            "units": "imperial",
        }
        payload = await self._get_json(f"{ONECALL_URL}/timemachine", params)
        with normalizing(self.name, "timemachine"):
            offset = int(payload.get("timezone_offset", 0))
            hours: list[HistoricalHour] = []
            for h in payload["data"]:
                cond = h["weather"][0]
                hours.append(
                    {
                        "time": _local(int(h["dt"]), offset).isoformat(),
                        "temperature": round(float(h["temp"])),
                        "humidity": int(h["humidity"]),
                        "precipitation": _rain_mm_h(h),
                        "condition": cond["main"],
                        "icon": ICON_URL.format(icon=cond["icon"]),
                    }
                )
            temps = [h["temperature"] for h in hours]
            return {
                "provider": self.name,
                "units": UNITS,
                "location": {"name": _coords_name(lat, lon), "lat": lat, "lon": lon},
                "date": _local(int(when.timestamp()), offset).date().isoformat(),
                "temp_min": min(temps) if temps else None,
                "temp_max": max(temps) if temps else None,
                "total_precipitation": round(sum(h["precipitation"] for h in hours), 2),
                "hours": hours,
            }

    async def geocode(self, text: str, limit: int = 5) -> list[Location]:
        params = {"q": text, "limit": limit, "appid": self.api_key}
        payload = await self._get_json(f"{GEO_URL}/direct", params)
        with normalizing(self.name, "geocode"):
            found = normalize_geo(payload or [])
        if not found:
            raise NotFoundError(f"No location found for {text!r}")
        return found

    async def reverse_geocode(self, lat: float, lon: float, limit: int = 1) -> list[Location]:
        params = {"lat": lat, "lon": lon, "limit": limit, "appid": self.api_key}
        payload = await self._get_json(f"{GEO_URL}/reverse", params)
        with normalizing(self.name, "reverse_geocode"):
            found = normalize_geo(payload or [])
        if not found:
            raise NotFoundError(f"No location found near ({lat}, {lon})")
        return found


__all__ = [
    "OpenWeatherAdapter",
    "is_thunderstorm",
    "normalize_alerts",
    "normalize_forecast",
    "normalize_geo",
    "normalize_onecall_current",
    "normalize_weather",
]
