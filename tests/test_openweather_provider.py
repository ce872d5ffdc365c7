"""
tests/test_openweather_provider.py
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
OpenWeatherMap adapter.  Timestamps below are for Tagbilaran (UTC+8):

    1741501800  2025-03-09 14:30 local
    1741471320  2025-03-09 06:02 local
"""

from __future__ import annotations

import datetime as dt
import re
from typing import Any

import pytest

from skywatch.cache import TTLCache
from skywatch.errors import NotFoundError, UpstreamError
from skywatch.providers.openweather import (
    OpenWeatherAdapter,
    is_thunderstorm,
    normalize_alerts,
    normalize_forecast,
    normalize_onecall_current,
    normalize_weather,
)
from skywatch.weather_service import WeatherService

OFFSET = 8 * 3600
NOW = 1741501800
SUNRISE = 1741471320
SUNSET = SUNRISE + 11 * 3600 + 59 * 60


def _cond(id_: int = 802, main: str = "Clouds") -> list[dict[str, Any]]:
    return [{"id": id_, "main": main, "description": main.lower(), "icon": "03d"}]


@pytest.fixture
def weather_payload() -> dict[str, Any]:
    return {
        "coord": {"lat": 9.65, "lon": 123.85},
        "weather": _cond(),
        "main": {
            "temp": 86.4,
            "feels_like": 92.1,
            "temp_min": 85.0,
            "temp_max": 88.0,
            "humidity": 25,
            "pressure": 1008,
        },
        "wind": {"speed": 18.0, "deg": 70},
        "rain": {"1h": 0.4},
        "dt": NOW,
        "sys": {"country": "PH", "sunrise": SUNRISE, "sunset": SUNSET},
        "timezone": OFFSET,
        "name": "Tagbilaran City",
    }


def _forecast_item(ts: int, temp: float, **extra: Any) -> dict[str, Any]:
    item = {
        "dt": ts,
        "main": {"temp": temp, "temp_min": temp - 1, "temp_max": temp + 1, "humidity": 70},
        "weather": _cond(),
        "pop": 0.35,
    }
    item.update(extra)
    return item


@pytest.fixture
def forecast_payload() -> dict[str, Any]:
    return {
        "list": [
            _forecast_item(1741500000, 86.0),  # 03-09 14:00 local
            _forecast_item(1741510800, 84.0, rain={"3h": 3.0}),  # 17:00
            _forecast_item(1741521600, 80.0, weather=_cond(211, "Thunderstorm")),  # 20:00
            _forecast_item(1741575600, 83.0),  # 03-10 11:00
            _forecast_item(1741586400, 87.0),  # 03-10 14:00
        ],
        "city": {
            "name": "Tagbilaran City",
            "coord": {"lat": 9.65, "lon": 123.85},
            "country": "PH",
            "timezone": OFFSET,
        },
    }


# ------------------------------------------------------------------ #
# Normalizers
# ------------------------------------------------------------------ #
@pytest.mark.parametrize("code, expected", [(200, True), (211, True), (299, True), (300, False), (800, False)])
def test_is_thunderstorm(code, expected) -> None:
    assert is_thunderstorm(code) is expected


def test_normalize_weather_local_times(weather_payload) -> None:
    approximated: list[str] = []
    cur = normalize_weather(weather_payload, approximated)

    assert approximated == []
    assert cur["temperature"] == 86
    assert cur["uv_index"] is None
    assert cur["precipitation"] == 0.4
    assert cur["sunrise"] == "2025-03-09T06:02:00+08:00"
    assert cur["sunset"] == "2025-03-09T18:01:00+08:00"
    assert cur["timestamp"] == "2025-03-09T14:30:00+08:00"
    assert cur["icon"] == "https://openweathermap.org/img/wn/03d@2x.png"


def test_normalize_weather_without_sun_times(weather_payload) -> None:
    weather_payload["sys"] = {"country": "PH"}
    approximated: list[str] = []
    cur = normalize_weather(weather_payload, approximated)

    assert approximated == ["current.sunrise", "current.sunset"]
    assert cur["sunrise"] == "2025-03-09T06:00"
    assert cur["sunset"] == "2025-03-09T18:00"


def test_normalize_forecast_groups_by_local_day(forecast_payload) -> None:
    location, hourly, daily = normalize_forecast(forecast_payload)

    assert location == {
        "name": "Tagbilaran City",
        "lat": 9.65,
        "lon": 123.85,
        "country": "PH",
    }
    assert len(hourly) == 5
    assert hourly[1]["precipitation"] == pytest.approx(1.0)
    assert hourly[2]["thunderstorm"] is True
    assert hourly[0]["chance_of_rain"] == 35

    assert [(d["date"], d["label"]) for d in daily] == [
        ("2025-03-09", "Today"),
        ("2025-03-10", "Tomorrow"),
    ]
    assert (daily[0]["temp_min"], daily[0]["temp_max"]) == (79, 87)
    assert (daily[1]["temp_min"], daily[1]["temp_max"]) == (82, 88)


def test_onecall_current_uses_today_range_and_uvi() -> None:
    payload = {
        "timezone_offset": OFFSET,
        "current": {
            "dt": NOW,
            "sunrise": SUNRISE,
            "sunset": SUNSET,
            "temp": 84.0,
            "humidity": 70,
            "wind_speed": 6.0,
            "uvi": 10.2,
            "weather": _cond(),
        },
        "daily": [{"dt": NOW, "temp": {"min": 78.0, "max": 90.0}, "weather": _cond()}],
    }
    approximated: list[str] = []
    cur = normalize_onecall_current(payload, approximated)

    assert approximated == []
    assert cur["uv_index"] == 10.2
    assert (cur["temp_min"], cur["temp_max"]) == (78.0, 90.0)


@pytest.mark.parametrize("alerts", [None, []])
def test_alerts_null_or_missing(alerts) -> None:
    assert normalize_alerts({"timezone_offset": OFFSET, "alerts": alerts}) == []
    assert normalize_alerts({}) == []


def test_alert_mapping() -> None:
    payload = {
        "timezone_offset": OFFSET,
        "alerts": [
            {
                "sender_name": "PAGASA",
                "event": "Gale Warning",
                "start": NOW,
                "end": NOW + 3600,
                "description": "Sea travel is risky.",
                "tags": ["Wind"],
            }
        ],
    }
    assert normalize_alerts(payload) == [
        {
            "sender": "PAGASA",
            "event": "Gale Warning",
            "start": "2025-03-09T14:30:00+08:00",
            "end": "2025-03-09T15:30:00+08:00",
            "description": "Sea travel is risky.",
            "tags": ["Wind"],
        }
    ]


# ------------------------------------------------------------------ #
# Adapter over HTTP
# ------------------------------------------------------------------ #
@pytest.fixture
def adapter() -> OpenWeatherAdapter:
    return OpenWeatherAdapter(api_key="ow-key", timeout=2)


@pytest.mark.asyncio
async def test_fetch_current_by_name(adapter, weather_payload, httpx_mock) -> None:
    httpx_mock.add_response(url=re.compile(r".*/data/2\.5/weather\?.*"), json=weather_payload)
    httpx_mock.add_response(
        url=re.compile(r".*/data/3\.0/onecall\?.*"),
        json={"timezone_offset": OFFSET, "current": {"dt": NOW, "uvi": 7.5}, "hourly": []},
    )

    bundle = await adapter.fetch_current("Tagbilaran City")

    weather, onecall = httpx_mock.get_requests()
    assert weather.url.params["q"] == "Tagbilaran City"
    assert weather.url.params["units"] == "imperial"
    assert weather.url.params["appid"] == "ow-key"
    assert onecall.url.params["lat"] == "9.65"
    assert onecall.url.params["exclude"] == "minutely,daily,alerts"
    assert bundle["provider"] == "openweather"
    assert bundle["location"]["country"] == "PH"
    assert bundle["current"]["uv_index"] == 7.5
    assert bundle["hourly"] == []


def _stormy_hour(ts: int, rain_mm: float) -> dict[str, Any]:
    return {
        "dt": ts,
        "temp": 80.0,
        "weather": _cond(211, "Thunderstorm"),
        "pop": 0.9,
        "rain": {"1h": rain_mm},
    }


@pytest.mark.asyncio
async def test_current_hazards_use_onecall_hours(adapter, weather_payload, httpx_mock) -> None:
    weather_payload["weather"] = _cond(211, "Thunderstorm")
    weather_payload["main"]["humidity"] = 90
    httpx_mock.add_response(url=re.compile(r".*/data/2\.5/weather\?.*"), json=weather_payload)
    httpx_mock.add_response(
        url=re.compile(r".*/data/3\.0/onecall\?.*"),
        json={
            "timezone_offset": OFFSET,
            "current": {"dt": NOW, "uvi": 9.0},
            "hourly": [_stormy_hour(NOW + i * 3600, 12.0) for i in range(30)],
        },
    )
    svc = WeatherService(adapter, TTLCache())

    bundle = await svc.get_current("Tagbilaran City")

    assert len(bundle["hourly"]) == 24
    assert bundle["hourly"][0]["precipitation"] == 12.0
    assert [(h["type"], h["level"]) for h in bundle["hazards"]] == [
        ("UV Risk", "High"),
        ("Lightning Risk", "Moderate"),
        ("Flood Risk", "Moderate"),
    ]


@pytest.mark.asyncio
async def test_fetch_forecast_caps_points(adapter, forecast_payload, httpx_mock) -> None:
    httpx_mock.add_response(json=forecast_payload)

    bundle = await adapter.fetch_forecast((9.65, 123.85), days=7)

    params = httpx_mock.get_request().url.params
    assert params["cnt"] == "40"
    assert params["lat"] == "9.65"
    assert len(bundle["daily"]) == 2


@pytest.mark.asyncio
async def test_onecall_by_name_geocodes_first(adapter, httpx_mock) -> None:
    httpx_mock.add_response(
        url=re.compile(r".*/geo/1\.0/direct.*"),
        json=[{"name": "Cebu City", "lat": 10.3157, "lon": 123.8854, "country": "PH"}],
    )
    httpx_mock.add_response(
        url=re.compile(r".*/data/3\.0/onecall\?.*"),
        json={
            "timezone_offset": OFFSET,
            "current": {
                "dt": NOW,
                "temp": 84.0,
                "humidity": 70,
                "weather": _cond(),
            },
            "hourly": [{"dt": NOW, "temp": 84.0, "weather": _cond(), "pop": 0.2}],
            "alerts": None,
        },
    )

    bundle = await adapter.fetch_onecall("Cebu City")

    geo, onecall = httpx_mock.get_requests()
    assert geo.url.params["q"] == "Cebu City"
    assert onecall.url.params["lat"] == "10.3157"
    assert onecall.url.params["exclude"] == "minutely"
    assert bundle["location"]["name"] == "Cebu City"
    assert bundle["alerts"] == []
    assert bundle["daily"] == []
    assert len(bundle["hourly"]) == 1
    assert bundle["approximated"] == [
        "current.temp_min",
        "current.temp_max",
        "current.sunrise",
        "current.sunset",
    ]


@pytest.mark.asyncio
async def test_fetch_alerts_excludes_everything_else(adapter, httpx_mock) -> None:
    httpx_mock.add_response(json={"lat": 9.65, "lon": 123.85, "timezone_offset": OFFSET})

    assert await adapter.fetch_alerts(9.65, 123.85) == []
    assert httpx_mock.get_request().url.params["exclude"] == "current,minutely,hourly,daily"


@pytest.mark.asyncio
async def test_fetch_historical_timemachine(adapter, httpx_mock) -> None:
    httpx_mock.add_response(
        json={
            "timezone_offset": OFFSET,
            "data": [
                {
                    "dt": NOW,
                    "temp": 83.6,
                    "humidity": 72,
                    "rain": {"1h": 2.5},
                    "weather": _cond(500, "Rain"),
                }
            ],
        }
    )

    when = dt.datetime.fromtimestamp(NOW, tz=dt.timezone.utc)
    hist = await adapter.fetch_historical(9.65, 123.85, when)

    request = httpx_mock.get_request()
    assert request.url.path == "/data/3.0/onecall/timemachine"
    assert request.url.params["dt"] == str(NOW)
    assert hist["date"] == "2025-03-09"
    assert (hist["temp_min"], hist["temp_max"]) == (84, 84)
    assert hist["total_precipitation"] == 2.5


@pytest.mark.asyncio
async def test_geocode_empty_is_not_found(adapter, httpx_mock) -> None:
    httpx_mock.add_response(json=[])

    with pytest.raises(NotFoundError) as info:
        await adapter.geocode("Nowhere Town")

    assert info.value.status_code == 404


@pytest.mark.asyncio
async def test_error_message_from_body(adapter, httpx_mock) -> None:
    httpx_mock.add_response(
        status_code=404, json={"cod": "404", "message": "city not found"}
    )

    with pytest.raises(UpstreamError) as info:
        await adapter.fetch_current("Atlantis")

    assert info.value.status_code == 404
    assert info.value.message == "city not found"
