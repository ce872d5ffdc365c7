"""
models.py
~~~~~~~~~
Canonical, provider-independent shapes returned by the API.

Every provider adapter normalizes into these ``TypedDict``s, so the frontend
contract stays the same no matter which upstream supplied the data.

Units are imperial: °F, mph, hPa, millimetres of precipitation.  Timestamps
are ISO-8601 strings (local time of the location when the provider says so,
UTC otherwise).

Bundles carry ``approximated``: the dotted paths of any field that was filled
by a compatibility shim instead of measured data (e.g. ``"current.sunrise"``).
"""

from __future__ import annotations

from typing import Literal, NotRequired, TypedDict

HazardLevel = Literal["Moderate", "High", "Severe"]


class Location(TypedDict):
    name: str
    lat: float
    lon: float
    country: NotRequired[str]
    state: NotRequired[str]


class StoredLocation(TypedDict):
    id: int
    name: str
    lat: str
    lon: str
    country: str
    last_updated: str  # ISO-8601


class CurrentWeather(TypedDict):
    temperature: int  # rounded for display
    temperature_raw: float  # as reported; hazard thresholds compare against this
    feels_like: int
    temp_min: int
    temp_max: int
    humidity: int
    pressure: float | None
    wind_speed: float
    wind_deg: int | None
    uv_index: float | None
    precipitation: float
    condition: str
    description: str
    icon: str
    weather_code: int
    thunderstorm: bool
    sunrise: str | None
    sunset: str | None
    timestamp: str


class HourlyForecast(TypedDict):
    time: str
    temperature: int
    condition: str
    icon: str
    weather_code: int
    precipitation: float
    chance_of_rain: int | None
    thunderstorm: bool


class DailyForecast(TypedDict):
    date: str  # YYYY-MM-DD
    label: str  # "Today" / weekday name
    temp_min: int
    temp_max: int
    condition: str
    icon: str


class WeatherAlert(TypedDict):
    sender: str
    event: str
    start: str | None
    end: str | None
    description: str
    tags: list[str]


class Hazard(TypedDict):
    type: str
    level: HazardLevel
    description: str
    icon: str


class CurrentBundle(TypedDict):
    provider: str
    units: str
    location: Location
    current: CurrentWeather
    hourly: list[HourlyForecast]
    hazards: list[Hazard]
    approximated: list[str]


class ForecastBundle(TypedDict):
    provider: str
    units: str
    location: Location
    hourly: list[HourlyForecast]
    daily: list[DailyForecast]
    approximated: list[str]


class OneCallBundle(TypedDict):
    provider: str
    units: str
    location: Location
    current: CurrentWeather
    hourly: list[HourlyForecast]
    daily: list[DailyForecast]
    alerts: list[WeatherAlert]
    hazards: list[Hazard]
    approximated: list[str]


class HistoricalHour(TypedDict):
    time: str
    temperature: int
    humidity: int
    precipitation: float
    condition: str
    icon: str


class HistoricalBundle(TypedDict):
    provider: str
    units: str
    location: Location
    date: str  # YYYY-MM-DD
    temp_min: int | None
    temp_max: int | None
    total_precipitation: float
    hours: list[HistoricalHour]


class NewsItem(TypedDict):
    title: str
    link: str
    date: str | None
    content: str
    source: str


UNITS = "imperial"
