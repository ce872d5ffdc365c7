"""
config.py
~~~~~~~~~
Environment-driven settings.

``.env`` is loaded first (python-dotenv), then plain environment variables
are read into one immutable :class:`Settings` object that the app factory
hands to every component that needs it.

Variables
---------
    WEATHER_PROVIDER     "weatherapi" (default) or "openweather"
    WEATHERAPI_KEY       WeatherAPI.com key
    OPENWEATHER_API_KEY  OpenWeatherMap key
    UPSTREAM_TIMEOUT_S   per-request timeout in seconds (default 10)
    CACHE_TTL_S          response cache TTL in seconds (default 1800)
    CACHE_MAX_ENTRIES    LRU bound of the response cache (default 1024)
    ALLOWED_ORIGINS      comma-separated CORS origins
    LOG_LEVEL            level of the app loggers (default INFO)
    LOCATIONS_RATE_LIMIT slowapi limit on POST /api/locations (default 120/minute)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

from .constants import CACHE_MAX_ENTRIES, CACHE_TTL_S, LOCATIONS_RATE_LIMIT, UPSTREAM_TIMEOUT_S

DEFAULT_ORIGINS: tuple[str, ...] = (
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:5000",
)


@dataclass(frozen=True)
class Settings:
    weather_provider: str = "weatherapi"
    weatherapi_key: str = ""
    openweather_api_key: str = ""
    upstream_timeout_s: float = UPSTREAM_TIMEOUT_S
    cache_ttl_s: int = CACHE_TTL_S
    cache_max_entries: int = CACHE_MAX_ENTRIES
    allowed_origins: tuple[str, ...] = field(default=DEFAULT_ORIGINS)
    log_level: str = "INFO"
    locations_rate_limit: str = LOCATIONS_RATE_LIMIT

    def api_key_for(self, provider: str) -> str:
        """Return the configured key for *provider* (empty if unset)."""
        return {
            "weatherapi": self.weatherapi_key,
            "openweather": self.openweather_api_key,
        }.get(provider, "")


def _split_origins(raw: str | None) -> tuple[str, ...]:
    if not raw:
        return DEFAULT_ORIGINS
    return tuple(o.strip() for o in raw.split(",") if o.strip())


def load_settings() -> Settings:
    """Read ``.env`` + environment into a :class:`Settings`."""
    load_dotenv()
    return Settings(
        weather_provider=os.getenv("WEATHER_PROVIDER", "weatherapi").strip().lower(),
        weatherapi_key=os.getenv("WEATHERAPI_KEY", ""),
        openweather_api_key=os.getenv("OPENWEATHER_API_KEY", ""),
        upstream_timeout_s=float(os.getenv("UPSTREAM_TIMEOUT_S", str(UPSTREAM_TIMEOUT_S))),
        cache_ttl_s=int(os.getenv("CACHE_TTL_S", str(CACHE_TTL_S))),
        cache_max_entries=int(os.getenv("CACHE_MAX_ENTRIES", str(CACHE_MAX_ENTRIES))),
        allowed_origins=_split_origins(os.getenv("ALLOWED_ORIGINS")),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        locations_rate_limit=os.getenv("LOCATIONS_RATE_LIMIT", LOCATIONS_RATE_LIMIT),
    )
