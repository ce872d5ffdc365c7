"""
providers
~~~~~~~~~
One :class:`ProviderAdapter` variant per upstream weather API.  The API
layer only ever talks to the adapter interface, so swapping providers never
changes the JSON the frontend receives.
"""

from __future__ import annotations

import logging

from ..config import Settings
from .base import ProviderAdapter
from .openweather import OpenWeatherAdapter
from .weatherapi import WeatherApiAdapter

LOG = logging.getLogger("providers")

PROVIDERS: dict[str, type[ProviderAdapter]] = {
    "weatherapi": WeatherApiAdapter,
    "openweather": OpenWeatherAdapter,
}


def build_provider(settings: Settings) -> ProviderAdapter:
    """Instantiate the adapter named by ``settings.weather_provider``."""
    try:
        cls = PROVIDERS[settings.weather_provider]
    except KeyError:
        raise ValueError(
            f"Unknown WEATHER_PROVIDER {settings.weather_provider!r} "
            f"(expected one of: {', '.join(sorted(PROVIDERS))})"
        ) from None

    api_key = settings.api_key_for(settings.weather_provider)
    if not api_key:
        LOG.warning(
            "API key for %s is missing. Weather data may not be available.",
            settings.weather_provider,
        )
    return cls(api_key=api_key, timeout=settings.upstream_timeout_s)


__all__ = [
    "PROVIDERS",
    "OpenWeatherAdapter",
    "ProviderAdapter",
    "WeatherApiAdapter",
    "build_provider",
]
