# backend/skywatch/references.py

"""
Static reference material served by ``GET /api/references``: where the
data comes from, who to call in an emergency, and the usage disclaimer.

No upstream call is involved, so nothing here is cached.
"""

from __future__ import annotations

from typing import Any, Final

WEATHER_DATA_SOURCES: Final[list[dict[str, str]]] = [
    {
        "name": "WeatherAPI.com",
        "description": "Comprehensive weather service with real-time and forecast weather data for global locations.",
        "website": "https://www.weatherapi.com/",
    },
    {
        "name": "OpenWeatherMap API",
        "description": "Global weather data service providing current, forecast, and historical weather information.",
        "website": "https://openweathermap.org/",
    },
    {
        "name": "PAGASA",
        "description": "Philippine Atmospheric, Geophysical and Astronomical Services Administration - the national meteorological agency of the Philippines.",
        "website": "https://bagong.pagasa.dost.gov.ph/",
    },
    {
        "name": "NOAH",
        "description": "Nationwide Operational Assessment of Hazards - provides real-time flood and landslide warnings for the Philippines.",
        "website": "http://noah.up.edu.ph/",
    },
    {
        "name": "PHIVOLCS",
        "description": "Philippine Institute of Volcanology and Seismology - monitors volcanic activity and earthquakes in the Philippines.",
        "website": "https://www.phivolcs.dost.gov.ph/",
    },
    {
        "name": "Philippines GIS Data",
        "description": "Geographic Information System data for the Philippines.",
        "website": "https://psa.gov.ph/gis",
    },
]

EMERGENCY_CONTACTS: Final[list[dict[str, str]]] = [
    {"name": "National Emergency Hotline", "number": "911"},
    {"name": "Philippine Red Cross", "number": "143"},
    {"name": "NDRRMC Emergency Operations Center", "number": "+63 (2) 8911-1406, +63 (2) 8912-2665"},
    {"name": "PAGASA Weather Hotline", "number": "+63 (2) 8927-1335"},
    {"name": "PHIVOLCS Hotline", "number": "+63 (2) 8929-9254"},
]

DISCLAIMER: Final = (
    "This application provides weather information for educational and "
    "informational purposes only. While we strive for accuracy, we make no "
    "guarantees regarding the completeness, reliability, or timeliness of the "
    "weather data. During severe weather events, always follow the official "
    "directives issued by local authorities such as PAGASA, NDRRMC, and local "
    "disaster risk reduction offices. Do not make critical decisions based "
    "solely on this application."
)


def get_references() -> dict[str, Any]:
    """Return a fresh copy so callers cannot mutate the module constants."""
    return {
        "weatherDataSources": [dict(s) for s in WEATHER_DATA_SOURCES],
        "emergencyContacts": [dict(c) for c in EMERGENCY_CONTACTS],
        "disclaimer": DISCLAIMER,
    }
