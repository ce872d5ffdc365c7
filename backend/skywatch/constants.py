# backend/skywatch/constants.py

"""
Global constants used across modules, including a single User-Agent string
so upstream providers can identify our traffic.
"""

from typing import Final

USER_AGENT: Final = "skywatch-ph/0.1 (+https://github.com/skywatch-ph/skywatch)"

CACHE_TTL_S: Final = 1800  # 30 min, shared by every upstream-backed endpoint
CACHE_MAX_ENTRIES: Final = 1024
UPSTREAM_TIMEOUT_S: Final = 10.0
LOCATIONS_RATE_LIMIT: Final = "120/minute"  # per client address

RECENT_LOCATIONS_LIMIT: Final = 5

# Frontend falls back to this place when geolocation is unavailable.
DEFAULT_LOCATION: Final = {
    "name": "Tagbilaran City",
    "lat": 9.65,
    "lon": 123.85,
    "country": "PH",
}

# Compatibility shims for providers that omit a field.
APPROX_SUNRISE_HOUR: Final = 6
APPROX_SUNSET_HOUR: Final = 18
APPROX_TEMP_SPREAD_F: Final = 5.0
