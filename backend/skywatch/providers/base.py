"""
providers/base.py
~~~~~~~~~~~~~~~~~
Capability interface every upstream weather provider implements, plus the
HTTP plumbing they share.

An adapter does three things per call: build the provider-specific query,
GET it, and map the provider's JSON into the canonical shapes of
:mod:`skywatch.models`.  Hazards are *not* computed here; that is the
service's job, so every provider gets the same heuristic.

Failure mapping (``_get_json``)
-------------------------------
    httpx.TimeoutException  → UpstreamTimeoutError (504)
    other httpx.HTTPError   → UpstreamError (502)
    non-2xx status          → UpstreamError (status passed through)
    body is not JSON        → SchemaMismatchError (500)
"""

from __future__ import annotations

import abc
import datetime as dt
import logging
from contextlib import contextmanager
from typing import Any, Iterator, Mapping

import httpx

from ..api_logging import logged_request_async
from ..constants import (
    APPROX_SUNRISE_HOUR,
    APPROX_SUNSET_HOUR,
    APPROX_TEMP_SPREAD_F,
    UPSTREAM_TIMEOUT_S,
    USER_AGENT,
)
from ..errors import SchemaMismatchError, UpstreamError, UpstreamTimeoutError
from ..models import (
    CurrentBundle,
    ForecastBundle,
    HistoricalBundle,
    Location,
    OneCallBundle,
    WeatherAlert,
)

# A place-name query *or* a (lat, lon) pair.
Place = str | tuple[float, float]


@contextmanager
def normalizing(provider: str, what: str) -> Iterator[None]:
    """
    Turn lookup errors raised while reshaping a payload into
    :class:`SchemaMismatchError` naming the provider and the missing bit.
    """
    try:
        yield
    except (KeyError, IndexError, TypeError, ValueError) as exc:
        raise SchemaMismatchError(
            "Invalid API response format",
            details={"provider": provider, "payload": what, "error": repr(exc)},
        ) from exc


def approx_sun_times(day: dt.date) -> tuple[str, str]:
    """Fixed local sunrise/sunset stand-ins for providers that omit them."""
    sunrise = dt.datetime.combine(day, dt.time(APPROX_SUNRISE_HOUR))
    sunset = dt.datetime.combine(day, dt.time(APPROX_SUNSET_HOUR))
    return sunrise.isoformat(timespec="minutes"), sunset.isoformat(timespec="minutes")


def approx_temp_range(temperature: float) -> tuple[float, float]:
    """Current ± spread, used when a provider has no min/max."""
    return temperature - APPROX_TEMP_SPREAD_F, temperature + APPROX_TEMP_SPREAD_F


def day_label(day: dt.date, today: dt.date) -> str:
    if day == today:
        return "Today"
    if day == today + dt.timedelta(days=1):
        return "Tomorrow"
    return day.strftime("%A")


class ProviderAdapter(abc.ABC):
    """Base class: shared HTTP handling + the canonical capability set."""

    name: str = "abstract"

    def __init__(self, api_key: str = "", timeout: float = UPSTREAM_TIMEOUT_S) -> None:
        self.api_key = api_key
        self.timeout = timeout
        self._log = logging.getLogger(f"providers.{self.name}")

    # ── HTTP ─────────────────────────────────────────────────────────────
    def _error_message(self, resp: httpx.Response) -> str:
        """Best-effort human message from a provider's error body."""
        try:
            body = resp.json()
        except ValueError:
            return f"HTTP {resp.status_code} error"
        if isinstance(body, dict):
            error = body.get("error")
            if isinstance(error, dict) and error.get("message"):
                return str(error["message"])
            for key in ("message", "reason"):
                if body.get(key):
                    return str(body[key])
        return f"HTTP {resp.status_code} error"

    async def _get_json(self, url: str, params: Mapping[str, Any]) -> Any:
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, headers={"User-Agent": USER_AGENT}
            ) as client:
                resp = await logged_request_async(client, "get", url, params=params)
        except httpx.TimeoutException as exc:
            raise UpstreamTimeoutError(
                f"{self.name} did not respond within {self.timeout:g}s"
            ) from exc
        except httpx.HTTPError as exc:
            raise UpstreamError(f"{self.name} request failed: {exc}") from exc

        if not resp.is_success:
            raise UpstreamError(self._error_message(resp), status_code=resp.status_code)

        try:
            return resp.json()
        except ValueError as exc:
            raise SchemaMismatchError(
                "Invalid API response format",
                details={"provider": self.name, "error": f"body is not JSON: {exc}"},
            ) from exc

    # ── Capabilities ─────────────────────────────────────────────────────
    @abc.abstractmethod
    async def fetch_current(self, place: Place) -> CurrentBundle:
        """Current conditions (+ near-term hourly points when available)."""

    @abc.abstractmethod
    async def fetch_forecast(self, place: Place, days: int = 5) -> ForecastBundle:
        """Hourly + daily forecast for *days* days."""

    @abc.abstractmethod
    async def fetch_onecall(self, place: Place) -> OneCallBundle:
        """Current + forecast + official alerts in one bundle."""

    @abc.abstractmethod
    async def fetch_alerts(self, lat: float, lon: float) -> list[WeatherAlert]:
        """Official alerts; never ``None``."""

    @abc.abstractmethod
    async def fetch_historical(
        self, lat: float, lon: float, when: dt.datetime
    ) -> HistoricalBundle:
        """Observed hourly conditions for the day containing *when*."""

    @abc.abstractmethod
    async def geocode(self, text: str, limit: int = 5) -> list[Location]:
        """Place name → candidates; raises NotFoundError on zero matches."""

    @abc.abstractmethod
    async def reverse_geocode(self, lat: float, lon: float, limit: int = 1) -> list[Location]:
        """Coordinates → named places; raises NotFoundError on zero matches."""


__all__ = [
    "Place",
    "ProviderAdapter",
    "approx_sun_times",
    "approx_temp_range",
    "day_label",
    "normalizing",
]
