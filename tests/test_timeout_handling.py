"""
tests/test_timeout_handling.py
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Test timeout and error handling for upstream provider calls.

These tests verify that network failures surface as the documented HTTP
statuses instead of crashing the request, and that nothing is cached when
the provider fails.
"""

from __future__ import annotations

import httpx
import pytest
from fastapi.testclient import TestClient

from skywatch.cache import TTLCache
from skywatch.config import Settings
from skywatch.errors import UpstreamTimeoutError
from skywatch.main import create_app
from skywatch.providers import OpenWeatherAdapter, WeatherApiAdapter
from skywatch.weather_service import WeatherService


class TestProviderTimeouts:
    """Both adapters share ``ProviderAdapter._get_json`` failure mapping."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("adapter_cls", [WeatherApiAdapter, OpenWeatherAdapter])
    async def test_timeout_becomes_upstream_timeout(self, httpx_mock, adapter_cls) -> None:
        httpx_mock.add_exception(httpx.ConnectTimeout("timeout"))

        with pytest.raises(UpstreamTimeoutError) as info:
            await adapter_cls(api_key="k", timeout=0.5).geocode("Manila")

        assert info.value.status_code == 504
        assert "0.5s" in info.value.message

    @pytest.mark.asyncio
    async def test_failed_call_is_not_cached(self, httpx_mock) -> None:
        httpx_mock.add_exception(httpx.ReadTimeout("timeout"))
        svc = WeatherService(WeatherApiAdapter(api_key="k"), TTLCache())

        with pytest.raises(UpstreamTimeoutError):
            await svc.get_current("Manila")

        assert len(svc.cache) == 0


class TestTimeoutOverHttp:
    """A slow provider turns into a 504 JSON envelope for the client."""

    @pytest.fixture
    def client(self) -> TestClient:
        settings = Settings(weatherapi_key="k", upstream_timeout_s=1.0)
        return TestClient(create_app(settings=settings))

    def test_weather_timeout_is_504(self, client: TestClient, httpx_mock) -> None:
        httpx_mock.add_exception(httpx.ReadTimeout("timeout"))

        resp = client.get("/api/weather", params={"q": "Manila"})

        assert resp.status_code == 504
        assert resp.json() == {"message": "weatherapi did not respond within 1s"}

    def test_connection_error_is_502(self, client: TestClient, httpx_mock) -> None:
        httpx_mock.add_exception(httpx.ConnectError("connection failed"))

        resp = client.get("/api/geocode", params={"q": "Manila"})

        assert resp.status_code == 502
        assert resp.json()["message"].startswith("weatherapi request failed")
