"""
tests/integration/conftest.py
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Live-provider tests run only when INTEGRATION_TESTS is set *and* the
selected WEATHER_PROVIDER has an API key (environment or ``.env``)::

    INTEGRATION_TESTS=1 WEATHERAPI_KEY=... pytest tests/integration/ -v
    INTEGRATION_TESTS=1 WEATHER_PROVIDER=openweather OPENWEATHER_API_KEY=... \\
        pytest tests/integration/ -v
"""

from __future__ import annotations

import os
import time
from pathlib import Path
from typing import Generator

import pytest

from skywatch.config import Settings, load_settings
from skywatch.providers import build_provider
from skywatch.providers.base import ProviderAdapter

HERE = Path(__file__).parent

# Free tiers of both providers throttle bursts.
CALL_SPACING_S = 1.0


def _skip_reason(settings: Settings) -> str | None:
    if not os.getenv("INTEGRATION_TESTS"):
        return "set INTEGRATION_TESTS=1 to call the live provider"
    if not settings.api_key_for(settings.weather_provider):
        return f"no API key configured for {settings.weather_provider}"
    return None


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    live = [item for item in items if HERE in item.path.parents]
    if not live:
        return
    reason = _skip_reason(load_settings())
    if reason is None:
        return
    marker = pytest.mark.skip(reason=reason)
    for item in live:
        item.add_marker(marker)


@pytest.fixture(scope="session")
def live_settings() -> Settings:
    return load_settings()


@pytest.fixture
def integration_timeout(live_settings: Settings) -> float:
    """Upstream timeout the app itself would use."""
    return live_settings.upstream_timeout_s


@pytest.fixture
def provider(live_settings: Settings, integration_timeout: float) -> ProviderAdapter:
    adapter = build_provider(live_settings)
    adapter.timeout = integration_timeout
    return adapter


@pytest.fixture
def call_spacing() -> Generator[None, None, None]:
    yield
    time.sleep(CALL_SPACING_S)
