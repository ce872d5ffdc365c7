"""
tests/integration/
~~~~~~~~~~~~~~~~~~
Integration tests that call the real upstream weather provider.

These tests are SKIPPED by default. To run them:

    INTEGRATION_TESTS=1 pytest tests/integration/ -v

Rate Limit Considerations:
- WeatherAPI.com free tier: 1M calls/month, fine for local runs
- OpenWeatherMap free tier: 60 calls/minute, One Call 3.0 needs a subscription
"""
