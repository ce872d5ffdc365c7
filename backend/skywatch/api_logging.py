"""
api_logging.py
~~~~~~~~~~~~~~
Tiny wrapper that prints **one concise log line** per outbound provider
request, with API keys scrubbed from the logged URL.

Usage example
-------------
>>> from .api_logging import logged_request_async
>>> async with httpx.AsyncClient() as cli:
...     resp = await logged_request_async(
...         cli, "get", "https://api.weatherapi.com/v1/forecast.json",
...         params={"key": "…", "q": "Manila"},
...     )
"""

from __future__ import annotations

import logging
import time
from typing import Any, Mapping

import httpx

LOG = logging.getLogger("extapi")

# Query parameters that carry credentials for the providers we talk to.
SECRET_PARAMS: frozenset[str] = frozenset({"appid", "key", "apikey", "api_key", "token"})


def redact_url(url: str, params: Mapping[str, Any] | None = None) -> str:
    """
    Return *url* (merged with *params*) with secret query values masked.

    >>> redact_url("https://x.test/w", {"q": "Cebu", "appid": "abc"})
    'https://x.test/w?q=Cebu&appid=REDACTED'
    """
    merged = httpx.URL(url, params=dict(params) if params else None)
    scrubbed = [
        (k, "REDACTED" if k.lower() in SECRET_PARAMS else v)
        for k, v in merged.params.multi_items()
    ]
    return str(merged.copy_with(params=scrubbed or None))


async def logged_request_async(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    *args: Any,
    params: Mapping[str, Any] | None = None,
    **kwargs: Any,
) -> httpx.Response:
    """
    Issue one HTTP request **and** emit a concise log line.

    Parameters
    ----------
    client:
        ``httpx.AsyncClient`` instance.
    method:
        HTTP verb – e.g. ``"get"`` … **lower-case**.
    url:
        Absolute URL without the query string.
    params:
        Query parameters; secrets among them are masked in the log line.

    Returns
    -------
    httpx.Response
        Raw response; status handling is left to the caller.

    Notes
    -----
    * Network failures are logged at *WARNING* and re-raised unchanged.
    * **4xx** is logged at *INFO* (bad city name, unknown coords …),
      **≥500** at *WARNING*.
    """
    verb = method.upper()
    shown = redact_url(url, params)
    t0 = time.perf_counter()
    try:
        response = await getattr(client, method)(url, *args, params=params, **kwargs)
    except Exception as exc:
        latency_ms = (time.perf_counter() - t0) * 1000.0
        LOG.warning("FAIL %s %s %.0f ms %s", verb, shown, latency_ms, exc)
        raise

    latency_ms = (time.perf_counter() - t0) * 1000.0
    code = response.status_code

    if code >= 500:
        LOG.warning("%s %s → %s (%.0f ms)", verb, shown, code, latency_ms)
    else:
        LOG.info("%s %s → %s (%.0f ms)", verb, shown, code, latency_ms)

    return response


__all__ = ["SECRET_PARAMS", "logged_request_async", "redact_url"]
