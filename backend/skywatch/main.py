"""
main.py – FastAPI entry point
=============================

Thin request handlers: validate parameters, delegate to
:class:`~skywatch.weather_service.WeatherService` (cache → provider →
normalizer) or the recent-locations store, and shape JSON.

Key points
----------
* Everything stateful (settings, cache, provider, store) is built in
  :func:`create_app` and hung on ``app.state``; tests build isolated apps.
* One error envelope for every failure: ``{"message": str, "details"?: any}``.
  Status comes from the :mod:`skywatch.errors` class (upstream status is
  passed through); anything unexpected becomes a generic 500.
* All routes live under ``/api`` except the ``/healthz`` probe.

Run locally::

    uvicorn skywatch.main:app --reload
"""

from __future__ import annotations

# ─── Std-lib / third-party ────────────────────────────────────────────
import datetime as dt
import logging
import sys
from contextlib import asynccontextmanager
from typing import Any

from dateutil import parser as dtparse
from fastapi import APIRouter, Body, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.exceptions import HTTPException as StarletteHTTPException

# ─── Project modules ──────────────────────────────────────────────────
from .cache import TTLCache
from .config import Settings, load_settings
from .constants import DEFAULT_LOCATION, RECENT_LOCATIONS_LIMIT
from .errors import InternalError, UpstreamError, ValidationError, WeatherServiceError
from .location_store import RecentLocationStore
from .providers import build_provider
from .providers.base import Place
from .references import get_references
from .weather_service import WeatherService

# ─── Logging ──────────────────────────────────────────────────────────
LOG = logging.getLogger("api")

APP_LOGGERS = (
    "api",
    "extapi",
    "cache",
    "providers",
    "weather_service",
    "news_service",
    "location_store",
)

UTC = dt.timezone.utc


def configure_logging(level: str = "INFO") -> None:
    """Send the app loggers to stdout in uvicorn's visual style (idempotent)."""
    fmt = logging.Formatter("%(levelname)s:     %(name)s - %(message)s")
    for name in APP_LOGGERS:
        logger = logging.getLogger(name)
        logger.setLevel(level)
        if not any(getattr(h, "_skywatch", False) for h in logger.handlers):
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(fmt)
            handler._skywatch = True  # type: ignore[attr-defined]
            logger.addHandler(handler)


# ---------------------------------------------------------------------
# Parameter helpers
# ---------------------------------------------------------------------
def _place(q: str | None, lat: float | None, lon: float | None) -> Place:
    """Place-name query wins; otherwise both coordinates are required."""
    if q and q.strip():
        return q.strip()
    if lat is not None and lon is not None:
        return (lat, lon)
    if lat is None and lon is None:
        raise ValidationError(
            "City name (q) or coordinates (lat, lon) are required",
            details={"missing": ["q", "lat", "lon"]},
        )
    missing = "lat" if lat is None else "lon"
    raise ValidationError(
        f"Missing query parameter: {missing} (or provide a city name in q)",
        details={"missing": [missing]},
    )


def _coords(lat: float | None, lon: float | None) -> tuple[float, float]:
    missing = [name for name, v in (("lat", lat), ("lon", lon)) if v is None]
    if missing:
        raise ValidationError(
            f"Coordinates ({', '.join(missing)}) are required",
            details={"missing": missing},
        )
    return lat, lon  # type: ignore[return-value]


def parse_when(raw: str) -> dt.datetime:
    """
    Accept a unix timestamp (``1741478400``), a date (``2025-03-09``) or
    any ISO-8601 datetime; naive values are taken as UTC.
    """
    raw = raw.strip()
    try:
        return dt.datetime.fromtimestamp(float(raw), tz=UTC)
    except (ValueError, OverflowError, OSError):
        pass
    try:
        when = dtparse.isoparse(raw)
    except ValueError:
        raise ValidationError(
            "dt must be a unix timestamp or an ISO-8601 date",
            details={"dt": raw},
        ) from None
    return when if when.tzinfo else when.replace(tzinfo=UTC)


def _coordinate(value: Any, name: str, bound: float) -> str:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be a number", details={name: value}) from None
    if not -bound <= number <= bound:
        raise ValidationError(
            f"{name} must be between -{bound:g} and {bound:g}", details={name: value}
        )
    return value.strip() if isinstance(value, str) else str(value)


def _service(request: Request) -> WeatherService:
    return request.app.state.weather_service


def _store(request: Request) -> RecentLocationStore:
    return request.app.state.location_store


# ---------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------
router = APIRouter(prefix="/api")


@router.get("/weather")
async def weather(
    request: Request,
    q: str | None = Query(None),
    lat: float | None = Query(None, ge=-90, le=90),
    lon: float | None = Query(None, ge=-180, le=180),
) -> JSONResponse:
    """Current conditions + derived hazards for a city name or coordinates."""
    bundle = await _service(request).get_current(_place(q, lat, lon))
    return JSONResponse(bundle)


@router.get("/forecast")
async def forecast(
    request: Request,
    q: str | None = Query(None),
    lat: float | None = Query(None, ge=-90, le=90),
    lon: float | None = Query(None, ge=-180, le=180),
    days: int = Query(5, ge=1, le=14),
) -> JSONResponse:
    """Hourly + daily forecast."""
    bundle = await _service(request).get_forecast(_place(q, lat, lon), days)
    return JSONResponse(bundle)


@router.get("/onecall")
async def onecall(
    request: Request,
    q: str | None = Query(None),
    lat: float | None = Query(None, ge=-90, le=90),
    lon: float | None = Query(None, ge=-180, le=180),
) -> JSONResponse:
    """Current + forecast + official alerts + derived hazards."""
    bundle = await _service(request).get_onecall(_place(q, lat, lon))
    return JSONResponse(bundle)


@router.get("/alerts")
async def alerts(
    request: Request,
    lat: float | None = Query(None, ge=-90, le=90),
    lon: float | None = Query(None, ge=-180, le=180),
) -> JSONResponse:
    """Official alerts only (always a list, possibly empty)."""
    la, lo = _coords(lat, lon)
    return JSONResponse({"alerts": await _service(request).get_alerts(la, lo)})


@router.get("/historical")
async def historical(
    request: Request,
    lat: float | None = Query(None, ge=-90, le=90),
    lon: float | None = Query(None, ge=-180, le=180),
    dt_: str | None = Query(None, alias="dt"),
) -> JSONResponse:
    """Observed conditions for a past date (unix timestamp or ISO date)."""
    missing = [n for n, v in (("lat", lat), ("lon", lon), ("dt", dt_)) if v is None]
    if missing:
        raise ValidationError(
            "Coordinates (lat, lon) and date (dt) are required",
            details={"missing": missing},
        )
    bundle = await _service(request).get_historical(lat, lon, parse_when(dt_))  # type: ignore[arg-type]
    return JSONResponse(bundle)


@router.get("/geocode")
async def geocode(
    request: Request,
    q: str | None = Query(None),
    limit: int = Query(5, ge=1, le=10),
) -> JSONResponse:
    """Place name → candidate locations (404 when nothing matches)."""
    if not q or not q.strip():
        raise ValidationError("Query parameter (q) is required", details={"missing": ["q"]})
    return JSONResponse(await _service(request).geocode(q.strip(), limit))


@router.get("/reverse-geocode")
async def reverse_geocode(
    request: Request,
    lat: float | None = Query(None, ge=-90, le=90),
    lon: float | None = Query(None, ge=-180, le=180),
    limit: int = Query(1, ge=1, le=10),
) -> JSONResponse:
    """Coordinates → named places."""
    la, lo = _coords(lat, lon)
    return JSONResponse(await _service(request).reverse_geocode(la, lo, limit))


@router.get("/locations")
async def recent_locations(
    request: Request,
    limit: int = Query(RECENT_LOCATIONS_LIMIT, ge=1, le=50),
) -> JSONResponse:
    """Recently used locations, most recent first."""
    return JSONResponse(_store(request).list(limit))


@router.get("/weather-api")
async def weather_api(
    request: Request,
    location: str = Query(DEFAULT_LOCATION["name"]),
) -> JSONResponse:
    """Current conditions by place name (Trends tab); defaults to Tagbilaran City."""
    bundle = await _service(request).get_current(location.strip() or DEFAULT_LOCATION["name"])
    return JSONResponse(bundle)


@router.get("/references")
async def references() -> JSONResponse:
    """Static data-source descriptions, emergency contacts and disclaimer."""
    return JSONResponse(get_references())


@router.get("/philippines-news")
async def philippines_news(request: Request) -> JSONResponse:
    """Weather/hazard headlines from Philippine outlets, grouped by source."""
    return JSONResponse(await _service(request).get_news())


def _locations_router(limiter: Limiter, rate: str) -> APIRouter:
    """``POST /api/locations``, the only write endpoint, behind *limiter*."""
    writes = APIRouter(prefix="/api")

    @writes.post("/locations", status_code=201)
    @limiter.limit(rate)
    async def add_location(request: Request, body: dict = Body(...)) -> JSONResponse:
        """Remember a searched / selected location (deduplicated by lat+lon)."""
        missing = [k for k in ("name", "lat", "lon") if body.get(k) in (None, "")]
        if missing:
            raise ValidationError(
                "Name, latitude and longitude are required",
                details={"missing": missing},
            )
        location = {
            "name": str(body["name"]),
            "lat": _coordinate(body["lat"], "lat", 90),
            "lon": _coordinate(body["lon"], "lon", 180),
            "country": body.get("country") or "",
        }
        return JSONResponse(_store(request).add(location), status_code=201)

    return writes


# ---------------------------------------------------------------------
# Error handlers
# ---------------------------------------------------------------------
async def _service_error(request: Request, exc: WeatherServiceError) -> JSONResponse:
    if isinstance(exc, UpstreamError):
        LOG.warning("[%s] upstream %s: %s", request.url.path, exc.status_code, exc.message)
    elif exc.status_code >= 500:
        LOG.error("[%s] %s: %s %s", request.url.path, type(exc).__name__, exc.message, exc.details)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def _request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = sorted({str(err["loc"][-1]) for err in exc.errors() if err.get("loc")})
    err = ValidationError(
        f"Invalid parameter(s): {', '.join(fields) or 'request'}",
        details=[{"field": str(e["loc"][-1]), "error": e["msg"]} for e in exc.errors()],
    )
    return JSONResponse(status_code=err.status_code, content=err.to_dict())


async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"message": str(exc.detail)})


async def _rate_limited(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    return JSONResponse(status_code=429, content={"message": "Rate limit exceeded. Try again later."})


async def _unhandled(request: Request, exc: Exception) -> JSONResponse:
    LOG.error("[%s] unhandled error: %s", request.url.path, exc, exc_info=exc)
    err = InternalError()
    return JSONResponse(status_code=err.status_code, content=err.to_dict())


# ---------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------
def create_app(
    settings: Settings | None = None,
    service: WeatherService | None = None,
    store: RecentLocationStore | None = None,
) -> FastAPI:
    """
    Build the FastAPI app.

    Args:
        settings: Defaults to :func:`load_settings` (env + ``.env``).
        service:  Pre-built service (tests inject stub providers here);
                  otherwise one is built from *settings*.
        store:    Recent-locations store; a fresh one by default.
    """
    settings = settings or load_settings()
    configure_logging(settings.log_level)

    if service is None:
        cache = TTLCache(
            default_ttl=settings.cache_ttl_s,
            max_entries=settings.cache_max_entries,
        )
        service = WeatherService(build_provider(settings), cache)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        LOG.info(
            "[startup] provider=%s cache_ttl=%ss max_entries=%s",
            service.provider.name,
            service.cache.default_ttl,
            service.cache.max_entries,
        )
        yield

    app = FastAPI(title="Skywatch PH", lifespan=lifespan)
    app.state.settings = settings
    app.state.weather_service = service
    app.state.location_store = store if store is not None else RecentLocationStore()
    # per-app counters
    limiter = Limiter(key_func=get_remote_address)
    app.state.limiter = limiter

    app.add_exception_handler(WeatherServiceError, _service_error)
    app.add_exception_handler(RequestValidationError, _request_validation_error)
    app.add_exception_handler(StarletteHTTPException, _http_error)
    app.add_exception_handler(RateLimitExceeded, _rate_limited)
    app.add_exception_handler(Exception, _unhandled)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.allowed_origins),
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    # Health probe --------------------------------------------------------
    @app.get("/healthz", response_class=PlainTextResponse)
    async def healthz() -> PlainTextResponse:
        """Return HTTP 200 with body “ok” if the app is up."""
        return PlainTextResponse("ok", status_code=200)

    app.include_router(router)
    app.include_router(_locations_router(limiter, settings.locations_rate_limit))
    return app


app = create_app()
