"""
errors.py
~~~~~~~~~
Error taxonomy shared by providers, services and the HTTP layer.

Every error knows the HTTP status it maps to, so ``main.py`` needs exactly
one exception handler.  Nothing here is retried.

    ValidationError       400  missing / malformed query parameters
    NotFoundError         404  zero geocoding matches
    UpstreamError         ---  provider status passed through (502 if unknown)
    UpstreamTimeoutError  504  provider did not answer in time
    SchemaMismatchError   500  provider payload cannot fill the canonical shape
    InternalError         500  anything else; details never leave the server
"""

from __future__ import annotations

from typing import Any


class WeatherServiceError(Exception):
    """Base class: carries a client-facing message and an HTTP status."""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        details: Any = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"message": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class ValidationError(WeatherServiceError):
    status_code = 400


class NotFoundError(WeatherServiceError):
    status_code = 404


class UpstreamError(WeatherServiceError):
    """Non-2xx (or unreachable) upstream provider."""

    status_code = 502


class UpstreamTimeoutError(UpstreamError):
    status_code = 504


class SchemaMismatchError(WeatherServiceError):
    status_code = 500


class InternalError(WeatherServiceError):
    status_code = 500

    def __init__(self, message: str = "Internal server error") -> None:
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {"message": self.message}


__all__ = [
    "InternalError",
    "NotFoundError",
    "SchemaMismatchError",
    "UpstreamError",
    "UpstreamTimeoutError",
    "ValidationError",
    "WeatherServiceError",
]
