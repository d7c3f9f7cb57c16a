"""
Custom exception hierarchy for the Energycast API.

The engine itself never raises for data problems: ineligible days, thin
history and stale cache entries all degrade to a well-typed result. These
exceptions cover the HTTP surface only. Every error carries a
machine-readable `code` so clients can branch on it.
"""
from __future__ import annotations

import logging
from datetime import date
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exception classes
# ---------------------------------------------------------------------------

class EnergycastException(Exception):
    """Base class for all application-level errors."""
    http_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class HistoryTooLongError(EnergycastException):
    http_status = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "HISTORY_TOO_LONG"

    def __init__(self, max_days: int, received: int):
        super().__init__(
            message=f"Biometric history exceeds maximum of {max_days} days. Received {received}.",
            details={"max_days": max_days, "received": received},
        )


class ForecastNotFoundError(EnergycastException):
    http_status = status.HTTP_404_NOT_FOUND
    code = "FORECAST_NOT_FOUND"

    def __init__(self, day: date):
        super().__init__(
            message=f"No cached forecast for {day}.",
            details={"day": str(day)},
        )


class AccuracyNotFoundError(EnergycastException):
    http_status = status.HTTP_404_NOT_FOUND
    code = "ACCURACY_NOT_FOUND"

    def __init__(self, day: date | None = None, days: int | None = None):
        if day is not None:
            message = f"No forecast accuracy recorded for {day}."
            details: dict[str, Any] = {"day": str(day)}
        else:
            message = f"No forecast accuracy recorded in the last {days} days."
            details = {"days": days}
        super().__init__(message=message, details=details)


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

async def energycast_exception_handler(
    request: Request, exc: EnergycastException
) -> JSONResponse:
    return JSONResponse(
        status_code=exc.http_status,
        content=exc.to_dict(),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Return structured 422 with machine-readable field errors."""
    field_errors = []
    for error in exc.errors():
        field_errors.append({
            "field": ".".join(str(loc) for loc in error["loc"] if loc != "body"),
            "message": error["msg"],
            "type": error["type"],
        })
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "code": "VALIDATION_ERROR",
            "message": "Request validation failed.",
            "details": {"errors": field_errors},
        },
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "code": "INTERNAL_ERROR",
            "message": "An unexpected error occurred.",
        },
    )
