"""
Global Exception Handling
Custom exceptions and FastAPI exception handlers.

Error Response Format:
{
    "error": {
        "code": "ERROR_CODE",
        "message": "Human readable message",
        "details": {},
        "request_id": "uuid",
        "timestamp": "ISO8601"
    }
}
"""
import uuid
from datetime import datetime, timezone
from typing import Any

import sentry_sdk
from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import ORJSONResponse

from src.core.logging import get_logger

logger = get_logger(__name__)


def _get_request_id(request: Request) -> str:
    """Get or generate request ID for tracing."""
    return request.headers.get("X-Request-ID") or getattr(
        request.state, "request_id", str(uuid.uuid4())
    )


class FleetTelemetryException(Exception):
    """Base exception for the telemetry service."""

    def __init__(
        self,
        message: str = "An error occurred",
        code: str = "INTERNAL_ERROR",
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class NotFoundError(FleetTelemetryException):
    """Referenced device is absent from the live-status projection."""

    def __init__(self, resource: str, identifier: Any):
        super().__init__(
            message=f"{resource} with identifier '{identifier}' not found",
            code="NOT_FOUND",
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource": resource, "identifier": str(identifier)},
        )


class ValidationError(FleetTelemetryException):
    """Malformed or missing input, rejected before any write."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(
            message=message,
            code="VALIDATION_ERROR",
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            details=details,
        )


class StoreError(FleetTelemetryException):
    """A storage operation failed."""

    def __init__(self, operation: str, device_id: str, reason: str):
        super().__init__(
            message=f"{operation} failed for device '{device_id}': {reason}",
            code="STORE_ERROR",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            details={"operation": operation, "device_id": device_id},
        )
        self.operation = operation
        self.device_id = device_id


class IngestError(FleetTelemetryException):
    """Base class for ingest failures after validation passed."""

    code = "INGEST_FAILED"

    def __init__(self, message: str, device_class: str, device_id: str, cause: Exception):
        super().__init__(
            message=message,
            code=self.code,
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            details={
                "device_class": device_class,
                "device_id": device_id,
                "cause": str(cause),
                "retryable": True,
            },
        )
        self.device_class = device_class
        self.device_id = device_id


class HistoryAppendFailedError(IngestError):
    """History insert failed; neither store changed."""

    code = "HISTORY_APPEND_FAILED"

    def __init__(self, device_class: str, device_id: str, cause: Exception):
        super().__init__(
            f"Failed to record {device_class} telemetry for '{device_id}'",
            device_class,
            device_id,
            cause,
        )


class ProjectionUpdateFailedError(IngestError):
    """History row was written but the live status could not be updated."""

    code = "PROJECTION_UPDATE_FAILED"

    def __init__(self, device_class: str, device_id: str, cause: Exception):
        super().__init__(
            f"{device_class.capitalize()} telemetry for '{device_id}' was recorded "
            "but its live status is stale",
            device_class,
            device_id,
            cause,
        )
        self.details["history_recorded"] = True


class AnalyticsError(FleetTelemetryException):
    """Base class for analytics failures."""


class QueryFailedError(AnalyticsError):
    """A store query failed while computing analytics."""

    def __init__(self, vehicle_id: str, cause: Exception):
        super().__init__(
            message=f"Failed to retrieve analytics for vehicle '{vehicle_id}'",
            code="QUERY_FAILED",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            details={"vehicle_id": vehicle_id, "cause": str(cause)},
        )
        self.vehicle_id = vehicle_id
        self.__cause__ = cause


def _build_error_response(
    code: str,
    message: str,
    status_code: int,
    request: Request,
    details: dict | None = None,
) -> ORJSONResponse:
    """Build standardized error response."""
    request_id = _get_request_id(request)
    timestamp = datetime.now(timezone.utc).isoformat()

    return ORJSONResponse(
        status_code=status_code,
        content={
            "error": {
                "code": code,
                "message": message,
                "details": details or {},
                "request_id": request_id,
                "timestamp": timestamp,
                "path": str(request.url.path),
                "method": request.method,
            }
        },
        headers={"X-Request-ID": request_id},
    )


async def app_exception_handler(request: Request, exc: FleetTelemetryException) -> ORJSONResponse:
    """Handler for FleetTelemetryException and its subclasses."""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        "Application error",
        error_code=exc.code,
        message=exc.message,
        status_code=exc.status_code,
        request_id=_get_request_id(request),
        path=str(request.url.path),
        method=request.method,
    )

    if exc.status_code >= 500:
        sentry_sdk.capture_exception(exc)

    return _build_error_response(
        code=exc.code,
        message=exc.message,
        status_code=exc.status_code,
        request=request,
        details=exc.details,
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> ORJSONResponse:
    """Handler for HTTPException."""
    code_map = {
        400: "BAD_REQUEST",
        404: "NOT_FOUND",
        405: "METHOD_NOT_ALLOWED",
        422: "VALIDATION_ERROR",
        500: "INTERNAL_ERROR",
        503: "SERVICE_UNAVAILABLE",
    }
    error_code = code_map.get(exc.status_code, "HTTP_ERROR")

    logger.warning(
        "HTTP error",
        error_code=error_code,
        status_code=exc.status_code,
        detail=exc.detail,
        request_id=_get_request_id(request),
        path=str(request.url.path),
    )

    return _build_error_response(
        code=error_code,
        message=str(exc.detail),
        status_code=exc.status_code,
        request=request,
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> ORJSONResponse:
    """Handler for request body/path validation errors."""
    errors = exc.errors()
    details = {
        "validation_errors": [
            {
                "field": ".".join(str(loc) for loc in err.get("loc", [])),
                "message": err.get("msg", "Invalid value"),
                "type": err.get("type", "value_error"),
            }
            for err in errors
        ]
    }

    logger.warning(
        "Validation error",
        request_id=_get_request_id(request),
        path=str(request.url.path),
        errors=details,
    )

    return _build_error_response(
        code="VALIDATION_ERROR",
        message=f"Validation failed: {len(errors)} error(s)",
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        request=request,
        details=details,
    )


async def generic_exception_handler(request: Request, exc: Exception) -> ORJSONResponse:
    """Handler for unhandled exceptions."""
    request_id = _get_request_id(request)

    logger.exception(
        "Unhandled exception",
        request_id=request_id,
        path=str(request.url.path),
        method=request.method,
        error_type=type(exc).__name__,
        error_message=str(exc),
    )
    sentry_sdk.capture_exception(exc)

    return _build_error_response(
        code="INTERNAL_ERROR",
        message="An unexpected error occurred. Please try again later.",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        request=request,
        details={"error_id": request_id},
    )
