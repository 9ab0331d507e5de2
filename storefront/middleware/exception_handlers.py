"""Global exception handlers for standardized error responses.

Every error leaves the API as
``{"success": false, "message": ..., "error": {...}, "timestamp": ...}``.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from storefront.services.exceptions import (
    ImageServiceError,
    InvalidCredentialsError,
    InvalidResetTokenError,
    MissingDependencyError,
    OtpError,
    PasswordPolicyError,
    ServiceUnavailableError,
    SmsDeliveryError,
    StorefrontError,
    StoreError,
)

logger = logging.getLogger("storefront.exception")


class ErrorCode(str, Enum):
    BAD_REQUEST = "BAD_REQUEST"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    PASSWORD_POLICY = "PASSWORD_POLICY"
    INVALID_OTP = "INVALID_OTP"
    INVALID_RESET_TOKEN = "INVALID_RESET_TOKEN"
    UPSTREAM_ERROR = "UPSTREAM_ERROR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    INTERNAL_ERROR = "INTERNAL_ERROR"


STATUS_ERROR_CODES = {
    400: ErrorCode.BAD_REQUEST,
    401: ErrorCode.UNAUTHORIZED,
    403: ErrorCode.FORBIDDEN,
    404: ErrorCode.NOT_FOUND,
    409: ErrorCode.CONFLICT,
    422: ErrorCode.VALIDATION_ERROR,
    502: ErrorCode.UPSTREAM_ERROR,
    503: ErrorCode.SERVICE_UNAVAILABLE,
}

# Most specific first
DOMAIN_ERRORS: list[tuple[type[StorefrontError], int, ErrorCode]] = [
    (PasswordPolicyError, 400, ErrorCode.PASSWORD_POLICY),
    (OtpError, 400, ErrorCode.INVALID_OTP),
    (InvalidResetTokenError, 400, ErrorCode.INVALID_RESET_TOKEN),
    (InvalidCredentialsError, 401, ErrorCode.UNAUTHORIZED),
    (MissingDependencyError, 404, ErrorCode.NOT_FOUND),
    (ServiceUnavailableError, 503, ErrorCode.SERVICE_UNAVAILABLE),
    (SmsDeliveryError, 502, ErrorCode.UPSTREAM_ERROR),
    (ImageServiceError, 502, ErrorCode.UPSTREAM_ERROR),
    (StoreError, 500, ErrorCode.INTERNAL_ERROR),
]


def get_error_code(status_code: int) -> ErrorCode:
    if status_code in STATUS_ERROR_CODES:
        return STATUS_ERROR_CODES[status_code]
    return ErrorCode.INTERNAL_ERROR if status_code >= 500 else ErrorCode.BAD_REQUEST


def build_error_response(
    request: Request,
    status_code: int,
    code: ErrorCode,
    message: str,
    details: list[dict[str, Any]] | None = None,
    extra: dict[str, Any] | None = None,
) -> JSONResponse:
    """Build standardized error response."""
    body: dict[str, Any] = {
        "success": False,
        "message": message,
        "error": {
            "code": code.value,
            "request_id": getattr(request.state, "request_id", None),
        },
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    if details:
        body["error"]["details"] = details
    if extra:
        body.update(extra)

    return JSONResponse(status_code=status_code, content=body)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("HTTPException status=%s detail=%s", exc.status_code, exc.detail)

    return build_error_response(
        request=request,
        status_code=exc.status_code,
        code=get_error_code(exc.status_code),
        message=str(exc.detail),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle request validation errors with field-level details."""
    details = []
    for error in exc.errors():
        loc = " -> ".join(str(x) for x in error.get("loc", []))
        details.append(
            {
                "field": loc,
                "message": error.get("msg", "Invalid value"),
                "type": error.get("type", "value_error"),
            }
        )

    return build_error_response(
        request=request,
        status_code=422,
        code=ErrorCode.VALIDATION_ERROR,
        message="Validation error: Please check your request data",
        details=details,
    )


async def storefront_exception_handler(request: Request, exc: StorefrontError) -> JSONResponse:
    """Map service-layer errors to HTTP statuses."""
    status_code, code = 500, ErrorCode.INTERNAL_ERROR
    for error_type, error_status, error_code in DOMAIN_ERRORS:
        if isinstance(exc, error_type):
            status_code, code = error_status, error_code
            break

    extra: dict[str, Any] = {}
    if isinstance(exc, PasswordPolicyError):
        extra["errors"] = exc.errors
    if isinstance(exc, OtpError) and exc.remaining_attempts is not None:
        extra["remainingAttempts"] = exc.remaining_attempts

    message = str(exc)
    if status_code >= 500:
        logger.error("%s on %s: %s", type(exc).__name__, request.url.path, exc)
        if isinstance(exc, StoreError):
            message = "A storage error occurred. Please try again later."

    return build_error_response(request, status_code, code, message, extra=extra or None)


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unhandled exceptions - returns 500 with minimal info."""
    logger.exception("Unhandled exception path=%s", request.url.path)

    return build_error_response(
        request=request,
        status_code=500,
        code=ErrorCode.INTERNAL_ERROR,
        message="An unexpected error occurred. Please try again later.",
    )
