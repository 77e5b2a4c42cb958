# =============================================================================
# app/exceptions.py - Custom Exception Handlers
# =============================================================================
# Centralized exception handling for the API.
# Every error response carries a machine-readable code and, where possible,
# a suggestion on how to fix the problem.
# =============================================================================

import logging
from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AppException(Exception):
    """
    Base exception for the API.

    All custom exceptions inherit from this class.
    Provides structured error responses with actionable suggestions.
    """

    def __init__(
        self,
        message: str,
        code: str = "APP_ERROR",
        status_code: int = 500,
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.suggestion = suggestion
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to API response dict."""
        result = {
            "detail": self.message,
            "code": self.code,
        }
        if self.suggestion:
            result["suggestion"] = self.suggestion
        if self.details:
            result["details"] = self.details
        return result


# =============================================================================
# Notification Exceptions
# =============================================================================

class NotificationPublishError(AppException):
    """Raised when a notification cannot be handed to the message broker."""

    def __init__(self, group: str, error: str):
        super().__init__(
            message=f"Failed to publish notification: {error}",
            code="NOTIFICATION_PUBLISH_FAILED",
            status_code=503,
            suggestion="Check that the Redis broker is reachable and try again",
            details={"group": group, "error": error}
        )


class GroupNameError(AppException):
    """Raised when a notification group name is not acceptable."""

    def __init__(self, group: str):
        super().__init__(
            message=f"Invalid notification group: {group!r}",
            code="INVALID_GROUP",
            status_code=400,
            suggestion="Use 1-64 letters, digits, '-', '_' or '.'",
            details={"group": group}
        )


# =============================================================================
# Diagnostics
# =============================================================================

class DiagnosticError(AppException):
    """Raised on purpose to verify error capture end to end."""

    def __init__(self):
        super().__init__(
            message="Diagnostic error raised on request",
            code="DIAGNOSTIC_ERROR",
            status_code=500,
            suggestion="Check the error tracker for this event",
        )


# =============================================================================
# Exception Handlers
# =============================================================================

async def app_exception_handler(
    request: Request,
    exc: AppException
) -> JSONResponse:
    """
    Convert AppException to JSON response.

    Returns structured error with:
    - detail: Human-readable message
    - code: Machine-readable error code
    - suggestion: How to fix (if available)
    - details: Additional context
    """
    if exc.status_code >= 500:
        # The logging integration turns this into an error-tracker event
        logger.error(f"{exc.code} on {request.url.path}: {exc.message}", exc_info=exc)
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


async def unhandled_exception_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    """Log unexpected exceptions and hide their details from clients."""
    logger.exception(f"Unexpected error: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "detail": "An unexpected error occurred",
            "code": "INTERNAL_ERROR",
        }
    )
