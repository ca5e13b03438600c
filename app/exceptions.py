# =============================================================================
# app/exceptions.py - Custom Exception Handlers
# =============================================================================
# Centralized exception handling for the API.
# Errors should tell HOW to fix, not just WHAT failed.
#
# Every error response has the same shape:
#   {"error": "<message>", "code": "<CODE>", "suggestion"?: ..., "details"?: ...}
# =============================================================================

import logging
from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class StockMetaException(Exception):
    """
    Base exception for the StockMeta API.

    All custom exceptions inherit from this class.
    Provides structured error responses with actionable suggestions.
    """

    def __init__(
        self,
        message: str,
        code: str = "STOCKMETA_ERROR",
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
            "error": self.message,
            "code": self.code,
        }
        if self.suggestion:
            result["suggestion"] = self.suggestion
        if self.details:
            result["details"] = self.details
        return result


# =============================================================================
# Request Exceptions
# =============================================================================

class BadRequestError(StockMetaException):
    """Raised when a request is missing fields or carries invalid values."""

    def __init__(self, message: str, code: str = "BAD_REQUEST", details: dict[str, Any] | None = None):
        super().__init__(
            message=message,
            code=code,
            status_code=400,
            details=details,
        )


class UnauthorizedError(StockMetaException):
    """Raised when the bearer token is missing or invalid."""

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(
            message=message,
            code="UNAUTHORIZED",
            status_code=401,
            suggestion="Sign in again to refresh your session",
        )


class AdminRequiredError(StockMetaException):
    """Raised when a non-admin calls an admin-only operation."""

    def __init__(self):
        super().__init__(
            message="Admin access required",
            code="ADMIN_REQUIRED",
            status_code=403,
        )


class NotFoundError(StockMetaException):
    """Raised when a row doesn't exist or isn't visible to the caller."""

    def __init__(self, message: str, code: str = "NOT_FOUND", details: dict[str, Any] | None = None):
        super().__init__(
            message=message,
            code=code,
            status_code=404,
            details=details,
        )


# =============================================================================
# Credit Exceptions
# =============================================================================

class InsufficientCreditsError(StockMetaException):
    """Raised when a user has fewer credits than an operation needs."""

    def __init__(self, needed: int, remaining: int):
        super().__init__(
            message="Insufficient credits. Please purchase more credits to continue.",
            code="INSUFFICIENT_CREDITS",
            status_code=402,
            suggestion="Buy a credit pack or upgrade your plan",
            details={"needed": needed, "remaining": remaining},
        )


class SubscriptionLookupError(StockMetaException):
    """Raised when the caller's subscription cannot be read."""

    def __init__(self):
        super().__init__(
            message="Could not verify subscription",
            code="SUBSCRIPTION_LOOKUP_FAILED",
            status_code=500,
            suggestion="Try again later or contact support if the issue persists",
        )


class PurchaseRequestError(StockMetaException):
    """Raised when a credit pack purchase cannot be recorded."""

    def __init__(self):
        super().__init__(
            message="Failed to create purchase request",
            code="PURCHASE_FAILED",
            status_code=500,
        )


class CreditGrantError(StockMetaException):
    """Raised when approved credits cannot be added; the purchase stays pending."""

    def __init__(self):
        super().__init__(
            message="Failed to add credits to the user's subscription",
            code="CREDIT_GRANT_FAILED",
            status_code=500,
            suggestion="The purchase is still pending. Check the user has a current subscription and approve again",
        )


class SubscriptionUpdateError(StockMetaException):
    """Raised when a subscription request or cancellation cannot be written."""

    def __init__(self, message: str):
        super().__init__(message=message, code="SUBSCRIPTION_FAILED", status_code=500)


class ReferralFailedError(StockMetaException):
    """Raised when a referral cannot be recorded."""

    def __init__(self):
        super().__init__(
            message="Failed to process referral",
            code="REFERRAL_FAILED",
            status_code=500,
        )


# =============================================================================
# Upload / Media Exceptions
# =============================================================================

class FileTooLargeError(StockMetaException):
    """Raised when uploaded file exceeds size limit."""

    def __init__(self, size_mb: float, max_mb: int):
        super().__init__(
            message=f"File too large: {size_mb:.1f}MB (max: {max_mb}MB)",
            code="FILE_TOO_LARGE",
            status_code=413,
            suggestion=f"Upload a file smaller than {max_mb}MB",
            details={"size_mb": size_mb, "max_mb": max_mb}
        )


class UnsupportedMediaTypeError(StockMetaException):
    """Raised for formats that must be converted by the user first."""

    def __init__(self, message: str, suggestion: str | None = None, details: dict[str, Any] | None = None):
        super().__init__(
            message=message,
            code="UNSUPPORTED_MEDIA_FORMAT",
            status_code=415,
            suggestion=suggestion,
            details=details,
        )


class MediaConversionError(StockMetaException):
    """Raised when an SVG or video cannot be converted to an image."""

    def __init__(self, message: str, suggestion: str | None = None):
        super().__init__(
            message=message,
            code="MEDIA_CONVERSION_FAILED",
            status_code=422,
            suggestion=suggestion or "Check that the file is not corrupted, or upload a PNG/JPG instead",
        )


class StorageRemoveError(StockMetaException):
    """Raised when files cannot be deleted from storage."""

    def __init__(self, bucket: str, error: str):
        super().__init__(
            message=f"Failed to remove files from storage: {error}",
            code="STORAGE_REMOVE_ERROR",
            status_code=500,
            suggestion="Try again later or contact support if the issue persists",
            details={"bucket": bucket, "error": error}
        )


# =============================================================================
# AI Gateway Exceptions
# =============================================================================

class AIRateLimitedError(StockMetaException):
    """Raised when the AI gateway answers 429."""

    def __init__(self, message: str = "Too many requests. Please wait a moment and try again."):
        super().__init__(message=message, code="AI_RATE_LIMITED", status_code=429)


class AICreditsExhaustedError(StockMetaException):
    """Raised when the AI gateway answers 402."""

    def __init__(self, message: str = "AI credits exhausted. Please add funds to continue."):
        super().__init__(message=message, code="AI_CREDITS_EXHAUSTED", status_code=402)


class AIServiceError(StockMetaException):
    """Raised for any other AI gateway failure; the message stays generic."""

    def __init__(self, message: str, status_code: int = 500):
        super().__init__(message=message, code="AI_SERVICE_ERROR", status_code=status_code)


# =============================================================================
# Email / Job Exceptions
# =============================================================================

class EmailDeliveryError(StockMetaException):
    """Raised when the contact email cannot be sent."""

    def __init__(self, message: str = "Failed to send email"):
        super().__init__(message=message, code="EMAIL_FAILED", status_code=500)


class JobFailedError(StockMetaException):
    """Raised when a scheduled job aborts."""

    def __init__(self, job: str, error: str):
        super().__init__(
            message=error,
            code="JOB_FAILED",
            status_code=500,
            details={"job": job},
        )


# =============================================================================
# Exception Handlers
# =============================================================================

async def stockmeta_exception_handler(
    request: Request,
    exc: StockMetaException
) -> JSONResponse:
    """
    Convert StockMetaException to JSON response.

    Returns structured error with:
    - error: Human-readable message
    - code: Machine-readable error code
    - suggestion: How to fix (if available)
    - details: Additional context
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


async def validation_exception_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    """
    Handle Pydantic validation errors.

    Converts validation errors to user-friendly messages.
    """
    errors = exc.errors() if hasattr(exc, "errors") else []
    return JSONResponse(
        status_code=422,
        content={
            "error": "Validation error",
            "code": "VALIDATION_ERROR",
            "details": {"errors": [
                {"field": ".".join(str(p) for p in err.get("loc", [])), "message": err.get("msg")}
                for err in errors
            ]},
        }
    )


async def unhandled_exception_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    """Catch-all: log the traceback, never leak internals."""
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "error": "An unexpected error occurred",
            "code": "INTERNAL_ERROR",
        }
    )
