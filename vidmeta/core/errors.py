"""Centralized error handling for the API.

This module provides standardized error codes, exception-to-response mapping,
and a global exception handler for FastAPI.
"""

import re
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Type

import structlog
from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_404_NOT_FOUND,
    HTTP_422_UNPROCESSABLE_ENTITY,
    HTTP_500_INTERNAL_SERVER_ERROR,
    HTTP_502_BAD_GATEWAY,
    HTTP_503_SERVICE_UNAVAILABLE,
)

from vidmeta.core.logging import get_request_id
from vidmeta.core.metrics import MetricsCollector
from vidmeta.models.aggregation import ConfigurationError
from vidmeta.providers.exceptions import (
    AuthenticationError,
    MalformedRecordError,
    ProviderError,
    SourceUnavailableError,
)

logger = structlog.get_logger(__name__)


class ErrorCode:
    """Standardized error codes for API responses.

    These codes provide machine-readable identifiers for error conditions
    that clients can use to implement error handling logic.
    """

    # Client Errors (4xx)
    INVALID_REQUEST = "INVALID_REQUEST"
    INVALID_CONFIG = "INVALID_CONFIG"
    INVALID_PATTERN = "INVALID_PATTERN"
    VIDEO_NOT_FOUND = "VIDEO_NOT_FOUND"
    CHANNEL_NOT_FOUND = "CHANNEL_NOT_FOUND"
    NOT_FOUND = "NOT_FOUND"

    # Server Errors (5xx)
    SOURCE_AUTH_FAILED = "SOURCE_AUTH_FAILED"
    SOURCE_UNAVAILABLE = "SOURCE_UNAVAILABLE"
    MALFORMED_RECORD = "MALFORMED_RECORD"
    PROVIDER_ERROR = "PROVIDER_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"

    # Service Unavailable (503)
    COMPONENT_UNAVAILABLE = "COMPONENT_UNAVAILABLE"


# Error code to HTTP status code mapping
ERROR_CODE_TO_STATUS: Dict[str, int] = {
    # 400 Bad Request
    ErrorCode.INVALID_CONFIG: HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_PATTERN: HTTP_400_BAD_REQUEST,
    # 404 Not Found
    ErrorCode.VIDEO_NOT_FOUND: HTTP_404_NOT_FOUND,
    ErrorCode.CHANNEL_NOT_FOUND: HTTP_404_NOT_FOUND,
    ErrorCode.NOT_FOUND: HTTP_404_NOT_FOUND,
    # 422 Unprocessable Entity
    ErrorCode.INVALID_REQUEST: HTTP_422_UNPROCESSABLE_ENTITY,
    # 500 Internal Server Error
    ErrorCode.MALFORMED_RECORD: HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.PROVIDER_ERROR: HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.INTERNAL_ERROR: HTTP_500_INTERNAL_SERVER_ERROR,
    # 502 Bad Gateway
    ErrorCode.SOURCE_AUTH_FAILED: HTTP_502_BAD_GATEWAY,
    # 503 Service Unavailable
    ErrorCode.SOURCE_UNAVAILABLE: HTTP_503_SERVICE_UNAVAILABLE,
    ErrorCode.COMPONENT_UNAVAILABLE: HTTP_503_SERVICE_UNAVAILABLE,
}


# User-friendly suggestions for error resolution
ERROR_SUGGESTIONS: Dict[str, str] = {
    ErrorCode.INVALID_REQUEST: "Check the query parameters against the API documentation at /docs",
    ErrorCode.INVALID_CONFIG: (
        "Check field names and values. Limits must be non-negative, strategy one of "
        "'round-robin', 'source-priority', 'relevance'"
    ),
    ErrorCode.INVALID_PATTERN: "The cache pattern must be a valid regular expression",
    ErrorCode.VIDEO_NOT_FOUND: (
        "The video ID does not exist in any enabled source. Accepted forms: catalog ID, "
        "prefixed ID (external-<id>), 11-character token or watch URL"
    ),
    ErrorCode.CHANNEL_NOT_FOUND: "The channel ID does not exist in any enabled source",
    ErrorCode.NOT_FOUND: "Check the request path",
    ErrorCode.SOURCE_AUTH_FAILED: "The external platform API key is missing or was rejected",
    ErrorCode.SOURCE_UNAVAILABLE: "A video source is unreachable. Try again later",
    ErrorCode.MALFORMED_RECORD: "A source returned an unexpected record shape",
    ErrorCode.PROVIDER_ERROR: "An error occurred with a video source. Try again later",
    ErrorCode.INTERNAL_ERROR: "An unexpected error occurred. Contact administrator if the issue persists",
    ErrorCode.COMPONENT_UNAVAILABLE: "A required system component is unavailable. Check /health for status",
}


# Exception type to error code mapping
# Order matters: subclasses must come before their base classes
EXCEPTION_TO_ERROR_CODE: Dict[Type[Exception], str] = {
    ConfigurationError: ErrorCode.INVALID_CONFIG,
    re.error: ErrorCode.INVALID_PATTERN,
    AuthenticationError: ErrorCode.SOURCE_AUTH_FAILED,
    SourceUnavailableError: ErrorCode.SOURCE_UNAVAILABLE,
    MalformedRecordError: ErrorCode.MALFORMED_RECORD,
    # ProviderError must be last (after its subclasses)
    ProviderError: ErrorCode.PROVIDER_ERROR,
}


class APIError(Exception):
    """Structured API error that can be converted to ErrorDetail response.

    This exception class provides a standardized way to raise errors
    that will be converted to consistent error responses by the global
    exception handler.
    """

    def __init__(
        self,
        error_code: str,
        message: str,
        details: Optional[str] = None,
        suggestion: Optional[str] = None,
    ):
        """Initialize an API error.

        Args:
            error_code: Machine-readable error code from ErrorCode class.
            message: Human-readable error message.
            details: Optional additional details about the error.
            suggestion: Optional suggestion for resolution. If not provided,
                        the default suggestion for the error code is used.
        """
        self.error_code = error_code
        self.message = message
        self.details = details
        self.suggestion = suggestion or ERROR_SUGGESTIONS.get(error_code)
        super().__init__(message)


def map_exception_to_api_error(exc: Exception) -> APIError:
    """Map source and configuration exceptions to APIError.

    Uses EXCEPTION_TO_ERROR_CODE dictionary for maintainable type-based dispatch.
    Dictionary order ensures subclasses are checked before their base classes.

    Args:
        exc: The exception to map.

    Returns:
        An APIError with the appropriate error code and message.
    """
    for exc_type, error_code in EXCEPTION_TO_ERROR_CODE.items():
        if isinstance(exc, exc_type):
            return APIError(error_code, str(exc))
    return APIError(ErrorCode.INTERNAL_ERROR, "An unexpected error occurred")


def _build_error_response(
    error_code: str,
    message: str,
    details: Optional[str] = None,
    suggestion: Optional[str] = None,
) -> Dict[str, Any]:
    """Build a standardized error response dictionary.

    Args:
        error_code: Machine-readable error code.
        message: Human-readable error message.
        details: Optional additional details.
        suggestion: Optional suggestion for resolution.

    Returns:
        Dictionary matching the ErrorDetail schema.
    """
    request_id = get_request_id()
    timestamp = datetime.now(timezone.utc).isoformat()

    response: Dict[str, Any] = {
        "error_code": error_code,
        "message": message,
        "timestamp": timestamp,
    }

    if details:
        response["details"] = details
    if request_id:
        response["request_id"] = request_id
    if suggestion:
        response["suggestion"] = suggestion

    return response


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global exception handler for FastAPI.

    Converts all exceptions to standardized ErrorDetail responses with
    consistent structure, proper HTTP status codes, and request tracing.

    Args:
        request: The FastAPI request object.
        exc: The exception that was raised.

    Returns:
        JSONResponse with ErrorDetail body and appropriate status code.
    """
    if isinstance(exc, APIError):
        # Already a structured API error
        error_code = exc.error_code
        status_code = ERROR_CODE_TO_STATUS.get(error_code, HTTP_500_INTERNAL_SERVER_ERROR)
        response = _build_error_response(
            error_code=error_code,
            message=exc.message,
            details=exc.details,
            suggestion=exc.suggestion,
        )
        logger.warning(
            "api_error",
            error_code=error_code,
            message=exc.message,
            path=request.url.path,
        )

    elif isinstance(exc, RequestValidationError):
        error_code = ErrorCode.INVALID_REQUEST
        status_code = HTTP_422_UNPROCESSABLE_ENTITY
        response = _build_error_response(
            error_code=error_code,
            message="Request validation failed",
            details="; ".join(
                f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg')}"
                for err in exc.errors()
            ),
            suggestion=ERROR_SUGGESTIONS.get(error_code),
        )
        logger.warning("request_validation_error", path=request.url.path)

    elif isinstance(exc, HTTPException):
        # FastAPI HTTPException - preserve status code
        status_code = exc.status_code

        # Check if detail is already structured
        if isinstance(exc.detail, dict) and "error_code" in exc.detail:
            error_code = exc.detail["error_code"]
            message = exc.detail.get("message", str(exc.detail))
            details = exc.detail.get("details")
        else:
            # Infer error code from status
            error_code = _status_to_error_code(status_code)
            message = str(exc.detail) if exc.detail else "An error occurred"
            details = None

        suggestion = ERROR_SUGGESTIONS.get(error_code)
        response = _build_error_response(
            error_code=error_code,
            message=message,
            details=details,
            suggestion=suggestion,
        )
        logger.warning(
            "http_exception",
            status_code=status_code,
            error_code=error_code,
            path=request.url.path,
        )

    elif isinstance(exc, tuple(EXCEPTION_TO_ERROR_CODE)):
        # Map source/config exceptions
        api_error = map_exception_to_api_error(exc)
        error_code = api_error.error_code
        status_code = ERROR_CODE_TO_STATUS.get(error_code, HTTP_500_INTERNAL_SERVER_ERROR)
        response = _build_error_response(
            error_code=error_code,
            message=api_error.message,
            details=api_error.details,
            suggestion=api_error.suggestion,
        )
        logger.warning(
            "mapped_error",
            error_code=error_code,
            error_type=type(exc).__name__,
            message=str(exc),
            path=request.url.path,
        )

    else:
        # Unexpected error - log with full traceback
        error_code = ErrorCode.INTERNAL_ERROR
        status_code = HTTP_500_INTERNAL_SERVER_ERROR
        response = _build_error_response(
            error_code=error_code,
            message="An unexpected error occurred",
            suggestion=ERROR_SUGGESTIONS.get(error_code),
        )
        logger.error(
            "unhandled_exception",
            error_type=type(exc).__name__,
            error=str(exc),
            path=request.url.path,
            exc_info=True,
        )

    MetricsCollector.record_error(error_code, request.url.path)
    return JSONResponse(status_code=status_code, content=response)


def _status_to_error_code(status_code: int) -> str:
    """Infer error code from HTTP status code.

    Args:
        status_code: HTTP status code.

    Returns:
        Appropriate error code string.
    """
    if status_code == HTTP_400_BAD_REQUEST:
        return ErrorCode.INVALID_REQUEST
    elif status_code == HTTP_404_NOT_FOUND:
        return ErrorCode.NOT_FOUND
    elif status_code == HTTP_422_UNPROCESSABLE_ENTITY:
        return ErrorCode.INVALID_REQUEST
    elif status_code == HTTP_503_SERVICE_UNAVAILABLE:
        return ErrorCode.COMPONENT_UNAVAILABLE
    else:
        return ErrorCode.INTERNAL_ERROR
