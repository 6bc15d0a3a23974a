"""Tests for error handling and monitoring functionality.

Covers error codes and their status mapping, the global exception handler,
and Prometheus metrics collection.
"""

import re
from unittest.mock import MagicMock

import pytest
from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError

from vidmeta.core.errors import (
    ERROR_CODE_TO_STATUS,
    ERROR_SUGGESTIONS,
    APIError,
    ErrorCode,
    global_exception_handler,
    map_exception_to_api_error,
)
from vidmeta.core.metrics import (
    MetricsCollector,
    errors_total,
    http_request_duration_seconds,
    http_requests_total,
    initialize_metrics,
    result_cache_entries,
    result_cache_lookups_total,
    source_fetch_duration_seconds,
    source_fetch_total,
)
from vidmeta.models.aggregation import ConfigurationError
from vidmeta.providers.exceptions import (
    AuthenticationError,
    MalformedRecordError,
    ProviderError,
    SourceUnavailableError,
)


class TestErrorCodes:
    """Tests for error code constants and mappings."""

    def test_all_error_codes_have_status_mapping(self) -> None:
        """Ensure all error codes have HTTP status mappings."""
        error_code_attrs = [
            attr for attr in dir(ErrorCode) if not attr.startswith("_") and attr.isupper()
        ]

        for attr in error_code_attrs:
            code = getattr(ErrorCode, attr)
            assert code in ERROR_CODE_TO_STATUS, f"Error code {code} missing status mapping"

    def test_all_error_codes_have_suggestions(self) -> None:
        """Ensure all error codes have user-friendly suggestions."""
        error_code_attrs = [
            attr for attr in dir(ErrorCode) if not attr.startswith("_") and attr.isupper()
        ]

        for attr in error_code_attrs:
            code = getattr(ErrorCode, attr)
            assert code in ERROR_SUGGESTIONS, f"Error code {code} missing suggestion"

    def test_client_errors_map_to_4xx(self) -> None:
        """Client error codes should map to 4xx status codes."""
        client_errors = [
            ErrorCode.INVALID_REQUEST,
            ErrorCode.INVALID_CONFIG,
            ErrorCode.INVALID_PATTERN,
            ErrorCode.VIDEO_NOT_FOUND,
            ErrorCode.CHANNEL_NOT_FOUND,
            ErrorCode.NOT_FOUND,
        ]

        for code in client_errors:
            status = ERROR_CODE_TO_STATUS[code]
            assert 400 <= status < 500, f"Client error {code} should map to 4xx, got {status}"

    def test_server_errors_map_to_5xx(self) -> None:
        """Server error codes should map to 5xx status codes."""
        server_errors = [
            ErrorCode.SOURCE_AUTH_FAILED,
            ErrorCode.SOURCE_UNAVAILABLE,
            ErrorCode.MALFORMED_RECORD,
            ErrorCode.PROVIDER_ERROR,
            ErrorCode.INTERNAL_ERROR,
            ErrorCode.COMPONENT_UNAVAILABLE,
        ]

        for code in server_errors:
            status = ERROR_CODE_TO_STATUS[code]
            assert 500 <= status < 600, f"Server error {code} should map to 5xx, got {status}"


class TestAPIError:
    """Tests for APIError exception class."""

    def test_api_error_creation(self) -> None:
        """Test APIError with all fields."""
        error = APIError(
            error_code=ErrorCode.INVALID_CONFIG,
            message="Bad config",
            details="limits.total: must be >= 0",
            suggestion="Use a non-negative limit",
        )

        assert error.error_code == ErrorCode.INVALID_CONFIG
        assert error.message == "Bad config"
        assert error.details == "limits.total: must be >= 0"
        assert error.suggestion == "Use a non-negative limit"

    def test_api_error_default_suggestion(self) -> None:
        """Test automatic suggestion lookup when not provided."""
        error = APIError(error_code=ErrorCode.VIDEO_NOT_FOUND, message="No such video")

        assert error.suggestion == ERROR_SUGGESTIONS[ErrorCode.VIDEO_NOT_FOUND]


class TestExceptionMapping:
    """Tests for exception to APIError mapping."""

    @pytest.mark.parametrize(
        "exception,expected_code",
        [
            (ConfigurationError("bad limit"), ErrorCode.INVALID_CONFIG),
            (re.error("unbalanced parenthesis"), ErrorCode.INVALID_PATTERN),
            (AuthenticationError("bad key"), ErrorCode.SOURCE_AUTH_FAILED),
            (SourceUnavailableError("timeout"), ErrorCode.SOURCE_UNAVAILABLE),
            (MalformedRecordError("no id"), ErrorCode.MALFORMED_RECORD),
            (ProviderError("generic"), ErrorCode.PROVIDER_ERROR),
        ],
    )
    def test_exception_mapping(self, exception: Exception, expected_code: str) -> None:
        """Test source and config exceptions map correctly."""
        api_error = map_exception_to_api_error(exception)

        assert api_error.error_code == expected_code
        assert api_error.message == str(exception)

    def test_unknown_exception_maps_to_internal_error(self) -> None:
        """Test unexpected exceptions map to INTERNAL_ERROR."""
        api_error = map_exception_to_api_error(ValueError("random error"))

        assert api_error.error_code == ErrorCode.INTERNAL_ERROR


class TestGlobalExceptionHandler:
    """Tests for global exception handler."""

    @pytest.fixture
    def mock_request(self) -> MagicMock:
        """Create a mock FastAPI request."""
        request = MagicMock(spec=Request)
        request.url.path = "/api/v1/test"
        return request

    @pytest.mark.asyncio
    async def test_handles_api_error(self, mock_request: MagicMock) -> None:
        """Test APIError produces correct response."""
        error = APIError(error_code=ErrorCode.VIDEO_NOT_FOUND, message="Video 'x' not found")

        response = await global_exception_handler(mock_request, error)

        assert response.status_code == 404
        body = response.body.decode()
        assert "VIDEO_NOT_FOUND" in body
        assert "Video 'x' not found" in body

    @pytest.mark.asyncio
    async def test_handles_http_exception(self, mock_request: MagicMock) -> None:
        """Test HTTPException is preserved."""
        error = HTTPException(status_code=404, detail="Not found")

        response = await global_exception_handler(mock_request, error)

        assert response.status_code == 404
        assert "NOT_FOUND" in response.body.decode()

    @pytest.mark.asyncio
    async def test_handles_validation_error(self, mock_request: MagicMock) -> None:
        error = RequestValidationError(
            [{"loc": ("query", "limit"), "msg": "Input should be less than or equal to 200"}]
        )

        response = await global_exception_handler(mock_request, error)

        assert response.status_code == 422
        body = response.body.decode()
        assert "INVALID_REQUEST" in body
        assert "query.limit" in body

    @pytest.mark.asyncio
    async def test_handles_source_error(self, mock_request: MagicMock) -> None:
        """Test a source error escaping a route is mapped."""
        error = AuthenticationError("API key rejected")

        response = await global_exception_handler(mock_request, error)

        assert response.status_code == 502
        assert "SOURCE_AUTH_FAILED" in response.body.decode()

    @pytest.mark.asyncio
    async def test_handles_unexpected_error(self, mock_request: MagicMock) -> None:
        """Test unexpected errors return INTERNAL_ERROR without leaking details."""
        error = RuntimeError("secret internals")

        response = await global_exception_handler(mock_request, error)

        assert response.status_code == 500
        body = response.body.decode()
        assert "INTERNAL_ERROR" in body
        assert "secret internals" not in body

    @pytest.mark.asyncio
    async def test_includes_request_id_when_set(self, mock_request: MagicMock) -> None:
        """Test request_id is included when context is set."""
        from vidmeta.core.logging import clear_request_id, set_request_id

        set_request_id("req_test123456")
        try:
            error = APIError(error_code=ErrorCode.CHANNEL_NOT_FOUND, message="test")
            response = await global_exception_handler(mock_request, error)

            body = response.body.decode()
            assert "req_test123456" in body
            assert "timestamp" in body
        finally:
            clear_request_id()

    @pytest.mark.asyncio
    async def test_records_error_metric(self, mock_request: MagicMock) -> None:
        labels = {"error_code": "INVALID_PATTERN", "endpoint": "/api/v1/test"}
        initial = errors_total.labels(**labels)._value.get()

        await global_exception_handler(mock_request, re.error("bad"))

        assert errors_total.labels(**labels)._value.get() == initial + 1


class TestMetricsCollection:
    """Tests for Prometheus metrics collection."""

    def test_record_request_increments_counter(self) -> None:
        """Test HTTP request counter increment."""
        initial = http_requests_total.labels(
            method="GET", endpoint="/test", status="200"
        )._value.get()

        MetricsCollector.record_request(method="GET", endpoint="/test", status=200, duration=0.1)

        final = http_requests_total.labels(
            method="GET", endpoint="/test", status="200"
        )._value.get()

        assert final == initial + 1

    def test_record_request_observes_duration(self) -> None:
        """Test request duration histogram observation."""
        MetricsCollector.record_request(
            method="PATCH", endpoint="/api/v1/admin/config", status=200, duration=0.5
        )

        histogram = http_request_duration_seconds.labels(
            method="PATCH", endpoint="/api/v1/admin/config"
        )
        assert histogram._sum.get() > 0

    def test_record_source_fetch(self) -> None:
        labels = {"source": "external", "operation": "search", "status": "failed"}
        initial = source_fetch_total.labels(**labels)._value.get()

        MetricsCollector.record_source_fetch("external", "search", "failed", 0.2)

        assert source_fetch_total.labels(**labels)._value.get() == initial + 1
        assert source_fetch_duration_seconds.labels(source="external", operation="search")._sum.get() > 0

    def test_record_cache_lookup(self) -> None:
        hits = result_cache_lookups_total.labels(result="hit")._value.get()
        misses = result_cache_lookups_total.labels(result="miss")._value.get()

        MetricsCollector.record_cache_lookup(True, 4)
        MetricsCollector.record_cache_lookup(False, 5)

        assert result_cache_lookups_total.labels(result="hit")._value.get() == hits + 1
        assert result_cache_lookups_total.labels(result="miss")._value.get() == misses + 1
        assert result_cache_entries._value.get() == 5

    def test_initialize_metrics(self) -> None:
        """Test metrics initialization with version."""
        initialize_metrics("1.0.0-test")
        # If no exception, initialization succeeded
