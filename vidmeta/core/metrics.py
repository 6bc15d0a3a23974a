"""Prometheus metrics collection for the API.

This module defines and manages Prometheus metrics for monitoring
request rates, source fetches, result cache efficiency, and errors.
"""

from prometheus_client import Counter, Gauge, Histogram, Info

# Application info
app_info = Info("vidmeta", "Video metadata aggregation service information")

# HTTP request metrics
http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0],
)

# Source fetch metrics
source_fetch_total = Counter(
    "source_fetch_total",
    "Total source adapter calls by source, operation and status",
    ["source", "operation", "status"],
)

source_fetch_duration_seconds = Histogram(
    "source_fetch_duration_seconds",
    "Source adapter call duration in seconds",
    ["source", "operation"],
    buckets=[0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

# Result cache metrics
result_cache_lookups_total = Counter(
    "result_cache_lookups_total",
    "Total result cache lookups by result",
    ["result"],
)

result_cache_entries = Gauge(
    "result_cache_entries",
    "Number of entries currently held in the result cache",
)

# Error metrics
errors_total = Counter(
    "errors_total",
    "Total errors by error code and endpoint",
    ["error_code", "endpoint"],
)


class MetricsCollector:
    """Centralized metrics collection and update helper.

    Provides static methods for recording various metrics throughout
    the application in a consistent manner.
    """

    @staticmethod
    def record_request(
        method: str,
        endpoint: str,
        status: int,
        duration: float,
    ) -> None:
        """Record HTTP request metrics.

        Args:
            method: HTTP method (GET, PATCH, etc.).
            endpoint: Normalized endpoint path.
            status: HTTP response status code.
            duration: Request duration in seconds.
        """
        http_requests_total.labels(
            method=method,
            endpoint=endpoint,
            status=str(status),
        ).inc()
        http_request_duration_seconds.labels(
            method=method,
            endpoint=endpoint,
        ).observe(duration)

    @staticmethod
    def record_source_fetch(
        source: str,
        operation: str,
        status: str,
        duration: float,
    ) -> None:
        """Record a source adapter call.

        Args:
            source: Source name ('local' or 'external').
            operation: Adapter method name (e.g., 'search').
            status: Call status ('success' or 'failed').
            duration: Call duration in seconds.
        """
        source_fetch_total.labels(source=source, operation=operation, status=status).inc()
        source_fetch_duration_seconds.labels(source=source, operation=operation).observe(duration)

    @staticmethod
    def record_cache_lookup(hit: bool, entries: int) -> None:
        """Record a result cache lookup.

        Args:
            hit: Whether a fresh entry was found.
            entries: Current number of stored entries.
        """
        result_cache_lookups_total.labels(result="hit" if hit else "miss").inc()
        result_cache_entries.set(entries)

    @staticmethod
    def record_error(error_code: str, endpoint: str) -> None:
        """Record an error occurrence.

        Args:
            error_code: Error code from ErrorCode class.
            endpoint: Endpoint where the error occurred.
        """
        errors_total.labels(error_code=error_code, endpoint=endpoint).inc()


def initialize_metrics(version: str) -> None:
    """Initialize application metrics with version information.

    Should be called during application startup.

    Args:
        version: Application version string.
    """
    app_info.info({"version": version})
