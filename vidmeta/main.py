"""FastAPI application entry point.

This module assembles all components and creates the main application.
"""

import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from vidmeta import __version__
from vidmeta.api import admin, health, metrics, videos
from vidmeta.core.config import Config, ConfigService
from vidmeta.core.errors import APIError, global_exception_handler
from vidmeta.core.logging import clear_request_id, configure_logging, set_request_id
from vidmeta.core.metrics import MetricsCollector, initialize_metrics
from vidmeta.providers.external import ExternalPlatformAdapter
from vidmeta.providers.local import DEFAULT_CATALOG_PATH, LocalCatalog, LocalCatalogAdapter
from vidmeta.providers.manager import SourceManager
from vidmeta.services.aggregator import Aggregator, configure_aggregator, get_aggregator

logger = structlog.get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class MetricsMiddleware(BaseHTTPMiddleware):
    """Middleware to track HTTP request metrics.

    Records request count and duration for all endpoints,
    using FastAPI route templates to normalize paths. Binds a request ID
    for log correlation and echoes it in the response headers.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        """Process request and record metrics."""
        request_id = set_request_id(request.headers.get(REQUEST_ID_HEADER))
        start_time = time.time()
        try:
            response = await call_next(request)
        finally:
            clear_request_id()
        duration = time.time() - start_time

        # Use FastAPI route template for normalized endpoint path
        # Use fixed label for unmatched routes to prevent unbounded cardinality
        route = request.scope.get("route")
        endpoint = route.path if route else "/unmatched"

        MetricsCollector.record_request(
            method=request.method,
            endpoint=endpoint,
            status=response.status_code,
            duration=duration,
        )

        response.headers[REQUEST_ID_HEADER] = request_id
        return response


# Global service instances
_source_manager: SourceManager | None = None


def get_source_manager() -> SourceManager:
    """Get the global source manager instance."""
    if _source_manager is None:
        raise RuntimeError("Source manager not configured")
    return _source_manager


def build_source_manager(config: Config) -> SourceManager:
    """
    Create adapters from process configuration and register them.

    The external source is registered disabled when no API key is
    configured, so it never contributes failures to every query.

    Args:
        config: Loaded process configuration

    Returns:
        Source manager with both adapters registered
    """
    manager = SourceManager()

    local_config = config.sources.local
    catalog = LocalCatalog.from_yaml(local_config.catalog_path or DEFAULT_CATALOG_PATH)
    manager.register_adapter(
        LocalCatalogAdapter(
            catalog,
            {"cache_ttl": local_config.cache_ttl, "cache_size": local_config.cache_size},
        ),
        enabled=local_config.enabled,
    )

    external_config = config.sources.external
    manager.register_adapter(
        ExternalPlatformAdapter(external_config.model_dump()),
        enabled=external_config.enabled and bool(external_config.api_key),
    )
    if external_config.enabled and not external_config.api_key:
        logger.warning("External source disabled: no API key configured")

    return manager


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager for startup and shutdown."""
    global _source_manager

    logger.info("Application starting", version=__version__)

    # Initialize metrics with application version
    initialize_metrics(__version__)

    # Load configuration
    config_service = ConfigService()
    config = config_service.load()
    config_service.validate()

    # Configure logging
    configure_logging(config.logging.level, config.logging.format)

    logger.info(
        "Configuration loaded",
        server_port=config.server.port,
        local_enabled=config.sources.local.enabled,
        external_enabled=config.sources.external.enabled,
    )

    # Configure sources and the aggregator
    _source_manager = build_source_manager(config)
    aggregator = configure_aggregator(_source_manager, config.aggregation_config())

    logger.info(
        "Aggregator configured",
        sources=_source_manager.list_sources(),
        strategy=aggregator.get_config().mixing.strategy.value,
    )

    logger.info("Application startup complete", version=__version__)

    yield

    # Shutdown
    logger.info("Application shutting down")

    await _source_manager.close()

    logger.info("Application shutdown complete")


def _get_aggregator() -> Aggregator:
    return get_aggregator()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Video Metadata Aggregation API",
        description="Unified read API over a local video catalog and an external video platform",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "PATCH", "DELETE"],
        allow_headers=["*"],
    )

    # Add metrics middleware
    app.add_middleware(MetricsMiddleware)

    # Register global exception handlers
    app.add_exception_handler(Exception, global_exception_handler)
    app.add_exception_handler(APIError, global_exception_handler)
    app.add_exception_handler(RequestValidationError, global_exception_handler)

    # Override dependency injection for routers
    app.dependency_overrides[videos.get_aggregator] = _get_aggregator
    app.dependency_overrides[admin.get_aggregator] = _get_aggregator
    app.dependency_overrides[health.get_source_manager] = get_source_manager

    # Register routers
    app.include_router(health.router)
    app.include_router(videos.router)
    app.include_router(admin.router)
    app.include_router(metrics.router)

    return app


# Create the application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn  # type: ignore[import-not-found]

    uvicorn.run(app, host="0.0.0.0", port=8000)  # nosec B104
