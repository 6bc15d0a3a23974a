"""Health check endpoints.

Reports per-source status for monitoring and exposes liveness and
readiness probes for container orchestration.
"""

import time
from datetime import datetime, timezone
from typing import Dict, Literal

import structlog
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from vidmeta import __version__
from vidmeta.api.schemas import ComponentHealth, HealthResponse, LivenessResponse, ReadinessResponse
from vidmeta.models.video import Source
from vidmeta.providers.external import ExternalPlatformAdapter
from vidmeta.providers.local import LocalCatalogAdapter
from vidmeta.providers.manager import SourceManager

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["health"])

# Track application start time for uptime calculation
_start_time: float = time.time()


def reset_start_time() -> None:
    """Reset the start time (for testing)."""
    global _start_time
    _start_time = time.time()


# Dependency placeholder for the source manager (overridden in main app)
async def get_source_manager() -> SourceManager:
    """Get source manager instance."""
    raise NotImplementedError("Source manager dependency not configured")


def _check_source(manager: SourceManager, source: Source) -> ComponentHealth:
    """Report registration state and static details of one source."""
    adapter = manager.get_adapter(source)
    if adapter is None:
        return ComponentHealth(status="disabled", details={"reason": "not registered"})
    if not manager.is_enabled(source):
        details = {"reason": "disabled"}
        if isinstance(adapter, ExternalPlatformAdapter) and not adapter.api_key:
            details["reason"] = "api key not configured"
        return ComponentHealth(status="disabled", details=details)

    if isinstance(adapter, LocalCatalogAdapter):
        return ComponentHealth(
            status="healthy",
            details={
                "videos": len(adapter.catalog.videos),
                "channels": len(adapter.catalog.channels),
            },
        )
    if isinstance(adapter, ExternalPlatformAdapter):
        return ComponentHealth(
            status="healthy" if adapter.api_key else "unhealthy",
            details={"base_url": adapter.base_url, "api_key_configured": bool(adapter.api_key)},
        )
    return ComponentHealth(status="healthy")


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={
        200: {"description": "At least one source is serving"},
        503: {"description": "No source is serving"},
    },
)
async def health_check(
    manager: SourceManager = Depends(get_source_manager),  # noqa: B008
) -> JSONResponse:
    """
    Detailed health check endpoint.

    Reports each source as healthy, unhealthy or disabled. The service is
    healthy when every source is healthy, degraded when at least one
    serves, and unhealthy (HTTP 503) when none does.
    """
    components: Dict[str, ComponentHealth] = {
        source.value: _check_source(manager, source) for source in (Source.LOCAL, Source.EXTERNAL)
    }

    healthy = [c for c in components.values() if c.status == "healthy"]
    overall_status: Literal["healthy", "degraded", "unhealthy"]
    if len(healthy) == len(components):
        overall_status = "healthy"
    elif healthy:
        overall_status = "degraded"
    else:
        overall_status = "unhealthy"

    response = HealthResponse(
        status=overall_status,
        timestamp=datetime.now(timezone.utc).isoformat(),
        version=__version__,
        uptime_seconds=round(time.time() - _start_time, 2),
        components=components,
    )

    status_code = (
        status.HTTP_503_SERVICE_UNAVAILABLE
        if overall_status == "unhealthy"
        else status.HTTP_200_OK
    )

    logger.info(
        "health_check_completed",
        status=overall_status,
        components={k: v.status for k, v in components.items()},
    )

    return JSONResponse(content=response.model_dump(), status_code=status_code)


@router.get("/health/live", response_model=LivenessResponse)
async def liveness_check() -> LivenessResponse:
    """
    Liveness probe endpoint.

    Returns HTTP 200 if the process is alive.
    """
    return LivenessResponse(status="alive")


@router.get(
    "/health/ready",
    response_model=ReadinessResponse,
    responses={
        200: {"description": "Service is ready to accept traffic"},
        503: {"description": "Service is not ready"},
    },
)
async def readiness_check(
    manager: SourceManager = Depends(get_source_manager),  # noqa: B008
) -> JSONResponse:
    """
    Readiness probe endpoint.

    Ready once at least one source is registered and enabled.
    """
    if not manager.available_sources():
        response = ReadinessResponse(
            status="not_ready",
            ready=False,
            message="No video source enabled",
        )
        return JSONResponse(
            content=response.model_dump(),
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        )

    return JSONResponse(
        content=ReadinessResponse(status="ready", ready=True).model_dump(),
        status_code=status.HTTP_200_OK,
    )
