"""Admin API endpoints."""

import re
from typing import Any, Dict, Optional

import structlog
from fastapi import APIRouter, Body, Depends, Query

from vidmeta.api.schemas import CacheClearResponse, ConfigResponse, ErrorDetail
from vidmeta.core.errors import APIError, ErrorCode
from vidmeta.models.aggregation import AggregationConfig, ConfigurationError
from vidmeta.services.aggregator import Aggregator

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/v1/admin", tags=["admin"])


# Dependency placeholder for the aggregator (overridden in main app)
async def get_aggregator() -> Aggregator:
    """Get aggregator instance."""
    raise NotImplementedError("Aggregator dependency not configured")


def _config_response(config: AggregationConfig) -> ConfigResponse:
    return ConfigResponse.model_validate(config.model_dump(mode="json"))


@router.get("/config", response_model=ConfigResponse)
async def get_config(
    aggregator: Aggregator = Depends(get_aggregator),  # noqa: B008
) -> Any:
    """Return the active aggregation configuration."""
    return _config_response(aggregator.get_config())


@router.patch(
    "/config",
    response_model=ConfigResponse,
    responses={400: {"model": ErrorDetail, "description": "Invalid configuration"}},
)
async def update_config(
    partial: Dict[str, Any] = Body(  # noqa: B008
        ...,
        examples=[{"mixing": {"strategy": "relevance"}, "limits": {"total": 20}}],
    ),
    aggregator: Aggregator = Depends(get_aggregator),  # noqa: B008
) -> Any:
    """
    Deep-merge a partial update into the aggregation configuration.

    The update is all-or-nothing: when the merged result is invalid the
    previous configuration stays active.

    Args:
        partial: Nested fields to change
        aggregator: Aggregator instance

    Returns:
        The new active configuration

    Raises:
        APIError: INVALID_CONFIG if the update is rejected
    """
    logger.info("Config update requested", fields=sorted(partial))

    try:
        config = aggregator.update_config(partial)
    except ConfigurationError as e:
        logger.warning("Config update rejected", error=str(e))
        raise APIError(ErrorCode.INVALID_CONFIG, "Configuration update rejected", details=str(e))

    return _config_response(config)


@router.delete(
    "/cache",
    response_model=CacheClearResponse,
    responses={400: {"model": ErrorDetail, "description": "Invalid pattern"}},
)
async def clear_cache(
    pattern: Optional[str] = Query(None, description="Regular expression matched against cache keys"),
    aggregator: Aggregator = Depends(get_aggregator),  # noqa: B008
) -> Any:
    """
    Invalidate cached responses.

    Without a pattern every cached response and every adapter request
    cache is cleared.

    Raises:
        APIError: INVALID_PATTERN if the pattern is not a valid regex
    """
    try:
        removed = aggregator.clear_cache(pattern)
    except re.error as e:
        raise APIError(ErrorCode.INVALID_PATTERN, f"Invalid cache pattern: {pattern}", details=str(e))

    return CacheClearResponse(removed=removed, pattern=pattern)
