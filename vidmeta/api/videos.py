"""Video and channel API endpoints."""

from typing import Any, List, Optional

import structlog
from fastapi import APIRouter, Depends, Query

from vidmeta.api.schemas import (
    ChannelResponse,
    ErrorDetail,
    VideoListResponse,
    VideoQueryParams,
    VideoResponse,
)
from vidmeta.core.errors import APIError, ErrorCode
from vidmeta.models.aggregation import SearchFilters
from vidmeta.models.video import Source
from vidmeta.services.aggregator import DEFAULT_SHORTS_LIMIT, Aggregator

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/v1", tags=["videos"])

MAX_LIMIT = 200


# Dependency placeholder for the aggregator
async def get_aggregator() -> Aggregator:
    """Get aggregator instance."""
    raise NotImplementedError("Aggregator dependency not configured")


def video_filters(
    category: Optional[str] = Query(None, description="Category name"),
    type: Optional[str] = Query(  # noqa: A002
        None, pattern="^(video|short|live)$", description="Video type"
    ),
    duration: Optional[str] = Query(
        None, pattern="^(short|medium|long)$", description="Duration bucket"
    ),
    upload_date: Optional[str] = Query(
        None, pattern="^(hour|today|week|month|year)$", description="Upload date window"
    ),
    sort_by: Optional[str] = Query(
        None, pattern="^(relevance|date|views|rating)$", description="Sort order"
    ),
    sources: Optional[List[Source]] = Query(None, description="Restrict to these sources"),  # noqa: B008
) -> SearchFilters:
    """Collect list filters from query parameters."""
    return VideoQueryParams(
        category=category,
        type=type,
        duration=duration,
        upload_date=upload_date,
        sort_by=sort_by,
        sources=sources,
    ).to_filters()


@router.get("/videos/trending", response_model=VideoListResponse)
async def get_trending_videos(
    limit: Optional[int] = Query(None, ge=0, le=MAX_LIMIT, description="Maximum results"),
    filters: SearchFilters = Depends(video_filters),  # noqa: B008
    aggregator: Aggregator = Depends(get_aggregator),  # noqa: B008
) -> Any:
    """
    Trending videos mixed from all enabled sources.

    Args:
        limit: Maximum number of videos (defaults to the configured total limit)
        filters: Query filters
        aggregator: Aggregator instance

    Returns:
        Mixed video list envelope
    """
    logger.info("trending_requested", limit=limit, filters=filters.signature())
    response = await aggregator.get_trending_videos(limit, filters)
    return VideoListResponse.from_domain(response)


@router.get("/videos/search", response_model=VideoListResponse)
async def search_videos(
    q: str = Query("", description="Search text; blank returns trending"),
    limit: Optional[int] = Query(None, ge=0, le=MAX_LIMIT, description="Maximum results"),
    filters: SearchFilters = Depends(video_filters),  # noqa: B008
    aggregator: Aggregator = Depends(get_aggregator),  # noqa: B008
) -> Any:
    """
    Search videos across all enabled sources.

    Args:
        q: Search text
        limit: Maximum number of videos (defaults to the configured total limit)
        filters: Query filters
        aggregator: Aggregator instance

    Returns:
        Mixed video list envelope
    """
    logger.info("search_requested", query=q, limit=limit, filters=filters.signature())
    response = await aggregator.search_videos(q, filters, limit)
    return VideoListResponse.from_domain(response)


@router.get("/videos/shorts", response_model=VideoListResponse)
async def get_shorts_videos(
    limit: int = Query(DEFAULT_SHORTS_LIMIT, ge=0, le=MAX_LIMIT, description="Maximum results"),
    aggregator: Aggregator = Depends(get_aggregator),  # noqa: B008
) -> Any:
    """Short-form videos from all enabled sources."""
    response = await aggregator.get_shorts_videos(limit)
    return VideoListResponse.from_domain(response)


@router.get(
    "/videos/{video_id:path}",
    response_model=VideoResponse,
    responses={404: {"model": ErrorDetail, "description": "Video not found"}},
)
async def get_video(
    video_id: str,
    v: Optional[str] = Query(None, description="Token of an unencoded watch URL"),
    aggregator: Aggregator = Depends(get_aggregator),  # noqa: B008
) -> Any:
    """
    Get one video by ID.

    Accepts catalog IDs, prefixed external IDs, bare 11-character tokens
    and watch URLs. Watch URLs should be percent-encoded; an unencoded one
    arrives split into a path ending in ``/watch`` and a ``v`` query
    parameter, which are joined back together.

    Raises:
        APIError: VIDEO_NOT_FOUND if no enabled source has the video
    """
    if v and video_id.rstrip("/").endswith("watch"):
        video_id = f"{video_id.rstrip('/')}?v={v}"

    video = await aggregator.get_video_by_id(video_id)
    if video is None:
        raise APIError(ErrorCode.VIDEO_NOT_FOUND, f"Video '{video_id}' not found")
    return VideoResponse.from_domain(video)


@router.get(
    "/channels/{channel_id}",
    response_model=ChannelResponse,
    responses={404: {"model": ErrorDetail, "description": "Channel not found"}},
)
async def get_channel(
    channel_id: str,
    aggregator: Aggregator = Depends(get_aggregator),  # noqa: B008
) -> Any:
    """
    Get one channel by ID.

    Raises:
        APIError: CHANNEL_NOT_FOUND if no enabled source has the channel
    """
    channel = await aggregator.get_channel_by_id(channel_id)
    if channel is None:
        raise APIError(ErrorCode.CHANNEL_NOT_FOUND, f"Channel '{channel_id}' not found")
    return ChannelResponse.from_domain(channel)
