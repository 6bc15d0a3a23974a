"""Request and response schemas for API endpoints.

This module provides Pydantic models for API request validation
and response serialization with OpenAPI examples.
"""

import dataclasses
from typing import Any, Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, Field

from vidmeta.models.aggregation import AggregationResponse, SearchFilters
from vidmeta.models.video import Source, UnifiedChannelMetadata, UnifiedVideoMetadata, Visibility


class ChannelSummaryResponse(BaseModel):
    """Channel embedded in a video."""

    id: str = Field(..., examples=["channel1"])
    name: str = Field(..., examples=["Nature Explorers"])
    avatar_url: str = Field("", examples=["https://picsum.photos/seed/channel1/88/88"])
    subscribers: int = Field(0, examples=[2500000])
    subscribers_formatted: str = Field("0 subscribers", examples=["2.5M subscribers"])
    is_verified: bool = False


class VideoDetailsResponse(BaseModel):
    """Technical video details."""

    definition: str = Field("hd", examples=["hd"])
    captions: bool = False
    language: str = Field("en", examples=["en"])
    license: str = Field("", examples=["youtube"])


class VideoResponse(BaseModel):
    """Canonical video metadata."""

    id: str = Field(..., examples=["dQw4w9WgXcQ"])
    title: str = Field(..., examples=["Amazing Nature Documentary: Wildlife in 4K"])
    source: Source = Field(..., examples=["external"])
    description: str = ""
    thumbnail_url: str = Field("", examples=["https://i.ytimg.com/vi/dQw4w9WgXcQ/mqdefault.jpg"])
    video_url: str = Field("", examples=["https://www.youtube.com/watch?v=dQw4w9WgXcQ"])
    views: int = Field(0, examples=[1200000])
    views_formatted: str = Field("0 views", examples=["1.2M views"])
    likes: int = 0
    dislikes: int = 0
    comment_count: int = 0
    channel: ChannelSummaryResponse
    duration: str = Field("0:00", examples=["5:30"])
    duration_seconds: int = Field(0, examples=[330])
    published_at: str = Field("", examples=["2024-01-15T10:30:00Z"])
    published_at_formatted: str = Field("", examples=["2 days ago"])
    category: str = Field("", examples=["Education"])
    tags: List[str] = Field(default_factory=list)
    is_live: bool = False
    is_short: bool = False
    visibility: Visibility = Field(Visibility.PUBLIC, examples=["public"])
    details: VideoDetailsResponse

    @classmethod
    def from_domain(cls, video: UnifiedVideoMetadata) -> "VideoResponse":
        return cls.model_validate(dataclasses.asdict(video))


class ChannelResponse(BaseModel):
    """Canonical channel metadata."""

    id: str = Field(..., examples=["UCX6OQ3DkcsbYNE6H8uQQuVA"])
    name: str = Field(..., examples=["Nature Explorers"])
    source: Source = Field(..., examples=["local"])
    avatar_url: str = ""
    banner_url: str = ""
    description: str = ""
    subscribers: int = Field(0, examples=[2500000])
    subscribers_formatted: str = Field("0 subscribers", examples=["2.5M subscribers"])
    video_count: int = 0
    total_views: int = 0
    is_verified: bool = False
    country: str = ""
    joined_at: str = ""

    @classmethod
    def from_domain(cls, channel: UnifiedChannelMetadata) -> "ChannelResponse":
        return cls.model_validate(dataclasses.asdict(channel))


class SourceStatsResponse(BaseModel):
    """Per-source candidate statistics."""

    count: int = Field(0, examples=[12])
    has_more: bool = False


class VideoListResponse(BaseModel):
    """Mixed video list envelope."""

    data: List[VideoResponse]
    sources: Dict[str, SourceStatsResponse] = Field(
        ...,
        examples=[
            {"local": {"count": 12, "has_more": False}, "external": {"count": 25, "has_more": True}}
        ],
    )
    total_count: int = Field(..., examples=[37])
    has_more: bool = Field(..., examples=[True])

    @classmethod
    def from_domain(cls, response: AggregationResponse) -> "VideoListResponse":
        return cls(
            data=[VideoResponse.from_domain(v) for v in response.data],
            sources={
                source.value: SourceStatsResponse(count=stats.count, has_more=stats.has_more)
                for source, stats in response.sources.items()
            },
            total_count=response.total_count,
            has_more=response.has_more,
        )


class VideoQueryParams(BaseModel):
    """Filter query parameters shared by list endpoints."""

    category: Optional[str] = Field(None, examples=["Gaming"])
    type: Optional[Literal["video", "short", "live"]] = None
    duration: Optional[Literal["short", "medium", "long"]] = None
    upload_date: Optional[Literal["hour", "today", "week", "month", "year"]] = None
    sort_by: Optional[Literal["relevance", "date", "views", "rating"]] = None
    sources: Optional[List[Source]] = Field(None, examples=[["local"]])

    def to_filters(self) -> SearchFilters:
        sources: Optional[Tuple[Source, ...]] = (
            tuple(dict.fromkeys(self.sources)) if self.sources is not None else None
        )
        return SearchFilters(
            category=self.category,
            type=self.type,
            duration=self.duration,
            upload_date=self.upload_date,
            sort_by=self.sort_by,
            sources=sources,
        )


class CacheClearResponse(BaseModel):
    """Response for result cache invalidation."""

    removed: int = Field(..., examples=[4])
    pattern: Optional[str] = Field(None, examples=["^search:"])


class ConfigResponse(BaseModel):
    """Active aggregation configuration."""

    sources: Dict[str, bool] = Field(..., examples=[{"local": True, "external": True}])
    limits: Dict[str, int] = Field(..., examples=[{"local": 25, "external": 25, "total": 50}])
    caching: Dict[str, Any] = Field(..., examples=[{"enabled": True, "ttl": 600.0}])
    mixing: Dict[str, Any] = Field(
        ..., examples=[{"strategy": "round-robin", "source_priority": ["local", "external"]}]
    )


class ComponentHealth(BaseModel):
    """Health status of a single component."""

    status: Literal["healthy", "unhealthy", "disabled"] = Field(..., examples=["healthy"])
    details: Optional[Dict[str, Any]] = Field(default=None, examples=[{"videos": 12}])


class HealthResponse(BaseModel):
    """Detailed health check response."""

    status: Literal["healthy", "degraded", "unhealthy"] = Field(..., examples=["healthy"])
    timestamp: str = Field(..., examples=["2025-12-25T10:30:00Z"])
    version: str = Field(..., examples=["0.1.0"])
    uptime_seconds: float = Field(..., examples=[3600.5])
    components: Dict[str, ComponentHealth]


class LivenessResponse(BaseModel):
    """Simple liveness check response for container orchestration."""

    status: Literal["alive"] = Field(..., examples=["alive"])


class ReadinessResponse(BaseModel):
    """Readiness check response for load balancer integration."""

    status: Literal["ready", "not_ready"] = Field(..., examples=["ready"])
    ready: bool = Field(..., examples=[True])
    message: Optional[str] = Field(default=None, examples=["No video source enabled"])


class ErrorDetail(BaseModel):
    """Structured error response.

    All API errors follow this format with machine-readable error codes
    and optional suggestions for resolution.
    """

    error_code: str = Field(
        ...,
        description="Machine-readable error code",
        examples=["VIDEO_NOT_FOUND", "INVALID_CONFIG", "INVALID_PATTERN"],
    )
    message: str = Field(
        ...,
        description="Human-readable error message",
        examples=["Video 'missing-id' not found"],
    )
    details: Optional[str] = Field(
        None,
        description="Additional error context",
        examples=["limits.total: Input should be greater than or equal to 0"],
    )
    timestamp: str = Field(..., examples=["2025-12-25T10:30:00Z"])
    request_id: Optional[str] = Field(
        None,
        description="Request ID for tracing",
        examples=["req_550e8400e29b"],
    )
    suggestion: Optional[str] = Field(
        None,
        description="Suggested action to resolve the error",
        examples=["The channel ID does not exist in any enabled source"],
    )
