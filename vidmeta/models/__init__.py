"""Data models for the application."""

from vidmeta.models.aggregation import (
    AggregationConfig,
    AggregationResponse,
    ConfigurationError,
    MixingStrategy,
    SearchFilters,
    SourceStats,
)
from vidmeta.models.records import (
    ExternalChannelRecord,
    ExternalVideoRecord,
    LocalChannelRecord,
    LocalVideoRecord,
)
from vidmeta.models.video import (
    ChannelSummary,
    Source,
    UnifiedChannelMetadata,
    UnifiedVideoMetadata,
    VideoDetails,
    Visibility,
)

__all__ = [
    "AggregationConfig",
    "AggregationResponse",
    "ConfigurationError",
    "MixingStrategy",
    "SearchFilters",
    "SourceStats",
    "ExternalChannelRecord",
    "ExternalVideoRecord",
    "LocalChannelRecord",
    "LocalVideoRecord",
    "ChannelSummary",
    "Source",
    "UnifiedChannelMetadata",
    "UnifiedVideoMetadata",
    "VideoDetails",
    "Visibility",
]
