"""Canonical video and channel metadata models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Tuple


class Source(str, Enum):
    """Backing system a record originated from."""

    LOCAL = "local"
    EXTERNAL = "external"

    @property
    def other(self) -> "Source":
        """The opposite source, used for by-ID fallback."""
        return Source.EXTERNAL if self is Source.LOCAL else Source.LOCAL


class Visibility(str, Enum):
    """Publication visibility of a video."""

    PUBLIC = "public"
    UNLISTED = "unlisted"
    PRIVATE = "private"
    SCHEDULED = "scheduled"


@dataclass(frozen=True)
class ChannelSummary:
    """Channel information embedded in a video record."""

    id: str = ""
    name: str = ""
    avatar_url: str = ""
    subscribers: int = 0
    subscribers_formatted: str = "0 subscribers"
    is_verified: bool = False


@dataclass(frozen=True)
class VideoDetails:
    """Secondary technical metadata."""

    definition: str = "hd"
    captions: bool = False
    language: str = "en"
    license: str = ""


@dataclass(frozen=True)
class UnifiedVideoMetadata:
    """Canonical video record produced by the normalizer.

    Instances are immutable; use ``dataclasses.replace`` to derive a copy
    with overrides.
    """

    id: str
    title: str
    source: Source
    description: str = ""
    thumbnail_url: str = ""
    video_url: str = ""
    views: int = 0
    views_formatted: str = "0 views"
    likes: int = 0
    dislikes: int = 0
    comment_count: int = 0
    channel: ChannelSummary = field(default_factory=ChannelSummary)
    duration: str = "0:00"
    duration_seconds: int = 0
    published_at: str = ""
    published_at_formatted: str = ""
    category: str = ""
    tags: Tuple[str, ...] = ()
    is_live: bool = False
    is_short: bool = False
    visibility: Visibility = Visibility.PUBLIC
    details: VideoDetails = field(default_factory=VideoDetails)

    @property
    def relevance_score(self) -> int:
        """Engagement score used by the relevance mixing strategy."""
        return self.views + self.likes * 10 + self.comment_count * 5


@dataclass(frozen=True)
class UnifiedChannelMetadata:
    """Canonical channel record produced by the normalizer."""

    id: str
    name: str
    source: Source
    avatar_url: str = ""
    banner_url: str = ""
    description: str = ""
    subscribers: int = 0
    subscribers_formatted: str = "0 subscribers"
    video_count: int = 0
    total_views: int = 0
    is_verified: bool = False
    country: str = ""
    joined_at: str = ""

    def to_summary(self) -> ChannelSummary:
        """Reduce to the summary embedded in video records."""
        return ChannelSummary(
            id=self.id,
            name=self.name,
            avatar_url=self.avatar_url,
            subscribers=self.subscribers,
            subscribers_formatted=self.subscribers_formatted,
            is_verified=self.is_verified,
        )
