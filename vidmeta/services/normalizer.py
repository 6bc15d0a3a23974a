"""Metadata normalization.

Pure functions mapping source-native raw records onto the canonical
:class:`UnifiedVideoMetadata` and :class:`UnifiedChannelMetadata` shapes.
Counts arrive as numbers, decimal strings or pre-formatted strings
("1.2M views"); durations as clock strings or ISO-8601 durations. Every
missing optional field collapses to a safe default.
"""

import re
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional

import structlog

from vidmeta.models.categories import DEFAULT_CATEGORY, category_name
from vidmeta.models.durations import format_duration, is_short_duration, parse_duration_seconds
from vidmeta.models.records import (
    ChannelRecord,
    ExternalChannelRecord,
    ExternalVideoRecord,
    LocalChannelRecord,
    LocalVideoRecord,
    VideoRecord,
    nested_group,
)
from vidmeta.models.video import (
    ChannelSummary,
    Source,
    UnifiedChannelMetadata,
    UnifiedVideoMetadata,
    VideoDetails,
    Visibility,
)
from vidmeta.providers.exceptions import MalformedRecordError

logger = structlog.get_logger(__name__)

WATCH_URL_TEMPLATE = "https://www.youtube.com/watch?v={video_id}"

_COUNT_SUFFIXES = {"K": 1_000, "M": 1_000_000, "B": 1_000_000_000}
_COUNT_UNITS = [(1_000_000_000, "B"), (1_000_000, "M"), (1_000, "K")]

_COUNT_PATTERN = re.compile(r"^\s*([0-9][0-9,]*(?:\.[0-9]+)?)\s*([KMB])?\b", re.IGNORECASE)
_RELATIVE_TIME_PATTERN = re.compile(r"\bago\b|^just now$", re.IGNORECASE)


# ============================================================================
# Field helpers
# ============================================================================


def parse_count(value: Any) -> int:
    """
    Parse a count from a number or string.

    Accepts plain integers, decimal strings ("12000", "1,234") and
    pre-formatted strings with a K/M/B suffix ("1.2M views", "870K").

    Args:
        value: Raw count value

    Returns:
        Non-negative integer count, 0 when unparseable
    """
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return max(int(value), 0)
    if not isinstance(value, str):
        return 0

    match = _COUNT_PATTERN.match(value)
    if not match:
        return 0

    number = float(match.group(1).replace(",", ""))
    suffix = match.group(2)
    if suffix:
        number *= _COUNT_SUFFIXES[suffix.upper()]
    return max(int(round(number)), 0)


def format_count(count: int, noun: Optional[str] = None) -> str:
    """
    Format a count for display ("1.2M views", "543K subscribers").

    Thousands, millions and billions are shown with one decimal place.

    Args:
        count: Count to format
        noun: Optional unit appended after a space

    Returns:
        Human-readable count
    """
    count = max(int(count), 0)
    text = str(count)

    for index, (threshold, unit) in enumerate(_COUNT_UNITS):
        if count >= threshold:
            scaled = round(count / threshold, 1)
            # 999_960 rounds to 1000.0K; promote to the next unit
            if scaled >= 1000 and index > 0:
                threshold, unit = _COUNT_UNITS[index - 1]
                scaled = round(count / threshold, 1)
            text = f"{scaled:.1f}{unit}"
            break

    return f"{text} {noun}" if noun else text


def normalize_duration(value: Any) -> str:
    """Canonical duration string; ``"0:00"`` when unparseable."""
    return format_duration(parse_duration_seconds(value))


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse an ISO-8601 timestamp.

    Args:
        value: Timestamp string, ``datetime`` or None

    Returns:
        Timezone-aware datetime (naive input is taken as UTC), or None
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _plural(value: int, unit: str) -> str:
    return f"{value} {unit}{'s' if value > 1 else ''} ago"


def format_time_ago(published_at: Any, now: Optional[datetime] = None) -> str:
    """
    Render a timestamp relative to now ("3 weeks ago", "Just now").

    Args:
        published_at: ISO-8601 timestamp
        now: Reference time, defaults to the current UTC time

    Returns:
        Relative time string, empty when the timestamp is unparseable
    """
    published = parse_timestamp(published_at)
    if published is None:
        return ""

    now = now or datetime.now(timezone.utc)
    seconds = int((now - published).total_seconds())
    minutes = seconds // 60
    hours = minutes // 60
    days = hours // 24

    if days // 365 > 0:
        return _plural(days // 365, "year")
    if days // 30 > 0:
        return _plural(days // 30, "month")
    if days // 7 > 0:
        return _plural(days // 7, "week")
    if days > 0:
        return _plural(days, "day")
    if hours > 0:
        return _plural(hours, "hour")
    if minutes > 0:
        return _plural(minutes, "minute")
    return "Just now"


def map_visibility(value: Any) -> Visibility:
    """Map a privacy status onto :class:`Visibility`, defaulting to public."""
    try:
        return Visibility(str(value).lower())
    except ValueError:
        return Visibility.PUBLIC


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes")
    return bool(value)


def _as_str(value: Any) -> str:
    return "" if value is None else str(value)


def _timestamp_str(value: Any) -> str:
    # YAML loaders turn unquoted timestamps into datetime objects
    if isinstance(value, datetime):
        return parse_timestamp(value).isoformat()  # type: ignore[union-attr]
    if parse_timestamp(value) is None:
        return ""
    return str(value).strip()


def _tags(value: Any) -> tuple:
    if not isinstance(value, (list, tuple)):
        return ()
    return tuple(str(tag) for tag in value if tag not in (None, ""))


def _pick_thumbnail(thumbnails: Any) -> str:
    if not isinstance(thumbnails, Mapping):
        return ""
    for size in ("medium", "high", "standard", "default", "maxres"):
        entry = thumbnails.get(size)
        if isinstance(entry, Mapping) and entry.get("url"):
            return str(entry["url"])
    return ""


def _require_payload(record: Any) -> Dict[str, Any]:
    payload = getattr(record, "payload", None)
    if not isinstance(payload, Mapping):
        raise MalformedRecordError(f"Record payload is not a mapping: {type(payload).__name__}")
    if not record.record_id:
        raise MalformedRecordError("Record is missing required field 'id'")
    return dict(payload)


# ============================================================================
# Videos
# ============================================================================


def normalize_local_video(
    record: LocalVideoRecord, now: Optional[datetime] = None
) -> UnifiedVideoMetadata:
    """
    Normalize a local catalog video.

    Args:
        record: Local video record
        now: Reference time for relative timestamps

    Returns:
        Canonical video metadata

    Raises:
        MalformedRecordError: If the record has no ID
    """
    payload = _require_payload(record)
    video_id = record.record_id or ""

    seconds = parse_duration_seconds(payload.get("duration"))
    views = parse_count(payload.get("viewCount", payload.get("views")))

    # Local records may carry an already relative upload date ("2 weeks ago")
    uploaded = payload.get("publishedAt") or payload.get("uploadedAt")
    published_at = _timestamp_str(uploaded) or _timestamp_str(payload.get("createdAt"))
    if not _timestamp_str(uploaded) and isinstance(uploaded, str) and (
        _RELATIVE_TIME_PATTERN.search(uploaded.strip())
    ):
        published_at_formatted = uploaded.strip()
    else:
        published_at_formatted = format_time_ago(published_at, now)

    embedded = payload.get("channel") if isinstance(payload.get("channel"), Mapping) else {}
    subscribers = parse_count(embedded.get("subscribers", embedded.get("subscriberCount")))
    channel = ChannelSummary(
        id=_as_str(payload.get("channelId") or embedded.get("id")),
        name=_as_str(payload.get("channelName") or embedded.get("name")),
        avatar_url=_as_str(payload.get("channelAvatarUrl") or embedded.get("avatarUrl")),
        subscribers=subscribers,
        subscribers_formatted=format_count(subscribers, "subscribers"),
        is_verified=_as_bool(embedded.get("isVerified", False)),
    )

    return UnifiedVideoMetadata(
        id=video_id,
        title=_as_str(payload.get("title")),
        source=Source.LOCAL,
        description=_as_str(payload.get("description")),
        thumbnail_url=_as_str(payload.get("thumbnailUrl")),
        video_url=_as_str(payload.get("videoUrl")),
        views=views,
        views_formatted=format_count(views, "views"),
        likes=parse_count(payload.get("likes")),
        dislikes=parse_count(payload.get("dislikes")),
        comment_count=parse_count(payload.get("commentCount")),
        channel=channel,
        duration=format_duration(seconds),
        duration_seconds=seconds,
        published_at=published_at,
        published_at_formatted=published_at_formatted,
        category=_as_str(payload.get("category")) or DEFAULT_CATEGORY,
        tags=_tags(payload.get("tags")),
        is_live=_as_bool(payload.get("isLive", False)),
        is_short=is_short_duration(seconds),
        visibility=map_visibility(payload.get("visibility", "public")),
        details=VideoDetails(
            definition=_as_str(payload.get("definition") or "hd"),
            captions=_as_bool(payload.get("captions", False)),
            language=_as_str(payload.get("language") or "en"),
            license=_as_str(payload.get("license") or "standard"),
        ),
    )


def normalize_external_video(
    record: ExternalVideoRecord,
    channel: Optional[UnifiedChannelMetadata] = None,
    now: Optional[datetime] = None,
) -> UnifiedVideoMetadata:
    """
    Normalize an external platform video resource.

    Args:
        record: External video record
        channel: Optional channel fetched separately for avatar/subscriber data
        now: Reference time for relative timestamps

    Returns:
        Canonical video metadata

    Raises:
        MalformedRecordError: If the record has no ID
    """
    payload = _require_payload(record)
    video_id = record.record_id or ""

    snippet = nested_group(payload, "snippet")
    statistics = nested_group(payload, "statistics")
    content = nested_group(payload, "contentDetails")
    status = nested_group(payload, "status")
    live = nested_group(payload, "liveStreamingDetails")

    seconds = parse_duration_seconds(content.get("duration"))
    views = parse_count(statistics.get("viewCount"))
    published_at = _as_str(snippet.get("publishedAt"))

    if channel is not None:
        summary = channel.to_summary()
        if not summary.name:
            summary = ChannelSummary(
                id=summary.id or _as_str(snippet.get("channelId")),
                name=_as_str(snippet.get("channelTitle")),
                avatar_url=summary.avatar_url,
                subscribers=summary.subscribers,
                subscribers_formatted=summary.subscribers_formatted,
                is_verified=summary.is_verified,
            )
    else:
        summary = ChannelSummary(
            id=_as_str(snippet.get("channelId")),
            name=_as_str(snippet.get("channelTitle")),
        )

    is_live = snippet.get("liveBroadcastContent") == "live" or bool(
        live.get("actualStartTime") and not live.get("actualEndTime")
    )

    return UnifiedVideoMetadata(
        id=video_id,
        title=_as_str(snippet.get("title")),
        source=Source.EXTERNAL,
        description=_as_str(snippet.get("description")),
        thumbnail_url=_pick_thumbnail(snippet.get("thumbnails")),
        video_url=WATCH_URL_TEMPLATE.format(video_id=video_id),
        views=views,
        views_formatted=format_count(views, "views"),
        likes=parse_count(statistics.get("likeCount")),
        dislikes=parse_count(statistics.get("dislikeCount")),
        comment_count=parse_count(statistics.get("commentCount")),
        channel=summary,
        duration=format_duration(seconds),
        duration_seconds=seconds,
        published_at=published_at,
        published_at_formatted=format_time_ago(published_at, now),
        category=category_name(snippet.get("categoryId")),
        tags=_tags(snippet.get("tags")),
        is_live=is_live,
        is_short=is_short_duration(seconds),
        visibility=map_visibility(status.get("privacyStatus", "public")),
        details=VideoDetails(
            definition=_as_str(content.get("definition") or "hd"),
            captions=_as_bool(content.get("caption", False)),
            language=_as_str(
                snippet.get("defaultLanguage") or snippet.get("defaultAudioLanguage") or "en"
            ),
            license=_as_str(status.get("license") or "youtube"),
        ),
    )


def normalize_video(
    record: VideoRecord,
    channel: Optional[UnifiedChannelMetadata] = None,
    now: Optional[datetime] = None,
) -> UnifiedVideoMetadata:
    """
    Normalize a video record from either source.

    Args:
        record: Raw video record
        channel: Optional enrichment for external records
        now: Reference time for relative timestamps

    Returns:
        Canonical video metadata

    Raises:
        MalformedRecordError: If the record is malformed or of an unknown kind
    """
    if isinstance(record, LocalVideoRecord):
        return normalize_local_video(record, now)
    if isinstance(record, ExternalVideoRecord):
        return normalize_external_video(record, channel, now)
    raise MalformedRecordError(f"Unsupported video record type: {type(record).__name__}")


def normalize_videos(
    records: Iterable[VideoRecord],
    channels: Optional[Mapping[str, UnifiedChannelMetadata]] = None,
    now: Optional[datetime] = None,
) -> List[UnifiedVideoMetadata]:
    """
    Normalize a batch, dropping malformed records.

    Args:
        records: Raw video records
        channels: Optional channel enrichment keyed by channel ID
        now: Reference time for relative timestamps

    Returns:
        Canonical videos in input order
    """
    channels = channels or {}
    videos = []

    for record in records:
        channel = None
        if isinstance(record, ExternalVideoRecord):
            channel = channels.get(record.channel_id)
        try:
            videos.append(normalize_video(record, channel, now))
        except MalformedRecordError as e:
            logger.warning(
                "Dropping malformed record",
                source=getattr(record, "source", None),
                error=str(e),
            )

    return videos


# ============================================================================
# Channels
# ============================================================================


def normalize_local_channel(record: LocalChannelRecord) -> UnifiedChannelMetadata:
    """Normalize a local catalog channel."""
    payload = _require_payload(record)
    subscribers = parse_count(payload.get("subscribers", payload.get("subscriberCount")))

    return UnifiedChannelMetadata(
        id=record.record_id or "",
        name=_as_str(payload.get("name")),
        source=Source.LOCAL,
        avatar_url=_as_str(payload.get("avatarUrl")),
        banner_url=_as_str(payload.get("banner") or payload.get("bannerUrl")),
        description=_as_str(payload.get("description")),
        subscribers=subscribers,
        subscribers_formatted=format_count(subscribers, "subscribers"),
        video_count=parse_count(payload.get("videoCount")),
        total_views=parse_count(payload.get("totalViews")),
        is_verified=_as_bool(payload.get("isVerified", False)),
        country=_as_str(payload.get("country")),
        joined_at=_timestamp_str(payload.get("createdAt")) or _as_str(payload.get("joinedDate")),
    )


def normalize_external_channel(record: ExternalChannelRecord) -> UnifiedChannelMetadata:
    """Normalize an external platform channel resource."""
    payload = _require_payload(record)
    snippet = nested_group(payload, "snippet")
    statistics = nested_group(payload, "statistics")
    branding = nested_group(nested_group(payload, "brandingSettings"), "image")

    # Hidden subscriber counts are reported as hiddenSubscriberCount=true with no value
    subscribers = parse_count(statistics.get("subscriberCount"))
    thumbnails = nested_group(snippet, "thumbnails")

    return UnifiedChannelMetadata(
        id=record.record_id or "",
        name=_as_str(snippet.get("title")),
        source=Source.EXTERNAL,
        avatar_url=_pick_thumbnail(thumbnails),
        banner_url=_as_str(branding.get("bannerExternalUrl"))
        or _as_str(nested_group(thumbnails, "high").get("url")),
        description=_as_str(snippet.get("description")),
        subscribers=subscribers,
        subscribers_formatted=format_count(subscribers, "subscribers"),
        video_count=parse_count(statistics.get("videoCount")),
        total_views=parse_count(statistics.get("viewCount")),
        is_verified=False,
        country=_as_str(snippet.get("country")),
        joined_at=_as_str(snippet.get("publishedAt")),
    )


def normalize_channel(record: ChannelRecord) -> UnifiedChannelMetadata:
    """
    Normalize a channel record from either source.

    Raises:
        MalformedRecordError: If the record is malformed or of an unknown kind
    """
    if isinstance(record, LocalChannelRecord):
        return normalize_local_channel(record)
    if isinstance(record, ExternalChannelRecord):
        return normalize_external_channel(record)
    raise MalformedRecordError(f"Unsupported channel record type: {type(record).__name__}")
