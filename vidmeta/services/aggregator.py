"""Multi-source aggregation.

The aggregator fans a query out to every active source concurrently,
normalizes each result set, applies query filters, merges the per-source
lists with the configured mixing strategy and memoizes the composed
response. A failing source contributes zero results and never fails the
whole query.
"""

import asyncio
import json
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

import structlog

from vidmeta.core.metrics import MetricsCollector
from vidmeta.models.aggregation import (
    AggregationConfig,
    AggregationResponse,
    SearchFilters,
    SourceStats,
)
from vidmeta.models.records import ExternalVideoRecord
from vidmeta.models.video import Source, UnifiedChannelMetadata, UnifiedVideoMetadata
from vidmeta.providers.exceptions import MalformedRecordError
from vidmeta.providers.manager import SourceManager
from vidmeta.services import mixer
from vidmeta.services.cache import ResultCache
from vidmeta.services.normalizer import normalize_channel, normalize_videos, parse_timestamp
from vidmeta.services.resolver import is_external_channel_id, resolve

logger = structlog.get_logger(__name__)

VideoResponse = AggregationResponse[UnifiedVideoMetadata]

DEFAULT_SHORTS_LIMIT = 30

# Duration buckets in seconds (upper bound exclusive for short, inclusive for medium)
SHORT_BUCKET_MAX = 4 * 60
MEDIUM_BUCKET_MAX = 20 * 60

UPLOAD_WINDOWS: Dict[str, timedelta] = {
    "hour": timedelta(hours=1),
    "today": timedelta(days=1),
    "week": timedelta(weeks=1),
    "month": timedelta(days=30),
    "year": timedelta(days=365),
}

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ============================================================================
# Filter post-processing
# ============================================================================


def _matches_type(video: UnifiedVideoMetadata, video_type: str) -> bool:
    if video_type == "short":
        return video.is_short
    if video_type == "live":
        return video.is_live
    return not video.is_short and not video.is_live


def _matches_duration(video: UnifiedVideoMetadata, bucket: str) -> bool:
    seconds = video.duration_seconds
    if bucket == "short":
        return seconds < SHORT_BUCKET_MAX
    if bucket == "medium":
        return SHORT_BUCKET_MAX <= seconds <= MEDIUM_BUCKET_MAX
    return seconds > MEDIUM_BUCKET_MAX


def _published_within(video: UnifiedVideoMetadata, window: timedelta, now: datetime) -> bool:
    published = parse_timestamp(video.published_at)
    if published is None:
        return False
    return now - published <= window


def _like_ratio(video: UnifiedVideoMetadata) -> float:
    votes = video.likes + video.dislikes
    return video.likes / votes if votes else 0.0


def apply_filters(
    videos: Sequence[UnifiedVideoMetadata],
    filters: Optional[SearchFilters],
    now: Optional[datetime] = None,
) -> List[UnifiedVideoMetadata]:
    """
    Apply query filters to normalized candidates from one source.

    Args:
        videos: Normalized videos in source order
        filters: Query constraints (None keeps everything)
        now: Reference time for upload date windows

    Returns:
        Matching videos, re-ordered when ``sort_by`` asks for it
    """
    result = list(videos)
    if filters is None:
        return result

    now = now or _utcnow()

    if filters.category:
        wanted = filters.category.strip().lower()
        result = [v for v in result if v.category.lower() == wanted]
    if filters.type:
        result = [v for v in result if _matches_type(v, filters.type)]
    if filters.duration:
        result = [v for v in result if _matches_duration(v, filters.duration)]
    if filters.upload_date:
        window = UPLOAD_WINDOWS[filters.upload_date]
        result = [v for v in result if _published_within(v, window, now)]

    # Stable sorts; "relevance" keeps source order
    if filters.sort_by == "date":
        result.sort(key=lambda v: parse_timestamp(v.published_at) or _EPOCH, reverse=True)
    elif filters.sort_by == "views":
        result.sort(key=lambda v: v.views, reverse=True)
    elif filters.sort_by == "rating":
        result.sort(key=lambda v: (_like_ratio(v), v.likes), reverse=True)

    return result


# ============================================================================
# Aggregator
# ============================================================================


class Aggregator:
    """Unified read API over the local catalog and the external platform."""

    def __init__(
        self,
        manager: SourceManager,
        config: Optional[AggregationConfig] = None,
        cache: Optional[ResultCache] = None,
        now: Optional[Callable[[], datetime]] = None,
    ) -> None:
        """
        Initialize the aggregator.

        Args:
            manager: Source manager holding the registered adapters
            config: Initial aggregation policy (defaults when omitted)
            cache: Result cache (a new one is created when omitted)
            now: Wall clock for relative timestamps and upload windows
        """
        self.manager = manager
        self._config = config or AggregationConfig()
        self.cache = cache or ResultCache()
        self.cache.configure(self._config.caching.ttl, self._config.caching.enabled)
        self._now = now or _utcnow

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def get_config(self) -> AggregationConfig:
        """Current aggregation policy (immutable)."""
        return self._config

    def update_config(self, partial: Union[Mapping[str, Any], AggregationConfig]) -> AggregationConfig:
        """
        Deep-merge a partial update into the policy and swap it in.

        Args:
            partial: Nested mapping of fields to change, or a complete config

        Returns:
            The new active configuration

        Raises:
            ConfigurationError: If the result is invalid; the previous
                configuration stays active
        """
        new_config = self._config.merged(partial)
        self._config = new_config
        self.cache.configure(new_config.caching.ttl, new_config.caching.enabled)

        logger.info(
            "Aggregation config updated",
            sources=[s.value for s in new_config.enabled_sources()],
            strategy=new_config.mixing.strategy.value,
            total_limit=new_config.limits.total,
            caching_enabled=new_config.caching.enabled,
            cache_ttl=new_config.caching.ttl,
        )
        return new_config

    def clear_cache(self, pattern: Optional[str] = None) -> int:
        """
        Invalidate memoized responses.

        Without a pattern the adapters' request caches are cleared as well.

        Args:
            pattern: Regular expression searched in cache keys

        Returns:
            Number of result cache entries removed

        Raises:
            re.error: If the pattern is not a valid regular expression
        """
        removed = self.cache.invalidate(pattern)
        if not pattern:
            self.manager.clear_caches()
        return removed

    # ------------------------------------------------------------------
    # Cache helpers
    # ------------------------------------------------------------------

    def _cache_get(self, key: str) -> Optional[Any]:
        value = self.cache.get(key)
        MetricsCollector.record_cache_lookup(value is not None, len(self.cache))
        if value is not None:
            logger.debug("Result cache hit", key=key)
        return value

    @staticmethod
    def _list_key(kind: str, limit: int, filters: Optional[SearchFilters]) -> str:
        signature = filters.signature() if filters else {}
        return f"{kind}:{json.dumps({'limit': limit, 'filters': signature}, sort_keys=True)}"

    # ------------------------------------------------------------------
    # Source helpers
    # ------------------------------------------------------------------

    def _active_sources(
        self, config: AggregationConfig, filters: Optional[SearchFilters] = None
    ) -> List[Source]:
        if filters is not None and filters.sources is not None:
            requested = list(filters.sources)
        else:
            requested = config.enabled_sources()
        return [s for s in self.manager.available_sources() if s in requested]

    async def _channel_enrichment(
        self, records: Sequence[Any]
    ) -> Dict[str, UnifiedChannelMetadata]:
        """Best-effort channel details for external video records."""
        adapter = self.manager.get_adapter(Source.EXTERNAL)
        channel_ids = [
            r.channel_id for r in records if isinstance(r, ExternalVideoRecord) and r.channel_id
        ]
        if adapter is None or not channel_ids:
            return {}

        outcome = await self.manager.execute_with_error_isolation(
            Source.EXTERNAL, adapter.fetch_channels, channel_ids, default={}
        )

        channels = {}
        for channel_id, record in (outcome.value or {}).items():
            try:
                channels[channel_id] = normalize_channel(record)
            except MalformedRecordError as e:
                logger.warning("Dropping malformed channel", channel_id=channel_id, error=str(e))
        return channels

    async def _normalized(self, source: Source, records: Sequence[Any]) -> List[UnifiedVideoMetadata]:
        channels = await self._channel_enrichment(records) if source is Source.EXTERNAL else {}
        return normalize_videos(records, channels, self._now())

    async def _aggregate(
        self,
        key: str,
        limit: int,
        filters: Optional[SearchFilters],
        operation: str,
        *leading_args: Any,
    ) -> VideoResponse:
        cached = self._cache_get(key)
        if cached is not None:
            return cached

        # Snapshot so a concurrent update_config cannot change the policy mid-query
        config = self._config
        sources = self._active_sources(config, filters)

        async def run(source: Source) -> List[UnifiedVideoMetadata]:
            adapter = self.manager.get_adapter(source)
            per_source = config.limits.for_source(source)
            if adapter is None or per_source == 0:
                return []
            outcome = await self.manager.execute_with_error_isolation(
                source,
                getattr(adapter, operation),
                *leading_args,
                adapter.candidate_limit(per_source, filters),
                filters,
                default=[],
            )
            videos = await self._normalized(source, outcome.value or [])
            return apply_filters(videos, filters, self._now())[:per_source]

        fetched = await asyncio.gather(*(run(source) for source in sources))
        results: Dict[Source, List[UnifiedVideoMetadata]] = dict(zip(sources, fetched))

        stats = {}
        for source in (Source.LOCAL, Source.EXTERNAL):
            count = len(results.get(source, []))
            per_source = config.limits.for_source(source)
            stats[source] = SourceStats(count=count, has_more=per_source > 0 and count >= per_source)

        candidates = sum(len(videos) for videos in results.values())
        mixed = mixer.mix(
            config.mixing.strategy, results, candidates, config.mixing.source_priority
        )

        response = AggregationResponse(
            data=mixed[:limit],
            sources=stats,
            total_count=len(mixed),
            has_more=len(mixed) > limit,
        )
        self.cache.set(key, response)

        logger.info(
            "Aggregated videos",
            key=key,
            sources={s.value: len(v) for s, v in results.items()},
            returned=len(response.data),
            total_count=response.total_count,
        )
        return response

    # ------------------------------------------------------------------
    # List queries
    # ------------------------------------------------------------------

    async def get_trending_videos(
        self, limit: Optional[int] = None, filters: Optional[SearchFilters] = None
    ) -> VideoResponse:
        """
        Trending videos mixed from all active sources.

        Args:
            limit: Maximum number of videos (defaults to ``limits.total``)
            filters: Query constraints

        Returns:
            Response envelope with at most ``limit`` videos
        """
        limit = self._config.limits.total if limit is None else max(limit, 0)
        key = self._list_key("trending", limit, filters)

        return await self._aggregate(key, limit, filters, "fetch_trending")

    async def search_videos(
        self,
        query: str,
        filters: Optional[SearchFilters] = None,
        limit: Optional[int] = None,
    ) -> VideoResponse:
        """
        Free-text search across all active sources.

        A blank query is answered as a trending request.

        Args:
            query: Search text
            filters: Query constraints
            limit: Maximum number of videos (defaults to ``limits.total``)

        Returns:
            Response envelope with at most ``limit`` videos
        """
        if not query or not query.strip():
            return await self.get_trending_videos(limit, filters)

        limit = self._config.limits.total if limit is None else max(limit, 0)
        query = query.strip()
        key = self._list_key(f"search:{query}", limit, filters)

        return await self._aggregate(key, limit, filters, "search", query)

    async def get_shorts_videos(self, limit: int = DEFAULT_SHORTS_LIMIT) -> VideoResponse:
        """Short-form videos from all active sources."""
        return await self.get_trending_videos(limit, SearchFilters(type="short"))

    # ------------------------------------------------------------------
    # Lookups by ID
    # ------------------------------------------------------------------

    async def get_video_by_id(self, video_id: str) -> Optional[UnifiedVideoMetadata]:
        """
        Look up one video by any accepted identifier form.

        The source indicated by the identifier is queried first, then the
        other enabled source.

        Args:
            video_id: Opaque ID, prefixed ID, bare token or watch URL

        Returns:
            Normalized video, or None when no active source has it
        """
        key = f"video:{video_id}"
        cached = self._cache_get(key)
        if cached is not None:
            return cached

        resolved = resolve(video_id)
        if resolved is None:
            logger.debug("Unresolvable video ID", video_id=video_id)
            return None

        active = self._active_sources(self._config)
        for source in (resolved.source, resolved.source.other):
            adapter = self.manager.get_adapter(source)
            if source not in active or adapter is None:
                continue

            outcome = await self.manager.execute_with_error_isolation(
                source, adapter.fetch_by_id, [resolved.canonical_id], default=[]
            )
            videos = await self._normalized(source, outcome.value or [])
            if videos:
                self.cache.set(key, videos[0])
                return videos[0]

        logger.info("Video not found", video_id=video_id, resolved_source=resolved.source.value)
        return None

    async def get_channel_by_id(self, channel_id: str) -> Optional[UnifiedChannelMetadata]:
        """
        Look up one channel.

        Local is tried first unless the ID has the external channel shape.

        Args:
            channel_id: Channel ID

        Returns:
            Normalized channel, or None when no active source has it
        """
        if not channel_id:
            return None

        key = f"channel:{channel_id}"
        cached = self._cache_get(key)
        if cached is not None:
            return cached

        order = [Source.LOCAL, Source.EXTERNAL]
        if is_external_channel_id(channel_id):
            order.reverse()

        active = self._active_sources(self._config)
        for source in order:
            adapter = self.manager.get_adapter(source)
            if source not in active or adapter is None:
                continue

            outcome = await self.manager.execute_with_error_isolation(
                source, adapter.fetch_channel, channel_id
            )
            if outcome.value is None:
                continue
            try:
                channel = normalize_channel(outcome.value)
            except MalformedRecordError as e:
                logger.warning("Dropping malformed channel", channel_id=channel_id, error=str(e))
                continue
            self.cache.set(key, channel)
            return channel

        logger.info("Channel not found", channel_id=channel_id)
        return None


# Global aggregator instance
_aggregator: Optional[Aggregator] = None


def configure_aggregator(
    manager: SourceManager,
    config: Optional[AggregationConfig] = None,
    cache: Optional[ResultCache] = None,
) -> Aggregator:
    """Configure and initialize the global aggregator.

    Args:
        manager: Source manager with registered adapters.
        config: Initial aggregation policy.
        cache: Optional result cache instance.

    Returns:
        Configured Aggregator instance.
    """
    global _aggregator
    _aggregator = Aggregator(manager, config=config, cache=cache)
    return _aggregator


def get_aggregator() -> Aggregator:
    """Get the global aggregator instance.

    Returns:
        The configured Aggregator.

    Raises:
        RuntimeError: If the aggregator is not configured.
    """
    if _aggregator is None:
        raise RuntimeError("Aggregator not configured. Call configure_aggregator() first.")
    return _aggregator
