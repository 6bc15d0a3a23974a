"""Scriptable in-memory source adapter.

Serves canned raw records for a source and can be told to fail, so
aggregation behaviour can be exercised without a catalog file or network.
"""

from typing import Dict, List, Optional, Sequence

import structlog

from vidmeta.models.aggregation import SearchFilters
from vidmeta.models.records import (
    ChannelRecord,
    ExternalChannelRecord,
    ExternalVideoRecord,
    LocalChannelRecord,
    LocalVideoRecord,
    VideoRecord,
)
from vidmeta.models.video import Source
from vidmeta.providers.base import SourceAdapter
from vidmeta.providers.exceptions import ProviderError, SourceUnavailableError

logger = structlog.get_logger(__name__)


class StaticSourceAdapter(SourceAdapter):
    """Adapter returning fixed payloads for one source.

    Every call is recorded in ``calls`` as ``(operation, argument)``.
    Setting ``failure`` makes every fetch raise it.
    """

    def __init__(
        self,
        source: Source,
        videos: Optional[List[dict]] = None,
        channels: Optional[List[dict]] = None,
        failure: Optional[Exception] = None,
    ):
        self.source = source
        self.videos = list(videos or [])
        self.channels = list(channels or [])
        self.failure = failure
        self.calls: List[tuple] = []
        self.cache_clears = 0
        self.closed = False

    def _video_record(self, payload: dict) -> VideoRecord:
        if self.source is Source.LOCAL:
            return LocalVideoRecord(payload)
        return ExternalVideoRecord(payload)

    def _channel_record(self, payload: dict) -> ChannelRecord:
        if self.source is Source.LOCAL:
            return LocalChannelRecord(payload)
        return ExternalChannelRecord(payload)

    def _check(self, operation: str, argument: object) -> None:
        self.calls.append((operation, argument))
        if self.failure is not None:
            logger.debug("Injected source failure", source=self.name, operation=operation)
            raise self.failure

    def candidate_limit(self, limit: int, filters: Optional[SearchFilters] = None) -> int:
        # Local payloads are filtered after fetching, as with the catalog adapter
        if self.source is Source.LOCAL and filters is not None and filters.narrows_results():
            return max(limit, len(self.videos))
        return limit

    def operations(self, name: str) -> List[tuple]:
        """Recorded calls for one operation."""
        return [call for call in self.calls if call[0] == name]

    async def fetch_by_id(self, ids: Sequence[str]) -> List[VideoRecord]:
        self._check("fetch_by_id", tuple(ids))
        wanted = set(ids)
        return [self._video_record(v) for v in self.videos if self._video_id(v) in wanted]

    async def fetch_by_category(self, category: str, limit: int) -> List[VideoRecord]:
        self._check("fetch_by_category", category)
        return [self._video_record(v) for v in self.videos][:limit]

    async def search(
        self, query: str, limit: int, filters: Optional[SearchFilters] = None
    ) -> List[VideoRecord]:
        self._check("search", query)
        return [self._video_record(v) for v in self.videos][:limit]

    async def fetch_trending(
        self, limit: int, filters: Optional[SearchFilters] = None
    ) -> List[VideoRecord]:
        self._check("fetch_trending", limit)
        return [self._video_record(v) for v in self.videos][:limit]

    async def fetch_channel(self, channel_id: str) -> Optional[ChannelRecord]:
        self._check("fetch_channel", channel_id)
        for payload in self.channels:
            if str(payload.get("id")) == channel_id:
                return self._channel_record(payload)
        return None

    async def fetch_channels(self, channel_ids: Sequence[str]) -> Dict[str, ChannelRecord]:
        self._check("fetch_channels", tuple(channel_ids))
        wanted = set(channel_ids)
        return {
            str(p["id"]): self._channel_record(p) for p in self.channels if str(p.get("id")) in wanted
        }

    def clear_cache(self) -> None:
        self.cache_clears += 1

    async def close(self) -> None:
        self.closed = True

    @staticmethod
    def _video_id(payload: dict) -> str:
        raw = payload.get("id")
        if isinstance(raw, dict):
            return str(raw.get("videoId", ""))
        return str(raw)


def unavailable(message: str = "source unreachable") -> ProviderError:
    """Failure to inject into a :class:`StaticSourceAdapter`."""
    return SourceUnavailableError(message)
