"""Abstract base class for metadata sources."""

import asyncio
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Sequence

from vidmeta.models.aggregation import SearchFilters
from vidmeta.models.records import ChannelRecord, VideoRecord
from vidmeta.models.video import Source


class SourceAdapter(ABC):
    """Abstract base class for video metadata sources.

    Adapters return raw, source-shaped records; normalization happens
    downstream. Implementations may raise :class:`ProviderError` subclasses,
    which the source manager absorbs as empty results.
    """

    source: Source

    @property
    def name(self) -> str:
        return self.source.value

    @abstractmethod
    async def fetch_by_id(self, ids: Sequence[str]) -> List[VideoRecord]:
        """
        Fetch videos by canonical ID.

        Args:
            ids: Source-native video IDs

        Returns:
            Records for the IDs that exist, in request order

        Raises:
            SourceUnavailableError: If the source cannot be reached
        """
        pass

    @abstractmethod
    async def fetch_by_category(self, category: str, limit: int) -> List[VideoRecord]:
        """
        Fetch videos in a category.

        Args:
            category: Category name (e.g., "Gaming")
            limit: Maximum number of records

        Returns:
            Matching records
        """
        pass

    @abstractmethod
    async def search(
        self, query: str, limit: int, filters: Optional[SearchFilters] = None
    ) -> List[VideoRecord]:
        """
        Free-text search.

        Args:
            query: Search terms
            limit: Maximum number of records
            filters: Optional hints the source can apply upstream

        Returns:
            Matching records in source relevance order
        """
        pass

    @abstractmethod
    async def fetch_trending(
        self, limit: int, filters: Optional[SearchFilters] = None
    ) -> List[VideoRecord]:
        """
        Fetch the source's trending/popular videos.

        Args:
            limit: Maximum number of records
            filters: Optional hints (category, type)

        Returns:
            Trending records
        """
        pass

    def candidate_limit(self, limit: int, filters: Optional[SearchFilters] = None) -> int:
        """
        Number of records to request for a list query capped at ``limit``.

        Results are filtered and sorted after fetching. Adapters that apply
        the filters upstream keep ``limit``; adapters that cannot widen the
        candidate pool so matches beyond the first ``limit`` records survive.
        """
        return limit

    async def fetch_shorts(self, limit: int) -> List[VideoRecord]:
        """Fetch short-form videos; adapters with a dedicated listing override this."""
        return await self.fetch_trending(limit, SearchFilters(type="short"))

    @abstractmethod
    async def fetch_channel(self, channel_id: str) -> Optional[ChannelRecord]:
        """
        Fetch a channel.

        Args:
            channel_id: Source-native channel ID

        Returns:
            Channel record, or None if it does not exist
        """
        pass

    async def fetch_channels(self, channel_ids: Sequence[str]) -> Dict[str, ChannelRecord]:
        """
        Fetch several channels, best-effort.

        Args:
            channel_ids: Source-native channel IDs

        Returns:
            Records keyed by channel ID; missing or failed lookups are omitted
        """
        unique = list(dict.fromkeys(cid for cid in channel_ids if cid))
        results = await asyncio.gather(
            *(self.fetch_channel(cid) for cid in unique), return_exceptions=True
        )
        return {
            cid: record
            for cid, record in zip(unique, results)
            if record is not None and not isinstance(record, BaseException)
        }

    @abstractmethod
    def clear_cache(self) -> None:
        """Drop the adapter's response cache."""
        pass

    async def close(self) -> None:
        """Release resources held by the adapter."""
        return None
