"""Local catalog source."""

import asyncio
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

import structlog
import yaml
from cachetools import TTLCache

from vidmeta.models.aggregation import SearchFilters
from vidmeta.models.durations import is_short_duration, parse_duration_seconds
from vidmeta.models.records import LocalChannelRecord, LocalVideoRecord
from vidmeta.models.video import Source
from vidmeta.providers.base import SourceAdapter
from vidmeta.providers.exceptions import SourceUnavailableError

logger = structlog.get_logger(__name__)

DEFAULT_CATALOG_PATH = Path(__file__).resolve().parent.parent / "data" / "catalog.yaml"


class LocalCatalog:
    """In-memory store of local video and channel payloads."""

    def __init__(
        self,
        videos: Optional[List[Dict[str, Any]]] = None,
        channels: Optional[List[Dict[str, Any]]] = None,
    ) -> None:
        self.videos: List[Dict[str, Any]] = list(videos or [])
        self.channels: List[Dict[str, Any]] = list(channels or [])

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "LocalCatalog":
        """Build a catalog from ``{"videos": [...], "channels": [...]}``."""
        videos = data.get("videos") or []
        channels = data.get("channels") or []
        if not isinstance(videos, list) or not isinstance(channels, list):
            raise SourceUnavailableError("Catalog 'videos' and 'channels' must be lists")
        return cls(
            videos=[v for v in videos if isinstance(v, dict)],
            channels=[c for c in channels if isinstance(c, dict)],
        )

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "LocalCatalog":
        """
        Load a catalog file.

        Args:
            path: Path to a YAML catalog

        Returns:
            Loaded catalog

        Raises:
            SourceUnavailableError: If the file is missing or unreadable
        """
        catalog_path = Path(path)
        try:
            with open(catalog_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise SourceUnavailableError(f"Failed to load catalog {catalog_path}: {e}") from e

        if not isinstance(data, dict):
            raise SourceUnavailableError(f"Catalog {catalog_path} must be a mapping")

        catalog = cls.from_mapping(data)
        logger.info(
            "Local catalog loaded",
            path=str(catalog_path),
            videos=len(catalog.videos),
            channels=len(catalog.channels),
        )
        return catalog

    def get_video(self, video_id: str) -> Optional[Dict[str, Any]]:
        return next((v for v in self.videos if str(v.get("id")) == video_id), None)

    def get_channel(self, channel_id: str) -> Optional[Dict[str, Any]]:
        return next((c for c in self.channels if str(c.get("id")) == channel_id), None)

    def by_category(self, category: str) -> List[Dict[str, Any]]:
        wanted = category.strip().lower()
        return [v for v in self.videos if str(v.get("category", "")).lower() == wanted]

    def shorts(self) -> List[Dict[str, Any]]:
        return [
            v for v in self.videos if is_short_duration(parse_duration_seconds(v.get("duration")))
        ]

    def live(self) -> List[Dict[str, Any]]:
        return [v for v in self.videos if v.get("isLive")]

    def search(self, query: str) -> List[Dict[str, Any]]:
        needle = query.strip().lower()
        return [
            v
            for v in self.videos
            if needle in str(v.get("title", "")).lower()
            or needle in str(v.get("description", "")).lower()
        ]


class LocalCatalogAdapter(SourceAdapter):
    """Source adapter over a :class:`LocalCatalog`."""

    source = Source.LOCAL

    def __init__(self, catalog: LocalCatalog, config: Optional[dict] = None):
        """
        Initialize the local adapter.

        Args:
            catalog: Backing catalog
            config: Adapter configuration (cache_ttl, cache_size)
        """
        config = config or {}
        self.catalog = catalog
        self.cache_ttl: float = config.get("cache_ttl", 30)
        self.cache: TTLCache = TTLCache(maxsize=config.get("cache_size", 256), ttl=self.cache_ttl)

        logger.info(
            "Local catalog adapter initialized",
            videos=len(catalog.videos),
            cache_ttl=self.cache_ttl,
        )

    def candidate_limit(self, limit: int, filters: Optional[SearchFilters] = None) -> int:
        # The catalog has no server-side filtering; hand over every match
        if filters is not None and filters.narrows_results():
            return max(limit, len(self.catalog.videos))
        return limit

    async def _cached(self, key: str, loader: Any) -> Any:
        if key in self.cache:
            return self.cache[key]
        # Yield once so concurrent callers interleave as with a real store
        await asyncio.sleep(0)
        value = loader()
        self.cache[key] = value
        return value

    async def fetch_by_id(self, ids: Sequence[str]) -> List[LocalVideoRecord]:
        if not ids:
            return []
        key = f"videos:{','.join(ids)}"
        payloads = await self._cached(
            key, lambda: [p for p in (self.catalog.get_video(i) for i in ids) if p is not None]
        )
        return [LocalVideoRecord(p) for p in payloads]

    async def fetch_by_category(self, category: str, limit: int) -> List[LocalVideoRecord]:
        payloads = await self._cached(
            f"category:{category.lower()}", lambda: self.catalog.by_category(category)
        )
        return [LocalVideoRecord(p) for p in payloads[:limit]]

    async def search(
        self, query: str, limit: int, filters: Optional[SearchFilters] = None
    ) -> List[LocalVideoRecord]:
        payloads = await self._cached(f"search:{query.lower()}", lambda: self.catalog.search(query))
        return [LocalVideoRecord(p) for p in payloads[:limit]]

    async def fetch_trending(
        self, limit: int, filters: Optional[SearchFilters] = None
    ) -> List[LocalVideoRecord]:
        filters = filters or SearchFilters()
        if filters.type == "short":
            return await self.fetch_shorts(limit)
        if filters.type == "live":
            payloads = await self._cached("live", self.catalog.live)
            return [LocalVideoRecord(p) for p in payloads[:limit]]
        if filters.category:
            return await self.fetch_by_category(filters.category, limit)

        payloads = await self._cached("trending", lambda: list(self.catalog.videos))
        return [LocalVideoRecord(p) for p in payloads[:limit]]

    async def fetch_shorts(self, limit: int) -> List[LocalVideoRecord]:
        """Fetch catalog videos flagged as shorts."""
        payloads = await self._cached("shorts", self.catalog.shorts)
        return [LocalVideoRecord(p) for p in payloads[:limit]]

    async def fetch_channel(self, channel_id: str) -> Optional[LocalChannelRecord]:
        if not channel_id:
            return None
        payload = await self._cached(
            f"channel:{channel_id}", lambda: self.catalog.get_channel(channel_id)
        )
        return LocalChannelRecord(payload) if payload is not None else None

    def clear_cache(self) -> None:
        self.cache.clear()
        logger.debug("Local adapter cache cleared")
