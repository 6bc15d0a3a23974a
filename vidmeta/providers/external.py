"""External video platform source.

Talks to a YouTube Data API v3 compatible HTTP JSON service. Responses group
fields under ``snippet``/``statistics``/``contentDetails`` with counts
encoded as decimal strings and ISO-8601 durations; those are left as-is for
the normalizer.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Sequence

import httpx
import structlog
from cachetools import TTLCache

from vidmeta.core.logging import hash_api_key
from vidmeta.models.aggregation import SearchFilters
from vidmeta.models.categories import category_id_for
from vidmeta.models.records import ExternalChannelRecord, ExternalVideoRecord
from vidmeta.models.video import Source
from vidmeta.providers.base import SourceAdapter
from vidmeta.providers.exceptions import AuthenticationError, SourceUnavailableError

logger = structlog.get_logger(__name__)

VIDEO_PARTS = "snippet,statistics,contentDetails,status,liveStreamingDetails,topicDetails"
CHANNEL_PARTS = "snippet,statistics,brandingSettings"

# The platform caps ``maxResults`` and ``id`` lists at 50
MAX_PAGE_SIZE = 50

ORDER_BY_SORT = {
    "relevance": "relevance",
    "date": "date",
    "views": "viewCount",
    "rating": "rating",
}

UPLOAD_WINDOWS = {
    "hour": timedelta(hours=1),
    "today": timedelta(days=1),
    "week": timedelta(weeks=1),
    "month": timedelta(days=30),
    "year": timedelta(days=365),
}

SHORTS_QUERY = "#shorts"


class ExternalPlatformAdapter(SourceAdapter):
    """Source adapter for the external video platform API."""

    source = Source.EXTERNAL

    DEFAULT_BASE_URL = "https://www.googleapis.com/youtube/v3/"

    def __init__(self, config: dict, client: Optional[httpx.AsyncClient] = None):
        """
        Initialize the external adapter.

        Args:
            config: Adapter configuration dictionary (api_key, base_url, timeout,
                region_code, retry_attempts, retry_backoff, cache_ttl, cache_size)
            client: Optional preconfigured HTTP client (owned by the caller)
        """
        self.config = config
        self.api_key: str = config.get("api_key") or ""
        self.base_url: str = config.get("base_url") or self.DEFAULT_BASE_URL
        self.timeout: float = config.get("timeout", 10.0)
        self.region_code: str = config.get("region_code", "US")
        self.retry_attempts: int = max(config.get("retry_attempts", 3), 1)
        self.retry_backoff: list = config.get("retry_backoff", [1, 2, 4])
        self.cache_ttl: float = config.get("cache_ttl", 300)
        self.cache: TTLCache = TTLCache(maxsize=config.get("cache_size", 512), ttl=self.cache_ttl)

        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout)

        logger.info(
            "External platform adapter initialized",
            base_url=self.base_url,
            api_key=hash_api_key(self.api_key) if self.api_key else None,
            timeout=self.timeout,
            retry_attempts=self.retry_attempts,
        )

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    def _is_retriable_status(self, status_code: int) -> bool:
        return status_code == 429 or status_code >= 500

    def _backoff(self, attempt: int) -> float:
        if not self.retry_backoff:
            return 0
        return self.retry_backoff[min(attempt, len(self.retry_backoff) - 1)]

    async def _request(self, endpoint: str, params: Dict[str, Any]) -> Dict[str, Any]:  # noqa: C901
        """
        GET an API endpoint with retry on transient failures.

        Retries timeouts, transport errors, 429 and 5xx responses with
        backoff. Other failures are raised immediately.

        Args:
            endpoint: Endpoint path relative to the base URL (e.g., "videos")
            params: Query parameters (the API key is added here)

        Returns:
            Decoded JSON object

        Raises:
            AuthenticationError: If no API key is configured or it is rejected
            SourceUnavailableError: If all attempts fail or the response is malformed
        """
        if not self.api_key:
            raise AuthenticationError("External platform API key is not configured")

        query = {k: v for k, v in params.items() if v not in (None, "")}
        query["key"] = self.api_key

        last_error: Optional[str] = None

        for attempt in range(self.retry_attempts):
            try:
                response = await self._client.get(endpoint, params=query, timeout=self.timeout)
            except httpx.TimeoutException:
                last_error = f"Timeout after {self.timeout}s"
            except httpx.TransportError as e:
                last_error = f"Transport error: {e}"
            else:
                if response.status_code in (401, 403):
                    raise AuthenticationError(
                        f"External platform rejected the API key (HTTP {response.status_code})"
                    )
                if response.is_success:
                    try:
                        data = response.json()
                    except ValueError as e:
                        raise SourceUnavailableError(f"Malformed response from {endpoint}") from e
                    if not isinstance(data, dict):
                        raise SourceUnavailableError(f"Malformed response from {endpoint}")
                    return data
                if not self._is_retriable_status(response.status_code):
                    raise SourceUnavailableError(
                        f"External platform error on {endpoint}: HTTP {response.status_code}"
                    )
                last_error = f"HTTP {response.status_code}"

            if attempt < self.retry_attempts - 1:
                wait_time = self._backoff(attempt)
                logger.warning(
                    "Retrying after retriable error",
                    endpoint=endpoint,
                    attempt=attempt + 1,
                    max_attempts=self.retry_attempts,
                    wait_seconds=wait_time,
                    error=last_error,
                )
                await asyncio.sleep(wait_time)

        raise SourceUnavailableError(
            f"External platform {endpoint} failed after {self.retry_attempts} attempts: {last_error}"
        )

    async def _cached_request(self, key: str, endpoint: str, params: Dict[str, Any]) -> Dict:
        if key in self.cache:
            logger.debug("External cache hit", key=key)
            return self.cache[key]
        data = await self._request(endpoint, params)
        self.cache[key] = data
        return data

    @staticmethod
    def _items(data: Dict[str, Any]) -> List[Dict[str, Any]]:
        items = data.get("items") or []
        return [item for item in items if isinstance(item, dict)]

    # ------------------------------------------------------------------
    # Videos
    # ------------------------------------------------------------------

    async def fetch_by_id(self, ids: Sequence[str]) -> List[ExternalVideoRecord]:
        unique = list(dict.fromkeys(i for i in ids if i))
        if not unique:
            return []

        items: List[Dict[str, Any]] = []
        for start in range(0, len(unique), MAX_PAGE_SIZE):
            chunk = unique[start : start + MAX_PAGE_SIZE]
            data = await self._cached_request(
                f"videos:{','.join(chunk)}",
                "videos",
                {"part": VIDEO_PARTS, "id": ",".join(chunk)},
            )
            items.extend(self._items(data))

        by_id = {str(item.get("id")): item for item in items}
        return [ExternalVideoRecord(by_id[i]) for i in unique if i in by_id]

    async def _chart(self, limit: int, category_id: Optional[str] = None) -> List[ExternalVideoRecord]:
        params = {
            "part": VIDEO_PARTS,
            "chart": "mostPopular",
            "regionCode": self.region_code,
            "maxResults": min(max(limit, 1), MAX_PAGE_SIZE),
            "videoCategoryId": category_id,
        }
        data = await self._cached_request(
            f"chart:{self.region_code}:{category_id or ''}:{params['maxResults']}", "videos", params
        )
        return [ExternalVideoRecord(item) for item in self._items(data)][:limit]

    async def fetch_by_category(self, category: str, limit: int) -> List[ExternalVideoRecord]:
        category_id = category_id_for(category)
        if category_id is None:
            # Unknown to the platform's category table; fall back to a keyword search
            return await self.search(category, limit)
        return await self._chart(limit, category_id)

    def _search_params(self, query: str, limit: int, filters: SearchFilters) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "part": "snippet",
            "type": "video",
            "q": query,
            "maxResults": min(max(limit, 1), MAX_PAGE_SIZE),
            "order": ORDER_BY_SORT.get(filters.sort_by or "relevance", "relevance"),
            "regionCode": self.region_code,
        }
        if filters.duration:
            params["videoDuration"] = filters.duration
        if filters.type == "short":
            params["videoDuration"] = "short"
        if filters.type == "live":
            params["eventType"] = "live"
        if filters.upload_date:
            after = datetime.now(timezone.utc) - UPLOAD_WINDOWS[filters.upload_date]
            params["publishedAfter"] = after.strftime("%Y-%m-%dT%H:%M:%SZ")
        if filters.category:
            params["videoCategoryId"] = category_id_for(filters.category)
        return params

    async def search(
        self, query: str, limit: int, filters: Optional[SearchFilters] = None
    ) -> List[ExternalVideoRecord]:
        """Search, then resolve hits into full video resources."""
        filters = filters or SearchFilters()
        params = self._search_params(query, limit, filters)
        key = "search:" + "&".join(f"{k}={params[k]}" for k in sorted(params) if params[k])
        data = await self._cached_request(key, "search", params)

        hit_ids = []
        for item in self._items(data):
            record_id = ExternalVideoRecord(item).record_id
            if record_id:
                hit_ids.append(record_id)

        logger.debug("External search completed", query=query, hits=len(hit_ids))
        return (await self.fetch_by_id(hit_ids))[:limit]

    async def fetch_trending(
        self, limit: int, filters: Optional[SearchFilters] = None
    ) -> List[ExternalVideoRecord]:
        filters = filters or SearchFilters()
        if filters.type == "short":
            return await self.fetch_shorts(limit, filters)
        category_id = category_id_for(filters.category) if filters.category else None
        if filters.category and category_id is None:
            return await self.search(filters.category, limit, filters)
        return await self._chart(limit, category_id)

    async def fetch_shorts(
        self, limit: int, filters: Optional[SearchFilters] = None
    ) -> List[ExternalVideoRecord]:
        """Shorts have no chart of their own; search the shorts tag for short videos."""
        filters = filters or SearchFilters(type="short")
        return await self.search(SHORTS_QUERY, limit, filters)

    # ------------------------------------------------------------------
    # Channels
    # ------------------------------------------------------------------

    async def fetch_channel(self, channel_id: str) -> Optional[ExternalChannelRecord]:
        if not channel_id:
            return None
        records = await self.fetch_channels([channel_id])
        return records.get(channel_id)

    async def fetch_channels(self, channel_ids: Sequence[str]) -> Dict[str, ExternalChannelRecord]:
        unique = list(dict.fromkeys(cid for cid in channel_ids if cid))
        found: Dict[str, ExternalChannelRecord] = {}

        # Channel lookups repeat across videos from the same creator; cache per channel
        missing = []
        for cid in unique:
            cached = self.cache.get(f"channel:{cid}")
            if cached is not None:
                found[cid] = ExternalChannelRecord(cached)
            else:
                missing.append(cid)

        for start in range(0, len(missing), MAX_PAGE_SIZE):
            chunk = missing[start : start + MAX_PAGE_SIZE]
            data = await self._request("channels", {"part": CHANNEL_PARTS, "id": ",".join(chunk)})
            for item in self._items(data):
                cid = str(item.get("id") or "")
                if cid:
                    self.cache[f"channel:{cid}"] = item
                    found[cid] = ExternalChannelRecord(item)

        return found

    def clear_cache(self) -> None:
        self.cache.clear()
        logger.debug("External adapter cache cleared")

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()
