"""TTL result cache for composed aggregation responses."""

import re
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import structlog

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    """A memoized value and the time it was stored."""

    key: str
    payload: Any
    timestamp: float


class ResultCache:
    """Key-value store with lazy time-based expiry.

    Stale entries are discarded on the next ``get`` for their key; there is
    no background sweep. Disabling the cache makes ``get`` miss and ``set``
    a no-op while leaving stored entries in place, so re-enabling does not
    start cold.
    """

    def __init__(
        self,
        ttl: float = 600.0,
        enabled: bool = True,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize the cache.

        Args:
            ttl: Seconds before an entry is stale
            enabled: Whether lookups and stores are active
            clock: Time source in seconds (injectable for tests)
        """
        self.ttl = ttl
        self.enabled = enabled
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}

    def configure(self, ttl: float, enabled: bool) -> None:
        """Apply new policy without touching stored entries."""
        self.ttl = ttl
        self.enabled = enabled

    def get(self, key: str) -> Optional[Any]:
        """
        Look up a key.

        Args:
            key: Cache key

        Returns:
            Cached payload, or None on miss, expiry or when disabled
        """
        if not self.enabled:
            return None

        entry = self._entries.get(key)
        if entry is None:
            return None

        if self._clock() - entry.timestamp > self.ttl:
            # Another request may have already replaced or removed the entry
            if self._entries.get(key) is entry:
                del self._entries[key]
            logger.debug("Cache entry expired", key=key)
            return None

        return entry.payload

    def set(self, key: str, value: Any) -> None:
        """Store a value, replacing any previous entry for the key."""
        if not self.enabled:
            return
        self._entries[key] = CacheEntry(key=key, payload=value, timestamp=self._clock())

    def invalidate(self, pattern: Optional[str] = None) -> int:
        """
        Remove entries.

        Args:
            pattern: Regular expression searched in each key; all entries are
                removed when omitted

        Returns:
            Number of entries removed

        Raises:
            re.error: If the pattern is not a valid regular expression
        """
        if not pattern:
            removed = len(self._entries)
            self._entries.clear()
            logger.info("Result cache cleared", removed=removed)
            return removed

        regex = re.compile(pattern)
        keys = [key for key in self._entries if regex.search(key)]
        for key in keys:
            self._entries.pop(key, None)

        logger.info("Result cache invalidated", pattern=pattern, removed=len(keys))
        return len(keys)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries
