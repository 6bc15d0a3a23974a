"""Service layer implementations."""

from vidmeta.services.aggregator import Aggregator, configure_aggregator, get_aggregator
from vidmeta.services.cache import CacheEntry, ResultCache
from vidmeta.services.resolver import ResolvedId, resolve

__all__ = [
    # Aggregator
    "Aggregator",
    "configure_aggregator",
    "get_aggregator",
    # Result cache
    "CacheEntry",
    "ResultCache",
    # Identifier resolution
    "ResolvedId",
    "resolve",
]
