"""Source adapter implementations."""

from vidmeta.providers.base import SourceAdapter
from vidmeta.providers.exceptions import (
    AuthenticationError,
    MalformedRecordError,
    ProviderError,
    SourceUnavailableError,
)
from vidmeta.providers.external import ExternalPlatformAdapter
from vidmeta.providers.local import LocalCatalog, LocalCatalogAdapter
from vidmeta.providers.manager import SourceManager, SourceOutcome

__all__ = [
    "SourceAdapter",
    "SourceManager",
    "SourceOutcome",
    "LocalCatalog",
    "LocalCatalogAdapter",
    "ExternalPlatformAdapter",
    "ProviderError",
    "SourceUnavailableError",
    "AuthenticationError",
    "MalformedRecordError",
]
