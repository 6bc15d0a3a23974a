"""Aggregation policy, query filters and the response envelope."""

import copy
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, Generic, List, Literal, Mapping, Optional, Tuple, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from vidmeta.models.video import Source

T = TypeVar("T")


class ConfigurationError(ValueError):
    """Raised when a config update is rejected; the previous config stays active."""

    pass


class MixingStrategy(str, Enum):
    """How normalized result lists from several sources are merged."""

    ROUND_ROBIN = "round-robin"
    SOURCE_PRIORITY = "source-priority"
    RELEVANCE = "relevance"


class _PolicyModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class SourceToggles(_PolicyModel):
    """Which sources participate in list queries."""

    local: bool = True
    external: bool = True


class SourceLimits(_PolicyModel):
    """Per-source candidate limits and the default total limit."""

    local: int = Field(25, ge=0)
    external: int = Field(25, ge=0)
    total: int = Field(50, ge=0)

    def for_source(self, source: Source) -> int:
        return self.local if source is Source.LOCAL else self.external


class CachingPolicy(_PolicyModel):
    """Result cache settings."""

    enabled: bool = True
    ttl: float = Field(600.0, ge=0, description="Seconds before a cached response is stale")


class MixingPolicy(_PolicyModel):
    """Mixing strategy and source order for ``source-priority``."""

    strategy: MixingStrategy = MixingStrategy.ROUND_ROBIN
    source_priority: Tuple[Source, ...] = (Source.LOCAL, Source.EXTERNAL)

    @field_validator("source_priority")
    @classmethod
    def validate_priority(cls, v: Tuple[Source, ...]) -> Tuple[Source, ...]:
        if not v:
            raise ValueError("source_priority must name at least one source")
        if len(set(v)) != len(v):
            raise ValueError("source_priority must not repeat a source")
        return v


class AggregationConfig(_PolicyModel):
    """Runtime aggregation policy.

    Instances are immutable. Updates go through :meth:`merged`, which builds
    and validates a complete new object so readers never see a half-applied
    change.
    """

    sources: SourceToggles = Field(default_factory=SourceToggles)
    limits: SourceLimits = Field(default_factory=SourceLimits)
    caching: CachingPolicy = Field(default_factory=CachingPolicy)
    mixing: MixingPolicy = Field(default_factory=MixingPolicy)

    def enabled_sources(self) -> List[Source]:
        """Sources switched on, local first."""
        enabled = []
        if self.sources.local:
            enabled.append(Source.LOCAL)
        if self.sources.external:
            enabled.append(Source.EXTERNAL)
        return enabled

    def is_enabled(self, source: Source) -> bool:
        return source in self.enabled_sources()

    def merged(self, partial: Union[Mapping[str, Any], "AggregationConfig"]) -> "AggregationConfig":
        """Return a new config with ``partial`` deep-merged over this one.

        Args:
            partial: Nested mapping of fields to override, or a complete config

        Returns:
            Validated new configuration

        Raises:
            ConfigurationError: If the merged result is invalid
        """
        if isinstance(partial, AggregationConfig):
            return partial
        if not isinstance(partial, Mapping):
            raise ConfigurationError(
                f"Config update must be a mapping, got {type(partial).__name__}"
            )

        data = _deep_merge(self.model_dump(mode="json"), partial)
        try:
            return AggregationConfig.model_validate(data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid aggregation config: {e}") from e


def _deep_merge(base: Dict[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


VideoType = Literal["video", "short", "live"]
DurationBucket = Literal["short", "medium", "long"]
UploadWindow = Literal["hour", "today", "week", "month", "year"]
SortOrder = Literal["relevance", "date", "views", "rating"]


@dataclass(frozen=True)
class SearchFilters:
    """Constraints applied to trending and search queries."""

    category: Optional[str] = None
    type: Optional[VideoType] = None
    duration: Optional[DurationBucket] = None
    upload_date: Optional[UploadWindow] = None
    sort_by: Optional[SortOrder] = None
    sources: Optional[Tuple[Source, ...]] = None

    def signature(self) -> Dict[str, Any]:
        """Stable, JSON-serializable form used in cache keys."""
        data = asdict(self)
        if self.sources is not None:
            data["sources"] = sorted(s.value for s in self.sources)
        return {k: v for k, v in data.items() if v is not None}

    def narrows_results(self) -> bool:
        """True when post-fetch filtering can drop or reorder fetched records."""
        return bool(
            self.type or self.duration or self.upload_date or self.sort_by not in (None, "relevance")
        )


@dataclass(frozen=True)
class SourceStats:
    """Per-source candidate statistics in a response."""

    count: int = 0
    has_more: bool = False


@dataclass(frozen=True)
class AggregationResponse(Generic[T]):
    """Envelope returned by list operations.

    ``total_count`` is the number of mixed candidates before truncation to
    the requested limit, so it can exceed ``len(data)``.
    """

    data: List[T] = field(default_factory=list)
    sources: Dict[Source, SourceStats] = field(default_factory=dict)
    total_count: int = 0
    has_more: bool = False

    def stats_for(self, source: Source) -> SourceStats:
        return self.sources.get(source, SourceStats())
