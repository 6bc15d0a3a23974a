"""Strategies for merging normalized result lists from several sources."""

from typing import Callable, Dict, Iterable, List, Sequence

from vidmeta.models.aggregation import MixingStrategy
from vidmeta.models.video import Source, UnifiedVideoMetadata

VideoList = Sequence[UnifiedVideoMetadata]


class _Collector:
    """Accumulates videos up to a limit, keeping the first occurrence of an ID."""

    def __init__(self, limit: int) -> None:
        self.limit = max(limit, 0)
        self.items: List[UnifiedVideoMetadata] = []
        self._seen: set = set()

    @property
    def full(self) -> bool:
        return len(self.items) >= self.limit

    def add(self, video: UnifiedVideoMetadata) -> None:
        if self.full or video.id in self._seen:
            return
        self._seen.add(video.id)
        self.items.append(video)

    def extend(self, videos: Iterable[UnifiedVideoMetadata]) -> None:
        for video in videos:
            if self.full:
                break
            self.add(video)


def round_robin(local: VideoList, external: VideoList, limit: int) -> List[UnifiedVideoMetadata]:
    """Interleave element by element, local first."""
    collector = _Collector(limit)
    for index in range(max(len(local), len(external))):
        if collector.full:
            break
        if index < len(local):
            collector.add(local[index])
        if index < len(external):
            collector.add(external[index])
    return collector.items


def source_priority(
    results: Dict[Source, VideoList],
    priority: Sequence[Source],
    limit: int,
) -> List[UnifiedVideoMetadata]:
    """Fill from each source in priority order before consuming the next.

    Sources missing from ``priority`` are consumed last in local, external
    order so their candidates are not silently lost.
    """
    order = list(priority) + [s for s in (Source.LOCAL, Source.EXTERNAL) if s not in priority]
    collector = _Collector(limit)
    for source in order:
        collector.extend(results.get(source, ()))
        if collector.full:
            break
    return collector.items


def relevance(local: VideoList, external: VideoList, limit: int) -> List[UnifiedVideoMetadata]:
    """Sort all candidates by engagement score, descending.

    ``sorted`` is stable, so equal scores keep their input order.
    """
    ranked = sorted([*local, *external], key=lambda v: v.relevance_score, reverse=True)
    collector = _Collector(limit)
    collector.extend(ranked)
    return collector.items


def mix(
    strategy: MixingStrategy,
    results: Dict[Source, VideoList],
    limit: int,
    priority: Sequence[Source] = (Source.LOCAL, Source.EXTERNAL),
) -> List[UnifiedVideoMetadata]:
    """
    Merge per-source results with a strategy.

    Args:
        strategy: Mixing strategy
        results: Normalized videos keyed by source
        limit: Maximum number of videos returned
        priority: Source order for ``source-priority``

    Returns:
        Merged list of at most ``limit`` videos without duplicate IDs
    """
    local = results.get(Source.LOCAL, ())
    external = results.get(Source.EXTERNAL, ())

    if strategy is MixingStrategy.SOURCE_PRIORITY:
        return source_priority(results, priority, limit)

    strategies: Dict[MixingStrategy, Callable[[VideoList, VideoList, int], List]] = {
        MixingStrategy.ROUND_ROBIN: round_robin,
        MixingStrategy.RELEVANCE: relevance,
    }
    return strategies.get(strategy, round_robin)(local, external, limit)
