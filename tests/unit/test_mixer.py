"""Tests for result mixing strategies"""

from typing import List

import pytest

from vidmeta.models.aggregation import MixingStrategy
from vidmeta.models.video import Source, UnifiedVideoMetadata
from vidmeta.services.mixer import mix, relevance, round_robin, source_priority


def videos(source: Source, *ids: str, views: int = 0) -> List[UnifiedVideoMetadata]:
    return [UnifiedVideoMetadata(id=i, title=i, source=source, views=views) for i in ids]


def ids(items: List[UnifiedVideoMetadata]) -> List[str]:
    return [v.id for v in items]


LOCAL = videos(Source.LOCAL, "l1", "l2", "l3")
EXTERNAL = videos(Source.EXTERNAL, "e1", "e2")


class TestRoundRobin:
    """Test element-by-element interleaving"""

    def test_interleaves_local_first(self) -> None:
        assert ids(round_robin(LOCAL, EXTERNAL, 10)) == ["l1", "e1", "l2", "e2", "l3"]

    def test_truncates_to_limit(self) -> None:
        assert ids(round_robin(LOCAL, EXTERNAL, 3)) == ["l1", "e1", "l2"]

    def test_one_side_empty(self) -> None:
        assert ids(round_robin([], EXTERNAL, 10)) == ["e1", "e2"]

    def test_duplicate_ids_keep_first(self) -> None:
        """Test a video present in both lists appears once, from its first position"""
        local = videos(Source.LOCAL, "same", "l2")
        external = videos(Source.EXTERNAL, "same", "e2")

        result = round_robin(local, external, 10)

        assert ids(result) == ["same", "l2", "e2"]
        assert result[0].source is Source.LOCAL


class TestSourcePriority:
    """Test filling from sources in priority order"""

    def test_external_first(self) -> None:
        results = {Source.LOCAL: LOCAL, Source.EXTERNAL: EXTERNAL}
        assert ids(source_priority(results, [Source.EXTERNAL, Source.LOCAL], 4)) == [
            "e1",
            "e2",
            "l1",
            "l2",
        ]

    def test_unlisted_source_consumed_last(self) -> None:
        """Test a source missing from the priority list still contributes"""
        results = {Source.LOCAL: LOCAL, Source.EXTERNAL: EXTERNAL}
        assert ids(source_priority(results, [Source.EXTERNAL], 10)) == [
            "e1",
            "e2",
            "l1",
            "l2",
            "l3",
        ]


class TestRelevance:
    """Test engagement ranking"""

    def test_sorted_by_score(self) -> None:
        local = [
            UnifiedVideoMetadata(id="low", title="", source=Source.LOCAL, views=10),
            UnifiedVideoMetadata(id="liked", title="", source=Source.LOCAL, views=10, likes=100),
        ]
        external = [UnifiedVideoMetadata(id="viral", title="", source=Source.EXTERNAL, views=5000)]

        assert ids(relevance(local, external, 10)) == ["viral", "liked", "low"]

    def test_ties_keep_input_order(self) -> None:
        """Test equal scores are stable with local candidates first"""
        local = videos(Source.LOCAL, "l1", "l2", views=100)
        external = videos(Source.EXTERNAL, "e1", views=100)

        assert ids(relevance(local, external, 10)) == ["l1", "l2", "e1"]


class TestMix:
    """Test strategy dispatch"""

    @pytest.mark.parametrize("strategy", list(MixingStrategy))
    def test_limit_zero(self, strategy: MixingStrategy) -> None:
        results = {Source.LOCAL: LOCAL, Source.EXTERNAL: EXTERNAL}
        assert mix(strategy, results, 0) == []

    @pytest.mark.parametrize("strategy", list(MixingStrategy))
    def test_never_exceeds_limit_or_duplicates(self, strategy: MixingStrategy) -> None:
        local = videos(Source.LOCAL, "a", "b", "c")
        external = videos(Source.EXTERNAL, "b", "d")
        result = mix(strategy, {Source.LOCAL: local, Source.EXTERNAL: external}, 3)

        assert len(result) == 3
        assert len(set(ids(result))) == 3

    def test_dispatch_round_robin(self) -> None:
        results = {Source.LOCAL: LOCAL, Source.EXTERNAL: EXTERNAL}
        assert ids(mix(MixingStrategy.ROUND_ROBIN, results, 2)) == ["l1", "e1"]

    def test_dispatch_source_priority(self) -> None:
        results = {Source.LOCAL: LOCAL, Source.EXTERNAL: EXTERNAL}
        assert ids(
            mix(MixingStrategy.SOURCE_PRIORITY, results, 2, (Source.EXTERNAL, Source.LOCAL))
        ) == ["e1", "e2"]

    def test_missing_source_treated_as_empty(self) -> None:
        assert ids(mix(MixingStrategy.ROUND_ROBIN, {Source.LOCAL: LOCAL}, 10)) == ["l1", "l2", "l3"]
