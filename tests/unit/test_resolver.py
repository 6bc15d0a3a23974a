"""Tests for video ID resolution"""

import pytest

from vidmeta.models.video import Source
from vidmeta.services.resolver import (
    ResolvedId,
    extract_video_id,
    is_external_channel_id,
    is_platform_url,
    resolve,
)


class TestResolve:
    """Test classification of opaque IDs"""

    @pytest.mark.parametrize(
        "video_id,expected",
        [
            ("external-dQw4w9WgXcQ", "dQw4w9WgXcQ"),
            ("youtube-dQw4w9WgXcQ", "dQw4w9WgXcQ"),
            ("google-search-dQw4w9WgXcQ", "dQw4w9WgXcQ"),
        ],
    )
    def test_prefixed_ids(self, video_id: str, expected: str) -> None:
        """Test known prefixes resolve to the external source"""
        assert resolve(video_id) == ResolvedId(Source.EXTERNAL, expected)

    @pytest.mark.parametrize(
        "url",
        [
            "https://www.youtube.com/watch?v=dQw4w9WgXcQ",
            "https://www.youtube.com/watch?feature=share&v=dQw4w9WgXcQ",
            "https://youtu.be/dQw4w9WgXcQ",
            "https://www.youtube.com/embed/dQw4w9WgXcQ",
            "https://www.youtube.com/shorts/dQw4w9WgXcQ",
            "https://m.youtube.com/watch?v=dQw4w9WgXcQ",
            "youtube.com/watch?v=dQw4w9WgXcQ",
        ],
    )
    def test_watch_urls(self, url: str) -> None:
        """Test URL shapes resolve to their embedded token"""
        assert resolve(url) == ResolvedId(Source.EXTERNAL, "dQw4w9WgXcQ")

    def test_bare_token(self) -> None:
        """Test a bare 11-character token is external"""
        assert resolve("dQw4w9WgXcQ") == ResolvedId(Source.EXTERNAL, "dQw4w9WgXcQ")

    @pytest.mark.parametrize("video_id", ["local-alps-4k", "42", "video_123456789"])
    def test_local_ids(self, video_id: str) -> None:
        """Test anything else is a local catalog ID"""
        assert resolve(video_id) == ResolvedId(Source.LOCAL, video_id)

    def test_surrounding_whitespace_stripped(self) -> None:
        """Test input is stripped before classification"""
        assert resolve("  local-alps-4k ") == ResolvedId(Source.LOCAL, "local-alps-4k")

    @pytest.mark.parametrize("video_id", ["", "   ", "external-", "https://www.youtube.com/watch?list=PL1"])
    def test_unresolvable(self, video_id: str) -> None:
        """Test empty input, bare prefixes and token-less URLs resolve to nothing"""
        assert resolve(video_id) is None

    def test_resolution_is_deterministic(self) -> None:
        """Test resolving twice gives the same answer"""
        assert resolve("youtube-abcdefghijk") == resolve("youtube-abcdefghijk")


class TestUrlHelpers:
    """Test URL detection and token extraction"""

    def test_is_platform_url(self) -> None:
        assert is_platform_url("https://youtu.be/dQw4w9WgXcQ")
        assert not is_platform_url("https://vimeo.com/123")
        assert not is_platform_url("")

    def test_extract_video_id_non_url(self) -> None:
        """Test non-platform strings yield no token"""
        assert extract_video_id("not a url") is None

    def test_extract_video_id_rejects_long_token(self) -> None:
        """Test a 12-character token is not truncated to 11"""
        assert extract_video_id("https://youtu.be/dQw4w9WgXcQX") is None


class TestChannelIds:
    """Test external channel ID detection"""

    def test_external_channel_id(self) -> None:
        assert is_external_channel_id("UCX6OQ3DkcsbYNE6H8uQQuVA")

    @pytest.mark.parametrize("channel_id", ["channel1", "UCshort", "XX6OQ3DkcsbYNE6H8uQQuVA"])
    def test_local_channel_ids(self, channel_id: str) -> None:
        assert not is_external_channel_id(channel_id)
