"""Identifier resolution for opaque video IDs.

Maps any externally meaningful ID form (prefixed token, watch URL, short link,
embed URL, bare token) to the source that owns it and its canonical ID. Pure
string logic with no network access.
"""

import re
from dataclasses import dataclass
from typing import Optional

import structlog

from vidmeta.models.video import Source

logger = structlog.get_logger(__name__)

# Prefixes the browser attaches to IDs minted from external results
EXTERNAL_PREFIXES = ("external-", "youtube-", "google-search-")

# URL shapes for platform videos
URL_PATTERNS = [
    r"(?:https?://)?(?:www\.)?youtube\.com/watch\?",
    r"(?:https?://)?(?:www\.)?youtube\.com/(?:shorts|embed|v|live)/[\w-]+",
    r"(?:https?://)?(?:www\.)?youtube-nocookie\.com/embed/[\w-]+",
    r"(?:https?://)?youtu\.be/[\w-]+",
    r"(?:https?://)?m\.youtube\.com/watch\?",
]

# Pattern to extract the video token from any accepted URL shape
VIDEO_ID_PATTERN = r"(?:[?&]v=|shorts/|embed/|/v/|live/|youtu\.be/)([\w-]{11})(?![\w-])"

TOKEN_PATTERN = re.compile(r"^[A-Za-z0-9_-]{11}$")

# Channel IDs on the platform are "UC" followed by 22 token characters
CHANNEL_ID_PATTERN = re.compile(r"^UC[A-Za-z0-9_-]{22}$")


@dataclass(frozen=True)
class ResolvedId:
    """Result of resolving an opaque ID."""

    source: Source
    canonical_id: str


def is_platform_url(value: str) -> bool:
    """
    Check if a string looks like a platform video URL.

    Args:
        value: Candidate string

    Returns:
        True if it matches one of the known URL shapes
    """
    if not value:
        return False
    return any(re.match(pattern, value, re.IGNORECASE) for pattern in URL_PATTERNS)


def extract_video_id(url: str) -> Optional[str]:
    """
    Extract the 11-character video token from a platform URL.

    Args:
        url: Watch, short-link, embed or shorts URL

    Returns:
        Video token if found, None otherwise
    """
    if not is_platform_url(url):
        return None

    match = re.search(VIDEO_ID_PATTERN, url)
    if match:
        return match.group(1)

    logger.debug("Could not extract video ID", url=url)
    return None


def is_external_token(value: str) -> bool:
    """Check for a bare 11-character platform token."""
    return bool(TOKEN_PATTERN.match(value))


def is_external_channel_id(value: str) -> bool:
    """Check for a platform channel ID."""
    return bool(CHANNEL_ID_PATTERN.match(value))


def resolve(video_id: str) -> Optional[ResolvedId]:
    """
    Classify an opaque ID and recover its canonical form.

    Rules are tried in order: known prefix, URL shape, bare token, local.
    Prefixed and URL forms are checked before the bare-token heuristic since
    a local ID can coincidentally be 11 characters long.

    Args:
        video_id: Opaque identifier supplied by a caller

    Returns:
        Resolved source and canonical ID, or None for empty input
    """
    if video_id is None:
        return None
    value = video_id.strip()
    if not value:
        return None

    for prefix in EXTERNAL_PREFIXES:
        if value.startswith(prefix):
            remainder = value[len(prefix) :]
            if not remainder:
                return None
            return ResolvedId(Source.EXTERNAL, remainder)

    if is_platform_url(value):
        token = extract_video_id(value)
        if token:
            return ResolvedId(Source.EXTERNAL, token)
        # URL without a recoverable token cannot belong to either source
        return None

    if is_external_token(value):
        return ResolvedId(Source.EXTERNAL, value)

    return ResolvedId(Source.LOCAL, value)
