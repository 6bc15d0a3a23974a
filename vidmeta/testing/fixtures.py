"""Sample external platform payloads.

Realistic resource shapes as returned by the external video platform API,
for tests and local experimentation without network access.
"""

import copy
from typing import Any, Dict, List, Optional

# Regular upload with full statistics
NATURE_VIDEO: Dict[str, Any] = {
    "kind": "youtube#video",
    "id": "dQw4w9WgXcQ",
    "snippet": {
        "publishedAt": "2024-01-15T10:30:00Z",
        "channelId": "UCX6OQ3DkcsbYNE6H8uQQuVA",
        "title": "Amazing Nature Documentary: Wildlife in 4K",
        "description": "Ibex, marmots and golden eagles in the Swiss Alps.",
        "thumbnails": {
            "default": {"url": "https://i.ytimg.com/vi/dQw4w9WgXcQ/default.jpg"},
            "medium": {"url": "https://i.ytimg.com/vi/dQw4w9WgXcQ/mqdefault.jpg"},
            "high": {"url": "https://i.ytimg.com/vi/dQw4w9WgXcQ/hqdefault.jpg"},
        },
        "channelTitle": "Alpine Films",
        "tags": ["nature", "wildlife", "4k"],
        "categoryId": "19",
        "liveBroadcastContent": "none",
        "defaultLanguage": "en",
    },
    "contentDetails": {"duration": "PT5M30S", "definition": "hd", "caption": "true"},
    "statistics": {
        "viewCount": "1200000",
        "likeCount": "48000",
        "commentCount": "2100",
    },
    "status": {"privacyStatus": "public", "license": "youtube"},
}

# Vertical short under one minute
SHORT_VIDEO: Dict[str, Any] = {
    "kind": "youtube#video",
    "id": "shortAbc123",
    "snippet": {
        "publishedAt": "2024-06-10T08:15:00Z",
        "channelId": "UCX6OQ3DkcsbYNE6H8uQQuVA",
        "title": "Marmot Says Hello #shorts",
        "description": "",
        "thumbnails": {"default": {"url": "https://i.ytimg.com/vi/shortAbc123/default.jpg"}},
        "channelTitle": "Alpine Films",
        "categoryId": "15",
        "liveBroadcastContent": "none",
    },
    "contentDetails": {"duration": "PT45S", "definition": "hd", "caption": "false"},
    "statistics": {"viewCount": "3400000", "likeCount": "210000", "commentCount": "4300"},
    "status": {"privacyStatus": "public", "license": "youtube"},
}

# Ongoing live broadcast
LIVE_VIDEO: Dict[str, Any] = {
    "kind": "youtube#video",
    "id": "liveXyz7890",
    "snippet": {
        "publishedAt": "2024-07-06T14:00:00Z",
        "channelId": "UCaBcDeFgHiJkLmNoPqRsTuV",
        "title": "Summer Finals Day 2",
        "description": "Live coverage.",
        "thumbnails": {"medium": {"url": "https://i.ytimg.com/vi/liveXyz7890/mqdefault.jpg"}},
        "channelTitle": "Arena TV",
        "categoryId": "20",
        "liveBroadcastContent": "live",
    },
    "contentDetails": {"duration": "P0D", "definition": "hd", "caption": "false"},
    "statistics": {"viewCount": "45000", "likeCount": "3900"},
    "liveStreamingDetails": {"actualStartTime": "2024-07-06T14:00:00Z"},
    "status": {"privacyStatus": "public", "license": "youtube"},
}

NATURE_CHANNEL: Dict[str, Any] = {
    "kind": "youtube#channel",
    "id": "UCX6OQ3DkcsbYNE6H8uQQuVA",
    "snippet": {
        "title": "Alpine Films",
        "description": "Mountains, wildlife and weather.",
        "publishedAt": "2012-05-01T00:00:00Z",
        "country": "CH",
        "thumbnails": {
            "default": {"url": "https://yt3.ggpht.com/alpine=s88"},
            "medium": {"url": "https://yt3.ggpht.com/alpine=s240"},
        },
    },
    "statistics": {"viewCount": "98000000", "subscriberCount": "2500000", "videoCount": "412"},
    "brandingSettings": {"image": {"bannerExternalUrl": "https://yt3.ggpht.com/alpine-banner"}},
}

DEMO_VIDEOS: Dict[str, Dict[str, Any]] = {
    NATURE_VIDEO["id"]: NATURE_VIDEO,
    SHORT_VIDEO["id"]: SHORT_VIDEO,
    LIVE_VIDEO["id"]: LIVE_VIDEO,
}

DEMO_CHANNELS: Dict[str, Dict[str, Any]] = {
    NATURE_CHANNEL["id"]: NATURE_CHANNEL,
}


def get_demo_video(video_id: str) -> Optional[Dict[str, Any]]:
    """Get a copy of a demo video resource by ID."""
    video = DEMO_VIDEOS.get(video_id)
    return copy.deepcopy(video) if video is not None else None


def get_demo_channel(channel_id: str) -> Optional[Dict[str, Any]]:
    """Get a copy of a demo channel resource by ID."""
    channel = DEMO_CHANNELS.get(channel_id)
    return copy.deepcopy(channel) if channel is not None else None


def search_hit(video_id: str) -> Dict[str, Any]:
    """A ``search`` endpoint item pointing at a video."""
    return {"kind": "youtube#searchResult", "id": {"kind": "youtube#video", "videoId": video_id}}


def list_response(items: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Wrap resources in a list response envelope."""
    return {"kind": "youtube#listResponse", "items": items, "pageInfo": {"totalResults": len(items)}}
