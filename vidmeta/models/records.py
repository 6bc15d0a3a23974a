"""Source-native raw records.

Raw payloads are wrapped in one small class per source and entity so the
normalizer can dispatch on the variant instead of sniffing dictionary keys.
They never leave the normalizer boundary.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Union

from vidmeta.models.video import Source


def nested_group(payload: Any, key: str) -> Mapping[str, Any]:
    """Return ``payload[key]`` when it is a mapping, else an empty one."""
    if not isinstance(payload, Mapping):
        return {}
    value = payload.get(key)
    return value if isinstance(value, Mapping) else {}


def _payload_id(payload: Any) -> Optional[str]:
    if not isinstance(payload, Mapping):
        return None
    value = payload.get("id")
    return str(value) if value not in (None, "") else None


@dataclass(frozen=True)
class LocalVideoRecord:
    """Video payload from the local catalog."""

    payload: Dict[str, Any] = field(default_factory=dict)
    source: Source = Source.LOCAL

    @property
    def record_id(self) -> Optional[str]:
        return _payload_id(self.payload)


@dataclass(frozen=True)
class ExternalVideoRecord:
    """Video resource from the external platform API.

    Payload shape: ``{"id", "snippet", "statistics", "contentDetails", "status", ...}``.
    """

    payload: Dict[str, Any] = field(default_factory=dict)
    source: Source = Source.EXTERNAL

    @property
    def record_id(self) -> Optional[str]:
        # search results nest the ID as {"kind": ..., "videoId": ...}
        if isinstance(self.payload, Mapping) and isinstance(self.payload.get("id"), Mapping):
            value = nested_group(self.payload, "id").get("videoId")
            return str(value) if value not in (None, "") else None
        return _payload_id(self.payload)

    @property
    def channel_id(self) -> str:
        return str(nested_group(self.payload, "snippet").get("channelId") or "")


@dataclass(frozen=True)
class LocalChannelRecord:
    """Channel payload from the local catalog."""

    payload: Dict[str, Any] = field(default_factory=dict)
    source: Source = Source.LOCAL

    @property
    def record_id(self) -> Optional[str]:
        return _payload_id(self.payload)


@dataclass(frozen=True)
class ExternalChannelRecord:
    """Channel resource from the external platform API."""

    payload: Dict[str, Any] = field(default_factory=dict)
    source: Source = Source.EXTERNAL

    @property
    def record_id(self) -> Optional[str]:
        return _payload_id(self.payload)


VideoRecord = Union[LocalVideoRecord, ExternalVideoRecord]
ChannelRecord = Union[LocalChannelRecord, ExternalChannelRecord]
RawRecord = Union[VideoRecord, ChannelRecord]
