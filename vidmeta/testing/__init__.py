"""Testing helpers: sample payloads, an in-memory source adapter and builders."""

from vidmeta.testing.builders import FakeClock, build_aggregator, external_video, local_video
from vidmeta.testing.fake_adapter import StaticSourceAdapter, unavailable
from vidmeta.testing.fixtures import DEMO_CHANNELS, DEMO_VIDEOS, get_demo_channel, get_demo_video

__all__ = [
    "DEMO_CHANNELS",
    "DEMO_VIDEOS",
    "FakeClock",
    "StaticSourceAdapter",
    "build_aggregator",
    "external_video",
    "get_demo_channel",
    "get_demo_video",
    "local_video",
    "unavailable",
]
