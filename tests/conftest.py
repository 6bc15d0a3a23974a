"""Pytest configuration and shared fixtures"""

import os

import pytest

from vidmeta.testing import FakeClock


@pytest.fixture(autouse=True)
def reset_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Reset environment variables before each test"""
    # Clear any VIDMETA_ prefixed environment variables
    for key in list(os.environ.keys()):
        if key.startswith("VIDMETA_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def clock() -> FakeClock:
    """Manually advanced clock for cache expiry tests"""
    return FakeClock()
