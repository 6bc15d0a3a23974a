"""Tests for application assembly and lifespan."""

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from vidmeta.core.config import Config
from vidmeta.main import REQUEST_ID_HEADER, build_source_manager, create_app
from vidmeta.models.video import Source


@pytest.fixture
def client(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Client running the full lifespan without a config file or API key."""
    monkeypatch.chdir(tmp_path)
    with TestClient(create_app()) as client:
        yield client


class TestRequestId:
    """Test request ID propagation."""

    def test_generated_when_missing(self, client: TestClient) -> None:
        response = client.get("/health/live")

        assert response.status_code == 200
        assert response.headers[REQUEST_ID_HEADER]

    def test_echoed_when_provided(self, client: TestClient) -> None:
        response = client.get("/health/live", headers={REQUEST_ID_HEADER: "req-123"})

        assert response.headers[REQUEST_ID_HEADER] == "req-123"


class TestLifespan:
    """Test the application wired with default configuration."""

    def test_trending_served_from_local_catalog(self, client: TestClient) -> None:
        response = client.get("/api/v1/videos/trending", params={"limit": 3})

        assert response.status_code == 200
        data = response.json()
        assert len(data["data"]) == 3
        assert all(v["source"] == "local" for v in data["data"])
        assert data["sources"]["external"] == {"count": 0, "has_more": False}

    def test_health_degraded_without_api_key(self, client: TestClient) -> None:
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "degraded"
        assert data["components"]["external"]["details"]["reason"] == "api key not configured"

    def test_admin_config_seeded(self, client: TestClient) -> None:
        response = client.get("/api/v1/admin/config")

        assert response.json()["limits"]["total"] == 50

    def test_metrics_exposed(self, client: TestClient) -> None:
        client.get("/health/live")

        response = client.get("/metrics")

        assert response.status_code == 200
        assert "http_requests_total" in response.text


class TestBuildSourceManager:
    """Test adapter registration from process configuration."""

    def test_external_disabled_without_key(self) -> None:
        manager = build_source_manager(Config())

        assert manager.is_enabled(Source.LOCAL)
        assert not manager.is_enabled(Source.EXTERNAL)
        assert manager.get_adapter(Source.EXTERNAL) is not None

    def test_external_enabled_with_key(self) -> None:
        config = Config()
        config.sources.external.api_key = "test-key"

        manager = build_source_manager(config)

        assert manager.is_enabled(Source.EXTERNAL)

    def test_local_disabled_by_config(self) -> None:
        config = Config()
        config.sources.local.enabled = False

        manager = build_source_manager(config)

        assert not manager.is_enabled(Source.LOCAL)
