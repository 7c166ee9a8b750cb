"""Tests for health check and service information endpoints."""
from unittest.mock import patch

from epwinsight.exceptions import CacheStorageError


def test_health_check(client):
    """Test health check endpoint returns healthy status."""
    response = client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["cache"] == "available"
    assert "EPWInsight API is running" in data["message"]


def test_health_check_cache_unavailable(client, api_orchestrator):
    """Test health check reports an unreadable cache."""
    with patch.object(
        api_orchestrator.cache.backend, "keys", side_effect=CacheStorageError("disk gone")
    ):
        response = client.get("/health")

    assert response.status_code == 503


def test_root_endpoint(client):
    """Test root endpoint returns API information."""
    response = client.get("/")

    assert response.status_code == 200
    data = response.json()
    assert data["service"] == "EPWInsight API"
    assert data["documentation"] == "/docs"
    assert data["health_check"] == "/health"


def test_api_info_endpoint(client):
    """Test API info endpoint."""
    response = client.get("/api/v1/info")

    assert response.status_code == 200
    data = response.json()
    assert data["endpoints"]["datasets"] == "/api/v1/datasets"
    assert "comfort" in data["analyses"]
    assert "wind_rose" in data["analyses"]


def test_metrics_endpoint(client):
    """Test Prometheus metrics endpoint."""
    client.get("/")
    response = client.get("/metrics")

    assert response.status_code == 200
    assert "epwinsight_api_requests_total" in response.text


def test_response_headers(client):
    """Test custom headers are added to responses."""
    response = client.get("/")

    assert "X-Request-ID" in response.headers
    assert "X-Response-Time" in response.headers
