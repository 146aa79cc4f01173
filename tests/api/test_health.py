"""Tests for health check endpoints."""

from unittest.mock import patch

from fastapi.testclient import TestClient

from app.core.exceptions import StorageTimeoutError
from app.dependencies import get_presence_registry
from app.main import app
from tests.helpers.auth_helper import get_auth_headers


class TestHealthEndpoints:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "service": "sayarti-messaging"}

    def test_root(self, client):
        assert client.get("/").json()["status"] == "healthy"

    def test_liveness(self, client):
        assert client.get("/health/live").json() == {"status": "alive"}

    def test_database_health(self, client):
        response = client.get("/health/database")

        assert response.json() == {"status": "healthy", "database_connected": True}

    def test_realtime_health(self, client):
        response = client.get("/health/realtime")

        assert response.json() == {
            "status": "healthy",
            "registry_started": True,
            "online_users": 0,
        }

    def test_readiness_with_redis_down(self, client):
        """Redis only backs rate limiting, which fails open."""
        response = client.get("/health/ready")

        assert response.status_code == 200
        assert response.json() == {"status": "ready", "redis_connected": False}

    def test_readiness_without_database(self, client):
        with patch("app.api.health.text", side_effect=RuntimeError("db down")):
            response = client.get("/health/ready")

        assert response.status_code == 503

    def test_readiness_without_presence_registry(self, client):
        app.dependency_overrides[get_presence_registry] = lambda: None

        response = client.get("/health/ready")
        realtime = client.get("/health/realtime")

        assert response.status_code == 503
        assert realtime.json()["status"] == "unhealthy"


class TestErrorHandling:
    def test_unhandled_errors_become_500(self, sample_users):
        with patch(
            "app.services.conversation_service.ConversationService.list_conversations",
            side_effect=RuntimeError("boom"),
        ):
            with TestClient(app, raise_server_exceptions=False) as client:
                response = client.get(
                    "/api/v1/messages/conversations",
                    headers=get_auth_headers(sample_users[0].id),
                )

        assert response.status_code == 500
        assert response.json() == {
            "error": {"code": "INTERNAL_ERROR", "message": "Internal server error"}
        }

    def test_storage_timeout_becomes_504(self, client, sample_users):
        with patch(
            "app.api.conversations.run_db_call",
            side_effect=StorageTimeoutError("Storage did not respond within 10 seconds"),
        ):
            response = client.get(
                "/api/v1/messages/unread/count",
                headers=get_auth_headers(sample_users[0].id),
            )

        assert response.status_code == 504
        assert response.json()["error"]["code"] == "STORAGE_TIMEOUT"
