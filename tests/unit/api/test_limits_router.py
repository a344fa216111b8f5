"""Tests for the subscription limits endpoint."""

import pytest
from fastapi.testclient import TestClient

from src.api.app import create_app
from src.api.dependencies import get_limits_service_dep
from src.core.quota.service import LimitsService


@pytest.fixture
def client(memory_store, seed_profile, seed_admin, clean_env):
    seed_profile("u1", plan="free")
    seed_profile("u2", plan="free")
    seed_admin("admin-1")
    memory_store.set_document("shows", "s1", {"ownerId": "u1"})

    app = create_app()
    app.dependency_overrides[get_limits_service_dep] = lambda: LimitsService(memory_store)
    return TestClient(app)


class TestCheckSubscriptionLimits:
    """Tests for POST /api/v1/limits/check."""

    def test_own_limits_default_to_caller(self, client):
        response = client.post(
            "/api/v1/limits/check",
            json={"resourceType": "shows"},
            headers={"X-User-ID": "u1"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["withinLimit"] is False
        assert data["currentCount"] == 1
        assert data["limit"] == 1
        assert data["message"] == "You have reached your plan's shows limit of 1. Upgrade to create more shows."

    def test_unauthenticated(self, client):
        response = client.post("/api/v1/limits/check", json={"userId": "u1", "resourceType": "shows"})

        assert response.status_code == 401
        assert response.json()["error"] == "unauthenticated"

    def test_unknown_resource_type(self, client):
        response = client.post(
            "/api/v1/limits/check",
            json={"resourceType": "widgets"},
            headers={"X-User-ID": "u1"},
        )

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "invalid-argument"
        assert body["message"] == "Unknown resource type: widgets"

    def test_other_tenant_forbidden(self, client):
        response = client.post(
            "/api/v1/limits/check",
            json={"userId": "u1", "resourceType": "shows"},
            headers={"X-User-ID": "u2"},
        )

        assert response.status_code == 403
        assert response.json()["error"] == "permission-denied"

    def test_admin_may_query_other_tenant(self, client):
        response = client.post(
            "/api/v1/limits/check",
            json={"userId": "u1", "resourceType": "props"},
            headers={"X-User-ID": "admin-1"},
        )

        assert response.status_code == 200
        assert response.json()["currentCount"] == 0
