"""Tests for optional API key enforcement."""

import pytest
from fastapi.testclient import TestClient

from src.api.app import create_app
from src.api.dependencies import get_limits_service_dep
from src.core.quota.service import LimitsService


@pytest.fixture
def client(memory_store, seed_profile, monkeypatch):
    seed_profile("u1")
    monkeypatch.setenv("API_KEY_REQUIRED", "true")
    monkeypatch.setenv("API_KEY", "secret")
    app = create_app()
    app.dependency_overrides[get_limits_service_dep] = lambda: LimitsService(memory_store)
    return TestClient(app)


def check(client, **headers):
    return client.post(
        "/api/v1/limits/check",
        json={"resourceType": "shows"},
        headers={"X-User-ID": "u1", **headers},
    )


class TestApiKey:
    def test_missing_key(self, client):
        response = check(client)

        assert response.status_code == 401
        assert response.json()["error"] == "API key required. Provide X-API-Key header."

    def test_wrong_key(self, client):
        response = check(client, **{"X-API-Key": "nope"})

        assert response.status_code == 403
        assert response.json()["error"] == "Invalid API key"

    def test_valid_key(self, client):
        assert check(client, **{"X-API-Key": "secret"}).status_code == 200
