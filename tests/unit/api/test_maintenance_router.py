"""Tests for the administrative maintenance endpoints."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient
from google.api_core.exceptions import ServiceUnavailable

from src.api.app import create_app
from src.api.dependencies import get_maintenance_service_dep
from src.maintenance.service import MaintenanceService

ADMIN = {"X-User-ID": "admin-1"}


@pytest.fixture
def service(memory_store, maintenance_config, seed_admin, seed_profile, fake_storage):
    seed_admin("admin-1")
    seed_profile("user-1")
    old = datetime.now(timezone.utc) - timedelta(days=60)
    for i in range(3):
        memory_store.set_document("emails", f"e{i}", {"processed": True, "processingAt": old})
    fake_storage.add("uploads/orphan.jpg")
    return MaintenanceService(memory_store, config=maintenance_config, storage_factory=lambda: fake_storage)


@pytest.fixture
def client(service, clean_env):
    app = create_app()
    app.dependency_overrides[get_maintenance_service_dep] = lambda: service
    return TestClient(app)


class TestManualCleanupEndpoint:
    """Tests for POST /api/v1/maintenance/cleanup."""

    def test_dry_run(self, client):
        response = client.post("/api/v1/maintenance/cleanup", json={"collection": "emails"}, headers=ADMIN)

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "message": "Dry run: Would delete 3 documents from emails",
            "wouldDeleteCount": 3,
            "dryRun": True,
        }

    def test_execute(self, client, memory_store):
        response = client.post(
            "/api/v1/maintenance/cleanup",
            json={"collection": "emails", "daysOld": 30, "dryRun": False},
            headers=ADMIN,
        )

        assert response.status_code == 200
        assert response.json()["deletedCount"] == 3
        assert memory_store.documents("emails") == {}

    def test_missing_caller(self, client):
        response = client.post("/api/v1/maintenance/cleanup", json={"collection": "emails"})

        assert response.status_code == 401

    def test_non_admin(self, client):
        response = client.post(
            "/api/v1/maintenance/cleanup", json={"collection": "emails"}, headers={"X-User-ID": "user-1"}
        )

        assert response.status_code == 403
        assert response.json()["error"] == "permission-denied"

    def test_invalid_days_old(self, client):
        response = client.post(
            "/api/v1/maintenance/cleanup",
            json={"collection": "emails", "daysOld": "abc"},
            headers=ADMIN,
        )

        assert response.status_code == 400
        assert response.json()["message"] == "daysOld must be a number between 1 and 365"


class TestHealthEndpoint:
    def test_report(self, client):
        response = client.get("/api/v1/maintenance/health", headers=ADMIN)

        assert response.status_code == 200
        report = response.json()["healthReport"]
        assert report["collections"]["emails"]["oldProcessed"] == 3
        assert report["summary"]["totalCleanupOpportunity"] == 3

    def test_non_admin(self, client):
        response = client.get("/api/v1/maintenance/health", headers={"X-User-ID": "user-1"})

        assert response.status_code == 403


class TestStorageOrphansEndpoint:
    """Tests for POST /api/v1/maintenance/storage/orphans."""

    def test_dry_run(self, client, fake_storage):
        response = client.post("/api/v1/maintenance/storage/orphans", json={}, headers=ADMIN)

        assert response.status_code == 200
        body = response.json()
        assert body["summary"]["orphanedFilesFound"] == 1
        assert body["orphanedFiles"][0]["name"] == "uploads/orphan.jpg"
        assert fake_storage.deleted == []

    def test_invalid_concurrency(self, client):
        response = client.post(
            "/api/v1/maintenance/storage/orphans", json={"concurrency": 0}, headers=ADMIN
        )

        assert response.status_code == 400
        assert response.json()["message"] == "concurrency must be a number between 1 and 50"

    def test_storage_failure(self, client, fake_storage):
        fake_storage.list_objects = AsyncMock(side_effect=ServiceUnavailable("bucket unavailable"))

        response = client.post("/api/v1/maintenance/storage/orphans", json={}, headers=ADMIN)

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "internal"
        assert body["message"].startswith("Storage cleanup failed:")
