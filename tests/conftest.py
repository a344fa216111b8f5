"""Shared test fixtures and configuration."""

import os
from datetime import datetime, timezone
from typing import Dict, List, Optional
from unittest.mock import MagicMock, patch

import pytest

from src.storage.base import StorageBackend, StorageObjectDescriptor

BUCKET = "test-bucket"


# =============================================================================
# Environment Variable Fixtures
# =============================================================================

@pytest.fixture
def mock_gcs_env(monkeypatch):
    """Set up mock storage environment variables."""
    monkeypatch.setenv("STORAGE_BUCKET", BUCKET)
    monkeypatch.setenv("STORAGE_PREFIX", "")


@pytest.fixture
def clean_env(monkeypatch):
    """Clear storage and store environment variables."""
    for key in (
        "STORAGE_BUCKET",
        "STORAGE_PREFIX",
        "DOCUMENT_STORE_BACKEND",
        "FIRESTORE_PROJECT",
        "FIRESTORE_DATABASE",
        "API_KEY_REQUIRED",
        "API_KEY",
    ):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def memory_backend_env(monkeypatch):
    """Select the in-memory document store for singleton factories."""
    monkeypatch.setenv("DOCUMENT_STORE_BACKEND", "memory")


# =============================================================================
# Singleton Reset
# =============================================================================

def _reset_singletons():
    from src.core.quota.service import reset_quota_services
    from src.db.config import reset_document_store
    from src.db.firestore import reset_firestore_clients
    from src.maintenance.config import reset_maintenance_config
    from src.maintenance.service import reset_maintenance_service
    from src.storage.config import reset_storage

    reset_storage()
    reset_document_store()
    reset_firestore_clients()
    reset_maintenance_config()
    reset_maintenance_service()
    reset_quota_services()


@pytest.fixture(autouse=True)
def reset_service_singletons():
    """Reset config, store and service singletons before and after each test."""
    _reset_singletons()
    yield
    _reset_singletons()


# =============================================================================
# Document Store Fixtures
# =============================================================================

@pytest.fixture
def memory_store():
    """Empty in-memory document store."""
    from src.db.memory import MemoryDocumentStore
    return MemoryDocumentStore()


@pytest.fixture
def maintenance_config():
    """Default maintenance settings."""
    from src.maintenance.config import MaintenanceConfig
    return MaintenanceConfig()


@pytest.fixture
def seed_profile(memory_store):
    """Write a user profile into `memory_store`."""
    def _seed(uid: str, plan: str = "free", status: str = "inactive", **extra):
        return memory_store.set_document(
            "userProfiles", uid, {"plan": plan, "subscriptionStatus": status, **extra}
        )
    return _seed


@pytest.fixture
def seed_admin(memory_store):
    """Write an administrator profile into `memory_store`."""
    def _seed(uid: str = "admin-1"):
        return memory_store.set_document("userProfiles", uid, {"groups": {"system-admin": True}})
    return _seed


# =============================================================================
# Storage Fixtures
# =============================================================================

class FakeStorage(StorageBackend):
    """In-memory blob store recording deletions."""

    def __init__(self, objects: Optional[List[StorageObjectDescriptor]] = None, bucket_name: str = BUCKET):
        self.bucket_name = bucket_name
        self.objects: Dict[str, StorageObjectDescriptor] = {
            obj.name: obj for obj in (objects or [])
        }
        self.deleted: List[str] = []
        self.exists_calls: List[str] = []

    def add(self, name: str, size: int = 100, time_created: Optional[datetime] = None):
        self.objects[name] = StorageObjectDescriptor(
            name=name,
            size=size,
            time_created=time_created or datetime(2024, 1, 1, tzinfo=timezone.utc),
        )

    async def list_objects(self, max_results: int) -> List[StorageObjectDescriptor]:
        return list(self.objects.values())[:max_results]

    async def exists(self, key: str) -> bool:
        self.exists_calls.append(key)
        return key in self.objects

    async def delete(self, key: str) -> bool:
        if key not in self.objects:
            return False
        del self.objects[key]
        self.deleted.append(key)
        return True

    def get_uri(self, key: str) -> str:
        return f"gs://{self.bucket_name}/{key}"


@pytest.fixture
def fake_storage():
    return FakeStorage()


# =============================================================================
# GCS Mock Fixtures
# =============================================================================

@pytest.fixture
def mock_blob():
    """Create a mock GCS blob."""
    blob = MagicMock()
    blob.name = "props/p1/photo.jpg"
    blob.exists.return_value = True
    blob.delete = MagicMock()
    return blob


@pytest.fixture
def mock_bucket(mock_blob):
    """Create a mock GCS bucket."""
    bucket = MagicMock()
    bucket.blob.return_value = mock_blob
    return bucket


@pytest.fixture
def mock_gcs_client(mock_bucket):
    """Create a mock GCS client."""
    client = MagicMock()
    client.bucket.return_value = mock_bucket
    client.list_blobs.return_value = []
    return client


@pytest.fixture
def mock_storage_client(mock_gcs_client):
    """Patch google.cloud.storage.Client and reset the singleton."""
    import src.storage.gcs as gcs_module
    gcs_module._gcs_client = None

    with patch("src.storage.gcs.storage.Client", return_value=mock_gcs_client):
        yield mock_gcs_client

    gcs_module._gcs_client = None


@pytest.fixture
def gcs_storage(mock_storage_client, mock_bucket, mock_gcs_env):
    """Create a GCSStorage instance with mocked client."""
    from src.storage.gcs import GCSStorage
    storage = GCSStorage(bucket_name=BUCKET, prefix="")
    storage._bucket = mock_bucket
    storage._client = mock_storage_client
    return storage


# =============================================================================
# Integration Test Markers
# =============================================================================

def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless RUN_INTEGRATION_TESTS is set."""
    if not os.getenv("RUN_INTEGRATION_TESTS"):
        skip_integration = pytest.mark.skip(
            reason="Set RUN_INTEGRATION_TESTS=1 to run integration tests"
        )
        for item in items:
            if "integration" in item.keywords:
                item.add_marker(skip_integration)
