"""Unit tests for storage configuration."""

import pytest


class TestStorageConfig:
    """Tests for StorageConfig."""

    def test_reads_environment(self, mock_gcs_env, monkeypatch):
        from src.storage.config import StorageConfig

        monkeypatch.setenv("STORAGE_PREFIX", "uploads")
        config = StorageConfig()

        assert config.bucket == "test-bucket"
        assert config.prefix == "uploads"

    def test_bucket_required(self, clean_env):
        from src.storage.config import StorageConfig

        with pytest.raises(ValueError, match="STORAGE_BUCKET"):
            StorageConfig()


class TestGetStorage:
    """Tests for the storage factory."""

    def test_returns_singleton(self, mock_storage_client, mock_gcs_env):
        from src.storage.config import get_storage
        from src.storage.gcs import GCSStorage

        storage = get_storage()

        assert isinstance(storage, GCSStorage)
        assert storage.bucket_name == "test-bucket"
        assert get_storage() is storage

    def test_reset(self, mock_storage_client, mock_gcs_env):
        from src.storage.config import get_storage, reset_storage

        first = get_storage()
        reset_storage()
        assert get_storage() is not first
