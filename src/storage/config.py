"""Storage configuration and factory."""

import os
import logging
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from .base import StorageBackend

logger = logging.getLogger(__name__)


class StorageConfig(BaseModel):
    """Storage configuration from environment variables."""

    bucket: str = Field(
        default_factory=lambda: os.getenv("STORAGE_BUCKET", ""),
        description="Bucket holding user uploads (prop images, avatars, feedback attachments)",
    )

    prefix: str = Field(
        default_factory=lambda: os.getenv("STORAGE_PREFIX", ""),
        description="Listing prefix within the bucket (empty scans the whole bucket)",
    )

    @field_validator("bucket")
    @classmethod
    def validate_bucket(cls, v: str) -> str:
        if not v:
            raise ValueError("STORAGE_BUCKET must be set")
        return v


# Global storage instance (singleton)
_storage: Optional[StorageBackend] = None
_config: Optional[StorageConfig] = None


def get_storage() -> StorageBackend:
    """
    Get or create the storage backend singleton.

    Returns:
        StorageBackend: Configured GCS storage instance
    """
    global _storage, _config

    if _storage is None:
        from .gcs import GCSStorage

        _config = StorageConfig()

        _storage = GCSStorage(
            bucket_name=_config.bucket,
            prefix=_config.prefix,
        )
        logger.info(f"Storage initialized: gs://{_config.bucket}/{_config.prefix}")

    return _storage


def get_storage_config() -> StorageConfig:
    """Get storage configuration."""
    global _config
    if _config is None:
        _config = StorageConfig()
    return _config


def reset_storage() -> None:
    """Reset storage singleton (for testing)."""
    global _storage, _config
    _storage = None
    _config = None
