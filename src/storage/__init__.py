"""Object storage for user uploads (GCS)."""

from .base import StorageBackend, StorageObjectDescriptor
from .gcs import GCSStorage
from .config import StorageConfig, get_storage, get_storage_config, reset_storage

__all__ = [
    "StorageBackend",
    "StorageObjectDescriptor",
    "GCSStorage",
    "StorageConfig",
    "get_storage",
    "get_storage_config",
    "reset_storage",
]
