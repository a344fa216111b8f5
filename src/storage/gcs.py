"""Google Cloud Storage backend implementation."""

import asyncio
import logging
import threading
from functools import partial
from typing import List, Optional

from google.cloud import storage

from src.core.executors import get_executors
from google.cloud.exceptions import NotFound
from google.api_core.exceptions import GoogleAPIError

from .base import StorageBackend, StorageObjectDescriptor
from src.utils.storage_paths import build_gcs_uri, is_gcs_path, parse_gcs_uri

logger = logging.getLogger(__name__)

# Module-level singleton for GCS client (thread-safe)
_gcs_client: Optional[storage.Client] = None
_gcs_client_lock = threading.Lock()


def _get_gcs_client() -> storage.Client:
    """Get or create the singleton GCS client (thread-safe)."""
    global _gcs_client
    if _gcs_client is None:
        with _gcs_client_lock:
            if _gcs_client is None:
                _gcs_client = storage.Client()
                logger.info("GCS client initialized (singleton)")
    return _gcs_client


class GCSStorage(StorageBackend):
    """Google Cloud Storage implementation using Application Default Credentials."""

    def __init__(self, bucket_name: str, prefix: str = ""):
        """
        Initialize GCS storage.

        Args:
            bucket_name: GCS bucket name
            prefix: Listing prefix within the bucket (empty for the whole bucket)
        """
        self.bucket_name = bucket_name
        self.prefix = prefix.strip("/")

        # Use singleton client for efficiency
        self._client = _get_gcs_client()
        self._bucket = self._client.bucket(bucket_name)

        logger.info(f"GCS storage initialized: gs://{bucket_name}/{self.prefix}")

    def _blob_name(self, key: str) -> str:
        """Resolve a key or gs:// URI to a blob name in this bucket."""
        if is_gcs_path(key):
            bucket, blob_name = parse_gcs_uri(key)
            if bucket != self.bucket_name:
                raise ValueError(f"{key} is not in bucket {self.bucket_name}")
            return blob_name
        return key

    async def list_objects(self, max_results: int) -> List[StorageObjectDescriptor]:
        """List up to `max_results` blobs under the prefix."""
        prefix = f"{self.prefix}/" if self.prefix else None

        loop = asyncio.get_running_loop()
        try:
            blobs = await loop.run_in_executor(
                get_executors().io_executor,
                partial(
                    list,
                    self._client.list_blobs(
                        self.bucket_name, prefix=prefix, max_results=max_results
                    ),
                ),
            )
        except GoogleAPIError as e:
            logger.error(f"GCS error listing gs://{self.bucket_name}/{self.prefix}: {e}")
            raise

        return [
            StorageObjectDescriptor(
                name=blob.name,
                size=int(blob.size or 0),
                time_created=blob.time_created,
            )
            for blob in blobs
        ]

    async def exists(self, key: str) -> bool:
        """Check if blob exists in GCS."""
        blob_name = self._blob_name(key)
        if not blob_name:
            return False
        blob = self._bucket.blob(blob_name)

        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(get_executors().io_executor, blob.exists)
        except GoogleAPIError as e:
            logger.error(f"GCS error checking existence of {blob_name}: {e}")
            raise

    async def delete(self, key: str) -> bool:
        """Delete blob from GCS."""
        blob_name = self._blob_name(key)
        if not blob_name:
            return False
        blob = self._bucket.blob(blob_name)

        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(get_executors().io_executor, blob.delete)
            logger.info(f"Deleted from GCS: gs://{self.bucket_name}/{blob_name}")
            return True
        except NotFound:
            return False
        except GoogleAPIError as e:
            logger.error(f"GCS error deleting {blob_name}: {e}")
            raise

    def get_uri(self, key: str) -> str:
        """Get GCS URI for an object key."""
        if is_gcs_path(key):
            return key
        return build_gcs_uri(self.bucket_name, key)
