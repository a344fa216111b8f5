"""Abstract base class for storage backends."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional


@dataclass(frozen=True)
class StorageObjectDescriptor:
    """Listed object. Fetched per reconciliation run, never persisted."""

    name: str
    size: int = 0
    time_created: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "size": self.size,
            "timeCreated": self.time_created.isoformat() if self.time_created else None,
        }


class StorageBackend(ABC):
    """Abstract storage backend interface.

    Object keys are full object names within the bucket; the configured
    prefix only narrows listing.
    """

    bucket_name: str

    @abstractmethod
    async def list_objects(self, max_results: int) -> List[StorageObjectDescriptor]:
        """
        List objects under the configured prefix.

        Args:
            max_results: Maximum number of objects to return

        Returns:
            Object descriptors in listing order
        """
        pass

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """
        Check if an object exists.

        Args:
            key: Object key, or a gs:// URI in this bucket

        Returns:
            True if the object exists
        """
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """
        Delete an object.

        Args:
            key: Object key, or a gs:// URI in this bucket

        Returns:
            True if deleted, False if not found
        """
        pass

    @abstractmethod
    def get_uri(self, key: str) -> str:
        """
        Get full URI for an object key.

        Returns:
            Full URI (e.g., gs://bucket/props/p1.jpg)
        """
        pass
