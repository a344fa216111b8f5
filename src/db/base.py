"""Abstract base classes for document store backends."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence

from src.constants import STORE_MAX_BATCH_WRITES

_MISSING = object()


def get_field(data: Dict[str, Any], path: str, default: Any = None) -> Any:
    """
    Read a dotted field path from document data.

    Example:
        >>> get_field({"delivery": {"state": "failed"}}, "delivery.state")
        'failed'
    """
    current: Any = data
    for part in path.split("."):
        if not isinstance(current, dict):
            return default
        current = current.get(part, _MISSING)
        if current is _MISSING:
            return default
    return current


@dataclass(frozen=True)
class Condition:
    """Single field filter: `field op value` (e.g. `processed == True`)."""

    field: str
    op: str
    value: Any


@dataclass
class StoredDocument:
    """Snapshot of a document read from the store."""

    collection: str
    id: str
    data: Dict[str, Any] = field(default_factory=dict)

    def get(self, path: str, default: Any = None) -> Any:
        return get_field(self.data, path, default)

    @property
    def path(self) -> str:
        return f"{self.collection}/{self.id}"


class WriteBatch(ABC):
    """All-or-nothing group of writes."""

    max_operations = STORE_MAX_BATCH_WRITES

    @abstractmethod
    def delete(self, collection: str, doc_id: str) -> None:
        """Stage a delete."""
        pass

    @abstractmethod
    async def commit(self) -> None:
        """Commit every staged write atomically."""
        pass

    @abstractmethod
    def __len__(self) -> int:
        """Number of staged operations."""
        pass


class DocumentStore(ABC):
    """Abstract document store interface."""

    max_batch_operations = STORE_MAX_BATCH_WRITES

    @abstractmethod
    async def get(self, collection: str, doc_id: str) -> Optional[StoredDocument]:
        """
        Fetch a single document.

        Returns:
            The document, or None if it does not exist
        """
        pass

    @abstractmethod
    async def query(
        self,
        collection: str,
        conditions: Sequence[Condition] = (),
        limit: Optional[int] = None,
    ) -> List[StoredDocument]:
        """
        Return documents matching every condition.

        Args:
            collection: Collection name
            conditions: Filters combined with AND
            limit: Maximum number of documents to return (None for all)
        """
        pass

    @abstractmethod
    def stream(self, collection: str) -> AsyncIterator[StoredDocument]:
        """Iterate over every document of a collection."""
        pass

    @abstractmethod
    async def count(self, collection: str, conditions: Sequence[Condition] = ()) -> int:
        """Server-side count of documents matching every condition."""
        pass

    @abstractmethod
    async def delete(self, collection: str, doc_id: str) -> None:
        """Delete a document. Deleting a missing document is a no-op."""
        pass

    @abstractmethod
    def batch(self) -> WriteBatch:
        """Start a new atomic write batch."""
        pass

    @abstractmethod
    async def apply_counter_delta(
        self,
        collection: str,
        doc_id: str,
        delta: int,
        event_id: str,
        owner_key: Optional[str] = None,
    ) -> bool:
        """
        Atomically add `delta` to `collection/doc_id.count`.

        The increment and a marker keyed by `event_id` are written in one
        atomic commit, so replaying the same event has no effect.

        When `owner_key` is given, the same commit also maintains
        `counterOwners/<owner_key>`: a positive delta records `doc_id` as the
        tenant charged for that resource, a negative delta removes the record.

        Returns:
            True if applied, False if the event was already applied
        """
        pass
