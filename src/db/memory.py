"""In-process document store.

Mirrors the Firestore backend's semantics closely enough for local runs and
tests: dotted field paths, filters that never match missing fields or
mismatched types, the 500-write batch ceiling and idempotent counter markers.
"""

import copy
import logging
import operator
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, AsyncIterator, Callable, Dict, List, Optional, Sequence, Tuple

from src.constants import (
    COLLECTION_COUNTER_EVENTS,
    COLLECTION_COUNTER_OWNERS,
    COUNTER_EVENT_TTL_DAYS,
)
from .base import _MISSING, Condition, DocumentStore, StoredDocument, WriteBatch, get_field

logger = logging.getLogger(__name__)


def _in(value: Any, candidates: Any) -> bool:
    return value in candidates


def _array_contains(value: Any, candidate: Any) -> bool:
    return isinstance(value, list) and candidate in value


_OPERATORS: Dict[str, Callable[[Any, Any], bool]] = {
    "==": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
    "in": _in,
    "array_contains": _array_contains,
}

_ORDERING_OPS = {"<", "<=", ">", ">="}


def matches(data: Dict[str, Any], condition: Condition) -> bool:
    """Evaluate a condition against document data."""
    compare = _OPERATORS.get(condition.op)
    if compare is None:
        raise ValueError(f"Unsupported filter operator: {condition.op}")

    value = get_field(data, condition.field, _MISSING)
    if value is _MISSING:
        return False
    # bool is an int subclass; ordering filters never mix them
    if condition.op in _ORDERING_OPS and isinstance(value, bool) != isinstance(condition.value, bool):
        return False
    try:
        return bool(compare(value, condition.value))
    except TypeError:
        return False


class MemoryWriteBatch(WriteBatch):
    """Batch that applies its staged deletes on commit."""

    def __init__(self, store: "MemoryDocumentStore"):
        self._store = store
        self._deletes: List[Tuple[str, str]] = []
        self.committed = False

    def delete(self, collection: str, doc_id: str) -> None:
        if len(self._deletes) >= self.max_operations:
            raise ValueError(
                f"Atomic batch cannot hold more than {self.max_operations} operations"
            )
        self._deletes.append((collection, doc_id))

    async def commit(self) -> None:
        if self.committed:
            raise RuntimeError("Batch already committed")
        for collection, doc_id in self._deletes:
            self._store._collections.get(collection, {}).pop(doc_id, None)
        self.committed = True
        self._store.commit_count += 1

    def __len__(self) -> int:
        return len(self._deletes)


class MemoryDocumentStore(DocumentStore):
    """Dictionary-backed document store."""

    def __init__(self):
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self.commit_count = 0

    # -------------------------------------------------------------------------
    # Seeding helpers
    # -------------------------------------------------------------------------

    def set_document(self, collection: str, doc_id: str, data: Dict[str, Any]) -> StoredDocument:
        """Create or overwrite a document."""
        self._collections.setdefault(collection, {})[doc_id] = copy.deepcopy(data)
        return StoredDocument(collection=collection, id=doc_id, data=copy.deepcopy(data))

    def add_document(self, collection: str, data: Dict[str, Any]) -> StoredDocument:
        """Create a document with a generated id."""
        return self.set_document(collection, uuid.uuid4().hex[:20], data)

    def documents(self, collection: str) -> Dict[str, Dict[str, Any]]:
        """Copy of every document in a collection, keyed by id."""
        return copy.deepcopy(self._collections.get(collection, {}))

    # -------------------------------------------------------------------------
    # DocumentStore interface
    # -------------------------------------------------------------------------

    async def get(self, collection: str, doc_id: str) -> Optional[StoredDocument]:
        data = self._collections.get(collection, {}).get(doc_id)
        if data is None:
            return None
        return StoredDocument(collection=collection, id=doc_id, data=copy.deepcopy(data))

    def _select(
        self,
        collection: str,
        conditions: Sequence[Condition],
    ) -> List[StoredDocument]:
        selected = []
        for doc_id, data in self._collections.get(collection, {}).items():
            if all(matches(data, condition) for condition in conditions):
                selected.append(
                    StoredDocument(collection=collection, id=doc_id, data=copy.deepcopy(data))
                )
        return selected

    async def query(
        self,
        collection: str,
        conditions: Sequence[Condition] = (),
        limit: Optional[int] = None,
    ) -> List[StoredDocument]:
        selected = self._select(collection, conditions)
        if limit is not None:
            selected = selected[:limit]
        return selected

    async def stream(self, collection: str) -> AsyncIterator[StoredDocument]:
        for document in self._select(collection, ()):
            yield document

    async def count(self, collection: str, conditions: Sequence[Condition] = ()) -> int:
        return len(self._select(collection, conditions))

    async def delete(self, collection: str, doc_id: str) -> None:
        self._collections.get(collection, {}).pop(doc_id, None)

    def batch(self) -> WriteBatch:
        return MemoryWriteBatch(self)

    async def apply_counter_delta(
        self,
        collection: str,
        doc_id: str,
        delta: int,
        event_id: str,
        owner_key: Optional[str] = None,
    ) -> bool:
        markers = self._collections.setdefault(COLLECTION_COUNTER_EVENTS, {})
        marker_id = event_id.replace("/", "_")
        if marker_id in markers:
            logger.info(f"Counter event {event_id} already applied to {collection}/{doc_id}")
            return False

        now = datetime.now(timezone.utc)
        markers[marker_id] = {
            "counter": f"{collection}/{doc_id}",
            "delta": delta,
            "appliedAt": now,
            "expireAt": now + timedelta(days=COUNTER_EVENT_TTL_DAYS),
        }
        counter = self._collections.setdefault(collection, {}).setdefault(doc_id, {})
        counter["count"] = counter.get("count", 0) + delta
        counter["lastUpdated"] = now

        if owner_key is not None:
            owners = self._collections.setdefault(COLLECTION_COUNTER_OWNERS, {})
            if delta > 0:
                owners[owner_key] = {"tenantId": doc_id, "counter": collection, "recordedAt": now}
            else:
                owners.pop(owner_key, None)
        return True
