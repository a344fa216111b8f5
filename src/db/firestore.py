"""Cloud Firestore backend implementation.

Uses per-event-loop AsyncClient management: the gRPC channel of an async
client is bound to the loop that created it, and Cloud Functions entry points
run each invocation in a fresh loop.
"""

import asyncio
import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence

from google.api_core.exceptions import AlreadyExists
from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter

from src.constants import (
    COLLECTION_COUNTER_EVENTS,
    COLLECTION_COUNTER_OWNERS,
    COUNTER_EVENT_TTL_DAYS,
)
from .base import Condition, DocumentStore, StoredDocument, WriteBatch
from .utils import with_store_retry

logger = logging.getLogger(__name__)

# Per-loop clients: maps loop_id -> AsyncClient
_clients: Dict[int, firestore.AsyncClient] = {}
_clients_lock = threading.Lock()


def _get_loop_id() -> int:
    """Return the id of the running event loop, or 0 outside a loop."""
    try:
        return id(asyncio.get_running_loop())
    except RuntimeError:
        return 0


def _get_firestore_client(project: Optional[str], database: str) -> firestore.AsyncClient:
    """Get or create the AsyncClient for the current event loop (thread-safe)."""
    loop_id = _get_loop_id()
    client = _clients.get(loop_id)
    if client is None:
        with _clients_lock:
            client = _clients.get(loop_id)
            if client is None:
                client = firestore.AsyncClient(project=project, database=database)
                _clients[loop_id] = client
                logger.info(f"Firestore client initialized for loop {loop_id} (database={database})")
    return client


def reset_firestore_clients() -> None:
    """Drop cached clients (for testing)."""
    with _clients_lock:
        _clients.clear()


class FirestoreWriteBatch(WriteBatch):
    """Atomic batch backed by a Firestore AsyncWriteBatch."""

    def __init__(self, client: firestore.AsyncClient):
        self._client = client
        self._batch = client.batch()
        self._operations = 0

    def delete(self, collection: str, doc_id: str) -> None:
        if self._operations >= self.max_operations:
            raise ValueError(
                f"Atomic batch cannot hold more than {self.max_operations} operations"
            )
        self._batch.delete(self._client.collection(collection).document(doc_id))
        self._operations += 1

    async def commit(self) -> None:
        await self._batch.commit()

    def __len__(self) -> int:
        return self._operations


class FirestoreDocumentStore(DocumentStore):
    """Firestore implementation using Application Default Credentials."""

    def __init__(self, project: Optional[str] = None, database: str = "(default)"):
        """
        Initialize Firestore store.

        Args:
            project: GCP project id (None to infer from the environment)
            database: Firestore database id
        """
        self.project = project
        self.database = database

    @property
    def _client(self) -> firestore.AsyncClient:
        return _get_firestore_client(self.project, self.database)

    def _build_query(
        self,
        collection: str,
        conditions: Sequence[Condition],
        limit: Optional[int],
    ):
        query = self._client.collection(collection)
        for condition in conditions:
            query = query.where(
                filter=FieldFilter(condition.field, condition.op, condition.value)
            )
        if limit is not None:
            query = query.limit(limit)
        return query

    @staticmethod
    def _to_document(collection: str, snapshot: Any) -> StoredDocument:
        return StoredDocument(
            collection=collection,
            id=snapshot.id,
            data=snapshot.to_dict() or {},
        )

    @with_store_retry
    async def get(self, collection: str, doc_id: str) -> Optional[StoredDocument]:
        snapshot = await self._client.collection(collection).document(doc_id).get()
        if not snapshot.exists:
            return None
        return self._to_document(collection, snapshot)

    @with_store_retry
    async def query(
        self,
        collection: str,
        conditions: Sequence[Condition] = (),
        limit: Optional[int] = None,
    ) -> List[StoredDocument]:
        snapshots = await self._build_query(collection, conditions, limit).get()
        return [self._to_document(collection, snapshot) for snapshot in snapshots]

    async def stream(self, collection: str) -> AsyncIterator[StoredDocument]:
        async for snapshot in self._client.collection(collection).stream():
            yield self._to_document(collection, snapshot)

    @with_store_retry
    async def count(self, collection: str, conditions: Sequence[Condition] = ()) -> int:
        aggregation = self._build_query(collection, conditions, None).count(alias="total")
        results = await aggregation.get()
        return int(results[0][0].value)

    async def delete(self, collection: str, doc_id: str) -> None:
        await self._client.collection(collection).document(doc_id).delete()
        logger.debug(f"Deleted document {collection}/{doc_id}")

    def batch(self) -> WriteBatch:
        return FirestoreWriteBatch(self._client)

    async def apply_counter_delta(
        self,
        collection: str,
        doc_id: str,
        delta: int,
        event_id: str,
        owner_key: Optional[str] = None,
    ) -> bool:
        client = self._client
        batch = client.batch()

        marker_ref = client.collection(COLLECTION_COUNTER_EVENTS).document(
            event_id.replace("/", "_")
        )
        batch.create(marker_ref, {
            "counter": f"{collection}/{doc_id}",
            "delta": delta,
            "appliedAt": firestore.SERVER_TIMESTAMP,
            "expireAt": datetime.now(timezone.utc) + timedelta(days=COUNTER_EVENT_TTL_DAYS),
        })
        batch.set(
            client.collection(collection).document(doc_id),
            {
                "count": firestore.Increment(delta),
                "lastUpdated": firestore.SERVER_TIMESTAMP,
            },
            merge=True,
        )
        if owner_key is not None:
            owner_ref = client.collection(COLLECTION_COUNTER_OWNERS).document(owner_key)
            if delta > 0:
                batch.set(owner_ref, {
                    "tenantId": doc_id,
                    "counter": collection,
                    "recordedAt": firestore.SERVER_TIMESTAMP,
                })
            else:
                batch.delete(owner_ref)

        try:
            await batch.commit()
        except AlreadyExists:
            logger.info(f"Counter event {event_id} already applied to {collection}/{doc_id}")
            return False
        return True
