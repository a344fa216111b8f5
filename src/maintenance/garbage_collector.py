"""
Bulk deletion of documents matching a retention predicate.

One pass reads at most `page_size` matches and deletes them through atomic
batches capped at `max_atomic_ops` writes, leaving headroom below the store's
hard ceiling. Query and commit failures propagate so the scheduler retries the
whole pass; batches already committed stay committed. Deletes are idempotent,
so overlapping or repeated passes only find fewer matches.
"""

import logging
from dataclasses import dataclass
from typing import List, Sequence

from src.db.base import Condition, DocumentStore, StoredDocument

logger = logging.getLogger(__name__)


@dataclass
class CollectResult:
    """Outcome of one collection pass."""
    collection: str
    matched: int = 0
    deleted: int = 0
    commits: int = 0


class BulkGarbageCollector:
    """Deletes matched documents in capped atomic batches."""

    def __init__(self, store: DocumentStore, page_size: int = 500, max_atomic_ops: int = 450):
        """
        Args:
            store: Document store
            page_size: Maximum matches read per pass
            max_atomic_ops: Deletes per commit, strictly below the store ceiling

        Raises:
            ValueError: If the cap is not positive or not below the ceiling
        """
        if max_atomic_ops < 1 or max_atomic_ops >= store.max_batch_operations:
            raise ValueError(
                f"max_atomic_ops must be between 1 and {store.max_batch_operations - 1}, "
                f"got {max_atomic_ops}"
            )
        if page_size < 1:
            raise ValueError("page_size must be positive")
        self._store = store
        self.page_size = page_size
        self.max_atomic_ops = max_atomic_ops

    async def find(self, collection: str, conditions: Sequence[Condition]) -> List[StoredDocument]:
        """Read one page of documents matching the predicate."""
        return await self._store.query(collection, conditions, limit=self.page_size)

    async def delete_documents(
        self,
        collection: str,
        documents: Sequence[StoredDocument],
        unit: str = "documents",
    ) -> CollectResult:
        """Delete `documents`, committing every `max_atomic_ops` staged deletes."""
        result = CollectResult(collection=collection, matched=len(documents))

        batch = self._store.batch()
        staged = 0
        for document in documents:
            batch.delete(collection, document.id)
            staged += 1

            if staged >= self.max_atomic_ops:
                await batch.commit()
                result.commits += 1
                result.deleted += staged
                logger.info(f"Deleted {result.deleted} {unit} so far")
                batch = self._store.batch()
                staged = 0

        if staged > 0:
            await batch.commit()
            result.commits += 1
            result.deleted += staged

        return result

    async def collect(
        self,
        collection: str,
        conditions: Sequence[Condition],
        description: str = "documents",
        unit: str = "documents",
    ) -> CollectResult:
        """
        Run one pass over `collection`.

        Args:
            collection: Collection to clean
            conditions: Retention predicate
            description: Phrase used in log lines (e.g. "old emails")
            unit: Noun used in progress lines (e.g. "emails")

        Returns:
            CollectResult with matched/deleted counts and commits issued
        """
        documents = await self.find(collection, conditions)
        if not documents:
            logger.info(f"No {description} found to clean up")
            return CollectResult(collection=collection)

        logger.info(f"Found {len(documents)} {description} to delete")
        return await self.delete_documents(collection, documents, unit=unit)
