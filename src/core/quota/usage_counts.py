"""
Authoritative usage counts computed from live queries.

Shadow counters are never consulted here. Show-scoped resources are counted
across every show the tenant owns, because collaborators create them on the
owner's behalf.
"""

import asyncio
import logging
from typing import Any, List, Sequence

from src.constants import COLLECTION_BOARDS, COLLECTION_SHOWS, OWNER_FIELD_PRECEDENCE, PARENT_SHOW_FIELD
from src.db.base import Condition, DocumentStore, StoredDocument
from src.db.utils import chunked
from .ownership import owner_from_fields, parent_show_id
from .resources import ResourceKind

logger = logging.getLogger(__name__)


def team_size(show_data: dict) -> int:
    """Number of collaborators on a show (`team` map or list)."""
    team: Any = show_data.get("team")
    if isinstance(team, (dict, list)):
        return len(team)
    return 0


class LiveUsageCounter:
    """Counts a tenant's resources straight from the document store."""

    def __init__(self, store: DocumentStore):
        self._store = store

    async def _union_by_owner_fields(self, collection: str, tenant_id: str) -> List[StoredDocument]:
        # Owner field naming is inconsistent across old data: query each field and de-duplicate
        results = await asyncio.gather(*(
            self._store.query(collection, [Condition(field, "==", tenant_id)])
            for field in OWNER_FIELD_PRECEDENCE
        ))
        seen = {}
        for documents in results:
            for document in documents:
                seen.setdefault(document.id, document)
        return [seen[doc_id] for doc_id in sorted(seen)]

    async def tenant_shows(self, tenant_id: str) -> List[StoredDocument]:
        """Shows owned by the tenant under any owner field."""
        return await self._union_by_owner_fields(COLLECTION_SHOWS, tenant_id)

    async def tenant_show_ids(self, tenant_id: str) -> List[str]:
        return [show.id for show in await self.tenant_shows(tenant_id)]

    async def count_in_shows(self, collection: str, show_ids: Sequence[str]) -> int:
        """Count documents of `collection` whose show is one of `show_ids`."""
        total = 0
        for chunk in chunked(list(show_ids)):
            total += await self._store.count(
                collection, [Condition(PARENT_SHOW_FIELD, "in", chunk)]
            )
        return total

    async def count_unscoped_boards(self, tenant_id: str) -> int:
        """Legacy boards without a show, owned directly by the tenant."""
        boards = await self._union_by_owner_fields(COLLECTION_BOARDS, tenant_id)
        count = 0
        for board in boards:
            if parent_show_id(board.data) is not None:
                continue
            owner = owner_from_fields(board.data)
            if owner is not None and owner[1] == tenant_id:
                count += 1
        return count

    async def count(self, kind: ResourceKind, tenant_id: str) -> int:
        """
        Current number of resources of `kind` counted against the tenant.

        For collaborators the total team size across the tenant's shows is
        returned.
        """
        if kind == ResourceKind.SHOW:
            return len(await self.tenant_show_ids(tenant_id))

        if kind == ResourceKind.INVITATION:
            shows = await self.tenant_shows(tenant_id)
            return sum(team_size(show.data) for show in shows)

        show_ids = await self.tenant_show_ids(tenant_id)
        total = await self.count_in_shows(kind.collection, show_ids)
        if kind == ResourceKind.BOARD:
            total += await self.count_unscoped_boards(tenant_id)
        logger.debug(f"Live {kind.value} count for {tenant_id}: {total} across {len(show_ids)} shows")
        return total
