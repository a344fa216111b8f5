"""
Per-tenant shadow usage counters.

Counters are a cache for quick usage display; enforcement never reads them.
Every change is an atomic increment keyed by the triggering event, so
concurrent creates/deletes never lose updates and redelivered events are not
double-counted.

The tenant charged on create is recorded per resource in `counterOwners`.
Deletes decrement that tenant, so a child deleted after its parent show
(cascading deletes) still balances its own increment.
"""

import logging
from typing import Any, Dict, Optional

from src.constants import COLLECTION_COUNTER_OWNERS
from src.db.base import DocumentStore
from .ownership import OwnerFound, OwnershipResolver
from .resources import ResourceKind

logger = logging.getLogger(__name__)


def owner_record_key(kind: ResourceKind, resource_id: str) -> str:
    """Document id of the owner record for one resource."""
    return f"{kind.collection}_{resource_id}"


class ShadowCounterMaintainer:
    """Applies +1/-1 to `<counter collection>/<tenant id>` on create/delete events."""

    def __init__(self, store: DocumentStore, resolver: Optional[OwnershipResolver] = None):
        self._store = store
        self._resolver = resolver or OwnershipResolver(store)

    async def _recorded_owner(self, owner_key: str) -> Optional[str]:
        record = await self._store.get(COLLECTION_COUNTER_OWNERS, owner_key)
        if record is None:
            return None
        return record.data.get("tenantId") or None

    async def apply(
        self,
        kind: ResourceKind,
        data: Dict[str, Any],
        delta: int,
        event_id: str,
        resource_id: Optional[str] = None,
    ) -> bool:
        """
        Apply a counter delta for one resource event.

        Args:
            kind: Resource kind of the created/deleted document
            data: Document data (old value for deletes)
            delta: +1 on create, -1 on delete
            event_id: Triggering event id, the idempotency key
            resource_id: Document id; enables the recorded-owner lookup on delete

        Returns:
            True if the counter changed, False when skipped (uncounted kind,
            unresolvable owner, or an already-applied event)
        """
        counter_collection = kind.counter_collection
        if counter_collection is None:
            logger.debug(f"{kind.value} has no shadow counter")
            return False

        owner_key = owner_record_key(kind, resource_id) if resource_id else None

        tenant_id = None
        if owner_key is not None and delta < 0:
            tenant_id = await self._recorded_owner(owner_key)

        if tenant_id is None:
            resolution = await self._resolver.resolve(kind, data)
            if not isinstance(resolution, OwnerFound):
                logger.warning(f"Skipping {kind.value} counter update: {resolution.reason}")
                return False
            tenant_id = resolution.tenant_id

        applied = await self._store.apply_counter_delta(
            counter_collection, tenant_id, delta, event_id, owner_key=owner_key
        )
        if applied:
            action = "Incremented" if delta > 0 else "Decremented"
            logger.info(f"{action} {kind.value} count for user {tenant_id}")
        return applied

    async def on_created(
        self,
        kind: ResourceKind,
        data: Dict[str, Any],
        event_id: str,
        resource_id: Optional[str] = None,
    ) -> bool:
        return await self.apply(kind, data, 1, event_id, resource_id)

    async def on_deleted(
        self,
        kind: ResourceKind,
        data: Dict[str, Any],
        event_id: str,
        resource_id: Optional[str] = None,
    ) -> bool:
        return await self.apply(kind, data, -1, event_id, resource_id)
