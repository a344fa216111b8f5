"""
Resolution of the tenant (billing owner) a resource counts against.

Owner fields are tried in a fixed order (`createdBy`, then `ownerId`, then
`userId`); the first non-empty string wins. Resources scoped to a show count
against the show's owner, not against whoever created them.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence, Tuple, Union

from src.constants import COLLECTION_SHOWS, OWNER_FIELD_PRECEDENCE, PARENT_SHOW_FIELD
from src.db.base import DocumentStore, StoredDocument
from .resources import ParentScope, ResourceKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OwnerFound:
    """Resolved tenant.

    Attributes:
        tenant_id: The billing owner
        field: Owner field the id was read from
        parent_show: The parent show document, for show-scoped resources
    """
    tenant_id: str
    field: str
    parent_show: Optional[StoredDocument] = None


@dataclass(frozen=True)
class Unresolved:
    """No owner could be determined; `reason` is for logs."""
    reason: str


OwnerResolution = Union[OwnerFound, Unresolved]


def first_present_field(
    data: Dict[str, Any],
    fields: Sequence[str],
) -> Optional[Tuple[str, str]]:
    """
    Return (field, value) for the first field holding a non-empty string.

    Example:
        >>> first_present_field({"ownerId": "", "userId": "u1"}, ("ownerId", "userId"))
        ('userId', 'u1')
    """
    for name in fields:
        value = data.get(name)
        if isinstance(value, str) and value:
            return name, value
    return None


def owner_from_fields(data: Dict[str, Any]) -> Optional[Tuple[str, str]]:
    """Apply the owner field precedence to document data."""
    return first_present_field(data, OWNER_FIELD_PRECEDENCE)


def parent_show_id(data: Dict[str, Any]) -> Optional[str]:
    value = data.get(PARENT_SHOW_FIELD)
    if isinstance(value, str) and value:
        return value
    return None


class OwnershipResolver:
    """Resolves resources to tenants, loading parent shows as needed."""

    def __init__(self, store: DocumentStore):
        self._store = store

    async def resolve(self, kind: ResourceKind, data: Dict[str, Any]) -> OwnerResolution:
        """
        Determine the tenant a resource counts against.

        Args:
            kind: Resource kind
            data: The resource's fields

        Returns:
            OwnerFound, or Unresolved when the resource has no usable owner
            or its parent show is missing
        """
        show_id = parent_show_id(data)

        if kind.parent_scope == ParentScope.REQUIRED and show_id is None:
            return Unresolved(f"{kind.value} resource has no valid {PARENT_SHOW_FIELD}")

        if kind.parent_scope != ParentScope.NONE and show_id is not None:
            return await self._resolve_from_show(show_id)

        owner = owner_from_fields(data)
        if owner is None:
            return Unresolved(f"{kind.value} resource has no owner field")
        return OwnerFound(tenant_id=owner[1], field=owner[0])

    async def _resolve_from_show(self, show_id: str) -> OwnerResolution:
        show = await self._store.get(COLLECTION_SHOWS, show_id)
        if show is None:
            return Unresolved(f"parent show {show_id} not found")

        owner = owner_from_fields(show.data)
        if owner is None:
            return Unresolved(f"parent show {show_id} has no owner field")

        logger.debug(f"Resolved show {show_id} to owner {owner[1]} via {owner[0]}")
        return OwnerFound(tenant_id=owner[1], field=owner[0], parent_show=show)
