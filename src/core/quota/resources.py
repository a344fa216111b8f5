"""Quota-governed resource kinds and where they live."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from src.constants import (
    COLLECTION_BOARD_COUNTS,
    COLLECTION_BOARDS,
    COLLECTION_INVITATIONS,
    COLLECTION_PACKING_BOX_COUNTS,
    COLLECTION_PACKING_BOXES,
    COLLECTION_PROP_COUNTS,
    COLLECTION_PROPS,
    COLLECTION_SHOW_COUNTS,
    COLLECTION_SHOWS,
)


class ParentScope(str, Enum):
    """How a resource relates to a parent show."""
    NONE = "none"          # counts against its own owner fields
    OPTIONAL = "optional"  # parent show when present, else own owner fields
    REQUIRED = "required"  # must belong to an existing show


class ResourceKind(str, Enum):
    """Resource kinds; values are the quota names exposed to callers."""
    SHOW = "shows"
    BOARD = "boards"
    PACKING_BOX = "packingBoxes"
    PROP = "props"
    INVITATION = "collaboratorsPerShow"

    @property
    def info(self) -> "ResourceInfo":
        return _RESOURCE_INFO[self]

    @property
    def collection(self) -> str:
        return self.info.collection

    @property
    def counter_collection(self) -> Optional[str]:
        return self.info.counter_collection

    @property
    def parent_scope(self) -> ParentScope:
        return self.info.parent_scope

    @property
    def actor_fields(self) -> Tuple[str, ...]:
        return self.info.actor_fields

    @classmethod
    def from_collection(cls, collection: str) -> "ResourceKind":
        """
        Map a collection name to its resource kind.

        Raises:
            ValueError: If the collection is not quota-governed
        """
        for kind, info in _RESOURCE_INFO.items():
            if info.collection == collection:
                return kind
        raise ValueError(f"Collection '{collection}' is not a quota-governed resource")


@dataclass(frozen=True)
class ResourceInfo:
    collection: str
    counter_collection: Optional[str]
    parent_scope: ParentScope
    # Fields naming the user who performed the creation, first non-empty wins
    actor_fields: Tuple[str, ...]
    # Wording used in limit messages
    label: str


_RESOURCE_INFO = {
    ResourceKind.SHOW: ResourceInfo(
        collection=COLLECTION_SHOWS,
        counter_collection=COLLECTION_SHOW_COUNTS,
        parent_scope=ParentScope.NONE,
        actor_fields=("createdBy", "ownerId", "userId"),
        label="shows",
    ),
    ResourceKind.BOARD: ResourceInfo(
        collection=COLLECTION_BOARDS,
        counter_collection=COLLECTION_BOARD_COUNTS,
        parent_scope=ParentScope.OPTIONAL,
        actor_fields=("userId", "ownerId"),
        label="boards",
    ),
    ResourceKind.PACKING_BOX: ResourceInfo(
        collection=COLLECTION_PACKING_BOXES,
        counter_collection=COLLECTION_PACKING_BOX_COUNTS,
        parent_scope=ParentScope.REQUIRED,
        actor_fields=("userId", "ownerId"),
        label="packing boxes",
    ),
    ResourceKind.PROP: ResourceInfo(
        collection=COLLECTION_PROPS,
        counter_collection=COLLECTION_PROP_COUNTS,
        parent_scope=ParentScope.REQUIRED,
        actor_fields=("userId",),
        label="props",
    ),
    ResourceKind.INVITATION: ResourceInfo(
        collection=COLLECTION_INVITATIONS,
        counter_collection=None,
        parent_scope=ParentScope.REQUIRED,
        actor_fields=("invitedBy", "userId"),
        label="collaborators",
    ),
}
