"""
Post-commit quota enforcement for newly created resources.

The document store cannot validate a write against a cross-collection count
before committing it, so creation is checked after the fact:

    CREATED -> VALIDATING -> COMMITTED
                          -> REJECTED_AND_COMPENSATED  (resource deleted again)
                          -> WITHDRAWN                 (already gone, nothing to do)

The move out of CREATED is not atomic with the creation itself. Readers can see
a resource that is deleted moments later. Two creations racing for the last
slot may both observe a count below the limit and both commit, leaving the
tenant one over; no cross-document lock exists to prevent it. A store that can
validate inside the creating transaction would close both windows.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from src.core.exceptions import QuotaExceededError
from src.db.base import DocumentStore
from .ownership import OwnerFound, OwnershipResolver, first_present_field
from .plans import DEFAULT_LIMIT_POLICY, LimitPolicy
from .profiles import load_tenant_profile
from .resources import ParentScope, ResourceKind
from .usage_counts import LiveUsageCounter, team_size

logger = logging.getLogger(__name__)


class CreationState(str, Enum):
    """Lifecycle of a created resource under enforcement."""
    CREATED = "created"
    VALIDATING = "validating"
    COMMITTED = "committed"
    REJECTED_AND_COMPENSATED = "rejected_and_compensated"
    WITHDRAWN = "withdrawn"


_TRANSITIONS = {
    CreationState.CREATED: {CreationState.VALIDATING},
    CreationState.VALIDATING: {
        CreationState.COMMITTED,
        CreationState.REJECTED_AND_COMPENSATED,
        CreationState.WITHDRAWN,
    },
}


@dataclass
class CreationOutcome:
    """Result of validating one creation."""
    kind: ResourceKind
    resource_id: str
    state: CreationState = CreationState.CREATED
    tenant_id: Optional[str] = None
    exempt: bool = False
    count_before: Optional[int] = None
    limit: Optional[int] = None
    reason: Optional[str] = None
    history: List[CreationState] = field(default_factory=lambda: [CreationState.CREATED])

    def transition(self, new_state: CreationState) -> None:
        if new_state not in _TRANSITIONS.get(self.state, set()):
            raise RuntimeError(f"Invalid transition {self.state.value} -> {new_state.value}")
        self.state = new_state
        self.history.append(new_state)


def quota_message(kind: ResourceKind, limit: int, by_collaborator: bool) -> str:
    """Rejection message; collaborator wording points at the show owner."""
    if kind == ResourceKind.SHOW:
        return f"Show limit exceeded. You can create up to {limit} shows on your current plan."

    if kind == ResourceKind.INVITATION:
        if by_collaborator:
            return (
                f"This show has reached its collaborator limit of {limit} on the show owner's plan. "
                f"The show owner needs to upgrade their plan to invite more collaborators."
            )
        return (
            f"You have reached your plan's collaborator limit of {limit} per show. "
            f"Upgrade your plan to invite more collaborators."
        )

    label = kind.info.label
    if by_collaborator:
        return (
            f"This show has reached its {label} limit of {limit} on the show owner's plan. "
            f"The show owner needs to upgrade their plan to create more {label}."
        )
    return (
        f"You have reached your plan's {label} limit of {limit}. "
        f"Upgrade your plan to create more {label}."
    )


class QuotaEnforcer:
    """Validates newly created resources against the owner's plan."""

    def __init__(
        self,
        store: DocumentStore,
        policy: LimitPolicy = DEFAULT_LIMIT_POLICY,
        resolver: Optional[OwnershipResolver] = None,
        counter: Optional[LiveUsageCounter] = None,
    ):
        self._store = store
        self._policy = policy
        self._resolver = resolver or OwnershipResolver(store)
        self._counter = counter or LiveUsageCounter(store)

    @property
    def policy(self) -> LimitPolicy:
        return self._policy

    async def _compensate(self, outcome: CreationOutcome) -> None:
        await self._store.delete(outcome.kind.collection, outcome.resource_id)
        outcome.transition(CreationState.REJECTED_AND_COMPENSATED)

    async def _count_before_insert(self, kind: ResourceKind, owner: OwnerFound) -> int:
        if kind == ResourceKind.INVITATION:
            # Invitations are not team members yet: the team size is the pre-insert count
            return team_size(owner.parent_show.data if owner.parent_show else {})
        # Live counts include the resource being validated
        return max(0, await self._counter.count(kind, owner.tenant_id) - 1)

    async def validate_creation(
        self,
        kind: ResourceKind,
        resource_id: str,
        data: Dict[str, Any],
    ) -> CreationOutcome:
        """
        Validate one creation, deleting the resource when it is not allowed.

        Args:
            kind: Resource kind
            resource_id: Id of the created document
            data: Fields of the created document

        Returns:
            CreationOutcome in a terminal state. Malformed resources end in
            REJECTED_AND_COMPENSATED without raising.

        Raises:
            QuotaExceededError: The resource exceeded the quota and was deleted
        """
        outcome = CreationOutcome(kind=kind, resource_id=resource_id)
        outcome.transition(CreationState.VALIDATING)

        resolution = await self._resolver.resolve(kind, data)
        if not isinstance(resolution, OwnerFound):
            logger.error(
                f"{kind.value} creation validation failed for {resource_id}: {resolution.reason}"
            )
            outcome.reason = resolution.reason
            await self._compensate(outcome)
            return outcome

        tenant_id = resolution.tenant_id
        outcome.tenant_id = tenant_id

        profile = await load_tenant_profile(self._store, tenant_id)
        if not profile.exists:
            # Known fallback: profile may not be written yet, so the free plan applies
            logger.warning(f"User profile not found for {tenant_id}, using free plan limits")

        if profile.is_admin or self._policy.is_exempt_status(profile.subscription_status):
            logger.info(f"User {tenant_id} is exempt from limits, allowing {kind.value} creation")
            outcome.exempt = True
            outcome.transition(CreationState.COMMITTED)
            return outcome

        if await self._store.get(kind.collection, resource_id) is None:
            logger.info(f"{kind.value} {resource_id} was deleted before validation completed")
            outcome.reason = "resource no longer exists"
            outcome.transition(CreationState.WITHDRAWN)
            return outcome

        limit = self._policy.limits_for(profile.plan).for_kind(kind)
        count_before = await self._count_before_insert(kind, resolution)
        outcome.limit = limit
        outcome.count_before = count_before

        if count_before >= limit:
            actor = first_present_field(data, kind.actor_fields)
            by_collaborator = (
                kind.parent_scope != ParentScope.NONE
                and actor is not None
                and actor[1] != tenant_id
            )
            logger.warning(
                f"User {tenant_id} exceeded {kind.value} limit: {count_before}/{limit}"
            )
            await self._compensate(outcome)
            raise QuotaExceededError(
                resource_type=kind.value,
                current_count=count_before,
                limit=limit,
                tenant_id=tenant_id,
                message=quota_message(kind, limit, by_collaborator),
                by_collaborator=by_collaborator,
            )

        logger.info(
            f"{kind.value} creation validated for user {tenant_id}: {count_before + 1}/{limit}"
        )
        outcome.transition(CreationState.COMMITTED)
        return outcome
