"""
Quota services: limit checks for callers plus the shared singletons used by
the event handlers.
"""

import logging
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from src.constants import ALMOST_OUT_PERCENT
from src.core.admin_gate import AdminGate, require_authenticated
from src.core.exceptions import ValidationError
from src.db.base import DocumentStore
from .enforcer import QuotaEnforcer
from .plans import DEFAULT_LIMIT_POLICY, LimitPolicy
from .profiles import load_tenant_profile
from .resources import ResourceKind
from .shadow_counters import ShadowCounterMaintainer
from .usage_counts import LiveUsageCounter

logger = logging.getLogger(__name__)


class LimitCheckResult(BaseModel):
    """Usage of one resource kind against the tenant's plan."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    exempt: bool
    within_limit: bool
    current_count: int
    limit: int
    usage_percent: float = 0.0
    is_almost_out: bool = False
    message: Optional[str] = None


def parse_resource_type(resource_type: str) -> ResourceKind:
    try:
        return ResourceKind(resource_type)
    except ValueError:
        raise ValidationError(f"Unknown resource type: {resource_type}") from None


class LimitsService:
    """Answers `checkSubscriptionLimits` queries."""

    def __init__(
        self,
        store: DocumentStore,
        policy: LimitPolicy = DEFAULT_LIMIT_POLICY,
        gate: Optional[AdminGate] = None,
        counter: Optional[LiveUsageCounter] = None,
    ):
        self._store = store
        self._policy = policy
        self._gate = gate or AdminGate(store)
        self._counter = counter or LiveUsageCounter(store)

    async def check_subscription_limits(
        self,
        caller_id: Optional[str],
        tenant_id: Optional[str],
        resource_type: Optional[str],
    ) -> LimitCheckResult:
        """
        Report a tenant's usage of one resource kind.

        Callers may query themselves; querying another tenant needs admin.

        Raises:
            UnauthenticatedError: No caller identity
            ValidationError: Missing arguments or unknown resource type
            PermissionDeniedError: Non-admin querying another tenant
        """
        caller_id = require_authenticated(caller_id)
        if not tenant_id or not resource_type:
            raise ValidationError("userId and resourceType are required")
        kind = parse_resource_type(resource_type)

        if tenant_id != caller_id:
            await self._gate.require_admin(caller_id)

        profile = await load_tenant_profile(self._store, tenant_id)
        if not profile.exists:
            logger.warning(f"User profile not found for {tenant_id}, using free plan limits")

        if profile.is_admin or self._policy.is_exempt_status(profile.subscription_status):
            return LimitCheckResult(
                exempt=True,
                within_limit=True,
                current_count=0,
                limit=0,
                message="User is exempt from limits",
            )

        limit = self._policy.limits_for(profile.plan).for_kind(kind)
        current_count = await self._counter.count(kind, tenant_id)

        usage_percent = (current_count / limit) * 100 if limit > 0 else 0.0
        is_almost_out = ALMOST_OUT_PERCENT <= usage_percent < 100
        name = kind.value

        message = None
        if current_count >= limit:
            message = (
                f"You have reached your plan's {name} limit of {limit}. "
                f"Upgrade to create more {name}."
            )
        elif is_almost_out:
            message = (
                f"Warning: You're using {current_count} of {limit} {name} "
                f"({round(usage_percent)}%). Consider upgrading your plan soon."
            )

        return LimitCheckResult(
            exempt=False,
            within_limit=current_count < limit,
            current_count=current_count,
            limit=limit,
            usage_percent=usage_percent,
            is_almost_out=is_almost_out,
            message=message,
        )


# Singletons
_limits_service: Optional[LimitsService] = None
_enforcer: Optional[QuotaEnforcer] = None
_counters: Optional[ShadowCounterMaintainer] = None


def get_limits_service() -> LimitsService:
    """Get or create the LimitsService singleton."""
    global _limits_service
    if _limits_service is None:
        from src.db.config import get_document_store
        _limits_service = LimitsService(get_document_store())
    return _limits_service


def get_quota_enforcer() -> QuotaEnforcer:
    """Get or create the QuotaEnforcer singleton."""
    global _enforcer
    if _enforcer is None:
        from src.db.config import get_document_store
        _enforcer = QuotaEnforcer(get_document_store(), DEFAULT_LIMIT_POLICY)
    return _enforcer


def get_shadow_counters() -> ShadowCounterMaintainer:
    """Get or create the ShadowCounterMaintainer singleton."""
    global _counters
    if _counters is None:
        from src.db.config import get_document_store
        _counters = ShadowCounterMaintainer(get_document_store())
    return _counters


def reset_quota_services() -> None:
    """Reset singletons (for testing)."""
    global _limits_service, _enforcer, _counters
    _limits_service = None
    _enforcer = None
    _counters = None
