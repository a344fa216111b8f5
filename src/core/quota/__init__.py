"""
Quota enforcement module.

Resolves resources to the tenant they bill against, validates creations
against the tenant's plan (deleting what does not fit) and keeps the
per-tenant shadow counters used for quick usage display.
"""

from .resources import ParentScope, ResourceKind
from .plans import DEFAULT_LIMIT_POLICY, LimitPolicy, Plan, PlanLimits
from .ownership import OwnerFound, OwnershipResolver, Unresolved
from .profiles import TenantProfile, is_admin_profile, load_tenant_profile
from .usage_counts import LiveUsageCounter
from .enforcer import CreationOutcome, CreationState, QuotaEnforcer
from .shadow_counters import ShadowCounterMaintainer
from .service import (
    LimitCheckResult,
    LimitsService,
    get_limits_service,
    get_quota_enforcer,
    get_shadow_counters,
    reset_quota_services,
)

__all__ = [
    # Resources and policy
    "ParentScope",
    "ResourceKind",
    "DEFAULT_LIMIT_POLICY",
    "LimitPolicy",
    "Plan",
    "PlanLimits",
    # Ownership
    "OwnerFound",
    "OwnershipResolver",
    "Unresolved",
    "TenantProfile",
    "is_admin_profile",
    "load_tenant_profile",
    # Enforcement and counters
    "LiveUsageCounter",
    "CreationOutcome",
    "CreationState",
    "QuotaEnforcer",
    "ShadowCounterMaintainer",
    # Services
    "LimitCheckResult",
    "LimitsService",
    "get_limits_service",
    "get_quota_enforcer",
    "get_shadow_counters",
    "reset_quota_services",
]
