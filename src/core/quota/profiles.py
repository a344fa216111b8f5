"""Tenant profile loading."""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict

from src.constants import COLLECTION_USER_PROFILES
from src.core.admin_gate import is_admin_profile
from src.db.base import DocumentStore

logger = logging.getLogger(__name__)


@dataclass
class TenantProfile:
    """Billing view of a user profile."""
    tenant_id: str
    plan: str = "free"
    subscription_status: str = "inactive"
    is_admin: bool = False
    exists: bool = True
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_data(cls, tenant_id: str, data: Dict[str, Any]) -> "TenantProfile":
        plan = data.get("plan")
        status = data.get("subscriptionStatus")
        return cls(
            tenant_id=tenant_id,
            plan=plan if isinstance(plan, str) and plan else "free",
            subscription_status=status if isinstance(status, str) and status else "inactive",
            is_admin=is_admin_profile(data),
            raw=data,
        )

    @classmethod
    def missing(cls, tenant_id: str) -> "TenantProfile":
        return cls(tenant_id=tenant_id, exists=False)


async def load_tenant_profile(store: DocumentStore, tenant_id: str) -> TenantProfile:
    """
    Load a tenant profile.

    A missing profile is returned as a free-plan, non-admin profile with
    `exists=False` rather than raising.
    """
    document = await store.get(COLLECTION_USER_PROFILES, tenant_id)
    if document is None:
        return TenantProfile.missing(tenant_id)
    return TenantProfile.from_data(tenant_id, document.data)
