"""
Admin authorization gate for destructive and diagnostic operations.

Wraps manual cleanup, health reporting and storage reconciliation. The
per-document triggers run with system privilege and never pass through here.
"""

import logging
from typing import Any, Dict, Optional

from src.constants import ADMIN_GROUP, ADMIN_ROLE, COLLECTION_USER_PROFILES
from src.core.exceptions import PermissionDeniedError, UnauthenticatedError
from src.db.base import DocumentStore

logger = logging.getLogger(__name__)


def is_admin_profile(data: Optional[Dict[str, Any]]) -> bool:
    """
    Admin predicate: membership in the system-admin group or the legacy god role.

    Example:
        >>> is_admin_profile({"groups": {"system-admin": True}})
        True
        >>> is_admin_profile({"role": "GOD"})
        True
        >>> is_admin_profile({"groups": {"system-admin": "yes"}})
        False
    """
    if not data:
        return False
    groups = data.get("groups")
    if isinstance(groups, dict) and groups.get(ADMIN_GROUP) is True:
        return True
    role = data.get("role")
    return isinstance(role, str) and role.lower() == ADMIN_ROLE


def require_authenticated(caller_id: Optional[str]) -> str:
    """Return the caller id, or raise UnauthenticatedError when absent."""
    if not isinstance(caller_id, str) or not caller_id.strip():
        raise UnauthenticatedError()
    return caller_id.strip()


class AdminGate:
    """Checks callers against the admin predicate of their profile."""

    def __init__(self, store: DocumentStore):
        self._store = store

    async def is_admin(self, caller_id: str) -> bool:
        profile = await self._store.get(COLLECTION_USER_PROFILES, caller_id)
        return profile is not None and is_admin_profile(profile.data)

    async def require_admin(self, caller_id: Optional[str]) -> str:
        """
        Permit the call only for administrators.

        Returns:
            The authenticated caller id

        Raises:
            UnauthenticatedError: No caller identity
            PermissionDeniedError: Caller is not an administrator
        """
        caller_id = require_authenticated(caller_id)
        if not await self.is_admin(caller_id):
            logger.warning(f"Admin operation denied for user {caller_id}")
            raise PermissionDeniedError(
                "permission-denied: only administrators may perform this operation"
            )
        return caller_id
