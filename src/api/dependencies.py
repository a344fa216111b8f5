"""Shared dependencies for API routes.

Caller identity comes from the X-User-ID header, which the fronting auth
layer sets after verifying the caller's token. Services are resolved through
their module singletons so tests can swap them with `dependency_overrides`.
"""

import logging
import os
from typing import Optional

from fastapi import Header, HTTPException

from src.core.quota.service import LimitsService, get_limits_service
from src.maintenance.service import MaintenanceService, get_maintenance_service

logger = logging.getLogger(__name__)


# =============================================================================
# Caller Identity
# =============================================================================

async def get_caller_id(
    x_user_id: Optional[str] = Header(None, alias="X-User-ID")
) -> Optional[str]:
    """
    Extract the authenticated caller's user ID from the request header.

    Missing identity is not rejected here; each operation decides whether it
    needs one and raises `UnauthenticatedError` itself.
    """
    if x_user_id is not None:
        x_user_id = x_user_id.strip() or None
    return x_user_id


# =============================================================================
# Service Dependencies
# =============================================================================

def get_limits_service_dep() -> LimitsService:
    """Get the limits service singleton."""
    return get_limits_service()


def get_maintenance_service_dep() -> MaintenanceService:
    """Get the maintenance service singleton."""
    return get_maintenance_service()


# =============================================================================
# Optional API Key Authentication
# =============================================================================

def get_api_key(
    x_api_key: Optional[str] = Header(None, alias="X-API-Key")
) -> Optional[str]:
    """
    Optional API key authentication.

    If API_KEY_REQUIRED is set to 'true' in environment, validates the key.
    Otherwise, returns the key for logging purposes.
    """
    from src.utils.env_utils import parse_bool_env
    api_key_required = parse_bool_env("API_KEY_REQUIRED", False)
    expected_key = os.getenv("API_KEY", "")

    if api_key_required:
        if not x_api_key:
            raise HTTPException(
                status_code=401,
                detail="API key required. Provide X-API-Key header."
            )
        if x_api_key != expected_key:
            logger.warning("Rejected request with invalid API key")
            raise HTTPException(
                status_code=403,
                detail="Invalid API key"
            )

    return x_api_key
