"""Subscription limits API endpoint."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends

from src.core.quota.service import LimitCheckResult, LimitsService

from ..dependencies import get_api_key, get_caller_id, get_limits_service_dep
from ..schemas.errors import LIMITS_ERROR_RESPONSES
from ..schemas.limits import LimitCheckRequest

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post(
    "/check",
    response_model=LimitCheckResult,
    responses=LIMITS_ERROR_RESPONSES,
    operation_id="checkSubscriptionLimits",
    summary="Check usage against the plan limit",
)
async def check_subscription_limits(
    request: LimitCheckRequest,
    caller_id: Optional[str] = Depends(get_caller_id),
    service: LimitsService = Depends(get_limits_service_dep),
    _api_key: Optional[str] = Depends(get_api_key),
):
    """
    Report how much of one resource kind a user has consumed.

    `userId` defaults to the caller. Querying another user requires the
    caller to be an administrator.

    Resource types: `shows`, `boards`, `packingBoxes`, `props`,
    `collaboratorsPerShow`.
    """
    tenant_id = request.user_id or caller_id
    return await service.check_subscription_limits(caller_id, tenant_id, request.resource_type)
