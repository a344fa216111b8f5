"""Administrative maintenance API endpoints.

Every endpoint requires an authenticated administrator (X-User-ID whose
profile carries the admin flag).
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends

from src.maintenance.schemas import HealthCheckResult, ManualCleanupResult, StorageCleanupResult
from src.maintenance.service import MaintenanceService

from ..dependencies import get_api_key, get_caller_id, get_maintenance_service_dep
from ..schemas.errors import ADMIN_ERROR_RESPONSES
from ..schemas.maintenance import ManualCleanupRequest, StorageCleanupRequest

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post(
    "/cleanup",
    response_model=ManualCleanupResult,
    response_model_exclude_none=True,
    responses=ADMIN_ERROR_RESPONSES,
    operation_id="manualCleanup",
    summary="Clean an allow-listed collection",
)
async def manual_cleanup(
    request: ManualCleanupRequest,
    caller_id: Optional[str] = Depends(get_caller_id),
    service: MaintenanceService = Depends(get_maintenance_service_dep),
    _api_key: Optional[str] = Depends(get_api_key),
):
    """
    Delete documents older than `daysOld` from `emails`, `pending_signups`
    or `pending_password_resets`.

    With `dryRun` (the default) nothing is deleted and `wouldDeleteCount`
    reports what a real run would remove.
    """
    return await service.manual_cleanup(
        caller_id, request.collection, request.days_old, request.dry_run
    )


@router.get(
    "/health",
    response_model=HealthCheckResult,
    responses=ADMIN_ERROR_RESPONSES,
    operation_id="databaseHealthCheck",
    summary="Report cleanup opportunities",
)
async def database_health_check(
    caller_id: Optional[str] = Depends(get_caller_id),
    service: MaintenanceService = Depends(get_maintenance_service_dep),
    _api_key: Optional[str] = Depends(get_api_key),
):
    """Per-collection totals, documents eligible for cleanup and recommendations."""
    return await service.database_health_check(caller_id)


@router.post(
    "/storage/orphans",
    response_model=StorageCleanupResult,
    responses=ADMIN_ERROR_RESPONSES,
    operation_id="cleanupOrphanedStorage",
    summary="Reconcile storage objects with document references",
)
async def cleanup_orphaned_storage(
    request: StorageCleanupRequest,
    caller_id: Optional[str] = Depends(get_caller_id),
    service: MaintenanceService = Depends(get_maintenance_service_dep),
    _api_key: Optional[str] = Depends(get_api_key),
):
    """
    List up to `maxFiles` objects and report the ones no document references,
    plus references whose object is gone.

    With `dryRun=false` the orphans still unreferenced at deletion time are
    deleted.
    """
    return await service.cleanup_orphaned_storage(
        caller_id, request.dry_run, request.max_files, request.concurrency
    )
