"""
Data maintenance module.

Provides:
- Bulk garbage collection in capped atomic batches
- Scheduled cleanup jobs (processed emails, expired codes, failed emails)
- Admin operations: manual cleanup, health report, storage reconciliation
"""

from .config import MaintenanceConfig, get_maintenance_config, reset_maintenance_config
from .garbage_collector import BulkGarbageCollector, CollectResult
from .policies import CLEANUP_POLICIES, CleanupPolicy, DateEncoding
from .reconciler import ReconciliationReport, StorageReconciler
from .service import (
    MaintenanceService,
    get_maintenance_service,
    reset_maintenance_service,
    validate_cleanup_request,
    validate_storage_request,
)

__all__ = [
    # Config
    "MaintenanceConfig",
    "get_maintenance_config",
    "reset_maintenance_config",
    # Garbage collection
    "BulkGarbageCollector",
    "CollectResult",
    "CLEANUP_POLICIES",
    "CleanupPolicy",
    "DateEncoding",
    # Reconciliation
    "ReconciliationReport",
    "StorageReconciler",
    # Service
    "MaintenanceService",
    "get_maintenance_service",
    "reset_maintenance_service",
    "validate_cleanup_request",
    "validate_storage_request",
]
