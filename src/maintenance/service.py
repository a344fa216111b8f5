"""
Maintenance service.

Entry points for the scheduled cleanup jobs and the admin operations
(manual cleanup, health report, storage reconciliation). Admin operations
check their inputs before any I/O, then pass the admin gate, then work.
The `run_*` / `build_*` / `reconcile_*` variants skip the gate for callers
that already run with system privilege (scheduler, operator CLI).
"""

import asyncio
import logging
from typing import Any, Callable, List, Optional, Tuple

from src.constants import (
    COLLECTION_EMAILS,
    COLLECTION_PENDING_PASSWORD_RESETS,
    COLLECTION_PENDING_SIGNUPS,
    DEFAULT_CONCURRENCY,
    DEFAULT_MAX_FILES,
    MAX_CONCURRENCY,
    MAX_DAYS_OLD,
    MAX_MAX_FILES,
    MIN_CONCURRENCY,
    MIN_DAYS_OLD,
    MIN_MAX_FILES,
)
from src.core.admin_gate import AdminGate, require_authenticated
from src.core.exceptions import ServiceError, ValidationError
from src.db.base import DocumentStore
from src.storage.base import StorageBackend

from .config import MaintenanceConfig, get_maintenance_config
from .garbage_collector import BulkGarbageCollector
from .policies import (
    CLEANUP_POLICIES,
    FAILED_EMAILS,
    PENDING_PASSWORD_RESETS,
    PENDING_SIGNUPS,
    PROCESSED_EMAILS,
    CleanupPolicy,
    utc_now,
)
from .reconciler import StorageReconciler
from .schemas import (
    ExpiredCodesResult,
    HealthCheckResult,
    HealthReport,
    HealthSummary,
    ManualCleanupResult,
    OrphanedFile,
    StorageCleanupResult,
)

logger = logging.getLogger(__name__)

DEFAULT_DAYS_OLD = 30


# =============================================================================
# INPUT VALIDATION
# =============================================================================


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _in_range(value: Any, low: int, high: int) -> bool:
    return _is_number(value) and low <= value <= high


def validate_cleanup_request(
    collection: Any,
    days_old: Any = DEFAULT_DAYS_OLD,
    dry_run: Any = True,
) -> Tuple[CleanupPolicy, float, bool]:
    """
    Check manual cleanup arguments.

    Returns:
        (policy, days_old, dry_run)

    Raises:
        ValidationError: On the first invalid argument
    """
    if not isinstance(collection, str) or not collection:
        raise ValidationError("Collection name is required and must be a string")
    policy = CLEANUP_POLICIES.get(collection)
    if policy is None:
        allowed = ", ".join(CLEANUP_POLICIES)
        raise ValidationError(
            f"Collection '{collection}' is not allowed for cleanup. Allowed: {allowed}"
        )
    if not _in_range(days_old, MIN_DAYS_OLD, MAX_DAYS_OLD):
        raise ValidationError(
            f"daysOld must be a number between {MIN_DAYS_OLD} and {MAX_DAYS_OLD}"
        )
    if not isinstance(dry_run, bool):
        raise ValidationError("dryRun must be a boolean")
    return policy, days_old, dry_run


def validate_storage_request(
    dry_run: Any = True,
    max_files: Any = DEFAULT_MAX_FILES,
    concurrency: Any = DEFAULT_CONCURRENCY,
) -> Tuple[bool, int, int]:
    """
    Check storage reconciliation arguments.

    Returns:
        (dry_run, max_files, concurrency)

    Raises:
        ValidationError: On the first invalid argument
    """
    if not isinstance(dry_run, bool):
        raise ValidationError("dryRun must be a boolean")
    if not _in_range(max_files, MIN_MAX_FILES, MAX_MAX_FILES):
        raise ValidationError(
            f"maxFiles must be a number between {MIN_MAX_FILES} and {MAX_MAX_FILES}"
        )
    if not _in_range(concurrency, MIN_CONCURRENCY, MAX_CONCURRENCY):
        raise ValidationError(
            f"concurrency must be a number between {MIN_CONCURRENCY} and {MAX_CONCURRENCY}"
        )
    return dry_run, int(max_files), int(concurrency)


# =============================================================================
# SERVICE
# =============================================================================


class MaintenanceService:
    """Garbage collection jobs, health reporting and storage reconciliation."""

    def __init__(
        self,
        store: DocumentStore,
        config: Optional[MaintenanceConfig] = None,
        gate: Optional[AdminGate] = None,
        storage_factory: Optional[Callable[[], StorageBackend]] = None,
    ):
        """
        Args:
            store: Document store
            config: Maintenance settings (defaults to the environment config)
            gate: Admin gate (defaults to one on `store`)
            storage_factory: Returns the blob store; resolved lazily so the
                cleanup jobs run without storage configuration
        """
        self._store = store
        self._config = config or get_maintenance_config()
        self._gate = gate or AdminGate(store)
        self._storage_factory = storage_factory
        self.collector = BulkGarbageCollector(
            store,
            page_size=self._config.cleanup_page_size,
            max_atomic_ops=self._config.max_batch_operations,
        )

    def _storage(self) -> StorageBackend:
        if self._storage_factory is None:
            from src.storage.config import get_storage
            return get_storage()
        return self._storage_factory()

    # -------------------------------------------------------------------------
    # Scheduled jobs
    # -------------------------------------------------------------------------

    async def cleanup_old_emails(self) -> int:
        """Delete processed emails past the retention period."""
        days = self._config.email_retention_days
        logger.info("Starting email cleanup process")
        logger.debug(f"Email retention: {days} days")
        try:
            result = await self.collector.collect(
                PROCESSED_EMAILS.collection,
                PROCESSED_EMAILS.conditions_older_than(days),
                description="old emails",
                unit="emails",
            )
        except Exception as e:
            logger.error(f"Error during email cleanup: {e}")
            raise

        if result.deleted:
            logger.info(f"Email cleanup completed. Deleted {result.deleted} old emails")
        return result.deleted

    async def cleanup_expired_codes(self) -> ExpiredCodesResult:
        """
        Delete expired signup and password-reset codes.

        Each collection is cleaned and committed on its own; a failure in one
        does not stop the other. The first failure is re-raised afterwards.
        """
        logger.info("Starting expired codes cleanup process")
        now = utc_now()
        result = ExpiredCodesResult()
        errors: List[Exception] = []

        for policy, label, attribute in (
            (PENDING_SIGNUPS, "signup codes", "signup_codes_deleted"),
            (PENDING_PASSWORD_RESETS, "password reset codes", "password_reset_codes_deleted"),
        ):
            try:
                collected = await self.collector.collect(
                    policy.collection,
                    policy.conditions_before(now),
                    description=f"expired {label}",
                    unit=label,
                )
            except Exception as e:
                logger.error(f"Error cleaning up expired {label}: {e}")
                errors.append(e)
                continue

            setattr(result, attribute, collected.deleted)
            if collected.deleted:
                logger.info(f"Deleted {collected.deleted} expired {label}")

        if errors:
            logger.error(f"Expired codes cleanup finished with {len(errors)} error(s)")
            raise errors[0]

        logger.info("Expired codes cleanup completed")
        return result

    async def cleanup_failed_emails(self) -> int:
        """Delete emails whose delivery failed permanently, past retention."""
        days = self._config.failed_email_retention_days
        logger.info("Starting failed emails cleanup process")
        logger.debug(f"Failed email retention: {days} days")
        try:
            result = await self.collector.collect(
                FAILED_EMAILS.collection,
                FAILED_EMAILS.conditions_older_than(days),
                description="old failed emails",
                unit="failed emails",
            )
        except Exception as e:
            logger.error(f"Error during failed emails cleanup: {e}")
            raise

        if result.deleted:
            logger.info(
                f"Failed emails cleanup completed. Deleted {result.deleted} old failed emails"
            )
        return result.deleted

    # -------------------------------------------------------------------------
    # Manual cleanup
    # -------------------------------------------------------------------------

    async def run_manual_cleanup(
        self,
        policy: CleanupPolicy,
        days_old: float,
        dry_run: bool,
    ) -> ManualCleanupResult:
        """Clean one allow-listed collection without the admin gate."""
        conditions = policy.conditions_older_than(days_old)
        collection = policy.collection

        if dry_run:
            matched = await self.collector.find(collection, conditions)
            return ManualCleanupResult(
                message=f"Dry run: Would delete {len(matched)} documents from {collection}",
                would_delete_count=len(matched),
                dry_run=True,
            )

        result = await self.collector.collect(
            collection, conditions, description=f"{collection} documents", unit="documents"
        )
        logger.info(f"Manual cleanup deleted {result.deleted} documents from {collection}")
        return ManualCleanupResult(
            message=f"Successfully deleted {result.deleted} documents from {collection}",
            deleted_count=result.deleted,
            dry_run=False,
        )

    async def manual_cleanup(
        self,
        caller_id: Optional[str],
        collection: Any,
        days_old: Any = DEFAULT_DAYS_OLD,
        dry_run: Any = True,
    ) -> ManualCleanupResult:
        """
        Admin-only cleanup of an allow-listed collection.

        Raises:
            UnauthenticatedError: No caller identity
            ValidationError: Bad collection, daysOld or dryRun
            PermissionDeniedError: Caller is not an administrator
        """
        require_authenticated(caller_id)
        policy, days_old, dry_run = validate_cleanup_request(collection, days_old, dry_run)
        caller_id = await self._gate.require_admin(caller_id)
        logger.info(
            f"Manual cleanup of {policy.collection} requested by {caller_id} "
            f"(daysOld={days_old}, dryRun={dry_run})"
        )
        return await self.run_manual_cleanup(policy, days_old, dry_run)

    # -------------------------------------------------------------------------
    # Health report
    # -------------------------------------------------------------------------

    async def build_health_report(self) -> HealthReport:
        """Count totals and cleanup opportunities per maintained collection."""
        now = utc_now()
        store = self._store
        (
            emails_total,
            emails_old_processed,
            emails_old_failed,
            signups_total,
            signups_expired,
            resets_total,
            resets_expired,
        ) = await asyncio.gather(
            store.count(COLLECTION_EMAILS),
            store.count(
                COLLECTION_EMAILS,
                PROCESSED_EMAILS.conditions_older_than(self._config.email_retention_days, now),
            ),
            store.count(
                COLLECTION_EMAILS,
                FAILED_EMAILS.conditions_older_than(self._config.failed_email_retention_days, now),
            ),
            store.count(COLLECTION_PENDING_SIGNUPS),
            store.count(COLLECTION_PENDING_SIGNUPS, PENDING_SIGNUPS.conditions_before(now)),
            store.count(COLLECTION_PENDING_PASSWORD_RESETS),
            store.count(
                COLLECTION_PENDING_PASSWORD_RESETS, PENDING_PASSWORD_RESETS.conditions_before(now)
            ),
        )

        collections = {
            COLLECTION_EMAILS: {
                "total": emails_total,
                "oldProcessed": emails_old_processed,
                "oldFailed": emails_old_failed,
            },
            COLLECTION_PENDING_SIGNUPS: {"total": signups_total, "expired": signups_expired},
            COLLECTION_PENDING_PASSWORD_RESETS: {"total": resets_total, "expired": resets_expired},
        }
        opportunities = {
            COLLECTION_EMAILS: emails_old_processed + emails_old_failed,
            COLLECTION_PENDING_SIGNUPS: signups_expired,
            COLLECTION_PENDING_PASSWORD_RESETS: resets_expired,
        }

        threshold = self._config.health_recommendation_threshold
        recommendations = [
            f"{name}: {count} documents are eligible for cleanup. Consider running a cleanup."
            for name, count in opportunities.items()
            if count > threshold
        ]
        if not recommendations:
            recommendations.append("Database is healthy. No cleanup needed.")

        return HealthReport(
            timestamp=now.isoformat(),
            collections=collections,
            summary=HealthSummary(
                total_cleanup_opportunity=sum(opportunities.values()),
                recommendations=recommendations,
            ),
        )

    async def database_health_check(self, caller_id: Optional[str]) -> HealthCheckResult:
        """Admin-only health report."""
        await self._gate.require_admin(caller_id)
        report = await self.build_health_report()
        logger.info(
            f"Health check: {report.summary.total_cleanup_opportunity} documents eligible for cleanup"
        )
        return HealthCheckResult(health_report=report)

    # -------------------------------------------------------------------------
    # Storage reconciliation
    # -------------------------------------------------------------------------

    async def reconcile_storage(
        self,
        dry_run: bool,
        max_files: int,
        concurrency: int,
    ) -> StorageCleanupResult:
        """Run reconciliation without the admin gate. Backend errors propagate."""
        reconciler = StorageReconciler(self._store, self._storage())
        report = await reconciler.reconcile(max_files, concurrency, dry_run=dry_run)
        return StorageCleanupResult(
            summary=report.summary(),
            orphaned_files=[OrphanedFile(**obj.to_dict()) for obj in report.orphaned_files],
            missing_references=report.missing_references,
        )

    async def cleanup_orphaned_storage(
        self,
        caller_id: Optional[str],
        dry_run: Any = True,
        max_files: Any = DEFAULT_MAX_FILES,
        concurrency: Any = DEFAULT_CONCURRENCY,
    ) -> StorageCleanupResult:
        """
        Admin-only storage reconciliation.

        Raises:
            UnauthenticatedError: No caller identity
            ValidationError: Bad dryRun, maxFiles or concurrency
            PermissionDeniedError: Caller is not an administrator
            ServiceError: Storage or store failure ("Storage cleanup failed: ...")
        """
        require_authenticated(caller_id)
        dry_run, max_files, concurrency = validate_storage_request(dry_run, max_files, concurrency)
        caller_id = await self._gate.require_admin(caller_id)
        logger.info(
            f"Storage cleanup requested by {caller_id} "
            f"(dryRun={dry_run}, maxFiles={max_files}, concurrency={concurrency})"
        )
        try:
            return await self.reconcile_storage(dry_run, max_files, concurrency)
        except Exception as e:
            logger.error(f"Storage cleanup failed: {e}")
            raise ServiceError(f"Storage cleanup failed: {e}") from e


# Singleton
_service: Optional[MaintenanceService] = None


def get_maintenance_service() -> MaintenanceService:
    """Get or create the MaintenanceService singleton."""
    global _service
    if _service is None:
        from src.db.config import get_document_store
        _service = MaintenanceService(get_document_store())
    return _service


def reset_maintenance_service() -> None:
    """Reset the singleton (for testing)."""
    global _service
    _service = None
