"""
Storage reconciliation: objects nobody references, references nothing backs.

The report is a point-in-time snapshot. Uploads and edits during the scan can
yield false positives, so a deleting run re-reads references right before
deleting and leaves alone anything referenced by then or created after the
scan began.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

from src.constants import STORAGE_REFERENCE_COLLECTIONS
from src.db.base import DocumentStore
from src.storage.base import StorageBackend, StorageObjectDescriptor
from src.utils.async_utils import gather_bounded
from src.utils.storage_paths import extract_storage_references
from src.utils.timer_utils import Timer

logger = logging.getLogger(__name__)


@dataclass
class ReconciliationReport:
    """Result of one reconciliation run."""
    dry_run: bool
    orphaned_files: List[StorageObjectDescriptor] = field(default_factory=list)
    missing_references: List[str] = field(default_factory=list)
    total_files_scanned: int = 0
    total_references_found: int = 0
    deleted_files: int = 0
    duration_ms: float = 0.0

    @property
    def orphaned_bytes(self) -> int:
        return sum(obj.size for obj in self.orphaned_files)

    def summary(self) -> dict:
        return {
            "dryRun": self.dry_run,
            "totalFilesScanned": self.total_files_scanned,
            "totalReferencesFound": self.total_references_found,
            "orphanedFilesFound": len(self.orphaned_files),
            "orphanedBytes": self.orphaned_bytes,
            "missingReferencesFound": len(self.missing_references),
            "deletedFiles": self.deleted_files,
            "durationMs": round(self.duration_ms, 2),
        }


class StorageReconciler:
    """Compares listed objects with references held in document collections."""

    def __init__(
        self,
        store: DocumentStore,
        storage: StorageBackend,
        collections: Sequence[str] = STORAGE_REFERENCE_COLLECTIONS,
    ):
        self._store = store
        self._storage = storage
        self._collections = tuple(collections)

    async def collect_references(self) -> Dict[str, List[str]]:
        """
        Map each referenced object key to the documents referencing it.

        Returns:
            {object key: ["collection/docId", ...]}
        """
        references: Dict[str, List[str]] = defaultdict(list)
        for collection in self._collections:
            scanned = 0
            async for document in self._store.stream(collection):
                scanned += 1
                for reference in extract_storage_references(document.data):
                    references[reference.key].append(document.path)
            logger.debug(f"Scanned {scanned} documents in {collection} for storage references")
        return dict(references)

    async def _find_missing(
        self,
        references: Dict[str, List[str]],
        listed: set,
        concurrency: int,
    ) -> List[str]:
        # Listed objects are known to exist; only the rest need an existence call
        to_check = [key for key in references if key not in listed]
        exists = await gather_bounded(self._storage.exists, to_check, concurrency)

        missing = []
        for key, found in zip(to_check, exists):
            if not found:
                missing.extend(f"{path}: {key}" for path in references[key])
        return missing

    async def _delete_orphans(
        self,
        orphans: List[StorageObjectDescriptor],
        scan_started: datetime,
        concurrency: int,
    ) -> int:
        fresh_references = await self.collect_references()

        deletable = []
        for obj in orphans:
            if obj.name in fresh_references:
                logger.info(f"Skipping {obj.name}: referenced since the scan")
                continue
            if obj.time_created is not None and _as_utc(obj.time_created) >= scan_started:
                logger.info(f"Skipping {obj.name}: created after the scan started")
                continue
            deletable.append(obj.name)

        results = await gather_bounded(self._storage.delete, deletable, concurrency)
        return sum(1 for deleted in results if deleted)

    async def reconcile(
        self,
        max_files: int,
        concurrency: int,
        dry_run: bool = True,
    ) -> ReconciliationReport:
        """
        Produce the reconciliation report, deleting orphans unless `dry_run`.

        Args:
            max_files: Maximum objects to list
            concurrency: Maximum simultaneous storage calls
            dry_run: Report only

        Backend errors propagate unchanged.
        """
        report = ReconciliationReport(dry_run=dry_run)
        scan_started = datetime.now(timezone.utc)

        with Timer() as timer:
            objects = (await self._storage.list_objects(max_files))[:max_files]
            report.total_files_scanned = len(objects)

            references = await self.collect_references()
            report.total_references_found = len(references)

            listed = {obj.name for obj in objects}
            report.orphaned_files = [obj for obj in objects if obj.name not in references]
            report.missing_references = await self._find_missing(references, listed, concurrency)

            logger.info(
                f"Storage scan: {len(objects)} files, {len(references)} references, "
                f"{len(report.orphaned_files)} orphaned, {len(report.missing_references)} missing"
            )

            if not dry_run and report.orphaned_files:
                report.deleted_files = await self._delete_orphans(
                    report.orphaned_files, scan_started, concurrency
                )
                logger.info(f"Deleted {report.deleted_files} orphaned files")

        report.duration_ms = timer.elapsed_ms
        return report


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment
