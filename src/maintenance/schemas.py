"""
Pydantic schemas for maintenance operation results.

Field names serialize in camelCase (`model_dump(by_alias=True)`), the wire
format callers of the admin operations expect.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ManualCleanupResult(CamelModel):
    """Result of an ad-hoc cleanup."""
    success: bool = True
    message: str
    deleted_count: Optional[int] = None
    would_delete_count: Optional[int] = None
    dry_run: bool


class ExpiredCodesResult(CamelModel):
    """Deletions of the expired-codes job, per collection."""
    signup_codes_deleted: int = 0
    password_reset_codes_deleted: int = 0


class HealthSummary(CamelModel):
    total_cleanup_opportunity: int
    recommendations: List[str] = Field(default_factory=list)


class HealthReport(CamelModel):
    """Per-collection totals and cleanup opportunities."""
    timestamp: str
    collections: Dict[str, Dict[str, int]]
    summary: HealthSummary


class HealthCheckResult(CamelModel):
    success: bool = True
    health_report: HealthReport


class OrphanedFile(CamelModel):
    name: str
    size: int = 0
    time_created: Optional[str] = None


class StorageCleanupResult(CamelModel):
    """Result of a storage reconciliation run."""
    success: bool = True
    summary: Dict[str, Any]
    orphaned_files: List[OrphanedFile] = Field(default_factory=list)
    missing_references: List[str] = Field(default_factory=list)
