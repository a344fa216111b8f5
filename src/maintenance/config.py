"""
Maintenance job configuration.

Settings come from environment variables; see `MaintenanceConfig.from_env`.
"""

from typing import Optional
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings

from src.constants import (
    DEFAULT_CLEANUP_PAGE_SIZE,
    DEFAULT_EMAIL_RETENTION_DAYS,
    DEFAULT_FAILED_EMAIL_RETENTION_DAYS,
    DEFAULT_HEALTH_RECOMMENDATION_THRESHOLD,
    DEFAULT_MAX_BATCH_OPERATIONS,
    STORE_MAX_BATCH_WRITES,
)
from src.utils.env_utils import parse_int_env


class MaintenanceConfig(BaseSettings):
    """Configuration for garbage collection and health reporting."""

    cleanup_page_size: int = Field(
        default=DEFAULT_CLEANUP_PAGE_SIZE,
        ge=1,
        description="Maximum documents matched per cleanup pass",
    )
    max_batch_operations: int = Field(
        default=DEFAULT_MAX_BATCH_OPERATIONS,
        ge=1,
        description="Deletes per atomic commit (must stay below the store ceiling)",
    )
    email_retention_days: int = Field(
        default=DEFAULT_EMAIL_RETENTION_DAYS,
        ge=1,
        description="Age after which processed emails are deleted",
    )
    failed_email_retention_days: int = Field(
        default=DEFAULT_FAILED_EMAIL_RETENTION_DAYS,
        ge=1,
        description="Age after which permanently failed emails are deleted",
    )
    health_recommendation_threshold: int = Field(
        default=DEFAULT_HEALTH_RECOMMENDATION_THRESHOLD,
        ge=0,
        description="Cleanup opportunity above which the health report recommends a cleanup",
    )

    @model_validator(mode="after")
    def check_batch_headroom(self) -> "MaintenanceConfig":
        if self.max_batch_operations >= STORE_MAX_BATCH_WRITES:
            raise ValueError(
                f"MAX_BATCH_OPERATIONS must be below {STORE_MAX_BATCH_WRITES}"
            )
        return self

    @classmethod
    def from_env(cls) -> "MaintenanceConfig":
        """Create config from environment variables."""
        return cls(
            cleanup_page_size=parse_int_env("CLEANUP_PAGE_SIZE", DEFAULT_CLEANUP_PAGE_SIZE),
            max_batch_operations=parse_int_env("MAX_BATCH_OPERATIONS", DEFAULT_MAX_BATCH_OPERATIONS),
            email_retention_days=parse_int_env("EMAIL_RETENTION_DAYS", DEFAULT_EMAIL_RETENTION_DAYS),
            failed_email_retention_days=parse_int_env(
                "FAILED_EMAIL_RETENTION_DAYS", DEFAULT_FAILED_EMAIL_RETENTION_DAYS
            ),
            health_recommendation_threshold=parse_int_env(
                "HEALTH_RECOMMENDATION_THRESHOLD", DEFAULT_HEALTH_RECOMMENDATION_THRESHOLD
            ),
        )


# Singleton config instance
_config: Optional[MaintenanceConfig] = None


def get_maintenance_config() -> MaintenanceConfig:
    """Get the maintenance config singleton."""
    global _config
    if _config is None:
        _config = MaintenanceConfig.from_env()
    return _config


def reset_maintenance_config() -> None:
    """Reset the config singleton (for testing)."""
    global _config
    _config = None
