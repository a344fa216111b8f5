"""Unit tests for databaseHealthCheck."""

from datetime import datetime, timedelta, timezone

import pytest

from src.core.exceptions import PermissionDeniedError, UnauthenticatedError
from src.maintenance.config import MaintenanceConfig
from src.maintenance.service import MaintenanceService

NOW = datetime.now(timezone.utc)


def epoch_ms(moment):
    return int(moment.timestamp() * 1000)


@pytest.fixture
def seeded_store(memory_store, seed_admin):
    seed_admin("admin-1")
    memory_store.set_document("emails", "a", {"processed": True, "processingAt": NOW - timedelta(days=40)})
    memory_store.set_document("emails", "b", {"processed": True, "processingAt": NOW})
    memory_store.set_document("emails", "c", {"delivery": {"state": "failed", "failedAt": NOW - timedelta(days=9)}})
    memory_store.set_document("pending_signups", "s1", {"expiresAt": epoch_ms(NOW - timedelta(minutes=5))})
    memory_store.set_document("pending_signups", "s2", {"expiresAt": epoch_ms(NOW + timedelta(minutes=5))})
    return memory_store


class TestHealthReport:
    """Tests for build_health_report and database_health_check."""

    @pytest.mark.asyncio
    async def test_counts(self, seeded_store, maintenance_config):
        report = await MaintenanceService(seeded_store, config=maintenance_config).build_health_report()

        assert report.collections["emails"] == {"total": 3, "oldProcessed": 1, "oldFailed": 1}
        assert report.collections["pending_signups"] == {"total": 2, "expired": 1}
        assert report.collections["pending_password_resets"] == {"total": 0, "expired": 0}
        assert report.summary.total_cleanup_opportunity == 3
        assert report.summary.recommendations == ["Database is healthy. No cleanup needed."]

    @pytest.mark.asyncio
    async def test_recommends_cleanup_above_threshold(self, seeded_store):
        config = MaintenanceConfig(health_recommendation_threshold=1)

        report = await MaintenanceService(seeded_store, config=config).build_health_report()

        assert report.summary.recommendations == [
            "emails: 2 documents are eligible for cleanup. Consider running a cleanup."
        ]

    @pytest.mark.asyncio
    async def test_admin_result_serializes_camel_case(self, seeded_store, maintenance_config):
        result = await MaintenanceService(seeded_store, config=maintenance_config).database_health_check("admin-1")
        payload = result.model_dump(by_alias=True)

        assert payload["success"] is True
        assert payload["healthReport"]["summary"]["totalCleanupOpportunity"] == 3

    @pytest.mark.asyncio
    async def test_requires_admin(self, seeded_store, maintenance_config, seed_profile):
        seed_profile("user-1")
        service = MaintenanceService(seeded_store, config=maintenance_config)

        with pytest.raises(PermissionDeniedError):
            await service.database_health_check("user-1")
        with pytest.raises(UnauthenticatedError):
            await service.database_health_check(None)
