"""Tests for the Cloud Functions entry points."""

import asyncio
import importlib.util
import json
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from cloudevents.http import CloudEvent

from src.core.exceptions import QuotaExceededError
from src.db.config import get_document_store

MAIN_PATH = Path(__file__).resolve().parents[3] / "cloud_functions" / "maintenance" / "main.py"
DOC_PREFIX = "projects/demo/databases/(default)/documents"


@pytest.fixture
def functions(memory_backend_env):
    spec = importlib.util.spec_from_file_location("maintenance_functions", MAIN_PATH)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture
def store(memory_backend_env):
    return get_document_store()


def document_event(event_id, path, fields, deleted=False, encode=False):
    raw = {"name": f"{DOC_PREFIX}/{path}", "fields": fields}
    data = {"oldValue": raw} if deleted else {"value": raw}
    if encode:
        data = json.dumps(data).encode("utf-8")
    return CloudEvent(
        {
            "type": "google.cloud.firestore.document.v1.deleted" if deleted
            else "google.cloud.firestore.document.v1.created",
            "source": "//firestore.googleapis.com/projects/demo/databases/(default)",
            "id": event_id,
        },
        data,
    )


def scheduler_event():
    return CloudEvent(
        {"type": "google.cloud.pubsub.topic.v1.messagePublished", "source": "//pubsub", "id": "tick-1"},
        {"message": {"data": ""}},
    )


class TestValidateCreation:
    """Tests for the validate_creation trigger."""

    def test_within_limit(self, functions, store):
        store.set_document("shows", "s1", {"ownerId": "u1"})

        functions.validate_creation(document_event("e1", "shows/s1", {"ownerId": {"stringValue": "u1"}}))

        assert "s1" in store.documents("shows")

    def test_over_limit_deletes_and_raises(self, functions, store):
        store.set_document("shows", "s1", {"ownerId": "u1"})
        store.set_document("shows", "s2", {"ownerId": "u1"})

        with pytest.raises(QuotaExceededError):
            functions.validate_creation(
                document_event("e2", "shows/s2", {"ownerId": {"stringValue": "u1"}}, encode=True)
            )

        assert set(store.documents("shows")) == {"s1"}

    def test_untracked_collection_is_ignored(self, functions, store):
        store.set_document("feedback", "f1", {"text": "hi"})

        functions.validate_creation(document_event("e3", "feedback/f1", {"text": {"stringValue": "hi"}}))

        assert "f1" in store.documents("feedback")


class TestUsageCounters:
    """Tests for the counter triggers."""

    def test_increment_and_decrement(self, functions, store):
        fields = {"ownerId": {"stringValue": "u1"}}

        functions.increment_usage_counter(document_event("c1", "shows/s1", fields))
        functions.increment_usage_counter(document_event("c1", "shows/s1", fields))
        functions.increment_usage_counter(document_event("c2", "shows/s2", fields))
        functions.decrement_usage_counter(document_event("c3", "shows/s2", fields, deleted=True))

        assert store.documents("userShowCounts")["u1"]["count"] == 1

    def test_child_deleted_after_parent_show_is_decremented(self, functions, store):
        store.set_document("shows", "s1", {"ownerId": "u1"})
        prop_fields = {"showId": {"stringValue": "s1"}}

        functions.increment_usage_counter(document_event("p-create", "props/p1", prop_fields))
        asyncio.run(store.delete("shows", "s1"))
        functions.decrement_usage_counter(document_event("p-delete", "props/p1", prop_fields, deleted=True))

        assert store.documents("userPropCounts")["u1"]["count"] == 0
        assert store.documents("counterOwners") == {}


class TestScheduledCleanup:
    """Tests for the scheduler-triggered jobs."""

    def test_cleanup_expired_codes(self, functions, store):
        expired = int((datetime.now(timezone.utc) - timedelta(hours=1)).timestamp() * 1000)
        store.set_document("pending_signups", "old", {"expiresAt": expired})
        store.set_document("pending_password_resets", "old", {"expiresAt": expired})

        functions.cleanup_expired_codes(scheduler_event())

        assert store.documents("pending_signups") == {}
        assert store.documents("pending_password_resets") == {}

    def test_cleanup_old_emails(self, functions, store):
        store.set_document(
            "emails", "e1", {"processed": True, "processingAt": datetime.now(timezone.utc) - timedelta(days=31)}
        )

        functions.cleanup_old_emails(scheduler_event())

        assert store.documents("emails") == {}

    def test_cleanup_failed_emails(self, functions, store):
        store.set_document(
            "emails",
            "f1",
            {"delivery": {"state": "failed", "failedAt": datetime.now(timezone.utc) - timedelta(days=8)}},
        )

        functions.cleanup_failed_emails(scheduler_event())

        assert store.documents("emails") == {}
