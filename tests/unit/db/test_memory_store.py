"""Unit tests for the in-memory document store."""

import pytest

from src.db.base import Condition, StoredDocument, get_field
from src.db.memory import MemoryDocumentStore, matches


class TestGetField:
    """Tests for dotted field access."""

    def test_reads_nested_field(self):
        assert get_field({"delivery": {"state": "failed"}}, "delivery.state") == "failed"

    def test_missing_returns_default(self):
        assert get_field({"delivery": {}}, "delivery.state", "none") == "none"

    def test_non_map_parent_returns_default(self):
        assert get_field({"delivery": "failed"}, "delivery.state") is None


class TestMatches:
    """Tests for condition evaluation."""

    def test_equality(self):
        assert matches({"processed": True}, Condition("processed", "==", True))
        assert not matches({"processed": False}, Condition("processed", "==", True))

    def test_missing_field_never_matches(self):
        assert not matches({}, Condition("expiresAt", "<", 100))
        assert not matches({}, Condition("state", "!=", "failed"))

    def test_ordering_ignores_mismatched_types(self):
        assert not matches({"expiresAt": "soon"}, Condition("expiresAt", "<", 100))

    def test_ordering_does_not_mix_bool_and_int(self):
        assert not matches({"count": True}, Condition("count", ">", 0))

    def test_in_operator(self):
        assert matches({"showId": "s2"}, Condition("showId", "in", ["s1", "s2"]))
        assert not matches({"showId": "s3"}, Condition("showId", "in", ["s1", "s2"]))

    def test_array_contains(self):
        assert matches({"tags": ["a", "b"]}, Condition("tags", "array_contains", "b"))
        assert not matches({"tags": "b"}, Condition("tags", "array_contains", "b"))

    def test_unknown_operator_raises(self):
        with pytest.raises(ValueError, match="Unsupported filter operator"):
            matches({"a": 1}, Condition("a", "~=", 1))


class TestMemoryDocumentStore:
    """Tests for MemoryDocumentStore operations."""

    @pytest.fixture
    def store(self):
        store = MemoryDocumentStore()
        store.set_document("emails", "e1", {"processed": True, "delivery": {"state": "failed"}})
        store.set_document("emails", "e2", {"processed": False})
        store.set_document("emails", "e3", {"processed": True})
        return store

    @pytest.mark.asyncio
    async def test_get_returns_copy(self, store):
        document = await store.get("emails", "e1")
        document.data["processed"] = False

        again = await store.get("emails", "e1")
        assert again.data["processed"] is True
        assert again.path == "emails/e1"

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self, store):
        assert await store.get("emails", "nope") is None

    @pytest.mark.asyncio
    async def test_query_with_conditions_and_limit(self, store):
        matched = await store.query("emails", [Condition("processed", "==", True)])
        assert {doc.id for doc in matched} == {"e1", "e3"}

        limited = await store.query("emails", [Condition("processed", "==", True)], limit=1)
        assert len(limited) == 1

    @pytest.mark.asyncio
    async def test_query_dotted_field(self, store):
        matched = await store.query("emails", [Condition("delivery.state", "==", "failed")])
        assert [doc.id for doc in matched] == ["e1"]

    @pytest.mark.asyncio
    async def test_count(self, store):
        assert await store.count("emails") == 3
        assert await store.count("emails", [Condition("processed", "==", False)]) == 1
        assert await store.count("missing_collection") == 0

    @pytest.mark.asyncio
    async def test_stream_yields_every_document(self, store):
        ids = [doc.id async for doc in store.stream("emails")]
        assert sorted(ids) == ["e1", "e2", "e3"]

    @pytest.mark.asyncio
    async def test_delete_missing_is_noop(self, store):
        await store.delete("emails", "nope")
        await store.delete("emails", "e1")
        assert await store.get("emails", "e1") is None

    def test_add_document_generates_id(self):
        store = MemoryDocumentStore()
        document = store.add_document("props", {"name": "Sword"})
        assert isinstance(document, StoredDocument)
        assert document.id in store.documents("props")


class TestMemoryWriteBatch:
    """Tests for atomic batches."""

    @pytest.mark.asyncio
    async def test_commit_applies_deletes(self):
        store = MemoryDocumentStore()
        store.set_document("emails", "e1", {})
        store.set_document("emails", "e2", {})

        batch = store.batch()
        batch.delete("emails", "e1")
        assert await store.get("emails", "e1") is not None

        await batch.commit()
        assert await store.get("emails", "e1") is None
        assert await store.get("emails", "e2") is not None
        assert store.commit_count == 1

    def test_ceiling_of_500_operations(self):
        batch = MemoryDocumentStore().batch()
        for i in range(500):
            batch.delete("emails", f"e{i}")

        with pytest.raises(ValueError, match="500"):
            batch.delete("emails", "one-too-many")

    @pytest.mark.asyncio
    async def test_commit_twice_raises(self):
        batch = MemoryDocumentStore().batch()
        await batch.commit()
        with pytest.raises(RuntimeError):
            await batch.commit()


class TestCounterDelta:
    """Tests for idempotent counter updates."""

    @pytest.mark.asyncio
    async def test_applies_delta_once_per_event(self):
        store = MemoryDocumentStore()

        assert await store.apply_counter_delta("userPropCounts", "u1", 1, "evt-1") is True
        assert await store.apply_counter_delta("userPropCounts", "u1", 1, "evt-1") is False
        assert await store.apply_counter_delta("userPropCounts", "u1", 1, "evt-2") is True

        counter = await store.get("userPropCounts", "u1")
        assert counter.data["count"] == 2

    @pytest.mark.asyncio
    async def test_marker_records_expiry(self):
        store = MemoryDocumentStore()
        await store.apply_counter_delta("userShowCounts", "u1", -1, "events/abc")

        markers = store.documents("counterEvents")
        assert "events_abc" in markers
        marker = markers["events_abc"]
        assert marker["counter"] == "userShowCounts/u1"
        assert marker["delta"] == -1
        assert marker["expireAt"] > marker["appliedAt"]

    @pytest.mark.asyncio
    async def test_owner_record_follows_increment_and_decrement(self):
        store = MemoryDocumentStore()

        await store.apply_counter_delta("userPropCounts", "u1", 1, "evt-1", owner_key="props_p1")
        record = (await store.get("counterOwners", "props_p1")).data
        assert record["tenantId"] == "u1"
        assert record["counter"] == "userPropCounts"

        await store.apply_counter_delta("userPropCounts", "u1", -1, "evt-2", owner_key="props_p1")
        assert await store.get("counterOwners", "props_p1") is None

    @pytest.mark.asyncio
    async def test_replayed_create_does_not_rewrite_owner_record(self):
        store = MemoryDocumentStore()
        await store.apply_counter_delta("userPropCounts", "u1", 1, "evt-1", owner_key="props_p1")
        await store.apply_counter_delta("userPropCounts", "u1", -1, "evt-2", owner_key="props_p1")

        assert await store.apply_counter_delta("userPropCounts", "u1", 1, "evt-1", owner_key="props_p1") is False
        assert store.documents("counterOwners") == {}
