"""Unit tests for tenant resolution."""

import pytest

from src.core.quota.ownership import (
    OwnerFound,
    OwnershipResolver,
    Unresolved,
    owner_from_fields,
)
from src.core.quota.resources import ResourceKind


class TestOwnerFieldPrecedence:
    """Tests for owner field order."""

    def test_created_by_wins(self):
        data = {"createdBy": "a", "ownerId": "b", "userId": "c"}
        assert owner_from_fields(data) == ("createdBy", "a")

    def test_empty_values_skipped(self):
        assert owner_from_fields({"createdBy": "", "ownerId": None, "userId": "c"}) == ("userId", "c")

    def test_none_present(self):
        assert owner_from_fields({"name": "Hamlet"}) is None


class TestOwnershipResolver:
    """Tests for OwnershipResolver.resolve."""

    @pytest.fixture
    def resolver(self, memory_store):
        memory_store.set_document("shows", "s1", {"ownerId": "owner-1"})
        memory_store.set_document("shows", "orphan-show", {"name": "No owner"})
        return OwnershipResolver(memory_store)

    @pytest.mark.asyncio
    async def test_show_resolves_from_own_fields(self, resolver):
        result = await resolver.resolve(ResourceKind.SHOW, {"userId": "u1"})
        assert result == OwnerFound(tenant_id="u1", field="userId")

    @pytest.mark.asyncio
    async def test_prop_resolves_to_show_owner(self, resolver):
        result = await resolver.resolve(ResourceKind.PROP, {"showId": "s1", "userId": "collab"})

        assert isinstance(result, OwnerFound)
        assert result.tenant_id == "owner-1"
        assert result.parent_show.id == "s1"

    @pytest.mark.asyncio
    async def test_prop_without_show_is_unresolved(self, resolver):
        result = await resolver.resolve(ResourceKind.PROP, {"userId": "u1"})

        assert isinstance(result, Unresolved)
        assert "showId" in result.reason

    @pytest.mark.asyncio
    async def test_missing_parent_show_is_unresolved(self, resolver):
        result = await resolver.resolve(ResourceKind.PACKING_BOX, {"showId": "gone"})
        assert isinstance(result, Unresolved)

    @pytest.mark.asyncio
    async def test_parent_show_without_owner_is_unresolved(self, resolver):
        result = await resolver.resolve(ResourceKind.PROP, {"showId": "orphan-show"})
        assert isinstance(result, Unresolved)

    @pytest.mark.asyncio
    async def test_board_with_show_uses_show_owner(self, resolver):
        result = await resolver.resolve(ResourceKind.BOARD, {"showId": "s1", "userId": "collab"})
        assert result.tenant_id == "owner-1"

    @pytest.mark.asyncio
    async def test_legacy_board_uses_own_fields(self, resolver):
        result = await resolver.resolve(ResourceKind.BOARD, {"ownerId": "u9"})
        assert result == OwnerFound(tenant_id="u9", field="ownerId")

    @pytest.mark.asyncio
    async def test_show_without_owner_is_unresolved(self, resolver):
        result = await resolver.resolve(ResourceKind.SHOW, {"name": "Hamlet"})
        assert isinstance(result, Unresolved)
