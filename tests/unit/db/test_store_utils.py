"""Unit tests for document store utilities."""

import pytest
from google.api_core.exceptions import NotFound, ServiceUnavailable

from src.db.utils import chunked, create_store_retry, with_store_retry


class TestChunked:
    """Tests for `in` filter chunking."""

    def test_default_chunk_size_is_30(self):
        chunks = list(chunked([str(i) for i in range(65)]))
        assert [len(chunk) for chunk in chunks] == [30, 30, 5]

    def test_empty_input(self):
        assert list(chunked([])) == []

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            list(chunked(["a"], 0))


class TestStoreRetry:
    """Tests for the read retry decorator."""

    @pytest.mark.asyncio
    async def test_retries_transient_errors(self, monkeypatch):
        import src.db.utils as utils_module
        monkeypatch.setattr(utils_module, "store_retry", create_store_retry(min_wait=0, max_wait=0))
        calls = []

        @with_store_retry
        async def flaky():
            calls.append(1)
            if len(calls) < 3:
                raise ServiceUnavailable("try again")
            return "ok"

        assert await flaky() == "ok"
        assert len(calls) == 3

    @pytest.mark.asyncio
    async def test_does_not_retry_other_errors(self):
        calls = []

        @with_store_retry
        async def missing():
            calls.append(1)
            raise NotFound("gone")

        with pytest.raises(NotFound):
            await missing()
        assert len(calls) == 1
