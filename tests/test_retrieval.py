"""RetrievalAugmenter tests."""

import pytest

from assist.src.core.errors import StoreError
from assist.src.core.retrieval import RetrievalAugmenter
from conftest import StubStore


class TestRetrievalAugmenter:

    @pytest.mark.asyncio
    async def test_preserves_store_ranking(self):
        store = StubStore(results=["A", "B", "C"])

        context = await RetrievalAugmenter(store).augment((0.1, 0.2))

        assert context == ("A", "B", "C")
        assert store.queries == [(0.1, 0.2)]

    @pytest.mark.asyncio
    async def test_empty_result_is_empty_context(self):
        context = await RetrievalAugmenter(StubStore()).augment((0.1,))

        assert context == ()

    @pytest.mark.asyncio
    async def test_search_failure_surfaces_by_default(self):
        store = StubStore(query_error=StoreError("index missing"))

        with pytest.raises(StoreError, match="index missing"):
            await RetrievalAugmenter(store, degrade_on_failure=False).augment((0.1,))

    @pytest.mark.asyncio
    async def test_search_failure_degrades_when_configured(self):
        store = StubStore(query_error=StoreError("index missing"))

        context = await RetrievalAugmenter(store, degrade_on_failure=True).augment((0.1,))

        assert context == ()

    @pytest.mark.asyncio
    async def test_non_store_errors_always_propagate(self):
        store = StubStore(query_error=ValueError("bug"))

        with pytest.raises(ValueError):
            await RetrievalAugmenter(store, degrade_on_failure=True).augment((0.1,))
