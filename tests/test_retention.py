"""
Tests for the raw post retention sweep.
"""

import pytest

from src.archivist.retention import run_retention


class TestRunRetention:

    @pytest.mark.asyncio
    async def test_nothing_processed(self, store):
        store.add_raw("a")
        store.add_raw("b")

        result = await run_retention(store)

        assert result.model_dump(by_alias=True) == {
            "message": "No processed raw deals to clean up",
            "deletedCount": 0,
            "remainingRawCount": 2,
        }
        assert ("raw_delete_processed",) not in store.calls

    @pytest.mark.asyncio
    async def test_deletes_only_processed(self, store):
        store.add_raw("a").processed = True
        store.add_raw("b").processed = True
        store.add_raw("c")

        result = await run_retention(store)

        assert result.message == "Cleanup completed successfully"
        assert result.deleted_count == 2
        assert result.remaining_raw_count == 1
        assert set(store.raw) == {"c"}
        assert store.raw["c"].processed is False

    @pytest.mark.asyncio
    async def test_empty_store(self, store):
        result = await run_retention(store)
        assert result.deleted_count == 0
        assert result.remaining_raw_count == 0

    @pytest.mark.asyncio
    async def test_deals_untouched(self, store):
        store.add_raw("a").processed = True
        store.add_deal("a", professional_summary="S", other_important_stuff="O")

        await run_retention(store)

        assert "a" in store.deals
