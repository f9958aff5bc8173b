"""
Unit tests for write-triggered cache invalidation.
"""

import json
from unittest.mock import AsyncMock, patch

import pytest

from service_content.app.caching.invalidation import CacheInvalidator

from conftest import build_item


class TestCacheInvalidator:
    """Test cases for CacheInvalidator."""

    @pytest.fixture
    def seeded_cache(self, cache):
        cache.data.update({
            "list:page:1:limit:20": "{}",
            "list:page:2:limit:20": "{}",
            "doc:aaa": "{}",
            "doc:bbb": "{}",
            "today": "{}",
            "unrelated": "{}",
        })
        return cache

    @pytest.mark.asyncio
    async def test_invalidate_all_clears_every_family(self, invalidator, seeded_cache):
        deleted = await invalidator.invalidate_all()

        assert deleted == 5
        assert list(seeded_cache.data) == ["unrelated"]

    @pytest.mark.asyncio
    async def test_invalidate_all_with_empty_cache(self, invalidator, cache):
        assert await invalidator.invalidate_all() == 0
        assert cache.calls["delete"] == 0

    @pytest.mark.asyncio
    async def test_invalidate_one_clears_only_that_document(self, invalidator, seeded_cache):
        deleted = await invalidator.invalidate_one("aaa")

        assert deleted == 1
        assert "doc:aaa" not in seeded_cache.data
        assert "doc:bbb" in seeded_cache.data
        assert "list:page:1:limit:20" in seeded_cache.data
        assert "today" in seeded_cache.data

    @pytest.mark.asyncio
    async def test_invalidate_lists_keeps_documents(self, invalidator, seeded_cache):
        deleted = await invalidator.invalidate_lists()

        assert deleted == 2
        assert sorted(seeded_cache.data) == ["doc:aaa", "doc:bbb", "today", "unrelated"]

    @pytest.mark.asyncio
    async def test_failures_are_swallowed(self, failing_cache, metrics):
        invalidator = CacheInvalidator(failing_cache, metrics=metrics)

        assert await invalidator.invalidate_all() == 0
        assert await invalidator.invalidate_one("aaa") == 0
        assert await invalidator.invalidate_lists() == 0
        assert metrics.get_sample_value("cache_errors_total", operation="invalidate") == 3.0

    @pytest.mark.asyncio
    async def test_delete_failure_after_lookup_is_swallowed(self, invalidator, seeded_cache):
        with patch.object(seeded_cache, "delete", new_callable=AsyncMock) as mock_delete:
            mock_delete.side_effect = ConnectionError("Redis connection lost")

            assert await invalidator.invalidate_all() == 0

        assert "today" in seeded_cache.data

    @pytest.mark.asyncio
    async def test_invalidations_counted_by_scope(self, invalidator, seeded_cache, metrics):
        await invalidator.invalidate_all()
        await invalidator.invalidate_one("aaa")

        assert metrics.get_sample_value("cache_invalidations_total", scope="all") == 1.0
        assert metrics.get_sample_value("cache_invalidations_total", scope="one") == 1.0


class TestInvalidationWithReader:
    """Invalidation as observed through subsequent reads."""

    @pytest.mark.asyncio
    async def test_invalidate_one_leaves_lists_cached(self, reader, invalidator, store):
        content_id = f"{1:024x}"
        await reader.list_content(page=1, limit=20)
        await reader.get_content(content_id)

        await invalidator.invalidate_one(content_id)
        await reader.get_content(content_id)
        await reader.list_content(page=1, limit=20)

        assert store.calls["find_by_id"] == 2
        assert store.calls["find_page"] == 1

    @pytest.mark.asyncio
    async def test_invalidate_all_forces_list_and_doc_misses(self, reader, invalidator, store):
        content_id = f"{1:024x}"
        await reader.list_content(page=1, limit=20)
        await reader.get_content(content_id)

        await invalidator.invalidate_all()
        await reader.get_content(content_id)
        await reader.list_content(page=1, limit=20)

        assert store.calls["find_by_id"] == 2
        assert store.calls["find_page"] == 2

    @pytest.mark.asyncio
    async def test_new_item_visible_after_invalidate_all(self, reader, invalidator, store, cache):
        first = await reader.list_content(page=1, limit=2)
        assert [entry["title"] for entry in first["data"]] == ["Daily brief 3", "Daily brief 2"]
        assert first["meta"]["total"] == 3

        store.items[f"{4:024x}"] = build_item(4)
        await invalidator.invalidate_all()

        second = await reader.list_content(page=1, limit=2)

        assert [entry["title"] for entry in second["data"]] == ["Daily brief 4", "Daily brief 3"]
        assert second["meta"]["total"] == 4
        assert store.calls["find_page"] == 2
        assert json.loads(cache.data["list:page:1:limit:2"]) == second

    @pytest.mark.asyncio
    async def test_without_invalidation_stale_list_is_served(self, reader, store):
        await reader.list_content(page=1, limit=2)
        store.items[f"{4:024x}"] = build_item(4)

        stale = await reader.list_content(page=1, limit=2)

        assert stale["meta"]["total"] == 3
        assert store.calls["find_page"] == 1
