"""Tests for newsfeed.services.news_cache_service."""

import asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import patch
from zoneinfo import ZoneInfo

import pytest
from sqlalchemy import update
from sqlalchemy.exc import OperationalError

from newsfeed.core.exceptions import CacheStoreError
from newsfeed.models.news_cache import CachedNews
from newsfeed.services.news_cache_service import (
    CacheSweeper,
    interests_cache_key,
    next_midnight,
)

from conftest import make_summarized


class TestInterestsCacheKey:
    def test_order_independent(self) -> None:
        assert interests_cache_key(["B", "A"]) == interests_cache_key(["A", "B"])

    def test_deduplicates(self) -> None:
        assert interests_cache_key(["Tech", "Tech", "Art"]) == interests_cache_key(["Art", "Tech"])

    def test_case_sensitive(self) -> None:
        assert interests_cache_key(["Tech"]) != interests_cache_key(["tech"])

    def test_subset_differs(self) -> None:
        assert interests_cache_key(["Tech"]) != interests_cache_key(["Tech", "Sports"])


class TestNextMidnight:
    def test_utc(self) -> None:
        now = datetime(2024, 5, 10, 15, 30, tzinfo=timezone.utc)
        assert next_midnight(now, ZoneInfo("UTC")) == datetime(2024, 5, 11, tzinfo=timezone.utc)

    def test_exactly_midnight_moves_to_next_day(self) -> None:
        now = datetime(2024, 5, 10, 0, 0, tzinfo=timezone.utc)
        assert next_midnight(now, ZoneInfo("UTC")) == datetime(2024, 5, 11, tzinfo=timezone.utc)

    def test_other_timezone(self) -> None:
        # 23:30 UTC is already 07:30 next day in Taipei (UTC+8)
        now = datetime(2024, 5, 10, 23, 30, tzinfo=timezone.utc)
        expires = next_midnight(now, ZoneInfo("Asia/Taipei"))
        assert expires == datetime(2024, 5, 11, 16, 0, tzinfo=timezone.utc)


class TestNewsCacheService:
    async def test_lookup_miss_when_empty(self, cache) -> None:
        assert await cache.lookup("user-1", ["Tech"]) is None

    async def test_store_then_lookup_returns_articles_unchanged(self, cache) -> None:
        articles = [make_summarized(1), make_summarized(2)]
        await cache.store("user-1", ["Tech", "Sports"], articles)

        assert await cache.lookup("user-1", ["Tech", "Sports"]) == articles

    async def test_lookup_ignores_interest_order(self, cache) -> None:
        articles = [make_summarized(1)]
        await cache.store("user-1", ["B", "A"], articles)

        assert await cache.lookup("user-1", ["A", "B"]) == articles

    async def test_no_partial_or_superset_match(self, cache) -> None:
        await cache.store("user-1", ["Tech", "Sports"], [make_summarized(1)])

        assert await cache.lookup("user-1", ["Tech"]) is None
        assert await cache.lookup("user-1", ["Tech", "Sports", "Art"]) is None

    async def test_entries_are_per_user(self, cache) -> None:
        await cache.store("user-1", ["Tech"], [make_summarized(1)])

        assert await cache.lookup("user-2", ["Tech"]) is None

    async def test_store_returns_next_midnight(self, cache) -> None:
        expires_at = await cache.store("user-1", ["Tech"], [make_summarized(1)])

        assert expires_at == datetime(2024, 5, 11, tzinfo=timezone.utc)

    async def test_expired_entry_is_a_miss(self, cache, clock) -> None:
        await cache.store("user-1", ["Tech"], [make_summarized(1)])

        clock.now = datetime(2024, 5, 11, tzinfo=timezone.utc)
        assert await cache.lookup("user-1", ["Tech"]) is None

    async def test_entry_valid_until_just_before_midnight(self, cache, clock) -> None:
        articles = [make_summarized(1)]
        await cache.store("user-1", ["Tech"], articles)

        clock.now = datetime(2024, 5, 11, tzinfo=timezone.utc) - timedelta(seconds=1)
        assert await cache.lookup("user-1", ["Tech"]) == articles

    async def test_store_overwrites_existing_entry(self, cache, clock) -> None:
        await cache.store("user-1", ["Tech"], [make_summarized(1)])
        clock.now = clock.now + timedelta(days=1)
        await cache.store("user-1", ["Tech"], [make_summarized(2), make_summarized(3)])

        assert await cache.lookup("user-1", ["Tech"]) == [make_summarized(2), make_summarized(3)]

    async def test_invalidate_deletes_exact_key_only(self, cache) -> None:
        await cache.store("user-1", ["Tech"], [make_summarized(1)])
        await cache.store("user-1", ["Tech", "Art"], [make_summarized(2)])

        await cache.invalidate("user-1", ["Tech"])

        assert await cache.lookup("user-1", ["Tech"]) is None
        assert await cache.lookup("user-1", ["Art", "Tech"]) == [make_summarized(2)]

    async def test_invalidate_missing_entry_is_noop(self, cache) -> None:
        await cache.invalidate("user-1", ["Nothing"])

    async def test_purge_expired_removes_only_expired(self, cache, clock) -> None:
        await cache.store("user-1", ["Old"], [make_summarized(1)])
        clock.now = clock.now + timedelta(days=1)
        await cache.store("user-1", ["New"], [make_summarized(2)])

        removed = await cache.purge_expired()

        assert removed == 1
        assert await cache.lookup("user-1", ["New"]) == [make_summarized(2)]

    async def test_unreadable_entry_is_wrapped(self, cache) -> None:
        await cache.store("user-1", ["Tech"], [make_summarized(1)])
        async with cache.db.session() as session:
            await session.execute(update(CachedNews).values(articles=[{"title": "only a title"}]))
            await session.commit()

        with pytest.raises(CacheStoreError):
            await cache.lookup("user-1", ["Tech"])

    async def test_database_errors_are_wrapped(self, cache) -> None:
        with patch.object(cache.db, "session", side_effect=OperationalError("SELECT", {}, Exception("down"))):
            with pytest.raises(CacheStoreError):
                await cache.lookup("user-1", ["Tech"])


class TestCacheSweeper:
    async def test_purges_periodically(self, cache) -> None:
        sweeper = CacheSweeper(cache, interval_seconds=0.01)
        with patch.object(cache, "purge_expired") as mock_purge:
            sweeper.start()
            await asyncio.sleep(0.1)
            await sweeper.stop()

        assert mock_purge.await_count >= 2

    async def test_keeps_running_after_store_error(self, cache) -> None:
        sweeper = CacheSweeper(cache, interval_seconds=0.01)
        with patch.object(cache, "purge_expired", side_effect=CacheStoreError("down")) as mock_purge:
            sweeper.start()
            await asyncio.sleep(0.1)
            assert not sweeper._task.done()
            await sweeper.stop()

        assert mock_purge.await_count >= 2

    async def test_disabled_with_zero_interval(self, cache) -> None:
        sweeper = CacheSweeper(cache, interval_seconds=0).start()

        assert sweeper._task is None
        await sweeper.stop()
