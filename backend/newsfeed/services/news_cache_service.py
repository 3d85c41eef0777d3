"""
Daily news cache keyed by user and interest set
"""

from datetime import datetime, time, timedelta, timezone
from typing import Callable, List, Optional
from zoneinfo import ZoneInfo
import asyncio
import json
import logging

from pydantic import ValidationError
from sqlalchemy import and_, delete
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select

from newsfeed.core.exceptions import CacheStoreError
from newsfeed.db.session import Database
from newsfeed.models.news_cache import CachedNews
from newsfeed.schemas.news import SummarizedArticle, normalize_interests

logger = logging.getLogger(__name__)


def interests_cache_key(interests: List[str]) -> str:
    """Canonical text form of an interest set, compared exactly by the database"""
    return json.dumps(normalize_interests(interests), ensure_ascii=False)


def next_midnight(now: datetime, tz: ZoneInfo) -> datetime:
    """
    Return the first midnight in `tz` strictly after `now`, as a UTC datetime

    Args:
        now: Timezone-aware current time
        tz: Zone whose calendar day defines the cache lifetime

    Returns:
        datetime: Expiration timestamp in UTC
    """
    local_now = now.astimezone(tz)
    tomorrow = local_now.date() + timedelta(days=1)
    return datetime.combine(tomorrow, time.min, tzinfo=tz).astimezone(timezone.utc)


class NewsCacheService:
    """Lookup, upsert and invalidation of cached summarized articles"""

    def __init__(
        self,
        db: Database,
        tz_name: str = "UTC",
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.db = db
        self.tz = ZoneInfo(tz_name)
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def _now(self) -> datetime:
        return self.clock().astimezone(timezone.utc)

    def _insert(self):
        dialect = self.db.engine.dialect.name
        if dialect == "postgresql":
            from sqlalchemy.dialects.postgresql import insert
        elif dialect == "sqlite":
            from sqlalchemy.dialects.sqlite import insert
        else:
            raise CacheStoreError(f"Unsupported cache database dialect: {dialect}")
        return insert(CachedNews.__table__)

    async def lookup(self, user_id: str, interests: List[str]) -> Optional[List[SummarizedArticle]]:
        """
        Get unexpired cached articles for the exact interest set

        Args:
            user_id: User identifier
            interests: Interest set in any order

        Returns:
            Optional[List[SummarizedArticle]]: Cached articles, or None on a miss
        """
        key = interests_cache_key(interests)
        now = self._now()
        logger.info(f"Checking cache for user {user_id}, interests {key}")

        statement = select(CachedNews).where(
            and_(
                CachedNews.user_id == user_id,
                CachedNews.interests_key == key,
                CachedNews.expires_at > now,
            )
        )
        try:
            async with self.db.session() as session:
                entry = (await session.execute(statement)).scalars().first()
        except (SQLAlchemyError, ValueError) as e:
            # ValueError covers JSON columns that no longer decode
            raise CacheStoreError(f"Cache lookup failed: {str(e)}") from e

        if entry is None:
            logger.info("No cached data found")
            return None

        try:
            articles = [SummarizedArticle.model_validate(article) for article in entry.articles]
        except (ValidationError, ValueError, TypeError) as e:
            raise CacheStoreError(f"Cached entry is unreadable: {str(e)}") from e

        logger.info(f"Found {len(articles)} cached articles")
        return articles

    async def store(
        self,
        user_id: str,
        interests: List[str],
        articles: List[SummarizedArticle],
    ) -> datetime:
        """
        Upsert articles for the interest set, expiring at the next midnight

        Returns:
            datetime: The expiration timestamp that was written
        """
        sorted_interests = normalize_interests(interests)
        now = self._now()
        expires_at = next_midnight(now, self.tz)
        payload = [article.model_dump() for article in articles]

        logger.info(
            f"Caching {len(payload)} articles for user {user_id}, "
            f"interests {sorted_interests}, expires at {expires_at.isoformat()}"
        )

        statement = self._insert().values(
            user_id=user_id,
            interests=sorted_interests,
            interests_key=interests_cache_key(sorted_interests),
            articles=payload,
            created_at=now,
            expires_at=expires_at,
        )
        statement = statement.on_conflict_do_update(
            index_elements=["user_id", "interests_key"],
            set_={
                "interests": statement.excluded.interests,
                "articles": statement.excluded.articles,
                "created_at": statement.excluded.created_at,
                "expires_at": statement.excluded.expires_at,
            },
        )
        try:
            async with self.db.session() as session:
                await session.execute(statement)
                await session.commit()
        except SQLAlchemyError as e:
            raise CacheStoreError(f"Cache store failed: {str(e)}") from e

        return expires_at

    async def invalidate(self, user_id: str, interests: List[str]) -> None:
        """Delete the entry for the exact interest set"""
        key = interests_cache_key(interests)
        logger.info(f"Invalidating cache for user {user_id}, interests {key}")

        statement = delete(CachedNews).where(
            and_(CachedNews.user_id == user_id, CachedNews.interests_key == key)
        )
        try:
            async with self.db.session() as session:
                await session.execute(statement)
                await session.commit()
        except SQLAlchemyError as e:
            raise CacheStoreError(f"Cache invalidation failed: {str(e)}") from e

    async def purge_expired(self) -> int:
        """
        Delete every expired entry

        Returns:
            int: Number of rows removed
        """
        statement = delete(CachedNews).where(CachedNews.expires_at <= self._now())
        try:
            async with self.db.session() as session:
                result = await session.execute(statement)
                await session.commit()
        except SQLAlchemyError as e:
            raise CacheStoreError(f"Cache purge failed: {str(e)}") from e

        removed = result.rowcount or 0
        if removed:
            logger.info(f"Purged {removed} expired cache entries")
        return removed


class CacheSweeper:
    """Periodically purges expired cache rows in the background"""

    def __init__(self, cache: NewsCacheService, interval_seconds: float):
        self.cache = cache
        self.interval_seconds = interval_seconds
        self._task: Optional[asyncio.Task] = None

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                await self.cache.purge_expired()
            except CacheStoreError as e:
                logger.error(f"Error clearing expired cache: {str(e)}")

    def start(self) -> "CacheSweeper":
        if self.interval_seconds > 0 and (self._task is None or self._task.done()):
            self._task = asyncio.create_task(self._loop())
            logger.info(f"Cache sweeper started, interval {self.interval_seconds}s")
        return self

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
