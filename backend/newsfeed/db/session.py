from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel
import logging

from newsfeed.models.news_cache import CachedNews

# Configure logging
logger = logging.getLogger(__name__)


class Database:
    """
    Async engine plus session factory

    Constructed once per process (in the application lifespan) and passed by
    reference to whatever needs a session.
    """

    def __init__(self, url: str, echo: bool = False, **engine_kwargs):
        self.url = url
        self.engine: AsyncEngine = create_async_engine(url, echo=echo, **engine_kwargs)
        self.session_factory = async_sessionmaker(
            self.engine,
            expire_on_commit=False,
        )

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        async with self.session_factory() as session:
            try:
                yield session
            finally:
                await session.close()

    async def init_db(self):
        """
        Create tables if they don't exist

        Note: This will NOT update existing table structures
        For schema updates, use proper migration tools like Alembic
        """
        async with self.engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all, tables=[CachedNews.__table__])
            logger.info("Created cached_news table")

    async def close(self):
        """
        Clean up database connections
        """
        logger.info("Closing database connections")
        await self.engine.dispose()
