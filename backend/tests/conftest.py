"""Shared fixtures for the news pipeline tests."""

import asyncio
from datetime import datetime, timezone
from typing import Dict, List, Optional

import pytest

from newsfeed.ai.services.summary_generator import BaseSummaryGenerator
from newsfeed.core.config import Settings
from newsfeed.core.exceptions import ArticleSourceError
from newsfeed.db.session import Database
from newsfeed.schemas.news import Article, SummarizedArticle
from newsfeed.scrapers.base import BaseNewsSource, StrategyResult
from newsfeed.services.news_cache_service import NewsCacheService


def make_article(n: int) -> Article:
    return Article(
        title=f"Title {n}",
        description=f"Description {n}",
        category="Reuters",
        url=f"https://example.com/{n}",
    )


def make_summarized(n: int) -> SummarizedArticle:
    return SummarizedArticle(**make_article(n).model_dump(), summary=f"Summary of article {n}.")


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class FakeNewsSource(BaseNewsSource):
    """Returns a fixed article list, or fails every strategy when given none"""

    def __init__(self, articles: Optional[List[Article]] = None):
        self.articles = articles or []
        self.calls: List[List[str]] = []

    def build_strategies(self, interests):
        async def fixed():
            if self.articles:
                return StrategyResult.success(list(self.articles))
            return StrategyResult.failure("No articles found")
        return [("fixed", fixed)]

    async def fetch(self, interests):
        self.calls.append(list(interests))
        return await super().fetch(interests)


class FakeSummaryGenerator(BaseSummaryGenerator):
    """Summaries keyed by title; optional per-title delays and failures"""

    def __init__(self, delays: Optional[Dict[str, float]] = None, failing: tuple = ()):
        super().__init__(ai_client=None)
        self.delays = delays or {}
        self.failing = failing
        self.calls: List[str] = []

    async def generate_summary(self, article: Article) -> str:
        self.calls.append(article.title)
        await asyncio.sleep(self.delays.get(article.title, 0))
        if article.title in self.failing:
            raise RuntimeError("upstream 500")
        return f"Summary of {article.title}."


class FailingNewsSource(BaseNewsSource):
    def build_strategies(self, interests):
        return []

    async def fetch(self, interests):
        raise ArticleSourceError("Unable to find news articles.")


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        NEWS_API_KEY="news-key",
        OPENAI_API_KEY="openai-key",
        DATABASE_URL="sqlite+aiosqlite://",
        AZURE_OPENAI_ENDPOINT=None,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 5, 10, 15, 30, tzinfo=timezone.utc))


@pytest.fixture
async def database(tmp_path):
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'cache.db'}")
    await db.init_db()
    yield db
    await db.close()


@pytest.fixture
def cache(database, clock) -> NewsCacheService:
    return NewsCacheService(database, tz_name="UTC", clock=clock)
