from datetime import date, timedelta
from typing import Callable, Dict, List, Optional
import logging
import random

import httpx
from pydantic import ValidationError

from .base import BaseNewsSource, MAX_ARTICLES, Strategy, StrategyResult
from newsfeed.core.config import Settings
from newsfeed.core.exceptions import ConfigurationError
from newsfeed.schemas.news import Article

logger = logging.getLogger(__name__)

SORT_OPTIONS = ["popularity", "relevancy"]
MAX_LOOKBACK_DAYS = 7
DESCRIPTION_FROM_CONTENT_LENGTH = 200


def normalize_article(raw: Dict) -> Article:
    """
    Map a NewsAPI article onto an Article, filling gaps with placeholders
    """
    description = raw.get("description")
    if not description:
        content = raw.get("content")
        description = f"{content[:DESCRIPTION_FROM_CONTENT_LENGTH]}..." if content else "No description available"

    source = raw.get("source") or {}
    return Article(
        title=raw.get("title") or "No title available",
        description=description,
        category=source.get("name") or "General",
        url=raw.get("url") or "#",
    )


class NewsAPIClient(BaseNewsSource):
    """
    Article source backed by the NewsAPI `everything` endpoint

    Dates, sort order and paging are randomized per call so repeated
    requests with the same interests return varied results.
    """
    ENDPOINT = "/everything"

    def __init__(
        self,
        settings: Settings,
        http_client: httpx.AsyncClient,
        rng: Optional[random.Random] = None,
        today: Optional[Callable[[], date]] = None,
    ):
        self.settings = settings
        self.http_client = http_client
        self.api_key = settings.NEWS_API_KEY
        self.url = f"{settings.NEWS_API_BASE_URL.rstrip('/')}{self.ENDPOINT}"
        self.excluded_domains = settings.NEWS_EXCLUDED_DOMAINS
        self.rng = rng or random.Random()
        self.today = today or date.today

    def _from_date(self) -> str:
        days_back = self.rng.randint(1, MAX_LOOKBACK_DAYS)
        return (self.today() - timedelta(days=days_back)).isoformat()

    def _sort_by(self) -> str:
        return self.rng.choice(SORT_OPTIONS)

    async def _search(self, name: str, params: Dict) -> StrategyResult:
        """
        Run one NewsAPI query and turn the outcome into a StrategyResult

        Args:
            name: Strategy name for logging
            params: Query parameters, without the API key

        Returns:
            StrategyResult: Shuffled articles (at most MAX_ARTICLES) or the failure reason
        """
        logger.info(f"{name}: requesting {self.url} with params {params}")
        try:
            response = await self.http_client.get(
                self.url,
                params=params,
                headers={"X-Api-Key": self.api_key},
            )
        except httpx.HTTPError as e:
            return StrategyResult.failure(f"NewsAPI request error: {str(e)}")

        if response.status_code >= 400:
            logger.error(f"NewsAPI error response {response.status_code}: {response.text}")
            return StrategyResult.failure(f"NewsAPI request failed: {response.status_code}")

        try:
            data = response.json()
        except ValueError:
            return StrategyResult.failure("NewsAPI returned invalid JSON")

        if not isinstance(data, dict):
            return StrategyResult.failure("NewsAPI returned an unexpected payload")

        if data.get("status") != "ok":
            return StrategyResult.failure(f"NewsAPI returned status: {data.get('status')}")

        raw_articles = data.get("articles") or []
        if not isinstance(raw_articles, list):
            return StrategyResult.failure("NewsAPI returned an unexpected payload")

        articles = []
        for raw in raw_articles:
            try:
                articles.append(normalize_article(raw))
            except (AttributeError, TypeError, ValidationError) as e:
                logger.warning(f"{name}: skipping malformed article: {str(e)}")

        if not articles:
            return StrategyResult.failure("No articles found")

        self.rng.shuffle(articles)
        logger.info(f"{name}: found {len(articles)} articles")
        return StrategyResult.success(articles[:MAX_ARTICLES])

    async def _description_search(self, interests: List[str]) -> StrategyResult:
        """OR query over all interests, restricted to the description field"""
        single = len(interests) == 1
        params = {
            "q": " OR ".join(f'"{interest}"' for interest in interests),
            "searchIn": "description",
            "from": self._from_date(),
            "sortBy": self._sort_by(),
            "page": 1 if single else self.rng.randint(1, 3),
            "pageSize": 15 if single else 20,
            "language": "en",
            "excludeDomains": self.excluded_domains,
        }
        return await self._search("description_search", params)

    async def _broad_search(self, interest: str) -> StrategyResult:
        """Single interest searched across every field"""
        params = {
            "q": interest,
            "from": self._from_date(),
            "sortBy": self._sort_by(),
            "page": 1,
            "pageSize": 20,
            "language": "en",
            "excludeDomains": self.excluded_domains,
        }
        return await self._search("broad_search", params)

    async def _general_news(self) -> StrategyResult:
        """Last resort: popular general news"""
        params = {
            "q": "news",
            "from": self._from_date(),
            "sortBy": "popularity",
            "page": 1,
            "pageSize": 10,
            "language": "en",
        }
        return await self._search("general_news", params)

    def build_strategies(self, interests: List[str]) -> List[Strategy]:
        strategies: List[Strategy] = [
            ("description_search", lambda: self._description_search(interests)),
        ]
        if len(interests) == 1:
            strategies.append(("broad_search", lambda: self._broad_search(interests[0])))
        strategies.append(("general_news", self._general_news))
        return strategies

    async def fetch(self, interests: List[str]) -> List[Article]:
        if not self.api_key:
            raise ConfigurationError(["NEWS_API_KEY"])
        return await super().fetch(interests)
