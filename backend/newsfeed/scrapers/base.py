from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Awaitable, Callable, List, Optional, Tuple
import logging

from newsfeed.core.exceptions import ArticleSourceError
from newsfeed.schemas.news import Article

logger = logging.getLogger(__name__)

MAX_ARTICLES = 10


@dataclass
class StrategyResult:
    """Outcome of one fetch strategy: articles on success, a reason on failure"""
    articles: List[Article] = field(default_factory=list)
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return bool(self.articles)

    @classmethod
    def success(cls, articles: List[Article]) -> "StrategyResult":
        return cls(articles=articles)

    @classmethod
    def failure(cls, reason: str) -> "StrategyResult":
        return cls(reason=reason)


Strategy = Tuple[str, Callable[[], Awaitable[StrategyResult]]]


def clean_interests(interests: List[str]) -> List[str]:
    return [i.strip() for i in interests if isinstance(i, str) and i.strip()]


class BaseNewsSource(ABC):
    """
    Base article source that defines the interface for all news search backends

    Subclasses supply an ordered list of strategies; the first one that
    returns articles wins.
    """

    @abstractmethod
    def build_strategies(self, interests: List[str]) -> List[Strategy]:
        """
        Build the ordered fetch strategies for a request
        """
        pass

    async def fetch(self, interests: List[str]) -> List[Article]:
        """
        Fetch articles for the interests, trying each strategy in order

        Args:
            interests: Interest keywords

        Returns:
            List[Article]: Between 1 and MAX_ARTICLES articles

        Raises:
            ArticleSourceError: If no interest is usable or every strategy failed
        """
        valid_interests = clean_interests(interests)
        if not valid_interests:
            raise ArticleSourceError("No valid interests found. Please add some interests first.")

        logger.info(f"Searching for news with interests: {valid_interests}")

        for name, strategy in self.build_strategies(valid_interests):
            logger.info(f"Trying strategy: {name}")
            result = await strategy()
            if result.ok:
                logger.info(f"Strategy {name} successful, selected {len(result.articles)} articles")
                return result.articles[:MAX_ARTICLES]
            logger.info(f"Strategy {name} failed: {result.reason}")

        logger.error(f"All strategies failed for interests: {valid_interests}")
        raise ArticleSourceError(
            "Unable to find news articles. Please try again later or add more diverse interests."
        )
