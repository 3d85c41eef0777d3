"""
Base class for summary generators
"""

from abc import ABC, abstractmethod
from typing import List
import logging

from newsfeed.ai.providers import OpenAIClient
from newsfeed.schemas.news import Article, SummarizedArticle

logger = logging.getLogger(__name__)

MISSING_DATA_SUMMARY = "Article summary not available due to missing data."
FALLBACK_SUMMARY = "Unable to generate summary at this time. Please read the full article for details."


class BaseSummaryGenerator(ABC):
    """Base class for all summary generators"""

    def __init__(self, ai_client: OpenAIClient):
        self.ai_client = ai_client

    @abstractmethod
    async def generate_summary(self, article: Article) -> str:
        """
        Generate summary using AI model

        Args:
            article: Article to summarize

        Returns:
            str: Generated summary

        Raises:
            Exception: Any failure; callers convert it into the fallback summary
        """
        pass

    async def summarize_one(self, article: Article) -> SummarizedArticle:
        """
        Summarize a single article, never raising

        Args:
            article: Article to summarize

        Returns:
            SummarizedArticle: Article with a generated or fallback summary
        """
        if not article.title or not article.description:
            logger.warning(f"Skipping article with missing data: {article.title or 'No title'}")
            return SummarizedArticle(**article.model_dump(), summary=MISSING_DATA_SUMMARY)

        try:
            summary = await self.generate_summary(article)
        except Exception as e:
            logger.error(f"Error summarizing article {article.title}: {str(e)}")
            summary = FALLBACK_SUMMARY

        return SummarizedArticle(**article.model_dump(), summary=summary)

    async def summarize(self, articles: List[Article]) -> List[SummarizedArticle]:
        """
        Summarize articles one after another

        Args:
            articles: Articles to summarize

        Returns:
            List[SummarizedArticle]: Same length and order as `articles`
        """
        logger.info(f"Summarizing {len(articles)} articles")
        summarized_articles = []
        for article in articles:
            summarized_articles.append(await self.summarize_one(article))
        return summarized_articles
