"""
Fetch, summarize, stream and cache news for a user's interests
"""

from typing import AsyncIterator, List, Optional, Set, Tuple
import asyncio
import logging

from newsfeed.ai.services.summary_generator import BaseSummaryGenerator
from newsfeed.core.exceptions import ArticleSourceError, CacheStoreError
from newsfeed.schemas.news import (
    Article,
    ArticleEvent,
    CachedEvent,
    CompleteEvent,
    ErrorEvent,
    FirstArticleEvent,
    NewsRequest,
    NewsResponse,
    StreamEvent,
    SummarizedArticle,
    is_terminal,
)
from newsfeed.scrapers.base import BaseNewsSource
from newsfeed.services.news_cache_service import NewsCacheService

logger = logging.getLogger(__name__)


class EventChannel:
    """
    Queue of stream events between a pipeline run and the HTTP response

    Once closed (client went away) every emit is skipped, while the run
    itself keeps going.
    """

    def __init__(self):
        self.queue: asyncio.Queue = asyncio.Queue()
        self.closed = False
        self.terminated = False

    def emit(self, event: StreamEvent) -> bool:
        if is_terminal(event):
            self.terminated = True
        if self.closed:
            logger.debug(f"Channel closed, dropping {event.type} event")
            return False
        self.queue.put_nowait(event)
        return True

    def close(self) -> None:
        self.closed = True

    async def events(self) -> AsyncIterator[StreamEvent]:
        """Yield events until the terminal one"""
        while True:
            event = await self.queue.get()
            yield event
            if is_terminal(event):
                return


class NewsStreamService:
    """Streaming orchestrator over the article source, summarizer and cache"""

    def __init__(
        self,
        news_source: BaseNewsSource,
        summary_generator: BaseSummaryGenerator,
        cache: NewsCacheService,
    ):
        self.news_source = news_source
        self.summary_generator = summary_generator
        self.cache = cache
        self._runs: Set[asyncio.Task] = set()

    async def _lookup_cached(self, user_id: str, interests: List[str]) -> Optional[List[SummarizedArticle]]:
        try:
            return await self.cache.lookup(user_id, interests)
        except CacheStoreError as e:
            logger.error(f"Cache lookup failed, treating as miss: {str(e)}")
            return None

    async def _invalidate(self, user_id: str, interests: List[str]) -> None:
        try:
            await self.cache.invalidate(user_id, interests)
        except CacheStoreError as e:
            logger.error(f"Cache invalidation failed: {str(e)}")

    async def _commit(self, user_id: str, interests: List[str], articles: List[SummarizedArticle]) -> None:
        try:
            await self.cache.store(user_id, interests, articles)
        except CacheStoreError as e:
            logger.error(f"Cache write failed: {str(e)}")

    async def _summarize_indexed(self, index: int, article: Article) -> Tuple[int, SummarizedArticle]:
        return index, await self.summary_generator.summarize_one(article)

    async def _summarize_concurrently(
        self,
        articles: List[Article],
        channel: EventChannel,
    ) -> List[SummarizedArticle]:
        """
        Summarize every article concurrently, emitting each as soon as it completes

        Args:
            articles: Fetched articles
            channel: Destination for `first-article` and `article` events

        Returns:
            List[SummarizedArticle]: Results in the original article order
        """
        tasks = [
            asyncio.create_task(self._summarize_indexed(index, article))
            for index, article in enumerate(articles)
        ]
        results: List[Optional[SummarizedArticle]] = [None] * len(articles)
        first_emitted = False

        try:
            for completed in asyncio.as_completed(tasks):
                index, summarized = await completed
                if not first_emitted:
                    channel.emit(FirstArticleEvent())
                    first_emitted = True
                results[index] = summarized
                channel.emit(ArticleEvent(index=index, article=summarized))
        finally:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

        return results

    async def _cached_or_invalidated(self, request: NewsRequest) -> Optional[List[SummarizedArticle]]:
        """Cache check step: force-refresh invalidates, otherwise look up"""
        if request.force_refresh:
            logger.info(f"Force refresh requested for user {request.user_id}")
            await self._invalidate(request.user_id, request.interests)
            return None
        return await self._lookup_cached(request.user_id, request.interests)

    async def run(self, request: NewsRequest, channel: EventChannel) -> Optional[List[SummarizedArticle]]:
        """
        Execute the pipeline for one request, reporting progress on `channel`

        Exactly one terminal event (`complete` or `error`) is emitted.

        Args:
            request: Validated news request
            channel: Event destination

        Returns:
            Optional[List[SummarizedArticle]]: Final articles, None if the run failed
        """
        try:
            cached = await self._cached_or_invalidated(request)
            if cached is not None:
                channel.emit(CachedEvent(articles=cached))
                channel.emit(CompleteEvent(total_articles=len(cached), from_cache=True))
                return cached

            articles = await self.news_source.fetch(request.interests)
            logger.info(f"Streaming {len(articles)} articles for user {request.user_id}")

            summarized = await self._summarize_concurrently(articles, channel)
            await self._commit(request.user_id, request.interests, summarized)

            channel.emit(CompleteEvent(total_articles=len(summarized), from_cache=False))
            return summarized

        except ArticleSourceError as e:
            logger.error(f"Article fetch failed: {str(e)}")
            channel.emit(ErrorEvent(error=str(e)))
        except Exception as e:
            logger.exception(f"Error in streaming: {str(e)}")
            channel.emit(ErrorEvent(error=str(e) or "Unknown error"))
        finally:
            if not channel.terminated:
                logger.warning(f"News run for user {request.user_id} ended without a terminal event")
                channel.emit(ErrorEvent(error="News run was cancelled"))
        return None

    def start(self, request: NewsRequest) -> EventChannel:
        """
        Launch a detached run and return the channel it reports on

        The run is not tied to the response, so it finishes (and warms the
        cache) even when the client disconnects.
        """
        channel = EventChannel()
        task = asyncio.create_task(self.run(request, channel))
        self._runs.add(task)
        task.add_done_callback(self._runs.discard)
        return channel

    async def drain(self) -> None:
        """Wait for detached runs still in flight"""
        if self._runs:
            logger.info(f"Waiting for {len(self._runs)} news runs to finish")
            await asyncio.gather(*self._runs, return_exceptions=True)

    async def collect(self, request: NewsRequest) -> NewsResponse:
        """
        Non-streaming variant: run the pipeline and return every article at once

        Raises:
            ArticleSourceError: If no articles could be fetched
        """
        cached = await self._cached_or_invalidated(request)
        if cached is not None:
            return NewsResponse(articles=cached, total_articles=len(cached), from_cache=True)

        articles = await self.news_source.fetch(request.interests)
        summarized = await self.summary_generator.summarize(articles)
        await self._commit(request.user_id, request.interests, summarized)
        return NewsResponse(articles=summarized, total_articles=len(summarized), from_cache=False)
