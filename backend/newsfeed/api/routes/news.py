"""
News routes
"""

from typing import Optional
from fastapi import APIRouter
from fastapi.responses import JSONResponse, StreamingResponse
import logging

from newsfeed.api.deps import NewsStreamServiceDep, SettingsDep
from newsfeed.core.exceptions import ArticleSourceError, CacheStoreError
from newsfeed.schemas.news import NewsRequest, NewsResponse, to_sse

logger = logging.getLogger(__name__)
router = APIRouter()

STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def error_response(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message, **extra})


def precheck(
    body: NewsRequest,
    settings: SettingsDep,
    service: NewsStreamServiceDep,
) -> Optional[JSONResponse]:
    """Reject invalid input (400) and missing configuration (500) before any upstream call"""
    message = body.validation_error()
    if message:
        return error_response(400, message)

    missing = settings.missing_credentials()
    if missing or service is None:
        logger.error(f"News request rejected, missing configuration: {missing}")
        return error_response(500, "API keys not configured", missing=missing)
    return None


@router.post("/stream")
async def stream_news(
    body: NewsRequest,
    settings: SettingsDep,
    service: NewsStreamServiceDep,
):
    """
    Stream summarized articles for the user's interests as Server-Sent Events

    Frames are `data: <json>\\n\\n`, with `type` one of `cached`,
    `first-article`, `article`, `complete` or `error`.
    """
    rejected = precheck(body, settings, service)
    if rejected:
        return rejected

    logger.info(f"Received streaming request for interests: {body.interests}")
    channel = service.start(body)

    async def event_stream():
        try:
            async for event in channel.events():
                yield to_sse(event)
        finally:
            # Client disconnected or stream finished, stop queueing frames
            channel.close()

    return StreamingResponse(event_stream(), media_type="text/event-stream", headers=STREAM_HEADERS)


@router.post("", response_model=NewsResponse)
async def get_news(
    body: NewsRequest,
    settings: SettingsDep,
    service: NewsStreamServiceDep,
):
    """Fetch and summarize articles in one response, without streaming"""
    rejected = precheck(body, settings, service)
    if rejected:
        return rejected

    try:
        return await service.collect(body)
    except ArticleSourceError as e:
        logger.error(f"Article fetch failed: {str(e)}")
        return error_response(502, str(e))


@router.delete("/cache")
async def clear_news_cache(
    body: NewsRequest,
    settings: SettingsDep,
    service: NewsStreamServiceDep,
):
    """Drop the cached articles for one interest set"""
    rejected = precheck(body, settings, service)
    if rejected:
        return rejected

    try:
        await service.cache.invalidate(body.user_id, body.interests)
    except CacheStoreError as e:
        logger.error(f"Error forcing cache refresh: {str(e)}")
        return error_response(500, "Failed to clear cache")
    return {"status": "cleared"}
