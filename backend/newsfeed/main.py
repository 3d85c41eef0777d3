from contextlib import asynccontextmanager
import logging

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.cors import CORSMiddleware

from newsfeed.ai.providers import OpenAIClient
from newsfeed.ai.services.summary_generator import ArticleSummaryGenerator
from newsfeed.api.main import api_router
from newsfeed.core.config import Settings, settings
from newsfeed.core.log_config import LogConfig
from newsfeed.db.session import Database
from newsfeed.scrapers.newsapi import NewsAPIClient
from newsfeed.services.news_cache_service import CacheSweeper, NewsCacheService
from newsfeed.services.news_stream_service import NewsStreamService

logger = logging.getLogger(__name__)


def build_news_stream_service(
    app_settings: Settings,
    http_client: httpx.AsyncClient,
    database: Database,
) -> NewsStreamService:
    """Wire the article source, summarizer and cache around shared connections"""
    return NewsStreamService(
        news_source=NewsAPIClient(app_settings, http_client),
        summary_generator=ArticleSummaryGenerator(OpenAIClient(app_settings, http_client)),
        cache=NewsCacheService(database, tz_name=app_settings.CACHE_TIMEZONE),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    LogConfig().setup()

    http_client = httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS)
    database = None
    sweeper = None
    service = None

    if settings.SQLALCHEMY_DATABASE_URI:
        database = Database(
            settings.SQLALCHEMY_DATABASE_URI,
            echo=settings.ENVIRONMENT == "local" and settings.DEBUG_SQL,
        )
        await database.init_db()
        service = build_news_stream_service(settings, http_client, database)
        sweeper = CacheSweeper(service.cache, settings.CACHE_SWEEP_INTERVAL_SECONDS).start()
    else:
        logger.warning("No cache database configured, news endpoints will report a configuration error")

    missing = settings.missing_credentials()
    if missing:
        logger.warning(f"Missing required environment variables: {', '.join(missing)}")

    app.state.http_client = http_client
    app.state.database = database
    app.state.news_stream_service = service

    yield

    if sweeper:
        await sweeper.stop()
    if service:
        await service.drain()
    await http_client.aclose()
    if database:
        await database.close()


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.PROJECT_NAME,
        openapi_url=f"{settings.API_V1_STR}/openapi.json",
        lifespan=lifespan,
    )

    if settings.all_cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.all_cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.info(f"Rejected malformed request to {request.url.path}: {exc.errors()}")
        return JSONResponse(status_code=400, content={"error": "Invalid request body"})

    app.include_router(api_router, prefix=settings.API_V1_STR)
    return app


app = create_app()
