"""
Dependencies for the news routes
"""

from typing import Annotated, Optional
from fastapi import Depends, Request

from newsfeed.core.config import Settings, settings
from newsfeed.services.news_stream_service import NewsStreamService


def get_settings() -> Settings:
    """Get application settings"""
    return settings


def get_news_stream_service(request: Request) -> Optional[NewsStreamService]:
    """
    Get the process-wide news service built in the lifespan

    Returns None when the cache database is not configured; routes report
    that as a configuration error.
    """
    return getattr(request.app.state, "news_stream_service", None)


SettingsDep = Annotated[Settings, Depends(get_settings)]
NewsStreamServiceDep = Annotated[Optional[NewsStreamService], Depends(get_news_stream_service)]
