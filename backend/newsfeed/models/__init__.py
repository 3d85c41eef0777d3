from sqlmodel import SQLModel

from .news_cache import CachedNews

__all__ = [
    'SQLModel',
    'CachedNews',
]
