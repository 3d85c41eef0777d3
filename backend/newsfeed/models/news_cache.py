from datetime import datetime, timezone
from typing import Dict, List, Optional

from sqlalchemy import JSON, Column, DateTime, UniqueConstraint
from sqlmodel import Field, SQLModel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CachedNews(SQLModel, table=True):
    """Summarized articles cached per user and interest set until the next midnight"""
    __tablename__ = "cached_news"
    __table_args__ = (
        UniqueConstraint("user_id", "interests_key", name="uq_cached_news_user_interests"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(index=True)
    interests: List[str] = Field(default=[], sa_type=JSON)   # Sorted, deduplicated
    interests_key: str                                       # Canonical text form of `interests`
    articles: List[Dict] = Field(default=[], sa_type=JSON)   # SummarizedArticle dicts

    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
    expires_at: datetime = Field(
        sa_column=Column(DateTime(timezone=True), nullable=False, index=True),
    )

