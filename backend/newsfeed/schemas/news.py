"""
News pipeline schemas
"""

from typing import List, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator


class Article(BaseModel):
    """Normalized article returned by the news search API"""
    title: str
    description: str
    category: str
    url: str


class SummarizedArticle(Article):
    """Article with its generated (or fallback) summary"""
    summary: str


def normalize_interests(interests: List[str]) -> List[str]:
    """
    Build the cache key form of an interest set

    Blank entries are dropped, the rest are deduplicated and sorted. Case is
    preserved, so "Tech" and "tech" are different interests.
    """
    return sorted({interest.strip() for interest in interests if interest and interest.strip()})


class NewsRequest(BaseModel):
    """Request body shared by the news endpoints"""
    model_config = ConfigDict(populate_by_name=True)

    interests: List[str] = Field(default_factory=list)
    user_id: str = Field(default="", alias="userId")
    force_refresh: bool = Field(default=False, alias="forceRefresh")

    @field_validator("interests", mode="before")
    @classmethod
    def _drop_blank_interests(cls, v):
        if isinstance(v, list):
            # Non-string entries are left for type validation to reject
            return [i for i in v if not (isinstance(i, str) and not i.strip())]
        return v

    @field_validator("user_id", mode="before")
    @classmethod
    def _strip_user_id(cls, v):
        if v is None:
            return ""
        return v.strip() if isinstance(v, str) else v

    def validation_error(self) -> Optional[str]:
        """Return a message when the request must be rejected before streaming"""
        if not self.interests:
            return "Interests are required"
        if not self.user_id:
            return "User ID is required"
        return None


class NewsResponse(BaseModel):
    """Non-streaming response of the news endpoint"""
    model_config = ConfigDict(populate_by_name=True)

    articles: List[SummarizedArticle]
    total_articles: int = Field(serialization_alias="totalArticles")
    from_cache: bool = Field(serialization_alias="fromCache")


# Stream events, serialized as `data: <json>\n\n` frames

class CachedEvent(BaseModel):
    type: Literal["cached"] = "cached"
    articles: List[SummarizedArticle]


class FirstArticleEvent(BaseModel):
    type: Literal["first-article"] = "first-article"


class ArticleEvent(BaseModel):
    type: Literal["article"] = "article"
    index: int
    article: SummarizedArticle


class CompleteEvent(BaseModel):
    type: Literal["complete"] = "complete"
    total_articles: int = Field(serialization_alias="totalArticles")
    from_cache: bool = Field(serialization_alias="fromCache")


class ErrorEvent(BaseModel):
    type: Literal["error"] = "error"
    error: str
    terminal: bool = True


StreamEvent = Union[CachedEvent, FirstArticleEvent, ArticleEvent, CompleteEvent, ErrorEvent]


def is_terminal(event: StreamEvent) -> bool:
    return isinstance(event, CompleteEvent) or (isinstance(event, ErrorEvent) and event.terminal)


def to_sse(event: StreamEvent) -> str:
    """Encode an event as a Server-Sent Events data frame"""
    return f"data: {event.model_dump_json(by_alias=True)}\n\n"
