from typing import List


class NewsFeedError(Exception):
    """Base exception for the news pipeline"""
    pass


class ConfigurationError(NewsFeedError):
    """Required credentials or settings are missing"""

    def __init__(self, missing: List[str]):
        self.missing = missing
        super().__init__(f"Missing required configuration: {', '.join(missing)}")


class ArticleSourceError(NewsFeedError):
    """Every article fetch strategy came back empty"""
    pass


class SummarizationError(NewsFeedError):
    """A single article could not be summarized"""
    pass


class CacheStoreError(NewsFeedError):
    """Cache database operation failed"""
    pass
