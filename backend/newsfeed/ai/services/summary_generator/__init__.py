from .base import BaseSummaryGenerator, FALLBACK_SUMMARY, MISSING_DATA_SUMMARY
from .article import ArticleSummaryGenerator

__all__ = [
    'BaseSummaryGenerator',
    'ArticleSummaryGenerator',
    'FALLBACK_SUMMARY',
    'MISSING_DATA_SUMMARY',
]
