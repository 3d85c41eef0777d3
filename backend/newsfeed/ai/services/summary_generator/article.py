"""
Single article summary generator
"""

import logging

from .base import BaseSummaryGenerator
from .prompts.article import SYSTEM_PROMPT, USER_PROMPT
from newsfeed.core.exceptions import SummarizationError
from newsfeed.schemas.news import Article

logger = logging.getLogger(__name__)

MIN_SUMMARY_LENGTH = 10

# Phrasing that means the model answered with an apology instead of a summary
REFUSAL_PHRASES = (
    "apologies",
    "couldn't find",
    "i'm sorry",
    "i cannot",
)


def validate_summary(summary: str) -> str:
    """
    Reject empty, too short or refusal responses

    Raises:
        SummarizationError: If the text is not usable as a summary
    """
    if not summary or len(summary) < MIN_SUMMARY_LENGTH:
        raise SummarizationError("Summary too short or empty")

    lowered = summary.lower()
    if any(phrase in lowered for phrase in REFUSAL_PHRASES):
        raise SummarizationError("Model returned an error message instead of a summary")

    return summary


class ArticleSummaryGenerator(BaseSummaryGenerator):
    """Generator for single article summaries"""

    async def generate_summary(self, article: Article) -> str:
        messages = [
            {
                "role": "system",
                "content": SYSTEM_PROMPT
            },
            {
                "role": "user",
                "content": USER_PROMPT.format(
                    title=article.title,
                    description=article.description,
                    category=article.category,
                )
            }
        ]

        response = await self.ai_client.get_completion(
            messages=messages,
            temperature=0.7,
            max_tokens=150
        )

        try:
            content = response["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError) as e:
            raise SummarizationError(f"Unexpected completion response: {str(e)}") from e

        return validate_summary(content.strip())
