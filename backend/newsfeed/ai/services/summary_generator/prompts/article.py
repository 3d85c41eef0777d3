"""
Prompts for single article summary generation
"""

SYSTEM_PROMPT = (
    "You are a helpful assistant that creates concise, engaging summaries of news articles. "
    "Provide clear, informative summaries."
)

USER_PROMPT = """Please provide a concise, engaging summary of the following news article.
The summary should be 5-10 sentences that capture the key points and main story.
Focus on the most important information and make it easy to understand.

Article Title: {title}
Article Description: {description}
Category: {category}

Summary:"""
