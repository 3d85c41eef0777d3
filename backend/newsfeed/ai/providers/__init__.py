from .openai_client import OpenAIClient

__all__ = ['OpenAIClient']
