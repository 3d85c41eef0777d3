from typing import Optional, Dict, Any
import logging

import httpx

from newsfeed.core.config import Settings
from newsfeed.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class OpenAIClient:
    """Chat completion client for OpenAI or an Azure OpenAI deployment"""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient):
        self.settings = settings
        self.http_client = http_client

        if settings.use_azure_openai:
            self.api_key = settings.AZURE_OPENAI_API_KEY
            self.api_url = (
                f"{settings.AZURE_OPENAI_ENDPOINT.rstrip('/')}/openai/deployments/"
                f"{settings.AZURE_OPENAI_DEPLOYMENT_NAME}/chat/completions"
                f"?api-version={settings.AZURE_OPENAI_API_VERSION}"
            )
            self.headers = {
                "Content-Type": "application/json",
                "api-key": self.api_key or "",
            }
            self.model = None
        else:
            self.api_key = settings.OPENAI_API_KEY
            self.api_url = f"{settings.OPENAI_BASE_URL.rstrip('/')}/chat/completions"
            self.headers = {
                "Content-Type": "application/json",
                "Authorization": f"Bearer {self.api_key}",
            }
            self.model = settings.OPENAI_MODEL

    async def get_completion(
        self,
        messages: list,
        temperature: float = 0.7,
        max_tokens: Optional[int] = 150,
        **kwargs
    ) -> Dict[str, Any]:
        """
        Get AI completion result

        Args:
            messages: List of conversation messages
            temperature: Temperature parameter
            max_tokens: Maximum number of tokens
            **kwargs: Additional parameters

        Returns:
            Dict[str, Any]: API response result

        Raises:
            ConfigurationError: If no API key is configured
            httpx.HTTPError: On transport errors or non-2xx responses
        """
        if not self.api_key:
            key_name = "AZURE_OPENAI_API_KEY" if self.settings.use_azure_openai else "OPENAI_API_KEY"
            raise ConfigurationError([key_name])

        payload = {
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
            **kwargs
        }
        if self.model:
            payload["model"] = self.model

        try:
            response = await self.http_client.post(
                self.api_url,
                headers=self.headers,
                json=payload
            )
            response.raise_for_status()
            return response.json()

        except httpx.HTTPStatusError as e:
            logger.error(
                f"Chat completion API call failed: {e.response.status_code} {e.response.text}"
            )
            raise
        except httpx.HTTPError as e:
            logger.error(f"Chat completion API call failed: {str(e)}")
            raise
