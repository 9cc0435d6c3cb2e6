"""
AI Service - Chat completion client for spreadsheet analysis
"""

import logging
from typing import Optional
from openai import AsyncAzureOpenAI, AsyncOpenAI, OpenAIError

from app.config import CompletionOptions
from app.core.exceptions import CompletionError

logger = logging.getLogger(__name__)


class CompletionService:
    """One chat completion round trip per call. No streaming, no retries."""

    def __init__(self, client, options: Optional[CompletionOptions] = None):
        self.client = client
        self.options = options or CompletionOptions()

    async def complete(
        self,
        system_text: str,
        user_text: str,
        max_tokens: Optional[int] = None
    ) -> str:
        """
        Send a system + user prompt and return the generated text

        Args:
            system_text: System context
            user_text: User message
            max_tokens: Overrides the configured output bound when set

        Returns:
            Assistant message text

        Raises:
            CompletionError: if the API call fails or returns no content
        """
        try:
            response = await self.client.chat.completions.create(
                model=self.options.model,
                messages=[
                    {"role": "system", "content": system_text},
                    {"role": "user", "content": user_text}
                ],
                temperature=self.options.temperature,
                max_tokens=max_tokens or self.options.max_tokens
            )
        except OpenAIError as e:
            logger.error(f"Chat completion failed: {e}")
            raise CompletionError(str(e)) from e

        if not response.choices:
            raise CompletionError("The model returned no choices")

        content = response.choices[0].message.content
        if not content or not content.strip():
            raise CompletionError("The model returned an empty response")

        logger.info(f"Generated completion: {len(content)} characters")
        return content


def build_completion_service(settings, http_client=None) -> CompletionService:
    """
    Create the completion service for the configured provider

    SDK retries are disabled: each complete() call is a single request.
    """
    if settings.AI_PROVIDER == "azure":
        client = AsyncAzureOpenAI(
            api_key=settings.AZURE_OPENAI_KEY,
            api_version=settings.AZURE_OPENAI_API_VERSION,
            azure_endpoint=settings.AZURE_OPENAI_ENDPOINT,
            max_retries=0,
            http_client=http_client
        )
        logger.info(f"Initialized Azure OpenAI with deployment: {settings.OPENAI_MODEL}")
    else:
        client = AsyncOpenAI(
            api_key=settings.OPENAI_API_KEY,
            max_retries=0,
            http_client=http_client
        )
        logger.info(f"Initialized OpenAI with model: {settings.OPENAI_MODEL}")
    return CompletionService(client, settings.completion_options)
