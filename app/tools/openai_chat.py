"""Chat completion client used by the writer and the analysis agents."""
from __future__ import annotations

import logging
from typing import Any, AsyncIterator, Optional

from openai import AsyncOpenAI, OpenAIError

from app.config import OpenAISettings
from app.exceptions import ConfigurationError, LLMError

logger = logging.getLogger(__name__)


class OpenAIChatClient:
    """Thin wrapper over ``AsyncOpenAI`` chat completions.

    The SDK client is created on first use, so a missing key only fails the
    requests that need the model.
    """

    def __init__(self, settings: OpenAISettings, client: Optional[Any] = None) -> None:
        self.settings = settings
        self._client = client

    def _get_client(self) -> Any:
        if self._client is None:
            if not self.settings.api_key:
                raise ConfigurationError("OPENAI_API_KEY missing")
            self._client = AsyncOpenAI(api_key=self.settings.api_key)
        return self._client

    def _request(self, prompt: str, max_tokens: Optional[int], **extra: Any) -> dict:
        return {
            "model": self.settings.model,
            "messages": [{"role": "user", "content": prompt}],
            "max_completion_tokens": max_tokens or self.settings.max_tokens,
            "temperature": self.settings.temperature,
            **extra,
        }

    async def complete(self, prompt: str, max_tokens: Optional[int] = None) -> str:
        client = self._get_client()
        try:
            response = await client.chat.completions.create(**self._request(prompt, max_tokens))
        except OpenAIError as exc:
            raise LLMError(f"Chat completion failed: {exc}") from exc
        if not response.choices:
            return ""
        return response.choices[0].message.content or ""

    async def stream(self, prompt: str, max_tokens: Optional[int] = None) -> AsyncIterator[str]:
        """Yield content deltas as the model produces them."""

        client = self._get_client()
        try:
            stream = await client.chat.completions.create(**self._request(prompt, max_tokens, stream=True))
            async for chunk in stream:
                if not chunk.choices:
                    continue
                content = chunk.choices[0].delta.content
                if content:
                    yield content
        except OpenAIError as exc:
            raise LLMError(f"Chat completion stream failed: {exc}") from exc
