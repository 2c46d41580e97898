"""
OpenRouter chat-completions client used by the AI agent.
"""

import logging
from typing import Optional

import httpx

from codeclash.core import config
from codeclash.core.errors import RateLimited, RequestTimeout, UpstreamError

logger = logging.getLogger(__name__)

NO_RESPONSE = "No response from AI"


class OpenRouterClient:
    def __init__(
        self,
        url: str,
        api_key: str,
        model: str,
        timeout: float = 30.0,
        max_tokens: int = 1000,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self.max_tokens = max_tokens
        self.transport = transport

    @classmethod
    def from_config(cls) -> "OpenRouterClient":
        return cls(
            url=config.OPENROUTER_URL,
            api_key=config.OPENROUTER_API_KEY,
            model=config.OPENROUTER_MODEL,
            timeout=config.AI_TIMEOUT_SECONDS,
            max_tokens=config.AI_MAX_TOKENS,
        )

    async def complete(self, query: str) -> str:
        """
        Single-turn completion

        Raises:
            408: Timed out
            429: Upstream rate limit
            500: Any other upstream failure
        """
        payload = {
            "model": self.model,
            "messages": [{"role": "user", "content": query}],
            "max_tokens": self.max_tokens,
        }
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "X-Title": "CodeClash AI Agent",
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(self.url, json=payload, headers=headers)
        except httpx.TimeoutException:
            logger.warning("OpenRouter request timed out after %ss", self.timeout)
            raise RequestTimeout("AI request timeout")
        except httpx.HTTPError as e:
            logger.error("OpenRouter request failed: %s", e)
            raise UpstreamError("Failed to get AI response")

        if response.status_code == 429:
            logger.warning("OpenRouter rate limit hit")
            raise RateLimited("AI service rate limit exceeded")
        if response.status_code >= 400:
            logger.error("OpenRouter returned %s", response.status_code)
            raise UpstreamError("Failed to get AI response")

        try:
            data = response.json()
        except ValueError:
            raise UpstreamError("Failed to get AI response")

        if not isinstance(data, dict):
            logger.error("OpenRouter returned a non-object body")
            raise UpstreamError("Failed to get AI response")

        choices = data.get("choices") or [{}]
        first = choices[0] if isinstance(choices, list) and isinstance(choices[0], dict) else {}
        message = first.get("message")
        content = message.get("content") if isinstance(message, dict) else None
        return content or NO_RESPONSE
