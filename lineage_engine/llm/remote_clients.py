"""Remote text-generation clients.

Provides the ``ModelClient`` capability used by the resilient invoker and an
OpenRouter implementation over httpx. Throttling surfaces as ``RateLimitError``
so the invoker can retry it; every other failure is fatal.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Optional

import httpx

from lineage_engine.config.settings import OpenRouterSettings
from lineage_engine.utils.exceptions import ConfigurationError, ModelInvocationError, RateLimitError

logger = logging.getLogger(__name__)


class ModelClient(ABC):
    """A text-generation model reachable over the network."""

    @abstractmethod
    async def invoke_model(self, prompt: str) -> str:
        """Return the model's text for ``prompt``.

        Raises:
            RateLimitError: If the provider throttles the request
            ModelInvocationError: For any other failure
        """
        raise NotImplementedError


class OpenRouterClient(ModelClient):
    """Client for the OpenRouter chat-completions API."""

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str = "https://openrouter.ai/api/v1",
        timeout: float = 120.0,
        referer: str = "https://github.com/your-repo",
        max_tokens: int = 4096,
        temperature: float = 0.1,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        log: Optional[logging.Logger] = None,
    ):
        """Initialize OpenRouter client.

        Args:
            api_key: OpenRouter API key from openrouter.ai
            model: Model name used for every call
            base_url: API base URL
            timeout: Request timeout in seconds
            referer: HTTP referer header value for OpenRouter requirements
            max_tokens: Maximum tokens to generate
            temperature: Sampling temperature
            transport: Optional httpx transport (used by tests)
            log: Optional logger
        """
        if not api_key:
            raise ConfigurationError("OPENROUTER_API_KEY is required for OpenRouterClient")
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.referer = referer
        self.max_tokens = max_tokens
        self.temperature = temperature
        self._transport = transport
        self._logger = log or logger

    @classmethod
    def from_settings(
        cls,
        settings: OpenRouterSettings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "OpenRouterClient":
        return cls(
            api_key=settings.api_key,
            model=settings.model,
            base_url=settings.base_url,
            timeout=settings.timeout_seconds,
            referer=settings.referer,
            max_tokens=settings.max_tokens,
            temperature=settings.temperature,
            transport=transport,
        )

    async def invoke_model(self, prompt: str) -> str:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            try:
                response = await client.post(
                    f"{self.base_url}/chat/completions",
                    headers={
                        "Authorization": f"Bearer {self.api_key}",
                        "Content-Type": "application/json",
                        "HTTP-Referer": self.referer,  # Required by OpenRouter
                    },
                    json={
                        "model": self.model,
                        "messages": [{"role": "user", "content": prompt}],
                        "max_tokens": self.max_tokens,
                        "temperature": self.temperature,
                    },
                )
            except httpx.HTTPError as exc:
                self._logger.error(f"OpenRouter request failed: {exc}")
                raise ModelInvocationError(f"OpenRouter request failed: {exc}") from exc

        if response.status_code == 429:
            self._logger.warning("OpenRouter rate limit hit (model: %s)", self.model)
            raise RateLimitError(
                "OpenRouter rate limit exceeded",
                retry_after=self._retry_after_seconds(response),
            )

        try:
            response.raise_for_status()
            data = response.json()
            content = data["choices"][0]["message"]["content"]
        except httpx.HTTPStatusError as exc:
            self._logger.error(f"OpenRouter API error: {exc}")
            raise ModelInvocationError(f"OpenRouter API error: {exc}") from exc
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            self._logger.error(f"Unexpected OpenRouter response shape: {exc}")
            raise ModelInvocationError(f"Unexpected OpenRouter response: {exc}") from exc

        return (content or "").strip()

    def _retry_after_seconds(self, response: httpx.Response) -> Optional[int]:
        retry_after = response.headers.get("Retry-After")
        if not retry_after:
            return None
        try:
            return int(retry_after)
        except ValueError:
            return None
