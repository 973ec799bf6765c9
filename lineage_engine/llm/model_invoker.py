"""Resilient model invocation with bounded exponential backoff and jitter.

Throttling errors are retried up to ``max_retries`` times; the delay before
retry *n* is ``base_delay * 2 ** (n - 1)`` jittered by +/- ``jitter_ratio``.
Anything else fails immediately.
"""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Awaitable, Callable, Optional

from lineage_engine.config.settings import RetrySettings
from lineage_engine.utils.constants import (
    DEFAULT_BASE_DELAY_MS,
    DEFAULT_JITTER_RATIO,
    DEFAULT_MAX_RETRIES,
)
from lineage_engine.utils.exceptions import (
    ModelInvocationError,
    RateLimitError,
    RetriesExhausted,
)

from .remote_clients import ModelClient

logger = logging.getLogger(__name__)

Sleeper = Callable[[float], Awaitable[None]]

THROTTLING_SIGNATURES = (
    "throttl",
    "rate limit",
    "rate exceeded",
    "ratelimit",
    "too many requests",
    "429",
)


def is_transient_error(error: BaseException) -> bool:
    """Return True for rate-limit / throttling failures."""
    if isinstance(error, RateLimitError):
        return True
    if isinstance(error, ModelInvocationError):
        return error.transient
    signature = f"{type(error).__name__} {error}".lower()
    return any(token in signature for token in THROTTLING_SIGNATURES)


class ResilientModelInvoker:
    """Calls a model client, retrying throttled requests.

    Example:
        >>> invoker = ResilientModelInvoker(client)
        >>> text = await invoker.invoke(prompt)
    """

    def __init__(
        self,
        client: ModelClient,
        max_retries: int = DEFAULT_MAX_RETRIES,
        base_delay_ms: int = DEFAULT_BASE_DELAY_MS,
        jitter_ratio: float = DEFAULT_JITTER_RATIO,
        sleep: Sleeper = asyncio.sleep,
        rng: Optional[random.Random] = None,
        log: Optional[logging.Logger] = None,
    ):
        """Initialize the invoker.

        Args:
            client: Model client exposing ``invoke_model(prompt)``
            max_retries: Retries after the first attempt
            base_delay_ms: Delay before the first retry, in milliseconds
            jitter_ratio: Jitter drawn uniformly from +/- this share of the delay
            sleep: Awaitable sleep taking seconds
            rng: Random source for jitter
            log: Optional logger
        """
        self.client = client
        self.max_retries = max_retries
        self.base_delay_ms = base_delay_ms
        self.jitter_ratio = jitter_ratio
        self._sleep = sleep
        self._rng = rng or random.Random()
        self._logger = log or logger

    @classmethod
    def from_settings(
        cls,
        client: ModelClient,
        settings: RetrySettings,
        **kwargs,
    ) -> "ResilientModelInvoker":
        return cls(
            client,
            max_retries=settings.max_retries,
            base_delay_ms=settings.base_delay_ms,
            jitter_ratio=settings.jitter_ratio,
            **kwargs,
        )

    def backoff_delay_ms(self, attempt: int) -> float:
        """Un-jittered delay before retry ``attempt`` (1-indexed)."""
        return self.base_delay_ms * (2 ** (attempt - 1))

    def jittered_delay_ms(self, attempt: int) -> float:
        delay = self.backoff_delay_ms(attempt)
        spread = delay * self.jitter_ratio
        return max(0.0, delay + self._rng.uniform(-spread, spread))

    async def invoke(self, prompt: str) -> str:
        """Invoke the model, retrying transient failures.

        Args:
            prompt: Prompt text

        Returns:
            Raw model text

        Raises:
            ModelInvocationError: On a fatal (non-throttling) failure
            RetriesExhausted: When every retry was throttled
        """
        total_attempts = self.max_retries + 1
        last_error = ""

        for attempt in range(1, total_attempts + 1):
            try:
                return await self.client.invoke_model(prompt)
            except Exception as exc:
                if not is_transient_error(exc):
                    self._logger.error(f"Model invocation failed (non-retryable): {exc}")
                    if isinstance(exc, ModelInvocationError):
                        raise
                    raise ModelInvocationError(str(exc), transient=False) from exc

                last_error = str(exc)
                if attempt == total_attempts:
                    break

                delay_ms = self.jittered_delay_ms(attempt)
                self._logger.warning(
                    f"Model throttled on attempt {attempt}/{total_attempts}: {exc}. "
                    f"Retrying in {delay_ms:.0f}ms..."
                )
                await self._sleep(delay_ms / 1000.0)

        self._logger.error(f"All {total_attempts} model invocation attempts were throttled")
        raise RetriesExhausted(attempts=total_attempts, last_error=last_error)
