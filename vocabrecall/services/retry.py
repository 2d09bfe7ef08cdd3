"""Retry policy for enrichment calls: capped exponential backoff."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Sequence

from ..config import Config
from ..exceptions import (
    EnrichmentError,
    MalformedResponseError,
    RateLimitedError,
    UpstreamError,
)
from ..models import EnrichmentResult
from .ai_service import EnrichmentProvider

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    """
    How often and how long to wait before retrying an enrichment call.

    Delays double per attempt (base_delay * 2 ** attempt) up to max_delay.
    Rate-limited attempts wait rate_limit_multiplier times longer, or the
    server's Retry-After when that is longer still.
    """
    max_attempts: int = 4
    base_delay: float = 1.0
    max_delay: float = 30.0
    rate_limit_multiplier: float = 2.0

    @classmethod
    def from_config(cls) -> "RetryPolicy":
        return cls(
            max_attempts=max(1, Config.RETRIES),
            base_delay=Config.RETRY_BASE_DELAY,
            max_delay=Config.RETRY_MAX_DELAY,
        )

    def is_retryable(self, error: Exception) -> bool:
        # Missing credentials will not fix themselves
        return isinstance(error, (RateLimitedError, UpstreamError, MalformedResponseError))

    def delay_for(self, attempt: int, error: Optional[Exception] = None) -> float:
        """
        Seconds to wait after the given (0-based) failed attempt.

        Args:
            attempt: Index of the attempt that just failed
            error: The failure, to special-case rate limiting
        """
        delay = self.base_delay * (2 ** attempt)
        if isinstance(error, RateLimitedError):
            delay *= self.rate_limit_multiplier
            if error.retry_after is not None:
                delay = max(delay, error.retry_after)
        return min(self.max_delay, delay)


class RetryingEnrichmentProvider(EnrichmentProvider):
    """
    Wraps a provider and retries retryable failures.

    The final failure propagates unchanged so the caller still sees which
    kind of error ended the attempts.
    """

    def __init__(
        self,
        inner: EnrichmentProvider,
        policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.inner = inner
        self.policy = policy or RetryPolicy()
        self._sleep = sleep

    async def enrich(self, word: str, synonyms: Optional[Sequence[str]] = None) -> EnrichmentResult:
        last_error: Optional[EnrichmentError] = None
        for attempt in range(self.policy.max_attempts):
            try:
                return await self.inner.enrich(word, synonyms)
            except EnrichmentError as e:
                last_error = e
                if not self.policy.is_retryable(e) or attempt == self.policy.max_attempts - 1:
                    raise
                delay = self.policy.delay_for(attempt, e)
                logger.warning(
                    "Enrichment for %r failed (%s), retrying in %.1fs (%d attempts left)",
                    word, e, delay, self.policy.max_attempts - attempt - 1,
                )
                await self._sleep(delay)

        # max_attempts < 1 never enters the loop
        raise last_error or UpstreamError("No enrichment attempts were made")

    async def close(self) -> None:
        await self.inner.close()
