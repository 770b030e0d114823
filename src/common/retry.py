"""
Bounded retry policy for outbound API calls.

The policy is asymmetric:
- Rate limited (429): back off and retry
- Transport error (connect/read failure): back off and retry, re-raise on the last attempt
- Any other non-success status: return immediately, no retry

Usage:
    from src.common.retry import RetryPolicy, call_with_retry

    response = await call_with_retry(lambda: client.post(url, json=payload), policy)
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, FrozenSet, Optional

import httpx

from .errors import RetryExhaustedError

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


def linear_backoff(base_seconds: float = 1.0) -> Callable[[int], float]:
    """Backoff of base_seconds * attempt (attempt is 1-based)."""
    def backoff(attempt: int) -> float:
        return base_seconds * attempt
    return backoff


@dataclass(frozen=True)
class RetryPolicy:
    """Declared retry behaviour for one external call site."""
    max_attempts: int = 3
    backoff: Callable[[int], float] = field(default_factory=linear_backoff)
    retry_on_status: FrozenSet[int] = frozenset({429})

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")

    def should_retry(self, response: httpx.Response) -> bool:
        """Whether a non-success response is transient under this policy."""
        return response.status_code in self.retry_on_status


async def call_with_retry(
    send: Callable[[], Awaitable[httpx.Response]],
    policy: RetryPolicy,
    sleep: Optional[Sleep] = None,
) -> httpx.Response:
    """
    Run send() under the given retry policy.

    Args:
        send: Zero-argument coroutine factory performing one HTTP request
        policy: Retry policy to apply
        sleep: Injectable sleep (defaults to asyncio.sleep)

    Returns:
        The first successful response, or the first non-retryable error response

    Raises:
        RetryExhaustedError: Every attempt returned a retryable status
        httpx.TransportError: The last attempt failed at the transport level
    """
    sleep = sleep or asyncio.sleep
    last_status: Optional[int] = None

    for attempt in range(1, policy.max_attempts + 1):
        try:
            response = await send()
        except httpx.TransportError as e:
            if attempt >= policy.max_attempts:
                logger.error(f"Transport error on final attempt {attempt}/{policy.max_attempts}: {e}")
                raise
            wait = policy.backoff(attempt)
            logger.warning(
                f"Transport error: {e}. Retrying in {wait:.1f}s "
                f"(attempt {attempt}/{policy.max_attempts})"
            )
            await sleep(wait)
            continue

        if response.is_success:
            return response

        if not policy.should_retry(response):
            return response

        last_status = response.status_code
        if attempt >= policy.max_attempts:
            break

        wait = policy.backoff(attempt)
        logger.warning(
            f"Rate limited ({response.status_code}). Retrying in {wait:.1f}s "
            f"(attempt {attempt}/{policy.max_attempts})"
        )
        await sleep(wait)

    raise RetryExhaustedError(policy.max_attempts, last_status)


def default_retry_policy() -> RetryPolicy:
    """Retry policy for Gemini calls, built from settings."""
    from ..config.settings import settings

    return RetryPolicy(
        max_attempts=settings.llm_max_retries,
        backoff=linear_backoff(settings.retry_backoff_seconds),
    )
