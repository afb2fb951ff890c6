"""Exponential backoff driver for provider calls.

Retryability is decided by a static table keyed on error kind. It is kept
separate from the hybrid provider's fallback table on purpose: the two
policies answer different questions and are tested independently.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

from careerbench.core.config import RetrySettings
from careerbench.core.exceptions import AIProviderError, ErrorKind, UnknownProviderError
from careerbench.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

RETRYABLE_KINDS: dict[ErrorKind, bool] = {
    ErrorKind.NETWORK: True,
    ErrorKind.RATE_LIMIT_EXCEEDED: True,
    ErrorKind.INVALID_RESPONSE: True,
    ErrorKind.INVALID_API_KEY: False,
    ErrorKind.VALIDATION: False,
    ErrorKind.MODEL_NOT_FOUND: False,
    ErrorKind.UNKNOWN: False,
}

# Unknown errors are retried only when their message looks like a transport issue.
NETWORK_HINTS: tuple[str, ...] = ("network", "connection", "timeout", "timed out")


@dataclass(frozen=True)
class RetryConfig:
    """Backoff parameters, fixed for the duration of one call."""

    max_retries: int = 3
    initial_delay: float = 0.5  # seconds
    max_delay: float = 10.0
    multiplier: float = 2.0

    @classmethod
    def from_settings(cls, settings: RetrySettings) -> RetryConfig:
        return cls(
            max_retries=settings.max_retries,
            initial_delay=settings.initial_delay_ms / 1000,
            max_delay=settings.max_delay_ms / 1000,
            multiplier=settings.multiplier,
        )


def is_retryable_error(error: AIProviderError) -> bool:
    if error.kind is ErrorKind.UNKNOWN:
        message = str(error).lower()
        return any(hint in message for hint in NETWORK_HINTS)
    return RETRYABLE_KINDS[error.kind]


async def retry(
    operation: Callable[[], Awaitable[T]],
    config: RetryConfig,
    *,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Run ``operation`` up to ``max_retries + 1`` times with exponential backoff.

    Non-retryable errors are raised immediately. When attempts run out the
    last error is raised.
    """
    delay = config.initial_delay
    last_error: AIProviderError | None = None

    for attempt in range(config.max_retries + 1):
        try:
            result = await operation()
        except AIProviderError as exc:
            if not is_retryable_error(exc):
                logger.warning("Non-retryable error encountered", error=str(exc), kind=exc.kind)
                raise
            last_error = exc
            if attempt >= config.max_retries:
                logger.warning(
                    "AI operation failed after all attempts",
                    attempts=attempt + 1,
                    error=str(exc),
                )
                break
            logger.info(
                "AI operation failed, retrying",
                attempt=attempt + 1,
                max_attempts=config.max_retries + 1,
                delay_seconds=delay,
                error=str(exc),
            )
            await sleep(delay)
            delay = min(delay * config.multiplier, config.max_delay)
        else:
            if attempt > 0:
                logger.info("AI operation succeeded after retries", retries=attempt)
            return result

    if last_error is None:
        raise UnknownProviderError("Operation failed after retries")
    raise last_error
