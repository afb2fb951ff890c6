"""Cloud provider: remote model API behind a rate limiter and retry policy."""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Optional, TypeVar

from careerbench.caching.response_cache import ResponseCache
from careerbench.model_providers.base import CapabilityProvider
from careerbench.model_providers.cloud_client import CloudBackendClient
from careerbench.resilience.rate_limiter import RateLimiter
from careerbench.resilience.retry import RetryConfig, retry

T = TypeVar("T")


class CloudProvider(CapabilityProvider):
    """IAIProvider over a CloudBackendClient.

    Every call takes one rate-limiter permit, then runs under the retry policy.
    """

    def __init__(
        self,
        client: CloudBackendClient,
        rate_limiter: RateLimiter,
        retry_config: RetryConfig | None = None,
        cache: ResponseCache | None = None,
        *,
        sleep: Callable[[float], Awaitable[None]] | None = None,
    ) -> None:
        super().__init__(cache)
        self._client = client
        self._rate_limiter = rate_limiter
        self._retry_config = retry_config or RetryConfig()
        self._sleep = sleep

    @property
    def model_name(self) -> str:
        return self._client.model_name

    @property
    def rate_limiter(self) -> RateLimiter:
        return self._rate_limiter

    async def _guarded(self, operation: Callable[[], Awaitable[T]]) -> T:
        await self._rate_limiter.acquire()
        if self._sleep is None:
            return await retry(operation, self._retry_config)
        return await retry(operation, self._retry_config, sleep=self._sleep)

    async def _complete_json(self, system_prompt: str, user_prompt: str) -> Any:
        return await self._guarded(lambda: self._client.complete_json(system_prompt, user_prompt))

    async def call_llm(self, system_prompt: Optional[str], user_prompt: str) -> str:
        return await self._guarded(lambda: self._client.complete_text(system_prompt, user_prompt))
