"""Build the provider selected by the AI settings.

The variant set is closed: local, cloud, hybrid, mock. ``resolve`` matches
on it exhaustively. Process-lifetime state (rate limiters per backend, the
model arena, the response cache) lives on the resolver so that providers
built per request share it.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable

import httpx

from careerbench.caching.response_cache import ResponseCache
from careerbench.core.config import AppSettings
from careerbench.core.exceptions import ModelNotFoundError, ProviderNotConfiguredError
from careerbench.core.logging import get_logger
from careerbench.core.protocols import IAIProvider
from careerbench.model_providers.cloud_client import CloudBackendClient
from careerbench.model_providers.cloud_provider import CloudProvider
from careerbench.model_providers.hybrid_provider import HybridProvider
from careerbench.model_providers.local_engine import ModelArena
from careerbench.model_providers.local_provider import LocalProvider
from careerbench.model_providers.mock_provider import MockProvider
from careerbench.models.settings import CloudBackend, ProviderConfiguration, ProviderMode
from careerbench.resilience.rate_limiter import RateLimiter
from careerbench.resilience.retry import RetryConfig

logger = get_logger(__name__)


@dataclass(frozen=True)
class ResolvedProvider:
    mode: ProviderMode
    provider: IAIProvider


class ProviderResolver:
    """Turns a ProviderConfiguration into a ready IAIProvider."""

    def __init__(
        self,
        settings: AppSettings | None = None,
        *,
        cache: ResponseCache | None = None,
        arena: ModelArena | None = None,
        mock: MockProvider | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Callable[[float], Awaitable[None]] | None = None,
    ) -> None:
        self._settings = settings or AppSettings()
        self._cache = cache
        self._arena = arena or ModelArena(config=self._settings.llm)
        self._mock = mock
        self._transport = transport
        self._sleep = sleep
        self._rate_limiters: dict[CloudBackend, RateLimiter] = {}

    @property
    def arena(self) -> ModelArena:
        return self._arena

    def rate_limiter(self, backend: CloudBackend) -> RateLimiter:
        limiter = self._rate_limiters.get(backend)
        if limiter is None:
            limits = self._settings.rate_limit
            limiter = RateLimiter(limits.capacity, limits.window_seconds)
            self._rate_limiters[backend] = limiter
        return limiter

    # ---- concrete builders ----

    def build_cloud(self, config: ProviderConfiguration, *, cached: bool = True) -> CloudProvider:
        if config.credential is None or not config.credential.get_secret_value():
            raise ProviderNotConfiguredError(
                "AI provider is not configured. Add an API key in Settings to use Cloud mode."
            )
        backend = config.effective_backend
        llm = self._settings.llm
        client = CloudBackendClient(
            backend,
            config.credential.get_secret_value(),
            config.effective_model_name,
            timeout=llm.request_timeout,
            temperature=llm.temperature,
            transport=self._transport,
        )
        return CloudProvider(
            client,
            self.rate_limiter(backend),
            RetryConfig.from_settings(self._settings.retry),
            self._cache if cached else None,
            sleep=self._sleep,
        )

    def build_local(self, config: ProviderConfiguration) -> LocalProvider:
        if not config.local_model_path:
            raise ProviderNotConfiguredError(
                "Local model path not configured. Configure a GGUF model file path in Settings, "
                "or switch to Cloud mode and add an API key."
            )
        if not Path(config.local_model_path).exists():
            raise ModelNotFoundError(
                f"Model file not found at: {config.local_model_path}. Verify the path in Settings."
            )
        return LocalProvider(
            self._arena,
            config.local_model_path,
            self._cache,
            max_tokens=self._settings.llm.max_tokens,
        )

    def build_hybrid(self, config: ProviderConfiguration) -> HybridProvider:
        cloud = None
        if config.credential is not None and config.credential.get_secret_value():
            cloud = self.build_cloud(config)
        else:
            logger.info("Hybrid: cloud provider not configured (no API key)")

        local = None
        if config.local_model_path:
            if Path(config.local_model_path).exists():
                local = self.build_local(config)
            else:
                logger.warning("Hybrid: local model path configured but file not found", path=config.local_model_path)
        else:
            logger.info("Hybrid: local provider not configured (no model path)")

        prefer_cloud = cloud is not None and local is not None
        return HybridProvider.from_pair(cloud, local, prefer_cloud)

    # ---- dispatch ----

    def resolve(self, config: ProviderConfiguration) -> ResolvedProvider:
        logger.info("Resolving AI provider", mode=config.mode)
        provider: IAIProvider
        match config.mode:
            case ProviderMode.LOCAL:
                provider = self.build_local(config)
            case ProviderMode.CLOUD:
                provider = self.build_cloud(config)
            case ProviderMode.HYBRID:
                provider = self.build_hybrid(config)
            case ProviderMode.MOCK:
                if self._mock is None:
                    self._mock = MockProvider()
                provider = self._mock
        return ResolvedProvider(config.mode, provider)
