"""Boundary service used by the API layer.

Each capability call reloads the AI settings (plus the credential from the
secret store) and resolves a provider, so settings changes take effect on
the next request. The response cache, model arena and rate limiters are
shared across calls through the resolver.
"""

from __future__ import annotations

from typing import Awaitable, Callable, Optional, TypeVar

from pydantic import SecretStr

from careerbench.caching.response_cache import ResponseCache
from careerbench.core.config import AppSettings
from careerbench.core.exceptions import AIProviderError
from careerbench.core.logging import get_logger
from careerbench.core.protocols import IAIProvider
from careerbench.model_providers.resolver import ProviderResolver, ResolvedProvider
from careerbench.models.inputs import (
    CoverLetterInput,
    JobParsingInput,
    ResumeInput,
    SkillSuggestionsInput,
)
from careerbench.models.outputs import CoverLetter, ParsedJob, ResumeSuggestions, SkillSuggestions
from careerbench.models.settings import CloudBackend, KeyMetadata, ProviderConfiguration
from careerbench.persistence import Persistence
from careerbench.services import key_rotation

logger = get_logger(__name__)

T = TypeVar("T")


class AIService:
    """Resolves the configured provider per call and runs capabilities on it."""

    def __init__(
        self,
        settings: AppSettings,
        persistence: Persistence,
        resolver: ProviderResolver | None = None,
    ) -> None:
        self._settings = settings
        self._persistence = persistence
        self.cache = ResponseCache(persistence.cache_backend, settings.cache)
        self.resolver = resolver or ProviderResolver(settings, cache=self.cache)

    # ---- settings ----

    def load_configuration(self) -> ProviderConfiguration:
        """Settings record merged with the credential from the secret store."""
        config = self._persistence.settings_store.load()
        api_key = self._persistence.secret_store.get_secret(key_rotation.API_KEY_SECRET)
        if api_key:
            config = config.model_copy(update={"credential": SecretStr(api_key)})
        return config

    def save_configuration(self, config: ProviderConfiguration, api_key: str | None = None) -> None:
        """Persist settings; ``api_key=""`` removes the stored key, ``None`` keeps it."""
        if api_key is not None:
            if api_key:
                self._persistence.secret_store.store_secret(key_rotation.API_KEY_SECRET, api_key)
            else:
                self._persistence.secret_store.remove_secret(key_rotation.API_KEY_SECRET)
        stored = config
        if self.has_api_key():
            stored = config.model_copy(update={"credential": SecretStr("stored")})
        self._persistence.settings_store.save(stored)
        logger.info("AI settings saved", mode=config.mode, backend=config.backend)

    def has_api_key(self) -> bool:
        return bool(self._persistence.secret_store.get_secret(key_rotation.API_KEY_SECRET))

    async def rotate_api_key(self, new_api_key: str, backend: CloudBackend) -> KeyMetadata:
        return await key_rotation.rotate_api_key(
            new_api_key, backend, self._persistence.secret_store, self.resolver
        )

    def api_key_metadata(self) -> KeyMetadata | None:
        return key_rotation.get_api_key_metadata(self._persistence.secret_store)

    def key_rotation_due(self, max_age_days: int = key_rotation.DEFAULT_MAX_KEY_AGE_DAYS) -> int | None:
        return key_rotation.should_rotate_key(self._persistence.secret_store, max_age_days)

    # ---- capabilities ----

    def resolve(self) -> ResolvedProvider:
        return self.resolver.resolve(self.load_configuration())

    async def _call(self, operation: str, call: Callable[[IAIProvider], Awaitable[T]]) -> T:
        try:
            resolved = self.resolve()
            return await call(resolved.provider)
        except AIProviderError as exc:
            logger.error("AI operation failed", operation=operation, kind=exc.kind, error=str(exc))
            raise

    async def generate_resume_suggestions(self, input: ResumeInput) -> ResumeSuggestions:
        return await self._call("generate_resume_suggestions", lambda p: p.generate_resume_suggestions(input))

    async def generate_cover_letter(self, input: CoverLetterInput) -> CoverLetter:
        return await self._call("generate_cover_letter", lambda p: p.generate_cover_letter(input))

    async def generate_skill_suggestions(self, input: SkillSuggestionsInput) -> SkillSuggestions:
        return await self._call("generate_skill_suggestions", lambda p: p.generate_skill_suggestions(input))

    async def parse_job(self, input: JobParsingInput) -> ParsedJob:
        return await self._call("parse_job", lambda p: p.parse_job(input))

    async def call_llm(self, system_prompt: Optional[str], user_prompt: str) -> str:
        return await self._call("call_llm", lambda p: p.call_llm(system_prompt, user_prompt))

    async def close(self) -> None:
        await self.resolver.arena.unload()
