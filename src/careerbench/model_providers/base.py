"""Shared capability pipeline for providers that talk to a real model.

cache lookup -> model call -> validation -> cache store
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional, TypeVar

from careerbench.caching.purposes import CachePurpose
from careerbench.caching.response_cache import ResponseCache
from careerbench.core.exceptions import AIProviderError
from careerbench.core.logging import get_logger
from careerbench.model_providers import prompts
from careerbench.models.inputs import (
    CapabilityInput,
    CoverLetterInput,
    JobParsingInput,
    ResumeInput,
    SkillSuggestionsInput,
)
from careerbench.models.outputs import CoverLetter, ParsedJob, ResumeSuggestions, SkillSuggestions
from careerbench.validation.response_validator import (
    validate_cover_letter,
    validate_parsed_job,
    validate_resume_suggestions,
    validate_skill_suggestions,
)

logger = get_logger(__name__)

O = TypeVar("O")


class CapabilityProvider(ABC):
    """Base for the cloud and local providers."""

    def __init__(self, cache: ResponseCache | None = None) -> None:
        self._cache = cache

    @property
    @abstractmethod
    def model_name(self) -> str: ...

    @abstractmethod
    async def _complete_json(self, system_prompt: str, user_prompt: str) -> Any:
        """Run one model call and return the parsed JSON value."""

    @abstractmethod
    async def call_llm(self, system_prompt: Optional[str], user_prompt: str) -> str: ...

    async def _run(
        self,
        purpose: CachePurpose,
        input: CapabilityInput,
        system_prompt: str,
        user_prompt: str,
        validate: Callable[[Any], O],
    ) -> O:
        cache = self._cache if self._cache is not None and self._cache.enabled else None
        request = input.cache_payload()

        if cache is not None:
            cached = await asyncio.to_thread(cache.lookup, purpose, request)
            if cached is not None:
                logger.info("AI cache hit", purpose=purpose, model=self.model_name)
                return validate(cached)

        try:
            raw = await self._complete_json(system_prompt, user_prompt)
            result = validate(raw)
        except AIProviderError as exc:
            logger.warning(
                "AI capability call failed",
                purpose=purpose,
                provider=type(self).__name__,
                kind=exc.kind,
                error=str(exc),
            )
            raise

        if cache is not None:
            await asyncio.to_thread(cache.store, purpose, request, self.model_name, result.to_payload())
        return result

    async def generate_resume_suggestions(self, input: ResumeInput) -> ResumeSuggestions:
        return await self._run(
            CachePurpose.RESUME_GENERATION,
            input,
            prompts.RESUME_SYSTEM_PROMPT,
            prompts.resume_prompt(input),
            validate_resume_suggestions,
        )

    async def generate_cover_letter(self, input: CoverLetterInput) -> CoverLetter:
        return await self._run(
            CachePurpose.COVER_LETTER_GENERATION,
            input,
            prompts.COVER_LETTER_SYSTEM_PROMPT,
            prompts.cover_letter_prompt(input),
            validate_cover_letter,
        )

    async def generate_skill_suggestions(self, input: SkillSuggestionsInput) -> SkillSuggestions:
        return await self._run(
            CachePurpose.SKILL_SUGGESTIONS,
            input,
            prompts.SKILL_SUGGESTIONS_SYSTEM_PROMPT,
            prompts.skill_suggestions_prompt(input),
            validate_skill_suggestions,
        )

    async def parse_job(self, input: JobParsingInput) -> ParsedJob:
        return await self._run(
            CachePurpose.JOB_PARSE,
            input,
            prompts.JOB_PARSING_SYSTEM_PROMPT,
            prompts.job_parsing_prompt(input),
            validate_parsed_job,
        )
