"""Hybrid provider: primary with a single fallback on recoverable failure.

The recoverability table here is deliberately independent of the retry
table in ``careerbench.resilience.retry``. Retry decides whether to call the
same backend again; this decides whether to switch backends once the
primary's own retries are spent.
"""

from __future__ import annotations

from typing import Awaitable, Callable, Optional, TypeVar

from careerbench.core.exceptions import AIProviderError, ErrorKind, ProviderNotConfiguredError
from careerbench.core.logging import get_logger
from careerbench.core.protocols import IAIProvider
from careerbench.models.inputs import (
    CoverLetterInput,
    JobParsingInput,
    ResumeInput,
    SkillSuggestionsInput,
)
from careerbench.models.outputs import CoverLetter, ParsedJob, ResumeSuggestions, SkillSuggestions

logger = get_logger(__name__)

T = TypeVar("T")

RECOVERABLE_KINDS: dict[ErrorKind, bool] = {
    ErrorKind.NETWORK: True,
    ErrorKind.RATE_LIMIT_EXCEEDED: True,
    ErrorKind.INVALID_RESPONSE: True,
    ErrorKind.INVALID_API_KEY: False,
    ErrorKind.VALIDATION: False,
    ErrorKind.MODEL_NOT_FOUND: False,
    ErrorKind.UNKNOWN: False,
}

FALLBACK_HINTS: tuple[str, ...] = ("network", "connection", "timeout", "unavailable")


def is_recoverable_error(error: AIProviderError) -> bool:
    """Whether a failure justifies trying the other provider."""
    if error.kind is ErrorKind.UNKNOWN:
        message = error.message.lower()
        return any(hint in message for hint in FALLBACK_HINTS)
    return RECOVERABLE_KINDS[error.kind]


class HybridProvider:
    """IAIProvider that tries ``primary`` then, at most once, ``secondary``."""

    def __init__(self, primary: IAIProvider | None, secondary: IAIProvider | None = None) -> None:
        if primary is None:
            primary, secondary = secondary, None
        if primary is None:
            raise ProviderNotConfiguredError(
                "Hybrid mode requires at least one provider to be configured: "
                "a cloud API key or a local model path"
            )
        self.primary = primary
        self.secondary = secondary

    @classmethod
    def from_pair(
        cls,
        cloud: IAIProvider | None,
        local: IAIProvider | None,
        prefer_cloud: bool,
    ) -> HybridProvider:
        if prefer_cloud:
            return cls(cloud, local)
        return cls(local, cloud)

    async def _with_fallback(self, operation: str, call: Callable[[IAIProvider], Awaitable[T]]) -> T:
        try:
            result = await call(self.primary)
        except AIProviderError as exc:
            if not is_recoverable_error(exc):
                logger.error("Primary provider failed", operation=operation, kind=exc.kind, error=str(exc))
                raise
            if self.secondary is None:
                logger.error(
                    "Primary provider failed and no fallback is available",
                    operation=operation,
                    kind=exc.kind,
                    error=str(exc),
                )
                raise ProviderNotConfiguredError(
                    f"No AI provider available: fallback provider not configured ({exc})"
                ) from exc
            logger.warning(
                "Primary provider failed with recoverable error, falling back",
                operation=operation,
                kind=exc.kind,
                error=str(exc),
            )
        else:
            logger.debug("Operation succeeded with primary provider", operation=operation)
            return result

        return await call(self.secondary)

    async def generate_resume_suggestions(self, input: ResumeInput) -> ResumeSuggestions:
        return await self._with_fallback(
            "generate_resume_suggestions", lambda p: p.generate_resume_suggestions(input)
        )

    async def generate_cover_letter(self, input: CoverLetterInput) -> CoverLetter:
        return await self._with_fallback("generate_cover_letter", lambda p: p.generate_cover_letter(input))

    async def generate_skill_suggestions(self, input: SkillSuggestionsInput) -> SkillSuggestions:
        return await self._with_fallback(
            "generate_skill_suggestions", lambda p: p.generate_skill_suggestions(input)
        )

    async def parse_job(self, input: JobParsingInput) -> ParsedJob:
        return await self._with_fallback("parse_job", lambda p: p.parse_job(input))

    async def call_llm(self, system_prompt: Optional[str], user_prompt: str) -> str:
        return await self._with_fallback("call_llm", lambda p: p.call_llm(system_prompt, user_prompt))
