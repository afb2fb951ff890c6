"""Local provider: on-device GGUF model through the shared ModelArena."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

from careerbench.caching.response_cache import ResponseCache
from careerbench.core.exceptions import InvalidResponseError, ProviderNotConfiguredError
from careerbench.model_providers.base import CapabilityProvider
from careerbench.model_providers.local_engine import ModelArena
from careerbench.model_providers.prompts import combine_prompts, parse_json_text


class LocalProvider(CapabilityProvider):
    """IAIProvider that runs prompts through a local model.

    No rate limiting or retry: the arena already serializes generation.
    """

    def __init__(
        self,
        arena: ModelArena,
        model_path: str | None,
        cache: ResponseCache | None = None,
        *,
        max_tokens: int = 1000,
    ) -> None:
        super().__init__(cache)
        self._arena = arena
        self._model_path = model_path
        self._max_tokens = max_tokens

    @property
    def model_name(self) -> str:
        return Path(self._model_path).name if self._model_path else "local"

    async def _generate(self, prompt: str) -> str:
        if not self._model_path:
            raise ProviderNotConfiguredError(
                "Local model path not configured. Set a model file path in Settings."
            )
        return await self._arena.generate(self._model_path, prompt, self._max_tokens)

    async def _complete_json(self, system_prompt: str, user_prompt: str) -> Any:
        text = await self._generate(combine_prompts(system_prompt, user_prompt))
        try:
            return parse_json_text(text)
        except ValueError as exc:
            raise InvalidResponseError(
                f"Failed to parse JSON from model response: {exc}. Response was: {text[:500]}"
            ) from exc

    async def call_llm(self, system_prompt: Optional[str], user_prompt: str) -> str:
        return await self._generate(combine_prompts(system_prompt, user_prompt))
