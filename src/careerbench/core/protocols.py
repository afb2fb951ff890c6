"""Protocol interfaces for all CareerBench AI-layer abstractions.

All inter-layer communication uses these Protocols: structural typing,
no inheritance required, easy to test with isinstance().
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Protocol, Sequence, runtime_checkable

from careerbench.models.cache import CacheEntry, CacheStats
from careerbench.models.inputs import (
    CoverLetterInput,
    JobParsingInput,
    ResumeInput,
    SkillSuggestionsInput,
)
from careerbench.models.outputs import CoverLetter, ParsedJob, ResumeSuggestions, SkillSuggestions
from careerbench.models.settings import KeyMetadata, ProviderConfiguration


# ---------------------------------------------------------------------------
# AI Provider
# ---------------------------------------------------------------------------

@runtime_checkable
class IAIProvider(Protocol):
    """Capability surface shared by cloud, local, hybrid and mock providers."""

    async def generate_resume_suggestions(self, input: ResumeInput) -> ResumeSuggestions: ...

    async def generate_cover_letter(self, input: CoverLetterInput) -> CoverLetter: ...

    async def generate_skill_suggestions(self, input: SkillSuggestionsInput) -> SkillSuggestions: ...

    async def parse_job(self, input: JobParsingInput) -> ParsedJob: ...

    async def call_llm(self, system_prompt: Optional[str], user_prompt: str) -> str: ...


# ---------------------------------------------------------------------------
# Persistence: Response Cache Backend
# ---------------------------------------------------------------------------

@runtime_checkable
class IResponseCacheBackend(Protocol):
    """Single-table store of cache entries keyed by (purpose, input_hash)."""

    def get(self, purpose: str, input_hash: str, now: datetime) -> CacheEntry | None: ...

    def put(self, entry: CacheEntry) -> None: ...

    def delete_purposes(self, purposes: Sequence[str]) -> int: ...

    def clear_all(self) -> int: ...

    def cleanup_expired(self, now: datetime) -> int: ...

    def evict_by_count(self, max_entries: int) -> int: ...

    def evict_by_size(self, max_bytes: int) -> int: ...

    def stats(self, now: datetime) -> CacheStats: ...


# ---------------------------------------------------------------------------
# Persistence: Secret Store
# ---------------------------------------------------------------------------

@runtime_checkable
class ISecretStore(Protocol):
    """Credential storage kept apart from the settings record."""

    def get_secret(self, name: str) -> str | None: ...

    def store_secret(self, name: str, value: str) -> None: ...

    def remove_secret(self, name: str) -> None: ...

    def rotate_secret(self, name: str, value: str) -> KeyMetadata: ...

    def get_metadata(self, name: str) -> KeyMetadata | None: ...


# ---------------------------------------------------------------------------
# Persistence: Settings Store
# ---------------------------------------------------------------------------

@runtime_checkable
class ISettingsStore(Protocol):
    """Single-record AI settings storage (credential excluded)."""

    def load(self) -> ProviderConfiguration: ...

    def save(self, config: ProviderConfiguration) -> None: ...


# ---------------------------------------------------------------------------
# Native Inference Runtime (FFI boundary)
# ---------------------------------------------------------------------------

@runtime_checkable
class IInferenceRuntime(Protocol):
    """Thin surface over the native model-inference library.

    Handles returned here are raw native resources. Only the local inference
    engine may hold them; it is responsible for releasing each exactly once.
    """

    def backend_init(self) -> None: ...

    def load_model(self, path: str, n_gpu_layers: int) -> Any: ...

    def free_model(self, model: Any) -> None: ...

    def new_context(self, model: Any, n_ctx: int, n_batch: int, n_threads: int) -> Any: ...

    def free_context(self, ctx: Any) -> None: ...

    def kv_cache_clear(self, ctx: Any) -> None: ...

    def tokenize(self, model: Any, text: bytes, buffer: Any, add_special: bool) -> int: ...

    def n_vocab(self, model: Any) -> int: ...

    def token_eos(self, model: Any) -> int: ...

    def token_to_piece(self, model: Any, token: int, buffer: Any) -> int: ...

    def batch_init(self, n_tokens: int) -> Any: ...

    def batch_free(self, batch: Any) -> None: ...

    def batch_clear(self, batch: Any) -> None: ...

    def batch_add(self, batch: Any, token: int, pos: int, logits: bool) -> None: ...

    def decode(self, ctx: Any, batch: Any) -> int: ...

    def get_logits(self, ctx: Any, index: int, n_vocab: int) -> Sequence[float] | None: ...
