"""Provider selection models persisted in the AI settings record."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Optional

from pydantic import BaseModel, SecretStr

from careerbench.core.config import LLMConfig


class ProviderMode(StrEnum):
    LOCAL = "local"
    CLOUD = "cloud"
    HYBRID = "hybrid"
    MOCK = "mock"


class CloudBackend(StrEnum):
    OPENAI = "openai"
    ANTHROPIC = "anthropic"


DEFAULT_MODEL_NAMES: dict[CloudBackend, str] = {
    CloudBackend.OPENAI: "gpt-4o-mini",
    CloudBackend.ANTHROPIC: "claude-3-5-sonnet-20241022",
}


class ProviderConfiguration(BaseModel):
    """Everything the resolver needs to build a provider.

    The credential is never persisted with the record; it is merged in from
    the secret store when the configuration is loaded.
    """

    mode: ProviderMode = ProviderMode.CLOUD
    backend: Optional[CloudBackend] = None
    credential: Optional[SecretStr] = None
    model_name: Optional[str] = None
    local_model_path: Optional[str] = None

    @property
    def effective_backend(self) -> CloudBackend:
        return self.backend or CloudBackend.OPENAI

    @property
    def effective_model_name(self) -> str:
        return self.model_name or DEFAULT_MODEL_NAMES[self.effective_backend]


class KeyMetadata(BaseModel):
    """Lifecycle information recorded next to a stored secret."""

    created_at: datetime
    last_rotated_at: Optional[datetime] = None
    rotation_count: int = 0


class StoredSecret(BaseModel):
    """Secret value plus its metadata, serialized as one JSON document."""

    value: str
    metadata: KeyMetadata


def default_configuration(llm: LLMConfig) -> ProviderConfiguration:
    """Configuration used before any settings record has been saved."""
    return ProviderConfiguration(
        mode=ProviderMode(llm.mode),
        backend=CloudBackend(llm.backend),
        model_name=llm.model_name,
        local_model_path=llm.local_model_path,
    )
