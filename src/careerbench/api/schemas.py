"""Request and response bodies for the HTTP surface."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from careerbench.models.settings import CloudBackend, KeyMetadata, ProviderMode


class _Body(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CallLLMRequest(_Body):
    system_prompt: Optional[str] = None
    user_prompt: str


class CallLLMResponse(_Body):
    text: str


class AISettingsView(_Body):
    mode: ProviderMode
    backend: Optional[CloudBackend] = None
    model_name: Optional[str] = None
    local_model_path: Optional[str] = None
    has_api_key: bool = False


class AISettingsUpdate(_Body):
    mode: ProviderMode
    backend: Optional[CloudBackend] = None
    model_name: Optional[str] = None
    local_model_path: Optional[str] = None
    # None keeps the stored key, "" removes it
    api_key: Optional[str] = None


class RotateKeyRequest(_Body):
    api_key: str
    backend: CloudBackend = CloudBackend.OPENAI


class KeyStatus(_Body):
    metadata: Optional[KeyMetadata] = None
    rotation_due_days: Optional[int] = None


class EvictRequest(_Body):
    max_entries: Optional[int] = Field(default=None, ge=0)
    max_size_mb: Optional[float] = Field(default=None, ge=0)


class DeletedCount(_Body):
    deleted: int
