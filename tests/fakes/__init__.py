"""Shared test doubles: re-export memory backends and the scripted runtimes."""

from __future__ import annotations

from careerbench.model_providers.mock_provider import MockProvider
from careerbench.persistence.memory_backend import (
    MemoryResponseCache,
    MemorySecretStore,
    MemorySettingsStore,
)
from tests.fakes.runtime import BlockingRuntime, ScriptedRuntime

__all__ = [
    "BlockingRuntime",
    "MemoryResponseCache",
    "MemorySecretStore",
    "MemorySettingsStore",
    "MockProvider",
    "ScriptedRuntime",
]
