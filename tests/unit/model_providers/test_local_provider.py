"""Tests for LocalProvider over a ModelArena with a scripted runtime."""

from __future__ import annotations

import asyncio

import pytest

from careerbench.core.config import LLMConfig
from careerbench.core.exceptions import InvalidResponseError, ProviderNotConfiguredError
from careerbench.model_providers.local_engine import ModelArena
from careerbench.model_providers.local_provider import LocalProvider
from careerbench.models.inputs import JobParsingInput
from tests.fakes import ScriptedRuntime

JOB = JobParsingInput(job_description="Data engineer")


@pytest.fixture
def model_file(tmp_path):
    path = tmp_path / "qwen2.5-1.5b-instruct-q4_k_m.gguf"
    path.write_bytes(b"GGUF")
    return path


def provider_for(runtime: ScriptedRuntime, path) -> LocalProvider:
    arena = ModelArena(lambda: runtime, LLMConfig(n_threads=1))
    return LocalProvider(arena, str(path) if path else None, max_tokens=50)


def test_model_name_is_filename(model_file):
    assert provider_for(ScriptedRuntime(), model_file).model_name == model_file.name


def test_parse_job_from_generated_json(model_file):
    runtime = ScriptedRuntime([1, 2], vocab={1: b'{"titleSuggestion": ', 2: b'"Data Engineer"}'})
    parsed = asyncio.run(provider_for(runtime, model_file).parse_job(JOB))
    assert parsed.title_suggestion == "Data Engineer"


def test_unparseable_output_is_invalid_response(model_file):
    runtime = ScriptedRuntime([1], vocab={1: b"I cannot help with that"})
    with pytest.raises(InvalidResponseError, match="Failed to parse JSON"):
        asyncio.run(provider_for(runtime, model_file).parse_job(JOB))


def test_call_llm_returns_text(model_file):
    runtime = ScriptedRuntime([1], vocab={1: b"plain"})
    assert asyncio.run(provider_for(runtime, model_file).call_llm("sys", "user")) == "plain"


def test_missing_path_not_configured():
    with pytest.raises(ProviderNotConfiguredError):
        asyncio.run(provider_for(ScriptedRuntime(), None).call_llm(None, "hi"))
