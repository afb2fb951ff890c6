"""Tests for the llama.cpp adapter that do not need the native library."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from careerbench.core.exceptions import UnknownProviderError
from careerbench.core.protocols import IInferenceRuntime
from careerbench.model_providers.llama_runtime import LlamaCppRuntime
from tests.fakes import ScriptedRuntime


def runtime_over(lib) -> LlamaCppRuntime:
    runtime = LlamaCppRuntime.__new__(LlamaCppRuntime)
    runtime._lib = lib
    return runtime


def test_missing_library_raises_install_hint():
    with patch.dict("sys.modules", {"llama_cpp": None}):
        with pytest.raises(UnknownProviderError, match=r"careerbench\[local\]"):
            LlamaCppRuntime()


def test_prefers_newest_binding_name():
    new, old = MagicMock(), MagicMock()
    runtime_over(SimpleNamespace(llama_model_free=new, llama_free_model=old)).free_model("m")
    new.assert_called_once_with("m")
    old.assert_not_called()


def test_falls_back_to_older_binding_name():
    old = MagicMock()
    runtime_over(SimpleNamespace(llama_free_model=old)).free_model("m")
    old.assert_called_once_with("m")


def test_missing_binding_is_reported():
    with pytest.raises(UnknownProviderError, match="llama_model_free"):
        runtime_over(SimpleNamespace()).free_model("m")


def test_scripted_runtime_matches_protocol():
    assert isinstance(ScriptedRuntime(), IInferenceRuntime)
    assert isinstance(runtime_over(SimpleNamespace()), IInferenceRuntime)
