"""IInferenceRuntime over llama-cpp-python's low-level ctypes bindings.

``llama_cpp`` is an optional dependency (the ``local`` extra) and is imported
when the runtime is constructed. Function names have moved between releases
(model vs vocab accessors, kv-cache vs memory clearing), so each call site
resolves the first name the installed version exposes.
"""

from __future__ import annotations

import ctypes
from typing import Any, Sequence

import numpy as np

from careerbench.core.exceptions import UnknownProviderError


class LlamaCppRuntime:
    """Thin adapter; owns no handles itself."""

    def __init__(self) -> None:
        try:
            import llama_cpp
        except ImportError as exc:
            raise UnknownProviderError(
                "Local inference runtime is not installed. Install careerbench[local] "
                "to use local models."
            ) from exc
        self._lib = llama_cpp

    def _fn(self, *names: str) -> Any:
        for name in names:
            fn = getattr(self._lib, name, None)
            if fn is not None:
                return fn
        raise UnknownProviderError(f"llama.cpp binding missing all of: {', '.join(names)}")

    def _vocab(self, model: Any) -> Any:
        get_vocab = getattr(self._lib, "llama_model_get_vocab", None)
        return get_vocab(model) if get_vocab is not None else model

    # ---- lifecycle ----

    def backend_init(self) -> None:
        self._lib.llama_backend_init()

    def load_model(self, path: str, n_gpu_layers: int) -> Any:
        params = self._lib.llama_model_default_params()
        params.n_gpu_layers = n_gpu_layers
        load = self._fn("llama_model_load_from_file", "llama_load_model_from_file")
        model = load(path.encode("utf-8"), params)
        return model or None

    def free_model(self, model: Any) -> None:
        self._fn("llama_model_free", "llama_free_model")(model)

    def new_context(self, model: Any, n_ctx: int, n_batch: int, n_threads: int) -> Any:
        params = self._lib.llama_context_default_params()
        params.n_ctx = n_ctx
        params.n_batch = n_batch
        params.n_threads = n_threads
        params.n_threads_batch = n_threads
        ctx = self._fn("llama_init_from_model", "llama_new_context_with_model")(model, params)
        return ctx or None

    def free_context(self, ctx: Any) -> None:
        self._lib.llama_free(ctx)

    def kv_cache_clear(self, ctx: Any) -> None:
        get_memory = getattr(self._lib, "llama_get_memory", None)
        if get_memory is not None and hasattr(self._lib, "llama_memory_clear"):
            self._lib.llama_memory_clear(get_memory(ctx), True)
            return
        self._fn("llama_kv_self_clear", "llama_kv_cache_clear")(ctx)

    # ---- vocabulary ----

    def tokenize(self, model: Any, text: bytes, buffer: Any, add_special: bool) -> int:
        return self._lib.llama_tokenize(
            self._vocab(model), text, len(text), buffer, len(buffer), add_special, False
        )

    def n_vocab(self, model: Any) -> int:
        if hasattr(self._lib, "llama_vocab_n_tokens"):
            return self._lib.llama_vocab_n_tokens(self._vocab(model))
        return self._lib.llama_n_vocab(model)

    def token_eos(self, model: Any) -> int:
        if hasattr(self._lib, "llama_vocab_eos"):
            return self._lib.llama_vocab_eos(self._vocab(model))
        return self._lib.llama_token_eos(model)

    def token_to_piece(self, model: Any, token: int, buffer: Any) -> int:
        fn = self._lib.llama_token_to_piece
        # (vocab, token, buf, length, lstrip, special) in newer releases
        if len(getattr(fn, "argtypes", None) or ()) >= 6:
            return fn(self._vocab(model), token, buffer, len(buffer), 0, False)
        return fn(model, token, buffer, len(buffer), False)

    # ---- batches and decoding ----

    def batch_init(self, n_tokens: int) -> Any:
        return self._lib.llama_batch_init(n_tokens, 0, 1)

    def batch_free(self, batch: Any) -> None:
        self._lib.llama_batch_free(batch)

    def batch_clear(self, batch: Any) -> None:
        batch.n_tokens = 0

    def batch_add(self, batch: Any, token: int, pos: int, logits: bool) -> None:
        i = batch.n_tokens
        batch.token[i] = token
        batch.pos[i] = pos
        batch.n_seq_id[i] = 1
        batch.seq_id[i][0] = 0
        batch.logits[i] = 1 if logits else 0
        batch.n_tokens = i + 1

    def decode(self, ctx: Any, batch: Any) -> int:
        return self._lib.llama_decode(ctx, batch)

    def get_logits(self, ctx: Any, index: int, n_vocab: int) -> Sequence[float] | None:
        ptr = self._lib.llama_get_logits_ith(ctx, index)
        if not ptr:
            return None
        return np.ctypeslib.as_array(ctypes.cast(ptr, ctypes.POINTER(ctypes.c_float)), shape=(n_vocab,))
