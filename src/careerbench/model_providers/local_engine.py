"""Greedy token generation over an embedded model.

``LocalInferenceEngine`` is the only owner of the native model and context
handles. It acquires both in ``load`` and releases the context, then the
model, exactly once (on ``close`` or when garbage collected). Nothing else
ever sees the raw handles.

``ModelArena`` keeps at most one engine loaded, keyed by model path, and
serializes generation behind an asyncio lock. Generation itself runs in a
worker thread so the event loop is never blocked.
"""

from __future__ import annotations

import asyncio
import codecs
import ctypes
import json
import os
import weakref
from pathlib import Path
from typing import Any, Callable

import numpy as np

from careerbench.core.config import LLMConfig
from careerbench.core.exceptions import ModelNotFoundError, UnknownProviderError
from careerbench.core.logging import get_logger
from careerbench.core.protocols import IInferenceRuntime

logger = get_logger(__name__)

MIN_TOKEN_BUFFER = 512
MAX_TOKEN_BUFFER = 4096
PIECE_BUFFER_SIZE = 256
EARLY_STOP_MIN_TOKENS = 20


def greedy_token(logits: Any) -> int:
    """Softmax the logits and return the most probable token id."""
    values = np.asarray(logits, dtype=np.float64)
    probs = np.exp(values - values.max())
    probs /= probs.sum()
    return int(np.argmax(probs))


def is_complete_json(text: str) -> bool:
    """True once braces balance and the text parses as JSON."""
    opened = text.count("{")
    if opened == 0 or text.count("}") < opened:
        return False
    try:
        json.loads(text.strip())
    except ValueError:
        return False
    return True


def _release(runtime: IInferenceRuntime, model: Any, ctx: Any, path: str) -> None:
    runtime.free_context(ctx)
    runtime.free_model(model)
    logger.info("Local model unloaded", path=path)


class LocalInferenceEngine:
    """Owning wrapper around one loaded model and its inference context."""

    def __init__(
        self,
        runtime: IInferenceRuntime,
        path: str,
        model: Any,
        ctx: Any,
        *,
        n_ctx: int,
        n_batch: int,
    ) -> None:
        self._runtime = runtime
        self._model = model
        self._ctx = ctx
        self.path = path
        self.n_ctx = n_ctx
        self.n_batch = n_batch
        self._finalizer = weakref.finalize(self, _release, runtime, model, ctx, path)

    @classmethod
    def load(cls, runtime: IInferenceRuntime, path: str | os.PathLike, config: LLMConfig | None = None) -> LocalInferenceEngine:
        """Validate the model file, then acquire the model and a context for it."""
        config = config or LLMConfig()
        model_path = Path(path)
        if not model_path.exists():
            raise ModelNotFoundError(
                f"Model file not found at: {model_path}. Download a GGUF model and "
                "configure the model path in Settings."
            )
        if "?" in model_path.name:
            logger.error("Model filename contains query parameters", filename=model_path.name)
            raise ModelNotFoundError(
                f"Invalid model filename: '{model_path.name}'. The filename contains query "
                "parameters, which suggests it was downloaded incorrectly. Delete this file "
                "and re-download the model."
            )

        n_threads = config.n_threads or os.cpu_count() or 1
        runtime.backend_init()
        logger.info("Loading local model", path=str(model_path), n_gpu_layers=config.n_gpu_layers)
        model = runtime.load_model(str(model_path), config.n_gpu_layers)
        if model is None:
            raise UnknownProviderError("Failed to load model. Check that the file is a valid GGUF model.")

        ctx = runtime.new_context(model, config.n_ctx, config.n_batch, n_threads)
        if ctx is None:
            runtime.free_model(model)
            raise UnknownProviderError("Failed to create inference context")

        logger.info(
            "Local model loaded",
            path=str(model_path),
            n_ctx=config.n_ctx,
            n_batch=config.n_batch,
            n_threads=n_threads,
        )
        return cls(runtime, str(model_path), model, ctx, n_ctx=config.n_ctx, n_batch=config.n_batch)

    @property
    def closed(self) -> bool:
        return not self._finalizer.alive

    def close(self) -> None:
        """Release the context then the model. Safe to call more than once."""
        self._finalizer()

    def __enter__(self) -> LocalInferenceEngine:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # ---- generation ----

    def _tokenize(self, prompt: str) -> list[int]:
        data = prompt.encode("utf-8")
        size = min(max(len(prompt) // 2, MIN_TOKEN_BUFFER), MAX_TOKEN_BUFFER)
        buffer = (ctypes.c_int32 * size)()
        count = self._runtime.tokenize(self._model, data, buffer, True)
        if count < 0:
            logger.debug("Token buffer too small, resizing", needed=-count)
            buffer = (ctypes.c_int32 * -count)()
            count = self._runtime.tokenize(self._model, data, buffer, True)
            if count < 0:
                raise UnknownProviderError("Failed to tokenize prompt even with larger buffer")
        if count == 0:
            raise UnknownProviderError("Prompt tokenized to empty sequence")
        return list(buffer[:count])

    def _piece(self, token: int, buffer: ctypes.Array, decoder: codecs.IncrementalDecoder) -> str:
        written = self._runtime.token_to_piece(self._model, token, buffer)
        if written < 0:
            buffer = ctypes.create_string_buffer(-written + 1)
            written = self._runtime.token_to_piece(self._model, token, buffer)
            if written < 0:
                logger.warning("Token could not be decoded", token=token)
                return ""
        return decoder.decode(buffer.raw[:written])

    def generate(self, prompt: str, max_tokens: int) -> str:
        """Greedy decode up to ``max_tokens`` tokens. Blocking; run it off the event loop."""
        if self.closed:
            raise UnknownProviderError("Local model has been unloaded")
        runtime, ctx = self._runtime, self._ctx

        runtime.kv_cache_clear(ctx)
        tokens = self._tokenize(prompt)
        if len(tokens) > self.n_batch:
            logger.warning("Prompt exceeds batch size, truncating", tokens=len(tokens), n_batch=self.n_batch)
            tokens = tokens[:self.n_batch]
        logger.info("Tokenized prompt", tokens=len(tokens), max_tokens=max_tokens)

        prompt_batch = runtime.batch_init(len(tokens))
        step_batch = runtime.batch_init(1)
        piece_buffer = ctypes.create_string_buffer(PIECE_BUFFER_SIZE)
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        pieces: list[str] = []
        try:
            last = len(tokens) - 1
            for pos, token in enumerate(tokens):
                runtime.batch_add(prompt_batch, token, pos, pos == last)
            if runtime.decode(ctx, prompt_batch) != 0:
                raise UnknownProviderError("Failed to decode prompt")

            n_vocab = runtime.n_vocab(self._model)
            eos = runtime.token_eos(self._model)
            pos = len(tokens)
            logits_index = last

            for step in range(max_tokens):
                logits = runtime.get_logits(ctx, logits_index, n_vocab)
                if logits is None:
                    raise UnknownProviderError(f"Logits unavailable for token index {logits_index}")
                token = greedy_token(logits)
                if token == eos:
                    logger.info("EOS reached", generated=step)
                    break

                piece = self._piece(token, piece_buffer, decoder)
                pieces.append(piece)
                if step + 1 >= EARLY_STOP_MIN_TOKENS and "}" in piece and is_complete_json("".join(pieces)):
                    logger.info("Complete JSON detected, stopping early", generated=step + 1)
                    break
                if pos >= self.n_ctx:
                    logger.warning("Context window full, stopping", n_ctx=self.n_ctx)
                    break

                runtime.batch_clear(step_batch)
                runtime.batch_add(step_batch, token, pos, True)
                if runtime.decode(ctx, step_batch) != 0:
                    logger.warning("Decode failed mid-generation, returning partial output", position=pos)
                    break
                pos += 1
                logits_index = 0
        finally:
            runtime.batch_free(prompt_batch)
            runtime.batch_free(step_batch)

        text = "".join(pieces) + decoder.decode(b"", final=True)
        logger.info("Generation finished", chars=len(text))
        return text


async def _in_worker(func: Callable[..., Any], *args: Any) -> Any:
    """Run ``func`` in a worker thread and never return before the thread does.

    A cancelled caller still waits for the thread to finish before the
    cancellation propagates, so the arena lock outlives every native call.
    """
    task = asyncio.ensure_future(asyncio.to_thread(func, *args))
    try:
        return await asyncio.shield(task)
    except asyncio.CancelledError:
        while not task.done():
            try:
                await asyncio.wait({task})
            except asyncio.CancelledError:
                continue
        if not task.cancelled() and task.exception() is not None:
            logger.warning("Abandoned local call failed", error=str(task.exception()))
        raise


class ModelArena:
    """Holds at most one loaded engine; swapping paths unloads the old one first."""

    def __init__(
        self,
        runtime_factory: Callable[[], IInferenceRuntime] | None = None,
        config: LLMConfig | None = None,
    ) -> None:
        self._runtime_factory = runtime_factory
        self._runtime: IInferenceRuntime | None = None
        self._config = config or LLMConfig()
        self._engine: LocalInferenceEngine | None = None
        self._lock = asyncio.Lock()

    @property
    def loaded_path(self) -> str | None:
        return self._engine.path if self._engine is not None else None

    def _get_runtime(self) -> IInferenceRuntime:
        if self._runtime is None:
            if self._runtime_factory is None:
                from careerbench.model_providers.llama_runtime import LlamaCppRuntime

                self._runtime_factory = LlamaCppRuntime
            self._runtime = self._runtime_factory()
        return self._runtime

    async def _ensure(self, path: str) -> LocalInferenceEngine:
        if self._engine is not None and self._engine.path == str(Path(path)):
            return self._engine
        if self._engine is not None:
            logger.info("Replacing loaded model", old=self._engine.path, new=path)
            self._engine.close()
            self._engine = None
        runtime = self._get_runtime()
        self._engine = await _in_worker(LocalInferenceEngine.load, runtime, path, self._config)
        return self._engine

    async def generate(self, path: str, prompt: str, max_tokens: int) -> str:
        """Load ``path`` if needed and run one generation; callers queue on the lock.

        Abandoning the await does not release the lock early: the worker
        thread owns the context until its generation returns.
        """
        async with self._lock:
            engine = await self._ensure(path)
            return await _in_worker(engine.generate, prompt, max_tokens)

    async def unload(self) -> None:
        async with self._lock:
            if self._engine is not None:
                self._engine.close()
                self._engine = None
