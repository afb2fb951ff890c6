"""Scripted IInferenceRuntime double for local engine tests."""

from __future__ import annotations

import ctypes
import threading
import time
from typing import Any, Sequence


class FakeBatch:
    def __init__(self, capacity: int) -> None:
        self.capacity = capacity
        self.entries: list[tuple[int, int, bool]] = []


class ScriptedRuntime:
    """Emits ``script`` as the greedy choice at each generation step.

    Every native call is recorded in ``events`` so tests can check ordering
    and that handles and batches are released.
    """

    def __init__(
        self,
        script: Sequence[int] = (),
        *,
        vocab: dict[int, bytes] | None = None,
        n_vocab: int = 64,
        eos: int = 0,
        prompt_tokens: Sequence[int] = (5, 6, 7),
        fail_load: bool = False,
        fail_context: bool = False,
        fail_decode_at: int | None = None,
    ) -> None:
        self.script = list(script)
        self.vocab = vocab or {}
        self._n_vocab = n_vocab
        self.eos = eos
        self.prompt_tokens = list(prompt_tokens)
        self.fail_load = fail_load
        self.fail_context = fail_context
        self.fail_decode_at = fail_decode_at
        self.events: list[str] = []
        self.decoded: list[list[tuple[int, int, bool]]] = []
        self.tokenize_calls = 0
        self.logits_calls = 0
        self.live_batches = 0
        self.context_args: tuple[int, int, int] | None = None

    # ---- lifecycle ----

    def backend_init(self) -> None:
        self.events.append("backend_init")

    def load_model(self, path: str, n_gpu_layers: int) -> Any:
        self.events.append(f"load_model:{path}")
        return None if self.fail_load else f"model:{path}"

    def free_model(self, model: Any) -> None:
        self.events.append("free_model")

    def new_context(self, model: Any, n_ctx: int, n_batch: int, n_threads: int) -> Any:
        self.context_args = (n_ctx, n_batch, n_threads)
        self.events.append("new_context")
        return None if self.fail_context else "ctx"

    def free_context(self, ctx: Any) -> None:
        self.events.append("free_context")

    def kv_cache_clear(self, ctx: Any) -> None:
        self.events.append("kv_cache_clear")

    # ---- vocabulary ----

    def tokenize(self, model: Any, text: bytes, buffer: Any, add_special: bool) -> int:
        self.tokenize_calls += 1
        if len(self.prompt_tokens) > len(buffer):
            return -len(self.prompt_tokens)
        for i, token in enumerate(self.prompt_tokens):
            buffer[i] = token
        return len(self.prompt_tokens)

    def n_vocab(self, model: Any) -> int:
        return self._n_vocab

    def token_eos(self, model: Any) -> int:
        return self.eos

    def token_to_piece(self, model: Any, token: int, buffer: Any) -> int:
        piece = self.vocab.get(token, b"")
        if len(piece) > len(buffer):
            return -len(piece)
        ctypes.memmove(buffer, piece, len(piece))
        return len(piece)

    # ---- batches ----

    def batch_init(self, n_tokens: int) -> FakeBatch:
        self.live_batches += 1
        return FakeBatch(n_tokens)

    def batch_free(self, batch: FakeBatch) -> None:
        self.live_batches -= 1

    def batch_clear(self, batch: FakeBatch) -> None:
        batch.entries.clear()

    def batch_add(self, batch: FakeBatch, token: int, pos: int, logits: bool) -> None:
        batch.entries.append((token, pos, logits))

    def decode(self, ctx: Any, batch: FakeBatch) -> int:
        self.decoded.append(list(batch.entries))
        if self.fail_decode_at is not None and len(self.decoded) == self.fail_decode_at:
            return 1
        return 0

    def get_logits(self, ctx: Any, index: int, n_vocab: int) -> Sequence[float] | None:
        step = self.logits_calls
        self.logits_calls += 1
        token = self.script[step] if step < len(self.script) else self.eos
        logits = [0.0] * n_vocab
        logits[token] = 10.0
        return logits


class BlockingRuntime(ScriptedRuntime):
    """ScriptedRuntime whose ``decode`` can be held open and counts overlap.

    ``entered`` is set once a decode starts; decodes wait on ``release``
    and then sleep ``hold`` seconds. ``max_active`` is the largest number of
    decodes seen running at the same time across threads.
    """

    def __init__(self, *args: Any, hold: float = 0.0, blocked: bool = True, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.hold = hold
        self.entered = threading.Event()
        self.release = threading.Event()
        if not blocked:
            self.release.set()
        self.active = 0
        self.max_active = 0
        self._guard = threading.Lock()

    def decode(self, ctx: Any, batch: FakeBatch) -> int:
        with self._guard:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            self.entered.set()
            self.release.wait(5)
            time.sleep(self.hold)
            return super().decode(ctx, batch)
        finally:
            with self._guard:
                self.active -= 1
                self.events.append("decode_done")
