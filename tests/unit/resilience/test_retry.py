"""Tests for the exponential backoff retry driver."""

from __future__ import annotations

import asyncio

import pytest

from careerbench.core.config import RetrySettings
from careerbench.core.exceptions import (
    InvalidApiKeyError,
    InvalidResponseError,
    ModelNotFoundError,
    NetworkError,
    OutputValidationError,
    RateLimitExceededError,
    UnknownProviderError,
)
from careerbench.resilience.retry import RetryConfig, is_retryable_error, retry


class CountingOperation:
    def __init__(self, errors: list[Exception], result: str = "ok") -> None:
        self.errors = errors
        self.result = result
        self.calls = 0

    async def __call__(self) -> str:
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return self.result


class AlwaysFails:
    def __init__(self, error: Exception) -> None:
        self.error = error
        self.calls = 0

    async def __call__(self) -> str:
        self.calls += 1
        raise self.error


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def fake_sleep(sleeps):
    async def _sleep(seconds: float) -> None:
        sleeps.append(seconds)
    return _sleep


class TestClassification:
    @pytest.mark.parametrize("error", [NetworkError("x"), RateLimitExceededError(), InvalidResponseError("x")])
    def test_transient_kinds_are_retryable(self, error):
        assert is_retryable_error(error)

    @pytest.mark.parametrize("error", [InvalidApiKeyError(), OutputValidationError("x"), ModelNotFoundError()])
    def test_terminal_kinds_are_not_retryable(self, error):
        assert not is_retryable_error(error)

    def test_unknown_retryable_only_with_network_hint(self):
        assert is_retryable_error(UnknownProviderError("connection reset by peer"))
        assert is_retryable_error(UnknownProviderError("request timed out"))
        assert not is_retryable_error(UnknownProviderError("something odd"))


class TestRetry:
    def test_non_retryable_error_invokes_once(self, fake_sleep, sleeps):
        op = AlwaysFails(InvalidApiKeyError())
        with pytest.raises(InvalidApiKeyError):
            asyncio.run(retry(op, RetryConfig(max_retries=3), sleep=fake_sleep))
        assert op.calls == 1
        assert sleeps == []

    def test_exhaustion_invokes_max_retries_plus_one(self, fake_sleep):
        op = AlwaysFails(NetworkError("down"))
        with pytest.raises(NetworkError):
            asyncio.run(retry(op, RetryConfig(max_retries=3), sleep=fake_sleep))
        assert op.calls == 4

    def test_zero_retries_invokes_once(self, fake_sleep):
        op = AlwaysFails(NetworkError("down"))
        with pytest.raises(NetworkError):
            asyncio.run(retry(op, RetryConfig(max_retries=0), sleep=fake_sleep))
        assert op.calls == 1

    def test_backoff_grows_and_is_capped(self, fake_sleep, sleeps):
        op = AlwaysFails(RateLimitExceededError())
        config = RetryConfig(max_retries=5, initial_delay=1.0, max_delay=5.0, multiplier=2.0)
        with pytest.raises(RateLimitExceededError):
            asyncio.run(retry(op, config, sleep=fake_sleep))
        assert sleeps == [1.0, 2.0, 4.0, 5.0, 5.0]

    def test_succeeds_after_transient_failures(self, fake_sleep):
        op = CountingOperation([NetworkError("a"), InvalidResponseError("b")], result="done")
        assert asyncio.run(retry(op, RetryConfig(), sleep=fake_sleep)) == "done"
        assert op.calls == 3

    def test_stops_when_error_turns_terminal(self, fake_sleep):
        op = CountingOperation([NetworkError("a"), InvalidApiKeyError()])
        with pytest.raises(InvalidApiKeyError):
            asyncio.run(retry(op, RetryConfig(), sleep=fake_sleep))
        assert op.calls == 2


def test_config_from_settings_converts_milliseconds():
    config = RetryConfig.from_settings(RetrySettings(initial_delay_ms=250, max_delay_ms=4000))
    assert config.initial_delay == 0.25
    assert config.max_delay == 4.0
    assert config.max_retries == 3
