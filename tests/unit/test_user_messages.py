"""Tests for user-facing error messages."""

from __future__ import annotations

import pytest

from careerbench.core.exceptions import (
    ErrorKind,
    InvalidApiKeyError,
    InvalidResponseError,
    ModelNotFoundError,
    NetworkError,
    OutputValidationError,
    ProviderNotConfiguredError,
    RateLimitExceededError,
    UnknownProviderError,
)
from careerbench.core.user_messages import (
    format_error_for_ui,
    get_short_error_message,
    to_user_friendly_error,
)


def test_invalid_key_requires_action():
    friendly = to_user_friendly_error(InvalidApiKeyError())
    assert friendly.message == "Your API key is invalid or has expired"
    assert not friendly.recoverable
    assert friendly.requires_action
    assert friendly.kind is ErrorKind.INVALID_API_KEY


def test_rate_limit_is_recoverable():
    friendly = to_user_friendly_error(RateLimitExceededError())
    assert friendly.recoverable
    assert not friendly.requires_action


@pytest.mark.parametrize(
    ("detail", "expected"),
    [
        ("Request timed out: read timeout", "Connection timed out"),
        ("Request failed: Connection refused", "Cannot connect to the AI service"),
        ("API error (429): slow down", "Too many requests"),
        ("API error (500): boom", "Network error: API error (500): boom"),
    ],
)
def test_network_messages(detail, expected):
    assert to_user_friendly_error(NetworkError(detail)).message.startswith(expected)


def test_invalid_response():
    assert "unexpected response" in get_short_error_message(InvalidResponseError("x"))


def test_validation_includes_detail():
    assert get_short_error_message(OutputValidationError("seniority_score out of range")) == (
        "Validation error: seniority_score out of range"
    )


def test_model_not_found():
    friendly = to_user_friendly_error(ModelNotFoundError("gone"))
    assert friendly.message == "The specified AI model was not found"
    assert friendly.requires_action


def test_unconfigured_provider():
    friendly = to_user_friendly_error(ProviderNotConfiguredError("AI provider is not configured. Add an API key"))
    assert friendly.message == "AI provider is not configured"
    assert not friendly.recoverable


def test_unknown_model_path_hint():
    friendly = to_user_friendly_error(UnknownProviderError("Bad model file header"))
    assert friendly.message == "Local AI model file not found"


def test_unknown_fallback():
    friendly = to_user_friendly_error(UnknownProviderError("weird"))
    assert friendly.message == "An unexpected error occurred: weird"
    assert friendly.recoverable


def test_format_for_ui_lists_suggestions():
    text = format_error_for_ui(RateLimitExceededError())
    lines = text.splitlines()
    assert lines[0] == "Rate limit exceeded. Too many requests in a short time"
    assert "Suggestions:" in lines
    assert lines[-1].startswith("• ")
