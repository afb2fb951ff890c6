"""Tests for CloudBackendClient against httpx.MockTransport."""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from careerbench.core.exceptions import (
    InvalidApiKeyError,
    InvalidResponseError,
    NetworkError,
    RateLimitExceededError,
)
from careerbench.model_providers.cloud_client import (
    ANTHROPIC_URL,
    ANTHROPIC_VERSION,
    OPENAI_URL,
    CloudBackendClient,
)
from careerbench.models.settings import CloudBackend


class Recorder:
    """Transport handler that records requests and replies with a canned response."""

    def __init__(self, response: httpx.Response | Exception) -> None:
        self.response = response
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if isinstance(self.response, Exception):
            raise self.response
        return self.response

    @property
    def body(self) -> dict:
        return json.loads(self.requests[-1].content)


def openai_reply(content: str) -> httpx.Response:
    return httpx.Response(200, json={"choices": [{"message": {"role": "assistant", "content": content}}]})


def anthropic_reply(text: str) -> httpx.Response:
    return httpx.Response(200, json={"content": [{"type": "text", "text": text}]})


def make_client(backend: CloudBackend, recorder: Recorder) -> CloudBackendClient:
    return CloudBackendClient(
        backend, "sk-test", "test-model", transport=httpx.MockTransport(recorder)
    )


class TestOpenAI:
    def test_request_shape(self):
        recorder = Recorder(openai_reply('{"ok": true}'))
        client = make_client(CloudBackend.OPENAI, recorder)
        asyncio.run(client.complete_json("be terse", "parse this"))

        request = recorder.requests[0]
        assert str(request.url) == OPENAI_URL
        assert request.headers["authorization"] == "Bearer sk-test"
        body = recorder.body
        assert body["model"] == "test-model"
        assert body["messages"] == [
            {"role": "system", "content": "be terse"},
            {"role": "user", "content": "parse this"},
        ]
        assert body["temperature"] == 0.3
        assert body["response_format"] == {"type": "json_object"}

    def test_text_mode_omits_response_format_and_system(self):
        recorder = Recorder(openai_reply("hello"))
        client = make_client(CloudBackend.OPENAI, recorder)
        assert asyncio.run(client.complete_text(None, "hi")) == "hello"
        assert "response_format" not in recorder.body
        assert recorder.body["messages"] == [{"role": "user", "content": "hi"}]

    def test_json_inside_prose_is_extracted(self):
        recorder = Recorder(openai_reply('Here you go:\n{"title": "Dev"}\nThanks'))
        client = make_client(CloudBackend.OPENAI, recorder)
        assert asyncio.run(client.complete_json(None, "x")) == {"title": "Dev"}


class TestAnthropic:
    def test_request_shape(self):
        recorder = Recorder(anthropic_reply('{"a": 1}'))
        client = make_client(CloudBackend.ANTHROPIC, recorder)
        assert asyncio.run(client.complete_json("sys", "user")) == {"a": 1}

        request = recorder.requests[0]
        assert str(request.url) == ANTHROPIC_URL
        assert request.headers["x-api-key"] == "sk-test"
        assert request.headers["anthropic-version"] == ANTHROPIC_VERSION
        assert recorder.body["system"] == "sys"
        assert recorder.body["messages"] == [{"role": "user", "content": "user"}]

    def test_no_text_block_is_invalid_response(self):
        recorder = Recorder(httpx.Response(200, json={"content": [{"type": "tool_use"}]}))
        client = make_client(CloudBackend.ANTHROPIC, recorder)
        with pytest.raises(InvalidResponseError):
            asyncio.run(client.complete_text(None, "x"))

    @pytest.mark.parametrize("content", [["oops"], [None, 3], "text"])
    def test_malformed_content_blocks_are_invalid_response(self, content):
        recorder = Recorder(httpx.Response(200, json={"content": content}))
        client = make_client(CloudBackend.ANTHROPIC, recorder)
        with pytest.raises(InvalidResponseError):
            asyncio.run(client.complete_text(None, "x"))


class TestErrorMapping:
    @pytest.mark.parametrize(
        ("status", "error"),
        [(401, InvalidApiKeyError), (429, RateLimitExceededError), (500, NetworkError), (503, NetworkError)],
    )
    def test_status_codes(self, status, error):
        recorder = Recorder(httpx.Response(status, text="boom"))
        client = make_client(CloudBackend.OPENAI, recorder)
        with pytest.raises(error):
            asyncio.run(client.complete_text(None, "x"))

    def test_server_error_message_includes_status_and_body(self):
        recorder = Recorder(httpx.Response(500, text="overloaded"))
        client = make_client(CloudBackend.OPENAI, recorder)
        with pytest.raises(NetworkError, match=r"API error \(500\): overloaded"):
            asyncio.run(client.complete_text(None, "x"))

    def test_timeout_is_network_error(self):
        recorder = Recorder(httpx.ReadTimeout("slow"))
        client = make_client(CloudBackend.OPENAI, recorder)
        with pytest.raises(NetworkError, match="timed out"):
            asyncio.run(client.complete_text(None, "x"))

    def test_connect_error_is_network_error(self):
        recorder = Recorder(httpx.ConnectError("refused"))
        client = make_client(CloudBackend.OPENAI, recorder)
        with pytest.raises(NetworkError, match="Request failed"):
            asyncio.run(client.complete_text(None, "x"))

    def test_non_json_body_is_invalid_response(self):
        recorder = Recorder(httpx.Response(200, text="<html>"))
        client = make_client(CloudBackend.OPENAI, recorder)
        with pytest.raises(InvalidResponseError):
            asyncio.run(client.complete_text(None, "x"))

    def test_missing_choices_is_invalid_response(self):
        recorder = Recorder(httpx.Response(200, json={"choices": []}))
        client = make_client(CloudBackend.OPENAI, recorder)
        with pytest.raises(InvalidResponseError):
            asyncio.run(client.complete_text(None, "x"))

    def test_unparseable_model_text_is_invalid_response(self):
        recorder = Recorder(openai_reply("not json at all"))
        client = make_client(CloudBackend.OPENAI, recorder)
        with pytest.raises(InvalidResponseError, match="Failed to parse JSON"):
            asyncio.run(client.complete_json(None, "x"))
