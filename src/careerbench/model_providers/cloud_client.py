"""HTTP client for remote model APIs.

Two dialects are supported: OpenAI chat completions and Anthropic messages.
They differ in auth header, request envelope and response envelope; status
code mapping and JSON parsing are shared.
"""

from __future__ import annotations

import json
from typing import Any

import httpx

from careerbench.core.exceptions import (
    InvalidApiKeyError,
    InvalidResponseError,
    NetworkError,
    RateLimitExceededError,
)
from careerbench.core.logging import get_logger
from careerbench.model_providers.prompts import extract_json
from careerbench.models.settings import CloudBackend

logger = get_logger(__name__)

OPENAI_URL = "https://api.openai.com/v1/chat/completions"
ANTHROPIC_URL = "https://api.anthropic.com/v1/messages"
ANTHROPIC_VERSION = "2023-06-01"
ANTHROPIC_MAX_TOKENS = 4096


class CloudBackendClient:
    """Builds, sends and unwraps one request per call."""

    def __init__(
        self,
        backend: CloudBackend,
        api_key: str,
        model_name: str,
        *,
        timeout: float = 60.0,
        temperature: float = 0.3,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.backend = backend
        self.model_name = model_name
        self._api_key = api_key
        self._timeout = timeout
        self._temperature = temperature
        self._transport = transport

    # ---- request construction ----

    def _build_request(self, system_prompt: str | None, user_prompt: str, json_mode: bool) -> tuple[str, dict, dict]:
        if self.backend is CloudBackend.ANTHROPIC:
            headers = {
                "x-api-key": self._api_key,
                "anthropic-version": ANTHROPIC_VERSION,
                "content-type": "application/json",
            }
            body: dict[str, Any] = {
                "model": self.model_name,
                "max_tokens": ANTHROPIC_MAX_TOKENS,
                "messages": [{"role": "user", "content": user_prompt}],
            }
            if system_prompt:
                body["system"] = system_prompt
            return ANTHROPIC_URL, headers, body

        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": user_prompt})
        body = {
            "model": self.model_name,
            "messages": messages,
            "temperature": self._temperature,
        }
        if json_mode:
            body["response_format"] = {"type": "json_object"}
        return OPENAI_URL, headers, body

    # ---- response handling ----

    @staticmethod
    def _check_status(response: httpx.Response) -> None:
        status = response.status_code
        if status == 401:
            raise InvalidApiKeyError()
        if status == 429:
            raise RateLimitExceededError()
        if not response.is_success:
            raise NetworkError(f"API error ({status}): {response.text}")

    def _extract_text(self, data: Any) -> str:
        try:
            if self.backend is CloudBackend.ANTHROPIC:
                for block in data["content"]:
                    if isinstance(block, dict) and block.get("type") == "text":
                        return block["text"]
                raise InvalidResponseError("No text block in response content")
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise InvalidResponseError(f"Unexpected response envelope: {exc}") from exc
        if not isinstance(content, str):
            raise InvalidResponseError("No content in response")
        return content

    # ---- public calls ----

    async def complete_text(self, system_prompt: str | None, user_prompt: str, json_mode: bool = False) -> str:
        """Send one prompt pair and return the generated text."""
        url, headers, body = self._build_request(system_prompt, user_prompt, json_mode)
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(url, headers=headers, json=body)
        except httpx.TimeoutException as exc:
            raise NetworkError(f"Request timed out: {exc}") from exc
        except httpx.HTTPError as exc:
            raise NetworkError(f"Request failed: {exc}") from exc

        self._check_status(response)
        try:
            data = response.json()
        except ValueError as exc:
            raise InvalidResponseError(f"Failed to parse response body: {exc}") from exc
        text = self._extract_text(data)
        logger.debug("Cloud completion received", backend=self.backend, model=self.model_name, chars=len(text))
        return text

    async def complete_json(self, system_prompt: str | None, user_prompt: str) -> Any:
        """Send one prompt pair and parse the generated text as JSON."""
        text = await self.complete_text(system_prompt, user_prompt, json_mode=True)
        try:
            return json.loads(extract_json(text))
        except ValueError as exc:
            raise InvalidResponseError(f"Failed to parse JSON: {exc}") from exc
