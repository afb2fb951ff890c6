"""CareerBench exception hierarchy."""

from __future__ import annotations

from enum import StrEnum
from typing import Any


class CareerBenchError(Exception):
    """Base exception for all CareerBench errors."""


class ErrorKind(StrEnum):
    NETWORK = "network"
    INVALID_RESPONSE = "invalid_response"
    RATE_LIMIT_EXCEEDED = "rate_limit_exceeded"
    INVALID_API_KEY = "invalid_api_key"
    MODEL_NOT_FOUND = "model_not_found"
    VALIDATION = "validation"
    UNKNOWN = "unknown"


class AIProviderError(CareerBenchError):
    """Failure of an AI capability call. Subclasses pin the error kind."""

    kind: ErrorKind = ErrorKind.UNKNOWN
    label: str = "Unknown error"

    def __init__(self, message: str = "") -> None:
        self.message = message
        super().__init__(f"{self.label}: {message}" if message else self.label)


class NetworkError(AIProviderError):
    """Transport or HTTP failure."""

    kind = ErrorKind.NETWORK
    label = "Network error"


class InvalidResponseError(AIProviderError):
    """Malformed or unparseable model output."""

    kind = ErrorKind.INVALID_RESPONSE
    label = "Invalid response"


class RateLimitExceededError(AIProviderError):
    """Backend signaled throttling (HTTP 429)."""

    kind = ErrorKind.RATE_LIMIT_EXCEEDED
    label = "Rate limit exceeded"


class InvalidApiKeyError(AIProviderError):
    """Backend rejected the credential (HTTP 401)."""

    kind = ErrorKind.INVALID_API_KEY
    label = "Invalid API key"


class ModelNotFoundError(AIProviderError):
    """Missing local model artifact or unknown remote model id."""

    kind = ErrorKind.MODEL_NOT_FOUND
    label = "Model not found"


class OutputValidationError(AIProviderError):
    """Model output failed schema or business-rule checks."""

    kind = ErrorKind.VALIDATION
    label = "Validation error"

    def __init__(self, message: str, payload: Any = None) -> None:
        self.payload = payload
        super().__init__(message)


class UnknownProviderError(AIProviderError):
    """Uncategorized provider failure."""


class ProviderNotConfiguredError(UnknownProviderError):
    """No usable provider could be built from the current settings."""


class CacheError(CareerBenchError):
    """Response cache operation failed."""


class SettingsError(CareerBenchError):
    """AI settings could not be loaded or saved."""


class SecretStoreError(CareerBenchError):
    """Secret store operation failed."""


class KeyRotationError(CareerBenchError):
    """A new API key was rejected or could not be stored."""
