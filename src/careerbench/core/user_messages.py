"""Map provider errors to user-facing messages with recovery suggestions."""

from __future__ import annotations

from pydantic import BaseModel, Field

from careerbench.core.exceptions import AIProviderError, ErrorKind


class UserFriendlyError(BaseModel):
    """What the UI shows for a failed AI call."""

    message: str
    suggestions: list[str] = Field(default_factory=list)
    recoverable: bool = True
    requires_action: bool = False
    kind: ErrorKind = ErrorKind.UNKNOWN


def _network_message(detail: str) -> str:
    lowered = detail.lower()
    if "timeout" in lowered or "timed out" in lowered:
        return "Connection timed out. The AI service may be slow or unavailable"
    if "connection" in lowered or "refused" in lowered:
        return "Cannot connect to the AI service. Check your internet connection"
    if "429" in lowered:
        return "Too many requests. Please wait a moment and try again"
    return f"Network error: {detail}"


def _unknown(detail: str) -> UserFriendlyError:
    lowered = detail.lower()
    if "not configured" in lowered or "not set up" in lowered or "not yet implemented" in lowered:
        return UserFriendlyError(
            message="AI provider is not configured",
            suggestions=[
                "Go to Settings to configure your AI provider",
                "For cloud providers, enter your API key",
                "For local providers, specify the model file path",
            ],
            recoverable=False,
            requires_action=True,
        )
    if "model path" in lowered or "model file" in lowered:
        return UserFriendlyError(
            message="Local AI model file not found",
            suggestions=[
                "Check the model path in Settings",
                "Ensure the model file exists and is accessible",
                "Download a GGUF model file if you haven't already",
            ],
            recoverable=False,
            requires_action=True,
        )
    return UserFriendlyError(
        message=f"An unexpected error occurred: {detail}",
        suggestions=[
            "Try again in a moment",
            "If the problem persists, check your AI settings",
        ],
    )


def to_user_friendly_error(error: AIProviderError) -> UserFriendlyError:
    detail = error.message
    match error.kind:
        case ErrorKind.INVALID_API_KEY:
            friendly = UserFriendlyError(
                message="Your API key is invalid or has expired",
                suggestions=[
                    "Check your API key in Settings",
                    "Verify the key is correct and hasn't been revoked",
                    "Generate a new API key if needed",
                ],
                recoverable=False,
                requires_action=True,
            )
        case ErrorKind.RATE_LIMIT_EXCEEDED:
            friendly = UserFriendlyError(
                message="Rate limit exceeded. Too many requests in a short time",
                suggestions=[
                    "Wait a few moments and try again",
                    "The system will automatically retry with a delay",
                    "Consider upgrading your API plan for higher limits",
                ],
            )
        case ErrorKind.NETWORK:
            friendly = UserFriendlyError(
                message=_network_message(detail),
                suggestions=[
                    "Check your internet connection",
                    "Wait a moment and try again",
                    "If the problem persists, the AI service may be temporarily unavailable",
                ],
            )
        case ErrorKind.INVALID_RESPONSE:
            friendly = UserFriendlyError(
                message="The AI service returned an unexpected response",
                suggestions=[
                    "Try generating again - this is usually a temporary issue",
                    "If the problem continues, the AI model may be experiencing issues",
                ],
            )
        case ErrorKind.VALIDATION:
            friendly = UserFriendlyError(
                message=f"Validation error: {detail}",
                suggestions=[
                    "The AI response didn't match the expected format",
                    "Try generating again",
                ],
            )
        case ErrorKind.MODEL_NOT_FOUND:
            friendly = UserFriendlyError(
                message="The specified AI model was not found",
                suggestions=[
                    "Check your AI settings and verify the model name",
                    "For local models, ensure the model file exists at the specified path",
                ],
                recoverable=False,
                requires_action=True,
            )
        case _:
            friendly = _unknown(detail)
    return friendly.model_copy(update={"kind": error.kind})


def format_error_for_ui(error: AIProviderError) -> str:
    """Message followed by a bulleted suggestion list."""
    friendly = to_user_friendly_error(error)
    lines = [friendly.message]
    if friendly.suggestions:
        lines.append("\nSuggestions:")
        lines.extend(f"• {s}" for s in friendly.suggestions)
    return "\n".join(lines)


def get_short_error_message(error: AIProviderError) -> str:
    """Message only, for toasts and notifications."""
    return to_user_friendly_error(error).message
