"""FastAPI dependencies."""

from __future__ import annotations

from fastapi import Request

from careerbench.services.ai_service import AIService


def get_service(request: Request) -> AIService:
    return request.app.state.service
