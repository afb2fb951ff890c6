"""Health check endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from careerbench.api.deps import get_service
from careerbench.services.ai_service import AIService

router = APIRouter(tags=["health"])


@router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "healthy"}


@router.get("/ready")
async def ready(service: AIService = Depends(get_service)) -> dict[str, str]:
    config = service.load_configuration()
    return {"status": "ready", "mode": config.mode.value}
