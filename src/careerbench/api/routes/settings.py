"""AI settings and API key endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from careerbench.api.deps import get_service
from careerbench.api.schemas import AISettingsUpdate, AISettingsView, KeyStatus, RotateKeyRequest
from careerbench.models.settings import ProviderConfiguration
from careerbench.services.ai_service import AIService

router = APIRouter(tags=["settings"])


def _view(service: AIService) -> AISettingsView:
    config = service.load_configuration()
    return AISettingsView(
        mode=config.mode,
        backend=config.backend,
        model_name=config.model_name,
        local_model_path=config.local_model_path,
        has_api_key=config.credential is not None,
    )


@router.get("")
async def get_settings(service: AIService = Depends(get_service)) -> AISettingsView:
    return _view(service)


@router.put("")
async def update_settings(body: AISettingsUpdate, service: AIService = Depends(get_service)) -> AISettingsView:
    config = ProviderConfiguration(
        mode=body.mode,
        backend=body.backend,
        model_name=body.model_name,
        local_model_path=body.local_model_path,
    )
    service.save_configuration(config, api_key=body.api_key)
    return _view(service)


@router.post("/rotate-key")
async def rotate_key(body: RotateKeyRequest, service: AIService = Depends(get_service)) -> KeyStatus:
    metadata = await service.rotate_api_key(body.api_key, body.backend)
    return KeyStatus(metadata=metadata, rotation_due_days=service.key_rotation_due())


@router.get("/key-status")
async def key_status(service: AIService = Depends(get_service)) -> KeyStatus:
    return KeyStatus(metadata=service.api_key_metadata(), rotation_due_days=service.key_rotation_due())
