"""FastAPI application with lifespan and router mounting."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from careerbench.api.routes import ai, cache, health, settings as settings_routes
from careerbench.core.config import AppSettings
from careerbench.core.exceptions import AIProviderError, CareerBenchError, ErrorKind, KeyRotationError
from careerbench.core.logging import configure_logging, get_logger
from careerbench.core.user_messages import to_user_friendly_error
from careerbench.persistence import create_persistence
from careerbench.services.ai_service import AIService

logger = get_logger(__name__)

STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.INVALID_API_KEY: 401,
    ErrorKind.RATE_LIMIT_EXCEEDED: 429,
    ErrorKind.MODEL_NOT_FOUND: 404,
    ErrorKind.VALIDATION: 502,
    ErrorKind.INVALID_RESPONSE: 502,
    ErrorKind.NETWORK: 503,
    ErrorKind.UNKNOWN: 500,
}


async def _provider_error_handler(request: Request, exc: AIProviderError) -> JSONResponse:
    friendly = to_user_friendly_error(exc)
    return JSONResponse(status_code=STATUS_BY_KIND[exc.kind], content=friendly.model_dump(mode="json"))


async def _key_rotation_error_handler(request: Request, exc: KeyRotationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"message": str(exc)})


async def _app_error_handler(request: Request, exc: CareerBenchError) -> JSONResponse:
    logger.error("Request failed", path=request.url.path, error=str(exc), error_type=type(exc).__name__)
    return JSONResponse(status_code=500, content={"message": str(exc)})


def create_app(settings: AppSettings | None = None, service: AIService | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    A prebuilt ``service`` skips persistence setup (used by tests).
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Initialize and tear down application resources."""
        app_settings = settings or AppSettings()
        configure_logging(app_settings)
        app.state.settings = app_settings
        app.state.service = service or AIService(app_settings, create_persistence(app_settings))
        logger.info("CareerBench AI API started", environment=app_settings.environment)
        yield
        await app.state.service.close()

    app = FastAPI(
        title="CareerBench AI Layer",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.add_exception_handler(AIProviderError, _provider_error_handler)
    app.add_exception_handler(KeyRotationError, _key_rotation_error_handler)
    app.add_exception_handler(CareerBenchError, _app_error_handler)
    app.include_router(health.router)
    app.include_router(ai.router, prefix="/ai")
    app.include_router(cache.router, prefix="/cache")
    app.include_router(settings_routes.router, prefix="/settings/ai")
    return app
