"""Response cache management endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from careerbench.api.deps import get_service
from careerbench.api.schemas import DeletedCount, EvictRequest
from careerbench.caching.purposes import CachePurpose, InvalidationDomain
from careerbench.models.cache import CacheStats
from careerbench.services.ai_service import AIService

router = APIRouter(tags=["cache"])


@router.get("/stats")
async def stats(service: AIService = Depends(get_service)) -> CacheStats:
    return service.cache.stats()


@router.delete("")
async def clear_all(service: AIService = Depends(get_service)) -> DeletedCount:
    return DeletedCount(deleted=service.cache.clear_all())


@router.delete("/purposes/{purpose}")
async def clear_purpose(purpose: CachePurpose, service: AIService = Depends(get_service)) -> DeletedCount:
    return DeletedCount(deleted=service.cache.clear_purpose(purpose))


@router.post("/invalidate/{domain}")
async def invalidate_domain(domain: InvalidationDomain, service: AIService = Depends(get_service)) -> DeletedCount:
    return DeletedCount(deleted=service.cache.invalidate_domain(domain))


@router.post("/cleanup")
async def cleanup_expired(service: AIService = Depends(get_service)) -> DeletedCount:
    return DeletedCount(deleted=service.cache.cleanup_expired())


@router.post("/evict")
async def evict(body: EvictRequest, service: AIService = Depends(get_service)) -> DeletedCount:
    deleted = 0
    if body.max_entries is not None:
        deleted += service.cache.evict_by_count(body.max_entries)
    if body.max_size_mb is not None:
        deleted += service.cache.evict_by_size_mb(body.max_size_mb)
    return DeletedCount(deleted=deleted)
