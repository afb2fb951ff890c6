"""Cache purposes, their TTLs, and the invalidation domains that group them."""

from __future__ import annotations

from datetime import timedelta
from enum import StrEnum

from careerbench.core.config import CacheConfig


class CachePurpose(StrEnum):
    JOB_PARSE = "job_parse"
    RESUME_GENERATION = "resume_generation"
    COVER_LETTER_GENERATION = "cover_letter_generation"
    SKILL_SUGGESTIONS = "skill_suggestions"


class InvalidationDomain(StrEnum):
    """Upstream data whose edits make cached responses stale."""

    PROFILE = "profile"
    JOB = "job"


DOMAIN_PURPOSES: dict[InvalidationDomain, tuple[CachePurpose, ...]] = {
    InvalidationDomain.PROFILE: (
        CachePurpose.RESUME_GENERATION,
        CachePurpose.COVER_LETTER_GENERATION,
        CachePurpose.SKILL_SUGGESTIONS,
    ),
    InvalidationDomain.JOB: (CachePurpose.JOB_PARSE,),
}


def ttl_for(purpose: str, config: CacheConfig) -> timedelta | None:
    """TTL for a purpose; ``None`` means entries never expire."""
    days = {
        CachePurpose.JOB_PARSE: config.job_parse_ttl_days,
        CachePurpose.RESUME_GENERATION: config.resume_ttl_days,
        CachePurpose.COVER_LETTER_GENERATION: config.cover_letter_ttl_days,
        CachePurpose.SKILL_SUGGESTIONS: config.skill_suggestions_ttl_days,
    }.get(purpose)
    return timedelta(days=days) if days is not None else None
