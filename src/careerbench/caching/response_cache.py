"""Response cache service over a pluggable storage backend.

Entries are addressed by ``(purpose, sha256(canonical request))``. Expiry is
checked lazily on read: an expired row stays in storage until
``cleanup_expired`` or an eviction pass removes it. Both eviction strategies
drop the oldest ``created_at`` rows first; that is insertion order, not
least-recently-used, since no access time is tracked.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Sequence

from careerbench.caching.keys import compute_input_hash
from careerbench.caching.purposes import DOMAIN_PURPOSES, InvalidationDomain, ttl_for
from careerbench.core.config import CacheConfig
from careerbench.core.logging import get_logger
from careerbench.core.protocols import IResponseCacheBackend
from careerbench.models.cache import CacheEntry, CacheStats

logger = get_logger(__name__)

BYTES_PER_MB = 1024 * 1024


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ResponseCache:
    """Content-addressed, TTL-expiring, size/count-bounded response store."""

    def __init__(
        self,
        backend: IResponseCacheBackend,
        config: CacheConfig | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._backend = backend
        self._config = config or CacheConfig()
        self._clock = clock

    @property
    def enabled(self) -> bool:
        return self._config.enabled

    # ---- keyed primitives ----

    def get(self, purpose: str, input_hash: str, now: datetime | None = None) -> CacheEntry | None:
        """Return the live entry for the key, treating expired rows as absent."""
        return self._backend.get(purpose, input_hash, now or self._clock())

    def put(
        self,
        purpose: str,
        input_hash: str,
        model_name: str,
        request: Any,
        response: Any,
        ttl: timedelta | None = None,
        now: datetime | None = None,
    ) -> CacheEntry:
        now = now or self._clock()
        entry = CacheEntry(
            purpose=purpose,
            input_hash=input_hash,
            model_name=model_name,
            request_payload=request,
            response_payload=response,
            created_at=now,
            expires_at=now + ttl if ttl is not None else None,
        )
        self._backend.put(entry)
        return entry

    # ---- request-level helpers used by providers ----

    def lookup(self, purpose: str, request_payload: Any) -> Any | None:
        """Cached response payload for a request, or ``None`` on miss."""
        input_hash = compute_input_hash(request_payload)
        entry = self.get(purpose, input_hash)
        logger.debug("Cache lookup", purpose=purpose, input_hash=input_hash[:12], hit=entry is not None)
        return entry.response_payload if entry is not None else None

    def store(self, purpose: str, request_payload: Any, model_name: str, response_payload: Any) -> CacheEntry:
        """Insert a response under the purpose's TTL, then apply configured bounds."""
        entry = self.put(
            purpose,
            compute_input_hash(request_payload),
            model_name,
            request_payload,
            response_payload,
            ttl=ttl_for(purpose, self._config),
        )
        logger.debug("Cache store", purpose=purpose, model_name=model_name, expires_at=entry.expires_at)
        self.enforce_limits()
        return entry

    # ---- invalidation ----

    def clear_purpose(self, purpose: str) -> int:
        return self.invalidate_purposes([purpose])

    def invalidate_purposes(self, purposes: Sequence[str]) -> int:
        deleted = self._backend.delete_purposes(list(purposes))
        logger.info("Cache invalidated", purposes=list(purposes), deleted=deleted)
        return deleted

    def invalidate_domain(self, domain: InvalidationDomain | str) -> int:
        """Drop every purpose tied to an upstream data domain (profile, job)."""
        return self.invalidate_purposes(DOMAIN_PURPOSES[InvalidationDomain(domain)])

    def clear_all(self) -> int:
        deleted = self._backend.clear_all()
        logger.info("Cache cleared", deleted=deleted)
        return deleted

    # ---- cleanup and eviction ----

    def cleanup_expired(self, now: datetime | None = None) -> int:
        deleted = self._backend.cleanup_expired(now or self._clock())
        if deleted:
            logger.info("Expired cache entries removed", deleted=deleted)
        return deleted

    def evict_by_count(self, max_entries: int) -> int:
        """Delete oldest entries until at most ``max_entries`` remain."""
        if max_entries < 0:
            raise ValueError("max_entries must be non-negative")
        evicted = self._backend.evict_by_count(max_entries)
        if evicted:
            logger.info("Cache evicted by count", evicted=evicted, max_entries=max_entries)
        return evicted

    def evict_by_size(self, max_bytes: int) -> int:
        """Delete oldest entries until total payload bytes are at or under ``max_bytes``."""
        if max_bytes < 0:
            raise ValueError("max_bytes must be non-negative")
        evicted = self._backend.evict_by_size(max_bytes)
        if evicted:
            logger.info("Cache evicted by size", evicted=evicted, max_bytes=max_bytes)
        return evicted

    def evict_by_size_mb(self, max_size_mb: float) -> int:
        return self.evict_by_size(int(max_size_mb * BYTES_PER_MB))

    def enforce_limits(self) -> int:
        evicted = 0
        if self._config.max_entries is not None:
            evicted += self.evict_by_count(self._config.max_entries)
        if self._config.max_size_mb is not None:
            evicted += self.evict_by_size_mb(self._config.max_size_mb)
        return evicted

    def stats(self, now: datetime | None = None) -> CacheStats:
        return self._backend.stats(now or self._clock())
