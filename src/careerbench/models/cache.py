"""Response cache entry and statistics models."""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Iterable, Optional

from pydantic import BaseModel, Field


class CacheEntry(BaseModel):
    """One cached provider response, unique on (purpose, input_hash)."""

    purpose: str
    input_hash: str
    model_name: str
    request_payload: Any = None
    response_payload: Any = None
    created_at: datetime
    expires_at: Optional[datetime] = None

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and self.expires_at < now

    @property
    def payload_size(self) -> int:
        """Serialized byte size of request plus response payloads."""
        return len(json.dumps(self.request_payload).encode("utf-8")) + len(
            json.dumps(self.response_payload).encode("utf-8")
        )


class CacheStats(BaseModel):
    """Aggregate view over the cache table."""

    total_entries: int = 0
    total_size_bytes: int = 0
    entries_by_purpose: dict[str, int] = Field(default_factory=dict)
    expired_entries: int = 0
    oldest_entry: Optional[datetime] = None
    newest_entry: Optional[datetime] = None

    @classmethod
    def from_entries(cls, entries: Iterable[CacheEntry], now: datetime) -> CacheStats:
        stats = cls()
        for entry in entries:
            stats.total_entries += 1
            stats.total_size_bytes += entry.payload_size
            stats.entries_by_purpose[entry.purpose] = stats.entries_by_purpose.get(entry.purpose, 0) + 1
            if entry.is_expired(now):
                stats.expired_entries += 1
            if stats.oldest_entry is None or entry.created_at < stats.oldest_entry:
                stats.oldest_entry = entry.created_at
            if stats.newest_entry is None or entry.created_at > stats.newest_entry:
                stats.newest_entry = entry.created_at
        return stats
