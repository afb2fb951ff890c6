"""Redis backend implementing IResponseCacheBackend.

Layout under ``key_prefix``:

- ``{prefix}:entry:{purpose}:{hash}``: the entry as JSON
- ``{prefix}:index``: sorted set of ``{purpose}:{hash}`` scored by created_at
- ``{prefix}:sizes``: hash of ``{purpose}:{hash}`` to payload bytes
- ``{prefix}:purpose:{purpose}``: set of hashes per purpose

Expiry is applied on read like the SQL backend, not through Redis TTLs, so
stats can still report expired rows until cleanup runs.
"""

from __future__ import annotations

from datetime import datetime
from typing import Sequence

import redis

from careerbench.core.exceptions import CacheError
from careerbench.models.cache import CacheEntry, CacheStats


class RedisResponseCache:
    """Production IResponseCacheBackend backed by Redis."""

    def __init__(
        self,
        host: str = "localhost",
        port: int = 6379,
        db: int = 0,
        key_prefix: str = "careerbench:ai_cache",
    ) -> None:
        self._prefix = key_prefix
        self._client = redis.Redis(host=host, port=port, db=db, decode_responses=True)

    # ---- key helpers ----

    @staticmethod
    def _member(purpose: str, input_hash: str) -> str:
        return f"{purpose}:{input_hash}"

    def _entry_key(self, member: str) -> str:
        return f"{self._prefix}:entry:{member}"

    def _purpose_key(self, purpose: str) -> str:
        return f"{self._prefix}:purpose:{purpose}"

    @property
    def _index_key(self) -> str:
        return f"{self._prefix}:index"

    @property
    def _sizes_key(self) -> str:
        return f"{self._prefix}:sizes"

    def _remove_members(self, members: Sequence[str]) -> int:
        if not members:
            return 0
        pipe = self._client.pipeline()
        for member in members:
            purpose, _, input_hash = member.partition(":")
            pipe.delete(self._entry_key(member))
            pipe.zrem(self._index_key, member)
            pipe.hdel(self._sizes_key, member)
            pipe.srem(self._purpose_key(purpose), input_hash)
        pipe.execute()
        return len(members)

    def _all_entries(self) -> list[CacheEntry]:
        members = self._client.zrange(self._index_key, 0, -1)
        if not members:
            return []
        raw = self._client.mget([self._entry_key(m) for m in members])
        return [CacheEntry.model_validate_json(doc) for doc in raw if doc is not None]

    # ---- IResponseCacheBackend methods ----

    def get(self, purpose: str, input_hash: str, now: datetime) -> CacheEntry | None:
        try:
            doc = self._client.get(self._entry_key(self._member(purpose, input_hash)))
        except redis.RedisError as exc:
            raise CacheError(f"Redis GET failed for purpose={purpose!r}: {exc}") from exc
        if doc is None:
            return None
        entry = CacheEntry.model_validate_json(doc)
        return None if entry.is_expired(now) else entry

    def put(self, entry: CacheEntry) -> None:
        member = self._member(entry.purpose, entry.input_hash)
        try:
            pipe = self._client.pipeline()
            pipe.set(self._entry_key(member), entry.model_dump_json())
            pipe.zadd(self._index_key, {member: entry.created_at.timestamp()})
            pipe.hset(self._sizes_key, member, entry.payload_size)
            pipe.sadd(self._purpose_key(entry.purpose), entry.input_hash)
            pipe.execute()
        except redis.RedisError as exc:
            raise CacheError(f"Redis SET failed for purpose={entry.purpose!r}: {exc}") from exc

    def delete_purposes(self, purposes: Sequence[str]) -> int:
        try:
            members = [
                self._member(purpose, input_hash)
                for purpose in purposes
                for input_hash in self._client.smembers(self._purpose_key(purpose))
            ]
            return self._remove_members(members)
        except redis.RedisError as exc:
            raise CacheError(f"Redis delete failed for purposes={list(purposes)!r}: {exc}") from exc

    def clear_all(self) -> int:
        try:
            return self._remove_members(self._client.zrange(self._index_key, 0, -1))
        except redis.RedisError as exc:
            raise CacheError(f"Redis clear failed: {exc}") from exc

    def cleanup_expired(self, now: datetime) -> int:
        try:
            expired = [
                self._member(e.purpose, e.input_hash)
                for e in self._all_entries()
                if e.is_expired(now)
            ]
            return self._remove_members(expired)
        except redis.RedisError as exc:
            raise CacheError(f"Redis cleanup failed: {exc}") from exc

    def evict_by_count(self, max_entries: int) -> int:
        try:
            excess = self._client.zcard(self._index_key) - max_entries
            if excess <= 0:
                return 0
            return self._remove_members(self._client.zrange(self._index_key, 0, excess - 1))
        except redis.RedisError as exc:
            raise CacheError(f"Redis eviction by count failed: {exc}") from exc

    def evict_by_size(self, max_bytes: int) -> int:
        try:
            sizes = {m: int(v) for m, v in self._client.hgetall(self._sizes_key).items()}
            total = sum(sizes.values())
            doomed: list[str] = []
            for member in self._client.zrange(self._index_key, 0, -1):
                if total <= max_bytes:
                    break
                doomed.append(member)
                total -= sizes.get(member, 0)
            return self._remove_members(doomed)
        except redis.RedisError as exc:
            raise CacheError(f"Redis eviction by size failed: {exc}") from exc

    def stats(self, now: datetime) -> CacheStats:
        try:
            return CacheStats.from_entries(self._all_entries(), now)
        except redis.RedisError as exc:
            raise CacheError(f"Redis stats failed: {exc}") from exc
