"""In-memory backends for unit tests and ephemeral runs."""

from __future__ import annotations

import threading
from datetime import datetime, timezone
from typing import Sequence

from careerbench.models.cache import CacheEntry, CacheStats
from careerbench.models.settings import KeyMetadata, ProviderConfiguration, StoredSecret


class MemoryResponseCache:
    """List-backed IResponseCacheBackend; list order is insertion order."""

    def __init__(self) -> None:
        self._entries: list[CacheEntry] = []
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, purpose: str, input_hash: str, now: datetime) -> CacheEntry | None:
        with self._lock:
            for entry in self._entries:
                if entry.purpose == purpose and entry.input_hash == input_hash:
                    return None if entry.is_expired(now) else entry
        return None

    def put(self, entry: CacheEntry) -> None:
        with self._lock:
            self._entries = [
                e for e in self._entries
                if not (e.purpose == entry.purpose and e.input_hash == entry.input_hash)
            ]
            self._entries.append(entry)

    def delete_purposes(self, purposes: Sequence[str]) -> int:
        with self._lock:
            before = len(self._entries)
            self._entries = [e for e in self._entries if e.purpose not in purposes]
            return before - len(self._entries)

    def clear_all(self) -> int:
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            return count

    def cleanup_expired(self, now: datetime) -> int:
        with self._lock:
            before = len(self._entries)
            self._entries = [e for e in self._entries if not e.is_expired(now)]
            return before - len(self._entries)

    def _oldest_first(self) -> list[CacheEntry]:
        # sorted() is stable, so equal timestamps keep insertion order
        return sorted(self._entries, key=lambda e: e.created_at)

    def evict_by_count(self, max_entries: int) -> int:
        with self._lock:
            excess = len(self._entries) - max_entries
            if excess <= 0:
                return 0
            doomed = {id(e) for e in self._oldest_first()[:excess]}
            self._entries = [e for e in self._entries if id(e) not in doomed]
            return excess

    def evict_by_size(self, max_bytes: int) -> int:
        with self._lock:
            total = sum(e.payload_size for e in self._entries)
            doomed: set[int] = set()
            for entry in self._oldest_first():
                if total <= max_bytes:
                    break
                total -= entry.payload_size
                doomed.add(id(entry))
            self._entries = [e for e in self._entries if id(e) not in doomed]
            return len(doomed)

    def stats(self, now: datetime) -> CacheStats:
        with self._lock:
            return CacheStats.from_entries(list(self._entries), now)


class MemorySecretStore:
    """Dict-backed ISecretStore for unit tests."""

    def __init__(self) -> None:
        self._secrets: dict[str, StoredSecret] = {}

    def get_secret(self, name: str) -> str | None:
        stored = self._secrets.get(name)
        return stored.value if stored else None

    def store_secret(self, name: str, value: str) -> None:
        existing = self._secrets.get(name)
        metadata = existing.metadata if existing else KeyMetadata(created_at=datetime.now(timezone.utc))
        self._secrets[name] = StoredSecret(value=value, metadata=metadata)

    def remove_secret(self, name: str) -> None:
        self._secrets.pop(name, None)

    def rotate_secret(self, name: str, value: str) -> KeyMetadata:
        existing = self._secrets.get(name)
        if existing is None:
            self.store_secret(name, value)
            return self._secrets[name].metadata
        metadata = existing.metadata.model_copy(update={
            "last_rotated_at": datetime.now(timezone.utc),
            "rotation_count": existing.metadata.rotation_count + 1,
        })
        self._secrets[name] = StoredSecret(value=value, metadata=metadata)
        return metadata

    def get_metadata(self, name: str) -> KeyMetadata | None:
        stored = self._secrets.get(name)
        return stored.metadata if stored else None


class MemorySettingsStore:
    """Holds one ProviderConfiguration; the credential is never kept here."""

    def __init__(self, config: ProviderConfiguration | None = None) -> None:
        self._config = (config or ProviderConfiguration()).model_copy(update={"credential": None})

    def load(self) -> ProviderConfiguration:
        return self._config.model_copy()

    def save(self, config: ProviderConfiguration) -> None:
        self._config = config.model_copy(update={"credential": None})
