"""Tests for the ResponseCache service over the in-memory backend."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from careerbench.caching.keys import canonical_json, compute_input_hash
from careerbench.caching.purposes import CachePurpose, InvalidationDomain, ttl_for
from careerbench.caching.response_cache import ResponseCache
from careerbench.core.config import CacheConfig
from careerbench.persistence.memory_backend import MemoryResponseCache

T0 = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)


class Clock:
    def __init__(self, now: datetime = T0) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def backend():
    return MemoryResponseCache()


@pytest.fixture
def cache(backend, clock):
    return ResponseCache(backend, CacheConfig(), clock=clock)


class TestKeys:
    def test_hash_ignores_key_order(self):
        assert compute_input_hash({"a": 1, "b": [1, 2]}) == compute_input_hash({"b": [1, 2], "a": 1})

    def test_hash_differs_for_different_values(self):
        assert compute_input_hash({"a": 1}) != compute_input_hash({"a": 2})

    def test_canonical_json_is_compact(self):
        assert canonical_json({"b": 1, "a": "é"}) == '{"a":"é","b":1}'

    def test_hash_is_sha256_hex(self):
        digest = compute_input_hash({"x": 1})
        assert len(digest) == 64
        int(digest, 16)


class TestPurposes:
    def test_default_ttls(self):
        config = CacheConfig()
        assert ttl_for(CachePurpose.JOB_PARSE, config) == timedelta(days=90)
        assert ttl_for(CachePurpose.RESUME_GENERATION, config) == timedelta(days=30)
        assert ttl_for("something_else", config) is None

    def test_ttl_can_be_disabled(self):
        assert ttl_for(CachePurpose.JOB_PARSE, CacheConfig(job_parse_ttl_days=None)) is None


class TestGetPut:
    def test_put_then_get_returns_entry(self, cache):
        cache.put("job_parse", "h1", "gpt-4o-mini", {"q": 1}, {"a": 2})
        entry = cache.get("job_parse", "h1")
        assert entry is not None
        assert entry.response_payload == {"a": 2}
        assert entry.model_name == "gpt-4o-mini"
        assert entry.created_at == T0

    def test_missing_key_is_none(self, cache):
        assert cache.get("job_parse", "nope") is None

    def test_expired_entry_reads_as_absent_but_stays_stored(self, cache, backend, clock):
        cache.put("job_parse", "h1", "m", {}, {"a": 1}, ttl=timedelta(days=1))
        clock.advance(days=2)
        assert cache.get("job_parse", "h1") is None
        assert len(backend) == 1
        assert cache.stats().expired_entries == 1

    def test_entry_without_ttl_never_expires(self, cache, clock):
        cache.put("job_parse", "h1", "m", {}, {"a": 1})
        clock.advance(days=10_000)
        assert cache.get("job_parse", "h1") is not None

    def test_put_replaces_existing_key(self, cache, backend):
        cache.put("job_parse", "h1", "m", {}, {"v": 1})
        cache.put("job_parse", "h1", "m", {}, {"v": 2})
        assert len(backend) == 1
        assert cache.get("job_parse", "h1").response_payload == {"v": 2}


class TestLookupStore:
    def test_store_then_lookup_by_request(self, cache):
        request = {"jobDescription": "Python developer"}
        cache.store(CachePurpose.JOB_PARSE, request, "m", {"titleSuggestion": "Dev"})
        assert cache.lookup(CachePurpose.JOB_PARSE, {"jobDescription": "Python developer"}) == {
            "titleSuggestion": "Dev"
        }
        assert cache.lookup(CachePurpose.JOB_PARSE, {"jobDescription": "Go developer"}) is None

    def test_store_applies_purpose_ttl(self, cache):
        entry = cache.store(CachePurpose.JOB_PARSE, {"x": 1}, "m", {"y": 2})
        assert entry.expires_at == T0 + timedelta(days=90)

    def test_store_enforces_max_entries(self, backend, clock):
        cache = ResponseCache(backend, CacheConfig(max_entries=2), clock=clock)
        for i in range(4):
            cache.store(CachePurpose.JOB_PARSE, {"i": i}, "m", {"r": i})
            clock.advance(seconds=1)
        assert len(backend) == 2
        assert cache.lookup(CachePurpose.JOB_PARSE, {"i": 0}) is None
        assert cache.lookup(CachePurpose.JOB_PARSE, {"i": 3}) == {"r": 3}


class TestInvalidation:
    def _fill(self, cache):
        for purpose in CachePurpose:
            cache.put(purpose, "h", "m", {}, {})

    def test_profile_domain_keeps_job_parse(self, cache):
        self._fill(cache)
        assert cache.invalidate_domain(InvalidationDomain.PROFILE) == 3
        assert cache.stats().entries_by_purpose == {"job_parse": 1}

    def test_job_domain_accepts_plain_string(self, cache):
        self._fill(cache)
        assert cache.invalidate_domain("job") == 1
        assert cache.get(CachePurpose.JOB_PARSE, "h") is None

    def test_clear_purpose(self, cache):
        self._fill(cache)
        assert cache.clear_purpose(CachePurpose.SKILL_SUGGESTIONS) == 1
        assert cache.stats().total_entries == 3

    def test_clear_all(self, cache):
        self._fill(cache)
        assert cache.clear_all() == 4
        assert cache.stats().total_entries == 0


class TestEviction:
    def _fill(self, cache, clock, n=5):
        for i in range(n):
            cache.put("job_parse", f"h{i}", "m", {"i": i}, {"payload": "x" * 100})
            clock.advance(minutes=1)

    def test_evict_by_count_keeps_newest(self, cache, clock):
        self._fill(cache, clock)
        assert cache.evict_by_count(2) == 3
        assert cache.get("job_parse", "h0") is None
        assert cache.get("job_parse", "h3") is not None
        assert cache.get("job_parse", "h4") is not None

    def test_evict_by_count_noop_under_limit(self, cache, clock):
        self._fill(cache, clock, n=2)
        assert cache.evict_by_count(5) == 0

    def test_evict_by_count_zero_empties(self, cache, clock):
        self._fill(cache, clock, n=3)
        assert cache.evict_by_count(0) == 3
        assert cache.stats().total_entries == 0

    def test_evict_by_size_drops_oldest_until_under(self, cache, clock):
        self._fill(cache, clock)
        per_entry = cache.get("job_parse", "h0").payload_size
        evicted = cache.evict_by_size(per_entry * 2)
        assert evicted == 3
        stats = cache.stats()
        assert stats.total_size_bytes <= per_entry * 2
        assert cache.get("job_parse", "h4") is not None

    def test_negative_limits_rejected(self, cache):
        with pytest.raises(ValueError):
            cache.evict_by_count(-1)
        with pytest.raises(ValueError):
            cache.evict_by_size(-1)

    def test_cleanup_expired(self, cache, clock):
        cache.put("job_parse", "old", "m", {}, {}, ttl=timedelta(hours=1))
        cache.put("job_parse", "keep", "m", {}, {})
        clock.advance(hours=2)
        assert cache.cleanup_expired() == 1
        assert cache.stats().total_entries == 1


class TestStats:
    def test_stats_aggregate(self, cache, clock):
        cache.put("job_parse", "a", "m", {}, {})
        clock.advance(hours=1)
        cache.put("skill_suggestions", "b", "m", {}, {})
        stats = cache.stats()
        assert stats.total_entries == 2
        assert stats.entries_by_purpose == {"job_parse": 1, "skill_suggestions": 1}
        assert stats.oldest_entry == T0
        assert stats.newest_entry == T0 + timedelta(hours=1)
        assert stats.total_size_bytes > 0

    def test_empty_stats(self, cache):
        stats = cache.stats()
        assert stats.total_entries == 0
        assert stats.oldest_entry is None
