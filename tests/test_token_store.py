"""
Tests for the Evidence Token Store
==================================

Tests put/get, lazy expiry, sweeping and token generation.
All tests drive time through a fake clock.
"""

import threading
from datetime import datetime, timedelta, timezone

import pytest

from shared.schemas.evidence import EvidenceManifest
from trancheready.evidence.token_store import EvidenceTokenStore, new_token


@pytest.fixture
def manifest():
    return EvidenceManifest(created_utc="2025-11-01T09:00:00.000Z", ruleset_id="dnfbp-2025.11")


class TestEvidenceTokenStore:
    """Test suite for EvidenceTokenStore."""

    def test_get_after_put(self, store, manifest, clock):
        store.put("tok", b"zip-bytes", manifest, ttl_minutes=60)
        entry = store.get("tok")

        assert entry is not None
        assert entry.archive == b"zip-bytes"
        assert entry.manifest == manifest
        assert entry.expires_at == clock.now + timedelta(minutes=60)

    def test_unknown_token_is_miss(self, store):
        assert store.get("nope") is None

    def test_hit_at_exact_expiry(self, store, manifest, clock):
        """An entry is still served while now equals its expiry."""
        store.put("tok", b"a", manifest, ttl_minutes=5)
        clock.advance(minutes=5)
        assert store.get("tok") is not None

    def test_miss_after_expiry_and_evicted(self, store, manifest, clock):
        store.put("tok", b"a", manifest, ttl_minutes=5)
        clock.advance(minutes=5, seconds=1)

        assert store.get("tok") is None
        assert "tok" not in store
        assert len(store) == 0

    def test_no_resurrection(self, store, manifest, clock):
        """Turning the clock back does not revive an evicted entry."""
        store.put("tok", b"a", manifest, ttl_minutes=1)
        clock.advance(minutes=2)
        assert store.get("tok") is None

        clock.now -= timedelta(minutes=2)
        assert store.get("tok") is None

    def test_sweep_expired(self, store, manifest, clock):
        store.put("old-1", b"a", manifest, ttl_minutes=1)
        store.put("old-2", b"b", manifest, ttl_minutes=1)
        store.put("fresh", b"c", manifest, ttl_minutes=60)
        clock.advance(minutes=10)

        assert store.sweep_expired() == 2
        assert len(store) == 1
        assert store.get("fresh") is not None

    def test_sweep_with_nothing_expired(self, store, manifest):
        store.put("tok", b"a", manifest, ttl_minutes=1)
        assert store.sweep_expired() == 0
        assert "tok" in store

    @pytest.mark.parametrize("ttl", [0, -5])
    def test_rejects_non_positive_ttl(self, store, manifest, ttl):
        with pytest.raises(ValueError):
            store.put("tok", b"a", manifest, ttl_minutes=ttl)

    def test_rejects_duplicate_token(self, store, manifest):
        store.put("tok", b"a", manifest, ttl_minutes=1)
        with pytest.raises(ValueError):
            store.put("tok", b"b", manifest, ttl_minutes=1)
        assert store.get("tok").archive == b"a"

    def test_default_clock_is_utc(self, manifest):
        store = EvidenceTokenStore()
        entry = store.put("tok", b"a", manifest, ttl_minutes=1)
        assert entry.expires_at.tzinfo is not None
        assert entry.expires_at > datetime.now(timezone.utc)

    def test_concurrent_puts(self, manifest):
        """Parallel inserts under distinct tokens are all kept."""
        store = EvidenceTokenStore()
        tokens = [new_token() for _ in range(200)]

        def worker(chunk):
            for token in chunk:
                store.put(token, b"x", manifest, ttl_minutes=5)

        threads = [threading.Thread(target=worker, args=(tokens[i::4],)) for i in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(store) == 200
        assert all(store.get(t) is not None for t in tokens)

    def test_concurrent_gets_of_expired_token(self, store, manifest, clock):
        """Racing lookups of one expired token all miss and evict it once."""
        store.put("tok", b"a", manifest, ttl_minutes=1)
        clock.advance(minutes=2)

        barrier = threading.Barrier(16)
        results, errors = [], []

        def worker():
            barrier.wait()
            try:
                results.append(store.get("tok"))
            except Exception as e:  # collected for the assertion below
                errors.append(e)

        threads = [threading.Thread(target=worker) for _ in range(16)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert results == [None] * 16
        assert len(store) == 0

    def test_puts_race_gets_and_sweeps(self, store, manifest, clock):
        """New entries survive while other threads evict expired ones."""
        old = [new_token() for _ in range(100)]
        for token in old:
            store.put(token, b"old", manifest, ttl_minutes=1)
        clock.advance(minutes=2)
        fresh = [new_token() for _ in range(100)]

        barrier = threading.Barrier(8)
        errors = []

        def putter(chunk):
            for token in chunk:
                store.put(token, b"new", manifest, ttl_minutes=5)

        def getter(chunk):
            for token in chunk:
                assert store.get(token) is None

        def sweeper():
            for _ in range(20):
                store.sweep_expired()

        def run(target, *args):
            barrier.wait()
            try:
                target(*args)
            except Exception as e:
                errors.append(e)

        jobs = (
            [(putter, fresh[i::3]) for i in range(3)]
            + [(getter, old[i::3]) for i in range(3)]
            + [(sweeper,), (sweeper,)]
        )
        threads = [threading.Thread(target=run, args=job) for job in jobs]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert len(store) == 100
        assert all(token in store for token in fresh)
        assert not any(token in store for token in old)


class TestNewToken:
    """Test suite for token generation."""

    def test_token_is_128_bit_hex(self):
        token = new_token()
        assert len(token) == 32
        int(token, 16)

    def test_tokens_are_unique(self):
        assert len({new_token() for _ in range(1000)}) == 1000
