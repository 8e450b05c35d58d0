"""
Evidence Token Store
====================

In-memory, expiring store that brokers access to generated evidence packs.

Features:
    - Unguessable 128-bit tokens from ``secrets``
    - Configurable TTL per entry, enforced lazily on read
    - Optional sweep to reclaim entries that are never read again
    - All access serialized by one lock; safe for concurrent requests

Entries are inserted once and never updated. Without sweeping, memory for
tokens that are stored but never read again is held for the process
lifetime.

Author: TrancheReady Team
Version: 1.0.0
"""

import secrets
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Optional

from shared.schemas.evidence import EvidenceManifest
from trancheready.logging import get_logger

logger = get_logger(__name__)

TOKEN_BYTES = 16


def new_token() -> str:
    """Cryptographically random 128-bit token, hex encoded."""
    return secrets.token_hex(TOKEN_BYTES)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class CachedEvidence:
    """One stored evidence pack."""
    archive: bytes
    manifest: EvidenceManifest
    expires_at: datetime


class EvidenceTokenStore:
    """
    Token-keyed evidence cache with lazy expiration.

    Usage:
        store = EvidenceTokenStore()
        token = new_token()
        store.put(token, zip_bytes, manifest, ttl_minutes=60)

        entry = store.get(token)
        if entry is None:
            ...  # link expired or never existed
    """

    def __init__(self, clock: Callable[[], datetime] = _utcnow):
        """
        Initialize the store.

        Args:
            clock: Source of the current UTC time
        """
        self._clock = clock
        self._entries: Dict[str, CachedEvidence] = {}
        self._lock = threading.Lock()

    def put(
        self,
        token: str,
        archive: bytes,
        manifest: EvidenceManifest,
        ttl_minutes: int,
    ) -> CachedEvidence:
        """
        Store an evidence pack under a new token.

        Raises:
            ValueError: If the TTL is not positive or the token is taken
        """
        if ttl_minutes <= 0:
            raise ValueError(f"ttl_minutes must be positive, got {ttl_minutes}")

        entry = CachedEvidence(
            archive=archive,
            manifest=manifest,
            expires_at=self._clock() + timedelta(minutes=ttl_minutes),
        )
        with self._lock:
            if token in self._entries:
                raise ValueError("token already registered")
            self._entries[token] = entry

        logger.debug("evidence_token_stored", expires_at=entry.expires_at.isoformat())
        return entry

    def get(self, token: str) -> Optional[CachedEvidence]:
        """
        Look up a token.

        Returns:
            The stored entry while ``now <= expires_at``, otherwise None.
            An expired entry is evicted by the lookup that finds it.
        """
        with self._lock:
            entry = self._entries.get(token)
            if entry is None:
                return None
            if self._clock() > entry.expires_at:
                del self._entries[token]
                expired = True
            else:
                expired = False

        if expired:
            logger.info("evidence_token_expired")
            return None
        return entry

    def sweep_expired(self) -> int:
        """
        Evict every expired entry.

        Returns:
            Number of entries evicted
        """
        with self._lock:
            now = self._clock()
            stale = [t for t, e in self._entries.items() if now > e.expires_at]
            for token in stale:
                del self._entries[token]

        if stale:
            logger.info("evidence_tokens_swept", evicted=len(stale))
        return len(stale)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, token: object) -> bool:
        with self._lock:
            return token in self._entries
