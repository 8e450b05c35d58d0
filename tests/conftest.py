"""
pytest configuration and fixtures.

Author: TrancheReady Team
Version: 1.0.0
"""

import os

# Rate limiting would make repeated API calls from one test client flaky
os.environ.setdefault("TRANCHEREADY_RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("TRANCHEREADY_REQUEST_LOG_SAMPLE", "0")

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from shared.schemas.records import ClientProfile, Direction, LookbackWindow, TransactionRecord
from trancheready.evidence.signing import Ed25519Signer, generate_key_pair
from trancheready.evidence.token_store import EvidenceTokenStore


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime = datetime(2025, 11, 1, 9, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    """Token store driven by the fake clock."""
    return EvidenceTokenStore(clock=clock)


@pytest.fixture
def key_pair():
    """Fresh (secret, public) base64 Ed25519 key pair."""
    return generate_key_pair()


@pytest.fixture
def signer(key_pair):
    secret, public = key_pair
    return Ed25519Signer(secret, public)


@pytest.fixture
def lookback():
    """18-month window ending 2025-10-31."""
    return LookbackWindow(start=date(2024, 4, 30), end=date(2025, 10, 31))


@pytest.fixture
def make_client():
    """Factory for client profiles with low-risk defaults."""
    def _make(client_id="C-1", **overrides):
        fields = {
            "client_id": client_id,
            "pep_flag": False,
            "sanctions_flag": False,
            "kyc_last_reviewed_at": date(2025, 6, 1),
            "delivery_channel": "branch",
            "services": "advice",
            "residency_country": "AU",
        }
        fields.update(overrides)
        return ClientProfile(**fields)
    return _make


@pytest.fixture
def make_txn():
    """Factory for transactions; amounts may be given as int, str or Decimal."""
    def _make(client_id="C-1", day=date(2025, 10, 1), amount="100", **overrides):
        fields = {
            "client_id": client_id,
            "date": day,
            "direction": Direction.IN,
            "method": "cash",
            "currency": "AUD",
            "amount": Decimal(str(amount)),
            "counterparty_country": None,
        }
        fields.update(overrides)
        return TransactionRecord(**fields)
    return _make
