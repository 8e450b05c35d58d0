"""
TrancheReady Risk Scoring Rules
===============================

Rule evaluation for the DNFBP client risk assessment.

Two rule families contribute points:
    - Profile: attributes of the client record (PEP, sanctions, stale KYC,
      delivery channel, designated services, residency)
    - Behaviour: transaction patterns inside the lookback window
      (structuring, high-risk corridors, large domestic transfers)

Every rule fires at most once per client and contributes a fixed number
of points taken from the active ``Ruleset``.

Author: TrancheReady Team
Version: 1.0.0
"""

import bisect
from datetime import date
from typing import List, Sequence

from shared.schemas.records import ClientProfile, Direction, TransactionRecord
from shared.schemas.risk import ReasonFamily, RiskReason
from trancheready.scoring.ruleset import DNFBP_2025_11, Ruleset


def _profile(text: str, points: int) -> RiskReason:
    return RiskReason(family=ReasonFamily.PROFILE, text=text, points=points)


def _behaviour(text: str, points: int) -> RiskReason:
    return RiskReason(family=ReasonFamily.BEHAVIOUR, text=text, points=points)


def has_dense_window(dates: Sequence[date], min_count: int, window_days: int) -> bool:
    """
    Whether ``min_count`` of the given dates fall within ``window_days``.

    Checks every window anchored at one of the dates, so a hit means some
    run of ``min_count`` dates spans at most ``window_days`` calendar days.
    Input order does not matter.
    """
    if min_count <= 0:
        return True
    ordinals = sorted(d.toordinal() for d in dates)
    for i, first in enumerate(ordinals):
        end = bisect.bisect_right(ordinals, first + window_days)
        if end - i >= min_count:
            return True
    return False


class RiskScoringRules:
    """
    Rule-based risk scoring implementation.

    Usage:
        rules = RiskScoringRules(get_ruleset("dnfbp-2025.11"))
        reasons = rules.profile_reasons(client, as_of=lookback.end)
        reasons += rules.behaviour_reasons(client_transactions)
    """

    def __init__(self, ruleset: Ruleset = DNFBP_2025_11):
        self.ruleset = ruleset

    # =========================================================================
    # Profile Rules
    # =========================================================================

    def profile_reasons(self, client: ClientProfile, as_of: date) -> List[RiskReason]:
        """
        Evaluate the profile rules for a client.

        Args:
            client: Normalized client profile
            as_of: Reference date for KYC staleness (the lookback end)

        Returns:
            Triggered reasons in catalogue order
        """
        rs = self.ruleset
        reasons: List[RiskReason] = []

        if client.pep_flag:
            reasons.append(_profile("PEP flag", rs.pep_points))
        if client.sanctions_flag:
            reasons.append(_profile("Sanctions flag", rs.sanctions_points))

        if self.is_kyc_stale(client.kyc_last_reviewed_at, as_of):
            reasons.append(_profile("Stale KYC > 12 months", rs.stale_kyc_points))

        if "online" in client.delivery_channel.lower():
            reasons.append(_profile("Online channel", rs.online_channel_points))

        services = client.services.lower()
        if "remittance" in services:
            reasons.append(_profile("Remittance service", rs.remittance_points))
        if "property" in services:
            reasons.append(_profile("Property service", rs.property_points))

        if rs.is_high_risk_country(client.residency_country or ""):
            reasons.append(_profile("High-risk residency", rs.high_risk_residency_points))

        return reasons

    def is_kyc_stale(self, reviewed_at, as_of: date) -> bool:
        """A review strictly older than the staleness horizon counts as stale."""
        if reviewed_at is None:
            return False
        return (as_of - reviewed_at).days > self.ruleset.stale_kyc_days

    # =========================================================================
    # Behavioural Rules
    # =========================================================================

    def behaviour_reasons(self, transactions: Sequence[TransactionRecord]) -> List[RiskReason]:
        """
        Evaluate the behavioural rules over one client's transactions.

        The caller is responsible for restricting ``transactions`` to the
        lookback window.
        """
        rs = self.ruleset
        reasons: List[RiskReason] = []

        if self.detect_structuring(transactions):
            reasons.append(_behaviour(
                "Structuring pattern (≥4 cash deposits 9.6–9.999k in 7 days)",
                rs.structuring_points,
            ))
        if self.detect_high_risk_corridor(transactions):
            reasons.append(_behaviour(
                "High-risk corridor transfers (≥2; one ≥ 20k)",
                rs.corridor_points,
            ))
        if self.detect_large_domestic(transactions):
            reasons.append(_behaviour(
                "Large domestic transfer ≥ 100k",
                rs.large_domestic_points,
            ))

        return reasons

    def detect_structuring(self, transactions: Sequence[TransactionRecord]) -> bool:
        """Near-threshold cash deposits clustered in time."""
        rs = self.ruleset
        dates = [
            t.date for t in transactions
            if t.direction == Direction.IN
            and t.method == "cash"
            and t.currency == rs.base_currency
            and rs.structuring_min_amount <= t.amount <= rs.structuring_max_amount
        ]
        return has_dense_window(dates, rs.structuring_min_count, rs.structuring_window_days)

    def detect_high_risk_corridor(self, transactions: Sequence[TransactionRecord]) -> bool:
        """Repeated outbound transfers to high-risk countries, one of them large."""
        rs = self.ruleset
        corridor = [
            t for t in transactions
            if t.direction == Direction.OUT
            and t.currency == rs.base_currency
            and rs.is_high_risk_country(t.counterparty_country or "")
        ]
        return (
            len(corridor) >= rs.corridor_min_count
            and any(t.amount >= rs.corridor_large_amount for t in corridor)
        )

    def detect_large_domestic(self, transactions: Sequence[TransactionRecord]) -> bool:
        """Any very large transfer that stays onshore (or has no counterparty country)."""
        rs = self.ruleset
        return any(
            t.currency == rs.base_currency
            and t.amount >= rs.large_domestic_amount
            and (not t.counterparty_country or t.counterparty_country == rs.domestic_country)
            for t in transactions
        )
