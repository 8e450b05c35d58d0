"""
TrancheReady Rulesets
=====================

Versioned, immutable rule catalogues for the scoring engine.

A ruleset fixes every threshold and point value the engine uses. New
versions are added as new ``Ruleset`` values registered under their own
``ruleset_id``; existing ones are never edited, because evidence packs
already issued reference them by id.

Author: TrancheReady Team
Version: 1.0.0
"""

from dataclasses import dataclass, field
from decimal import Decimal
from types import MappingProxyType
from typing import Dict, Mapping, Tuple


class UnknownRulesetError(KeyError):
    """Raised when a ruleset id is not registered."""
    pass


@dataclass(frozen=True)
class Band:
    """Lower score bound for a risk band."""
    name: str
    min_score: int
    label: str


@dataclass(frozen=True)
class Ruleset:
    """
    Complete parameterisation of one scoring ruleset.

    Profile rules award points for client attributes; behavioural rules
    award points for transaction patterns inside the lookback window.
    """

    ruleset_id: str

    # Jurisdiction
    base_currency: str
    domestic_country: str
    high_risk_countries: Tuple[str, ...]

    # Profile rule points
    pep_points: int
    sanctions_points: int
    stale_kyc_points: int
    stale_kyc_days: int
    online_channel_points: int
    remittance_points: int
    property_points: int
    high_risk_residency_points: int

    # Structuring
    structuring_points: int
    structuring_min_amount: Decimal
    structuring_max_amount: Decimal
    structuring_window_days: int
    structuring_min_count: int

    # High-risk corridors
    corridor_points: int
    corridor_min_count: int
    corridor_large_amount: Decimal

    # Large domestic transfers
    large_domestic_points: int
    large_domestic_amount: Decimal

    # Bands, highest first
    bands: Tuple[Band, ...] = field(default_factory=tuple)

    def band_for(self, score: int) -> str:
        """Map a score to its band name."""
        for band in self.bands:
            if score >= band.min_score:
                return band.name
        return self.bands[-1].name

    @property
    def banding(self) -> Dict[str, str]:
        """Human-readable band thresholds, highest first."""
        return {band.name: band.label for band in self.bands}

    def is_high_risk_country(self, country: str) -> bool:
        return bool(country) and country in self.high_risk_countries


DNFBP_2025_11 = Ruleset(
    ruleset_id="dnfbp-2025.11",
    base_currency="AUD",
    domestic_country="AU",
    high_risk_countries=("RU", "CN", "HK", "AE", "IN", "IR"),
    pep_points=20,
    sanctions_points=25,
    stale_kyc_points=5,
    stale_kyc_days=365,
    online_channel_points=3,
    remittance_points=6,
    property_points=4,
    high_risk_residency_points=8,
    structuring_points=12,
    structuring_min_amount=Decimal("9600"),
    structuring_max_amount=Decimal("9999"),
    structuring_window_days=7,
    structuring_min_count=4,
    corridor_points=10,
    corridor_min_count=2,
    corridor_large_amount=Decimal("20000"),
    large_domestic_points=8,
    large_domestic_amount=Decimal("100000"),
    bands=(
        Band("High", 30, ">=30"),
        Band("Medium", 15, ">=15"),
        Band("Low", 0, "<15"),
    ),
)

DEFAULT_RULESET_ID = DNFBP_2025_11.ruleset_id

RULESETS: Mapping[str, Ruleset] = MappingProxyType({
    DNFBP_2025_11.ruleset_id: DNFBP_2025_11,
})


def get_ruleset(ruleset_id: str = DEFAULT_RULESET_ID) -> Ruleset:
    """
    Look up a registered ruleset.

    Raises:
        UnknownRulesetError: If no ruleset has this id
    """
    try:
        return RULESETS[ruleset_id]
    except KeyError:
        raise UnknownRulesetError(ruleset_id) from None
