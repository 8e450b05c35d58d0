"""
TrancheReady Shared Schemas Package
===================================

Data types shared by the scoring engine, the evidence pipeline and the API.

This package provides:
    - ClientProfile / TransactionRecord / LookbackWindow: normalized inputs
    - RiskReason / RiskScoreResult / RulesetMetadata: scoring outputs
    - FileDigestEntry / EvidenceManifest: evidence pack manifest

Author: TrancheReady Team
Version: 1.0.0
"""

from shared.schemas.records import (
    ClientProfile,
    Direction,
    LookbackWindow,
    TransactionRecord,
)

from shared.schemas.risk import (
    ReasonFamily,
    RiskBand,
    RiskReason,
    RiskScoreResult,
    RulesetMetadata,
)

from shared.schemas.evidence import (
    HASH_ALGO,
    EvidenceManifest,
    FileDigestEntry,
    ManifestSigning,
)

__all__ = [
    # Inputs
    "ClientProfile",
    "Direction",
    "LookbackWindow",
    "TransactionRecord",
    # Scoring outputs
    "ReasonFamily",
    "RiskBand",
    "RiskReason",
    "RiskScoreResult",
    "RulesetMetadata",
    # Evidence
    "HASH_ALGO",
    "EvidenceManifest",
    "FileDigestEntry",
    "ManifestSigning",
]
