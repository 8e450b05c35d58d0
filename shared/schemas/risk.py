"""
Risk Score Schemas
==================

Output contract of the scoring engine: per-client scores with their
justifications, plus the metadata that versions a scoring run.

Author: TrancheReady Team
Version: 1.0.0
"""

from enum import Enum
from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field, model_validator

from shared.schemas.records import LookbackWindow


class RiskBand(str, Enum):
    """Coarse risk category derived from a numeric score."""
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class ReasonFamily(str, Enum):
    """Which part of the rule catalogue produced a reason."""
    PROFILE = "profile"
    BEHAVIOUR = "behaviour"


class RiskReason(BaseModel):
    """One justification contributing points to a client's score."""

    model_config = ConfigDict(frozen=True)

    family: ReasonFamily
    text: str
    points: int = Field(..., ge=0)


class RiskScoreResult(BaseModel):
    """
    Risk classification for one client.

    ``score`` always equals the sum of ``reasons[].points``; reasons are
    listed in rule evaluation order.
    """

    model_config = ConfigDict(frozen=True)

    client_id: str
    score: int = Field(..., ge=0)
    band: RiskBand
    reasons: List[RiskReason] = Field(default_factory=list)

    @model_validator(mode="after")
    def _score_matches_reasons(self) -> "RiskScoreResult":
        total = sum(r.points for r in self.reasons)
        if total != self.score:
            raise ValueError(f"score {self.score} does not equal reason total {total}")
        return self


class RulesetMetadata(BaseModel):
    """
    Versioning metadata for a scoring run.

    Echoed verbatim into the evidence pack; the manifest records its
    ``ruleset_id``.
    """

    model_config = ConfigDict(frozen=True)

    ruleset_id: str
    lookback: LookbackWindow
    corridors: List[str]
    banding: Dict[str, str]
