"""
TrancheReady Scoring Package
============================

Risk scoring engine for DNFBP client books.

This package provides:
    - ruleset: Versioned, immutable rule catalogues
    - rules: Profile and behavioural rule evaluation
    - engine: Per-client score, band and reasons

Author: TrancheReady Team
Version: 1.0.0
"""

from trancheready.scoring.engine import ScoringEngine, ScoringOutput, score_all
from trancheready.scoring.rules import RiskScoringRules
from trancheready.scoring.ruleset import (
    DEFAULT_RULESET_ID,
    DNFBP_2025_11,
    RULESETS,
    Ruleset,
    UnknownRulesetError,
    get_ruleset,
)

__all__ = [
    "ScoringEngine",
    "ScoringOutput",
    "score_all",
    "RiskScoringRules",
    "DEFAULT_RULESET_ID",
    "DNFBP_2025_11",
    "RULESETS",
    "Ruleset",
    "UnknownRulesetError",
    "get_ruleset",
]
