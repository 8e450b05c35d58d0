"""
TrancheReady Scoring Engine
===========================

Scores normalized clients against a fixed ruleset.

The engine is a pure function of its inputs: no I/O, no shared state,
and no dependence on the order of the transaction list. It can be called
concurrently from any number of requests.

Usage:
    from trancheready.scoring.engine import score_all

    output = score_all(clients, transactions, lookback)
    for result in output.scores:
        print(result.client_id, result.score, result.band)

Author: TrancheReady Team
Version: 1.0.0
"""

from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from shared.schemas.records import ClientProfile, LookbackWindow, TransactionRecord
from shared.schemas.risk import RiskBand, RiskScoreResult, RulesetMetadata
from trancheready.scoring.rules import RiskScoringRules
from trancheready.scoring.ruleset import DNFBP_2025_11, Ruleset


@dataclass(frozen=True)
class ScoringOutput:
    """Scores for every input client plus the metadata of the run."""
    scores: List[RiskScoreResult]
    meta: RulesetMetadata

    def band_counts(self) -> Dict[str, int]:
        counts = {band.value: 0 for band in RiskBand}
        for result in self.scores:
            counts[result.band.value] += 1
        return counts


class ScoringEngine:
    """
    Risk scoring engine for a client book.

    Attributes:
        ruleset: Immutable ruleset supplying thresholds and points
        rules: Rule evaluator bound to that ruleset

    Example:
        engine = ScoringEngine(get_ruleset("dnfbp-2025.11"))
        output = engine.score(clients, transactions, lookback)
    """

    def __init__(self, ruleset: Ruleset = DNFBP_2025_11):
        self.ruleset = ruleset
        self.rules = RiskScoringRules(ruleset)

    def metadata(self, lookback: LookbackWindow) -> RulesetMetadata:
        """Metadata describing a run of this ruleset over ``lookback``."""
        return RulesetMetadata(
            ruleset_id=self.ruleset.ruleset_id,
            lookback=lookback,
            corridors=list(self.ruleset.high_risk_countries),
            banding=self.ruleset.banding,
        )

    def score(
        self,
        clients: Sequence[ClientProfile],
        transactions: Sequence[TransactionRecord],
        lookback: LookbackWindow,
    ) -> ScoringOutput:
        """
        Score every client.

        Args:
            clients: Client profiles, scored in this order
            transactions: Transactions for any clients; those dated before
                ``lookback.start`` are ignored
            lookback: Behavioural analysis window

        Returns:
            ScoringOutput with one result per client and run metadata
        """
        in_window: Dict[str, List[TransactionRecord]] = defaultdict(list)
        for txn in transactions:
            if txn.date >= lookback.start:
                in_window[txn.client_id].append(txn)

        scores = [
            self.score_client(client, in_window.get(client.client_id, []), lookback)
            for client in clients
        ]
        return ScoringOutput(scores=scores, meta=self.metadata(lookback))

    def score_client(
        self,
        client: ClientProfile,
        transactions: Sequence[TransactionRecord],
        lookback: LookbackWindow,
    ) -> RiskScoreResult:
        """Score one client from its already-windowed transactions."""
        reasons = self.rules.profile_reasons(client, as_of=lookback.end)
        reasons.extend(self.rules.behaviour_reasons(transactions))

        score = sum(r.points for r in reasons)
        return RiskScoreResult(
            client_id=client.client_id,
            score=score,
            band=RiskBand(self.ruleset.band_for(score)),
            reasons=reasons,
        )


def score_all(
    clients: Sequence[ClientProfile],
    transactions: Sequence[TransactionRecord],
    lookback: LookbackWindow,
    ruleset: Optional[Ruleset] = None,
) -> ScoringOutput:
    """Score ``clients`` with ``ruleset`` (default ``dnfbp-2025.11``)."""
    return ScoringEngine(ruleset or DNFBP_2025_11).score(clients, transactions, lookback)
