"""
TrancheReady Evidence Pipeline
==============================

End-to-end flow for one upload:

    normalized batches -> scoring engine -> case list + cover page
        -> evidence assembly -> token-gated evidence pack

Author: TrancheReady Team
Version: 1.0.0
"""

from dataclasses import dataclass
from typing import Optional

from trancheready.evidence.assembly import EvidenceAssembler, EvidencePackage
from trancheready.evidence.cases import build_cases
from trancheready.evidence.report import render_program_html
from trancheready.ingestion.normalize import ClientBatch, TransactionBatch
from trancheready.logging import get_logger
from trancheready.scoring.engine import ScoringEngine, ScoringOutput
from trancheready.scoring.ruleset import DNFBP_2025_11, Ruleset

logger = get_logger(__name__)


@dataclass(frozen=True)
class PipelineResult:
    """Scores for the caller plus the handle of the stored evidence pack."""
    scoring: ScoringOutput
    package: EvidencePackage


def run_evidence_pipeline(
    clients: ClientBatch,
    transactions: TransactionBatch,
    assembler: EvidenceAssembler,
    ruleset: Optional[Ruleset] = None,
) -> PipelineResult:
    """
    Score an upload and register its evidence pack.

    Args:
        clients: Normalized client batch
        transactions: Normalized transaction batch (carries the lookback)
        assembler: Evidence assembler bound to a token store
        ruleset: Ruleset to apply (default ``dnfbp-2025.11``)

    Returns:
        PipelineResult
    """
    ruleset = ruleset or DNFBP_2025_11
    lookback = transactions.lookback

    scoring = ScoringEngine(ruleset).score(clients.clients, transactions.transactions, lookback)
    logger.info(
        "scoring_completed",
        ruleset_id=ruleset.ruleset_id,
        clients=len(scoring.scores),
        bands=scoring.band_counts(),
    )

    cases = build_cases(transactions.transactions, lookback, ruleset)
    rejects = [r.to_dict() for r in clients.rejects + transactions.rejects]
    report_html = render_program_html(
        scoring.meta,
        clients.header_map,
        transactions.header_map,
        rejects,
    )

    package = assembler.assemble(
        clients.clients,
        transactions.transactions,
        scoring,
        cases,
        report_html,
    )
    return PipelineResult(scoring=scoring, package=package)
