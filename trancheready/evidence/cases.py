"""
Reportable Transaction Cases
============================

Builds the case list included in an evidence pack: transactions inside the
lookback window that an analyst would review for regulatory reporting.

Case kinds:
    - TTR: cash transaction at or above the threshold reporting amount
    - STRUCTURING_CANDIDATE: inbound cash just below that threshold
    - IFTI: transfer with a foreign counterparty

A transaction can produce more than one case (e.g. a foreign cash deposit).

Author: TrancheReady Team
Version: 1.0.0
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from shared.schemas.records import Direction, LookbackWindow, TransactionRecord
from trancheready.scoring.ruleset import DNFBP_2025_11, Ruleset

TTR_THRESHOLD = Decimal("10000")


class CaseKind(str, Enum):
    """Why a transaction was put on the case list."""
    TTR = "TTR"
    STRUCTURING_CANDIDATE = "STRUCTURING_CANDIDATE"
    IFTI = "IFTI"


@dataclass(frozen=True)
class Case:
    """One reviewable transaction case."""
    case_id: str
    kind: CaseKind
    transaction: TransactionRecord

    def to_dict(self) -> Dict[str, Any]:
        t = self.transaction
        return {
            "case_id": self.case_id,
            "kind": self.kind.value,
            "client_id": t.client_id,
            "date": t.date.isoformat(),
            "amount": t.amount,
            "currency": t.currency,
            "direction": t.direction.value,
            "counterparty_country": t.counterparty_country,
        }


def _case_kinds(txn: TransactionRecord, ruleset: Ruleset) -> List[CaseKind]:
    kinds: List[CaseKind] = []
    is_cash = txn.method == "cash" and txn.currency == ruleset.base_currency

    if is_cash and txn.amount >= TTR_THRESHOLD:
        kinds.append(CaseKind.TTR)
    if (
        is_cash
        and txn.direction == Direction.IN
        and ruleset.structuring_min_amount <= txn.amount <= ruleset.structuring_max_amount
    ):
        kinds.append(CaseKind.STRUCTURING_CANDIDATE)
    if txn.counterparty_country and txn.counterparty_country != ruleset.domestic_country:
        kinds.append(CaseKind.IFTI)
    return kinds


def build_cases(
    transactions: Sequence[TransactionRecord],
    lookback: LookbackWindow,
    ruleset: Optional[Ruleset] = None,
) -> List[Case]:
    """
    Build the case list for transactions dated on/after ``lookback.start``.

    Cases are ordered by date, then client id, then kind, and numbered
    ``case-0001`` onwards in that order.
    """
    ruleset = ruleset or DNFBP_2025_11
    candidates = []
    for txn in transactions:
        if txn.date < lookback.start:
            continue
        for kind in _case_kinds(txn, ruleset):
            candidates.append((txn, kind))

    candidates.sort(key=lambda c: (c[0].date, c[0].client_id, c[1].value))
    return [
        Case(case_id=f"case-{i:04d}", kind=kind, transaction=txn)
        for i, (txn, kind) in enumerate(candidates, start=1)
    ]
