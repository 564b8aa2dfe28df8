# recon_engine/core/matching.py

"""
Candidate ranking and pool reconciliation.

rank() answers "which of these receipts belongs to this transaction?"
(or the reverse). reconcile() pairs two whole pools one-to-one.
Both are deterministic: identical inputs give identical orderings.
"""

import logging
import math
from datetime import datetime
from typing import Iterable, Optional, Sequence

from recon_engine.core.confidence import (
    calculate_confidence,
    ensure_scorable,
    suggestion_level,
)
from recon_engine.core.scorers import FieldScorer, normalize_merchant
from recon_engine.models import (
    MatchableRecord,
    MatchingPreferences,
    MatchResult,
    MatchedPair,
    RankedCandidate,
    ReconciliationSummary,
    ScoreBreakdown,
    UnmatchedRecord,
)

logger = logging.getLogger(__name__)

# How many near-misses to attach to an unmatched record
MAX_POSSIBLE_MATCHES = 3


def rank(
    target: MatchableRecord,
    candidates: Sequence[MatchableRecord],
    preferences: MatchingPreferences,
    scorers: Optional[dict[str, FieldScorer]] = None,
) -> MatchResult:
    """
    Rank a candidate pool against one target record.

    Candidates are ordered by total score (descending), then closer date,
    then smaller amount difference, then candidate id. ``best`` is the
    head of the ranking only if it passed every threshold.

    Raises MalformedRecordError if the target or any candidate has a
    non-finite amount; no partial result is returned.
    """
    ensure_scorable(target)
    for candidate in candidates:
        ensure_scorable(candidate)

    diagnostics = _diagnose([target, *candidates], preferences)

    ranked = [
        _rank_one(target, candidate, preferences, scorers)
        for candidate in candidates
    ]
    ranked.sort(key=_ranking_key)

    best = ranked[0] if ranked and ranked[0].breakdown.passed_thresholds else None

    logger.debug(
        "Ranked %d candidates for %s (best=%s)",
        len(ranked), target.id, best.candidate_id if best else None,
    )

    return MatchResult(
        target=target.id,
        ranked=ranked,
        best=best,
        diagnostics=diagnostics,
    )


def find_best_match(
    target: MatchableRecord,
    candidates: Sequence[MatchableRecord],
    preferences: MatchingPreferences,
) -> Optional[RankedCandidate]:
    """Return the best passing candidate, or None when nothing qualifies."""
    return rank(target, candidates, preferences).best


def _rank_one(
    target: MatchableRecord,
    candidate: MatchableRecord,
    preferences: MatchingPreferences,
    scorers: Optional[dict[str, FieldScorer]],
) -> RankedCandidate:
    breakdown = calculate_confidence(target, candidate, preferences, scorers)
    return RankedCandidate(
        candidate_id=candidate.id,
        breakdown=breakdown,
        suggestion=suggestion_level(breakdown, preferences),
    )


def _tie_break(breakdown: ScoreBreakdown) -> tuple:
    days = breakdown.date_difference_days
    return (
        -breakdown.total_score,
        math.inf if days is None else days,
        breakdown.amount_difference,
    )


def _ranking_key(entry: RankedCandidate) -> tuple:
    return (*_tie_break(entry.breakdown), entry.candidate_id)


def _diagnose(records: Iterable[MatchableRecord], preferences: MatchingPreferences) -> list[str]:
    """Collect warnings for records that will score zero on a weighted field."""
    active = set(preferences.active_fields)
    diagnostics: list[str] = []

    for record in records:
        if "date" in active and record.occurred_on is None:
            diagnostics.append(f"Record {record.id} has no valid date; date score is 0")
        if "merchant" in active and not normalize_merchant(record.merchant_name):
            diagnostics.append(f"Record {record.id} has no merchant name; merchant score is 0")

    for message in diagnostics:
        logger.warning(message)

    return diagnostics


# ============================================
# Pool reconciliation
# ============================================

class ReconciliationResult:
    """Result of reconciling a receipt pool against a transaction pool."""

    def __init__(self):
        self.matched: list[MatchedPair] = []
        self.unmatched_receipts: list[UnmatchedRecord] = []
        self.unmatched_transactions: list[UnmatchedRecord] = []
        self.summary: Optional[ReconciliationSummary] = None
        self.diagnostics: list[str] = []
        self.duration_ms: int = 0

    def to_dict(self) -> dict:
        """Convert to dictionary for callers that persist results."""
        return {
            "summary": self.summary.model_dump() if self.summary else None,
            "matched": [m.model_dump() for m in self.matched],
            "unmatched_receipts": [u.model_dump() for u in self.unmatched_receipts],
            "unmatched_transactions": [u.model_dump() for u in self.unmatched_transactions],
            "diagnostics": list(self.diagnostics),
            "duration_ms": self.duration_ms,
        }


def reconcile(
    receipts: Sequence[MatchableRecord],
    transactions: Sequence[MatchableRecord],
    preferences: MatchingPreferences,
) -> ReconciliationResult:
    """
    Pair receipts with transactions one-to-one.

    Every receipt/transaction pair is scored, then pairs are taken in
    ranking order (best score first, same tie-break as rank()) while
    both sides are still free and the pair passed thresholds. Leftover
    records carry their closest near-misses for manual review.
    """
    start_time = datetime.now()
    result = ReconciliationResult()

    for record in [*receipts, *transactions]:
        ensure_scorable(record)

    result.diagnostics = _diagnose([*receipts, *transactions], preferences)

    # ============================================
    # Score every pair
    # ============================================
    scored: list[tuple[MatchableRecord, MatchableRecord, ScoreBreakdown]] = []
    for receipt in receipts:
        for transaction in transactions:
            breakdown = calculate_confidence(receipt, transaction, preferences)
            scored.append((receipt, transaction, breakdown))

    scored.sort(key=lambda item: (*_tie_break(item[2]), item[0].id, item[1].id))

    # ============================================
    # Greedy one-to-one assignment
    # ============================================
    matched_receipt_ids: set[str] = set()
    matched_transaction_ids: set[str] = set()

    for receipt, transaction, breakdown in scored:
        if not breakdown.passed_thresholds:
            continue
        if receipt.id in matched_receipt_ids or transaction.id in matched_transaction_ids:
            continue

        result.matched.append(MatchedPair(
            receipt_id=receipt.id,
            transaction_id=transaction.id,
            breakdown=breakdown,
        ))
        matched_receipt_ids.add(receipt.id)
        matched_transaction_ids.add(transaction.id)

    # ============================================
    # Collect unmatched with possible candidates
    # ============================================
    receipt_review: dict[str, list[RankedCandidate]] = {}
    transaction_review: dict[str, list[RankedCandidate]] = {}

    for receipt, transaction, breakdown in scored:
        if receipt.id in matched_receipt_ids or transaction.id in matched_transaction_ids:
            continue
        if suggestion_level(breakdown, preferences) != "needs_review":
            continue

        receipt_review.setdefault(receipt.id, []).append(
            RankedCandidate(candidate_id=transaction.id, breakdown=breakdown, suggestion="needs_review")
        )
        transaction_review.setdefault(transaction.id, []).append(
            RankedCandidate(candidate_id=receipt.id, breakdown=breakdown, suggestion="needs_review")
        )

    for receipt in sorted(receipts, key=lambda r: r.id):
        if receipt.id in matched_receipt_ids:
            continue
        result.unmatched_receipts.append(UnmatchedRecord(
            record_id=receipt.id,
            possible_matches=receipt_review.get(receipt.id, [])[:MAX_POSSIBLE_MATCHES],
        ))

    for transaction in sorted(transactions, key=lambda t: t.id):
        if transaction.id in matched_transaction_ids:
            continue
        result.unmatched_transactions.append(UnmatchedRecord(
            record_id=transaction.id,
            possible_matches=transaction_review.get(transaction.id, [])[:MAX_POSSIBLE_MATCHES],
        ))

    # ============================================
    # Summary
    # ============================================
    result.summary = ReconciliationSummary(
        total_receipts=len(receipts),
        total_transactions=len(transactions),
        matched=len(result.matched),
        unmatched_receipts=len(result.unmatched_receipts),
        unmatched_transactions=len(result.unmatched_transactions),
        match_rate=(len(result.matched) / len(receipts) * 100) if receipts else 0,
    )

    result.duration_ms = int((datetime.now() - start_time).total_seconds() * 1000)

    logger.info(
        "Reconciled %d receipts against %d transactions: %d matched",
        len(receipts), len(transactions), len(result.matched),
    )

    return result
