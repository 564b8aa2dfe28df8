# recon_engine/core/confidence.py

"""
Confidence scoring for receipt/transaction matching.

total_score = sum(weight_f * score_f) over fields with weight > 0.
Weights are validated to sum to 1, so the total stays in [0, 1].
Unweighted fields are never evaluated.
"""

import logging
import math
from typing import Optional

from recon_engine.core.scorers import (
    FIELD_SCORERS,
    FieldScorer,
    amount_difference,
    date_difference,
)
from recon_engine.exceptions import MalformedRecordError
from recon_engine.models import (
    MatchableRecord,
    MatchingPreferences,
    ScoreBreakdown,
    SuggestionLevel,
)

logger = logging.getLogger(__name__)

FIELD_LABELS = {
    "category": "Category",
    "payment_method": "Payment method",
    "location": "Location",
}


def ensure_scorable(record: MatchableRecord) -> None:
    """Reject records whose amount is NaN or infinite."""
    if not math.isfinite(record.amount):
        logger.error("Record %s has non-finite amount %r", record.id, record.amount)
        raise MalformedRecordError(record.id, f"amount {record.amount!r} is not finite")


def calculate_confidence(
    target: MatchableRecord,
    candidate: MatchableRecord,
    preferences: MatchingPreferences,
    scorers: Optional[dict[str, FieldScorer]] = None,
) -> ScoreBreakdown:
    """
    Score a candidate against a target.

    Returns a ScoreBreakdown with per-field scores, the weighted total,
    threshold gating and human-readable factors.
    """
    ensure_scorable(target)
    ensure_scorable(candidate)

    registry = FIELD_SCORERS if scorers is None else {**FIELD_SCORERS, **scorers}

    field_scores: dict[str, float] = {}
    for field in preferences.active_fields:
        field_scores[field] = _bounded(registry[field](target, candidate, preferences))

    total = sum(preferences.weight(f) * s for f, s in field_scores.items())
    total = _bounded(total)

    days = date_difference(target.occurred_on, candidate.occurred_on)
    amount_diff = amount_difference(target.amount, candidate.amount)

    return ScoreBreakdown(
        field_scores=field_scores,
        total_score=total,
        passed_thresholds=_passes(total, field_scores, preferences),
        matched_fields=_matched_fields(field_scores, preferences),
        factors=_describe_factors(field_scores, days, amount_diff, preferences),
        date_difference_days=days,
        amount_difference=amount_diff,
    )


def suggestion_level(breakdown: ScoreBreakdown, preferences: MatchingPreferences) -> SuggestionLevel:
    """Label a breakdown for presentation: suggested, needs review, or unlikely."""
    if breakdown.passed_thresholds:
        return "suggested"
    if breakdown.total_score >= preferences.minimum_confidence * preferences.review_ratio:
        return "needs_review"
    return "unlikely"


def _bounded(score: float) -> float:
    return min(1.0, max(0.0, score))


def _passes(total: float, field_scores: dict[str, float], preferences: MatchingPreferences) -> bool:
    if total < preferences.minimum_confidence:
        return False
    for field, floor in preferences.field_thresholds.items():
        if field_scores.get(field, 0.0) < floor:
            return False
    return True


def _matched_fields(field_scores: dict[str, float], preferences: MatchingPreferences) -> list[str]:
    matched = []
    for field, score in field_scores.items():
        if field == "merchant":
            hit = score >= preferences.merchant_match_threshold
        elif field in ("amount", "date"):
            hit = score > 0
        else:
            hit = score >= preferences.field_thresholds.get(field, 1.0)
        if hit:
            matched.append(field)
    return matched


def _describe_factors(
    field_scores: dict[str, float],
    days: Optional[int],
    amount_diff: float,
    preferences: MatchingPreferences,
) -> list[str]:
    factors: list[str] = []

    for field, score in field_scores.items():
        if field == "merchant":
            if score == 1.0:
                factors.append("Merchant exact match")
            elif score >= preferences.merchant_match_threshold:
                factors.append(f"Merchant similar ({score:.2f})")
            elif score > 0:
                factors.append(f"Merchant differs ({score:.2f})")
            else:
                factors.append("No merchant similarity")

        elif field == "amount":
            if amount_diff == 0:
                factors.append("Exact amount match")
            elif score > 0:
                factors.append(f"Amount within tolerance (${amount_diff:,.2f} difference)")
            else:
                factors.append(
                    f"Amount outside {preferences.amount_tolerance_ratio:.0%} tolerance "
                    f"(${amount_diff:,.2f} difference)"
                )

        elif field == "date":
            if days is None:
                factors.append("Date unknown")
            elif days == 0:
                factors.append("Same day")
            elif days == 1:
                factors.append("1 day apart")
            elif score > 0:
                factors.append(f"{days} days apart")
            else:
                factors.append(
                    f"{days} days apart (outside {preferences.date_window_days}-day window)"
                )

        else:
            label = FIELD_LABELS.get(field, field)
            if score == 1.0:
                factors.append(f"{label} match")
            elif score > 0:
                factors.append(f"{label} similar ({score:.2f})")
            else:
                factors.append(f"{label} differs")

    return factors
