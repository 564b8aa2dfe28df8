# recon_engine/core/__init__.py

from recon_engine.core.matching import (
    rank,
    find_best_match,
    reconcile,
    ReconciliationResult,
)
from recon_engine.core.duplicates import group
from recon_engine.core.confidence import calculate_confidence, suggestion_level
from recon_engine.core.scorers import (
    FIELD_SCORERS,
    score_merchant,
    score_amount,
    score_date,
    score_exact_text,
    score_location,
    normalize_merchant,
)

__all__ = [
    "rank",
    "find_best_match",
    "reconcile",
    "ReconciliationResult",
    "group",
    "calculate_confidence",
    "suggestion_level",
    "FIELD_SCORERS",
    "score_merchant",
    "score_amount",
    "score_date",
    "score_exact_text",
    "score_location",
    "normalize_merchant",
]
