# recon_engine/core/scorers.py

"""
Field scorers.

Each scorer compares one attribute of two records and returns a
similarity in [0, 1]: 1.0 for identical values, 0.0 for no similarity.
All scorers are symmetric, so score(a, b) == score(b, a).
"""

from datetime import date
from typing import Callable, Optional

from rapidfuzz.distance import Levenshtein

from recon_engine.models import MatchableRecord, MatchingPreferences
from recon_engine.normalizers import normalize_text

# Smallest magnitude used as the denominator of the relative amount error,
# so that comparing against zero falls back to an absolute cent scale.
MIN_AMOUNT_SCALE = 0.01

# Score given by the hybrid merchant strategy when one name contains the other
CONTAINMENT_SCORE = 0.9

FieldScorer = Callable[[MatchableRecord, MatchableRecord, MatchingPreferences], float]


# ============================================
# Text
# ============================================

def normalize_merchant(name: Optional[str]) -> str:
    """Lowercase and strip all non-alphanumeric characters."""
    return normalize_text(name)


def edit_similarity(a: str, b: str) -> float:
    """
    Levenshtein ratio between two already-normalized strings.

    1 - distance / max(len(a), len(b)), with unit insert/delete/substitute
    costs. Empty input scores 0.
    """
    if not a or not b:
        return 0.0
    if a == b:
        return 1.0

    distance = Levenshtein.distance(a, b)
    return max(0.0, 1.0 - distance / max(len(a), len(b)))


def score_merchant(a: Optional[str], b: Optional[str], strategy: str = "levenshtein") -> float:
    """
    Score merchant names.

    "levenshtein" uses the edit-distance ratio only. "hybrid" also credits
    abbreviated names ("Starbucks" vs "SBUX Starbucks Coffee") by taking
    the max of the ratio and CONTAINMENT_SCORE when one normalized name
    contains the other.
    """
    left = normalize_merchant(a)
    right = normalize_merchant(b)

    score = edit_similarity(left, right)

    if strategy == "hybrid" and left and right and score < 1.0:
        if left in right or right in left:
            score = max(score, CONTAINMENT_SCORE)

    return score


# ============================================
# Amount
# ============================================

def amount_difference(a: float, b: float) -> float:
    """Absolute difference between magnitudes."""
    return abs(abs(a) - abs(b))


def score_amount(target: float, candidate: float, tolerance_ratio: float) -> float:
    """
    Score amount closeness relative to the larger magnitude.

    relative_error = |t - c| / max(|t|, |c|, MIN_AMOUNT_SCALE), scored as
    max(0, 1 - relative_error / tolerance_ratio). Signs are ignored: only
    magnitudes are compared.
    """
    t = abs(target)
    c = abs(candidate)

    if t == c:
        return 1.0

    scale = max(t, c, MIN_AMOUNT_SCALE)
    relative_error = abs(t - c) / scale
    return max(0.0, 1.0 - relative_error / tolerance_ratio)


# ============================================
# Date
# ============================================

def date_difference(a: Optional[date], b: Optional[date]) -> Optional[int]:
    """Whole-day distance, or None when either date is unknown."""
    if a is None or b is None:
        return None
    return abs((a - b).days)


def score_date(a: Optional[date], b: Optional[date], window_days: int) -> float:
    """max(0, 1 - days / window). Unknown dates score 0."""
    days = date_difference(a, b)
    if days is None:
        return 0.0
    return max(0.0, 1.0 - days / window_days)


# ============================================
# Secondary attributes
# ============================================

def score_exact_text(a: Optional[str], b: Optional[str]) -> float:
    """1.0 when both normalize to the same non-empty string."""
    left = normalize_text(a)
    right = normalize_text(b)
    if not left or not right:
        return 0.0
    return 1.0 if left == right else 0.0


def score_location(a: Optional[str], b: Optional[str]) -> float:
    return edit_similarity(normalize_text(a), normalize_text(b))


# ============================================
# Registry
# ============================================

FIELD_SCORERS: dict[str, FieldScorer] = {
    "merchant": lambda t, c, p: score_merchant(t.merchant_name, c.merchant_name, p.merchant_strategy),
    "amount": lambda t, c, p: score_amount(t.amount, c.amount, p.amount_tolerance_ratio),
    "date": lambda t, c, p: score_date(t.occurred_on, c.occurred_on, p.date_window_days),
    "category": lambda t, c, p: score_exact_text(t.category, c.category),
    "payment_method": lambda t, c, p: score_exact_text(t.payment_method, c.payment_method),
    "location": lambda t, c, p: score_location(t.location_text, c.location_text),
}
