# tests/test_scorers.py

"""
Tests for the individual field scorers.
"""

import pytest
from datetime import date, timedelta

from recon_engine.core.scorers import (
    CONTAINMENT_SCORE,
    edit_similarity,
    normalize_merchant,
    score_amount,
    score_date,
    score_exact_text,
    score_location,
    score_merchant,
)


MERCHANT_PAIRS = [
    ("STARBUCKS #4521", "Starbucks"),
    ("Amazon.com", "AMZN Mktp US"),
    ("Shell Oil 123", "Shell"),
    ("", "Target"),
    ("Whole Foods", "Whole Foods Market"),
]


# ============================================
# Merchant
# ============================================

class TestMerchantScorer:
    """Edit-distance similarity on normalized merchant names."""

    def test_normalization_strips_punctuation_and_spaces(self):
        assert normalize_merchant("STARBUCKS #4521") == "starbucks4521"
        assert normalize_merchant("Joe's Café & Bar") == "joescafbar"
        assert normalize_merchant(None) == ""

    def test_identical_after_normalization(self):
        assert score_merchant("Starbucks", "STARBUCKS") == 1.0
        assert score_merchant("Trader Joe's", "trader joes") == 1.0

    def test_empty_name_scores_zero(self):
        assert score_merchant("", "Starbucks") == 0.0
        assert score_merchant("Starbucks", "  #  ") == 0.0
        assert score_merchant("", "") == 0.0

    def test_edit_ratio(self):
        """'starbucks4521' vs 'starbucks' is four deletions over 13 characters."""
        score = score_merchant("STARBUCKS #4521", "Starbucks")

        assert score == pytest.approx(1 - 4 / 13)

    def test_unrelated_names_score_low(self):
        assert score_merchant("Netflix", "Chevron") < 0.3

    def test_hybrid_credits_containment(self):
        """Abbreviated names score higher under the hybrid strategy."""
        levenshtein = score_merchant("STARBUCKS #4521", "Starbucks")
        hybrid = score_merchant("STARBUCKS #4521", "Starbucks", strategy="hybrid")

        assert hybrid == CONTAINMENT_SCORE
        assert hybrid > levenshtein

    def test_hybrid_keeps_higher_edit_ratio(self):
        """A near-identical name keeps its edit ratio if that beats containment."""
        score = score_merchant("Starbucks Coffee", "Starbucks Coffees", strategy="hybrid")

        assert score == pytest.approx(1 - 1 / 16)

    @pytest.mark.parametrize("a,b", MERCHANT_PAIRS)
    def test_symmetric(self, a, b):
        assert score_merchant(a, b) == score_merchant(b, a)
        assert score_merchant(a, b, "hybrid") == score_merchant(b, a, "hybrid")

    @pytest.mark.parametrize("a,b", MERCHANT_PAIRS)
    def test_bounded(self, a, b):
        assert 0.0 <= score_merchant(a, b) <= 1.0

    def test_edit_similarity_direct(self):
        assert edit_similarity("kitten", "sitting") == pytest.approx(1 - 3 / 7)
        assert edit_similarity("abc", "") == 0.0


# ============================================
# Amount
# ============================================

class TestAmountScorer:
    """Relative amount closeness within a tolerance ratio."""

    def test_identical_amounts(self):
        assert score_amount(4.50, 4.50, 0.10) == 1.0
        assert score_amount(0.0, 0.0, 0.10) == 1.0

    def test_outside_tolerance_scores_zero(self):
        assert score_amount(4.50, 25.99, 0.10) == 0.0

    def test_partial_score(self):
        expected = 1 - (5 / 105) / 0.10

        assert score_amount(100.0, 105.0, 0.10) == pytest.approx(expected)

    def test_symmetric(self):
        assert score_amount(100.0, 105.0, 0.10) == score_amount(105.0, 100.0, 0.10)
        assert score_amount(67.99, 68.01, 0.10) == score_amount(68.01, 67.99, 0.10)

    def test_zero_target_uses_minimum_scale(self):
        """Comparing against zero does not divide by zero."""
        assert score_amount(0.0, 5.0, 0.10) == 0.0
        assert score_amount(0.0, 0.005, 0.10) == 0.0

    def test_sign_is_ignored(self):
        """Only magnitudes are compared; sign filtering is the caller's job."""
        assert score_amount(-4.50, 4.50, 0.10) == 1.0

    def test_monotonic_in_difference(self):
        """A larger difference never scores higher."""
        above = [score_amount(100.0, 100.0 + d, 0.10) for d in (0, 1, 2, 5, 9, 10, 20)]
        below = [score_amount(100.0, 100.0 - d, 0.10) for d in (0, 1, 2, 5, 9, 10, 20)]

        assert above == sorted(above, reverse=True)
        assert below == sorted(below, reverse=True)

    def test_wider_tolerance_scores_higher(self):
        assert score_amount(100.0, 108.0, 0.20) > score_amount(100.0, 108.0, 0.10)

    @pytest.mark.parametrize("t,c", [(1.0, 1e9), (1e-9, 3.0), (-50.0, 49.0), (0.01, 0.02)])
    def test_bounded(self, t, c):
        assert 0.0 <= score_amount(t, c, 0.10) <= 1.0
        assert 0.0 <= score_amount(t, c, 5.0) <= 1.0


# ============================================
# Date
# ============================================

class TestDateScorer:
    """Linear decay over a whole-day window."""

    def test_same_day(self):
        assert score_date(date(2024, 3, 19), date(2024, 3, 19), 5) == 1.0

    def test_partial_score(self):
        assert score_date(date(2024, 3, 19), date(2024, 3, 21), 5) == pytest.approx(0.6)

    def test_window_boundary_scores_zero(self):
        """A difference equal to the window is already zero."""
        assert score_date(date(2024, 3, 19), date(2024, 3, 24), 5) == 0.0
        assert score_date(date(2024, 3, 19), date(2024, 3, 25), 5) == 0.0

    def test_unknown_date_scores_zero(self):
        assert score_date(None, date(2024, 3, 19), 5) == 0.0
        assert score_date(None, None, 5) == 0.0

    def test_symmetric_across_month_boundary(self):
        a, b = date(2024, 2, 28), date(2024, 3, 1)

        assert score_date(a, b, 5) == score_date(b, a, 5)
        assert score_date(a, b, 5) == pytest.approx(1 - 2 / 5)

    def test_monotonic_in_difference(self):
        base = date(2024, 3, 19)
        scores = [score_date(base, base + timedelta(days=d), 7) for d in range(10)]

        assert scores == sorted(scores, reverse=True)


# ============================================
# Secondary attributes
# ============================================

class TestSecondaryScorers:
    """Category, payment method and location."""

    def test_exact_text_after_normalization(self):
        assert score_exact_text("Food & Dining", "food dining") == 1.0
        assert score_exact_text("Visa", "Mastercard") == 0.0

    def test_exact_text_missing_value(self):
        assert score_exact_text(None, "Travel") == 0.0
        assert score_exact_text(None, None) == 0.0

    def test_location_similarity(self):
        assert score_location("Seattle, WA", "seattle wa") == 1.0
        assert 0.0 < score_location("Seattle WA", "Seattle") < 1.0
        assert score_location(None, "Seattle") == 0.0
