# recon_engine/models/match.py

from typing import Optional, Literal
from pydantic import BaseModel, Field


# ============================================
# Score Breakdown
# ============================================

SuggestionLevel = Literal["suggested", "needs_review", "unlikely"]

class ScoreBreakdown(BaseModel):
    """How one (target, candidate) pair was scored."""

    field_scores: dict[str, float] = Field(
        default_factory=dict,
        description="Normalized similarity in [0, 1] per weighted field",
    )
    total_score: float = Field(ge=0, le=1, description="Weighted aggregate")
    passed_thresholds: bool
    matched_fields: list[str] = Field(
        default_factory=list,
        description="Fields that count as matched, for explaining a suggestion",
    )
    factors: list[str] = Field(default_factory=list, description="Human-readable factors")

    # Raw differences, used for tie-breaking
    date_difference_days: Optional[int] = None
    amount_difference: float = 0.0


# ============================================
# Ranking
# ============================================

class RankedCandidate(BaseModel):
    """One scored candidate in a ranking."""

    candidate_id: str
    breakdown: ScoreBreakdown
    suggestion: SuggestionLevel

    @property
    def total_score(self) -> float:
        return self.breakdown.total_score


class MatchResult(BaseModel):
    """Outcome of ranking a candidate pool against one target record."""

    target: str
    ranked: list[RankedCandidate] = Field(default_factory=list)
    best: Optional[RankedCandidate] = None
    diagnostics: list[str] = Field(default_factory=list)

    @property
    def near_misses(self) -> list[RankedCandidate]:
        """Candidates that failed thresholds but are close enough to review."""
        return [r for r in self.ranked if r.suggestion == "needs_review"]

    def to_dict(self) -> dict:
        """Convert to dictionary for callers that persist or render results."""
        return {
            "target": self.target,
            "best": self.best.model_dump() if self.best else None,
            "ranked": [r.model_dump() for r in self.ranked],
            "diagnostics": list(self.diagnostics),
        }


# ============================================
# Pool Reconciliation
# ============================================

class MatchedPair(BaseModel):
    """A receipt assigned to a transaction."""

    receipt_id: str
    transaction_id: str
    breakdown: ScoreBreakdown


class UnmatchedRecord(BaseModel):
    """A record left without an assignment."""

    record_id: str
    possible_matches: list[RankedCandidate] = Field(default_factory=list)


class ReconciliationSummary(BaseModel):
    """Counts for one reconciliation run."""

    total_receipts: int
    total_transactions: int
    matched: int
    unmatched_receipts: int
    unmatched_transactions: int
    match_rate: float = Field(description="Percentage of receipts matched")
