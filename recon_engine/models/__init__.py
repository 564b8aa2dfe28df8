# recon_engine/models/__init__.py

from recon_engine.models.record import MatchableRecord, RecordSource
from recon_engine.models.preferences import (
    MatchingPreferences,
    ScoredField,
    SCORED_FIELDS,
    DEFAULT_WEIGHTS,
)
from recon_engine.models.match import (
    ScoreBreakdown,
    SuggestionLevel,
    RankedCandidate,
    MatchResult,
    MatchedPair,
    UnmatchedRecord,
    ReconciliationSummary,
)
from recon_engine.models.duplicate import (
    DuplicateCluster,
    MergedField,
)

__all__ = [
    # Record
    "MatchableRecord",
    "RecordSource",
    # Preferences
    "MatchingPreferences",
    "ScoredField",
    "SCORED_FIELDS",
    "DEFAULT_WEIGHTS",
    # Match
    "ScoreBreakdown",
    "SuggestionLevel",
    "RankedCandidate",
    "MatchResult",
    "MatchedPair",
    "UnmatchedRecord",
    "ReconciliationSummary",
    # Duplicates
    "DuplicateCluster",
    "MergedField",
]
