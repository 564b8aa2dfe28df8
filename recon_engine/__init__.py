# recon_engine/__init__.py

"""Receipt-to-transaction reconciliation engine."""

from recon_engine.core import group, rank, reconcile, find_best_match
from recon_engine.exceptions import (
    ReconciliationError,
    ConfigurationError,
    MalformedRecordError,
)
from recon_engine.models import (
    MatchableRecord,
    MatchingPreferences,
    MatchResult,
    DuplicateCluster,
)

__version__ = "1.0.0"

__all__ = [
    "group",
    "rank",
    "reconcile",
    "find_best_match",
    "ReconciliationError",
    "ConfigurationError",
    "MalformedRecordError",
    "MatchableRecord",
    "MatchingPreferences",
    "MatchResult",
    "DuplicateCluster",
]
