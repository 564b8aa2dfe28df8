# recon_engine/core/duplicates.py

"""
Duplicate grouping.

Records are nodes of a similarity graph; two records are linked when
their total score reaches minimum_confidence. Scoring is symmetric, so
the graph is undirected.

Two clustering policies are available:

- "connected": connected components. Transitive, so A~B and B~C puts
  A, B and C together even when A and C are not similar. A single
  "bridge" record can chain unrelated records into one cluster.
- "clique": records are visited in (date, id) order and each free record
  seeds a cluster that only admits records similar to every member.

The engine only flags disagreements between members. Resolving them is
left to the caller.
"""

import logging
from datetime import date
from itertools import combinations
from typing import Any, Callable, Iterable, Sequence

from recon_engine.core.confidence import calculate_confidence, ensure_scorable
from recon_engine.core.scorers import FIELD_SCORERS
from recon_engine.exceptions import MalformedRecordError
from recon_engine.models import (
    DuplicateCluster,
    MatchableRecord,
    MatchingPreferences,
    MergedField,
    ScoreBreakdown,
)
from recon_engine.normalizers import normalize_text

logger = logging.getLogger(__name__)

# Linked pair -> breakdown of its score
Edges = dict[frozenset[str], ScoreBreakdown]


def _exact(value: Any) -> Any:
    return value


# Preview field -> (comparison key, scorer used for within_tolerance)
PREVIEW_FIELDS: dict[str, tuple[Callable[[Any], Any], str]] = {
    "merchant_name": (normalize_text, "merchant"),
    "amount": (_exact, "amount"),
    "occurred_on": (_exact, "date"),
    "category": (normalize_text, "category"),
    "payment_method": (normalize_text, "payment_method"),
    "location_text": (normalize_text, "location"),
}


def group(
    records: Sequence[MatchableRecord],
    preferences: MatchingPreferences,
) -> list[DuplicateCluster]:
    """
    Group near-duplicate records into clusters.

    Returns clusters of two or more members, each with a primary (earliest
    date, then lowest id) and a merge preview. The result does not depend
    on input order.
    """
    _validate(records)

    ordered = sorted(records, key=_primary_key)
    by_id = {r.id: r for r in ordered}

    edges: Edges = {}
    for left, right in combinations(ordered, 2):
        breakdown = calculate_confidence(left, right, preferences)
        if breakdown.total_score >= preferences.minimum_confidence:
            edges[frozenset((left.id, right.id))] = breakdown

    if preferences.cluster_strategy == "clique":
        components = _cliques(ordered, edges)
    else:
        components = _connected_components(ordered, edges)

    clusters = []
    for member_ids in components:
        if len(member_ids) < 2:
            continue
        members = sorted((by_id[i] for i in member_ids), key=_primary_key)
        clusters.append(_build_cluster(members, edges, preferences))

    clusters.sort(key=lambda c: _primary_key(by_id[c.primary]))

    logger.debug(
        "Grouped %d records into %d duplicate clusters (%s)",
        len(records), len(clusters), preferences.cluster_strategy,
    )

    return clusters


def _validate(records: Sequence[MatchableRecord]) -> None:
    seen: set[str] = set()
    for record in records:
        ensure_scorable(record)
        if record.id in seen:
            logger.error("Duplicate record id %s in grouping input", record.id)
            raise MalformedRecordError(record.id, "id appears more than once")
        seen.add(record.id)


def _primary_key(record: MatchableRecord) -> tuple:
    # Unknown dates sort after every known date
    return (record.occurred_on is None, record.occurred_on or date.min, record.id)


# ============================================
# Clustering
# ============================================

def _connected_components(
    ordered: Sequence[MatchableRecord],
    edges: Edges,
) -> list[list[str]]:
    forest = _DisjointSets(r.id for r in ordered)
    for pair in edges:
        forest.merge(*pair)
    return forest.components()


def _cliques(
    ordered: Sequence[MatchableRecord],
    edges: Edges,
) -> list[list[str]]:
    assigned: set[str] = set()
    cliques: list[list[str]] = []

    for seed in ordered:
        if seed.id in assigned:
            continue
        members = [seed.id]
        for other in ordered:
            if other.id in assigned or other.id in members:
                continue
            if all(frozenset((other.id, m)) in edges for m in members):
                members.append(other.id)
        assigned.update(members)
        cliques.append(members)

    return cliques


class _DisjointSets:
    """Union-find over record ids, with path halving and union by size."""

    def __init__(self, ids: Iterable[str]) -> None:
        self._parent = {i: i for i in ids}
        self._size = dict.fromkeys(self._parent, 1)

    def root(self, item: str) -> str:
        parent = self._parent
        while parent[item] != item:
            parent[item] = parent[parent[item]]
            item = parent[item]
        return item

    def merge(self, left: str, right: str) -> None:
        a, b = self.root(left), self.root(right)
        if a == b:
            return
        if self._size[a] < self._size[b]:
            a, b = b, a
        self._parent[b] = a
        self._size[a] += self._size[b]

    def components(self) -> list[list[str]]:
        """Member ids per set, sets and members in insertion order."""
        by_root: dict[str, list[str]] = {}
        for item in self._parent:
            by_root.setdefault(self.root(item), []).append(item)
        return list(by_root.values())


# ============================================
# Cluster assembly
# ============================================

def _build_cluster(
    members: list[MatchableRecord],
    edges: Edges,
    preferences: MatchingPreferences,
) -> DuplicateCluster:
    primary = members[0]

    linked = [
        edges[pair]
        for pair in (frozenset((a.id, b.id)) for a, b in combinations(members, 2))
        if pair in edges
    ]

    reasons: list[str] = []
    for breakdown in linked:
        for factor in breakdown.factors:
            if factor not in reasons:
                reasons.append(factor)

    dates = [m.occurred_on for m in members if m.occurred_on is not None]

    return DuplicateCluster(
        members=sorted(m.id for m in members),
        primary=primary.id,
        merged_preview=_merge_preview(members, preferences),
        confidence=sum(b.total_score for b in linked) / len(linked),
        reasons=reasons,
        date_range=(min(dates), max(dates)) if dates else None,
        total_amount=sum(m.amount for m in members),
    )


def _merge_preview(
    members: list[MatchableRecord],
    preferences: MatchingPreferences,
) -> dict[str, MergedField]:
    """Primary's values, with every field the other members disagree on flagged."""
    primary = members[0]
    preview: dict[str, MergedField] = {}

    for field, (comparable, scorer_name) in PREVIEW_FIELDS.items():
        raw_values = [getattr(m, field) for m in members]

        distinct: list[Any] = []
        for value in raw_values:
            if value not in distinct:
                distinct.append(value)

        reference = comparable(getattr(primary, field))
        disagrees = any(comparable(v) != reference for v in raw_values[1:])

        within_tolerance = not disagrees or all(
            FIELD_SCORERS[scorer_name](a, b, preferences) > 0
            for a, b in combinations(members, 2)
        )

        preview[field] = MergedField(
            value=getattr(primary, field),
            values=distinct,
            disagrees=disagrees,
            within_tolerance=within_tolerance,
        )

    return preview
