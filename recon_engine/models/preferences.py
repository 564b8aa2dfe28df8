# recon_engine/models/preferences.py

"""
Matching preferences: the immutable configuration behind every ranking
and grouping call.

Construction is the only place the engine rejects input outright. Any
invalid value raises ConfigurationError, never a silent default.
"""

import math
from types import MappingProxyType
from typing import Any, Literal, Mapping

from pydantic import (
    BaseModel,
    Field,
    ValidationError,
    field_serializer,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from recon_engine.exceptions import ConfigurationError

ScoredField = Literal[
    "merchant",
    "amount",
    "date",
    "category",
    "payment_method",
    "location",
]

SCORED_FIELDS: tuple[str, ...] = (
    "merchant",
    "amount",
    "date",
    "category",
    "payment_method",
    "location",
)

MerchantStrategy = Literal["levenshtein", "hybrid"]
ClusterStrategy = Literal["connected", "clique"]

WEIGHT_SUM_EPSILON = 1e-6

DEFAULT_WEIGHTS = {"merchant": 0.4, "amount": 0.4, "date": 0.2}


class MatchingPreferences(BaseModel):
    """Weights, tolerances and thresholds for one matching call."""

    weights: Mapping[str, float] = Field(
        default_factory=lambda: MappingProxyType(dict(DEFAULT_WEIGHTS))
    )
    amount_tolerance_ratio: float = 0.10
    date_window_days: int = 5
    merchant_match_threshold: float = 0.8
    minimum_confidence: float = 0.7

    # Optional per-field score floors required by passed_thresholds
    field_thresholds: Mapping[str, float] = Field(
        default_factory=lambda: MappingProxyType({})
    )

    merchant_strategy: MerchantStrategy = "levenshtein"
    cluster_strategy: ClusterStrategy = "connected"

    # Share of minimum_confidence a near-miss needs to be flagged for review
    review_ratio: float = 0.7

    class Config:
        frozen = True
        extra = "forbid"
        alias_generator = to_camel
        populate_by_name = True

    def __init__(self, **data: Any):
        try:
            super().__init__(**data)
        except ValidationError as exc:
            raise ConfigurationError(_describe(exc)) from exc

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "MatchingPreferences":
        """
        Build preferences from untyped settings input.

        Accepts snake_case or camelCase keys (e.g. ``amountToleranceRatio``).
        """
        if not isinstance(raw, Mapping):
            raise ConfigurationError(
                f"Matching preferences must be a mapping, got {type(raw).__name__}"
            )
        return cls(**dict(raw))

    @field_validator("weights", "field_thresholds")
    @classmethod
    def read_only(cls, value: Mapping[str, float]) -> Mapping[str, float]:
        # frozen only blocks assignment, so the validated mappings are wrapped too
        return MappingProxyType(dict(value))

    @field_serializer("weights", "field_thresholds")
    def dump_mapping(self, value: Mapping[str, float]) -> dict[str, float]:
        return dict(value)

    @model_validator(mode="after")
    def check_ranges(self) -> "MatchingPreferences":
        _check_weights(self.weights)

        if not _finite(self.amount_tolerance_ratio) or self.amount_tolerance_ratio <= 0:
            raise ConfigurationError(
                f"amount_tolerance_ratio must be > 0, got {self.amount_tolerance_ratio}"
            )
        if self.date_window_days <= 0:
            raise ConfigurationError(
                f"date_window_days must be > 0, got {self.date_window_days}"
            )

        for name in ("merchant_match_threshold", "minimum_confidence"):
            value = getattr(self, name)
            if not _finite(value) or not 0 <= value <= 1:
                raise ConfigurationError(f"{name} must be within [0, 1], got {value}")

        if not _finite(self.review_ratio) or not 0 < self.review_ratio <= 1:
            raise ConfigurationError(
                f"review_ratio must be within (0, 1], got {self.review_ratio}"
            )

        for field, floor in self.field_thresholds.items():
            if field not in SCORED_FIELDS:
                raise ConfigurationError(f"Unknown field in field_thresholds: {field!r}")
            if self.weights.get(field, 0) <= 0:
                raise ConfigurationError(
                    f"Threshold set for {field!r}, which has no weight and is never scored"
                )
            if not _finite(floor) or not 0 <= floor <= 1:
                raise ConfigurationError(
                    f"Threshold for {field!r} must be within [0, 1], got {floor}"
                )

        return self

    @property
    def active_fields(self) -> list[str]:
        """Fields with a positive weight, in canonical order."""
        return [f for f in SCORED_FIELDS if self.weights.get(f, 0) > 0]

    def weight(self, field: str) -> float:
        return self.weights.get(field, 0.0)

    def __hash__(self) -> int:
        return hash(tuple(
            tuple(sorted(value.items())) if isinstance(value, Mapping) else value
            for value in (getattr(self, name) for name in type(self).model_fields)
        ))


def _check_weights(weights: Mapping[str, float]) -> None:
    if not weights:
        raise ConfigurationError("At least one field weight is required")

    for field, weight in weights.items():
        if field not in SCORED_FIELDS:
            raise ConfigurationError(
                f"Unknown weight field {field!r}; expected one of {', '.join(SCORED_FIELDS)}"
            )
        if not _finite(weight):
            raise ConfigurationError(f"Weight for {field!r} must be finite, got {weight}")
        if weight < 0:
            raise ConfigurationError(f"Weight for {field!r} must be >= 0, got {weight}")

    total = sum(weights.values())
    if abs(total - 1.0) > WEIGHT_SUM_EPSILON:
        raise ConfigurationError(f"Weights must sum to 1.0, got {total:g}")


def _finite(value: float) -> bool:
    return math.isfinite(value)


def _describe(exc: ValidationError) -> str:
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"]) or "preferences"
        problems.append(f"{location}: {error['msg']}")
    return "Invalid matching preferences: " + "; ".join(problems)
