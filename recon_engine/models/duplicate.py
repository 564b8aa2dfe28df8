# recon_engine/models/duplicate.py

from datetime import date
from typing import Any, Optional
from pydantic import BaseModel, Field


class MergedField(BaseModel):
    """The primary's value for one field, plus what the other members say."""

    value: Any = None
    values: list[Any] = Field(
        default_factory=list,
        description="Distinct raw values across members, primary's first",
    )
    disagrees: bool = False
    within_tolerance: bool = True


class DuplicateCluster(BaseModel):
    """Records that are near-matches of each other."""

    members: list[str] = Field(min_length=2)
    primary: str
    merged_preview: dict[str, MergedField] = Field(default_factory=dict)
    confidence: float = Field(ge=0, le=1, description="Mean score of the cluster's edges")

    # Why the cluster formed: factor strings of its edges, first seen first
    reasons: list[str] = Field(default_factory=list)

    date_range: Optional[tuple[date, date]] = None
    total_amount: float = 0.0

    @property
    def has_conflicts(self) -> bool:
        """True when at least one field needs manual resolution."""
        return any(f.disagrees for f in self.merged_preview.values())

    @property
    def conflicting_fields(self) -> list[str]:
        return [name for name, f in self.merged_preview.items() if f.disagrees]

    @property
    def duplicates(self) -> list[str]:
        """Members that would be merged into the primary."""
        return [m for m in self.members if m != self.primary]
