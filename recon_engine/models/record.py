# recon_engine/models/record.py

from datetime import date
from typing import Any, Literal, Optional

from pydantic import BaseModel, field_validator

from recon_engine.normalizers import normalize_date

RecordSource = Literal["receipt", "transaction"]


class MatchableRecord(BaseModel):
    """A receipt or bank transaction mapped to the shape the engine compares."""

    id: str
    merchant_name: str = ""
    amount: float
    occurred_on: Optional[date] = None

    # Secondary attributes, scored only when weighted
    category: Optional[str] = None
    payment_method: Optional[str] = None
    location_text: Optional[str] = None

    source: Optional[RecordSource] = None

    class Config:
        from_attributes = True
        frozen = True

    @field_validator("merchant_name", mode="before")
    @classmethod
    def merchant_never_null(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("occurred_on", mode="before")
    @classmethod
    def coerce_date(cls, value: Any) -> Optional[date]:
        # Unreadable dates become None; the ranker reports them as diagnostics.
        return normalize_date(value)
