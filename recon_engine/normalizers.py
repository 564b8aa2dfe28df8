# recon_engine/normalizers.py

"""
Data normalization utilities for matchable records.

Callers map receipts and bank transactions onto MatchableRecord; these
helpers give them one consistent way to coerce raw values, and the
scorers use the same text normalization so comparisons agree.
"""

from datetime import date, datetime, timezone
from typing import Any
import math
import re


def normalize_amount(amount: Any) -> float:
    """
    Normalize amount to float.

    Handles:
    - Integers and floats
    - Strings with currency symbols and thousands separators
    - Accounting negatives, e.g. "(12.50)"

    Unparseable input yields NaN so that the scoring boundary rejects
    the record instead of silently comparing against zero.
    """
    if amount is None:
        return math.nan

    if isinstance(amount, bool):
        return math.nan

    if isinstance(amount, (int, float)):
        return float(amount)

    if isinstance(amount, str):
        text = amount.strip()
        negative = text.startswith("(") and text.endswith(")")
        cleaned = re.sub(r'[^\d.-]', '', text)
        try:
            value = float(cleaned)
        except ValueError:
            return math.nan
        return -abs(value) if negative else value

    return math.nan


def normalize_date(d: Any) -> date | None:
    """
    Normalize to a calendar date.

    Handles:
    - date objects
    - datetime objects (converted to UTC first when timezone-aware)
    - ISO strings
    - Unix timestamps (UTC)

    Returns None when the value cannot be read as a date.
    """
    if d is None:
        return None

    # datetime is a subclass of date, so it has to be checked first
    if isinstance(d, datetime):
        if d.tzinfo is not None:
            d = d.astimezone(timezone.utc)
        return d.date()

    if isinstance(d, date):
        return d

    if isinstance(d, bool):
        return None

    if isinstance(d, (int, float)):
        try:
            return datetime.fromtimestamp(d, tz=timezone.utc).date()
        except (OverflowError, OSError, ValueError):
            return None

    if isinstance(d, str):
        text = d.strip()
        if not text:
            return None

        try:
            return normalize_date(datetime.fromisoformat(text.replace('Z', '+00:00')))
        except ValueError:
            pass

        formats = [
            '%Y-%m-%d',
            '%m/%d/%Y',
            '%d/%m/%Y',
            '%Y/%m/%d',
        ]
        for fmt in formats:
            try:
                return datetime.strptime(text, fmt).date()
            except ValueError:
                continue

    return None


def normalize_text(s: str | None) -> str:
    """
    Normalize free text for comparison.

    Lowercase and strip every non-alphanumeric character, whitespace
    included, so "STARBUCKS #4521" becomes "starbucks4521".
    """
    if not s:
        return ""

    return re.sub(r'[^a-z0-9]', '', s.lower())
