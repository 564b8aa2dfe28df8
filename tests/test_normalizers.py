# tests/test_normalizers.py

"""
Tests for raw value normalization and MatchableRecord coercion.
"""

import math
from datetime import date, datetime, timedelta, timezone

from recon_engine.models import MatchableRecord
from recon_engine.normalizers import normalize_amount, normalize_date, normalize_text


class TestNormalizeAmount:

    def test_numbers(self):
        assert normalize_amount(12) == 12.0
        assert normalize_amount(4.5) == 4.5

    def test_currency_strings(self):
        assert normalize_amount("$1,234.50") == 1234.5
        assert normalize_amount("-$20.00") == -20.0
        assert normalize_amount("(12.50)") == -12.5

    def test_unreadable_amounts_are_nan(self):
        assert math.isnan(normalize_amount("abc"))
        assert math.isnan(normalize_amount(None))
        assert math.isnan(normalize_amount(True))


class TestNormalizeDate:

    def test_strings(self):
        assert normalize_date("2024-03-19") == date(2024, 3, 19)
        assert normalize_date("03/19/2024") == date(2024, 3, 19)
        assert normalize_date("2024/03/19") == date(2024, 3, 19)

    def test_datetime_converted_to_utc_date(self):
        evening_in_new_york = datetime(2024, 3, 19, 23, 30, tzinfo=timezone(timedelta(hours=-5)))

        assert normalize_date(evening_in_new_york) == date(2024, 3, 20)
        assert normalize_date(datetime(2024, 3, 19, 23, 30)) == date(2024, 3, 19)

    def test_unix_timestamp(self):
        assert normalize_date(0) == date(1970, 1, 1)

    def test_invalid_dates(self):
        assert normalize_date("garbage") is None
        assert normalize_date("2024-02-30") is None
        assert normalize_date("") is None
        assert normalize_date(None) is None


class TestNormalizeText:

    def test_strips_everything_but_alphanumerics(self):
        assert normalize_text("AMZN Mktp US*2K4") == "amznmktpus2k4"
        assert normalize_text(None) == ""


class TestMatchableRecord:
    """Coercion done when a caller maps its data onto the engine's shape."""

    def test_null_merchant_becomes_empty(self):
        record = MatchableRecord(id="r1", merchant_name=None, amount=1.0, occurred_on="2024-03-19")

        assert record.merchant_name == ""
        assert record.occurred_on == date(2024, 3, 19)

    def test_invalid_date_becomes_none(self):
        record = MatchableRecord(id="r1", amount=1.0, occurred_on="31/31/2024")

        assert record.occurred_on is None

    def test_datetime_input(self):
        record = MatchableRecord(id="r1", amount=1.0, occurred_on=datetime(2024, 3, 19, 8, 0))

        assert record.occurred_on == date(2024, 3, 19)
