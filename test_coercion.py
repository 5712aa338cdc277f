"""
Tests for Value Coercion

Run with: python3 -m pytest test_coercion.py -v
"""

import pytest
from datetime import date, datetime
import pandas as pd
from insightstore.coercion import to_decimal, to_integer, to_timestamp


NOW = datetime(2024, 3, 15, 12, 30)


class TestToDecimal:
    """Test currency/number coercion."""

    def test_comma_decimal(self):
        assert to_decimal("25,50") == pytest.approx(25.50)

    def test_dot_decimal(self):
        assert to_decimal("199.90") == pytest.approx(199.90)

    def test_only_first_comma_replaced(self):
        assert to_decimal("1.234,56") == pytest.approx(1.234)

    def test_numbers_pass_through(self):
        assert to_decimal(60) == 60.0
        assert to_decimal(12.5) == 12.5

    def test_leading_number_with_suffix(self):
        assert to_decimal("12,5 kg") == pytest.approx(12.5)

    @pytest.mark.parametrize("value", ["abc", "", None, float("nan"), "R$ 10"])
    def test_unparseable_is_zero(self, value):
        assert to_decimal(value) == 0

    def test_custom_default(self):
        assert to_decimal("n/a", default=-1.0) == -1.0


class TestToInteger:
    """Test integer coercion and the missing sentinel."""

    def test_plain_string(self):
        assert to_integer("50") == 50

    def test_leading_digits(self):
        assert to_integer("12 un") == 12
        assert to_integer("3.7") == 3

    def test_zero_is_not_missing(self):
        assert to_integer("0") == 0
        assert to_integer(0) == 0

    def test_float_truncates(self):
        assert to_integer(7.9) == 7

    @pytest.mark.parametrize("value", ["", "abc", None, float("nan"), True])
    def test_unparseable_is_none(self, value):
        assert to_integer(value) is None


class TestToTimestamp:
    """Test date coercion."""

    def test_day_first_pattern(self):
        assert to_timestamp("05/10/2023", NOW) == datetime(2023, 10, 5)

    def test_day_first_with_time_suffix(self):
        assert to_timestamp("05/10/2023 14:00", NOW) == datetime(2023, 10, 5)

    def test_iso_string(self):
        assert to_timestamp("2023-10-01", NOW) == datetime(2023, 10, 1)

    def test_native_datetime_unchanged(self):
        moment = datetime(2023, 1, 2, 3, 4, 5)
        assert to_timestamp(moment, NOW) == moment

    def test_pandas_timestamp(self):
        result = to_timestamp(pd.Timestamp("2023-06-01 10:00"), NOW)
        assert result == datetime(2023, 6, 1, 10, 0)
        assert not isinstance(result, pd.Timestamp)

    def test_plain_date_promoted(self):
        assert to_timestamp(date(2023, 2, 1), NOW) == datetime(2023, 2, 1)

    @pytest.mark.parametrize("value", ["not a date", "", None, "31/02/2023", pd.NaT])
    def test_unparseable_is_ingestion_time(self, value):
        assert to_timestamp(value, NOW) == NOW


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
