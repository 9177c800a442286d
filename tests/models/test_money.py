from decimal import Decimal

import pytest

from errors import ValidationError
from models.money import format_amount, parse_amount, to_decimal


class TestMoney:
    """Tests for amount parsing and formatting."""

    @pytest.mark.parametrize(
        "value,expected",
        [("1500", 150000), ("1500.5", 150050), ("1500.50", 150050), ("1,500.25", 150025), ("0.01", 1)],
    )
    def test_parse_amount(self, value, expected):
        assert parse_amount(value) == expected

    @pytest.mark.parametrize("value", ["abc", "", "1.001", "0", "-5", "NaN", "Infinity"])
    def test_parse_amount_rejects(self, value):
        with pytest.raises(ValidationError):
            parse_amount(value)

    def test_to_decimal(self):
        assert to_decimal(150050) == Decimal("1500.50")

    def test_format_amount(self):
        assert format_amount(150050) == "ARS 1,500.50"
        assert format_amount(-2500, "USD") == "-USD 25.00"
