from decimal import Decimal

import pytest

from app.errors import ValidationError
from app.utils.money import (
    compute_totals,
    parse_tax_rate,
    points_for_total,
    to_decimal,
    to_int,
)


class TestMoney:
    """Test suite for money helpers."""

    def test_totals_add_up(self):
        subtotal, tax, total = compute_totals(Decimal("10.00"), Decimal("0.15"))

        assert (subtotal, tax, total) == (Decimal("10.00"), Decimal("1.50"), Decimal("11.50"))

    def test_tax_rounds_half_up(self):
        _, tax, total = compute_totals(Decimal("7.50"), Decimal("0.15"))

        assert tax == Decimal("1.13")
        assert total == Decimal("8.63")

    @pytest.mark.parametrize(
        "total, points",
        [("0", 0), ("4.99", 0), ("5.00", 1), ("11.50", 2), ("59.80", 11)],
    )
    def test_points_for_total(self, total, points):
        assert points_for_total(Decimal(total)) == points

    def test_tax_rate_bounds(self):
        assert parse_tax_rate(None, "0.15") == Decimal("0.15")
        assert parse_tax_rate("0", "0.15") == Decimal("0")
        with pytest.raises(ValidationError):
            parse_tax_rate(1, "0.15")
        with pytest.raises(ValidationError):
            parse_tax_rate(-0.01, "0.15")
        with pytest.raises(ValidationError):
            parse_tax_rate("abc", "0.15")

    @pytest.mark.parametrize("value", ["NaN", "nan", "Infinity", "-Infinity", "sNaN"])
    def test_non_finite_amounts_rejected(self, value):
        with pytest.raises(ValidationError, match="price must be a finite number"):
            to_decimal(value, "price")

    def test_to_decimal_keeps_exact_value(self):
        assert to_decimal("3.75") == Decimal("3.75")
        assert to_decimal(2.8) == Decimal("2.8")
        with pytest.raises(ValidationError):
            to_decimal(True, "price")

    @pytest.mark.parametrize("value, expected", [(3, 3), ("4", 4), (2.0, 2)])
    def test_to_int_accepts_whole_numbers(self, value, expected):
        assert to_int(value, "quantity") == expected

    @pytest.mark.parametrize("value", [1.5, "1.5", "two", None, True, [1]])
    def test_to_int_rejects_other_values(self, value):
        with pytest.raises(ValidationError, match="quantity must be an integer"):
            to_int(value, "quantity")
