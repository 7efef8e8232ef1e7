from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from app.constants import POINTS_PER_CURRENCY
from app.errors import ValidationError

CENTS = Decimal("0.01")


def to_decimal(value, field="amount"):
    """Parse a JSON number or numeric string without going through float."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")
    try:
        number = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"{field} must be a number")
    if not number.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    return number


def to_int(value, field="value"):
    """Parse a whole number; fractional values such as ``1.5`` are rejected."""
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not value.is_integer():
            raise ValidationError(f"{field} must be an integer")
        return int(value)
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be an integer")


def round_money(value):
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def parse_tax_rate(value, default):
    rate = to_decimal(default if value is None else value, "tax_rate")
    if rate < 0 or rate >= 1:
        raise ValidationError("tax_rate must be between 0 and 1 (e.g. 0.15)")
    return rate


def compute_totals(subtotal, tax_rate):
    """Return ``(subtotal, tax, total)`` rounded to cents; total is always subtotal + tax."""
    subtotal = round_money(subtotal)
    tax = round_money(subtotal * Decimal(tax_rate))
    return subtotal, tax, subtotal + tax


def points_for_total(total):
    if total is None or total <= 0:
        return 0
    return int(Decimal(total) // POINTS_PER_CURRENCY)


def money_json(value):
    return float(value) if value is not None else None
