"""Helpers for amounts stored as integer minor-currency units (cents)."""

from decimal import Decimal, InvalidOperation

from errors import ValidationError


def parse_amount(value: str) -> int:
    """Parse a user-entered decimal amount into cents.

    Args:
        value: Amount string such as "1500", "1500.5" or "1500.50".

    Returns:
        Amount in cents.

    Raises:
        ValidationError: If the value is not a number, has more than two
            decimal places, or is not positive.
    """
    try:
        amount = Decimal(str(value).strip().replace(",", ""))
    except InvalidOperation:
        raise ValidationError(f"Invalid amount: {value!r}")

    if not amount.is_finite():
        raise ValidationError(f"Invalid amount: {value!r}")

    if amount.as_tuple().exponent < -2:
        raise ValidationError("Amounts cannot have more than two decimal places")

    cents = int(amount * 100)
    if cents <= 0:
        raise ValidationError("Amount must be greater than zero")

    return cents


def to_decimal(cents: int) -> Decimal:
    """Convert cents to a Decimal in major units."""
    return (Decimal(cents) / 100).quantize(Decimal("0.01"))


def format_amount(cents: int, currency: str = "ARS") -> str:
    """Format cents for display, e.g. "ARS 1,500.50"."""
    sign = "-" if cents < 0 else ""
    return f"{sign}{currency} {to_decimal(abs(cents)):,.2f}"
