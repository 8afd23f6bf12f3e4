"""Conversions between major currency units and Stripe minor units."""

from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")


def to_minor_units(amount: Decimal | int | float | str) -> int:
    """Convert a major-unit amount to integer minor units.

    Rounds half-up to the cent first, so 199.005 becomes 19901.

    >>> to_minor_units(Decimal("199"))
    19900
    """
    value = Decimal(str(amount)).quantize(CENT, rounding=ROUND_HALF_UP)
    return int(value * 100)


def from_minor_units(amount: int) -> Decimal:
    """Convert integer minor units to a two-decimal major-unit amount.

    >>> from_minor_units(19900)
    Decimal('199.00')
    """
    return (Decimal(amount) / 100).quantize(CENT, rounding=ROUND_HALF_UP)
