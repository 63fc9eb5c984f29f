"""Decimal money utilities.

All USD amounts are Decimal quantized to cents (NUMERIC(16,2) in the DB).
Price per dollar is Decimal with 4 places (NUMERIC(6,4)). No float.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

CENT = Decimal("0.01")
PRICE_QUANTUM = Decimal("0.0001")
ZERO = Decimal("0")
ONE = Decimal("1")
HUNDRED = Decimal("100")


def to_usd(value: Decimal | int | str) -> Decimal:
    """Quantize to cents with ROUND_HALF_UP: Decimal('88000.005') -> Decimal('88000.01')."""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def to_price(value: Decimal | int | str) -> Decimal:
    return Decimal(value).quantize(PRICE_QUANTUM, rounding=ROUND_HALF_UP)


def as_decimal(value: object) -> Decimal:
    """Coerce numeric input (int, str, float from JSON) to a finite Decimal.

    Floats go through str() so 0.1 becomes Decimal('0.1'), not its binary expansion.
    Raises ValueError for NaN/Infinity or non-numeric values.
    """
    if isinstance(value, bool):
        raise ValueError(f"Not a number: {value!r}")
    try:
        dec = Decimal(str(value)) if isinstance(value, float) else Decimal(value)  # type: ignore[arg-type]
    except (InvalidOperation, TypeError) as exc:
        raise ValueError(f"Not a number: {value!r}") from exc
    if not dec.is_finite():
        raise ValueError(f"Not a finite number: {value!r}")
    return dec


def validate_price_per_dollar(price: Decimal) -> None:
    """Validate that price per dollar is in the range (0, 1]."""
    if not (ZERO < price <= ONE):
        raise ValueError(f"Price per dollar must be in (0, 1], got {price}")


def usd_display(amount: Decimal) -> str:
    """Convert USD to display string: Decimal('6500') -> '$6,500.00', -12 -> '-$12.00'."""
    q = to_usd(amount)
    if q < 0:
        return f"-${-q:,.2f}"
    return f"${q:,.2f}"
