"""Fee / discount calculator: pure Decimal arithmetic, no I/O.

subtotal = face x price
fee base = face or subtotal (caller's choice)
platform fee = base x pct / 100, raised to the flat floor when one is given
total = subtotal + platform fee + broker fee
savings = face - total; effective discount = savings / face x 100
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from src.tc_common.errors import ValidationError
from src.tc_common.money import HUNDRED, ONE, ZERO, as_decimal, to_usd

_PCT_QUANTUM = Decimal("0.01")


class FeeBase(str, Enum):
    FACE = "face"
    SUBTOTAL = "subtotal"


@dataclass(frozen=True)
class FeeBreakdown:
    face: Decimal
    credit_price: Decimal
    subtotal: Decimal
    platform_fee: Decimal
    broker_fee: Decimal
    total_cost: Decimal
    savings: Decimal
    effective_discount_pct: Decimal


@dataclass(frozen=True)
class OrderPricing:
    subtotal: Decimal
    fees: Decimal
    total: Decimal


def _number(name: str, value: object) -> Decimal:
    try:
        dec = as_decimal(value)
    except ValueError as exc:
        raise ValidationError(f"{name}: {exc}") from exc
    if dec < ZERO:
        raise ValidationError(f"{name} must not be negative")
    return dec


def compute(
    face: object,
    credit_price: object,
    platform_fee_pct: object,
    broker_fee_pct: object = ZERO,
    fee_base: FeeBase | str = FeeBase.FACE,
    flat_fee_floor: object | None = None,
) -> FeeBreakdown:
    """Price a block of credits. Raises ValidationError on bad input, never returns NaN."""
    face_d = _number("face", face)
    price = _number("credit_price", credit_price)
    platform_pct = _number("platform_fee_pct", platform_fee_pct)
    broker_pct = _number("broker_fee_pct", broker_fee_pct)
    floor = _number("flat_fee_floor", flat_fee_floor) if flat_fee_floor is not None else None

    if face_d == ZERO:
        raise ValidationError("face must be greater than zero")
    if not (ZERO < price <= ONE):
        raise ValidationError(f"credit_price must be in (0, 1], got {price}")
    try:
        base_kind = FeeBase(fee_base)
    except ValueError as exc:
        raise ValidationError(f"fee_base must be 'face' or 'subtotal', got {fee_base!r}") from exc

    subtotal = to_usd(face_d * price)
    base = face_d if base_kind == FeeBase.FACE else subtotal
    platform_fee = to_usd(base * platform_pct / HUNDRED)
    if floor is not None:
        platform_fee = max(platform_fee, to_usd(floor))
    broker_fee = to_usd(base * broker_pct / HUNDRED)

    total = subtotal + platform_fee + broker_fee
    savings = to_usd(face_d) - total
    discount = (savings / face_d * HUNDRED).quantize(_PCT_QUANTUM)
    return FeeBreakdown(
        face=to_usd(face_d),
        credit_price=price,
        subtotal=subtotal,
        platform_fee=platform_fee,
        broker_fee=broker_fee,
        total_cost=total,
        savings=savings,
        effective_discount_pct=discount,
    )


def price_order(
    amount: Decimal, price_per_dollar: Decimal, fee_percent: Decimal, flat_floor: Decimal
) -> OrderPricing:
    """Checkout pricing: fees = max(subtotal x pct, flat floor), no broker fee."""
    fb = compute(
        amount,
        price_per_dollar,
        fee_percent,
        fee_base=FeeBase.SUBTOTAL,
        flat_fee_floor=flat_floor,
    )
    return OrderPricing(subtotal=fb.subtotal, fees=fb.platform_fee, total=fb.total_cost)
