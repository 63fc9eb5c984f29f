"""Lot field rules shared by admin and broker create/update paths."""

from decimal import Decimal

from src.tc_common.errors import InventoryInvariantError, ValidationError
from src.tc_common.money import ZERO, validate_price_per_dollar


def check_price(price: Decimal) -> None:
    try:
        validate_price_per_dollar(price)
    except ValueError as exc:
        raise ValidationError(str(exc)) from exc


def check_new_lot(face: Decimal, min_block: Decimal, price: Decimal) -> None:
    if face <= ZERO:
        raise ValidationError("face_value_usd must be positive")
    if min_block <= ZERO:
        raise ValidationError("min_block_usd must be positive")
    check_min_block(face, min_block)
    check_price(price)


def check_balance(face: Decimal, available: Decimal) -> None:
    """0 <= available <= face must hold after every edit."""
    if available < ZERO:
        raise InventoryInvariantError(f"available {available} < 0")
    if available > face:
        raise InventoryInvariantError(f"available {available} > face {face}")


def check_min_block(face: Decimal, min_block: Decimal) -> None:
    if min_block > face:
        raise ValidationError("min_block_usd cannot exceed face_value_usd")


def check_adjustment(face: Decimal, committed: Decimal, available: Decimal) -> None:
    """A manual available figure may not hand out what holds and live orders already took."""
    ceiling = face - committed
    if available > ceiling:
        raise InventoryInvariantError(
            f"available {available} > face {face} - committed {committed}"
        )
