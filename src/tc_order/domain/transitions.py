"""Purchase order payment state machine.

PENDING_PAYMENT -> PROCESSING | PAID | FAILED | CANCELED
PROCESSING      -> PAID | FAILED | CANCELED
PAID            -> REFUNDED
PAID_TEST       -> REFUNDED
Everything else is terminal. Re-applying the current status is a no-op.
"""

from src.tc_common.enums import RELEASED_PAYMENT_STATUSES, PaymentStatus
from src.tc_common.errors import InvalidStatusTransitionError

_P = PaymentStatus

ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    _P.PENDING_PAYMENT.value: frozenset(
        {_P.PROCESSING.value, _P.PAID.value, _P.FAILED.value, _P.CANCELED.value}
    ),
    _P.PROCESSING.value: frozenset({_P.PAID.value, _P.FAILED.value, _P.CANCELED.value}),
    _P.PAID.value: frozenset({_P.REFUNDED.value}),
    _P.PAID_TEST.value: frozenset({_P.REFUNDED.value}),
    _P.FAILED.value: frozenset(),
    _P.CANCELED.value: frozenset(),
    _P.REFUNDED.value: frozenset(),
}


def can_transition(current: str, target: str) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


def check_transition(current: str, target: str) -> bool:
    """True if the move must be applied, False if it is a repeat of the current status.

    Raises InvalidStatusTransitionError for anything the machine does not allow.
    """
    if current == target:
        return False
    if not can_transition(current, target):
        raise InvalidStatusTransitionError(current, target)
    return True


def releases_inventory(target: str) -> bool:
    """Entering FAILED, CANCELED or REFUNDED hands the order amount back to the lot."""
    return target in RELEASED_PAYMENT_STATUSES
