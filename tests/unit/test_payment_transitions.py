import pytest

from src.tc_common.enums import PaymentStatus
from src.tc_common.errors import InvalidStatusTransitionError
from src.tc_order.domain.transitions import (
    ALLOWED_TRANSITIONS,
    can_transition,
    check_transition,
    releases_inventory,
)

P = PaymentStatus


class TestAllowedTransitions:
    @pytest.mark.parametrize(
        "current,target",
        [
            (P.PENDING_PAYMENT, P.PROCESSING),
            (P.PENDING_PAYMENT, P.PAID),
            (P.PENDING_PAYMENT, P.FAILED),
            (P.PENDING_PAYMENT, P.CANCELED),
            (P.PROCESSING, P.PAID),
            (P.PROCESSING, P.FAILED),
            (P.PROCESSING, P.CANCELED),
            (P.PAID, P.REFUNDED),
            (P.PAID_TEST, P.REFUNDED),
        ],
    )
    def test_allowed(self, current: PaymentStatus, target: PaymentStatus) -> None:
        assert can_transition(current.value, target.value)
        assert check_transition(current.value, target.value) is True

    @pytest.mark.parametrize(
        "current,target",
        [
            (P.PAID, P.FAILED),
            (P.PAID, P.PENDING_PAYMENT),
            (P.FAILED, P.PAID),
            (P.CANCELED, P.PAID),
            (P.REFUNDED, P.PAID),
            (P.PROCESSING, P.PENDING_PAYMENT),
            (P.PAID_TEST, P.PAID),
        ],
    )
    def test_illegal_raises(self, current: PaymentStatus, target: PaymentStatus) -> None:
        with pytest.raises(InvalidStatusTransitionError):
            check_transition(current.value, target.value)

    @pytest.mark.parametrize("status", list(P))
    def test_repeat_is_noop(self, status: PaymentStatus) -> None:
        assert check_transition(status.value, status.value) is False

    def test_every_status_has_an_entry(self) -> None:
        assert set(ALLOWED_TRANSITIONS) == {s.value for s in P}

    def test_terminal_statuses(self) -> None:
        for s in (P.FAILED, P.CANCELED, P.REFUNDED):
            assert ALLOWED_TRANSITIONS[s.value] == frozenset()


class TestReleasesInventory:
    @pytest.mark.parametrize("status", [P.FAILED, P.CANCELED, P.REFUNDED])
    def test_releasing(self, status: PaymentStatus) -> None:
        assert releases_inventory(status.value)

    @pytest.mark.parametrize("status", [P.PENDING_PAYMENT, P.PROCESSING, P.PAID, P.PAID_TEST])
    def test_not_releasing(self, status: PaymentStatus) -> None:
        assert not releases_inventory(status.value)
