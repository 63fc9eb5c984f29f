"""Unit tests for PaymentService: state machine, Stripe webhook, USDC submission."""

import hashlib
import hmac
import json
import time
import uuid
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from src.tc_common.enums import BrokerStatus, PaymentStatus, Role
from src.tc_common.errors import (
    ForbiddenError,
    InvalidStatusTransitionError,
    PaymentAmountMismatchError,
    PaymentSignatureError,
)
from src.tc_gateway.user.db_models import UserModel
from src.tc_order.domain.models import PurchaseOrder
from src.tc_payment.application.schemas import UsdcPaymentRequest
from src.tc_payment.application.service import PaymentService
from src.tc_payment.domain.models import Payment

SECRET = "whsec_unit"


def _order(status: str = PaymentStatus.PENDING_PAYMENT.value) -> PurchaseOrder:
    return PurchaseOrder(
        id="PO-1",
        lot_id="LOT-1",
        company_id="CO-1",
        amount_usd=Decimal("20000.00"),
        price_per_dollar=Decimal("0.85"),
        subtotal_usd=Decimal("17000.00"),
        fees_usd=Decimal("499.00"),
        total_usd=Decimal("17499.00"),
        payment_status=status,
        broker_status=BrokerStatus.PENDING.value,
    )


def _user(role: Role) -> UserModel:
    user = UserModel()
    user.id = uuid.uuid4()
    user.email = f"{role.value.lower()}@example.com"
    user.role = role.value
    user.company_id = "CO-1" if role == Role.COMPANY else None
    user.is_active = True
    return user


def _stripe_header(payload: bytes) -> str:
    ts = int(time.time())
    digest = hmac.new(SECRET.encode(), f"{ts}.".encode() + payload, hashlib.sha256).hexdigest()
    return f"t={ts},v1={digest}"


def _signed(event: dict) -> tuple[bytes, str]:
    payload = json.dumps(event).encode()
    return payload, _stripe_header(payload)


class _Deps:
    def __init__(self, current: str = PaymentStatus.PENDING_PAYMENT.value) -> None:
        self.orders = AsyncMock()
        self.orders.get.return_value = _order(current)
        self.orders.set_payment_status.side_effect = (
            lambda db, oid, expected, new: _order(new) if expected == current else None
        )
        self.inventory = AsyncMock()
        self.payments = AsyncMock()
        self.payments.upsert_submitted.return_value = Payment(
            id="PAY-1",
            purchase_order_id="PO-1",
            tx_hash="0xabc",
            amount_usd=Decimal("17499.00"),
            fee_usd=Decimal("0"),
            network="base",
            token="USDC",
            status="SUBMITTED",
        )
        self.access = AsyncMock()
        self.audit = AsyncMock()
        self.effects = AsyncMock()
        self.effects.on_paid.return_value = "broker-packages/PO-1.txt"

    def service(self) -> PaymentService:
        return PaymentService(
            self.orders,
            self.inventory,
            self.payments,
            self.access,
            self.audit,
            self.effects,
            webhook_secret=SECRET,
        )


class TestApplyStatus:
    async def test_paid_runs_settlement(self) -> None:
        deps = _Deps()
        result = await deps.service().apply_status(AsyncMock(), "PO-1", PaymentStatus.PAID)
        assert result.changed is True
        assert result.order.payment_status == PaymentStatus.PAID
        deps.effects.on_paid.assert_awaited_once()
        deps.inventory.increment.assert_not_awaited()
        assert deps.audit.write.await_args.args[2] == "PAYMENT_CONFIRMED"

    @pytest.mark.parametrize("target", [PaymentStatus.FAILED, PaymentStatus.CANCELED])
    async def test_release_restores_inventory(self, target: PaymentStatus) -> None:
        deps = _Deps()
        await deps.service().apply_status(AsyncMock(), "PO-1", target)
        deps.inventory.increment.assert_awaited_once()
        assert deps.inventory.increment.await_args.args[1:] == ("LOT-1", Decimal("20000.00"))

    async def test_refund_after_paid_restores_inventory(self) -> None:
        deps = _Deps(PaymentStatus.PAID.value)
        await deps.service().apply_status(AsyncMock(), "PO-1", PaymentStatus.REFUNDED)
        deps.inventory.increment.assert_awaited_once()
        assert deps.audit.write.await_args.args[2] == "PAYMENT_REFUNDED"

    async def test_repeat_is_noop(self) -> None:
        deps = _Deps(PaymentStatus.PAID.value)
        result = await deps.service().apply_status(AsyncMock(), "PO-1", PaymentStatus.PAID)
        assert result.changed is False
        deps.orders.set_payment_status.assert_not_awaited()
        deps.audit.write.assert_not_awaited()
        deps.effects.on_paid.assert_not_awaited()

    async def test_illegal_transition(self) -> None:
        deps = _Deps(PaymentStatus.PAID.value)
        db = AsyncMock()
        with pytest.raises(InvalidStatusTransitionError):
            await deps.service().apply_status(db, "PO-1", PaymentStatus.FAILED)
        db.rollback.assert_awaited_once()
        deps.inventory.increment.assert_not_awaited()


class TestStripeWebhook:
    async def test_bad_signature_touches_nothing(self) -> None:
        deps = _Deps()
        db = AsyncMock()
        payload = json.dumps({"type": "checkout.session.completed"}).encode()
        with pytest.raises(PaymentSignatureError):
            await deps.service().handle_stripe_webhook(db, payload, "t=1,v1=00")
        deps.orders.get.assert_not_awaited()
        db.execute.assert_not_awaited()

    async def test_completed_marks_paid(self) -> None:
        deps = _Deps()
        payload, header = _signed(
            {
                "id": "evt_1",
                "type": "checkout.session.completed",
                "data": {"object": {"payment_status": "paid", "metadata": {"purchase_order_id": "PO-1"}}},
            }
        )
        ack = await deps.service().handle_stripe_webhook(AsyncMock(), payload, header)
        assert ack.applied is True
        assert ack.order_id == "PO-1"
        deps.effects.on_paid.assert_awaited_once()

    async def test_failed_payment_restores_inventory(self) -> None:
        deps = _Deps()
        payload, header = _signed(
            {
                "id": "evt_2",
                "type": "checkout.session.async_payment_failed",
                "data": {"object": {"metadata": {"purchase_order_id": "PO-1"}}},
            }
        )
        ack = await deps.service().handle_stripe_webhook(AsyncMock(), payload, header)
        assert ack.applied is True
        deps.inventory.increment.assert_awaited_once()

    async def test_duplicate_delivery_acknowledged(self) -> None:
        deps = _Deps(PaymentStatus.PAID.value)
        payload, header = _signed(
            {
                "id": "evt_1",
                "type": "checkout.session.async_payment_succeeded",
                "data": {"object": {"metadata": {"purchase_order_id": "PO-1"}}},
            }
        )
        ack = await deps.service().handle_stripe_webhook(AsyncMock(), payload, header)
        assert ack.applied is False
        assert ack.detail == "duplicate"

    async def test_late_event_acknowledged_without_change(self) -> None:
        deps = _Deps(PaymentStatus.PAID.value)
        payload, header = _signed(
            {
                "id": "evt_3",
                "type": "checkout.session.expired",
                "data": {"object": {"metadata": {"purchase_order_id": "PO-1"}}},
            }
        )
        ack = await deps.service().handle_stripe_webhook(AsyncMock(), payload, header)
        assert ack.applied is False
        deps.inventory.increment.assert_not_awaited()

    async def test_unrelated_event_ignored(self) -> None:
        deps = _Deps()
        payload, header = _signed({"id": "evt_4", "type": "customer.created", "data": {"object": {}}})
        ack = await deps.service().handle_stripe_webhook(AsyncMock(), payload, header)
        assert ack.detail == "ignored"
        deps.orders.get.assert_not_awaited()

    async def test_signed_non_json_rejected(self) -> None:
        deps = _Deps()
        payload = b"not json"
        header = _stripe_header(payload)
        with pytest.raises(PaymentSignatureError):
            await deps.service().handle_stripe_webhook(AsyncMock(), payload, header)


class TestUsdc:
    def _req(self, amount: str, fee: str = "0") -> UsdcPaymentRequest:
        return UsdcPaymentRequest(
            purchase_order_id="PO-1", tx_hash="0xabc", amount_usd=Decimal(amount), fee_usd=Decimal(fee)
        )

    async def test_exact_amount_marks_paid(self) -> None:
        deps = _Deps()
        resp = await deps.service().submit_usdc(AsyncMock(), _user(Role.ADMIN), self._req("17499.00"))
        assert resp.order.payment_status == PaymentStatus.PAID
        assert resp.payment.tx_hash == "0xabc"
        actions = [c.args[2] for c in deps.audit.write.await_args_list]
        assert actions == ["PAYMENT_SUBMITTED", "PAYMENT_CONFIRMED"]

    async def test_amount_plus_fee_within_tolerance(self) -> None:
        deps = _Deps()
        await deps.service().submit_usdc(AsyncMock(), _user(Role.ACCOUNTANT), self._req("17490.00", "8.99"))
        deps.payments.upsert_submitted.assert_awaited_once()

    async def test_outside_tolerance(self) -> None:
        deps = _Deps()
        with pytest.raises(PaymentAmountMismatchError):
            await deps.service().submit_usdc(AsyncMock(), _user(Role.ADMIN), self._req("17498.98"))
        deps.payments.upsert_submitted.assert_not_awaited()

    async def test_company_user_cannot_submit(self) -> None:
        deps = _Deps()
        with pytest.raises(ForbiddenError):
            await deps.service().submit_usdc(AsyncMock(), _user(Role.COMPANY), self._req("17499.00"))

    async def test_unlinked_accountant_cannot_submit(self) -> None:
        deps = _Deps()
        deps.access.require_company_access.side_effect = ForbiddenError()
        with pytest.raises(ForbiddenError):
            await deps.service().submit_usdc(AsyncMock(), _user(Role.ACCOUNTANT), self._req("17499.00"))

    async def test_order_must_be_pending(self) -> None:
        deps = _Deps(PaymentStatus.PROCESSING.value)
        with pytest.raises(InvalidStatusTransitionError):
            await deps.service().submit_usdc(AsyncMock(), _user(Role.ADMIN), self._req("17499.00"))
        deps.payments.upsert_submitted.assert_not_awaited()
