"""Stripe webhook verification (through the SDK) and Stripe event mapping."""

import hashlib
import hmac
import json
import time

import pytest

from src.tc_common.enums import PaymentStatus
from src.tc_common.errors import PaymentSignatureError
from src.tc_payment.domain.models import map_stripe_event
from src.tc_payment.infrastructure.stripe_client import verify_webhook

SECRET = "whsec_test"
PAYLOAD = json.dumps({"id": "evt_1", "type": "checkout.session.completed"}).encode()


def _sign(payload: bytes, ts: int, secret: str = SECRET) -> str:
    return hmac.new(secret.encode(), f"{ts}.".encode() + payload, hashlib.sha256).hexdigest()


def _header(payload: bytes = PAYLOAD, ts: int | None = None, secret: str = SECRET) -> str:
    ts = int(time.time()) if ts is None else ts
    return f"t={ts},v1={_sign(payload, ts, secret)}"


class TestVerifyWebhook:
    def test_valid_returns_event(self) -> None:
        event = verify_webhook(PAYLOAD, _header(), SECRET)
        assert event == {"id": "evt_1", "type": "checkout.session.completed"}

    def test_any_v1_may_match(self) -> None:
        ts = int(time.time())
        header = f"t={ts},v1=deadbeef,v1={_sign(PAYLOAD, ts)}"
        assert verify_webhook(PAYLOAD, header, SECRET)["id"] == "evt_1"

    def test_tampered_body(self) -> None:
        with pytest.raises(PaymentSignatureError):
            verify_webhook(PAYLOAD + b" ", _header(), SECRET)

    def test_wrong_secret(self) -> None:
        with pytest.raises(PaymentSignatureError):
            verify_webhook(PAYLOAD, _header(secret="other"), SECRET)

    def test_stale_timestamp(self) -> None:
        with pytest.raises(PaymentSignatureError):
            verify_webhook(PAYLOAD, _header(ts=int(time.time()) - 301), SECRET, tolerance_seconds=300)

    def test_missing_header(self) -> None:
        with pytest.raises(PaymentSignatureError):
            verify_webhook(PAYLOAD, None, SECRET)

    def test_unconfigured_secret_fails_closed(self) -> None:
        with pytest.raises(PaymentSignatureError):
            verify_webhook(PAYLOAD, _header(), "")

    @pytest.mark.parametrize("header", ["garbage", "t=abc,v1=00", "v1=00", "t=1700000000"])
    def test_malformed_header(self, header: str) -> None:
        with pytest.raises(PaymentSignatureError):
            verify_webhook(PAYLOAD, header, SECRET)

    def test_signed_non_json(self) -> None:
        with pytest.raises(PaymentSignatureError):
            verify_webhook(b"not json", _header(b"not json"), SECRET)


def _event(event_type: str, **obj: object) -> dict:
    return {"id": "evt_1", "type": event_type, "data": {"object": obj}}


class TestMapStripeEvent:
    def test_completed_paid(self) -> None:
        target = map_stripe_event(
            _event("checkout.session.completed", payment_status="paid", metadata={"purchase_order_id": "PO-1"})
        )
        assert target is not None
        assert (target.order_id, target.status) == ("PO-1", PaymentStatus.PAID)

    def test_completed_unpaid_is_processing(self) -> None:
        target = map_stripe_event(
            _event("checkout.session.completed", payment_status="unpaid", metadata={"purchase_order_id": "PO-1"})
        )
        assert target is not None and target.status == PaymentStatus.PROCESSING

    @pytest.mark.parametrize(
        "event_type,status",
        [
            ("checkout.session.async_payment_succeeded", PaymentStatus.PAID),
            ("checkout.session.async_payment_failed", PaymentStatus.FAILED),
            ("checkout.session.expired", PaymentStatus.CANCELED),
            ("charge.refunded", PaymentStatus.REFUNDED),
        ],
    )
    def test_event_types(self, event_type: str, status: PaymentStatus) -> None:
        target = map_stripe_event(_event(event_type, metadata={"purchase_order_id": "PO-1"}))
        assert target is not None and target.status == status

    def test_client_reference_fallback(self) -> None:
        target = map_stripe_event(
            _event("checkout.session.expired", client_reference_id="PO-9")
        )
        assert target is not None and target.order_id == "PO-9"

    def test_unknown_event_ignored(self) -> None:
        assert map_stripe_event(_event("invoice.paid", metadata={"purchase_order_id": "PO-1"})) is None

    def test_missing_order_reference_ignored(self) -> None:
        assert map_stripe_event(_event("checkout.session.expired")) is None
