"""Payment domain: USDC payment record and Stripe event mapping."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any

from src.tc_common.enums import AuditAction, PaymentStatus

ORDER_METADATA_KEY = "purchase_order_id"


@dataclass
class Payment:
    id: str
    purchase_order_id: str
    tx_hash: str
    amount_usd: Decimal
    fee_usd: Decimal
    network: str
    token: str
    status: str
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def submitted_total(self) -> Decimal:
        return self.amount_usd + self.fee_usd


@dataclass
class StripeEventTarget:
    order_id: str
    status: PaymentStatus
    event_id: str | None
    event_type: str


# Audit verb recorded when an order enters each status
STATUS_AUDIT_ACTION: dict[str, AuditAction] = {
    PaymentStatus.PROCESSING.value: AuditAction.PAYMENT_PROCESSING,
    PaymentStatus.PAID.value: AuditAction.PAYMENT_CONFIRMED,
    PaymentStatus.FAILED.value: AuditAction.PAYMENT_FAILED,
    PaymentStatus.CANCELED.value: AuditAction.PAYMENT_CANCELED,
    PaymentStatus.REFUNDED.value: AuditAction.PAYMENT_REFUNDED,
}


def _completed_target(obj: dict[str, Any]) -> PaymentStatus:
    # card payments arrive "paid"; delayed methods (ACH) arrive "unpaid" and settle later
    if obj.get("payment_status") in ("paid", "no_payment_required"):
        return PaymentStatus.PAID
    return PaymentStatus.PROCESSING


_EVENT_STATUS: dict[str, PaymentStatus | None] = {
    "checkout.session.completed": None,  # depends on payment_status
    "checkout.session.async_payment_succeeded": PaymentStatus.PAID,
    "checkout.session.async_payment_failed": PaymentStatus.FAILED,
    "checkout.session.expired": PaymentStatus.CANCELED,
    "charge.refunded": PaymentStatus.REFUNDED,
}


def map_stripe_event(event: dict[str, Any]) -> StripeEventTarget | None:
    """Translate a verified Stripe event into (order, target status).

    Returns None for event types we do not act on or events without our
    order reference in metadata.
    """
    event_type = event.get("type", "")
    if event_type not in _EVENT_STATUS:
        return None
    obj = (event.get("data") or {}).get("object") or {}
    order_id = (obj.get("metadata") or {}).get(ORDER_METADATA_KEY) or obj.get("client_reference_id")
    if not order_id:
        return None
    status = _EVENT_STATUS[event_type] or _completed_target(obj)
    return StripeEventTarget(
        order_id=order_id, status=status, event_id=event.get("id"), event_type=event_type
    )
