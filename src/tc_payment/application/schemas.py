"""Pydantic schemas for tc_payment."""

from decimal import Decimal

from pydantic import BaseModel, Field

from src.tc_common.enums import PaymentStatus
from src.tc_order.application.schemas import OrderResponse
from src.tc_payment.domain.models import Payment


class UsdcPaymentRequest(BaseModel):
    purchase_order_id: str = Field(..., min_length=1)
    tx_hash: str = Field(..., min_length=1, max_length=128)
    amount_usd: Decimal = Field(..., gt=0, max_digits=16, decimal_places=2)
    fee_usd: Decimal = Field(Decimal("0"), ge=0, max_digits=16, decimal_places=2)
    network: str = Field("base", max_length=32)
    token: str = Field("USDC", max_length=16)


class PaymentResponse(BaseModel):
    id: str
    purchase_order_id: str
    tx_hash: str
    amount_usd: Decimal
    fee_usd: Decimal
    network: str
    token: str
    status: str

    @classmethod
    def from_domain(cls, p: Payment) -> "PaymentResponse":
        return cls(
            id=p.id,
            purchase_order_id=p.purchase_order_id,
            tx_hash=p.tx_hash,
            amount_usd=p.amount_usd,
            fee_usd=p.fee_usd,
            network=p.network,
            token=p.token,
            status=p.status,
        )


class UsdcPaymentResponse(BaseModel):
    payment: PaymentResponse
    order: OrderResponse


class PaymentStatusRequest(BaseModel):
    status: PaymentStatus
    reason: str | None = Field(None, max_length=500)


class StatusChangeResponse(BaseModel):
    order: OrderResponse
    changed: bool


class WebhookAck(BaseModel):
    received: bool = True
    applied: bool = False
    event_type: str | None = None
    order_id: str | None = None
    detail: str | None = None
