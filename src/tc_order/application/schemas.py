"""Pydantic schemas for tc_order (checkout, purchases, calculator)."""

from decimal import Decimal

from pydantic import BaseModel, Field

from src.tc_common.enums import BrokerStatus
from src.tc_order.domain.fees import FeeBase, FeeBreakdown
from src.tc_order.domain.models import PurchaseOrder


class CheckoutRequest(BaseModel):
    lot_id: str = Field(..., min_length=1)
    amount_usd: Decimal = Field(..., gt=0, max_digits=16, decimal_places=2)
    company_id: str | None = None
    # Settle against an existing ACTIVE hold instead of taking fresh inventory
    hold_id: str | None = None


class OrderResponse(BaseModel):
    id: str
    lot_id: str
    company_id: str
    amount_usd: Decimal
    price_per_dollar: Decimal
    subtotal_usd: Decimal
    fees_usd: Decimal
    total_usd: Decimal
    payment_status: str
    broker_status: str
    hold_id: str | None
    broker_package_ref: str | None
    closing_certificate_ref: str | None
    created_at: str | None

    @classmethod
    def from_domain(cls, o: PurchaseOrder) -> "OrderResponse":
        return cls(
            id=o.id,
            lot_id=o.lot_id,
            company_id=o.company_id,
            amount_usd=o.amount_usd,
            price_per_dollar=o.price_per_dollar,
            subtotal_usd=o.subtotal_usd,
            fees_usd=o.fees_usd,
            total_usd=o.total_usd,
            payment_status=o.payment_status,
            broker_status=o.broker_status,
            hold_id=o.hold_id,
            broker_package_ref=o.broker_package_ref,
            closing_certificate_ref=o.closing_certificate_ref,
            created_at=o.created_at.isoformat() if o.created_at else None,
        )


class CheckoutResponse(BaseModel):
    order: OrderResponse
    checkout_url: str | None
    demo_mode: bool


class OrderListResponse(BaseModel):
    items: list[OrderResponse]
    next_cursor: str | None
    has_more: bool


class BrokerStatusRequest(BaseModel):
    status: BrokerStatus
    note: str | None = Field(None, max_length=1000)


class QuoteRequest(BaseModel):
    face_value_usd: Decimal = Field(..., gt=0)
    credit_price: Decimal = Field(..., gt=0, le=1)
    platform_fee_pct: Decimal | None = Field(None, ge=0, le=100)
    broker_fee_pct: Decimal = Field(Decimal("0"), ge=0, le=100)
    fee_base: FeeBase = FeeBase.FACE
    flat_fee_floor: Decimal | None = Field(None, ge=0)


class QuoteResponse(BaseModel):
    face: Decimal
    credit_price: Decimal
    subtotal: Decimal
    platform_fee: Decimal
    broker_fee: Decimal
    total_cost: Decimal
    savings: Decimal
    effective_discount_pct: Decimal

    @classmethod
    def from_domain(cls, fb: FeeBreakdown) -> "QuoteResponse":
        return cls(
            face=fb.face,
            credit_price=fb.credit_price,
            subtotal=fb.subtotal,
            platform_fee=fb.platform_fee,
            broker_fee=fb.broker_fee,
            total_cost=fb.total_cost,
            savings=fb.savings,
            effective_discount_pct=fb.effective_discount_pct,
        )
