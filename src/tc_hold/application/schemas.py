"""Pydantic schemas for tc_hold."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from src.tc_hold.domain.models import Hold


class CreateHoldRequest(BaseModel):
    lot_id: str = Field(..., min_length=1)
    amount_usd: Decimal = Field(..., gt=0, max_digits=16, decimal_places=2)
    # Company users default to their own company; admins/accountants must name one
    company_id: str | None = None


class HoldResponse(BaseModel):
    id: str
    lot_id: str
    company_id: str
    amount_usd: Decimal
    status: str
    created_at: str
    expires_at: str
    order_id: str | None

    @classmethod
    def from_domain(cls, hold: Hold, now: datetime) -> "HoldResponse":
        return cls(
            id=hold.id,
            lot_id=hold.lot_id,
            company_id=hold.company_id,
            amount_usd=hold.amount_usd,
            status=hold.effective_status(now),
            created_at=hold.created_at.isoformat(),
            expires_at=hold.expires_at.isoformat(),
            order_id=hold.order_id,
        )


class HoldListResponse(BaseModel):
    items: list[HoldResponse]
    next_cursor: str | None
    has_more: bool


class ReclaimResponse(BaseModel):
    reclaimed: int
    amount_usd: Decimal
    hold_ids: list[str]
