"""Pydantic schemas for tc_inventory."""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, Field

from src.tc_common.enums import CreditType, LotStatus
from src.tc_inventory.domain.models import CreditLot, LotInvariantRow


class LotCreateRequest(BaseModel):
    credit_type: CreditType
    tax_year: int = Field(..., ge=2000, le=2100)
    face_value_usd: Decimal = Field(..., gt=0, max_digits=16, decimal_places=2)
    min_block_usd: Decimal = Field(..., gt=0, max_digits=16, decimal_places=2)
    price_per_dollar: Decimal = Field(..., gt=0, le=1, max_digits=6, decimal_places=4)
    jurisdiction: str | None = Field(None, max_length=64)
    state_restriction: str | None = Field(None, max_length=2)
    close_by: date | None = None
    broker_name: str | None = Field(None, max_length=255)
    notes: str | None = Field(None, max_length=2000)


class BrokerLotUpdateRequest(BaseModel):
    """Broker correction of an own lot. Unset fields are left unchanged.

    Face value is fixed at creation and is not accepted here; unknown fields
    are rejected rather than ignored.
    """

    model_config = {"extra": "forbid"}

    credit_type: CreditType | None = None
    tax_year: int | None = Field(None, ge=2000, le=2100)
    min_block_usd: Decimal | None = Field(None, gt=0, max_digits=16, decimal_places=2)
    price_per_dollar: Decimal | None = Field(None, gt=0, le=1, max_digits=6, decimal_places=4)
    status: LotStatus | None = None
    jurisdiction: str | None = Field(None, max_length=64)
    state_restriction: str | None = Field(None, max_length=2)
    close_by: date | None = None
    notes: str | None = Field(None, max_length=2000)


class LotUpdateRequest(BrokerLotUpdateRequest):
    """Admin correction: adds the broker label and a manual available adjustment."""

    available_usd: Decimal | None = Field(None, ge=0, max_digits=16, decimal_places=2)
    broker_name: str | None = Field(None, max_length=255)


class LotResponse(BaseModel):
    id: str
    credit_type: str
    tax_year: int
    face_value_usd: Decimal
    available_usd: Decimal
    min_block_usd: Decimal
    price_per_dollar: Decimal
    status: str
    jurisdiction: str | None
    state_restriction: str | None
    close_by: date | None
    broker_id: str | None
    broker_name: str | None
    notes: str | None
    created_at: str | None
    updated_at: str | None

    @classmethod
    def from_domain(cls, lot: CreditLot) -> "LotResponse":
        return cls(
            id=lot.id,
            credit_type=lot.credit_type,
            tax_year=lot.tax_year,
            face_value_usd=lot.face_value_usd,
            available_usd=lot.available_usd,
            min_block_usd=lot.min_block_usd,
            price_per_dollar=lot.price_per_dollar,
            status=lot.status,
            jurisdiction=lot.jurisdiction,
            state_restriction=lot.state_restriction,
            close_by=lot.close_by,
            broker_id=lot.broker_id,
            broker_name=lot.broker_name,
            notes=lot.notes,
            created_at=lot.created_at.isoformat() if lot.created_at else None,
            updated_at=lot.updated_at.isoformat() if lot.updated_at else None,
        )


class LotListResponse(BaseModel):
    items: list[LotResponse]
    next_cursor: str | None
    has_more: bool


class LotDeleteResponse(BaseModel):
    id: str
    deleted: bool
    soft_deleted: bool


class InvariantRowOut(BaseModel):
    lot_id: str
    face_value_usd: Decimal
    available_usd: Decimal
    active_holds_usd: Decimal
    live_orders_usd: Decimal
    violations: list[str]

    @classmethod
    def from_domain(cls, row: LotInvariantRow) -> "InvariantRowOut":
        return cls(
            lot_id=row.lot_id,
            face_value_usd=row.face_value_usd,
            available_usd=row.available_usd,
            active_holds_usd=row.active_holds_usd,
            live_orders_usd=row.live_orders_usd,
            violations=row.violations(),
        )


class InvariantReport(BaseModel):
    ok: bool
    lots_checked: int
    violations: list[InvariantRowOut]


class LotImportRow(LotCreateRequest):
    """One line of an admin bulk upload."""

    available_usd: Decimal | None = Field(None, ge=0, max_digits=16, decimal_places=2)
    status: LotStatus = LotStatus.ACTIVE


class LotImportResponse(BaseModel):
    created: int
    lot_ids: list[str]
