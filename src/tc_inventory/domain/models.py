"""Inventory domain models: pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal

from src.tc_common.enums import LotStatus


@dataclass
class CreditLot:
    id: str
    credit_type: str
    tax_year: int
    face_value_usd: Decimal
    available_usd: Decimal
    min_block_usd: Decimal
    price_per_dollar: Decimal
    status: str
    jurisdiction: str | None = None
    state_restriction: str | None = None
    close_by: date | None = None
    broker_id: str | None = None
    broker_name: str | None = None
    notes: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_active(self) -> bool:
        return self.status == LotStatus.ACTIVE

    def can_fill(self, amount: Decimal) -> bool:
        return amount <= self.available_usd


@dataclass
class LotInvariantRow:
    """Per-lot totals for the invariant check."""

    lot_id: str
    face_value_usd: Decimal
    available_usd: Decimal
    active_holds_usd: Decimal
    live_orders_usd: Decimal

    @property
    def committed_usd(self) -> Decimal:
        return self.active_holds_usd + self.live_orders_usd

    def violations(self) -> list[str]:
        out: list[str] = []
        if self.available_usd < 0:
            out.append(f"available {self.available_usd} < 0")
        if self.available_usd > self.face_value_usd:
            out.append(f"available {self.available_usd} > face {self.face_value_usd}")
        if self.committed_usd > self.face_value_usd:
            out.append(
                f"active holds + live orders {self.committed_usd} > face {self.face_value_usd}"
            )
        elif self.available_usd + self.committed_usd > self.face_value_usd:
            out.append(
                f"available + committed {self.available_usd + self.committed_usd}"
                f" > face {self.face_value_usd}"
            )
        return out
