"""Purchase order domain model."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from src.tc_common.enums import COMPLETED_PAYMENT_STATUSES


@dataclass
class PurchaseOrder:
    id: str
    lot_id: str
    company_id: str
    amount_usd: Decimal
    price_per_dollar: Decimal  # locked from the lot at order time
    subtotal_usd: Decimal
    fees_usd: Decimal
    total_usd: Decimal
    payment_status: str
    broker_status: str
    hold_id: str | None = None
    stripe_session_id: str | None = None
    broker_package_ref: str | None = None
    closing_certificate_ref: str | None = None
    created_by: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_completed(self) -> bool:
        return self.payment_status in COMPLETED_PAYMENT_STATUSES


@dataclass
class PurchaseExportRow:
    """An order joined with its buyer and lot for the admin CSV export."""

    order: PurchaseOrder
    company_name: str | None
    credit_type: str | None
    tax_year: int | None
