"""Company / Broker domain models (pure dataclasses)."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from src.tc_common.enums import CompanyStatus, VerificationStatus


@dataclass
class Company:
    id: str
    legal_name: str
    ein: str
    state: str
    contact_email: str | None
    tax_liability_usd: Decimal | None
    target_close_year: int | None
    status: str
    verification_status: str
    verification_note: str | None
    created_at: datetime | None = None

    @property
    def is_active(self) -> bool:
        return self.status == CompanyStatus.ACTIVE


@dataclass
class Broker:
    id: str
    name: str
    contact_email: str | None
    user_id: str | None
    verification_status: str
    created_at: datetime | None = None

    @property
    def is_verified(self) -> bool:
        return self.verification_status == VerificationStatus.VERIFIED


@dataclass
class Accountant:
    id: str
    email: str
    name: str | None
    client_count: int = 0
