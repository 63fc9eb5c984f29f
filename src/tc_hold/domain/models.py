"""Hold domain model.

Expiry is lazy: a row stays ACTIVE in the table until it is consumed,
cancelled or reclaimed, but every reader sees EXPIRED once now > expires_at.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from src.tc_common.enums import HoldStatus


@dataclass
class Hold:
    id: str
    lot_id: str
    company_id: str
    amount_usd: Decimal
    status: str
    created_at: datetime
    expires_at: datetime
    created_by: str | None = None
    order_id: str | None = None

    def is_lapsed(self, now: datetime) -> bool:
        return self.status == HoldStatus.ACTIVE and now > self.expires_at

    def effective_status(self, now: datetime) -> str:
        if self.is_lapsed(now):
            return HoldStatus.EXPIRED.value
        return self.status
