"""Domain models for tc_audit: pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any


@dataclass
class AuditEntry:
    id: int                          # BIGSERIAL, cursor key
    timestamp: datetime
    action: str                      # AuditAction value (free-form strings tolerated)
    entity: str                      # AuditEntity value
    actor_id: str | None = None
    actor_email: str | None = None
    entity_id: str | None = None
    company_id: str | None = None
    amount_usd: Decimal | None = None
    details: dict[str, Any] | None = None
    ip: str | None = None


@dataclass
class AuditFilter:
    date_from: datetime | None = None
    date_to: datetime | None = None
    actions: list[str] = field(default_factory=list)
    entities: list[str] = field(default_factory=list)
    q: str | None = None             # matches actor_email / entity_id / ip
