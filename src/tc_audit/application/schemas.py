"""Pydantic schemas for the tc_audit admin API."""

from datetime import timedelta
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field, field_validator

from src.tc_audit.domain.models import AuditEntry, AuditFilter
from src.tc_audit.domain.summary import Aggregates, Summary
from src.tc_common.datetime_utils import parse_iso, utc_now

_DEFAULT_WINDOW = timedelta(days=7)


class AuditQueryRequest(BaseModel):
    date_from: str | None = Field(None, alias="from")
    date_to: str | None = Field(None, alias="to")
    actions: list[str] = Field(default_factory=list)
    entities: list[str] = Field(default_factory=list)
    q: str | None = None
    limit: int = Field(500, ge=1, le=1000)
    cursor: str | None = None

    model_config = {"populate_by_name": True}

    @field_validator("date_from", "date_to")
    @classmethod
    def iso_dates(cls, v: str | None) -> str | None:
        if v is not None:
            parse_iso(v)  # raises ValueError on malformed input
        return v

    def to_filter(self) -> AuditFilter:
        return AuditFilter(
            date_from=parse_iso(self.date_from),
            date_to=parse_iso(self.date_to),
            actions=self.actions,
            entities=self.entities,
            q=self.q.strip() if self.q else None,
        )

    def aggregate_window(self) -> tuple[Any, Any]:
        """Aggregates default to the last 7 days when no range is given."""
        date_to = parse_iso(self.date_to) or utc_now()
        date_from = parse_iso(self.date_from) or (date_to - _DEFAULT_WINDOW)
        return date_from, date_to


class AuditEntryItem(BaseModel):
    id: int
    timestamp: str
    actor_id: str | None
    actor_email: str | None
    action: str
    entity: str
    entity_id: str | None
    company_id: str | None
    amount_usd: Decimal | None
    details: dict[str, Any] | None
    ip: str | None

    @classmethod
    def from_domain(cls, e: AuditEntry) -> "AuditEntryItem":
        return cls(
            id=e.id,
            timestamp=e.timestamp.isoformat(),
            actor_id=e.actor_id,
            actor_email=e.actor_email,
            action=e.action,
            entity=e.entity,
            entity_id=e.entity_id,
            company_id=e.company_id,
            amount_usd=e.amount_usd,
            details=e.details,
            ip=e.ip,
        )


class DayCount(BaseModel):
    date: str
    count: int


class ActionCount(BaseModel):
    action: str
    count: int


class DayAmount(BaseModel):
    date: str
    amount: Decimal


class AggregatesOut(BaseModel):
    by_day: list[DayCount]
    by_action: list[ActionCount]
    payments_by_day: list[DayAmount]

    @classmethod
    def from_domain(cls, agg: Aggregates) -> "AggregatesOut":
        return cls(
            by_day=[DayCount(date=d, count=c) for d, c in agg.by_day],
            by_action=[ActionCount(action=a, count=c) for a, c in agg.by_action],
            payments_by_day=[DayAmount(date=d, amount=a) for d, a in agg.payments_by_day],
        )


class AuditQueryResponse(BaseModel):
    items: list[AuditEntryItem]
    next_cursor: str | None
    has_more: bool
    aggregates: AggregatesOut


class SummaryResponse(BaseModel):
    date_from: str
    date_to: str
    events: int
    companies: int
    users: int
    payments_usd: Decimal
    top_actions: list[ActionCount]
    anomalies: list[str]
    notes: str | None

    @classmethod
    def from_domain(cls, s: Summary) -> "SummaryResponse":
        return cls(
            date_from=s.date_from.isoformat(),
            date_to=s.date_to.isoformat(),
            events=s.events,
            companies=s.companies,
            users=s.users,
            payments_usd=s.payments_usd,
            top_actions=[ActionCount(action=a, count=c) for a, c in s.top_actions],
            anomalies=s.anomalies,
            notes=s.notes,
        )
