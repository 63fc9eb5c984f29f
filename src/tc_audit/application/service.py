"""AuditQueryService: read side of the audit log (query, aggregates, summary).

All methods are read-only; no commit/rollback needed.
"""

from datetime import datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from src.tc_audit.application.schemas import (
    AggregatesOut,
    AuditEntryItem,
    AuditQueryRequest,
    AuditQueryResponse,
    SummaryResponse,
)
from src.tc_audit.domain.summary import Summary, aggregate, build_summary, format_daily_message
from src.tc_audit.infrastructure.persistence import AuditRepository
from src.tc_common.datetime_utils import utc_now
from src.tc_common.errors import ValidationError
from src.tc_common.pagination import cursor_decode, cursor_encode, split_page
from src.tc_notify.telegram import TelegramNotifier


class AuditQueryService:
    def __init__(
        self,
        repo: AuditRepository | None = None,
        notifier: TelegramNotifier | None = None,
    ) -> None:
        self._repo = repo or AuditRepository()
        self._notifier = notifier or TelegramNotifier()

    async def query(self, db: AsyncSession, req: AuditQueryRequest) -> AuditQueryResponse:
        flt = req.to_filter()
        if flt.date_from and flt.date_to and flt.date_from > flt.date_to:
            raise ValidationError("'from' must not be after 'to'")

        rows = await self._repo.query(db, flt, cursor_decode(req.cursor), req.limit + 1)
        page, has_more = split_page(rows, req.limit)

        date_from, date_to = req.aggregate_window()
        in_range = await self._repo.list_range(db, date_from, date_to)

        return AuditQueryResponse(
            items=[AuditEntryItem.from_domain(e) for e in page],
            next_cursor=cursor_encode(page[-1].id) if has_more and page else None,
            has_more=has_more,
            aggregates=AggregatesOut.from_domain(aggregate(in_range)),
        )

    async def summary(
        self, db: AsyncSession, date_from: datetime | None, date_to: datetime | None
    ) -> Summary:
        date_to = date_to or utc_now()
        date_from = date_from or (date_to - timedelta(days=1))
        if date_from > date_to:
            raise ValidationError("'from' must not be after 'to'")
        entries = await self._repo.list_range(db, date_from, date_to)
        return build_summary(entries, date_from, date_to)

    async def send_daily_summary(self, db: AsyncSession) -> tuple[bool, SummaryResponse]:
        """Summarise the last 24h and push it to the ops Telegram chat."""
        summary = await self.summary(db, None, None)
        delivered = await self._notifier.send(format_daily_message(summary))
        return delivered, SummaryResponse.from_domain(summary)
