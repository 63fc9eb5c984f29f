"""Admin dashboard service: platform stats and scheduled maintenance jobs."""

import logging
from decimal import Decimal

from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.tc_audit.application.schemas import SummaryResponse
from src.tc_audit.application.service import AuditQueryService
from src.tc_common.datetime_utils import utc_now
from src.tc_common.enums import COMPLETED_PAYMENT_STATUSES
from src.tc_hold.application.schemas import ReclaimResponse
from src.tc_hold.application.service import HoldService, hold_service
from src.tc_inventory.application.schemas import InvariantReport
from src.tc_inventory.application.service import InventoryService, inventory_service

logger = logging.getLogger(__name__)

_COMPANY_COUNTS_SQL = text("""
    SELECT status, COUNT(*) AS n FROM companies GROUP BY status
""")
_LOT_STATS_SQL = text("""
    SELECT
        COUNT(*) FILTER (WHERE status = 'ACTIVE') AS active_lots,
        COALESCE(SUM(available_usd) FILTER (WHERE status = 'ACTIVE'), 0) AS available_usd
    FROM credit_inventory
""")
_ACTIVE_HOLDS_SQL = text("""
    SELECT COUNT(*) AS n, COALESCE(SUM(amount_usd), 0) AS amount
    FROM holds
    WHERE status = 'ACTIVE' AND expires_at > :now
""")
_ORDER_STATS_SQL = text("""
    SELECT payment_status, COUNT(*) AS n, COALESCE(SUM(total_usd), 0) AS total
    FROM purchase_orders
    GROUP BY payment_status
""")


class PlatformStats(BaseModel):
    companies_by_status: dict[str, int]
    active_lots: int
    available_usd: Decimal
    active_holds: int
    held_usd: Decimal
    orders_by_status: dict[str, int]
    completed_volume_usd: Decimal


class CronResult(BaseModel):
    job: str
    ok: bool
    detail: dict


class AdminService:
    def __init__(
        self,
        holds: HoldService | None = None,
        inventory: InventoryService | None = None,
        audit_query: AuditQueryService | None = None,
    ) -> None:
        self._holds = holds or hold_service
        self._inventory = inventory or inventory_service
        self._audit_query = audit_query or AuditQueryService()

    async def stats(self, db: AsyncSession) -> PlatformStats:
        companies = (await db.execute(_COMPANY_COUNTS_SQL)).fetchall()
        lots = (await db.execute(_LOT_STATS_SQL)).fetchone()
        holds = (await db.execute(_ACTIVE_HOLDS_SQL, {"now": utc_now()})).fetchone()
        orders = (await db.execute(_ORDER_STATS_SQL)).fetchall()

        volume = sum(
            (Decimal(r.total) for r in orders if r.payment_status in COMPLETED_PAYMENT_STATUSES),
            Decimal("0"),
        )
        return PlatformStats(
            companies_by_status={r.status: int(r.n) for r in companies},
            active_lots=int(lots.active_lots) if lots else 0,
            available_usd=Decimal(lots.available_usd) if lots else Decimal("0"),
            active_holds=int(holds.n) if holds else 0,
            held_usd=Decimal(holds.amount) if holds else Decimal("0"),
            orders_by_status={r.payment_status: int(r.n) for r in orders},
            completed_volume_usd=volume,
        )

    async def invariants(self, db: AsyncSession) -> InvariantReport:
        report = await self._inventory.invariant_report(db)
        if not report.ok:
            logger.error("Inventory invariant violations on %d lots", len(report.violations))
        return report

    async def reclaim_holds(self, db: AsyncSession) -> ReclaimResponse:
        return await self._holds.reclaim_expired(db)

    async def daily_summary(self, db: AsyncSession) -> tuple[bool, SummaryResponse]:
        return await self._audit_query.send_daily_summary(db)


admin_service = AdminService()
