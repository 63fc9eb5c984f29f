"""HoldService: time-boxed reservations against lot inventory.

create_hold decrements inventory and inserts the hold in one transaction.
Expiry is read lazily; reclaim_expired is the sweep that actually returns
lapsed amounts to their lots (cron or admin triggered).
"""

import logging
from datetime import datetime
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.tc_access.application.service import AccessService, access_service
from src.tc_audit.application.writer import AuditWriter, audit_writer
from src.tc_common.database import atomic
from src.tc_common.datetime_utils import hours_from, utc_now
from src.tc_common.enums import AuditAction, AuditEntity, HoldStatus, Role
from src.tc_common.errors import (
    BelowMinimumBlockError,
    HoldMismatchError,
    HoldNotActiveError,
    HoldNotFoundError,
    LotNotActiveError,
    LotNotFoundError,
    ValidationError,
)
from src.tc_common.id_generator import generate_id
from src.tc_common.money import ZERO, to_usd
from src.tc_common.pagination import split_page
from src.tc_company.application.service import CompanyService, company_service
from src.tc_gateway.user.db_models import UserModel
from src.tc_hold.application.schemas import HoldListResponse, HoldResponse, ReclaimResponse
from src.tc_hold.domain.models import Hold
from src.tc_hold.domain.repository import HoldRepositoryProtocol
from src.tc_hold.infrastructure.persistence import HoldRepository
from src.tc_inventory.domain.repository import InventoryRepositoryProtocol
from src.tc_inventory.infrastructure.persistence import InventoryRepository
from src.tc_notify.email import EmailSender

logger = logging.getLogger(__name__)

_RECLAIM_BATCH = 500


def resolve_company_id(user: UserModel, requested: str | None) -> str:
    """Company users act for their own company; everyone else must name one."""
    if user.role == Role.COMPANY:
        if requested and requested != user.company_id:
            return requested  # the access gate rejects it
        if not user.company_id:
            raise ValidationError("User is not attached to a company")
        return user.company_id
    if not requested:
        raise ValidationError("company_id is required")
    return requested


class HoldService:
    def __init__(
        self,
        repo: HoldRepositoryProtocol | None = None,
        inventory: InventoryRepositoryProtocol | None = None,
        companies: CompanyService | None = None,
        access: AccessService | None = None,
        audit: AuditWriter | None = None,
        email: EmailSender | None = None,
    ) -> None:
        self._repo: HoldRepositoryProtocol = repo or HoldRepository()
        self._inventory: InventoryRepositoryProtocol = inventory or InventoryRepository()
        self._companies = companies or company_service
        self._access = access or access_service
        self._audit = audit or audit_writer
        self._email = email or EmailSender()

    async def create_hold(
        self,
        db: AsyncSession,
        user: UserModel,
        lot_id: str,
        amount: Decimal,
        company_id: str | None = None,
        ip: str | None = None,
    ) -> HoldResponse:
        amount = to_usd(amount)
        company_id = resolve_company_id(user, company_id)
        await self._access.require_company_access(db, user, company_id)
        await self._companies.get_active_company(db, company_id)

        lot = await self._inventory.get(db, lot_id)
        if lot is None:
            raise LotNotFoundError(lot_id)
        if not lot.is_active:
            raise LotNotActiveError(lot_id)
        if amount < lot.min_block_usd:
            raise BelowMinimumBlockError(amount, lot.min_block_usd)

        now = utc_now()
        async with atomic(db):
            # Conditional UPDATE re-checks availability under the row lock
            await self._inventory.decrement(db, lot_id, amount)
            hold = await self._repo.insert(
                db,
                Hold(
                    id=generate_id("HLD"),
                    lot_id=lot_id,
                    company_id=company_id,
                    amount_usd=amount,
                    status=HoldStatus.ACTIVE.value,
                    created_at=now,
                    expires_at=hours_from(now, settings.HOLD_TTL_HOURS),
                    created_by=str(user.id),
                ),
            )

        logger.info("Hold %s placed: lot=%s company=%s amount=%s", hold.id, lot_id, company_id, amount)
        await self._audit.write(
            str(user.id),
            user.email,
            AuditAction.CREATE.value,
            AuditEntity.HOLD.value,
            entity_id=hold.id,
            company_id=company_id,
            amount_usd=amount,
            details={"lot_id": lot_id, "credit_type": lot.credit_type, "expires_at": hold.expires_at},
            ip=ip,
        )
        await self._email.send_hold_confirmation(
            user.email, lot.credit_type, amount, hold.expires_at
        )
        return HoldResponse.from_domain(hold, now)

    async def get_hold(self, db: AsyncSession, user: UserModel, hold_id: str) -> HoldResponse:
        hold = await self._repo.get(db, hold_id)
        if hold is None:
            raise HoldNotFoundError(hold_id)
        await self._access.require_company_access(db, user, hold.company_id)
        return HoldResponse.from_domain(hold, utc_now())

    async def list_holds(
        self,
        db: AsyncSession,
        user: UserModel,
        company_id: str | None,
        cursor: str | None,
        limit: int,
    ) -> HoldListResponse:
        if company_id is not None:
            await self._access.require_company_access(db, user, company_id)
            scope: list[str] | None = [company_id]
        else:
            scope = await self._access.accessible_company_ids(db, user)
        rows = await self._repo.list_holds(db, scope, cursor, limit + 1)
        page, has_more = split_page(rows, limit)
        now = utc_now()
        return HoldListResponse(
            items=[HoldResponse.from_domain(h, now) for h in page],
            next_cursor=page[-1].id if has_more and page else None,
            has_more=has_more,
        )

    async def cancel_hold(
        self, db: AsyncSession, user: UserModel, hold_id: str, ip: str | None = None
    ) -> HoldResponse:
        async with atomic(db):
            hold = await self._repo.get(db, hold_id, for_update=True)
            if hold is None:
                raise HoldNotFoundError(hold_id)
            await self._access.require_company_access(db, user, hold.company_id)
            cancelled = await self._repo.transition(db, hold_id, HoldStatus.CANCELLED.value)
            if cancelled is None:
                raise HoldNotActiveError(hold_id, hold.status)
            await self._inventory.increment(db, hold.lot_id, hold.amount_usd)

        await self._audit.write(
            str(user.id),
            user.email,
            AuditAction.HOLD_CANCELLED.value,
            AuditEntity.HOLD.value,
            entity_id=hold_id,
            company_id=hold.company_id,
            amount_usd=hold.amount_usd,
            details={"lot_id": hold.lot_id},
            ip=ip,
        )
        return HoldResponse.from_domain(cancelled, utc_now())

    async def consume_for_order(
        self,
        db: AsyncSession,
        hold_id: str,
        company_id: str,
        lot_id: str,
        amount: Decimal,
        order_id: str,
        now: datetime,
    ) -> Hold:
        """Mark a hold CONSUMED by an order. Runs inside the caller's transaction.

        The hold's amount was already taken from inventory when it was placed,
        so the order must not decrement again.
        """
        hold = await self._repo.get(db, hold_id, for_update=True)
        if hold is None:
            raise HoldNotFoundError(hold_id)
        if hold.effective_status(now) != HoldStatus.ACTIVE:
            raise HoldNotActiveError(hold_id, hold.effective_status(now))
        if hold.company_id != company_id:
            raise HoldMismatchError("hold belongs to another company")
        if hold.lot_id != lot_id:
            raise HoldMismatchError("hold is on a different lot")
        if hold.amount_usd != amount:
            raise HoldMismatchError(f"hold amount {hold.amount_usd} != order amount {amount}")
        consumed = await self._repo.transition(
            db, hold_id, HoldStatus.CONSUMED.value, order_id=order_id
        )
        if consumed is None:
            raise HoldNotActiveError(hold_id, hold.status)
        return consumed

    async def reclaim_expired(
        self,
        db: AsyncSession,
        actor_id: str | None = None,
        actor_email: str | None = None,
        now: datetime | None = None,
    ) -> ReclaimResponse:
        """Mark lapsed ACTIVE holds EXPIRED and credit their amounts back to the lots."""
        now = now or utc_now()
        reclaimed: list[Hold] = []
        async with atomic(db):
            for hold in await self._repo.lock_lapsed(db, now, _RECLAIM_BATCH):
                if await self._repo.transition(db, hold.id, HoldStatus.EXPIRED.value) is None:
                    continue
                await self._inventory.increment(db, hold.lot_id, hold.amount_usd)
                reclaimed.append(hold)

        total = sum((h.amount_usd for h in reclaimed), ZERO)
        if reclaimed:
            logger.info("Reclaimed %d expired holds (%s USD)", len(reclaimed), total)
        for hold in reclaimed:
            await self._audit.write(
                actor_id,
                actor_email,
                AuditAction.HOLD_EXPIRED.value,
                AuditEntity.HOLD.value,
                entity_id=hold.id,
                company_id=hold.company_id,
                amount_usd=hold.amount_usd,
                details={"lot_id": hold.lot_id, "expired_at": hold.expires_at},
            )
        return ReclaimResponse(
            reclaimed=len(reclaimed),
            amount_usd=to_usd(total),
            hold_ids=[h.id for h in reclaimed],
        )


hold_service = HoldService()
